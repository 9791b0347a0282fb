"""Alembic migrations build the same ledger schema the models describe, and tear it down again."""

import pytest
from alembic import command
from sqlalchemy import create_engine, inspect

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.models import Base
from apps.api.services.errors import QuotaExceeded
from apps.api.services.ledger import ActionState, apply_action
from apps.api.services import repo
from tests._db_bootstrap import alembic_config_with_url, run_alembic_upgrade_head


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'migrated.db'}"


def _tables(url: str) -> set[str]:
    engine = create_engine(url)
    try:
        return set(inspect(engine).get_table_names()) - {"alembic_version"}
    finally:
        engine.dispose()


def test_upgrade_head_creates_model_tables(sqlite_url) -> None:
    run_alembic_upgrade_head(sqlite_url)
    assert _tables(sqlite_url) == set(Base.metadata.tables)


def test_upgrade_head_is_idempotent(sqlite_url) -> None:
    run_alembic_upgrade_head(sqlite_url)
    run_alembic_upgrade_head(sqlite_url)
    assert "agent_actions" in _tables(sqlite_url)


def test_ledger_unique_constraint_and_indexes(sqlite_url) -> None:
    run_alembic_upgrade_head(sqlite_url)
    engine = create_engine(sqlite_url)
    try:
        insp = inspect(engine)
        uniques = {tuple(u["column_names"]) for u in insp.get_unique_constraints("agent_actions")}
        assert ("user_id", "agent_id", "kind") in uniques
        assert ("address",) in {tuple(u["column_names"]) for u in insp.get_unique_constraints("users")}
        index_names = {ix["name"] for ix in insp.get_indexes("agent_actions")}
        assert {"ix_agent_actions_agent_kind", "ix_agent_actions_user_created"} <= index_names
    finally:
        engine.dispose()


def test_migrated_schema_serves_the_ledger(sqlite_url) -> None:
    """Store on an Alembic-built database: autoincrement ids, toggles and quotas all work."""
    run_alembic_upgrade_head(sqlite_url)
    settings = Settings(database_url=sqlite_url, site_url="https://agenthunt.test", action_quota=1)
    store = Store(sqlite_url)
    try:
        with store.session() as session:
            author = repo.upsert_user(session, "0xAuthor")
            agent = repo.insert_agent(
                session,
                author_id=author.id,
                created_at=repo.utcnow(),
                name="Migrated",
                avatar_url="/avatars/a.png",
                url="https://example.com",
                description="d",
                why_hunt="w",
                skill="TRADING",
                other_skill_detail=None,
            )
            agent_id = agent.id
        assert apply_action(store, "0xVoter", agent_id, "upvote", "good", settings=settings).state == ActionState.ADDED
        with pytest.raises(QuotaExceeded):
            apply_action(store, "0xVoter", agent_id, "spam", None, settings=settings)
        assert apply_action(store, "0xVoter", agent_id, "upvote", None, settings=settings).state == ActionState.REMOVED
    finally:
        store.dispose()


def test_downgrade_base_drops_everything(sqlite_url, monkeypatch) -> None:
    run_alembic_upgrade_head(sqlite_url)
    monkeypatch.setenv("DATABASE_URL", sqlite_url)
    command.downgrade(alembic_config_with_url(sqlite_url), "base")
    assert _tables(sqlite_url) == set()
