"""Ledger uniqueness and quotas on Postgres. Skipped unless DATABASE_TEST_URL points at a reachable server."""

import os
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.models.agent_action import ActionKind
from apps.api.services import repo
from apps.api.services.ledger import apply_action
from apps.api.tests.conftest import count_rows

from tests.conftest import requires_db

pytestmark = requires_db


@pytest.fixture
def pg_store():
    store = Store(os.environ["DATABASE_TEST_URL"], schema_authority="alembic")
    yield store
    store.dispose()


@pytest.fixture
def agent_id(pg_store) -> int:
    with pg_store.session() as session:
        author = repo.upsert_user(session, f"0xAuthor-{uuid.uuid4().hex}")
        agent = repo.insert_agent(
            session,
            author_id=author.id,
            created_at=repo.utcnow(),
            name="PG Agent",
            avatar_url="/avatars/pg.png",
            url="https://example.com",
            description="d",
            why_hunt="w",
            skill="AUTOMATION",
            other_skill_detail=None,
        )
        return agent.id


def test_concurrent_inserts_leave_one_row(pg_store, agent_id) -> None:
    address = f"0xVoter-{uuid.uuid4().hex}"
    with pg_store.session() as session:
        user_id = repo.upsert_user(session, address).id

    def insert_once(_):
        with pg_store.session() as session:
            row = repo.insert_action(
                session, user_id=user_id, agent_id=agent_id, kind=ActionKind.SPAM, reason=None, created_at=repo.utcnow()
            )
            return row is not None

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(insert_once, range(8)))

    assert results.count(True) == 1
    assert count_rows(pg_store, address, agent_id, "spam") == 1


def test_concurrent_first_sight_creates_one_user(pg_store) -> None:
    address = f"0xNew-{uuid.uuid4().hex}"

    def upsert(_):
        with pg_store.session() as session:
            return repo.upsert_user(session, address).id

    with ThreadPoolExecutor(max_workers=6) as pool:
        ids = set(pool.map(upsert, range(6)))

    assert len(ids) == 1


def test_toggle_on_postgres(pg_store, agent_id) -> None:
    settings = Settings(database_url=os.environ["DATABASE_TEST_URL"], site_url="https://agenthunt.test")
    address = f"0xToggler-{uuid.uuid4().hex}"
    states = [apply_action(pg_store, address, agent_id, "upvote", "good", settings=settings).state.value for _ in range(3)]
    assert states == ["added", "removed", "added"]
