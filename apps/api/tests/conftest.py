"""Pytest fixtures for API tests. Every test gets its own in-memory SQLite store."""

import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("ENV", "test")

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.main import create_app
from apps.api.services import repo
from apps.api.services.blob_store import LocalBlobStore

# Mirror: use shared marker from tests.conftest (single source of truth)
from tests.conftest import requires_db  # noqa: F401

SITE_URL = "https://agenthunt.test"
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", schema_authority="ensure_tables", site_url=SITE_URL)


@pytest.fixture
def store(settings):
    s = Store(settings.database_url, schema_authority=settings.schema_authority)
    s.ensure_tables()
    yield s
    s.dispose()


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs", "")


@pytest.fixture
def app(settings, store, blob_store):
    return create_app(settings=settings, store=store, blob_store=blob_store)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_agent(store):
    """Insert an agent directly (no quota), returning its id."""

    def _make(
        name: str = "Agent",
        author: str = "0xAuthor000000000000000000000000000000000001",
        created_at: datetime | None = None,
        skill: str = "TRADING",
    ) -> int:
        with store.session() as session:
            user = repo.upsert_user(session, author)
            agent = repo.insert_agent(
                session,
                author_id=user.id,
                created_at=created_at or repo.utcnow(),
                name=name,
                avatar_url="https://cdn.example/avatar.png",
                url="https://example.com/agent",
                description="does things",
                why_hunt="useful",
                skill=skill,
                other_skill_detail=None,
            )
            return agent.id

    return _make


def count_rows(store, address: str, agent_id: int, kind) -> int:
    """Ledger rows for (address, agent, kind): 0 or 1. Unknown address -> 0."""
    with store.session() as session:
        user = repo.get_user_by_address(session, address)
        if user is None:
            return 0
        return repo.count_ledger_rows(session, user.id, agent_id, kind)
