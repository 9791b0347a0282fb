"""Root conftest: env and optional Postgres bootstrap for ALL test paths (tests/, apps/api/tests/)."""

import os

import pytest

os.environ.setdefault("ENV", "test")
os.environ.setdefault("PYTEST_RUNNING", "1")
# Module-level apps.api.main.app must not need a running Postgres at import time.
os.environ.setdefault("DATABASE_URL", "sqlite://")

# DB override detection: DATABASE_TEST_URL only
DATABASE_TEST_URL = os.getenv("DATABASE_TEST_URL")

from tests._db_bootstrap import postgres_reachable, run_test_db_schema_fixture


def _db_available_for_schema() -> bool:
    """True if DATABASE_TEST_URL is set and Postgres is reachable."""
    if not DATABASE_TEST_URL:
        return False
    return postgres_reachable(DATABASE_TEST_URL)


@pytest.fixture(scope="session", autouse=True)
def test_db_schema():
    """Reset the Postgres test schema at session start. Only runs if DATABASE_TEST_URL is set and reachable.
    Safety: db name must contain '_test' or ALLOW_TEST_DB_RESET=true.
    Postgres tests are skipped via @requires_db when not configured; everything else runs on SQLite."""
    if not _db_available_for_schema():
        return
    run_test_db_schema_fixture()
