"""Store handle: engine, session factory and schema bootstrap.

One Store is built per application (see apps.api.main) and passed into every
service call. There is no module-level engine.
"""

import logging
from contextlib import contextmanager
from typing import Generator

import sqlalchemy.exc
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from apps.api.models import Base

_LOG = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.strip().lower().startswith("sqlite")


def _is_postgres(url: str) -> bool:
    return url.strip().lower().startswith("postgresql")


def _sqlite_engine(url: str, echo: bool) -> Engine:
    """SQLite engine with working SAVEPOINTs and foreign keys.

    In-memory URLs share a single connection so every session sees the same data.
    """
    kwargs: dict = {"connect_args": {"check_same_thread": False}, "echo": echo}
    if url.strip() in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


class Store:
    """Pooled DB handle. Construct explicitly; share per process."""

    def __init__(self, url: str, *, echo: bool = False, schema_authority: str = "alembic"):
        self.url = url
        self.schema_authority = schema_authority
        if _is_sqlite(url):
            self.engine = _sqlite_engine(url, echo)
        else:
            self.engine = create_engine(url, pool_pre_ping=True, echo=echo)
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings) -> "Store":
        return cls(settings.database_url, echo=settings.sql_echo, schema_authority=settings.schema_authority)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope for DB operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_tables(self) -> None:
        """Create all tables if they do not exist. Idempotent (checkfirst=True).

        Postgres schema belongs to Alembic unless SCHEMA_AUTHORITY=ensure_tables.
        """
        if _is_postgres(self.url) and self.schema_authority != "ensure_tables":
            return
        _create_all_safe(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def _create_all_safe(engine: Engine) -> None:
    """Run create_all with checkfirst=True; ignore Postgres 'already exists' errors for idempotency."""
    try:
        with engine.begin() as conn:
            Base.metadata.create_all(bind=conn, checkfirst=True)
    except sqlalchemy.exc.ProgrammingError as e:
        orig = e.orig
        ok = False
        if orig is not None:
            err_name = getattr(orig.__class__, "__module__", "") + "." + getattr(orig.__class__, "__name__", "")
            ok = "DuplicateTable" in err_name or "DuplicateObject" in err_name
        if not ok:
            ok = "already exists" in str(e).lower()
        if not ok:
            raise
        _LOG.info("create_all hit existing objects; schema already present")
