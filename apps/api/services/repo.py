"""Repository layer. Session-scoped helpers for users, agents and the action ledger.

RULE: Repo is the ONLY place allowed to run DB reads/writes (session.execute, session.scalars).
Services open a transaction with store.session() and pass the session in, so a toggle's
lookup, quota count and insert share one transaction.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from apps.api.models.agent import Agent
from apps.api.models.agent_action import ActionKind, AgentAction
from apps.api.models.base import BIGINT_MAX
from apps.api.models.user import User
from apps.api.repositories.action_filters import (
    count_actions_since,
    count_agents_since,
    select_action,
    select_actions_for_agents,
    select_viewer_actions,
    upvote_count_subquery,
)

SORT_NEW = "new"
SORT_TOP = "top"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- users ---


def get_user_by_address(session: Session, address: str) -> User | None:
    """Return user for address (exact, case-sensitive match), or None."""
    return session.scalars(select(User).where(User.address == address)).first()


def upsert_user(session: Session, address: str, *, now: datetime | None = None) -> User:
    """Return the user for address, inserting it on first sight. Never overwrites an existing row.
    A concurrent insert of the same address loses on the unique constraint and re-reads."""
    user = get_user_by_address(session, address)
    if user is not None:
        return user
    try:
        with session.begin_nested():
            user = User(address=address, created_at=now or utcnow())
            session.add(user)
            session.flush()
    except IntegrityError:
        user = get_user_by_address(session, address)
        if user is None:
            raise
    return user


# --- agents ---


def _storable_id(agent_id: int) -> bool:
    """Ids outside 1..BIGINT_MAX cannot exist and overflow the driver if bound."""
    return 0 < agent_id <= BIGINT_MAX


def agent_exists(session: Session, agent_id: int) -> bool:
    if not _storable_id(agent_id):
        return False
    stmt = select(func.count(Agent.id)).where(Agent.id == agent_id)
    return (session.execute(stmt).scalar() or 0) > 0


def insert_agent(session: Session, *, author_id: int, created_at: datetime, **fields: Any) -> Agent:
    """Insert an agent row and flush so its id is assigned."""
    agent = Agent(author_id=author_id, created_at=created_at, **fields)
    session.add(agent)
    session.flush()
    return agent


def count_agents_by_author_since(session: Session, author_id: int, since: datetime) -> int:
    return session.execute(count_agents_since(author_id, since)).scalar() or 0


def fetch_agent_page(
    session: Session,
    sort_by: str,
    limit: int,
    offset: int,
) -> list[tuple[Agent, str, int]]:
    """
    Return rows (agent, author_address, upvote_count) for one page.
    new: created_at desc, id desc. top: upvote_count desc, created_at desc, id desc.
    """
    counts = upvote_count_subquery()
    upvotes = func.coalesce(counts.c.upvote_count, 0).label("upvote_count")
    stmt = (
        select(Agent, User.address, upvotes)
        .join(User, User.id == Agent.author_id)
        .outerjoin(counts, counts.c.agent_id == Agent.id)
    )
    if sort_by == SORT_TOP:
        stmt = stmt.order_by(upvotes.desc(), Agent.created_at.desc(), Agent.id.desc())
    else:
        stmt = stmt.order_by(Agent.created_at.desc(), Agent.id.desc())
    stmt = stmt.limit(limit).offset(offset)
    return [(row[0], row[1], int(row[2] or 0)) for row in session.execute(stmt).all()]


def fetch_agent_with_author(session: Session, agent_id: int) -> tuple[Agent, str] | None:
    """Return (agent, author_address) or None."""
    if not _storable_id(agent_id):
        return None
    stmt = select(Agent, User.address).join(User, User.id == Agent.author_id).where(Agent.id == agent_id)
    row = session.execute(stmt).first()
    if not row:
        return None
    return row[0], row[1]


# --- ledger ---


def find_action(session: Session, user_id: int, agent_id: int, kind: ActionKind) -> AgentAction | None:
    """Return the unique ledger row for (user, agent, kind), or None."""
    return session.scalars(select_action(user_id, agent_id, kind)).first()


def insert_action(
    session: Session,
    *,
    user_id: int,
    agent_id: int,
    kind: ActionKind,
    reason: str | None,
    created_at: datetime,
) -> AgentAction | None:
    """Insert a ledger row inside a savepoint. Returns None if the unique constraint rejected it."""
    row = AgentAction(
        user_id=user_id,
        agent_id=agent_id,
        kind=ActionKind(kind).value,
        reason=reason,
        created_at=created_at,
    )
    try:
        with session.begin_nested():
            session.add(row)
            session.flush()
    except IntegrityError:
        return None
    return row


def delete_action(session: Session, user_id: int, agent_id: int, kind: ActionKind) -> int:
    """Delete the ledger row for (user, agent, kind). Returns rows deleted (0 or 1)."""
    stmt = delete(AgentAction).where(
        AgentAction.user_id == user_id,
        AgentAction.agent_id == agent_id,
        AgentAction.kind == ActionKind(kind).value,
    )
    result = session.execute(stmt)
    return result.rowcount or 0


def count_actions_by_user_since(session: Session, user_id: int, since: datetime) -> int:
    return session.execute(count_actions_since(user_id, since)).scalar() or 0


def count_actions_by_kind(session: Session, agent_id: int) -> dict[str, int]:
    """Return {kind: count} for one agent; kinds without rows map to 0."""
    stmt = (
        select(AgentAction.kind, func.count(AgentAction.id))
        .where(AgentAction.agent_id == agent_id)
        .group_by(AgentAction.kind)
    )
    counts = {k.value: 0 for k in ActionKind}
    for kind, n in session.execute(stmt).all():
        counts[kind] = int(n)
    return counts


def count_ledger_rows(session: Session, user_id: int, agent_id: int, kind: ActionKind) -> int:
    """Number of rows for (user, agent, kind). 0 or 1 under the unique constraint."""
    stmt = select(func.count(AgentAction.id)).where(
        AgentAction.user_id == user_id,
        AgentAction.agent_id == agent_id,
        AgentAction.kind == ActionKind(kind).value,
    )
    return session.execute(stmt).scalar() or 0


def fetch_actions_for_agents(session: Session, agent_ids: Sequence[int]) -> list[tuple[Any, ...]]:
    """Rows (agent_id, kind, address, reason, created_at) for agent_ids, most recent first."""
    if not agent_ids:
        return []
    return list(session.execute(select_actions_for_agents(agent_ids)).all())


def fetch_viewer_action_keys(session: Session, user_id: int, agent_ids: Sequence[int]) -> set[tuple[int, str]]:
    """Set of (agent_id, kind) the viewer has active on agent_ids."""
    if not agent_ids:
        return set()
    return {(int(r[0]), r[1]) for r in session.execute(select_viewer_actions(user_id, agent_ids)).all()}
