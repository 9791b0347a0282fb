"""Ledger SQL helpers. Listing and quota queries build on these.

Provides:
  - kind_where(kind): WHERE agent_actions.kind == kind
  - select_actions_for_agents(agent_ids): actions on a page of agents, joined to the actor's address
  - select_viewer_actions(user_id, agent_ids): one viewer's actions on a page of agents (IN filter)
  - upvote_count_subquery(): per-agent upvote counts for the "top" ordering
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import BinaryExpression, Select, Subquery, func, select

from apps.api.models.agent import Agent
from apps.api.models.agent_action import ActionKind, AgentAction
from apps.api.models.user import User


def kind_where(kind: ActionKind) -> BinaryExpression[bool]:
    """Return WHERE clause: agent_actions.kind == kind."""
    return AgentAction.kind == ActionKind(kind).value


def select_action(user_id: int, agent_id: int, kind: ActionKind) -> Select[tuple[AgentAction]]:
    """Select the single ledger row for (user, agent, kind)."""
    return select(AgentAction).where(
        AgentAction.user_id == user_id,
        AgentAction.agent_id == agent_id,
        kind_where(kind),
    )


def select_actions_for_agents(agent_ids: Sequence[int]) -> Select:
    """Rows (agent_id, kind, address, reason, created_at) for agent_ids, most recent first."""
    return (
        select(AgentAction.agent_id, AgentAction.kind, User.address, AgentAction.reason, AgentAction.created_at)
        .join(User, User.id == AgentAction.user_id)
        .where(AgentAction.agent_id.in_(list(agent_ids)))
        .order_by(AgentAction.created_at.desc(), AgentAction.id.desc())
    )


def select_viewer_actions(user_id: int, agent_ids: Sequence[int]) -> Select:
    """Rows (agent_id, kind) for one user, scoped to agent_ids."""
    return select(AgentAction.agent_id, AgentAction.kind).where(
        AgentAction.user_id == user_id,
        AgentAction.agent_id.in_(list(agent_ids)),
    )


def upvote_count_subquery() -> Subquery:
    """(agent_id, upvote_count) for every agent with at least one upvote."""
    return (
        select(AgentAction.agent_id.label("agent_id"), func.count(AgentAction.id).label("upvote_count"))
        .where(kind_where(ActionKind.UPVOTE))
        .group_by(AgentAction.agent_id)
        .subquery("upvote_counts")
    )


def count_actions_since(user_id: int, since: datetime) -> Select:
    """COUNT of ledger rows of any kind created by user_id at or after since."""
    return select(func.count(AgentAction.id)).where(
        AgentAction.user_id == user_id,
        AgentAction.created_at >= since,
    )


def count_agents_since(author_id: int, since: datetime) -> Select:
    """COUNT of agents authored by author_id at or after since."""
    return select(func.count(Agent.id)).where(
        Agent.author_id == author_id,
        Agent.created_at >= since,
    )
