"""SQLAlchemy models. Identities, agents and the action ledger."""

from apps.api.models.agent import Agent, Skill
from apps.api.models.agent_action import ActionKind, AgentAction
from apps.api.models.base import Base
from apps.api.models.user import User

__all__ = [
    "ActionKind",
    "Agent",
    "AgentAction",
    "Base",
    "Skill",
    "User",
]
