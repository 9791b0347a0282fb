"""agent_actions table. One row per (user, agent, kind); presence means the action is active.

Rows are only ever inserted or deleted. Vote and flag counts are COUNT(*) over this table.
"""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from apps.api.models.base import BigIntPK, Base, UTCDateTime


class ActionKind(str, enum.Enum):
    UPVOTE = "upvote"
    DUPLICATE = "duplicate"
    SPAM = "spam"


class AgentAction(Base):
    __tablename__ = "agent_actions"
    __table_args__ = (
        UniqueConstraint("user_id", "agent_id", "kind", name="uq_agent_actions_user_agent_kind"),
        CheckConstraint("kind IN ('upvote', 'duplicate', 'spam')", name="ck_agent_actions_kind"),
        Index("ix_agent_actions_agent_kind", "agent_id", "kind"),
        Index("ix_agent_actions_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    agent_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("agents.id"), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now(), nullable=False)
