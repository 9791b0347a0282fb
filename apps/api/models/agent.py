"""agents table. Immutable directory entries; counts are derived from agent_actions."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from apps.api.models.base import BigIntPK, Base, UTCDateTime


class Skill(str, enum.Enum):
    TRADING = "TRADING"
    RESEARCH = "RESEARCH"
    AUTOMATION = "AUTOMATION"
    OTHER = "OTHER"


class Agent(Base):
    __tablename__ = "agents"
    __table_args__ = (
        CheckConstraint(
            "skill IN ('TRADING', 'RESEARCH', 'AUTOMATION', 'OTHER')",
            name="ck_agents_skill",
        ),
        Index("ix_agents_created_id", "created_at", "id"),
        Index("ix_agents_author_created", "author_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    why_hunt: Mapped[str] = mapped_column(Text, nullable=False)
    skill: Mapped[str] = mapped_column(String(32), nullable=False)
    other_skill_detail: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)  # indexed via __table_args__
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now(), nullable=False)
