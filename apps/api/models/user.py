"""users table. One row per wallet address; created lazily on first sight."""

from datetime import datetime

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from apps.api.models.base import BigIntPK, Base, UTCDateTime


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("address", name="uq_users_address"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)  # case-sensitive
    created_at: Mapped[datetime | None] = mapped_column(UTCDateTime, server_default=func.now(), nullable=True)
