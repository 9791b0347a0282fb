"""Base schema: users, agents, agent_actions.

agent_actions holds upvotes, duplicate flags and spam flags; UNIQUE(user_id, agent_id, kind)
is the only guard against double votes.

Revision ID: 000_base
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "000_base"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLite only autoincrements INTEGER PRIMARY KEY.
_BIGINT_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    # 1) users (agents and agent_actions reference it)
    op.create_table(
        "users",
        sa.Column("id", _BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("address", name="uq_users_address"),
    )

    # 2) agents
    op.create_table(
        "agents",
        sa.Column("id", _BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("why_hunt", sa.Text(), nullable=False),
        sa.Column("skill", sa.String(32), nullable=False),
        sa.Column("other_skill_detail", sa.String(255), nullable=True),
        sa.Column("author_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "skill IN ('TRADING', 'RESEARCH', 'AUTOMATION', 'OTHER')",
            name="ck_agents_skill",
        ),
    )
    op.create_index("ix_agents_created_id", "agents", ["created_at", "id"], unique=False)
    op.create_index("ix_agents_author_created", "agents", ["author_id", "created_at"], unique=False)

    # 3) agent_actions
    op.create_table(
        "agent_actions",
        sa.Column("id", _BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("agent_id", sa.BigInteger(), sa.ForeignKey("agents.id"), nullable=False),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "agent_id", "kind", name="uq_agent_actions_user_agent_kind"),
        sa.CheckConstraint("kind IN ('upvote', 'duplicate', 'spam')", name="ck_agent_actions_kind"),
    )
    op.create_index("ix_agent_actions_agent_kind", "agent_actions", ["agent_id", "kind"], unique=False)
    op.create_index("ix_agent_actions_user_created", "agent_actions", ["user_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_agent_actions_user_created", table_name="agent_actions")
    op.drop_index("ix_agent_actions_agent_kind", table_name="agent_actions")
    op.drop_table("agent_actions")
    op.drop_index("ix_agents_author_created", table_name="agents")
    op.drop_index("ix_agents_created_id", table_name="agents")
    op.drop_table("agents")
    op.drop_table("users")
