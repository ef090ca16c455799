"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("user_id", sa.String(length=32), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_table(
        "resume_analyses",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("user_id", sa.String(length=32), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("job_title", sa.String(length=300), nullable=False),
        sa.Column("job_description", sa.Text(), nullable=False),
        sa.Column("company_name", sa.String(length=200), nullable=True),
        sa.Column("resume_markdown", sa.Text(), nullable=False),
        sa.Column("feedback", sa.JSON(), nullable=False),
        sa.Column("preview_image", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_resume_analyses_user_id", "resume_analyses", ["user_id"])
    op.create_table(
        "rate_limits",
        sa.Column("key", sa.String(length=255), primary_key=True),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reset_at", sa.DateTime(), nullable=False),
        sa.Column("last_request", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_rate_limits_identity", "rate_limits", ["identity"])
    op.create_index("ix_rate_limits_reset_at", "rate_limits", ["reset_at"])


def downgrade() -> None:
    op.drop_index("ix_rate_limits_reset_at", table_name="rate_limits")
    op.drop_index("ix_rate_limits_identity", table_name="rate_limits")
    op.drop_table("rate_limits")
    op.drop_index("ix_resume_analyses_user_id", table_name="resume_analyses")
    op.drop_table("resume_analyses")
    op.drop_index("ix_user_sessions_user_id", table_name="user_sessions")
    op.drop_table("user_sessions")
    op.drop_table("users")
