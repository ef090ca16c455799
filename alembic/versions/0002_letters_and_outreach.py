"""Cover letters, outreach and LaTeX source

Revision ID: 0002_letters_and_outreach
Revises: 0001_initial_schema
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_letters_and_outreach"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def _has_table(insp: sa.Inspector, table: str) -> bool:
    return table in insp.get_table_names()


def _has_column(insp: sa.Inspector, table: str, column: str) -> bool:
    if not _has_table(insp, table):
        return False
    cols = {c["name"] for c in insp.get_columns(table)}
    return column in cols


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not _has_column(insp, "resume_analyses", "latex_content"):
        with op.batch_alter_table("resume_analyses", schema=None) as batch_op:
            batch_op.add_column(sa.Column("latex_content", sa.Text(), nullable=True))

    if not _has_table(insp, "cover_letters"):
        op.create_table(
            "cover_letters",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column(
                "user_id", sa.String(length=32), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
            ),
            sa.Column("template_id", sa.String(length=80), nullable=False),
            sa.Column("job_title", sa.String(length=300), nullable=False),
            sa.Column("company_name", sa.String(length=200), nullable=True),
            sa.Column("job_description", sa.Text(), nullable=True),
            sa.Column("content", sa.JSON(), nullable=False),
            sa.Column("resume_id", sa.String(length=32), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_cover_letters_user_id", "cover_letters", ["user_id"])

    if not _has_table(insp, "outreach_messages"):
        op.create_table(
            "outreach_messages",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column(
                "user_id", sa.String(length=32), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
            ),
            sa.Column("channel", sa.String(length=40), nullable=False),
            sa.Column("tone", sa.String(length=40), nullable=False),
            sa.Column("job_title", sa.String(length=300), nullable=False),
            sa.Column("company_name", sa.String(length=200), nullable=True),
            sa.Column("recipient_name", sa.String(length=200), nullable=True),
            sa.Column("subject", sa.String(length=200), nullable=True),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("context", sa.JSON(), nullable=False),
            sa.Column("resume_id", sa.String(length=32), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_outreach_messages_user_id", "outreach_messages", ["user_id"])


def downgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if _has_table(insp, "outreach_messages"):
        op.drop_index("ix_outreach_messages_user_id", table_name="outreach_messages")
        op.drop_table("outreach_messages")
    if _has_table(insp, "cover_letters"):
        op.drop_index("ix_cover_letters_user_id", table_name="cover_letters")
        op.drop_table("cover_letters")
    if _has_column(insp, "resume_analyses", "latex_content"):
        with op.batch_alter_table("resume_analyses", schema=None) as batch_op:
            batch_op.drop_column("latex_content")
