"""Create moderation record tables

Revision ID: 0001_moderation_records
Revises:
Create Date: 2026-10-19

Creates the tables for the report and appeal lifecycle:
- content_reports: member reports against a post or a comment (soft delete)
- appeals: member appeals against a moderation action and/or a report
- audit_logs: append-only audit trail

Active-row uniqueness is enforced by partial unique indexes filtered on
deleted_at IS NULL. coalesce() lets missing references collide.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_moderation_records"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_ROW = sa.text("deleted_at IS NULL")


def upgrade() -> None:
    """Create moderation record schema."""
    # Enums are stored as strings; the Python Enum classes handle validation

    op.create_table(
        "content_reports",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("reporter_id", sa.String(36), nullable=False),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("content_post_id", sa.String(36), nullable=True),
        sa.Column("content_comment_id", sa.String(36), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("moderation_action_id", sa.String(36), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(content_type = 'post' AND content_post_id IS NOT NULL "
            "AND content_comment_id IS NULL) OR "
            "(content_type = 'comment' AND content_comment_id IS NOT NULL "
            "AND content_post_id IS NULL)",
            name="ck_content_reports_single_target",
        ),
    )
    op.create_index("ix_content_reports_reporter", "content_reports", ["reporter_id"])
    op.create_index("ix_content_reports_status", "content_reports", ["status"])
    op.create_index("ix_content_reports_created", "content_reports", ["created_at"])
    op.create_index(
        "uq_content_reports_active_target",
        "content_reports",
        [
            "reporter_id",
            "content_type",
            sa.text("coalesce(content_post_id, content_comment_id)"),
        ],
        unique=True,
        sqlite_where=ACTIVE_ROW,
        postgresql_where=ACTIVE_ROW,
    )

    op.create_table(
        "appeals",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("appellant_id", sa.String(36), nullable=False),
        sa.Column("moderation_action_id", sa.String(36), nullable=True),
        sa.Column("flag_report_id", sa.String(36), nullable=True),
        sa.Column("appeal_reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("resolution_comment", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "moderation_action_id IS NOT NULL OR flag_report_id IS NOT NULL",
            name="ck_appeals_has_cause",
        ),
    )
    op.create_index("ix_appeals_appellant", "appeals", ["appellant_id"])
    op.create_index("ix_appeals_status", "appeals", ["status"])
    op.create_index(
        "uq_appeals_active_cause",
        "appeals",
        [
            "appellant_id",
            sa.text("coalesce(moderation_action_id, '')"),
            sa.text("coalesce(flag_report_id, '')"),
        ],
        unique=True,
        sqlite_where=ACTIVE_ROW,
        postgresql_where=ACTIVE_ROW,
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("actor_type", sa.String(20), nullable=False),
        sa.Column("action_category", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_audit_logs_target", "audit_logs", ["target_table", "target_id"]
    )
    op.create_index(
        "ix_audit_logs_actor_created", "audit_logs", ["actor_id", "created_at"]
    )


def downgrade() -> None:
    """Remove moderation record schema."""
    op.drop_index("ix_audit_logs_actor_created", table_name="audit_logs")
    op.drop_index("ix_audit_logs_target", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("uq_appeals_active_cause", table_name="appeals")
    op.drop_index("ix_appeals_status", table_name="appeals")
    op.drop_index("ix_appeals_appellant", table_name="appeals")
    op.drop_table("appeals")

    op.drop_index("uq_content_reports_active_target", table_name="content_reports")
    op.drop_index("ix_content_reports_created", table_name="content_reports")
    op.drop_index("ix_content_reports_status", table_name="content_reports")
    op.drop_index("ix_content_reports_reporter", table_name="content_reports")
    op.drop_table("content_reports")
