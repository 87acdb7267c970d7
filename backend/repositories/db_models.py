"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

Reports and appeals share the lifecycle-record columns (created_at,
updated_at, deleted_at) through LifecycleRecordMixin. Uniqueness of active
records is enforced by partial unique indexes declared after the models.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from repositories.database import Base

ID_LENGTH = 36


class ReportStatus(str, enum.Enum):
    """Status of a content report."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ContentType(str, enum.Enum):
    """Type of content being reported."""

    POST = "post"
    COMMENT = "comment"


class AppealStatus(str, enum.Enum):
    """Workflow status of an appeal."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    CLOSED = "closed"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_column(enum_cls: type[enum.Enum]) -> Enum:
    # Persist values ("under_review"), not member names
    return Enum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=20,
        validate_strings=True,
    )


class LifecycleRecordMixin:
    """
    Timestamps shared by soft-deletable moderation records.

    deleted_at is NULL for active rows. Default queries exclude rows where it
    is set.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, default=None
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class ContentReport(LifecycleRecordMixin, Base):
    """
    A member's flag against a post or a comment.

    Exactly one of content_post_id / content_comment_id is set and it matches
    content_type. Reports are soft-deleted, never removed.
    """

    __tablename__ = "content_reports"
    __table_args__ = (
        CheckConstraint(
            "(content_type = 'post' AND content_post_id IS NOT NULL "
            "AND content_comment_id IS NULL) OR "
            "(content_type = 'comment' AND content_comment_id IS NOT NULL "
            "AND content_post_id IS NULL)",
            name="ck_content_reports_single_target",
        ),
        Index("ix_content_reports_reporter", "reporter_id"),
        Index("ix_content_reports_status", "status"),
        Index("ix_content_reports_created", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=_new_id)
    reporter_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    content_type: Mapped[ContentType] = mapped_column(
        _enum_column(ContentType), nullable=False
    )
    content_post_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    content_comment_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        _enum_column(ReportStatus), default=ReportStatus.PENDING, nullable=False
    )
    moderation_action_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    @property
    def content_id(self) -> str:
        return self.content_post_id or self.content_comment_id or ""


class Appeal(LifecycleRecordMixin, Base):
    """
    A member's challenge against a moderation action and/or a report.

    At least one of moderation_action_id / flag_report_id is set. Appeals can
    be withdrawn (soft delete) by the appellant and erased (hard delete) by an
    administrator while in a deletable status.
    """

    __tablename__ = "appeals"
    __table_args__ = (
        CheckConstraint(
            "moderation_action_id IS NOT NULL OR flag_report_id IS NOT NULL",
            name="ck_appeals_has_cause",
        ),
        Index("ix_appeals_appellant", "appellant_id"),
        Index("ix_appeals_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=_new_id)
    appellant_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    moderation_action_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    flag_report_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    appeal_reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[AppealStatus] = mapped_column(
        _enum_column(AppealStatus), default=AppealStatus.PENDING, nullable=False
    )
    resolution_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}


class AuditLog(Base):
    """
    Append-only audit trail entry.

    Written for report corrections and deletions and, mandatorily, before an
    appeal is erased.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_target", "target_table", "target_id"),
        Index("ix_audit_logs_actor_created", "actor_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    actor_type: Mapped[str] = mapped_column(String(20), nullable=False)
    action_category: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, nullable=False
    )


# Active-row uniqueness. coalesce() folds the nullable references so that
# "null on both sides" collides like any other value.
Index(
    "uq_content_reports_active_target",
    ContentReport.reporter_id,
    ContentReport.content_type,
    func.coalesce(ContentReport.content_post_id, ContentReport.content_comment_id),
    unique=True,
    sqlite_where=ContentReport.deleted_at.is_(None),
    postgresql_where=ContentReport.deleted_at.is_(None),
)

Index(
    "uq_appeals_active_cause",
    Appeal.appellant_id,
    func.coalesce(Appeal.moderation_action_id, ""),
    func.coalesce(Appeal.flag_report_id, ""),
    unique=True,
    sqlite_where=Appeal.deleted_at.is_(None),
    postgresql_where=Appeal.deleted_at.is_(None),
)
