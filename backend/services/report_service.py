"""
Service for content report business logic.
"""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from helpers.sanitization import require_plain_text
from models.access import Actor
from models.exceptions import (
    DuplicateReportException,
    InvalidReportTargetException,
    ReportAlreadyDeletedException,
    ReportNotFoundException,
)
from models.moderation_types import ReportTarget
from models.schemas import REASON_MAX_LENGTH
from repositories.db_models import ContentReport, ContentType, ReportStatus
from repositories.report_repository import ReportRepository
from services.access_policy import AccessPolicy, can_moderate
from services.audit_service import AuditAction, AuditService, AuditTrail

REPORTS_TABLE = ContentReport.__tablename__


class ReportService:
    """Service for the content report lifecycle."""

    @staticmethod
    def create_report(
        db: Session,
        reporter_id: str,
        target: ReportTarget,
        reason: str,
    ) -> ContentReport:
        """
        File a report against a post or a comment.

        Args:
            db: Database session
            reporter_id: ID of the reporting member
            target: PostTarget or CommentTarget
            reason: Why the content is being reported

        Returns:
            Created report with status pending and no moderation action

        Raises:
            ValidationException: If the target id or reason is empty
            DuplicateReportException: If the reporter already has an active
                report on this content
        """
        clean_reason = require_plain_text(reason, "reason", REASON_MAX_LENGTH)
        # Ids are opaque: trimmed, never sanitized
        content_id = (target.content_id or "").strip()
        if not content_id:
            raise InvalidReportTargetException("content id must not be empty")
        report_repo = ReportRepository(db)

        existing = report_repo.get_active_for_target(
            reporter_id, target.content_type, content_id
        )
        if existing:
            raise DuplicateReportException()

        report = ContentReport(
            reporter_id=reporter_id,
            content_type=target.content_type,
            content_post_id=content_id if target.content_post_id else None,
            content_comment_id=content_id if target.content_comment_id else None,
            reason=clean_reason,
            status=ReportStatus.PENDING,
            moderation_action_id=None,
        )
        # The partial unique index settles races the pre-check cannot see
        created = report_repo.create(report)

        logger.info(
            f"Report {created.id} filed by {reporter_id} on "
            f"{target.content_type.value} {content_id}"
        )
        return created

    @staticmethod
    def attach_moderation_action(
        db: Session,
        report_id: str,
        moderation_action_id: str,
        actor: Actor,
        audit_trail: AuditTrail,
    ) -> ContentReport:
        """
        Link a moderation action to a report.

        Re-attaching the current action is a no-op. Replacing a different
        action is allowed and recorded in the audit trail.

        Raises:
            InsufficientPermissionsException: If the actor is a plain member
            ValidationException: If the action id is empty
            ReportNotFoundException: If the report is absent or deleted
        """
        AccessPolicy.ensure_moderator(actor)
        action_id = require_plain_text(moderation_action_id, "moderation_action_id")
        report_repo = ReportRepository(db)

        report = report_repo.get_active(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        previous = report.moderation_action_id
        if previous == action_id:
            return report

        report.moderation_action_id = action_id
        report = report_repo.save(report)

        if previous is not None:
            entry = AuditService.build_entry(
                actor,
                AuditAction.REPORT_ACTION_CORRECTED,
                REPORTS_TABLE,
                report_id,
                f"Moderation action changed from {previous} to {action_id}",
            )
            AuditService.record_best_effort(db, audit_trail, entry)
            db.refresh(report)

        logger.info(
            f"Report {report_id} linked to moderation action {action_id} by {actor.id}"
        )
        return report

    @staticmethod
    def update_status(
        db: Session,
        report_id: str,
        new_status: ReportStatus,
        actor: Actor,
        reason_patch: Optional[str] = None,
    ) -> ContentReport:
        """
        Change a report's status and optionally correct its reason.

        No transition graph is enforced; any status may follow any other.

        Raises:
            InsufficientPermissionsException: If the actor is a plain member
            ValidationException: If reason_patch is given but empty
            ReportNotFoundException: If the report is absent or deleted
        """
        AccessPolicy.ensure_moderator(actor)
        clean_reason = (
            require_plain_text(reason_patch, "reason", REASON_MAX_LENGTH)
            if reason_patch is not None
            else None
        )
        report_repo = ReportRepository(db)

        report = report_repo.get_active(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        report.status = new_status
        if clean_reason is not None:
            report.reason = clean_reason
        return report_repo.save(report)

    @staticmethod
    def soft_delete_report(
        db: Session,
        report_id: str,
        actor: Actor,
        audit_trail: AuditTrail,
    ) -> None:
        """
        Soft-delete a report. There is no restore.

        Raises:
            InsufficientPermissionsException: If the actor is a plain member
            ReportNotFoundException: If the report does not exist
            ReportAlreadyDeletedException: If it was already deleted
        """
        AccessPolicy.ensure_moderator(actor)
        report_repo = ReportRepository(db)

        if not report_repo.soft_delete(report_id):
            if report_repo.get(report_id) is None:
                raise ReportNotFoundException(report_id)
            raise ReportAlreadyDeletedException(report_id)

        entry = AuditService.build_entry(
            actor,
            AuditAction.REPORT_DELETED,
            REPORTS_TABLE,
            report_id,
            "Report soft-deleted",
        )
        AuditService.record_best_effort(db, audit_trail, entry)
        logger.info(f"Report {report_id} soft-deleted by {actor.id}")

    @staticmethod
    def get_report(
        db: Session,
        report_id: str,
        actor: Actor,
        include_deleted: bool = False,
    ) -> ContentReport:
        """
        Read a report.

        The reporter sees their own active reports. Moderators and
        administrators see any report, and deleted ones when they ask.

        Raises:
            ReportNotFoundException: If absent, or deleted and not requested
            InsufficientPermissionsException: If the actor may not see it
        """
        report_repo = ReportRepository(db)
        report = report_repo.get(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        AccessPolicy.ensure_access(actor, report.reporter_id)

        if report.is_deleted and not (include_deleted and can_moderate(actor.role)):
            raise ReportNotFoundException(report_id)
        return report

    @staticmethod
    def get_own_reports(
        db: Session,
        actor: Actor,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ContentReport]:
        """Get the actor's active reports, newest first."""
        report_repo = ReportRepository(db)
        return report_repo.get_reporter_reports(actor.id, skip, limit)

    @staticmethod
    def search_reports(
        db: Session,
        actor: Actor,
        reporter_id: Optional[str] = None,
        content_type: Optional[ContentType] = None,
        status: Optional[ReportStatus] = None,
        reason_contains: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        include_deleted: bool = False,
        sort_by: str = "created_at",
        sort_direction: str = "desc",
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[ContentReport], int]:
        """
        Search reports for moderation triage.

        Raises:
            InsufficientPermissionsException: If the actor is a plain member
        """
        AccessPolicy.ensure_moderator(actor)
        report_repo = ReportRepository(db)
        return report_repo.search(
            reporter_id=reporter_id,
            content_type=content_type,
            status=status,
            reason_contains=reason_contains,
            created_from=created_from,
            created_to=created_to,
            include_deleted=include_deleted,
            sort_by=sort_by,
            sort_direction=sort_direction,
            skip=skip,
            limit=limit,
        )
