"""
Service for appeal business logic.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpers.sanitization import require_plain_text, sanitize_plain_text
from models.access import Actor
from models.exceptions import (
    AppealAlreadyRetiredException,
    AppealNotFoundException,
    DuplicateAppealException,
    NonDeletableStatusException,
    StoreUnavailableException,
    TransientException,
    ValidationException,
)
from models.moderation_types import AppealCause
from models.schemas import APPEAL_TEXT_MAX_LENGTH, AppealUpdate
from repositories.appeal_repository import AppealRepository
from repositories.db_models import Appeal, AppealStatus
from services.access_policy import AccessPolicy, can_moderate
from services.audit_service import AuditAction, AuditService, AuditTrail

APPEALS_TABLE = Appeal.__tablename__

# Appeals in these statuses may be erased by an administrator
DELETABLE_APPEAL_STATUSES = frozenset({AppealStatus.PENDING, AppealStatus.CLOSED})

# Statuses that stamp resolved_at when the patch leaves it out
TERMINAL_APPEAL_STATUSES = frozenset({AppealStatus.RESOLVED, AppealStatus.CLOSED})

CAUSE_FIELDS = ("moderation_action_id", "flag_report_id")


class AppealService:
    """Service for the appeal lifecycle."""

    @staticmethod
    def create_appeal(
        db: Session,
        actor: Actor,
        appellant_id: str,
        cause: AppealCause,
        appeal_reason: str,
    ) -> Appeal:
        """
        File an appeal against a moderation action and/or a report.

        Args:
            db: Database session
            actor: Authenticated caller
            appellant_id: Member the appeal is filed for, must be the caller
            cause: Validated cause with at least one reference
            appeal_reason: Appellant's narrative

        Returns:
            Created appeal with status pending

        Raises:
            InsufficientPermissionsException: If appellant_id is not the caller
            ValidationException: If the narrative is empty
            DuplicateAppealException: If an active appeal has the same cause
        """
        AccessPolicy.ensure_self(actor, appellant_id)
        reason = require_plain_text(
            appeal_reason, "appeal_reason", APPEAL_TEXT_MAX_LENGTH
        )
        appeal_repo = AppealRepository(db)

        existing = appeal_repo.get_active_for_cause(
            appellant_id, cause.moderation_action_id, cause.flag_report_id
        )
        if existing:
            raise DuplicateAppealException()

        appeal = Appeal(
            appellant_id=appellant_id,
            moderation_action_id=cause.moderation_action_id,
            flag_report_id=cause.flag_report_id,
            appeal_reason=reason,
            status=AppealStatus.PENDING,
            resolution_comment=None,
            resolved_at=None,
        )
        created = appeal_repo.create(appeal)

        logger.info(f"Appeal {created.id} filed by {appellant_id}")
        return created

    @staticmethod
    def update_appeal(
        db: Session,
        appeal_id: str,
        patch: AppealUpdate,
        actor: Actor,
    ) -> Appeal:
        """
        Apply a partial update to an appeal.

        The appellant may only rewrite appeal_reason while the appeal is
        pending. Moderators and administrators may change any field.

        Args:
            db: Database session
            appeal_id: Appeal to update
            patch: Fields explicitly set by the caller
            actor: Authenticated caller

        Returns:
            Updated appeal

        Raises:
            ValidationException: If the patch is empty or a value is invalid
            AppealNotFoundException: If the appeal is absent or withdrawn
            InsufficientPermissionsException: If a field is off limits
            AppealLockedException: If the appellant edits a non-pending appeal
            MissingAppealCauseException: If both cause references get cleared
            DuplicateAppealException: If the new cause clashes with another appeal
        """
        changes = patch.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationException("No fields to update")

        appeal_repo = AppealRepository(db)
        appeal = appeal_repo.get_active(appeal_id)
        if not appeal:
            raise AppealNotFoundException(appeal_id)

        AccessPolicy.ensure_can_edit_appeal(
            actor, appeal.appellant_id, appeal.status, changes.keys()
        )

        values = AppealService._clean_changes(changes)
        AppealService._check_cause_change(appeal_repo, appeal, values)

        if (
            values.get("status") in TERMINAL_APPEAL_STATUSES
            and "resolved_at" not in values
            and appeal.resolved_at is None
        ):
            values["resolved_at"] = datetime.now(timezone.utc)

        # A reopened appeal carries no resolution
        if values.get("status") == AppealStatus.PENDING:
            values.setdefault("resolved_at", None)
            values.setdefault("resolution_comment", None)

        for field, value in values.items():
            setattr(appeal, field, value)

        updated = appeal_repo.save(appeal)
        logger.info(
            f"Appeal {appeal_id} updated by {actor.id}: {', '.join(sorted(values))}"
        )
        return updated

    @staticmethod
    def _clean_changes(changes: dict[str, Any]) -> dict[str, Any]:
        """Sanitize patch values before they touch the record."""
        values = dict(changes)

        if "appeal_reason" in values:
            values["appeal_reason"] = require_plain_text(
                values["appeal_reason"], "appeal_reason", APPEAL_TEXT_MAX_LENGTH
            )

        if "status" in values and values["status"] is None:
            raise ValidationException("status cannot be null")

        if "resolution_comment" in values:
            comment = (sanitize_plain_text(values["resolution_comment"]) or "").strip()
            if len(comment) > APPEAL_TEXT_MAX_LENGTH:
                raise ValidationException(
                    f"resolution_comment must be at most {APPEAL_TEXT_MAX_LENGTH} characters"
                )
            values["resolution_comment"] = comment or None

        return values

    @staticmethod
    def _check_cause_change(
        appeal_repo: AppealRepository, appeal: Appeal, values: dict[str, Any]
    ) -> None:
        """Validate a moderator's cause edit and fold the cleaned ids into values."""
        if not any(field in values for field in CAUSE_FIELDS):
            return

        cause = AppealCause.of(
            values.get("moderation_action_id", appeal.moderation_action_id),
            values.get("flag_report_id", appeal.flag_report_id),
        )
        values.update(cause._asdict())

        if cause == (appeal.moderation_action_id, appeal.flag_report_id):
            return

        clash = appeal_repo.get_active_for_cause(
            appeal.appellant_id, cause.moderation_action_id, cause.flag_report_id
        )
        if clash and clash.id != appeal.id:
            raise DuplicateAppealException()

    @staticmethod
    def delete_appeal(
        db: Session,
        appeal_id: str,
        actor: Actor,
        audit_trail: AuditTrail,
    ) -> None:
        """
        Permanently erase an appeal.

        The audit entry is written first and commits with the delete. If the
        audit write fails nothing is deleted.

        Raises:
            InsufficientPermissionsException: If the actor is not an administrator
            AppealNotFoundException: If the appeal does not exist
            NonDeletableStatusException: If the status is not pending or closed
            TransientException: If the audit trail or the store is unavailable
        """
        AccessPolicy.ensure_administrator(actor)
        appeal_repo = AppealRepository(db)

        appeal = appeal_repo.get(appeal_id)
        if not appeal:
            raise AppealNotFoundException(appeal_id)

        prior_status = appeal.status
        if prior_status not in DELETABLE_APPEAL_STATUSES:
            raise NonDeletableStatusException(appeal_id, prior_status.value)

        entry = AuditService.build_entry(
            actor,
            AuditAction.APPEAL_ERASED,
            APPEALS_TABLE,
            appeal_id,
            f"Appeal by {appeal.appellant_id} erased, prior status "
            f"'{prior_status.value}'",
        )

        try:
            audit_trail.append(entry)
            appeal_repo.stage_delete(appeal)
            with appeal_repo.delete_errors(appeal_id):
                db.commit()
        except TransientException:
            db.rollback()
            logger.error(f"Appeal {appeal_id} not erased, audit or store unavailable")
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Appeal {appeal_id} not erased: {exc!r}")
            raise StoreUnavailableException() from exc

        logger.info(
            f"Appeal {appeal_id} erased by {actor.id} (was {prior_status.value})"
        )

    @staticmethod
    def retire_appeal(db: Session, appeal_id: str, actor: Actor) -> Appeal:
        """
        Withdraw the caller's own appeal (soft delete).

        Raises:
            AppealNotFoundException: If the appeal does not exist
            InsufficientPermissionsException: If the caller is not the appellant
            AppealAlreadyRetiredException: If it was already withdrawn
        """
        appeal_repo = AppealRepository(db)
        appeal = appeal_repo.get(appeal_id)
        if not appeal:
            raise AppealNotFoundException(appeal_id)

        AccessPolicy.ensure_self(actor, appeal.appellant_id)

        if appeal.is_deleted or not appeal_repo.soft_delete(appeal_id):
            raise AppealAlreadyRetiredException(appeal_id)

        logger.info(f"Appeal {appeal_id} withdrawn by {actor.id}")
        retired = appeal_repo.get(appeal_id)
        if not retired:
            raise AppealNotFoundException(appeal_id)
        return retired

    @staticmethod
    def get_appeal(
        db: Session,
        appeal_id: str,
        actor: Actor,
        include_deleted: bool = False,
    ) -> Appeal:
        """
        Read an appeal.

        Raises:
            AppealNotFoundException: If absent, or withdrawn and not requested
            InsufficientPermissionsException: If the actor may not see it
        """
        appeal_repo = AppealRepository(db)
        appeal = appeal_repo.get(appeal_id)
        if not appeal:
            raise AppealNotFoundException(appeal_id)

        AccessPolicy.ensure_access(actor, appeal.appellant_id)

        if appeal.is_deleted and not (include_deleted and can_moderate(actor.role)):
            raise AppealNotFoundException(appeal_id)
        return appeal

    @staticmethod
    def get_own_appeals(
        db: Session, actor: Actor, skip: int = 0, limit: int = 50
    ) -> list[Appeal]:
        """Get the actor's appeals that have not been withdrawn."""
        appeal_repo = AppealRepository(db)
        return appeal_repo.get_appellant_appeals(actor.id, skip, limit)

    @staticmethod
    def search_appeals(
        db: Session,
        actor: Actor,
        appellant_id: Optional[str] = None,
        status: Optional[AppealStatus] = None,
        moderation_action_id: Optional[str] = None,
        flag_report_id: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Appeal], int]:
        """
        Search appeals for the review queue, oldest first.

        Raises:
            InsufficientPermissionsException: If the actor is a plain member
        """
        AccessPolicy.ensure_moderator(actor)
        appeal_repo = AppealRepository(db)
        return appeal_repo.search(
            appellant_id=appellant_id,
            status=status,
            moderation_action_id=moderation_action_id,
            flag_report_id=flag_report_id,
            include_deleted=include_deleted,
            skip=skip,
            limit=limit,
        )
