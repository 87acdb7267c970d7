"""Audit trail for moderation record changes and erasures."""

import json
from typing import Protocol

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.access import Actor
from models.exceptions import AuditTrailUnavailableException, TransientException
from models.schemas import AuditEntry
from repositories.audit_log_repository import AuditLogRepository
from repositories.db_models import AuditLog


class AuditAction:
    """Audit action categories written by the moderation core."""

    REPORT_ACTION_CORRECTED = "report_action_corrected"
    REPORT_DELETED = "report_deleted"
    APPEAL_ERASED = "appeal_erased"


class AuditTrail(Protocol):
    """Append-only sink for audit entries."""

    def append(self, entry: AuditEntry) -> None:
        """Record an entry. Raises TransientException when unavailable."""
        ...


class DatabaseAuditTrail:
    """
    Audit trail stored in the audit_logs table.

    Entries are flushed inside the caller's transaction, so an entry written
    before a delete commits or rolls back together with it.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuditLogRepository(db)

    def append(self, entry: AuditEntry) -> None:
        """
        Stage the entry in the audit_logs table and mirror it to the log.

        Raises:
            AuditTrailUnavailableException: If the row cannot be written
        """
        row = AuditLog(
            actor_id=entry.actor_id,
            actor_type=entry.actor_type,
            action_category=entry.action_category,
            target_table=entry.target_table,
            target_id=entry.target_id,
            description=entry.description,
            created_at=entry.timestamp,
        )
        try:
            self.repo.stage(row)
        except SQLAlchemyError as exc:
            logger.error(f"Audit write failed: {exc!r}")
            raise AuditTrailUnavailableException() from exc

        logger.info("AUDIT: {}", json.dumps(entry.model_dump(mode="json")))


class AuditService:
    """Helpers for building and writing audit entries."""

    @staticmethod
    def build_entry(
        actor: Actor,
        action_category: str,
        target_table: str,
        target_id: str,
        description: str,
    ) -> AuditEntry:
        """Build an entry stamped with the current time."""
        return AuditEntry(
            actor_id=actor.id,
            actor_type=actor.role.value,
            action_category=action_category,
            target_table=target_table,
            target_id=target_id,
            description=description,
        )

    @staticmethod
    def record_best_effort(
        db: Session, audit_trail: AuditTrail, entry: AuditEntry
    ) -> bool:
        """
        Append and commit an entry after the audited change has committed.

        A failure is logged with the full entry and does not fail the caller.

        Returns:
            True if the entry was recorded
        """
        try:
            audit_trail.append(entry)
            db.commit()
        except (TransientException, SQLAlchemyError) as exc:
            db.rollback()
            logger.warning(
                "Audit entry not recorded ({}): {}",
                exc.__class__.__name__,
                json.dumps(entry.model_dump(mode="json")),
            )
            return False
        return True
