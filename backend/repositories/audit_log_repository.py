"""
Repository for the append-only audit trail.
"""

from typing import Optional

from sqlalchemy.orm import Session

from repositories import db_models
from repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[db_models.AuditLog]):
    """Repository for audit log entries. Entries are never updated."""

    def __init__(self, db: Session):
        """Initialize repository."""
        super().__init__(db_models.AuditLog, db)

    def stage(self, entry: db_models.AuditLog) -> db_models.AuditLog:
        """
        Add an entry and flush it inside the caller's transaction.

        Args:
            entry: Audit log row

        Returns:
            The flushed entry (id assigned)
        """
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_for_target(
        self,
        target_table: str,
        target_id: str,
        action_category: Optional[str] = None,
    ) -> list[db_models.AuditLog]:
        """
        Get entries recorded against one record, oldest first.

        Args:
            target_table: Table name of the record
            target_id: ID of the record
            action_category: Optional category filter

        Returns:
            List of audit entries
        """
        query = self.db.query(self.model).filter(
            self.model.target_table == target_table,
            self.model.target_id == target_id,
        )
        if action_category:
            query = query.filter(self.model.action_category == action_category)
        return query.order_by(self.model.created_at.asc(), self.model.id.asc()).all()
