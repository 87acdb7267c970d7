"""
Repository for appeal operations.
"""

from typing import Optional

from sqlalchemy.orm import Session

from models.exceptions import ConcurrentModificationException, DuplicateAppealException
from repositories.base import LifecycleRepository
from repositories.db_models import Appeal, AppealStatus


class AppealRepository(LifecycleRepository[Appeal]):
    """Repository for appeal data access."""

    resource_name = "Appeal"

    def __init__(self, db: Session):
        super().__init__(Appeal, db, DuplicateAppealException)

    def get_active_for_cause(
        self,
        appellant_id: str,
        moderation_action_id: Optional[str],
        flag_report_id: Optional[str],
    ) -> Optional[Appeal]:
        """
        Find an active appeal with the identical cause triple.

        A missing reference only matches a missing reference.
        """
        query = self.active_query().filter(Appeal.appellant_id == appellant_id)
        if moderation_action_id is None:
            query = query.filter(Appeal.moderation_action_id.is_(None))
        else:
            query = query.filter(Appeal.moderation_action_id == moderation_action_id)
        if flag_report_id is None:
            query = query.filter(Appeal.flag_report_id.is_(None))
        else:
            query = query.filter(Appeal.flag_report_id == flag_report_id)

        with self.store_errors():
            return query.first()

    def get_appellant_appeals(
        self,
        appellant_id: str,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Appeal]:
        """Get the appellant's non-withdrawn appeals, newest first."""
        with self.store_errors():
            return (
                self.active_query()
                .filter(Appeal.appellant_id == appellant_id)
                .order_by(Appeal.created_at.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )

    def search(
        self,
        appellant_id: Optional[str] = None,
        status: Optional[AppealStatus] = None,
        moderation_action_id: Optional[str] = None,
        flag_report_id: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Appeal], int]:
        """
        Search appeals for moderators, oldest first.

        Returns:
            Tuple of (page of appeals, total matching count)
        """
        query = self.db.query(Appeal) if include_deleted else self.active_query()

        if appellant_id:
            query = query.filter(Appeal.appellant_id == appellant_id)
        if status:
            query = query.filter(Appeal.status == status)
        if moderation_action_id:
            query = query.filter(Appeal.moderation_action_id == moderation_action_id)
        if flag_report_id:
            query = query.filter(Appeal.flag_report_id == flag_report_id)

        with self.store_errors():
            total = query.count()
            results = (
                query.order_by(Appeal.created_at.asc(), Appeal.id)
                .offset(skip)
                .limit(limit)
                .all()
            )
        return results, total

    def delete_errors(self, appeal_id: str):
        """
        store_errors for an erasure.

        A constraint failure while deleting means the row changed underneath
        us, so it surfaces as a conflict rather than a duplicate.
        """
        return self.store_errors(
            appeal_id,
            integrity_error=lambda: ConcurrentModificationException(
                self.resource_name, appeal_id
            ),
        )

    def stage_delete(self, appeal: Appeal) -> None:
        """
        Stage a hard delete without committing.

        The caller commits together with the audit entry.
        """
        with self.delete_errors(str(appeal.id)):
            self.db.delete(appeal)
            self.db.flush()
