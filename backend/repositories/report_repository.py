"""
Repository for content report operations.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from models.exceptions import DuplicateReportException
from repositories.base import LifecycleRepository
from repositories.db_models import ContentReport, ContentType, ReportStatus

REPORT_SORT_FIELDS = {
    "created_at": ContentReport.created_at,
    "status": ContentReport.status,
    "reason": ContentReport.reason,
}


class ReportRepository(LifecycleRepository[ContentReport]):
    """Repository for content report data access."""

    resource_name = "Report"

    def __init__(self, db: Session):
        """
        Initialize report repository.

        Args:
            db: Database session
        """
        super().__init__(ContentReport, db, DuplicateReportException)

    def get_active_for_target(
        self,
        reporter_id: str,
        content_type: ContentType,
        content_id: str,
    ) -> Optional[ContentReport]:
        """
        Find the reporter's active report on a piece of content.

        Args:
            reporter_id: ID of the reporting member
            content_type: post or comment
            content_id: ID of the post or comment

        Returns:
            Existing active report if found, None otherwise
        """
        target_column = (
            ContentReport.content_post_id
            if content_type == ContentType.POST
            else ContentReport.content_comment_id
        )
        with self.store_errors():
            return (
                self.active_query()
                .filter(
                    ContentReport.reporter_id == reporter_id,
                    ContentReport.content_type == content_type,
                    target_column == content_id,
                )
                .first()
            )

    def get_reporter_reports(
        self,
        reporter_id: str,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ContentReport]:
        """
        Get active reports filed by a member, newest first.

        Args:
            reporter_id: ID of the reporter
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            List of reports
        """
        with self.store_errors():
            return (
                self.active_query()
                .filter(ContentReport.reporter_id == reporter_id)
                .order_by(ContentReport.created_at.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )

    def search(
        self,
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
        Search reports for the moderation dashboard.

        Unknown sort fields fall back to created_at, unknown directions to desc.

        Returns:
            Tuple of (page of reports, total matching count)
        """
        query = (
            self.db.query(ContentReport)
            if include_deleted
            else self.active_query()
        )

        if reporter_id:
            query = query.filter(ContentReport.reporter_id == reporter_id)
        if content_type:
            query = query.filter(ContentReport.content_type == content_type)
        if status:
            query = query.filter(ContentReport.status == status)
        if reason_contains:
            query = query.filter(ContentReport.reason.contains(reason_contains))
        if created_from:
            query = query.filter(ContentReport.created_at >= created_from)
        if created_to:
            query = query.filter(ContentReport.created_at <= created_to)

        sort_column = REPORT_SORT_FIELDS.get(sort_by, ContentReport.created_at)
        order = asc if sort_direction == "asc" else desc

        with self.store_errors():
            total = query.count()
            results = (
                query.order_by(order(sort_column), ContentReport.id)
                .offset(skip)
                .limit(limit)
                .all()
            )
        return results, total
