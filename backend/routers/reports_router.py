"""
Router for content report endpoints.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import (
    DEFAULT_PAGE_SIZE,
    OwnListLimit,
    PaginationSkip,
    ReviewQueueLimit,
)
from models.access import Actor
from models.moderation_types import build_report_target
from repositories.database import get_db
from services.audit_service import AuditTrail
from services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=schemas.ReportResponse)
def create_report(
    report_data: schemas.ReportCreate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> db_models.ContentReport:
    """
    Report a post or a comment.

    One active report per member per content item.

    Domain exceptions are caught by centralized exception handlers.
    """
    target = build_report_target(
        report_data.content_type,
        report_data.content_post_id,
        report_data.content_comment_id,
    )
    return ReportService.create_report(
        db=db,
        reporter_id=current_actor.id,
        target=target,
        reason=report_data.reason,
    )


@router.get("/mine", response_model=list[schemas.ReportResponse])
def get_my_reports(
    skip: PaginationSkip = 0,
    limit: OwnListLimit = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> list[db_models.ContentReport]:
    """Get active reports filed by the current member, newest first."""
    return ReportService.get_own_reports(
        db=db,
        actor=current_actor,
        skip=skip,
        limit=limit,
    )


@router.get("", response_model=schemas.ReportPage)
def search_reports(
    reporter_id: Optional[str] = Query(None),
    content_type: Optional[db_models.ContentType] = Query(None),
    status: Optional[db_models.ReportStatus] = Query(None),
    reason: Optional[str] = Query(None, description="Substring of the reason"),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    include_deleted: bool = Query(False),
    sort_by: Literal["created_at", "status", "reason"] = Query("created_at"),
    sort_direction: Literal["asc", "desc"] = Query("desc"),
    skip: PaginationSkip = 0,
    limit: ReviewQueueLimit = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_moderator_actor),
) -> schemas.ReportPage:
    """
    Search reports for triage.

    Requires moderator or administrator role.
    """
    items, total = ReportService.search_reports(
        db=db,
        actor=current_actor,
        reporter_id=reporter_id,
        content_type=content_type,
        status=status,
        reason_contains=reason,
        created_from=created_from,
        created_to=created_to,
        include_deleted=include_deleted,
        sort_by=sort_by,
        sort_direction=sort_direction,
        skip=skip,
        limit=limit,
    )
    return schemas.ReportPage(
        items=[schemas.ReportResponse.model_validate(item) for item in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{report_id}", response_model=schemas.ReportResponse)
def get_report(
    report_id: str,
    include_deleted: bool = Query(False),
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> db_models.ContentReport:
    """
    Get a single report.

    Members see their own reports; moderators and administrators see all,
    and may ask for deleted ones.
    """
    return ReportService.get_report(
        db=db,
        report_id=report_id,
        actor=current_actor,
        include_deleted=include_deleted,
    )


@router.patch("/{report_id}", response_model=schemas.ReportResponse)
def update_report_status(
    report_id: str,
    update_data: schemas.ReportStatusUpdate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_moderator_actor),
) -> db_models.ContentReport:
    """Change a report's status, optionally correcting its reason."""
    return ReportService.update_status(
        db=db,
        report_id=report_id,
        new_status=update_data.status,
        actor=current_actor,
        reason_patch=update_data.reason,
    )


@router.patch("/{report_id}/action", response_model=schemas.ReportResponse)
def attach_moderation_action(
    report_id: str,
    action_data: schemas.ReportActionAttach,
    db: Session = Depends(get_db),
    audit_trail: AuditTrail = Depends(auth.get_audit_trail),
    current_actor: Actor = Depends(auth.get_moderator_actor),
) -> db_models.ContentReport:
    """
    Link the moderation action taken on the reported content.

    Replacing an existing link is recorded in the audit trail.
    """
    return ReportService.attach_moderation_action(
        db=db,
        report_id=report_id,
        moderation_action_id=action_data.moderation_action_id,
        actor=current_actor,
        audit_trail=audit_trail,
    )


@router.delete("/{report_id}")
def delete_report(
    report_id: str,
    db: Session = Depends(get_db),
    audit_trail: AuditTrail = Depends(auth.get_audit_trail),
    current_actor: Actor = Depends(auth.get_moderator_actor),
) -> dict[str, str]:
    """
    Soft-delete a report.

    Deleted reports stay available to moderators for audit.
    """
    ReportService.soft_delete_report(
        db=db,
        report_id=report_id,
        actor=current_actor,
        audit_trail=audit_trail,
    )
    return {"message": "Report deleted successfully"}
