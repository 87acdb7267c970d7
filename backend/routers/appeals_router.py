"""
Router for appeal endpoints.
"""

from typing import Optional

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
from models.moderation_types import AppealCause
from repositories.database import get_db
from services.appeal_service import AppealService
from services.audit_service import AuditTrail

router = APIRouter(prefix="/appeals", tags=["appeals"])


@router.post("", response_model=schemas.AppealResponse)
def submit_appeal(
    appeal_data: schemas.AppealCreate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> db_models.Appeal:
    """
    Appeal a moderation action, a report, or both.

    Members may only appeal on their own behalf.

    Domain exceptions are caught by centralized exception handlers.
    """
    cause = AppealCause.of(
        appeal_data.moderation_action_id,
        appeal_data.flag_report_id,
    )
    return AppealService.create_appeal(
        db=db,
        actor=current_actor,
        appellant_id=appeal_data.appellant_id or current_actor.id,
        cause=cause,
        appeal_reason=appeal_data.appeal_reason,
    )


@router.get("/mine", response_model=list[schemas.AppealResponse])
def get_my_appeals(
    skip: PaginationSkip = 0,
    limit: OwnListLimit = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> list[db_models.Appeal]:
    """Get appeals filed by the current member that were not withdrawn."""
    return AppealService.get_own_appeals(
        db=db,
        actor=current_actor,
        skip=skip,
        limit=limit,
    )


@router.get("", response_model=schemas.AppealPage)
def search_appeals(
    appellant_id: Optional[str] = Query(None),
    status: Optional[db_models.AppealStatus] = Query(None),
    moderation_action_id: Optional[str] = Query(None),
    flag_report_id: Optional[str] = Query(None),
    include_deleted: bool = Query(False),
    skip: PaginationSkip = 0,
    limit: ReviewQueueLimit = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_moderator_actor),
) -> schemas.AppealPage:
    """
    Get the appeal review queue, oldest first.

    Requires moderator or administrator role.
    """
    items, total = AppealService.search_appeals(
        db=db,
        actor=current_actor,
        appellant_id=appellant_id,
        status=status,
        moderation_action_id=moderation_action_id,
        flag_report_id=flag_report_id,
        include_deleted=include_deleted,
        skip=skip,
        limit=limit,
    )
    return schemas.AppealPage(
        items=[schemas.AppealResponse.model_validate(item) for item in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{appeal_id}", response_model=schemas.AppealResponse)
def get_appeal(
    appeal_id: str,
    include_deleted: bool = Query(False),
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> db_models.Appeal:
    """Get a single appeal."""
    return AppealService.get_appeal(
        db=db,
        appeal_id=appeal_id,
        actor=current_actor,
        include_deleted=include_deleted,
    )


@router.patch("/{appeal_id}", response_model=schemas.AppealResponse)
def update_appeal(
    appeal_id: str,
    patch: schemas.AppealUpdate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> db_models.Appeal:
    """
    Update an appeal.

    Appellants may rewrite their narrative while the appeal is pending.
    Moderators and administrators may change any field.
    """
    return AppealService.update_appeal(
        db=db,
        appeal_id=appeal_id,
        patch=patch,
        actor=current_actor,
    )


@router.delete("/{appeal_id}")
def delete_appeal(
    appeal_id: str,
    db: Session = Depends(get_db),
    audit_trail: AuditTrail = Depends(auth.get_audit_trail),
    current_actor: Actor = Depends(auth.get_admin_actor),
) -> dict[str, str]:
    """
    Permanently erase an appeal.

    Administrators only, and only while the appeal is pending or closed.
    """
    AppealService.delete_appeal(
        db=db,
        appeal_id=appeal_id,
        actor=current_actor,
        audit_trail=audit_trail,
    )
    return {"message": "Appeal deleted successfully"}


@router.post("/{appeal_id}/retire", response_model=schemas.AppealResponse)
def retire_appeal(
    appeal_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(auth.get_current_actor),
) -> db_models.Appeal:
    """Withdraw one of your own appeals."""
    return AppealService.retire_appeal(
        db=db,
        appeal_id=appeal_id,
        actor=current_actor,
    )
