from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from repositories.db_models import AppealStatus, ContentType, ReportStatus

REASON_MAX_LENGTH = 1000
APPEAL_TEXT_MAX_LENGTH = 5000
ID_MAX_LENGTH = 36


# --- Content Report Schemas ---


class ReportCreate(BaseModel):
    """Schema for flagging a post or a comment."""

    content_type: ContentType
    content_post_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)
    content_comment_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)
    reason: str = Field(..., max_length=REASON_MAX_LENGTH)


class ReportStatusUpdate(BaseModel):
    """Schema for a moderator status change, with optional reason correction."""

    status: ReportStatus
    reason: Optional[str] = Field(None, max_length=REASON_MAX_LENGTH)


class ReportActionAttach(BaseModel):
    """Schema for linking a moderation action to a report."""

    moderation_action_id: str = Field(..., min_length=1, max_length=ID_MAX_LENGTH)


class ReportResponse(BaseModel):
    """Schema for report response."""

    id: str
    reporter_id: str
    content_type: ContentType
    content_post_id: Optional[str]
    content_comment_id: Optional[str]
    reason: str
    status: ReportStatus
    moderation_action_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class ReportPage(BaseModel):
    """Paginated report search results."""

    items: List[ReportResponse]
    total: int
    skip: int
    limit: int


# --- Appeal Schemas ---


class AppealCreate(BaseModel):
    """
    Schema for filing an appeal.

    appellant_id defaults to the authenticated member.
    """

    appellant_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)
    moderation_action_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)
    flag_report_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)
    appeal_reason: str = Field(..., max_length=APPEAL_TEXT_MAX_LENGTH)


class AppealUpdate(BaseModel):
    """
    Partial update of an appeal.

    Only fields present in the request body are applied, so an explicit null
    clears a field while an omitted one is left alone.
    """

    appeal_reason: Optional[str] = Field(None, max_length=APPEAL_TEXT_MAX_LENGTH)
    status: Optional[AppealStatus] = None
    resolution_comment: Optional[str] = Field(None, max_length=APPEAL_TEXT_MAX_LENGTH)
    resolved_at: Optional[datetime] = None
    moderation_action_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)
    flag_report_id: Optional[str] = Field(None, max_length=ID_MAX_LENGTH)


class AppealResponse(BaseModel):
    """Schema for appeal response."""

    id: str
    appellant_id: str
    moderation_action_id: Optional[str]
    flag_report_id: Optional[str]
    appeal_reason: str
    status: AppealStatus
    resolution_comment: Optional[str]
    resolved_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class AppealPage(BaseModel):
    """Paginated appeal search results."""

    items: List[AppealResponse]
    total: int
    skip: int
    limit: int


# --- Audit Trail Schemas ---


class AuditEntry(BaseModel):
    """Entry handed to the audit trail."""

    actor_id: str
    actor_type: str
    action_category: str
    target_table: str
    target_id: str
    description: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)
