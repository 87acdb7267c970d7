"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .access_policy import AccessPolicy
from .appeal_service import AppealService
from .audit_service import AuditService, DatabaseAuditTrail
from .report_service import ReportService

__all__ = [
    "AccessPolicy",
    "AppealService",
    "AuditService",
    "DatabaseAuditTrail",
    "ReportService",
]
