"""
Repository pattern implementation for data access layer.
"""

from .appeal_repository import AppealRepository
from .audit_log_repository import AuditLogRepository
from .base import BaseRepository, LifecycleRepository
from .report_repository import ReportRepository

__all__ = [
    "AppealRepository",
    "AuditLogRepository",
    "BaseRepository",
    "LifecycleRepository",
    "ReportRepository",
]
