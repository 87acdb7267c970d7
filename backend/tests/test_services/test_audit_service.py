"""Tests for the audit trail and best-effort audit recording."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

import repositories.db_models as db_models
from models.exceptions import AuditTrailUnavailableException
from repositories.audit_log_repository import AuditLogRepository
from services.audit_service import AuditAction, AuditService, DatabaseAuditTrail


def _entry(actor, target_id="r1"):
    return AuditService.build_entry(
        actor,
        AuditAction.REPORT_DELETED,
        "content_reports",
        target_id,
        "Report deleted",
    )


class TestBuildEntry:
    """Tests for AuditService.build_entry"""

    def test_stamps_actor_and_time(self, moderator):
        entry = _entry(moderator)
        assert entry.actor_id == "mod1"
        assert entry.actor_type == "moderator"
        assert entry.action_category == "report_deleted"
        assert entry.timestamp is not None


class TestDatabaseAuditTrail:
    """Tests for DatabaseAuditTrail"""

    def test_append_stages_inside_transaction(self, db_session, moderator):
        trail = DatabaseAuditTrail(db_session)
        trail.append(_entry(moderator))
        db_session.rollback()

        assert AuditLogRepository(db_session).get_for_target("content_reports", "r1") == []

    def test_append_then_commit_persists(self, db_session, moderator):
        trail = DatabaseAuditTrail(db_session)
        trail.append(_entry(moderator))
        db_session.commit()

        rows = AuditLogRepository(db_session).get_for_target("content_reports", "r1")
        assert len(rows) == 1
        assert rows[0].actor_id == "mod1"
        assert rows[0].description == "Report deleted"

    def test_store_failure_raises_audit_unavailable(self, db_session, moderator):
        trail = DatabaseAuditTrail(db_session)
        failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(trail.repo, "stage", side_effect=failure):
            with pytest.raises(AuditTrailUnavailableException):
                trail.append(_entry(moderator))


class TestRecordBestEffort:
    """Tests for AuditService.record_best_effort"""

    def test_records_and_commits(self, db_session, moderator):
        recorded = AuditService.record_best_effort(
            db_session, DatabaseAuditTrail(db_session), _entry(moderator)
        )

        assert recorded is True
        assert db_session.query(db_models.AuditLog).count() == 1

    def test_failure_returns_false(self, db_session, moderator, failing_audit_trail):
        recorded = AuditService.record_best_effort(
            db_session, failing_audit_trail, _entry(moderator)
        )

        assert recorded is False
        assert failing_audit_trail.attempts == 1

    def test_failure_does_not_touch_committed_rows(
        self, db_session, moderator, test_report, failing_audit_trail
    ):
        AuditService.record_best_effort(
            db_session, failing_audit_trail, _entry(moderator, test_report.id)
        )

        assert db_session.get(db_models.ContentReport, test_report.id) is not None
