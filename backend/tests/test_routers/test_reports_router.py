"""
API tests for the reports router.
"""

from datetime import timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

import repositories.db_models as db_models
from repositories.report_repository import ReportRepository


def _post_report(client, headers, **overrides):
    payload = {"content_type": "post", "content_post_id": "p1", "reason": "spam"}
    payload.update(overrides)
    return client.post("/api/reports", json=payload, headers=headers)


class TestCreateReport:
    """Tests for POST /api/reports"""

    def test_requires_authentication(self, client):
        response = _post_report(client, {})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert "correlation_id" in response.json()

    def test_rejects_invalid_token(self, client):
        response = _post_report(client, {"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_rejects_expired_token(self, client, token_factory):
        token = token_factory({"sub": "m1"}, lifetime=timedelta(minutes=-1))
        response = _post_report(client, {"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_rejects_unknown_role(self, client, token_factory):
        token = token_factory({"sub": "m1", "role": "superuser"})
        response = _post_report(client, {"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_creates_pending_report(self, client, member_headers):
        response = _post_report(client, member_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["reporter_id"] == "m1"
        assert data["content_type"] == "post"
        assert data["content_post_id"] == "p1"
        assert data["content_comment_id"] is None
        assert data["status"] == "pending"
        assert data["deleted_at"] is None

    def test_comment_report(self, client, member_headers):
        response = _post_report(
            client,
            member_headers,
            content_type="comment",
            content_post_id=None,
            content_comment_id="c1",
        )

        assert response.status_code == 200
        assert response.json()["content_comment_id"] == "c1"

    def test_duplicate_is_conflict(self, client, member_headers):
        _post_report(client, member_headers)
        response = _post_report(client, member_headers, reason="again")

        assert response.status_code == 409
        assert response.json()["detail"] == "You have already reported this content"

    def test_both_targets_is_validation_error(self, client, member_headers):
        response = _post_report(client, member_headers, content_comment_id="c1")

        assert response.status_code == 422
        assert "correlation_id" in response.json()

    def test_mismatched_target_is_validation_error(self, client, member_headers):
        response = _post_report(
            client,
            member_headers,
            content_post_id=None,
            content_comment_id="c1",
        )

        assert response.status_code == 422

    def test_unknown_content_type_is_validation_error(self, client, member_headers):
        response = _post_report(client, member_headers, content_type="video")

        assert response.status_code == 422
        assert isinstance(response.json()["detail"], list)

    def test_markup_only_reason_is_validation_error(self, client, member_headers):
        response = _post_report(client, member_headers, reason="<b></b>")

        assert response.status_code == 422

    def test_store_timeout_is_retryable(self, client, member_headers):
        failure = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(
            ReportRepository, "active_query", side_effect=failure
        ):
            response = _post_report(client, member_headers)

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "2"
        assert "correlation_id" in response.json()


class TestReadReports:
    """Tests for GET /api/reports/mine and /api/reports/{id}"""

    def test_mine_lists_own_reports(self, client, member_headers, test_report):
        response = client.get("/api/reports/mine", headers=member_headers)

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [test_report.id]

    def test_mine_empty_for_other_member(
        self, client, other_member_headers, test_report
    ):
        response = client.get("/api/reports/mine", headers=other_member_headers)

        assert response.json() == []

    def test_mine_limit_is_capped_below_review_queue(
        self, client, member_headers, moderator_headers
    ):
        mine = client.get(
            "/api/reports/mine", params={"limit": 150}, headers=member_headers
        )
        queue = client.get(
            "/api/reports", params={"limit": 150}, headers=moderator_headers
        )

        assert mine.status_code == 422
        assert queue.status_code == 200

    def test_owner_can_read(self, client, member_headers, test_report):
        response = client.get(f"/api/reports/{test_report.id}", headers=member_headers)

        assert response.status_code == 200
        assert response.json()["reason"] == "spam"

    def test_stranger_is_forbidden(self, client, other_member_headers, test_report):
        response = client.get(
            f"/api/reports/{test_report.id}", headers=other_member_headers
        )

        assert response.status_code == 403

    def test_missing_is_not_found(self, client, moderator_headers):
        response = client.get("/api/reports/missing", headers=moderator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Report with ID missing not found"


class TestSearchReports:
    """Tests for GET /api/reports"""

    def test_member_is_forbidden(self, client, member_headers):
        response = client.get("/api/reports", headers=member_headers)

        assert response.status_code == 403

    def test_moderator_gets_page(self, client, moderator_headers, test_report):
        response = client.get(
            "/api/reports",
            params={"status": "pending", "reason": "spa"},
            headers=moderator_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == test_report.id
        assert data["skip"] == 0
        assert data["limit"] == 50

    def test_invalid_sort_field_is_rejected(self, client, moderator_headers):
        response = client.get(
            "/api/reports", params={"sort_by": "reporter_id"}, headers=moderator_headers
        )

        assert response.status_code == 422

    def test_limit_is_capped(self, client, moderator_headers):
        response = client.get(
            "/api/reports", params={"limit": 500}, headers=moderator_headers
        )

        assert response.status_code == 422


class TestModerateReport:
    """Tests for PATCH and DELETE on /api/reports/{id}"""

    def test_moderator_changes_status(self, client, moderator_headers, test_report):
        response = client.patch(
            f"/api/reports/{test_report.id}",
            json={"status": "dismissed", "reason": "not spam after all"},
            headers=moderator_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "dismissed"
        assert response.json()["reason"] == "not spam after all"

    def test_member_cannot_change_status(self, client, member_headers, test_report):
        response = client.patch(
            f"/api/reports/{test_report.id}",
            json={"status": "resolved"},
            headers=member_headers,
        )

        assert response.status_code == 403

    def test_attach_then_correct_action_is_audited(
        self, client, db_session, moderator_headers, test_report
    ):
        url = f"/api/reports/{test_report.id}/action"
        client.patch(url, json={"moderation_action_id": "act1"}, headers=moderator_headers)
        response = client.patch(
            url, json={"moderation_action_id": "act2"}, headers=moderator_headers
        )

        assert response.status_code == 200
        assert response.json()["moderation_action_id"] == "act2"
        entries = db_session.query(db_models.AuditLog).all()
        assert [e.action_category for e in entries] == ["report_action_corrected"]

    def test_delete_then_delete_again(self, client, moderator_headers, test_report):
        url = f"/api/reports/{test_report.id}"

        first = client.delete(url, headers=moderator_headers)
        second = client.delete(url, headers=moderator_headers)

        assert first.status_code == 200
        assert first.json() == {"message": "Report deleted successfully"}
        assert second.status_code == 404
        assert "already deleted" in second.json()["detail"]

    def test_deleted_report_visible_to_moderator_on_request(
        self, client, moderator_headers, member_headers, test_report
    ):
        url = f"/api/reports/{test_report.id}"
        client.delete(url, headers=moderator_headers)

        assert client.get(url, headers=member_headers).status_code == 404
        assert client.get(url, headers=moderator_headers).status_code == 404
        response = client.get(
            url, params={"include_deleted": True}, headers=moderator_headers
        )
        assert response.status_code == 200
        assert response.json()["deleted_at"] is not None
