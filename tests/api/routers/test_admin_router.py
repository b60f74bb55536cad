"""Tests for admin triage router."""

import csv
import io
import uuid

from trashmap.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from trashmap.lifecycle import ReportStatus
from trashmap.schemas.reports import ReportPriority, ReportStats


class TestAdminAccess:
    def test_citizen_is_forbidden(self, client):
        response = client.get("/api/v1/admin/reports/stats")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_missing_token_is_unauthorized(self, unauthenticated_client):
        response = unauthenticated_client.get("/api/v1/admin/reports/stats")

        assert response.status_code == 401

    def test_invalid_token_is_unauthorized(self, unauthenticated_client):
        response = unauthenticated_client.get(
            "/api/v1/admin/reports/stats", headers={"Authorization": "Bearer unknown"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_configured_admin_email_signs_up_as_admin(self, unauthenticated_client):
        signup = unauthenticated_client.post(
            "/api/v1/auth/signup", json={"email": "ops@example.com", "password": "secret123"}
        )
        token = signup.json()["token"]

        response = unauthenticated_client.get(
            "/api/v1/admin/reports/stats", headers={"Authorization": f"Bearer {token}"}
        )

        assert signup.json()["user"]["is_admin"] is True
        assert response.status_code == 200

    def test_other_emails_sign_up_as_citizens(self, unauthenticated_client):
        signup = unauthenticated_client.post(
            "/api/v1/auth/signup", json={"email": "dana@example.com", "password": "secret123"}
        )
        token = signup.json()["token"]

        response = unauthenticated_client.get(
            "/api/v1/admin/reports/stats", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 403


class TestStats:
    def test_stats(self, admin_client, mock_report_repo):
        mock_report_repo.get_stats.return_value = ReportStats(
            total=6, pending=3, assigned=2, resolved=1
        )

        response = admin_client.get("/api/v1/admin/reports/stats")

        assert response.status_code == 200
        assert response.json() == {"total": 6, "pending": 3, "assigned": 2, "resolved": 1}


class TestExport:
    def test_export_csv(self, admin_client, mock_report_repo, sample_report):
        report = sample_report(priority=ReportPriority.HIGH)
        mock_report_repo.list_filtered.return_value = [report]

        response = admin_client.get("/api/v1/admin/reports/export.csv?status=pending")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=\"waste-reports-" in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[1][0] == str(report.id)
        assert rows[1][3] == "high"
        assert mock_report_repo.list_filtered.call_args.kwargs["status"] == ReportStatus.PENDING


class TestUpdateStatus:
    def test_assign(self, admin_client, mock_report_repo):
        report_id = uuid.uuid4()

        response = admin_client.patch(
            f"/api/v1/admin/reports/{report_id}/status",
            json={"status": "assigned", "assigned_to": "crew-7"},
        )

        assert response.status_code == 204
        mock_report_repo.update_status.assert_awaited_once_with(
            report_id, ReportStatus.ASSIGNED, "crew-7"
        )

    def test_missing_assignee(self, admin_client, mock_report_repo):
        mock_report_repo.update_status.side_effect = ValidationError(
            "An assignee is required to assign a report", details={"field": "assigned_to"}
        )

        response = admin_client.patch(
            f"/api/v1/admin/reports/{uuid.uuid4()}/status", json={"status": "assigned"}
        )

        assert response.status_code == 422
        assert response.json()["error"]["details"]["field"] == "assigned_to"

    def test_invalid_transition(self, admin_client, mock_report_repo):
        mock_report_repo.update_status.side_effect = InvalidTransitionError("resolved", "assigned")

        response = admin_client.patch(
            f"/api/v1/admin/reports/{uuid.uuid4()}/status",
            json={"status": "assigned", "assigned_to": "crew-7"},
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_unknown_status(self, admin_client):
        response = admin_client.patch(
            f"/api/v1/admin/reports/{uuid.uuid4()}/status", json={"status": "archived"}
        )

        assert response.status_code == 422

    def test_not_found(self, admin_client, mock_report_repo):
        report_id = uuid.uuid4()
        mock_report_repo.update_status.side_effect = NotFoundError("Report", str(report_id))

        response = admin_client.patch(
            f"/api/v1/admin/reports/{report_id}/status", json={"status": "resolved"}
        )

        assert response.status_code == 404


class TestUpdatePriority:
    def test_set_priority(self, admin_client, mock_report_repo):
        report_id = uuid.uuid4()

        response = admin_client.patch(
            f"/api/v1/admin/reports/{report_id}/priority", json={"priority": "medium"}
        )

        assert response.status_code == 204
        mock_report_repo.update_priority.assert_awaited_once_with(
            report_id, ReportPriority.MEDIUM
        )

    def test_unknown_priority(self, admin_client):
        response = admin_client.patch(
            f"/api/v1/admin/reports/{uuid.uuid4()}/priority", json={"priority": "urgent"}
        )

        assert response.status_code == 422
