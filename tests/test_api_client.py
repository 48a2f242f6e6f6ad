# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the REST client against a mocked transport.
"""

import json
import httpx
import pytest

from factories import make_token, report_record
from openvote_dashboard.exceptions import (
    AuthenticationError,
    AuthorizationExpiredError,
    SessionRequiredError,
    TransientNetworkError,
    ValidationException
)
from openvote_dashboard.models.enums import MatchType, ReportStatus, UserRole
from openvote_dashboard.models.requests import ReportSubmission
from openvote_dashboard.services.api_client import OpenVoteAPIClient

BASE_URL = "http://backend.test/api/v1"


class RecordingHandler:
    """Mock transport handler returning canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestOpenVoteAPIClient:
    """Test request building and error mapping."""

    def setup_method(self):
        """Set up test fixtures."""
        self.token = make_token("super_admin")

    def _client(self, *responses, token=True):
        self.handler = RecordingHandler(*responses)
        return OpenVoteAPIClient(
            BASE_URL,
            token_provider=(lambda: self.token) if token else None,
            transport=httpx.MockTransport(self.handler)
        )

    @pytest.mark.asyncio
    async def test_login_returns_token(self):
        client = self._client(httpx.Response(200, json={"token": self.token}))

        token = await client.login("alice", "secret")

        request = self.handler.requests[0]
        assert token == self.token
        assert request.method == "POST"
        assert request.url.path == "/api/v1/auth/login"
        assert json.loads(request.content) == {"username": "alice", "password": "secret"}
        assert "Authorization" not in request.headers
        await client.aclose()

    @pytest.mark.asyncio
    async def test_login_rejection_carries_backend_reason(self):
        client = self._client(httpx.Response(401, json={"error": "Invalid credentials"}))

        with pytest.raises(AuthenticationError) as exc_info:
            await client.login("alice", "wrong")

        assert exc_info.value.message == "Invalid credentials"
        assert exc_info.value.status_code == 401
        await client.aclose()

    @pytest.mark.asyncio
    async def test_login_requires_fields(self):
        client = self._client()

        with pytest.raises(ValidationException) as exc_info:
            await client.login("", "secret")

        assert exc_info.value.validation_errors[0]["field"] == "username"
        assert self.handler.requests == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_list_reports_with_status_filter(self):
        client = self._client(httpx.Response(200, json=[
            report_record("r1", status="verified"),
            report_record(7, status="verified"),
        ]))

        reports = await client.list_reports(ReportStatus.VERIFIED)

        request = self.handler.requests[0]
        assert request.url.params["status"] == "verified"
        assert request.headers["Authorization"] == f"Bearer {self.token}"
        assert [r.id for r in reports] == ["r1", "7"]
        assert reports[0].location.longitude == pytest.approx(2.3522)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_get_report(self):
        client = self._client(httpx.Response(200, json=report_record("r5", status="rejected")))

        report = await client.get_report("r5")

        assert self.handler.requests[0].url.path == "/api/v1/reports/r5"
        assert report.status == ReportStatus.REJECTED
        await client.aclose()

    @pytest.mark.asyncio
    async def test_list_reports_null_body_is_empty(self):
        client = self._client(httpx.Response(200, content=b"null", headers={"Content-Type": "application/json"}))

        assert await client.list_reports() == []
        assert "status" not in self.handler.requests[0].url.params
        await client.aclose()

    @pytest.mark.asyncio
    async def test_list_reports_skips_malformed_records(self):
        client = self._client(httpx.Response(200, json=[
            report_record("r1"),
            report_record("r2", status=None),
            {"description": "no id"},
        ]))

        reports = await client.list_reports()

        assert [r.id for r in reports] == ["r1"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unauthorized_maps_to_authorization_expired(self):
        client = self._client(httpx.Response(401, json={"error": "Invalid or expired token"}))

        with pytest.raises(AuthorizationExpiredError):
            await client.list_reports()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        client = self._client(httpx.Response(500, json={"error": "Failed to fetch reports"}))

        with pytest.raises(TransientNetworkError) as exc_info:
            await client.list_reports()

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to fetch reports"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_forbidden_is_not_authorization_expired(self):
        client = self._client(httpx.Response(403, json={"error": "Insufficient permissions"}))

        with pytest.raises(TransientNetworkError) as exc_info:
            await client.update_report_status("r1", "verified")

        assert exc_info.value.status_code == 403
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_failure_is_transient(self):
        client = self._client(httpx.ConnectError("connection refused"))

        with pytest.raises(TransientNetworkError) as exc_info:
            await client.list_reports()

        assert "ConnectError" in exc_info.value.message
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_json_is_transient(self):
        client = self._client(httpx.Response(200, content=b"<html>"))

        with pytest.raises(TransientNetworkError):
            await client.list_reports()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_authenticated_call_without_token(self):
        client = self._client(token=False)

        with pytest.raises(SessionRequiredError):
            await client.list_reports()

        assert self.handler.requests == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_update_report_status(self):
        client = self._client(httpx.Response(200, json={"message": "Status updated"}))

        await client.update_report_status("r1", ReportStatus.REJECTED)

        request = self.handler.requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/api/v1/reports/r1"
        assert json.loads(request.content) == {"status": "rejected"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_update_report_status_rejects_unknown_status(self):
        client = self._client()

        with pytest.raises(ValidationException):
            await client.update_report_status("r1", "archived")

        assert self.handler.requests == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_qualify_report(self):
        client = self._client(httpx.Response(200, json={
            "report_id": "r1",
            "matches": [
                {
                    "id": "m1",
                    "report_id": "r1",
                    "article_id": "a1",
                    "similarity_score": 0.87,
                    "match_type": "auto",
                    "article_number": "L.97",
                    "article_title": "Vote buying",
                    "article_content": "..."
                }
            ]
        }))

        matches = await client.qualify_report("r1")

        assert self.handler.requests[0].url.path == "/api/v1/admin/reports/r1/qualify"
        assert len(matches) == 1
        assert matches[0].match_type == MatchType.AUTO
        assert matches[0].similarity_score == pytest.approx(0.87)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_create_report(self):
        client = self._client(httpx.Response(201, json={"message": "Report created", "id": "r9", "h3_index": "88"}))
        submission = ReportSubmission(
            observer_id="obs-1",
            incident_type="fraud",
            description="Ballot box opened",
            latitude=48.85,
            longitude=2.35
        )

        created = await client.create_report(submission)

        assert created["id"] == "r9"
        body = json.loads(self.handler.requests[0].content)
        assert body["latitude"] == 48.85
        assert body["proof_url"] is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_admin_listings(self):
        client = self._client(
            httpx.Response(200, json={"users": [
                {"id": "u1", "username": "alice", "role": "observer", "region_id": "north"}
            ], "total": 1}),
            httpx.Response(200, json={"logs": [
                {"id": "l1", "admin_id": "u0", "action": "DELETE_USER", "target_id": "u5"}
            ], "total": 1}),
        )

        users = await client.list_users()
        logs = await client.get_audit_logs()

        assert users[0].role == UserRole.OBSERVER
        assert logs[0].action == "DELETE_USER"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_generate_activation_token(self):
        client = self._client(httpx.Response(200, json={
            "activation_token": "act-123",
            "role": "observer",
            "region_id": "north"
        }))

        token = await client.generate_activation_token(UserRole.OBSERVER, "north")

        assert token == "act-123"
        assert json.loads(self.handler.requests[0].content) == {"role": "observer", "region_id": "north"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_update_user_omits_missing_region(self):
        client = self._client(httpx.Response(200, json={"message": "User updated"}))

        await client.update_user("u5", "local_coord")

        assert json.loads(self.handler.requests[0].content) == {"role": "local_coord"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_list_reports_skips_record_without_status(self):
        record = report_record("r2")
        record.pop("status")
        client = self._client(httpx.Response(200, json=[report_record("r1"), record]))

        reports = await client.list_reports()

        assert [r.id for r in reports] == ["r1"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_get_upload_url(self):
        client = self._client(httpx.Response(200, json={"upload_url": "http://minio.test/evidence/abc.jpg?sig=1"}))

        url = await client.get_upload_url("evidence.jpg")

        request = self.handler.requests[0]
        assert url == "http://minio.test/evidence/abc.jpg?sig=1"
        assert request.method == "GET"
        assert request.url.path == "/api/v1/reports/upload-url"
        assert request.url.params["file_name"] == "evidence.jpg"
        assert request.headers["Authorization"] == f"Bearer {self.token}"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_get_upload_url_requires_file_name(self):
        client = self._client()

        with pytest.raises(ValidationException) as exc_info:
            await client.get_upload_url("")

        assert exc_info.value.validation_errors[0]["field"] == "file_name"
        assert self.handler.requests == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_get_upload_url_missing_from_response(self):
        client = self._client(httpx.Response(200, json={}))

        with pytest.raises(TransientNetworkError):
            await client.get_upload_url("evidence.jpg")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_register_rejection_is_authentication_error(self):
        """Test that a taken username answered with HTTP 500 surfaces the backend reason."""
        client = self._client(httpx.Response(500, json={"error": "duplicate key value violates unique constraint"}))

        with pytest.raises(AuthenticationError) as exc_info:
            await client.register("carol", "secret1")

        assert exc_info.value.status_code == 500
        assert "duplicate key" in exc_info.value.message
        await client.aclose()

    @pytest.mark.asyncio
    async def test_register_connection_failure_stays_transient(self):
        client = self._client(httpx.ConnectError("connection refused"))

        with pytest.raises(TransientNetworkError):
            await client.register("carol", "secret1")
        await client.aclose()
