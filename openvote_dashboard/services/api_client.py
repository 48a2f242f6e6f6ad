# SPDX-License-Identifier: Apache-2.0

"""
REST client for the OpenVote backend.

This module wraps `httpx.AsyncClient` and converts every failure into the
dashboard exception taxonomy: a 401 on an authenticated call becomes
AuthorizationExpiredError, any other failure TransientNetworkError.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type, Union

import httpx
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from ..config import DashboardConfig
from ..exceptions import (
    DashboardError,
    TransientNetworkError,
    AuthorizationExpiredError,
    AuthenticationError,
    SessionRequiredError,
    ValidationException
)
from ..models.entities import Report, LegalMatch, ManagedUser, AuditLogEntry
from ..models.enums import ReportStatus, UserRole
from ..models.requests import (
    CredentialsRequest,
    RegisterRequest,
    EnrollRequest,
    StatusUpdateRequest,
    ReportSubmission,
    UploadURLRequest,
    GenerateTokenRequest,
    UpdateUserRequest
)

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _validated(model, message: str, **fields):
    """Build a request model, raising ValidationException before any network call."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise ValidationException.from_pydantic(e, message) from e


class OpenVoteAPIClient:
    """
    Async client for the OpenVote REST API.

    The bearer credential is read from `token_provider` on every call so the
    client never holds a stale token.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the API client.

        Args:
            base_url: API root, e.g. http://localhost:8095/api/v1
            timeout: Request timeout in seconds
            token_provider: Callable returning the current bearer token
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: DashboardConfig, **kwargs) -> "OpenVoteAPIClient":
        return cls(config.api_base_url, timeout=config.request_timeout, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenVoteAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if not authenticated:
            return headers

        token = self.token_provider() if self.token_provider else None
        if not token:
            raise SessionRequiredError("Authenticated call attempted without a session")
        headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        """Extract the backend's `{"error": ...}` message."""
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict):
            message = body.get("error") or body.get("message")
            if message:
                return str(message)
        return default

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        authenticated: bool = True,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        rejection_error: Optional[Type[DashboardError]] = None
    ) -> Any:
        """
        Perform a request and decode its JSON body.

        Args:
            method: HTTP method
            path: Path relative to the API root
            operation: Operation name for tracing and logs
            authenticated: Attach the bearer credential
            json: JSON body
            params: Query parameters
            rejection_error: Exception type raised for 4xx answers instead of
                the default mapping (used by the unauthenticated auth endpoints)

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            AuthorizationExpiredError: 401 on an authenticated call
            TransientNetworkError: Transport failure or other error status
        """
        headers = self._headers(authenticated)

        with tracer.start_as_current_span(f"api.{operation}") as span:
            span.set_attributes({
                "http.method": method,
                "http.path": path,
                "api.operation": operation
            })

            try:
                response = await self._client.request(method, path, json=json, params=params, headers=headers)
            except httpx.HTTPError as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                logger.warning(
                    f"Request failed: {operation}",
                    extra={"operation": operation, "path": path, "error": str(e)}
                )
                raise TransientNetworkError(f"Unable to reach the server ({e.__class__.__name__})") from e

            status = response.status_code
            span.set_attribute("http.status_code", status)

            if status >= 400:
                span.set_status(Status(StatusCode.ERROR, f"HTTP {status}"))
                message = self._error_message(response, f"Server answered HTTP {status}")
                logger.warning(
                    f"Request rejected: {operation}",
                    extra={"operation": operation, "path": path, "status_code": status, "detail": message}
                )
                if rejection_error is not None and status < 500:
                    raise rejection_error(message, status)
                if status == 401 and authenticated:
                    raise AuthorizationExpiredError(message)
                raise TransientNetworkError(message, status)

            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                span.set_status(Status(StatusCode.ERROR, "invalid JSON"))
                raise TransientNetworkError("Server sent a malformed response", status) from e

    # Authentication

    async def login(self, username: str, password: str) -> str:
        """
        Exchange credentials for a bearer token.

        Raises:
            ValidationException: Missing username or password
            AuthenticationError: Credentials rejected
        """
        request = _validated(CredentialsRequest, "Invalid login", username=username, password=password)
        body = await self._request(
            "POST", "/auth/login", "login",
            authenticated=False,
            json=request.model_dump(),
            rejection_error=AuthenticationError
        )
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Server did not return a credential")
        return token

    async def register(self, username: str, password: str) -> Dict[str, Any]:
        """Create an account; the backend assigns the observer role."""
        request = _validated(RegisterRequest, "Invalid registration", username=username, password=password)
        try:
            body = await self._request(
                "POST", "/auth/register", "register",
                authenticated=False,
                json=request.model_dump(),
                rejection_error=AuthenticationError
            )
        except TransientNetworkError as e:
            # A taken username is answered with HTTP 500 and the reason in `error`
            if e.status_code is not None:
                raise AuthenticationError(e.message, e.status_code) from e
            raise
        return body or {}

    async def enroll(self, activation_token: str, pin: str) -> Dict[str, Any]:
        """Activate an account from an activation token."""
        request = _validated(EnrollRequest, "Invalid enrolment", activation_token=activation_token, pin=pin)
        body = await self._request(
            "POST", "/auth/enroll", "enroll",
            authenticated=False,
            json=request.model_dump(),
            rejection_error=AuthenticationError
        )
        if not isinstance(body, dict) or not body.get("access_token"):
            raise AuthenticationError("Server did not return a credential")
        return body

    # Reports

    async def list_reports(self, status: Optional[Union[ReportStatus, str]] = None) -> List[Report]:
        """
        Fetch the report collection, optionally filtered by status.

        Records that fail validation are skipped and logged.
        """
        params = {"status": ReportStatus(status).value} if status else None
        body = await self._request("GET", "/reports", "list_reports", params=params)
        if body is None:
            return []
        if not isinstance(body, list):
            raise TransientNetworkError("Server sent a malformed report list")

        reports = []
        for record in body:
            try:
                reports.append(Report.model_validate(record))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed report record",
                    extra={"record_id": record.get("id") if isinstance(record, dict) else None, "error": str(e)}
                )
        return reports

    async def get_report(self, report_id: str) -> Report:
        body = await self._request("GET", f"/reports/{report_id}", "get_report")
        try:
            return Report.model_validate(body)
        except ValidationError as e:
            raise TransientNetworkError("Server sent a malformed report") from e

    async def get_upload_url(self, file_name: str) -> str:
        """
        Request a presigned URL for uploading evidence.

        Args:
            file_name: Object name of the evidence file

        Returns:
            URL to PUT the file to; usable afterwards as a report `proof_url`
        """
        request = _validated(UploadURLRequest, "Invalid upload request", file_name=file_name)
        body = await self._request(
            "GET", "/reports/upload-url", "get_upload_url",
            params={"file_name": request.file_name}
        )
        url = body.get("upload_url") if isinstance(body, dict) else None
        if not url:
            raise TransientNetworkError("Server did not return an upload URL")
        return url

    async def create_report(self, submission: ReportSubmission) -> Dict[str, Any]:
        """Submit a new report; returns `{message, id, h3_index}`."""
        body = await self._request("POST", "/reports", "create_report", json=submission.model_dump())
        return body or {}

    async def update_report_status(self, report_id: str, status: Union[ReportStatus, str]) -> None:
        request = _validated(StatusUpdateRequest, "Invalid status", status=status)
        await self._request("PATCH", f"/reports/{report_id}", "update_report_status", json=request.model_dump())

    # Administration

    async def qualify_report(self, report_id: str) -> List[LegalMatch]:
        """Request ranked legal article matches for a report."""
        body = await self._request("POST", f"/admin/reports/{report_id}/qualify", "qualify_report")
        records = body.get("matches") if isinstance(body, dict) else None
        try:
            return [LegalMatch.model_validate(record) for record in records or []]
        except ValidationError as e:
            raise TransientNetworkError("Server sent malformed legal matches") from e

    async def generate_activation_token(self, role: Union[UserRole, str], region_id: str) -> str:
        request = _validated(GenerateTokenRequest, "Invalid token request", role=role, region_id=region_id)
        body = await self._request("POST", "/admin/generate-token", "generate_token", json=request.model_dump())
        token = body.get("activation_token") if isinstance(body, dict) else None
        if not token:
            raise TransientNetworkError("Server did not return an activation token")
        return token

    async def list_users(self) -> List[ManagedUser]:
        body = await self._request("GET", "/admin/users", "list_users")
        records = body.get("users") if isinstance(body, dict) else None
        try:
            return [ManagedUser.model_validate(record) for record in records or []]
        except ValidationError as e:
            raise TransientNetworkError("Server sent a malformed user list") from e

    async def update_user(self, user_id: str, role: Union[UserRole, str], region_id: Optional[str] = None) -> Dict[str, Any]:
        request = _validated(UpdateUserRequest, "Invalid user update", role=role, region_id=region_id)
        body = await self._request(
            "PATCH", f"/admin/users/{user_id}", "update_user",
            json=request.model_dump(exclude_none=True)
        )
        return body or {}

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}", "delete_user")

    async def get_audit_logs(self) -> List[AuditLogEntry]:
        body = await self._request("GET", "/admin/audit-logs", "audit_logs")
        records = body.get("logs") if isinstance(body, dict) else None
        try:
            return [AuditLogEntry.model_validate(record) for record in records or []]
        except ValidationError as e:
            raise TransientNetworkError("Server sent a malformed audit log") from e
