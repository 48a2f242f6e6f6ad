# SPDX-License-Identifier: Apache-2.0

"""
Dashboard orchestration.

The Dashboard owns the API client and the SessionManager. A Workspace holds
every session-dependent component and exists only while a session is valid:
it is created on login or restore and torn down on logout, credential
rejection or detected expiry.
"""

import logging
from typing import Any, Optional

from opentelemetry import trace
from pydantic import ValidationError

from ..config import DashboardConfig
from ..domain.authorization import check_capability
from ..domain.results import OperationResult, Notice
from ..exceptions import (
    DashboardError,
    AuthorizationExpiredError,
    PermissionDeniedError,
    SessionRequiredError,
    ValidationException
)
from ..models.enums import Action, NoticeLevel
from ..models.requests import ReportSubmission
from .admin import AdminService
from .analytics import AnalyticsAggregator
from .api_client import OpenVoteAPIClient
from .legal import LegalMatchAdapter
from .report_store import ReportStore
from .session import SessionManager, MemorySessionStorage
from .sync import SyncScheduler
from .triage import TriageStateMachine

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class Workspace:
    """Session-scoped components of the dashboard."""

    def __init__(self, api_client: OpenVoteAPIClient, session_manager: SessionManager, config: DashboardConfig):
        self.api_client = api_client
        self.session_manager = session_manager
        self.store = ReportStore()
        self.scheduler = SyncScheduler(
            api_client,
            self.store,
            session_manager,
            interval=config.refresh_interval,
            tick_seconds=config.tick_seconds
        )
        self.triage = TriageStateMachine(api_client, self.store, self.scheduler, session_manager)
        self.legal = LegalMatchAdapter(api_client, session_manager)
        self.analytics = AnalyticsAggregator(self.store, clock=session_manager.clock)
        self.admin = AdminService(api_client, session_manager)
        self.closed = False

    def start(self):
        """Start periodic synchronization on the running event loop."""
        return self.scheduler.start()

    def close(self) -> None:
        """Cancel the timer and drop all in-memory state."""
        if self.closed:
            return
        self.closed = True
        self.scheduler.stop()
        self.legal.close()
        self.store.clear()
        self.analytics.detach()

    async def request_upload_url(self, file_name: str) -> OperationResult:
        """
        Obtain a presigned URL for an evidence file.

        The file is uploaded to the returned URL by the caller; the URL is then
        passed as `proof_url` to `submit_report`.
        """
        with tracer.start_as_current_span("workspace.request_upload_url"):
            session = self.session_manager.current
            if session is None:
                return OperationResult.failed(SessionRequiredError())

            authorization = check_capability(Action.SUBMIT_REPORT, session.role)
            if not authorization.allowed:
                return OperationResult.failed(PermissionDeniedError(authorization.reason))

            try:
                url = await self.api_client.get_upload_url(file_name)
            except AuthorizationExpiredError as e:
                self.session_manager.logout(reason="unauthorized")
                return OperationResult.failed(e)
            except DashboardError as e:
                return OperationResult.failed(e)
            return OperationResult.ok(url)

    async def submit_report(self, **fields: Any) -> OperationResult:
        """
        Validate and submit a new report, then resynchronize.

        Args:
            **fields: ReportSubmission fields

        Returns:
            OperationResult with the backend's `{message, id, h3_index}`
        """
        with tracer.start_as_current_span("workspace.submit_report"):
            session = self.session_manager.current
            if session is None:
                return OperationResult.failed(SessionRequiredError())

            authorization = check_capability(Action.SUBMIT_REPORT, session.role)
            if not authorization.allowed:
                return OperationResult.failed(PermissionDeniedError(authorization.reason))

            try:
                submission = ReportSubmission(**fields)
            except ValidationError as e:
                return OperationResult.failed(ValidationException.from_pydantic(e, "Report is incomplete"))

            try:
                created = await self.api_client.create_report(submission)
            except AuthorizationExpiredError as e:
                self.session_manager.logout(reason="unauthorized")
                return OperationResult.failed(e)
            except DashboardError as e:
                return OperationResult.failed(e)

            logger.info("Report submitted", extra={"report_id": created.get("id")})
            await self.scheduler.refresh()
            return OperationResult.ok(created, Notice(level=NoticeLevel.INFO, message="Report submitted"))


class Dashboard:
    """
    Entry point consumed by the presentation layer.

    No session means no workspace: nothing synchronizes and no triage,
    qualification or administration is available.
    """

    def __init__(
        self,
        config: Optional[DashboardConfig] = None,
        api_client: Optional[OpenVoteAPIClient] = None,
        storage: Optional[MemorySessionStorage] = None,
        clock=None
    ):
        self.config = config or DashboardConfig()
        self.api_client = api_client or OpenVoteAPIClient.from_config(self.config)
        self.session_manager = SessionManager(
            self.api_client,
            storage=storage,
            storage_key=self.config.session_storage_key,
            clock=clock
        )
        self.api_client.token_provider = self.session_manager.token
        self.session_manager.add_logout_listener(self._on_logout)
        self.workspace: Optional[Workspace] = None

    def _on_logout(self, reason: str) -> None:
        if self.workspace is not None:
            logger.info("Tearing down workspace", extra={"reason": reason})
            self.workspace.close()
            self.workspace = None

    def _open_workspace(self) -> Workspace:
        if self.workspace is not None:
            self.workspace.close()
        self.workspace = Workspace(self.api_client, self.session_manager, self.config)
        return self.workspace

    @property
    def session(self):
        return self.session_manager.current

    def restore(self) -> Optional[Workspace]:
        """Restore a stored session and open its workspace (not started)."""
        if self.session_manager.restore() is None:
            return None
        return self._open_workspace()

    async def login(self, username: str, password: str) -> OperationResult:
        """
        Authenticate and open a workspace (not started).

        Returns:
            OperationResult whose value is the Workspace
        """
        try:
            await self.session_manager.login(username, password)
        except DashboardError as e:
            logger.info(f"Login failed: {e.message}", extra={"error_type": e.error_type})
            return OperationResult.failed(e)
        return OperationResult.ok(self._open_workspace())

    async def enroll(self, activation_token: str, pin: str) -> OperationResult:
        """Activate an account and open its workspace (not started)."""
        try:
            await self.session_manager.enroll(activation_token, pin)
        except DashboardError as e:
            return OperationResult.failed(e)
        return OperationResult.ok(self._open_workspace())

    async def register(self, username: str, password: str) -> OperationResult:
        try:
            user = await self.session_manager.register(username, password)
        except DashboardError as e:
            return OperationResult.failed(e)
        return OperationResult.ok(user, Notice(level=NoticeLevel.INFO, message="Account created"))

    def logout(self) -> None:
        self.session_manager.logout(reason="logout")

    async def aclose(self) -> None:
        """Leave the dashboard: tear down the workspace and close the HTTP client."""
        if self.workspace is not None:
            scheduler = self.workspace.scheduler
            self.workspace.close()
            self.workspace = None
            await scheduler.wait_closed()
        await self.api_client.aclose()
