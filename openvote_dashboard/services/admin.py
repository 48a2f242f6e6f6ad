# SPDX-License-Identifier: Apache-2.0

"""
Administrative operations: activation tokens, user management and audit log.

Every operation is gated by the capability policy before any network call.
"""

import logging
from typing import Awaitable, Callable, Optional, Union

from opentelemetry import trace

from ..domain.authorization import check_capability
from ..domain.results import OperationResult
from ..exceptions import (
    DashboardError,
    AuthorizationExpiredError,
    PermissionDeniedError,
    SessionRequiredError
)
from ..models.enums import Action, UserRole
from .session import SessionManager

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AdminService:
    """Administration tooling for super and regional administrators."""

    def __init__(self, api_client, session_manager: SessionManager):
        self.api_client = api_client
        self.session_manager = session_manager

    async def _run(
        self,
        action: Action,
        operation: str,
        call: Callable[[], Awaitable],
        target_id: Optional[str] = None
    ) -> OperationResult:
        """
        Gate, execute and convert an administrative call.

        Args:
            action: Capability required
            operation: Operation name for tracing and logs
            call: Zero-argument coroutine factory performing the request
            target_id: Affected entity, for logs

        Returns:
            OperationResult with the call's return value
        """
        with tracer.start_as_current_span(f"admin.{operation}") as span:
            session = self.session_manager.current
            if session is None:
                return OperationResult.failed(SessionRequiredError())

            authorization = check_capability(action, session.role)
            if not authorization.allowed:
                span.set_attribute("admin.result", "denied")
                return OperationResult.failed(PermissionDeniedError(authorization.reason))

            try:
                value = await call()
            except AuthorizationExpiredError as e:
                span.set_attribute("admin.result", "unauthorized")
                self.session_manager.logout(reason="unauthorized")
                return OperationResult.failed(e)
            except DashboardError as e:
                span.set_attribute("admin.result", "failed")
                logger.warning(
                    f"Admin operation failed: {operation}",
                    extra={"operation": operation, "target_id": target_id, "error_type": e.error_type}
                )
                return OperationResult.failed(e)

            span.set_attribute("admin.result", "success")
            logger.info(
                f"Admin operation succeeded: {operation}",
                extra={"operation": operation, "target_id": target_id, "admin": session.username}
            )
            return OperationResult.ok(value)

    async def generate_activation_token(self, role: Union[UserRole, str], region_id: str) -> OperationResult:
        """Issue an activation token granting `role` in `region_id`."""
        return await self._run(
            Action.GENERATE_TOKEN, "generate_token",
            lambda: self.api_client.generate_activation_token(role, region_id),
            target_id=region_id
        )

    async def list_users(self) -> OperationResult:
        return await self._run(Action.MANAGE_USERS, "list_users", self.api_client.list_users)

    def _refuse_self(self, user_id: str, verb: str) -> Optional[OperationResult]:
        session = self.session_manager.current
        if session is not None and session.user_id is not None and session.user_id == user_id:
            return OperationResult.failed(PermissionDeniedError(f"You cannot {verb} your own account"))
        return None

    async def update_user(
        self,
        user_id: str,
        role: Union[UserRole, str],
        region_id: Optional[str] = None
    ) -> OperationResult:
        """Change the role and region of another account."""
        refusal = self._refuse_self(user_id, "change the role of")
        if refusal:
            return refusal
        return await self._run(
            Action.MANAGE_USERS, "update_user",
            lambda: self.api_client.update_user(user_id, role, region_id),
            target_id=user_id
        )

    async def delete_user(self, user_id: str) -> OperationResult:
        """Delete another account."""
        refusal = self._refuse_self(user_id, "delete")
        if refusal:
            return refusal
        return await self._run(
            Action.MANAGE_USERS, "delete_user",
            lambda: self.api_client.delete_user(user_id),
            target_id=user_id
        )

    async def audit_logs(self) -> OperationResult:
        return await self._run(Action.VIEW_AUDIT_LOGS, "audit_logs", self.api_client.get_audit_logs)
