# SPDX-License-Identifier: Apache-2.0

"""
Report triage state machine.

Validates a requested status transition client-side, delegates it to the
backend, then resynchronizes the whole store so the client converges to the
server's state. There is no optimistic local mutation.
"""

import logging
from typing import Optional, Union

from opentelemetry import trace

from ..domain.results import OperationResult, Notice
from ..domain.labels import status_label
from ..domain.triage import check_transition
from ..exceptions import (
    DashboardError,
    AuthorizationExpiredError,
    PermissionDeniedError,
    InvalidStateTransitionError,
    SessionRequiredError,
    TransitionFailedError
)
from ..models.enums import ReportStatus, UserRole, NoticeLevel
from .report_store import ReportStore
from .session import SessionManager
from .sync import SyncScheduler

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class TriageStateMachine:
    """Issues pending -> verified / pending -> rejected transitions."""

    def __init__(
        self,
        api_client,
        store: ReportStore,
        scheduler: SyncScheduler,
        session_manager: SessionManager
    ):
        self.api_client = api_client
        self.store = store
        self.scheduler = scheduler
        self.session_manager = session_manager

    async def request_transition(
        self,
        report_id: str,
        new_status: Union[ReportStatus, str],
        acting_role: Optional[Union[UserRole, str]] = None
    ) -> OperationResult:
        """
        Request a status transition for a report.

        Args:
            report_id: Report to triage
            new_status: verified or rejected
            acting_role: Role of the requester (defaults to the session's role)

        Returns:
            OperationResult; on failure `error` is a PermissionDeniedError,
            InvalidStateTransitionError, TransitionFailedError,
            AuthorizationExpiredError or SessionRequiredError
        """
        with tracer.start_as_current_span("triage.request_transition") as span:
            span.set_attributes({
                "report.id": report_id,
                "triage.target_status": str(getattr(new_status, "value", new_status))
            })

            if acting_role is None:
                session = self.session_manager.current
                if session is None:
                    return OperationResult.failed(SessionRequiredError())
                acting_role = session.role

            check = check_transition(self.store.get(report_id), new_status, acting_role)
            if not check.allowed:
                message = "; ".join(check.errors)
                span.set_attribute("triage.result", "denied" if check.permission_denied else "invalid")
                logger.info(
                    f"Transition refused: {message}",
                    extra={"report_id": report_id, "acting_role": str(acting_role)}
                )
                if check.permission_denied:
                    return OperationResult.failed(PermissionDeniedError(message))
                return OperationResult.failed(InvalidStateTransitionError(message))

            target = ReportStatus(new_status)
            try:
                await self.api_client.update_report_status(report_id, target)
            except AuthorizationExpiredError as e:
                span.set_attribute("triage.result", "unauthorized")
                self.session_manager.logout(reason="unauthorized")
                return OperationResult.failed(e)
            except DashboardError as e:
                span.set_attribute("triage.result", "failed")
                logger.warning(
                    f"Transition failed: {e.message}",
                    extra={"report_id": report_id, "target_status": target.value}
                )
                return OperationResult.failed(TransitionFailedError(e.message, e.status_code))

            span.set_attribute("triage.result", "applied")
            logger.info(
                "Report status updated",
                extra={"report_id": report_id, "target_status": target.value, "acting_role": str(acting_role)}
            )

            await self.scheduler.refresh()
            return OperationResult.ok(
                value=target,
                notice=Notice(level=NoticeLevel.INFO, message=f"Report marked {status_label(target).lower()}")
            )

    async def verify(self, report_id: str, acting_role: Optional[Union[UserRole, str]] = None) -> OperationResult:
        return await self.request_transition(report_id, ReportStatus.VERIFIED, acting_role)

    async def reject(self, report_id: str, acting_role: Optional[Union[UserRole, str]] = None) -> OperationResult:
        return await self.request_transition(report_id, ReportStatus.REJECTED, acting_role)
