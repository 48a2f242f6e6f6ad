# SPDX-License-Identifier: Apache-2.0

"""
Legal qualification of a selected report.
"""

import logging
from typing import List, Optional

from opentelemetry import trace

from ..domain.authorization import check_capability
from ..domain.results import QualificationResult, Notice, NO_MATCH_MESSAGE, notice_for_error
from ..exceptions import (
    DashboardError,
    AuthorizationExpiredError,
    PermissionDeniedError,
    QualificationError,
    SessionRequiredError,
    ValidationException
)
from ..models.entities import LegalMatch
from ..models.enums import Action, NoticeLevel
from .session import SessionManager

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class LegalMatchAdapter:
    """
    Holds the ranked legal matches of the selected report.

    `matches` is None until a qualification has been requested for the
    selection; an empty list is an explicit "no match" outcome. Results are
    replaced wholesale on every request and cleared when the selection
    changes or the panel closes.
    """

    def __init__(self, api_client, session_manager: SessionManager):
        self.api_client = api_client
        self.session_manager = session_manager
        self.selected_report_id: Optional[str] = None
        self.matches: Optional[List[LegalMatch]] = None
        self._issued = 0

    def select(self, report_id: Optional[str]) -> None:
        if report_id != self.selected_report_id:
            self._issued += 1
            self.selected_report_id = report_id
            self.matches = None

    def close(self) -> None:
        self._issued += 1
        self.selected_report_id = None
        self.matches = None

    def _failed(self, report_id: Optional[str], error: DashboardError) -> QualificationResult:
        return QualificationResult(
            success=False,
            error=error,
            notice=notice_for_error(error),
            report_id=report_id
        )

    async def qualify(self, report_id: Optional[str] = None) -> QualificationResult:
        """
        Request legal article matches for a report.

        Args:
            report_id: Report to qualify (defaults to the selected report);
                selects it when different

        Returns:
            QualificationResult with matches sorted by descending similarity
        """
        report_id = report_id or self.selected_report_id
        if not report_id:
            return self._failed(None, ValidationException("No report selected for qualification"))
        self.select(report_id)
        self._issued += 1
        sequence = self._issued

        with tracer.start_as_current_span("legal.qualify") as span:
            span.set_attribute("report.id", report_id)

            session = self.session_manager.current
            if session is None:
                return self._failed(report_id, SessionRequiredError())

            authorization = check_capability(Action.QUALIFY_REPORT, session.role)
            if not authorization.allowed:
                span.set_attribute("legal.result", "denied")
                return self._failed(report_id, PermissionDeniedError(authorization.reason))

            try:
                matches = await self.api_client.qualify_report(report_id)
            except AuthorizationExpiredError as e:
                span.set_attribute("legal.result", "unauthorized")
                self.session_manager.logout(reason="unauthorized")
                return self._failed(report_id, e)
            except DashboardError as e:
                span.set_attribute("legal.result", "failed")
                logger.warning(f"Qualification failed: {e.message}", extra={"report_id": report_id})
                return self._failed(report_id, QualificationError(e.message, e.status_code))

            ranked = sorted(matches, key=lambda match: match.similarity_score, reverse=True)

            if sequence != self._issued:
                # A newer request, selection change or close happened in flight
                span.set_attribute("legal.result", "discarded")
                return QualificationResult(success=True, report_id=report_id, matches=ranked)

            self.matches = ranked
            span.set_attributes({"legal.result": "applied", "legal.match_count": len(ranked)})
            logger.info("Report qualified", extra={"report_id": report_id, "match_count": len(ranked)})

            notice = None
            if not ranked:
                notice = Notice(level=NoticeLevel.INFO, message=NO_MATCH_MESSAGE)
            return QualificationResult(success=True, report_id=report_id, matches=ranked, notice=notice)
