# SPDX-License-Identifier: Apache-2.0

"""
Result values returned at component boundaries.

Failures are converted into typed errors carried by a result instead of
propagating to the presentation layer. Each error maps to the notice the
interface shows; an expired authorization maps to none, the user is simply
returned to the unauthenticated view.
"""

from typing import Any, List, Optional
from dataclasses import dataclass, field

from ..exceptions import (
    DashboardError,
    AuthorizationExpiredError,
    ValidationException,
    PermissionDeniedError,
    InvalidStateTransitionError
)
from ..models.entities import LegalMatch
from ..models.enums import NoticeLevel


@dataclass(frozen=True)
class Notice:
    """Transient notification for the interface."""
    level: NoticeLevel
    message: str
    dismissable: bool = True


def notice_for_error(error: Optional[DashboardError]) -> Optional[Notice]:
    """
    Map an error to the notice shown to the user.

    Args:
        error: Error carried by a result

    Returns:
        Notice, or None when nothing should be shown
    """
    if error is None or isinstance(error, AuthorizationExpiredError):
        return None
    if isinstance(error, ValidationException):
        details = "; ".join(
            f"{item['field']}: {item['message']}" if item.get('field') else item['message']
            for item in error.validation_errors
        )
        message = f"{error.message}: {details}" if details else error.message
        return Notice(level=NoticeLevel.WARNING, message=message)
    if isinstance(error, (PermissionDeniedError, InvalidStateTransitionError)):
        return Notice(level=NoticeLevel.WARNING, message=error.message)
    return Notice(level=NoticeLevel.ERROR, message=error.message)


@dataclass
class OperationResult:
    """Result of a dashboard operation."""
    success: bool
    value: Any = None
    error: Optional[DashboardError] = None
    notice: Optional[Notice] = None

    @classmethod
    def ok(cls, value: Any = None, notice: Optional[Notice] = None) -> "OperationResult":
        return cls(success=True, value=value, notice=notice)

    @classmethod
    def failed(cls, error: DashboardError) -> "OperationResult":
        return cls(success=False, error=error, notice=notice_for_error(error))

    @property
    def error_type(self) -> Optional[str]:
        return self.error.error_type if self.error else None


NO_MATCH_MESSAGE = "No legal article matches this report"


@dataclass
class QualificationResult(OperationResult):
    """Result of a legal qualification request."""
    report_id: Optional[str] = None
    matches: List[LegalMatch] = field(default_factory=list)

    @property
    def no_match(self) -> bool:
        """True for a successful request that found nothing."""
        return self.success and not self.matches
