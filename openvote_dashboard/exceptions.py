# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Exception taxonomy for the dashboard core.

Every failure raised by the API client or detected client-side is one of these
types. Components convert them into result values at their boundary.
"""

from typing import Any, Dict, List, Optional


class DashboardError(Exception):
    """Base class for dashboard exceptions."""

    def __init__(self, message: str, error_type: str = "dashboard-error", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code


class TransientNetworkError(DashboardError):
    """Remote call failed for any reason other than an expired credential."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, "transient-network-error", status_code)


class AuthorizationExpiredError(DashboardError):
    """The backend answered 401 on an authenticated call."""

    def __init__(self, message: str = "Session expired or credential rejected"):
        super().__init__(message, "authorization-expired", 401)


class AuthenticationError(DashboardError):
    """Login, registration or enrolment was rejected by the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, "authentication-failed", status_code)


class PermissionDeniedError(DashboardError):
    """The acting role may not perform the requested action."""

    def __init__(self, message: str):
        super().__init__(message, "permission-denied", 403)


class InvalidStateTransitionError(DashboardError):
    """The report is not in a state that allows the requested transition."""

    def __init__(self, message: str):
        super().__init__(message, "invalid-state-transition", 409)


class ValidationException(DashboardError):
    """Input rejected before submission."""

    def __init__(self, message: str, validation_errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, "validation-error", 422)
        self.validation_errors = validation_errors or []

    @classmethod
    def from_pydantic(cls, error, message: str = "Invalid input") -> "ValidationException":
        """
        Build from a pydantic ValidationError.

        Args:
            error: pydantic ValidationError
            message: Summary message

        Returns:
            ValidationException listing field and message per error
        """
        details = [
            {
                "field": ".".join(str(part) for part in item.get("loc", ())),
                "message": item.get("msg", ""),
            }
            for item in error.errors()
        ]
        return cls(message, details)


class TransitionFailedError(DashboardError):
    """The backend refused or failed a status transition."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, "transition-failed", status_code)


class QualificationError(DashboardError):
    """The legal qualification request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, "qualification-failed", status_code)


class SessionRequiredError(DashboardError):
    """An operation needs an authenticated session and none is active."""

    def __init__(self, message: str = "No active session"):
        super().__init__(message, "session-required", 401)
