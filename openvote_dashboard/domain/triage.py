# SPDX-License-Identifier: Apache-2.0

"""
Report triage workflow rules.

Only two one-way transitions exist: pending -> verified and pending -> rejected.
Verified and rejected are terminal on the client.
"""

from typing import Dict, FrozenSet, List, Optional, Union
from dataclasses import dataclass, field

from ..models.entities import Report
from ..models.enums import Action, ReportStatus, UserRole
from .authorization import check_capability


TRANSITIONS: Dict[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.VERIFIED, ReportStatus.REJECTED}),
    ReportStatus.VERIFIED: frozenset(),
    ReportStatus.REJECTED: frozenset(),
}


@dataclass
class TransitionCheck:
    """Outcome of a client-side transition check."""
    allowed: bool
    errors: List[str] = field(default_factory=list)
    permission_denied: bool = False


def is_terminal(status: ReportStatus) -> bool:
    return not TRANSITIONS.get(status)


def can_transition(current: ReportStatus, target: ReportStatus) -> bool:
    """Check if `current -> target` is a defined transition."""
    return target in TRANSITIONS.get(current, frozenset())


def check_transition(
    report: Optional[Report],
    target: Union[ReportStatus, str],
    acting_role: Union[UserRole, str, None]
) -> TransitionCheck:
    """
    Validate a requested transition without touching the network.

    The role is checked first, then the report state.

    Args:
        report: Report from the current snapshot, None if unknown
        target: Requested status
        acting_role: Role of the requesting user

    Returns:
        TransitionCheck with the refusal reason when not allowed
    """
    authorization = check_capability(Action.TRIAGE_REPORT, acting_role)
    if not authorization.allowed:
        return TransitionCheck(allowed=False, errors=[authorization.reason], permission_denied=True)

    try:
        target_status = ReportStatus(target)
    except ValueError:
        return TransitionCheck(allowed=False, errors=[f"Unknown status: {target}"])

    if report is None:
        return TransitionCheck(allowed=False, errors=["Report is not in the current snapshot"])

    if report.status != ReportStatus.PENDING:
        return TransitionCheck(
            allowed=False,
            errors=[f"Report cannot be triaged (current status: {report.status.value})"]
        )

    if not can_transition(report.status, target_status):
        return TransitionCheck(
            allowed=False,
            errors=[f"Transition {report.status.value} -> {target_status.value} is not defined"]
        )

    return TransitionCheck(allowed=True)
