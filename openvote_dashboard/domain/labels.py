# SPDX-License-Identifier: Apache-2.0

"""
Display labels keyed by typed enums.

Every lookup has a defined fallback so unknown values never raise.
"""

from enum import Enum
from typing import Dict, Mapping, Optional, Type, TypeVar, Union

from ..models.enums import ReportStatus, UserRole

E = TypeVar("E", bound=Enum)

STATUS_LABELS: Dict[ReportStatus, str] = {
    ReportStatus.PENDING: "Pending",
    ReportStatus.VERIFIED: "Verified",
    ReportStatus.REJECTED: "Rejected",
}

ROLE_LABELS: Dict[UserRole, str] = {
    UserRole.SUPER_ADMIN: "Super administrator",
    UserRole.REGION_ADMIN: "Regional administrator",
    UserRole.LOCAL_COORD: "Local coordinator",
    UserRole.OBSERVER: "Observer",
    UserRole.VERIFIED_CITIZEN: "Verified citizen",
    UserRole.CITIZEN: "Citizen",
}

INCIDENT_LABELS: Dict[str, str] = {
    "fraud": "Fraud",
    "violence": "Violence",
    "intimidation": "Intimidation",
    "ballot_stuffing": "Ballot stuffing",
    "vote_buying": "Vote buying",
    "logistics": "Logistics",
}

UNKNOWN_LABEL = "Unknown"


def _humanize(value: str) -> str:
    return value.replace("_", " ").strip().capitalize() or UNKNOWN_LABEL


def enum_label(
    value: Union[E, str, None],
    enum_type: Type[E],
    labels: Mapping[E, str],
    fallback: Optional[str] = None
) -> str:
    """
    Look up the label of an enum member.

    Args:
        value: Enum member or its raw value
        enum_type: Enum class the labels are keyed by
        labels: Label table
        fallback: Label for unknown values (defaults to a humanized value)

    Returns:
        Display label
    """
    if value is None:
        return fallback or UNKNOWN_LABEL
    try:
        member = enum_type(value)
    except ValueError:
        return fallback or _humanize(str(value))
    return labels.get(member, fallback or _humanize(member.value))


def status_label(status: Union[ReportStatus, str, None]) -> str:
    return enum_label(status, ReportStatus, STATUS_LABELS)


def role_label(role: Union[UserRole, str, None]) -> str:
    return enum_label(role, UserRole, ROLE_LABELS)


def incident_label(incident_type: Optional[str]) -> str:
    """Incident types are open-ended; unknown codes are humanized."""
    if not incident_type:
        return UNKNOWN_LABEL
    return INCIDENT_LABELS.get(incident_type.lower(), _humanize(incident_type))
