# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pydantic models for the OpenVote monitoring dashboard.
"""

from .enums import ReportStatus, UserRole, MatchType, Action, NoticeLevel
from .entities import (
    GeoPoint,
    Report,
    AuthSession,
    LegalMatch,
    ManagedUser,
    AuditLogEntry,
    IncidentCount,
    ObserverCount,
    AggregateView,
    parse_timestamp
)
from .requests import (
    CredentialsRequest,
    RegisterRequest,
    EnrollRequest,
    StatusUpdateRequest,
    ReportSubmission,
    UploadURLRequest,
    GenerateTokenRequest,
    UpdateUserRequest
)

__all__ = [
    # Enums
    "ReportStatus",
    "UserRole",
    "MatchType",
    "Action",
    "NoticeLevel",

    # Entities
    "GeoPoint",
    "Report",
    "AuthSession",
    "LegalMatch",
    "ManagedUser",
    "AuditLogEntry",
    "IncidentCount",
    "ObserverCount",
    "AggregateView",
    "parse_timestamp",

    # Requests
    "CredentialsRequest",
    "RegisterRequest",
    "EnrollRequest",
    "StatusUpdateRequest",
    "ReportSubmission",
    "UploadURLRequest",
    "GenerateTokenRequest",
    "UpdateUserRequest",
]
