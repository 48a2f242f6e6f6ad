# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the OpenVote monitoring dashboard.
"""

from enum import Enum


class ReportStatus(str, Enum):
    """Incident report triage status."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class UserRole(str, Enum):
    """Roles carried by the authentication credential."""
    SUPER_ADMIN = "super_admin"
    REGION_ADMIN = "region_admin"
    LOCAL_COORD = "local_coord"
    OBSERVER = "observer"
    VERIFIED_CITIZEN = "verified_citizen"
    CITIZEN = "citizen"


class MatchType(str, Enum):
    """Origin of a report/legal article match."""
    AUTO = "auto"
    MANUAL = "manual"


class Action(str, Enum):
    """Actions evaluated by the capability policy."""
    VIEW_REPORTS = "view_reports"
    SUBMIT_REPORT = "submit_report"
    TRIAGE_REPORT = "triage_report"
    QUALIFY_REPORT = "qualify_report"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_USERS = "manage_users"
    GENERATE_TOKEN = "generate_token"
    VIEW_AUDIT_LOGS = "view_audit_logs"


class NoticeLevel(str, Enum):
    """Severity of a user-facing notice."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
