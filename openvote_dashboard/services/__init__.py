# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - backend access and session-scoped state.
"""

from .api_client import OpenVoteAPIClient
from .session import SessionManager, MemorySessionStorage, session_from_token, decode_credential
from .report_store import ReportStore
from .sync import SyncScheduler
from .triage import TriageStateMachine
from .analytics import AnalyticsAggregator
from .legal import LegalMatchAdapter
from .admin import AdminService
from .dashboard import Dashboard, Workspace

__all__ = [
    "OpenVoteAPIClient",
    "SessionManager",
    "MemorySessionStorage",
    "session_from_token",
    "decode_credential",
    "ReportStore",
    "SyncScheduler",
    "TriageStateMachine",
    "AnalyticsAggregator",
    "LegalMatchAdapter",
    "AdminService",
    "Dashboard",
    "Workspace"
]
