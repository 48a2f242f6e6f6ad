# SPDX-License-Identifier: Apache-2.0

"""
OpenVote dashboard core.

Session, report synchronization and triage engine consumed by the
monitoring dashboard's presentation layer.
"""

from .config import DashboardConfig
from .services import Dashboard, Workspace

__version__ = "1.0.0"

__all__ = ["DashboardConfig", "Dashboard", "Workspace", "__version__"]
