# SPDX-License-Identifier: Apache-2.0

"""
Report filtering and search.
"""

from typing import Iterable, List, Optional, Union

from ..models.entities import Report
from ..models.enums import ReportStatus

SEARCH_FIELDS = ("incident_type", "description", "observer_id", "id")


def filter_by_status(reports: Iterable[Report], status: Optional[Union[ReportStatus, str]] = None) -> List[Report]:
    """
    Keep reports with the given status, or all reports when status is None.

    Raises:
        ValueError: If status is not a known report status
    """
    if status is None:
        return list(reports)
    wanted = ReportStatus(status)
    return [report for report in reports if report.status == wanted]


def matches_query(report: Report, query: str) -> bool:
    """Case-insensitive substring match on the searchable fields."""
    needle = query.lower()
    for field_name in SEARCH_FIELDS:
        value = getattr(report, field_name)
        if value and needle in str(value).lower():
            return True
    return False


def search_reports(reports: Iterable[Report], query: Optional[str]) -> List[Report]:
    """
    Search reports by incident type, description, observer and id.

    An empty query matches every report.
    """
    if not query:
        return list(reports)
    return [report for report in reports if matches_query(report, query)]
