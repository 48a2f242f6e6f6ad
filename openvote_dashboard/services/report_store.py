# SPDX-License-Identifier: Apache-2.0

"""
In-memory report snapshot.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..domain.reports import filter_by_status, search_reports
from ..models.entities import Report
from ..models.enums import ReportStatus

logger = logging.getLogger(__name__)

ChangeListener = Callable[["ReportStore"], None]


class ReportStore:
    """
    Current report snapshot keyed by report id.

    The snapshot is only ever swapped as a whole. Only the sync scheduler
    writes to it; everything else reads.
    """

    def __init__(self):
        self._reports: Dict[str, Report] = {}
        self._listeners: List[ChangeListener] = []
        self.version = 0

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self)

    def replace_all(self, records: Iterable[Report]) -> None:
        """
        Swap the whole snapshot.

        Duplicate ids keep the last record received.
        """
        snapshot: Dict[str, Report] = {}
        for report in records:
            if report.id in snapshot:
                logger.warning("Duplicate report id in snapshot", extra={"report_id": report.id})
            snapshot[report.id] = report
        self._reports = snapshot
        logger.debug("Report snapshot replaced", extra={"report_count": len(snapshot)})
        self._notify()

    def clear(self) -> None:
        self._reports = {}
        self._notify()

    def get(self, report_id: str) -> Optional[Report]:
        return self._reports.get(report_id)

    def all(self) -> List[Report]:
        return list(self._reports.values())

    def filter(self, status: Optional[Union[ReportStatus, str]] = None) -> List[Report]:
        """Reports with the given status, or every report when status is None."""
        return filter_by_status(self._reports.values(), status)

    def search(self, query: Optional[str]) -> List[Report]:
        """Case-insensitive search on incident type, description, observer and id."""
        return search_reports(self._reports.values(), query)

    def __len__(self) -> int:
        return len(self._reports)

    def __contains__(self, report_id: str) -> bool:
        return report_id in self._reports
