# SPDX-License-Identifier: Apache-2.0

"""
Aggregate statistics kept in step with the report store.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..domain.analytics import build_aggregate_view
from ..models.entities import AggregateView
from .report_store import ReportStore

logger = logging.getLogger(__name__)


class AnalyticsAggregator:
    """Recomputes the AggregateView whenever the store changes."""

    def __init__(self, store: ReportStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock
        self.view = AggregateView()
        store.subscribe(self._on_store_change)

    def _on_store_change(self, store: ReportStore) -> None:
        self.view = self.compute(store)

    def compute(self, store: Optional[ReportStore] = None) -> AggregateView:
        """Derive statistics from a store snapshot."""
        if store is None:
            store = self.store
        now = self.clock() if self.clock else None
        return build_aggregate_view(store.all(), now)

    def detach(self) -> None:
        self.store.unsubscribe(self._on_store_change)
