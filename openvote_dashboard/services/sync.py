# SPDX-License-Identifier: Apache-2.0

"""
Periodic report synchronization.

The scheduler counts down a fixed number of time units and refreshes the
report store when the countdown reaches zero. A manual refresh is an
out-of-band tick that also resets the countdown.

Fetches may overlap when a manual refresh races a scheduled one. Each fetch
carries a sequence number taken when it is issued, and only the response of
the most recently issued fetch is applied; an older response arriving late is
discarded. After `stop()` every in-flight response is discarded.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Union

from opentelemetry import trace

from ..exceptions import DashboardError, AuthorizationExpiredError, ValidationException
from ..models.enums import ReportStatus
from .report_store import ReportStore
from .session import SessionManager

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 15


class SyncScheduler:
    """Drives the periodic refresh of a ReportStore."""

    def __init__(
        self,
        api_client,
        store: ReportStore,
        session_manager: SessionManager,
        interval: int = DEFAULT_REFRESH_INTERVAL,
        tick_seconds: float = 1.0
    ):
        """
        Initialize the scheduler.

        Args:
            api_client: OpenVoteAPIClient used to fetch reports
            store: Store replaced on each successful fetch
            session_manager: Session checked before fetching and logged out on 401
            interval: Countdown length in time units
            tick_seconds: Duration of one time unit
        """
        if interval <= 0:
            raise ValueError("Refresh interval must be positive")
        self.api_client = api_client
        self.store = store
        self.session_manager = session_manager
        self.interval = interval
        self.tick_seconds = tick_seconds

        self._countdown = interval
        self._status_filter: Optional[ReportStatus] = None
        self._issued = 0
        self._closed = False
        self._task: Optional[asyncio.Task] = None

        self.last_synced_at: Optional[datetime] = None
        self.last_error: Optional[DashboardError] = None

    @property
    def countdown(self) -> int:
        """Time units left before the next scheduled refresh."""
        return self._countdown

    @property
    def status_filter(self) -> Optional[ReportStatus]:
        return self._status_filter

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def set_status_filter(self, status: Optional[Union[ReportStatus, str]]) -> bool:
        """
        Change the active status filter and refresh immediately.

        Returns:
            True if the store was replaced; False with `last_error` set when
            the status is unknown
        """
        try:
            self._status_filter = ReportStatus(status) if status else None
        except ValueError:
            self.last_error = ValidationException(f"Unknown report status: {status}")
            logger.warning("Ignoring unknown status filter", extra={"status_filter": str(status)})
            return False
        return await self.refresh()

    async def refresh(self) -> bool:
        """
        Fetch reports now and replace the store.

        The countdown is reset whatever the outcome. A 401 logs the session
        out; any other failure is recorded and left to the next tick.

        Returns:
            True if the store was replaced
        """
        if self._closed:
            return False

        self._countdown = self.interval
        self._issued += 1
        sequence = self._issued
        status = self._status_filter

        with tracer.start_as_current_span("sync.refresh") as span:
            span.set_attributes({
                "sync.sequence": sequence,
                "sync.status_filter": status.value if status else "all"
            })

            try:
                reports = await self.api_client.list_reports(status)
            except AuthorizationExpiredError:
                span.set_attribute("sync.result", "unauthorized")
                if not self._closed:
                    logger.warning("Report sync rejected the credential, logging out")
                    self.session_manager.logout(reason="unauthorized")
                return False
            except DashboardError as e:
                span.set_attribute("sync.result", "failed")
                if not self._closed and sequence == self._issued:
                    self.last_error = e
                    logger.warning(
                        f"Report sync failed: {e.message}",
                        extra={"sequence": sequence, "error_type": e.error_type}
                    )
                return False

            if self._closed:
                span.set_attribute("sync.result", "discarded")
                logger.debug("Discarding sync response after teardown", extra={"sequence": sequence})
                return False

            if sequence != self._issued:
                span.set_attribute("sync.result", "stale")
                logger.debug(
                    "Discarding stale sync response",
                    extra={"sequence": sequence, "latest_sequence": self._issued}
                )
                return False

            self.store.replace_all(reports)
            self.last_synced_at = self.session_manager.clock()
            self.last_error = None
            span.set_attributes({"sync.result": "applied", "sync.report_count": len(reports)})
            return True

    async def step(self) -> bool:
        """
        Advance the countdown by one time unit.

        When the countdown reaches zero, the session is checked and a refresh
        is issued.

        Returns:
            True if a refresh replaced the store
        """
        if self._closed:
            return False

        self._countdown -= 1
        if self._countdown > 0:
            return False

        self._countdown = self.interval
        if not self.session_manager.is_authenticated():
            logger.info("No valid session at sync time, skipping fetch")
            return False
        return await self.refresh()

    async def _run(self) -> None:
        await self.refresh()
        while not self._closed:
            await asyncio.sleep(self.tick_seconds)
            try:
                await self.step()
            except Exception:
                logger.exception("Unexpected error during report sync")

    def start(self) -> asyncio.Task:
        """
        Start the repeating refresh task on the running event loop.

        An immediate refresh is issued, then one countdown step per time unit.
        """
        if self._closed:
            raise RuntimeError("Scheduler has been stopped")
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info(
                "Report sync started",
                extra={"interval": self.interval, "tick_seconds": self.tick_seconds}
            )
        return self._task

    def stop(self) -> None:
        """Cancel the refresh timer; in-flight responses are discarded on arrival."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Report sync stopped")

    async def wait_closed(self) -> None:
        """Wait for the refresh task to finish after `stop()`."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
