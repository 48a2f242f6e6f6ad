# SPDX-License-Identifier: Apache-2.0

"""
Report statistics.

Pure functions over a report snapshot. The same snapshot always yields the
same output; ties are broken by first-encountered order.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ..models.entities import Report, IncidentCount, ObserverCount, AggregateView
from ..models.enums import ReportStatus

HOURS_PER_DAY = 24
LEADERBOARD_SIZE = 5
RECENT_REPORTS = 10


def _ranked(counter: Counter) -> List:
    # Counter keeps insertion order and sorted() is stable
    return sorted(counter.items(), key=lambda item: item[1], reverse=True)


def incident_breakdown(reports: Iterable[Report]) -> List[IncidentCount]:
    """
    Count reports per incident type, sorted by descending count.

    Args:
        reports: Report snapshot

    Returns:
        List of IncidentCount
    """
    counter = Counter(report.incident_type for report in reports)
    return [IncidentCount(incident_type=name, count=count) for name, count in _ranked(counter)]


def hourly_histogram(reports: Iterable[Report]) -> List[int]:
    """
    Count reports per hour of day (24 buckets).

    Reports with a missing or malformed timestamp are left out.
    """
    buckets = [0] * HOURS_PER_DAY
    for report in reports:
        created = report.created_datetime()
        if created is None:
            continue
        buckets[created.hour] += 1
    return buckets


def observer_leaderboard(reports: Iterable[Report], limit: int = LEADERBOARD_SIZE) -> List[ObserverCount]:
    """
    Top observers by report count.

    Args:
        reports: Report snapshot
        limit: Number of observers to keep

    Returns:
        List of ObserverCount, ties in first-encountered order
    """
    counter = Counter(report.observer_id for report in reports)
    return [ObserverCount(observer_id=oid, count=count) for oid, count in _ranked(counter)[:limit]]


def status_totals(reports: Iterable[Report]) -> Dict[str, int]:
    """Count reports per status; every status is present."""
    totals = {status.value: 0 for status in ReportStatus}
    for report in reports:
        totals[report.status.value] += 1
    return totals


def count_recent(reports: Iterable[Report], now: datetime, window: timedelta = timedelta(hours=24)) -> int:
    """Count reports created less than `window` before `now`."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    count = 0
    for report in reports:
        created = report.created_datetime()
        if created is None:
            continue
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        if now - created < window:
            count += 1
    return count


def build_aggregate_view(reports: Iterable[Report], now: Optional[datetime] = None) -> AggregateView:
    """
    Compute every statistic for a snapshot.

    Args:
        reports: Report snapshot
        now: Reference time for the 24h window (defaults to current UTC time)

    Returns:
        AggregateView
    """
    snapshot = list(reports)
    now = now or datetime.now(timezone.utc)

    return AggregateView(
        total=len(snapshot),
        last_24h=count_recent(snapshot, now),
        unique_observers=len({report.observer_id for report in snapshot}),
        status_totals=status_totals(snapshot),
        incident_breakdown=incident_breakdown(snapshot),
        hourly_histogram=hourly_histogram(snapshot),
        top_observers=observer_leaderboard(snapshot),
        recent_reports=snapshot[:RECENT_REPORTS]
    )
