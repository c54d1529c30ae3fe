"""Standard monthly utilization: union of batch day-intervals over the month length."""

import logging
from typing import Iterable, List, Optional, Tuple

from engine.errors import UtilizationInvariantError
from models.batch import Batch
from models.month import month_bounds, parse_date

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


def clip_to_month(batch: Batch, month: str) -> Optional[Interval]:
    """Clip a batch to the month window as a closed 1-indexed day interval.

    Returns None when the dates are unparseable, reversed, or do not touch the month.
    """
    start = parse_date(batch.start_date)
    end = parse_date(batch.end_date)
    if start is None or end is None or end < start:
        return None

    month_start, month_end = month_bounds(month)
    if end < month_start or start > month_end:
        return None

    effective_start = max(start, month_start)
    effective_end = min(end, month_end)
    return effective_start.day, effective_end.day


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping or adjacent day intervals (start <= running_end + 1)."""
    ordered = sorted(intervals)
    if not ordered:
        return []

    merged = []
    current_start, current_end = ordered[0]
    for start, end in ordered[1:]:
        if start <= current_end + 1:
            current_end = max(current_end, end)
        else:
            merged.append((current_start, current_end))
            current_start, current_end = start, end
    merged.append((current_start, current_end))
    return merged


def occupied_days(batches: Iterable[Batch], month: str) -> int:
    """Distinct calendar days of the month covered by at least one batch."""
    intervals = []
    for batch in batches or []:
        interval = clip_to_month(batch, month)
        if interval is not None:
            intervals.append(interval)
    return sum(end - start + 1 for start, end in merge_intervals(intervals))


def utilization(batches: Iterable[Batch], month: str) -> float:
    """Utilization % of the month, full precision and deliberately not capped at 100."""
    batches = list(batches or [])
    if not batches:
        return 0.0
    try:
        month_start, month_end = month_bounds(month)
    except ValueError:
        logger.warning("Cannot compute utilization for invalid month %r", month)
        return 0.0

    total_days = month_end.day
    occupied = occupied_days(batches, month)
    if occupied < 0 or occupied > total_days:
        logger.error(
            "Utilization invariant violated for %s: %d occupied of %d days",
            month, occupied, total_days,
        )
        raise UtilizationInvariantError(
            f"{occupied} occupied days outside [0, {total_days}] for {month}"
        )
    return occupied / total_days * 100


def format_utilization(value: float) -> str:
    return f"{value:.1f}%"
