"""Generates human-readable explanations for a reactor's monthly utilization."""

from typing import List

from engine.utilization import clip_to_month, merge_intervals
from models.batch import Batch
from models.month import days_in_month


def explain_utilization(batches: List[Batch], month: str) -> List[str]:
    """Produce step-by-step explanation of how the utilization figure was derived."""
    steps = []
    total_days = days_in_month(month)

    clipped = []
    skipped = 0
    for batch in batches:
        interval = clip_to_month(batch, month)
        if interval is None:
            skipped += 1
        else:
            clipped.append(interval)

    steps.append(
        f"Step 1 - Clip to {month}: {len(clipped)} of {len(batches)} batches fall inside "
        f"the month's {total_days} days"
        + (f" ({skipped} ignored: no overlap or unreadable dates)" if skipped else "")
    )

    if not clipped:
        steps.append("Step 2 - No scheduled days => utilization 0.0%")
        return steps

    merged = merge_intervals(clipped)
    ranges = ", ".join(f"{s}-{e}" for s, e in merged)
    steps.append(
        f"Step 2 - Merge overlapping/adjacent ranges: {len(clipped)} => {len(merged)} "
        f"(days {ranges})"
    )

    occupied = sum(e - s + 1 for s, e in merged)
    steps.append(
        f"Step 3 - Occupied days: {occupied} / {total_days} "
        f"=> utilization {occupied / total_days * 100:.1f}%"
    )
    return steps
