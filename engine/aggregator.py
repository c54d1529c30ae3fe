"""Roll up a month's batches into per-category and per-item revenue/quantity."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from config.defaults import BU_CATEGORIES, NEW_BUSINESS_CATEGORY
from engine.categories import resolve_category
from models.reactor import Reactor

logger = logging.getLogger(__name__)

UNKNOWN_REACTOR = "Unknown"


@dataclass
class CategoryTotals:
    revenue: float = 0.0
    quantity: float = 0.0
    count: int = 0


@dataclass
class ItemSummary:
    name: str
    category: str
    reactor_name: str
    batches: int = 0
    quantity_sum: float = 0.0
    revenue: float = 0.0
    first_start: str = ""
    reactor_ids: List[str] = field(default_factory=list)


@dataclass
class ProductionSummary:
    by_category: Dict[str, CategoryTotals] = field(default_factory=dict)
    by_item: List[ItemSummary] = field(default_factory=list)
    total_revenue: float = 0.0
    total_quantity: float = 0.0


@dataclass
class MonthKpis:
    avg_utilization: float
    running_count: int
    reactor_count: int


def _batch_rows(logs, reactor_names: Dict[str, str]) -> List[dict]:
    rows = []
    for log in logs:
        for batch in log.batches:
            rows.append({
                "batch": batch,
                "reactor_id": log.reactor_id,
                "reactor_name": reactor_names.get(log.reactor_id, UNKNOWN_REACTOR),
                "revenue": batch.revenue,
            })
    # Highest revenue first; ties by earliest start
    rows.sort(key=lambda r: (-r["revenue"], r["batch"].start_date or ""))
    return rows


def filter_orphans(logs: Iterable, reactors: Iterable[Reactor]) -> list:
    """Drop logs whose reactor is no longer in the month's layout."""
    present = {r.reactor_id for r in reactors}
    kept = []
    for log in logs:
        if log.reactor_id in present:
            kept.append(log)
        else:
            logger.warning(
                "Excluding orphaned log for reactor %s in %s", log.reactor_id, log.month
            )
    return kept


def aggregate(logs: Iterable, reactors: Optional[Iterable[Reactor]] = None) -> ProductionSummary:
    """Aggregate batches of the given logs.

    When `reactors` is supplied, logs for reactors outside that layout are excluded.
    """
    logs = list(logs)
    reactor_names = {}
    if reactors is not None:
        reactors = list(reactors)
        logs = filter_orphans(logs, reactors)
        reactor_names = {r.reactor_id: r.name for r in reactors}

    summary = ProductionSummary()
    items: Dict[str, ItemSummary] = {}

    for row in _batch_rows(logs, reactor_names):
        batch = row["batch"]
        category = resolve_category(batch.category).value

        totals = summary.by_category.setdefault(category, CategoryTotals())
        totals.revenue += row["revenue"]
        totals.quantity += batch.quantity
        totals.count += 1

        item = items.get(batch.name)
        if item is None:
            item = ItemSummary(
                name=batch.name,
                category=category,
                reactor_name=row["reactor_name"],
                first_start=batch.start_date or "",
            )
            items[batch.name] = item
        elif row["reactor_name"] not in item.reactor_name.split(", "):
            item.reactor_name = f"{item.reactor_name}, {row['reactor_name']}"
        if row["reactor_id"] not in item.reactor_ids:
            item.reactor_ids.append(row["reactor_id"])
        item.batches += 1
        item.quantity_sum += batch.quantity
        item.revenue += row["revenue"]
        if batch.start_date and (not item.first_start or batch.start_date < item.first_start):
            item.first_start = batch.start_date

        summary.total_revenue += row["revenue"]
        summary.total_quantity += batch.quantity

    summary.by_item = sorted(items.values(), key=lambda i: (-i.revenue, i.first_start))
    return summary


def category_summary_list(summary: ProductionSummary) -> List[dict]:
    rows = [
        {"category": cat, "label": BU_CATEGORIES.get(cat, cat),
         "revenue": t.revenue, "quantity": t.quantity, "count": t.count}
        for cat, t in summary.by_category.items()
    ]
    return sorted(rows, key=lambda r: r["revenue"], reverse=True)


def summary_frames(summary: ProductionSummary) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Category and item tables for display."""
    category_df = pd.DataFrame(
        category_summary_list(summary),
        columns=["category", "label", "revenue", "quantity", "count"],
    ).rename(columns={
        "label": "Category", "revenue": "Revenue (B)",
        "quantity": "Qty (g)", "count": "Batches",
    }).drop(columns=["category"])

    item_df = pd.DataFrame(
        [{
            "Product": i.name or "Unnamed Product",
            "Category": BU_CATEGORIES.get(i.category, i.category),
            "Reactor": i.reactor_name,
            "Batches": i.batches,
            "Qty (g)": i.quantity_sum,
            "Revenue (B)": i.revenue,
            "First Start": i.first_start,
        } for i in summary.by_item],
        columns=["Product", "Category", "Reactor", "Batches", "Qty (g)", "Revenue (B)", "First Start"],
    )
    return category_df, item_df


def month_kpis(views: Iterable, reactor_count: int) -> MonthKpis:
    """Average utilization over all reactors in the layout and running count."""
    views = list(views)
    total_util = sum(v.utilization_pct for v in views)
    avg = total_util / reactor_count if reactor_count > 0 else 0.0
    running = sum(1 for v in views if v.status.value == "Running")
    return MonthKpis(avg_utilization=avg, running_count=running, reactor_count=reactor_count)


def revenue_by_business_unit(logs: Iterable) -> Dict[str, float]:
    """Revenue per core business unit; custom tags are booked under new business."""
    revenue = {cat: 0.0 for cat in BU_CATEGORIES}
    for log in logs:
        for batch in log.batches:
            tag = resolve_category(batch.category)
            key = tag.value if tag.is_known else NEW_BUSINESS_CATEGORY
            revenue[key] += batch.revenue
    return revenue
