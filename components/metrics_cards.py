"""KPI cards and notice rendering for the production chapter."""

import streamlit as st

from engine.aggregator import MonthKpis, ProductionSummary
from models.audit import Notice


def render_metric_row(metrics: list[dict]):
    """Render a row of metric cards.

    Each metric dict should have: label, value, and optionally delta, delta_color.
    """
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        with col:
            st.metric(
                label=m["label"],
                value=m["value"],
                delta=m.get("delta"),
                delta_color=m.get("delta_color", "normal"),
            )


def render_month_kpis(kpis: MonthKpis, summary: ProductionSummary):
    render_metric_row([
        {"label": "Avg Util", "value": f"{kpis.avg_utilization:.1f}%"},
        {"label": "Running", "value": f"{kpis.running_count} / {kpis.reactor_count}"},
        {"label": "Est. Revenue (B)", "value": f"{summary.total_revenue:,.3f}"},
        {"label": "Total Qty (g)", "value": f"{summary.total_quantity:,.0f}"},
    ])


def render_notice(notice: Notice):
    """Non-fatal notices: persistence failures never interrupt editing."""
    if notice.level == "error":
        st.error(notice.message, icon="🔴")
    elif notice.level == "warning":
        st.warning(notice.message, icon="🟡")
    elif notice.level == "success":
        st.success(notice.message, icon="🟢")
    else:
        st.info(notice.message, icon="🔵")
