"""Tab 3: Production Summary — revenue and quantity by category and product."""

import streamlit as st

from components.charts import category_revenue_donut, utilization_bar
from components.tables import render_category_table
from config.defaults import BU_CATEGORIES
from data.session_store import get_scheduler, set_edit_session
from engine.aggregator import category_summary_list, summary_frames


def render(sidebar_state):
    """Render the Production Summary tab."""
    month = sidebar_state.month
    scheduler = get_scheduler()
    view = scheduler.month_view(month)
    summary = view.summary

    st.header(f"Monthly Summary ({month})")

    col1, col2 = st.columns(2)
    col1.metric("Est. Revenue (B)", f"{summary.total_revenue:,.3f}")
    col2.metric("Total Qty (g)", f"{summary.total_quantity:,.0f}")

    if not summary.by_item:
        st.info("No production planned.")
        return

    category_rows = category_summary_list(summary)
    category_df, item_df = summary_frames(summary)

    col_chart, col_table = st.columns([2, 3])
    with col_chart:
        st.plotly_chart(category_revenue_donut(category_rows), use_container_width=True)
    with col_table:
        st.subheader("Category Breakdown")
        render_category_table(category_df)

    st.divider()
    st.subheader("Products")
    render_category_table(item_df)

    names = {r.reactor_id: r.name for r in view.reactors}
    with st.expander("Open a product's reactor"):
        for item in summary.by_item:
            label = BU_CATEGORIES.get(item.category, item.category)
            for reactor_id in item.reactor_ids:
                if st.button(
                    f"{item.name or 'Unnamed Product'} · {label} · {names.get(reactor_id, reactor_id)}",
                    key=f"open_{item.name}_{reactor_id}",
                ):
                    set_edit_session(scheduler.open_editor(month, reactor_id))
                    st.rerun()

    st.divider()
    st.plotly_chart(utilization_bar(view.logs, view.reactors), use_container_width=True)

    st.subheader("Revenue by Business Unit")
    st.caption("Feeds the P&L chapter; custom categories are booked under 신사업.")
    bu = scheduler.business_unit_revenue(month)
    st.dataframe(
        {"Business Unit": [BU_CATEGORIES[k] for k in bu], "Revenue (B)": [round(v, 3) for v in bu.values()]},
        use_container_width=True, hide_index=True,
    )
