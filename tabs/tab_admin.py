"""Tab 4: Admin — schedule upload, month maintenance, ledger, audit trail."""

import streamlit as st
import pandas as pd

from config.defaults import DEFAULT_CAPACITY
from data.loader import load_file, parse_schedule
from data.sample_data import generate_layout, generate_schedule_df
from data.session_store import get_scheduler
from data.validator import validate_schedule, validate_against_layout
from engine.errors import LedgerError


def _import_schedule(month, df: pd.DataFrame):
    """Validate and append an uploaded schedule to the month's reactors."""
    scheduler = get_scheduler()
    result = validate_schedule(df)
    if result.is_valid:
        names = [r.name for r in scheduler.reactors(month)]
        result.warnings.extend(validate_against_layout(df, names).warnings)

    if not result.is_valid:
        for e in result.errors:
            st.error(e)
        return False
    for w in result.warnings:
        st.warning(w)

    imported, unmatched = scheduler.import_batches(month, parse_schedule(df))
    st.success(f"Imported {imported} batches into {month}.")
    if unmatched:
        st.caption(f"Skipped reactors: {', '.join(unmatched)}")
    return True


def _load_sample(month):
    scheduler = get_scheduler()
    existing = {r.name for r in scheduler.reactors(month)}
    for row in generate_layout():
        if row["name"] not in existing:
            scheduler.add_reactor(month, row.get("capacity", DEFAULT_CAPACITY), row["x"], row["y"], name=row["name"])
    _import_schedule(month, generate_schedule_df(month))


def render(sidebar_state):
    """Render the Admin tab."""
    month = sidebar_state.month
    scheduler = get_scheduler()
    st.header("Admin")

    # --- Schedule Upload ---
    st.subheader("Schedule Upload")
    st.caption(
        "Upload a CSV or XLSX with columns **Reactor**, **Product**, **Start Date**, **End Date** "
        "and optionally **Category**, **Quantity (g)**, **Unit Price**."
    )
    uploaded = st.file_uploader("Schedule file", type=["csv", "xlsx"], key="upload_schedule")
    col_upload, col_sample = st.columns(2)
    with col_upload:
        if st.button("Upload & Validate", type="primary", key="btn_upload_schedule"):
            if uploaded:
                try:
                    _import_schedule(month, load_file(uploaded))
                except ValueError as e:
                    st.error(f"Error loading file: {e}")
            else:
                st.warning("Please upload a schedule file.")
    with col_sample:
        if st.button("Load Sample Data", key="btn_sample_schedule"):
            _load_sample(month)

    st.divider()

    # --- Month Maintenance ---
    st.subheader("Month Maintenance")
    confirm = st.checkbox(f"I understand all {month} schedules will be deleted", key="confirm_clear")
    if st.button(f"Clear {month} schedules", disabled=not confirm, key="btn_clear_month"):
        removed = scheduler.clear_month(month)
        st.success(f"Deleted {removed} reactor schedules for {month}.")

    pending = scheduler.pending_count
    if pending:
        st.warning(f"{pending} unsaved change set(s) or category sync(s).")
        if scheduler.pending_categories:
            st.caption(f"Categories awaiting ledger sync: {', '.join(scheduler.pending_categories)}")
        if st.button("Retry save", key="btn_retry"):
            remaining = scheduler.retry_pending()
            if remaining:
                st.error(f"{remaining} change set(s) still unsaved.")

    st.divider()

    # --- Category Ledger ---
    st.subheader("Category Ledger")
    ledger = scheduler.categories.ledger
    if ledger is None:
        st.info("No category ledger configured.")
    elif hasattr(ledger, "all_rows"):
        try:
            st.dataframe(pd.DataFrame(ledger.all_rows()), use_container_width=True, hide_index=True)
        except LedgerError as e:
            st.error(str(e))

    st.divider()

    # --- Audit Trail ---
    st.subheader("Audit Trail")
    if scheduler.audit_log:
        st.dataframe(pd.DataFrame([{
            "Time": e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            "Action": e.action,
            "Month": e.month or "",
            "Reactor": e.reactor_id or "",
            "Detail": e.detail,
        } for e in reversed(scheduler.audit_log)]), use_container_width=True, hide_index=True)
    else:
        st.caption("No changes in this session.")
