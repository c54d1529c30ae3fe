"""Tab 2: Schedule Editor — batch list for one reactor in the working month."""

import streamlit as st

from config.defaults import BU_CATEGORIES, STATUS_OVERRIDE_OPTIONS
from data.session_store import get_scheduler, get_edit_session, set_edit_session
from engine.explainer import explain_utilization
from engine.scheduling import EditState

CUSTOM_OPTION = "__custom__"


def number_text(value: float) -> str:
    """Text for a stored number that parses back to exactly the same value."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _render_batch(session, idx, batch):
    key = batch.batch_id
    with st.container(border=True):
        top = st.columns([2, 3, 1])
        known = batch.category in BU_CATEGORIES
        options = list(BU_CATEGORIES) + [CUSTOM_OPTION]
        choice = top[0].selectbox(
            f"#{idx + 1} Category", options,
            index=options.index(batch.category) if known else len(options) - 1,
            format_func=lambda c: "직접입력 (기타)" if c == CUSTOM_OPTION else BU_CATEGORIES[c],
            key=f"cat_{key}",
        )
        if choice == CUSTOM_OPTION:
            category = top[0].text_input("Custom category", value="" if known else batch.category, key=f"catc_{key}")
        else:
            category = choice
        name = top[1].text_input("Product Name", value=batch.name, key=f"name_{key}")
        if top[2].button("🗑", key=f"rm_{key}"):
            session.remove_batch(batch.batch_id)
            st.rerun()

        mid = st.columns(4)
        start = mid[0].text_input("Start", value=batch.start_date, key=f"start_{key}")
        end = mid[1].text_input("End", value=batch.end_date, key=f"end_{key}")
        qty = mid[2].text_input("Qty (g)", value=number_text(batch.quantity), key=f"qty_{key}")
        price = mid[3].text_input("원/g", value=number_text(batch.unit_price), key=f"price_{key}")

        # Only widgets the user actually changed are written back
        shown = {
            "category": batch.category, "name": batch.name,
            "start_date": batch.start_date, "end_date": batch.end_date,
            "quantity": number_text(batch.quantity), "unit_price": number_text(batch.unit_price),
        }
        entered = {
            "category": category, "name": name, "start_date": start,
            "end_date": end, "quantity": qty, "unit_price": price,
        }
        changes = {f: v for f, v in entered.items() if v != shown[f]}
        if changes:
            batch = session.update_batch(batch.batch_id, **changes)
        st.caption(f"Est. Revenue: {batch.revenue:,.3f} B")


def render(sidebar_state):
    """Render the Schedule Editor tab."""
    st.header("Schedule Editor")
    scheduler = get_scheduler()
    session = get_edit_session()

    if session is None or session.state is not EditState.EDITING:
        st.info("Select a reactor's Plan button in the Reactor Layout tab to edit its schedule.")
        return
    if session.month != sidebar_state.month:
        set_edit_session(None)
        st.info("The working month changed; reopen the reactor's schedule.")
        return

    reactor = next((r for r in scheduler.reactors(session.month) if r.reactor_id == session.reactor_id), None)
    title = f"{reactor.name} Plan" if reactor else "Reactor Plan"
    st.subheader(title)
    if reactor:
        st.caption(f"{reactor.capacity}L Reactor • {session.month}")

    for idx, batch in enumerate(list(session.batches)):
        _render_batch(session, idx, batch)

    if st.button("＋ Add Batch", key="btn_add_batch"):
        session.add_batch()
        st.rerun()

    util = session.utilization
    kpi = st.columns(3)
    kpi[0].metric("Time Utilization", f"{util:.1f}%")
    kpi[1].metric("Revenue (B)", f"{session.revenue:,.3f}")
    current = session.status_override.value if session.status_override else ""
    override = kpi[2].selectbox(
        "Status Override", STATUS_OVERRIDE_OPTIONS,
        index=STATUS_OVERRIDE_OPTIONS.index(current) if current in STATUS_OVERRIDE_OPTIONS else 0,
        format_func=lambda s: s or "Auto",
        key=f"status_{session.reactor_id}",
    )
    session.set_status_override(override)

    with st.expander("How is utilization calculated?"):
        for step in explain_utilization(session.batches, session.month):
            st.markdown(f"- {step}")

    col_save, col_cancel, col_delete = st.columns([2, 1, 1])
    if col_save.button("Save", type="primary", key="btn_save_schedule"):
        try:
            scheduler.save_edit(session)
        except ValueError as e:
            st.error(str(e))
        else:
            set_edit_session(None)
            st.rerun()
    if col_cancel.button("Cancel", key="btn_cancel_schedule"):
        scheduler.cancel_edit(session)
        set_edit_session(None)
        st.rerun()
    if col_delete.button("Delete Reactor", key="btn_delete_from_editor"):
        scheduler.delete_from_editor(session)
        set_edit_session(None)
        st.rerun()
