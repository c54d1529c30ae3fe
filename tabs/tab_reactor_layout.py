"""Tab 1: Reactor Layout — zoned canvas, drag placement, per-reactor status."""

import streamlit as st

from components.charts import reactor_layout_map
from components.metrics_cards import render_month_kpis
from config.defaults import PALETTE_CAPACITIES, ROW_HEIGHT, CANVAS_WIDTH
from data.session_store import (
    get_scheduler, get_drag_state, set_drag_state, set_edit_session,
)
from engine.spatial import DRAG_NEW, begin_move_drag, begin_new_drag, canvas_height, update_ghost


def _render_drag_controls(month, view):
    """Pointer-down picks what to drag, the ghost follows the inputs, Drop commits."""
    scheduler = get_scheduler()
    drag = get_drag_state()

    st.subheader("Place Reactors")
    names = {r.reactor_id: f"{r.name} ({r.capacity}L)" for r in view.reactors}
    col_new, col_move = st.columns(2)
    with col_new:
        capacity = st.selectbox("New reactor (L)", PALETTE_CAPACITIES, index=2, key="palette_capacity")
        if st.button("Pick from palette", key="btn_pick_new"):
            set_drag_state(begin_new_drag(capacity, CANVAS_WIDTH / 2, ROW_HEIGHT / 2))
            st.rerun()
    with col_move:
        if names:
            reactor_id = st.selectbox("Existing reactor", list(names), format_func=names.get, key="move_reactor")
            if st.button("Pick up", key="btn_pick_existing"):
                reactor = next(r for r in view.reactors if r.reactor_id == reactor_id)
                set_drag_state(begin_move_drag(reactor.reactor_id, reactor.capacity, reactor.x, reactor.y))
                st.rerun()

    if drag is None:
        return

    if drag.kind == DRAG_NEW:
        st.caption(f"Dragging new {drag.capacity}L reactor")
    else:
        st.caption(f"Moving {names.get(drag.reactor_id, drag.reactor_id)}")
    col_x, col_y = st.columns(2)
    x = col_x.slider("X", 0, CANVAS_WIDTH, int(drag.ghost_x), key=f"ghost_x_{drag.reactor_id}")
    y = col_y.slider("Y", 0, canvas_height(view.zones), int(drag.ghost_y), key=f"ghost_y_{drag.reactor_id}")
    update_ghost(drag, x, y)

    col_drop, col_cancel = st.columns(2)
    if col_drop.button("Drop", type="primary", key="btn_drop"):
        result = scheduler.drop(month, drag, x, y)
        set_drag_state(None)
        if result is None:
            st.warning("Drop point is outside every zone; nothing changed.")
        st.rerun()
    if col_cancel.button("Cancel", key="btn_cancel_drag"):
        set_drag_state(None)
        st.rerun()


def _render_zone_controls():
    scheduler = get_scheduler()
    st.subheader("Zones")
    for zone in scheduler.zones.all():
        new_name = st.text_input(f"Zone {zone.row_index + 1}", value=zone.name, key=f"zone_name_{zone.zone_id}")
        if new_name.strip() and new_name != zone.name:
            scheduler.rename_zone(zone.zone_id, new_name.strip())
    if st.button("Add Zone", key="btn_add_zone"):
        scheduler.add_zone()
        st.rerun()


def render(sidebar_state):
    """Render the Reactor Layout tab."""
    month = sidebar_state.month
    scheduler = get_scheduler()
    view = scheduler.month_view(month)

    st.header(f"Production Planning ({month})")
    st.caption("Monthly Reactor Layout • Standard Utilization")
    if view.copied_from:
        st.info(f"Layout for {month} was initialized from {view.copied_from}.")

    render_month_kpis(view.kpis, view.summary)

    views = {v.reactor_id: v for v in view.logs}
    col_map, col_side = st.columns([3, 1]) if sidebar_state.edit_mode else (st.container(), None)

    with col_map:
        fig = reactor_layout_map(view.reactors, view.zones, views, get_drag_state())
        st.plotly_chart(fig, use_container_width=True)
        if not view.reactors:
            st.info("No reactors in this month's layout. Turn on Edit Layout to place some.")

    if col_side is not None:
        with col_side:
            _render_drag_controls(month, view)
            st.divider()
            _render_zone_controls()

    st.divider()
    st.subheader("Reactors")
    for reactor in view.reactors:
        log = views.get(reactor.reactor_id)
        cols = st.columns([3, 2, 2, 3, 1, 1])
        cols[0].markdown(f"**{reactor.name}** · {reactor.capacity}L")
        cols[1].write(log.status.value if log else "Idle")
        cols[2].write(f"{log.utilization_pct:.1f}%" if log else "0.0%")
        cols[3].write(log.display_product if log else "")
        if cols[4].button("Plan", key=f"plan_{reactor.reactor_id}"):
            set_edit_session(scheduler.open_editor(month, reactor.reactor_id))
            st.rerun()
        if sidebar_state.edit_mode and cols[5].button("✕", key=f"del_{reactor.reactor_id}", help="Delete reactor"):
            scheduler.delete_reactor(month, reactor.reactor_id)
            st.rerun()
