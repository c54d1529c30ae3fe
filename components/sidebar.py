"""Global sidebar controls for month selection and layout edit mode."""

import streamlit as st
from dataclasses import dataclass

from data.session_store import (
    get_scheduler, get_selected_month, set_selected_month, is_edit_mode, set_edit_mode,
)
from models.month import is_valid_month


@dataclass
class SidebarState:
    month: str
    edit_mode: bool


def _open_month():
    value = st.session_state.get("sidebar_new_month", "").strip()
    if is_valid_month(value):
        set_selected_month(value)
        st.session_state["sidebar_month"] = value
        st.session_state["sidebar_month_error"] = False
    else:
        st.session_state["sidebar_month_error"] = True


def render_sidebar() -> SidebarState:
    """Render the global sidebar controls and return current state."""
    with st.sidebar:
        st.title("Production Planning")
        st.divider()

        scheduler = get_scheduler()
        current = get_selected_month()
        months = sorted(set(scheduler.available_months()) | {current}, reverse=True)

        selected = st.selectbox(
            "Working Month",
            options=months,
            index=months.index(current),
            key="sidebar_month",
        )
        set_selected_month(selected)

        with st.expander("Create month"):
            st.text_input("YYYY-MM", value=selected, key="sidebar_new_month")
            st.button("Open month", key="sidebar_open_month", on_click=_open_month)
            if st.session_state.get("sidebar_month_error"):
                st.error("Use the YYYY-MM format.")

        st.divider()
        edit_mode = st.toggle("Edit Layout", value=is_edit_mode(), key="sidebar_edit_mode")
        set_edit_mode(edit_mode)

        st.caption(f"Zones: {len(scheduler.zones.all())}")
        st.caption(f"Months with data: {len(scheduler.available_months())}")

    return SidebarState(month=get_selected_month(), edit_mode=is_edit_mode())
