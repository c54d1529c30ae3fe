"""Reactor Production Planning — Streamlit entry point."""

import logging
import streamlit as st
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from components.metrics_cards import render_notice
from components.sidebar import render_sidebar
from config.defaults import LOG_LEVEL
from data.session_store import initialize_session_state, pop_new_notices
from tabs import (
    tab_reactor_layout,
    tab_schedule_editor,
    tab_production_summary,
    tab_admin,
)


def main():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(
        page_title="Production Planning",
        page_icon="🏭",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    initialize_session_state()
    sidebar_state = render_sidebar()

    for notice in pop_new_notices():
        render_notice(notice)

    tab1, tab2, tab3, tab4 = st.tabs([
        "🏭 Reactor Layout",
        "🗓️ Schedule Editor",
        "📊 Production Summary",
        "⚙️ Admin",
    ])

    with tab1:
        tab_reactor_layout.render(sidebar_state)
    with tab2:
        tab_schedule_editor.render(sidebar_state)
    with tab3:
        tab_production_summary.render(sidebar_state)
    with tab4:
        tab_admin.render(sidebar_state)


if __name__ == "__main__":
    main()
