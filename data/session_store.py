"""Typed wrapper around st.session_state for application data."""

import logging
import streamlit as st
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError

from config.defaults import STORE_PATH, LEDGER_URL
from data.kv_store import JsonFileStore
from data.ledger import SqlCategoryLedger
from engine.errors import LedgerError
from engine.scheduling import BatchEditSession, ProductionScheduler
from engine.spatial import DragState
from models.audit import Notice
from models.month import current_month

logger = logging.getLogger(__name__)


def _connect_ledger() -> SqlCategoryLedger:
    try:
        return SqlCategoryLedger(LEDGER_URL)
    except (SQLAlchemyError, ImportError) as e:
        raise LedgerError(f"Category ledger unavailable ({LEDGER_URL}): {e}") from e


def _build_scheduler() -> ProductionScheduler:
    store = JsonFileStore(STORE_PATH)
    try:
        ledger = _connect_ledger()
    except LedgerError as e:
        # Scheduling works without the ledger; new categories wait for a retry
        logger.warning("%s", e)
        ledger = None
    scheduler = ProductionScheduler(store, ledger, ledger_factory=_connect_ledger)
    if ledger is None:
        scheduler.notices.append(Notice("warning", "Category ledger unavailable; new categories will sync on retry."))
    return scheduler


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "selected_month": current_month(),
        "edit_mode": False,
        "edit_session": None,
        "drag_state": None,
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default
    if "scheduler" not in st.session_state:
        st.session_state["scheduler"] = _build_scheduler()


# --- Getters ---

def get_scheduler() -> ProductionScheduler:
    return st.session_state["scheduler"]


def get_selected_month() -> str:
    return st.session_state.get("selected_month", current_month())


def is_edit_mode() -> bool:
    return st.session_state.get("edit_mode", False)


def get_edit_session() -> Optional[BatchEditSession]:
    return st.session_state.get("edit_session")


def get_drag_state() -> Optional[DragState]:
    return st.session_state.get("drag_state")


def pop_new_notices() -> List[Notice]:
    """Notices raised since the last render."""
    return get_scheduler().drain_notices()


# --- Setters ---

def set_selected_month(month: str):
    if month != st.session_state.get("selected_month"):
        st.session_state["selected_month"] = month
        st.session_state["edit_session"] = None
        st.session_state["drag_state"] = None


def set_edit_mode(enabled: bool):
    st.session_state["edit_mode"] = enabled
    if not enabled:
        st.session_state["drag_state"] = None


def set_edit_session(session: Optional[BatchEditSession]):
    st.session_state["edit_session"] = session


def set_drag_state(drag: Optional[DragState]):
    st.session_state["drag_state"] = drag
