"""Tests for the schedule editor tab rendering against a live edit session."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from streamlit.testing.v1 import AppTest

from config.defaults import LAYOUT_KEY
from data.kv_store import MemoryStore
from engine.scheduling import ProductionScheduler
from models.reactor import Reactor
from tabs.tab_schedule_editor import number_text


def render_editor():
    from components.sidebar import SidebarState
    from tabs import tab_schedule_editor
    tab_schedule_editor.render(SidebarState(month="2024-01", edit_mode=False))


def make_editor_app(quantity, unit_price):
    reactor = Reactor(reactor_id="r1", name="R-1", zone_id=0, x=100, y=80)
    scheduler = ProductionScheduler(MemoryStore({LAYOUT_KEY: {"2024-01": [reactor.to_dict()]}}))
    session = scheduler.open_editor("2024-01", "r1")
    session.update_batch(
        session.batches[0].batch_id, category="API", name="Int-A7",
        start_date="2024-01-01", end_date="2024-01-10",
        quantity=quantity, unit_price=unit_price,
    )
    at = AppTest.from_function(render_editor)
    at.session_state["scheduler"] = scheduler
    at.session_state["edit_session"] = session
    return at


class TestNumberText:
    def test_integers_without_exponent(self):
        assert number_text(1234567) == "1234567"
        assert number_text(150000.0) == "150000"

    def test_fractions_keep_all_digits(self):
        assert float(number_text(0.1 + 0.2)) == 0.1 + 0.2
        assert float(number_text(1234567.891)) == 1234567.891


class TestEditorRender:
    def test_opening_editor_keeps_large_quantity(self):
        at = make_editor_app(1234567, 150000)
        at.run()
        assert not at.exception
        batch = at.session_state["edit_session"].batches[0]
        assert batch.quantity == 1234567
        assert batch.unit_price == 150000
        assert batch.revenue == pytest.approx(185.18505)

        at.run()
        assert at.session_state["edit_session"].batches[0].quantity == 1234567

    def test_fractional_price_survives_render(self):
        at = make_editor_app(2500, 12345.678901)
        at.run()
        assert at.session_state["edit_session"].batches[0].unit_price == 12345.678901

    def test_edited_quantity_is_applied(self):
        at = make_editor_app(1234567, 150000)
        at.run()
        batch_id = at.session_state["edit_session"].batches[0].batch_id
        at.text_input(key=f"qty_{batch_id}").input("2500").run()
        batch = at.session_state["edit_session"].batches[0]
        assert batch.quantity == 2500
        assert batch.unit_price == 150000


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
