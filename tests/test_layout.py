"""Tests for per-month layout snapshots and copy-forward."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from config.defaults import LAYOUT_KEY, LEGACY_LAYOUT_KEY
from data.kv_store import MemoryStore
from data.repositories import LayoutRepository, ZoneRepository
from engine.layout import LayoutSnapshotManager, find_copy_source
from engine.spatial import begin_move_drag, begin_new_drag, resolve_drop
from models.reactor import Reactor


def make_reactor(reactor_id, name, x=100, y=80, zone_id=0, capacity=1000):
    return Reactor(reactor_id=reactor_id, name=name, capacity=capacity, zone_id=zone_id, x=x, y=y)


def make_manager(initial=None):
    store = MemoryStore(initial)
    return LayoutSnapshotManager(LayoutRepository(store), ZoneRepository(store))


class TestFindCopySource:
    def test_latest_earlier_month(self):
        assert find_copy_source(["2023-11", "2024-01", "2023-12"], "2024-02") == "2024-01"

    def test_skips_later_months(self):
        assert find_copy_source(["2024-03", "2023-12"], "2024-02") == "2023-12"

    def test_nothing_earlier(self):
        assert find_copy_source(["2024-05"], "2024-02") is None
        assert find_copy_source([], "2024-02") is None


class TestCopyForward:
    def test_copy_forward_then_edit_is_independent(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1"), make_reactor("r2", "R-2", x=300)])

        reactors, source = manager.ensure_layout("2024-02")
        assert source == "2024-01"
        assert [r.reactor_id for r in reactors] == ["r1", "r2"]

        manager.place_reactor("2024-02", "r1", 620, 250)
        jan = {r.reactor_id: r for r in manager.get_layout("2024-01")}
        feb = {r.reactor_id: r for r in manager.get_layout("2024-02")}
        assert (jan["r1"].x, jan["r1"].y) == (100, 80)
        assert (feb["r1"].x, feb["r1"].y, feb["r1"].zone_id) == (620, 240, 1)

    def test_second_read_does_not_copy_again(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1")])
        manager.ensure_layout("2024-02")
        _, source = manager.ensure_layout("2024-02")
        assert source is None

    def test_returned_layout_is_a_copy(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1")])
        reactors = manager.get_layout("2024-01")
        reactors[0].x = 999
        assert manager.get_layout("2024-01")[0].x == 100

    def test_no_history_is_empty(self):
        manager = make_manager()
        assert manager.get_layout("2024-01") == []

    def test_legacy_layout_fallback(self):
        legacy = [make_reactor("old", "R-9").to_dict()]
        manager = make_manager({LEGACY_LAYOUT_KEY: legacy})
        reactors = manager.get_layout("2024-01")
        assert [r.reactor_id for r in reactors] == ["old"]

    def test_stored_layout_wins_over_legacy(self):
        manager = make_manager({
            LEGACY_LAYOUT_KEY: [make_reactor("old", "R-9").to_dict()],
            LAYOUT_KEY: {"2024-01": [make_reactor("new", "R-1").to_dict()]},
        })
        assert [r.reactor_id for r in manager.get_layout("2024-01")] == ["new"]


class TestLayoutEdits:
    def test_delete_only_affects_one_month(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1")])
        manager.ensure_layout("2024-02")
        assert manager.delete_reactor("2024-02", "r1") is True
        assert manager.get_layout("2024-02") == []
        assert len(manager.get_layout("2024-01")) == 1

    def test_delete_unknown(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1")])
        assert manager.delete_reactor("2024-01", "missing") is False

    def test_add_reactor_snaps(self):
        manager = make_manager()
        reactor = manager.add_reactor("2024-01", 500, 251, 330, name="R-77")
        assert (reactor.x, reactor.y, reactor.zone_id) == (260, 400, 2)
        assert manager.get_layout("2024-01")[0].name == "R-77"

    def test_invalid_placement_leaves_layout_unchanged(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1")])
        assert manager.place_reactor("2024-01", "r1", 100, 5000) is None
        assert manager.get_layout("2024-01")[0].y == 80

    def test_apply_drop_commands(self):
        manager = make_manager()
        manager.set_layout("2024-01", [make_reactor("r1", "R-1")])
        zones = manager.zones.all()

        move = resolve_drop(begin_move_drag("r1", 1000), 400, 500, zones)
        position = manager.apply("2024-01", move)
        assert position.zone_id == 3

        drag = begin_new_drag(3000)
        added = manager.apply("2024-01", resolve_drop(drag, 40, 40, zones))
        assert added.reactor_id == drag.reactor_id
        assert added.capacity == 3000
        assert len(manager.get_layout("2024-01")) == 2

    def test_apply_rejects_unknown_command(self):
        manager = make_manager()
        with pytest.raises(TypeError):
            manager.apply("2024-01", object())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
