"""Tests for the scheduling facade: edits, persistence and derived logs."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from config.defaults import AUDIT_LOG_LIMIT, LAYOUT_KEY, LOGS_KEY, NOTICE_LIMIT
from data.kv_store import MemoryStore
from engine.errors import InvalidTransitionError, LedgerError, PersistenceError
from engine.scheduling import EditState, ProductionScheduler
from engine.spatial import begin_new_drag
from models.batch import Batch
from models.log import ReactorStatus
from models.reactor import Reactor


class FailingStore(MemoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = True

    def set(self, key, value):
        if self.fail:
            raise PersistenceError(f"disk full while writing {key}")
        super().set(key, value)


class FakeLedger:
    def __init__(self):
        self.names = []

    def existing_names(self, names):
        return {n for n in names if n in self.names}

    def upsert_names(self, names):
        self.names.extend(names)
        return list(names)


class BrokenLedger:
    def existing_names(self, names):
        raise LedgerError("ledger offline")

    def upsert_names(self, names):
        raise LedgerError("ledger offline")


def make_layout_store(month="2024-01"):
    reactors = [
        Reactor(reactor_id="r1", name="R-1", zone_id=0, x=100, y=80),
        Reactor(reactor_id="r2", name="R-2", zone_id=1, x=300, y=240),
    ]
    return {LAYOUT_KEY: {month: [r.to_dict() for r in reactors]}}


def make_scheduler(store=None, ledger=None):
    return ProductionScheduler(store or MemoryStore(make_layout_store()), ledger=ledger)


def fill_batch(session, batch, **changes):
    defaults = dict(name="HTL-201", start_date="2024-01-01", end_date="2024-01-10",
                    quantity=1000, unit_price=1_000_000)
    defaults.update(changes)
    return session.update_batch(batch.batch_id, **defaults)


class TestEditSession:
    def test_open_editor_starts_with_default_batch(self):
        session = make_scheduler().open_editor("2024-01", "r1")
        assert session.state is EditState.EDITING
        assert len(session.batches) == 1
        assert session.batches[0].start_date == "2024-01-01"
        assert session.batches[0].end_date == "2024-01-05"

    def test_open_editor_unknown_reactor(self):
        with pytest.raises(KeyError):
            make_scheduler().open_editor("2024-01", "nope")

    def test_live_metrics_while_editing(self):
        session = make_scheduler().open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])
        second = session.add_batch()
        fill_batch(session, second, start_date="2024-01-08", end_date="2024-01-15")
        assert round(session.utilization, 1) == 48.4
        assert session.revenue == pytest.approx(2.0)
        assert session.status is ReactorStatus.RUNNING

    def test_update_coerces_bad_numbers(self):
        session = make_scheduler().open_editor("2024-01", "r1")
        batch = session.update_batch(session.batches[0].batch_id, quantity="abc", unit_price=-5)
        assert batch.quantity == 0 and batch.unit_price == 0

    def test_update_rejects_unknown_fields(self):
        session = make_scheduler().open_editor("2024-01", "r1")
        with pytest.raises(ValueError):
            session.update_batch(session.batches[0].batch_id, colour="red")

    def test_status_override(self):
        session = make_scheduler().open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])
        session.set_status_override("Maintenance")
        assert session.status is ReactorStatus.MAINTENANCE
        session.set_status_override("")
        assert session.status is ReactorStatus.RUNNING

    def test_terminal_states_reject_edits(self):
        scheduler = make_scheduler()
        session = scheduler.open_editor("2024-01", "r1")
        scheduler.cancel_edit(session)
        assert session.state is EditState.CANCELLED
        with pytest.raises(InvalidTransitionError):
            session.add_batch()
        with pytest.raises(InvalidTransitionError):
            scheduler.save_edit(session)


class TestSaveEdit:
    def test_save_recomputes_and_persists(self):
        store = MemoryStore(make_layout_store())
        scheduler = make_scheduler(store)
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])

        view = scheduler.save_edit(session)
        assert session.state is EditState.SAVED
        assert view.utilization_pct == pytest.approx(10 / 31 * 100)
        assert view.status is ReactorStatus.RUNNING
        assert view.total_revenue == pytest.approx(1.0)
        assert store.get(LOGS_KEY)[0]["items"][0]["name"] == "HTL-201"

        month = scheduler.month_view("2024-01")
        assert month.log_for("r1").utilization_pct == view.utilization_pct
        assert month.log_for("r2").status is ReactorStatus.IDLE
        assert month.summary.total_revenue == pytest.approx(1.0)

    def test_saved_state_survives_reload(self):
        store = MemoryStore(make_layout_store())
        scheduler = make_scheduler(store)
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])
        scheduler.save_edit(session)

        reloaded = ProductionScheduler(store)
        assert reloaded.log_view("2024-01", "r1").batches[0].name == "HTL-201"

    def test_blank_category_rejected(self):
        scheduler = make_scheduler()
        session = scheduler.open_editor("2024-01", "r1")
        session.update_batch(session.batches[0].batch_id, category="  ")
        with pytest.raises(ValueError):
            scheduler.save_edit(session)

    def test_custom_category_synced(self):
        ledger = FakeLedger()
        scheduler = make_scheduler(ledger=ledger)
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0], category="Sensors")
        scheduler.save_edit(session)
        assert ledger.names == ["Sensors"]
        assert any("Sensors" in n.message for n in scheduler.notices)

    def test_ledger_failure_does_not_lose_schedule(self):
        scheduler = make_scheduler(ledger=BrokenLedger())
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0], category="Sensors")
        scheduler.save_edit(session)
        assert scheduler.log_view("2024-01", "r1").batches[0].category == "Sensors"
        assert any(n.level == "error" for n in scheduler.notices)

    def test_persistence_failure_keeps_local_state_and_retries(self):
        store = FailingStore(make_layout_store())
        scheduler = make_scheduler(store)
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])
        view = scheduler.save_edit(session)

        assert view.utilization_pct > 0
        assert scheduler.log_view("2024-01", "r1").batches[0].name == "HTL-201"
        assert any(n.level == "error" for n in scheduler.notices)
        assert LOGS_KEY in scheduler.writer.pending

        store.fail = False
        assert scheduler.retry_pending() == 0
        assert store.get(LOGS_KEY)[0]["reactor_id"] == "r1"


class TestLayoutThroughFacade:
    def test_delete_from_editor_excludes_from_aggregation(self):
        scheduler = make_scheduler()
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])
        scheduler.save_edit(session)

        session = scheduler.open_editor("2024-01", "r1")
        assert scheduler.delete_from_editor(session) is True
        assert session.state is EditState.DELETED

        view = scheduler.month_view("2024-01")
        assert [r.reactor_id for r in view.reactors] == ["r2"]
        assert view.summary.total_revenue == 0
        assert view.log_for("r1") is None

    def test_month_view_copies_forward(self):
        store = MemoryStore(make_layout_store())
        scheduler = make_scheduler(store)
        view = scheduler.month_view("2024-03")
        assert view.copied_from == "2024-01"
        assert len(view.reactors) == 2
        assert "2024-03" in store.get(LAYOUT_KEY)
        assert scheduler.available_months() == ["2024-03", "2024-01"]

    def test_drop_new_reactor(self):
        scheduler = make_scheduler()
        drag = begin_new_drag(2000)
        reactor = scheduler.drop("2024-01", drag, 510, 490)
        assert reactor.capacity == 2000
        assert (reactor.x, reactor.y, reactor.zone_id) == (520, 560, 3)
        assert len(scheduler.reactors("2024-01")) == 3

    def test_invalid_drop_is_ignored(self):
        scheduler = make_scheduler()
        assert scheduler.drop("2024-01", begin_new_drag(500), 100, 100, inside_canvas=False) is None
        assert len(scheduler.reactors("2024-01")) == 2

    def test_malformed_month_rejected(self):
        with pytest.raises(ValueError):
            make_scheduler().month_view("2024/01")

    def test_zones(self):
        scheduler = make_scheduler()
        zone = scheduler.add_zone()
        assert zone.row_index == 4
        assert scheduler.rename_zone(zone.zone_id, "Annex") is True
        assert scheduler.month_view("2024-01").zones[-1].name == "Annex"


class TestBulkOperations:
    def test_import_batches_matches_by_name(self):
        scheduler = make_scheduler(ledger=FakeLedger())
        entries = [
            ("R-1", Batch(category="Sensors", name="S-1", start_date="2024-01-01", end_date="2024-01-03")),
            ("R-1", Batch(name="HTL-201", start_date="2024-01-10", end_date="2024-01-12")),
            ("R-404", Batch(name="Lost", start_date="2024-01-01", end_date="2024-01-02")),
        ]
        imported, unmatched = scheduler.import_batches("2024-01", entries)
        assert imported == 2
        assert unmatched == ["R-404"]
        assert len(scheduler.log_view("2024-01", "r1").batches) == 2
        assert scheduler.categories.ledger.names == ["Sensors"]

    def test_clear_month(self):
        scheduler = make_scheduler()
        session = scheduler.open_editor("2024-01", "r1")
        fill_batch(session, session.batches[0])
        scheduler.save_edit(session)
        assert scheduler.clear_month("2024-01") == 1
        assert scheduler.log_view("2024-01", "r1").batches == []
        assert len(scheduler.reactors("2024-01")) == 2


class FlakyLedger(FakeLedger):
    def __init__(self):
        super().__init__()
        self.down = True

    def existing_names(self, names):
        if self.down:
            raise LedgerError("ledger offline")
        return super().existing_names(names)


def save_with_category(scheduler, category, reactor_id="r1"):
    session = scheduler.open_editor("2024-01", reactor_id)
    fill_batch(session, session.batches[0], category=category)
    return scheduler.save_edit(session)


class TestCategorySyncRetry:
    def test_failed_sync_is_retried_after_recovery(self):
        ledger = FlakyLedger()
        scheduler = make_scheduler(ledger=ledger)
        save_with_category(scheduler, "Battery")
        assert scheduler.pending_categories == ["Battery"]
        assert scheduler.pending_count == 1

        ledger.down = False
        assert scheduler.retry_pending() == 0
        assert ledger.names == ["Battery"]
        assert scheduler.pending_categories == []

    def test_retry_while_still_down_keeps_tags(self):
        scheduler = make_scheduler(ledger=FlakyLedger())
        save_with_category(scheduler, "Battery")
        assert scheduler.retry_pending() == 1
        assert scheduler.pending_categories == ["Battery"]

    def test_later_successful_sync_clears_pending(self):
        ledger = FlakyLedger()
        scheduler = make_scheduler(ledger=ledger)
        save_with_category(scheduler, "Battery")
        ledger.down = False
        save_with_category(scheduler, "Battery", reactor_id="r2")
        assert scheduler.pending_categories == []
        assert ledger.names == ["Battery"]

    def test_ledger_connected_on_retry(self):
        recovered = FakeLedger()
        attempts = []

        def connect():
            attempts.append(1)
            if len(attempts) == 1:
                raise LedgerError("still starting")
            return recovered

        scheduler = ProductionScheduler(MemoryStore(make_layout_store()), ledger_factory=connect)
        save_with_category(scheduler, "Battery")
        assert scheduler.retry_pending() == 1
        assert scheduler.retry_pending() == 0
        assert recovered.names == ["Battery"]
        assert scheduler.categories.ledger is recovered

    def test_known_categories_never_pending(self):
        scheduler = make_scheduler(ledger=FlakyLedger())
        save_with_category(scheduler, "API")
        assert scheduler.pending_count == 0


class TestSessionHistory:
    def test_orphan_warning_logged_once_per_view(self, caplog):
        scheduler = make_scheduler()
        save_with_category(scheduler, "OLED")
        scheduler.delete_reactor("2024-01", "r1")
        caplog.clear()
        with caplog.at_level("WARNING"):
            scheduler.month_view("2024-01")
        orphan_records = [r for r in caplog.records if "orphaned" in r.getMessage()]
        assert len(orphan_records) == 1

    def test_notices_are_capped_and_drained(self):
        scheduler = make_scheduler()
        for _ in range(NOTICE_LIMIT + 10):
            save_with_category(scheduler, "OLED")
        assert len(scheduler.notices) == NOTICE_LIMIT
        assert len(scheduler.drain_notices()) == NOTICE_LIMIT
        assert list(scheduler.notices) == []

    def test_audit_log_is_capped(self):
        scheduler = make_scheduler()
        assert scheduler.audit_log.maxlen == AUDIT_LOG_LIMIT
        scheduler.add_zone()
        assert scheduler.audit_log[-1].action == "add_zone"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
