"""Scheduling facade: the surface the dashboard uses for one selected month.

Assembles reactors, their derived logs and the production summary, and performs
every edit (layout moves, reactor add/delete, batch schedule edits) followed by
persistence and category sync.
"""

import dataclasses
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, Iterable, List, Optional, Tuple

from config.defaults import AUDIT_LOG_LIMIT, LAYOUT_KEY, LOGS_KEY, NOTICE_LIMIT, ZONES_KEY
from data.kv_store import KeyValueStore, WriteQueue
from data.ledger import CategoryLedger
from data.repositories import LayoutRepository, LogRepository, ZoneRepository
from engine.aggregator import (
    MonthKpis, ProductionSummary, aggregate, filter_orphans, month_kpis,
    revenue_by_business_unit,
)
from engine.categories import CategoryRegistry, collect_custom_categories, validate_category
from engine.errors import InvalidTransitionError, LedgerError, PersistenceError
from engine.layout import LayoutSnapshotManager
from engine.spatial import DragState, resolve_drop
from engine.utilization import utilization
from models.audit import AuditEntry, Notice
from models.batch import Batch
from models.log import ReactorLog, ReactorLogView, ReactorStatus, derive_status
from models.month import parse_month
from models.reactor import Position, Reactor
from models.zone import Zone

logger = logging.getLogger(__name__)


class EditState(str, Enum):
    VIEWING = "Viewing"
    EDITING = "Editing"
    SAVED = "Saved"
    CANCELLED = "Cancelled"
    DELETED = "Deleted"


BATCH_FIELDS = {"category", "name", "start_date", "end_date", "quantity", "unit_price"}


@dataclass
class BatchEditSession:
    """Working copy of one reactor's schedule while the editor is open."""
    reactor_id: str
    month: str
    batches: List[Batch] = field(default_factory=list)
    status_override: Optional[ReactorStatus] = None
    state: EditState = EditState.VIEWING

    def _require_editing(self):
        if self.state is not EditState.EDITING:
            raise InvalidTransitionError(
                f"Schedule editor for {self.reactor_id} is {self.state.value}, not Editing"
            )

    def add_batch(self) -> Batch:
        self._require_editing()
        batch = Batch.default_for_month(self.month)
        self.batches.append(batch)
        return batch

    def update_batch(self, batch_id: str, **changes) -> Batch:
        self._require_editing()
        unknown = set(changes) - BATCH_FIELDS
        if unknown:
            raise ValueError(f"Unknown batch fields: {sorted(unknown)}")
        for idx, batch in enumerate(self.batches):
            if batch.batch_id == batch_id:
                # replace() re-runs the numeric coercion in __post_init__
                self.batches[idx] = dataclasses.replace(batch, **changes)
                return self.batches[idx]
        raise KeyError(batch_id)

    def remove_batch(self, batch_id: str) -> None:
        self._require_editing()
        self.batches = [b for b in self.batches if b.batch_id != batch_id]

    def set_status_override(self, status) -> None:
        """Explicit status ('' or None restores automatic status)."""
        self._require_editing()
        self.status_override = ReactorStatus.parse(status)

    @property
    def utilization(self) -> float:
        return utilization(self.batches, self.month)

    @property
    def revenue(self) -> float:
        return sum(b.revenue for b in self.batches)

    @property
    def status(self) -> ReactorStatus:
        return derive_status(self.utilization, self.status_override)


@dataclass
class MonthView:
    month: str
    reactors: List[Reactor]
    zones: List[Zone]
    logs: List[ReactorLogView]
    summary: ProductionSummary
    kpis: MonthKpis
    copied_from: Optional[str] = None

    def log_for(self, reactor_id: str) -> Optional[ReactorLogView]:
        return next((l for l in self.logs if l.reactor_id == reactor_id), None)


def build_log_view(log: ReactorLog) -> ReactorLogView:
    """Derive utilization, status and revenue from the stored batches."""
    util = utilization(log.batches, log.month)
    return ReactorLogView(
        reactor_id=log.reactor_id,
        month=log.month,
        batches=list(log.batches),
        utilization_pct=util,
        status=derive_status(util, log.status_override),
        total_revenue=sum(b.revenue for b in log.batches),
        status_override=log.status_override,
    )


class ProductionScheduler:
    """Coordinates layout snapshots, schedules, aggregation and persistence.

    `ledger_factory` reconnects the category ledger on retry when it was
    unavailable at startup; it must raise LedgerError on failure.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ledger: Optional[CategoryLedger] = None,
        writer: Optional[WriteQueue] = None,
        ledger_factory: Optional[Callable[[], CategoryLedger]] = None,
    ):
        self.layouts = LayoutRepository(store)
        self.logs = LogRepository(store)
        self.zones = ZoneRepository(store)
        self.layout_manager = LayoutSnapshotManager(self.layouts, self.zones)
        self.categories = CategoryRegistry(ledger)
        self.ledger_factory = ledger_factory
        self.writer = writer or WriteQueue()
        self.pending_categories: List[str] = []
        self.notices: Deque[Notice] = deque(maxlen=NOTICE_LIMIT)
        self.audit_log: Deque[AuditEntry] = deque(maxlen=AUDIT_LOG_LIMIT)

    # --- Persistence & bookkeeping ---

    def _notify(self, level: str, message: str):
        self.notices.append(Notice(level=level, message=message))

    def drain_notices(self) -> List[Notice]:
        """Notices raised since the last call."""
        notices = list(self.notices)
        self.notices.clear()
        return notices

    def _audit(self, action: str, month: Optional[str], reactor_id: Optional[str] = None, detail: str = ""):
        self.audit_log.append(AuditEntry(
            timestamp=datetime.now(),
            action=action,
            month=month,
            reactor_id=reactor_id,
            detail=detail,
        ))

    def _persist(self, key: str, write) -> bool:
        try:
            self.writer.submit(key, write)
        except PersistenceError as e:
            logger.exception("Persisting %s failed", key)
            self._notify("error", f"Save failed, changes kept locally: {e}")
            return False
        return True

    def _persist_layouts(self) -> bool:
        return self._persist(LAYOUT_KEY, self.layouts.persist)

    def _persist_logs(self) -> bool:
        return self._persist(LOGS_KEY, self.logs.persist)

    def _persist_zones(self) -> bool:
        return self._persist(ZONES_KEY, self.zones.persist)

    @property
    def pending_count(self) -> int:
        """Unsaved store keys plus custom categories not yet in the ledger."""
        return len(self.writer.pending) + len(self.pending_categories)

    def retry_pending(self) -> int:
        """Retry failed writes and category syncs; returns how many are still pending."""
        remaining = self.writer.retry_pending() + self._retry_categories()
        if remaining == 0:
            self._notify("success", "All pending changes saved")
        return remaining

    def _queue_categories(self, tags: Iterable[str]):
        for tag in tags:
            if tag not in self.pending_categories:
                self.pending_categories.append(tag)

    def _retry_categories(self) -> int:
        if not self.pending_categories:
            return 0
        if self.categories.ledger is None and self.ledger_factory is not None:
            try:
                self.categories.ledger = self.ledger_factory()
            except LedgerError as e:
                logger.warning("Category ledger still unavailable: %s", e)
                return len(self.pending_categories)
        if self.categories.ledger is None:
            return len(self.pending_categories)

        try:
            inserted = self.categories.sync_new_categories(self.pending_categories)
        except LedgerError as e:
            logger.warning("Retry of category sync failed: %s", e)
            return len(self.pending_categories)
        self.pending_categories = []
        if inserted:
            self._notify("info", f"New categories added: {', '.join(inserted)}")
        return 0

    def _sync_categories(self, batches: Iterable[Batch]) -> List[str]:
        """Mirror custom tags into the ledger; tags that cannot be synced stay pending."""
        custom = collect_custom_categories(batches)
        if not custom:
            return []
        if self.categories.ledger is None:
            self._queue_categories(custom)
            return []
        try:
            inserted = self.categories.sync_new_categories(custom)
        except LedgerError as e:
            logger.exception("Category sync failed")
            self._queue_categories(custom)
            self._notify("error", f"Category sync failed, will retry: {e}")
            return []
        self.pending_categories = [t for t in self.pending_categories if t not in custom]
        if inserted:
            self._notify("info", f"New categories added: {', '.join(inserted)}")
        return inserted

    # --- Reads ---

    def reactors(self, month: str) -> List[Reactor]:
        parse_month(month)
        reactors, copied_from = self.layout_manager.ensure_layout(month)
        if copied_from is not None:
            self._persist_layouts()
            self._audit("copy_forward", month, detail=f"from {copied_from}")
        return reactors

    def month_view(self, month: str) -> MonthView:
        parse_month(month)
        reactors, copied_from = self.layout_manager.ensure_layout(month)
        if copied_from is not None:
            self._persist_layouts()
            self._audit("copy_forward", month, detail=f"from {copied_from}")

        # aggregate() excludes and reports orphaned logs
        stored = self.logs.for_month(month)
        by_reactor = {l.reactor_id: l for l in stored}
        views = [
            build_log_view(by_reactor.get(r.reactor_id) or ReactorLog(r.reactor_id, month))
            for r in reactors
        ]
        return MonthView(
            month=month,
            reactors=reactors,
            zones=self.zones.all(),
            logs=views,
            summary=aggregate(stored, reactors),
            kpis=month_kpis(views, len(reactors)),
            copied_from=copied_from,
        )

    def log_view(self, month: str, reactor_id: str) -> ReactorLogView:
        log = self.logs.get(reactor_id, month) or ReactorLog(reactor_id, month)
        return build_log_view(log)

    def available_months(self) -> List[str]:
        months = set(self.layouts.months()) | set(self.logs.months())
        return sorted(months, reverse=True)

    def business_unit_revenue(self, month: str):
        """Revenue per core business unit, as consumed by the P&L chapter."""
        reactors = self.reactors(month)
        return revenue_by_business_unit(filter_orphans(self.logs.for_month(month), reactors))

    # --- Layout edits ---

    def move_reactor(self, month: str, reactor_id: str, x: float, y: float) -> Optional[Position]:
        parse_month(month)
        position = self.layout_manager.place_reactor(month, reactor_id, x, y)
        if position is not None:
            self._persist_layouts()
            self._audit("move", month, reactor_id, f"({position.x}, {position.y})")
        return position

    def add_reactor(self, month: str, capacity: int, x: float, y: float, name: Optional[str] = None) -> Optional[Reactor]:
        parse_month(month)
        reactor = self.layout_manager.add_reactor(month, capacity, x, y, name=name)
        if reactor is not None:
            self._persist_layouts()
            self._audit("add", month, reactor.reactor_id, f"{reactor.name} {reactor.capacity}L")
        return reactor

    def delete_reactor(self, month: str, reactor_id: str) -> bool:
        parse_month(month)
        removed = self.layout_manager.delete_reactor(month, reactor_id)
        if removed:
            self._persist_layouts()
            self._audit("delete", month, reactor_id)
        return removed

    def drop(self, month: str, drag: Optional[DragState], x: float, y: float, inside_canvas: Optional[bool] = None):
        """Commit a drag-and-drop: one layout mutation, or nothing if the drop is invalid."""
        parse_month(month)
        command = resolve_drop(drag, x, y, self.zones.all(), inside_canvas)
        if command is None:
            return None
        result = self.layout_manager.apply(month, command)
        if result is not None:
            self._persist_layouts()
            self._audit("drop", month, command.reactor_id, type(command).__name__)
        return result

    def save_layout(self, month: str, reactors: List[Reactor]) -> bool:
        parse_month(month)
        self.layout_manager.set_layout(month, reactors)
        self._audit("save_layout", month, detail=f"{len(reactors)} reactors")
        return self._persist_layouts()

    def add_zone(self, name: Optional[str] = None) -> Zone:
        zone = self.zones.add(name)
        self._persist_zones()
        self._audit("add_zone", None, detail=zone.name)
        return zone

    def rename_zone(self, zone_id: int, name: str) -> bool:
        if not self.zones.rename(zone_id, name):
            return False
        self._persist_zones()
        self._audit("rename_zone", None, detail=f"{zone_id} -> {name}")
        return True

    # --- Schedule edits ---

    def open_editor(self, month: str, reactor_id: str) -> BatchEditSession:
        parse_month(month)
        if not any(r.reactor_id == reactor_id for r in self.reactors(month)):
            raise KeyError(f"Reactor {reactor_id} is not in the {month} layout")
        log = self.logs.get(reactor_id, month)
        batches = list(log.batches) if log and log.batches else [Batch.default_for_month(month)]
        return BatchEditSession(
            reactor_id=reactor_id,
            month=month,
            batches=batches,
            status_override=log.status_override if log else None,
            state=EditState.EDITING,
        )

    def save_edit(self, session: BatchEditSession) -> ReactorLogView:
        """Persist the full batch list, sync new categories, return the recomputed log."""
        session._require_editing()
        for batch in session.batches:
            batch.category = validate_category(batch.category)

        log = ReactorLog(
            reactor_id=session.reactor_id,
            month=session.month,
            batches=list(session.batches),
            status_override=session.status_override,
        )
        self.logs.upsert(log)
        session.state = EditState.SAVED

        saved = self._persist_logs()
        self._sync_categories(log.batches)
        self._audit("save_batches", session.month, session.reactor_id, f"{len(log.batches)} batches")
        if saved:
            self._notify("success", "Schedule saved")
        return build_log_view(log)

    def cancel_edit(self, session: BatchEditSession) -> None:
        session._require_editing()
        session.state = EditState.CANCELLED

    def delete_from_editor(self, session: BatchEditSession) -> bool:
        """Remove the edited reactor from the month's layout entirely."""
        session._require_editing()
        removed = self.delete_reactor(session.month, session.reactor_id)
        session.state = EditState.DELETED
        return removed

    def import_batches(self, month: str, entries: List[Tuple[str, Batch]]) -> Tuple[int, List[str]]:
        """Append uploaded batches to reactors matched by name in the month's layout.

        Returns (batches imported, reactor names that did not match).
        """
        reactors = {r.name: r for r in self.reactors(month)}
        unmatched = []
        touched = {}
        for reactor_name, batch in entries:
            reactor = reactors.get(reactor_name)
            if reactor is None:
                if reactor_name not in unmatched:
                    unmatched.append(reactor_name)
                continue
            log = touched.get(reactor.reactor_id)
            if log is None:
                log = self.logs.get(reactor.reactor_id, month) or ReactorLog(reactor.reactor_id, month)
                touched[reactor.reactor_id] = log
            log.batches.append(batch)

        for log in touched.values():
            self.logs.upsert(log)
        imported_batches = [b for name, b in entries if name in reactors]
        imported = len(imported_batches)
        if touched:
            self._persist_logs()
            self._sync_categories(imported_batches)
            self._audit("import", month, detail=f"{imported} batches")
        if unmatched:
            logger.warning("Unmatched reactors in schedule upload for %s: %s", month, unmatched)
        return imported, unmatched

    def clear_month(self, month: str) -> int:
        """Delete every schedule for the month; the layout is kept."""
        parse_month(month)
        removed = self.logs.remove_month(month)
        if removed:
            self._persist_logs()
            self._audit("clear_month", month, detail=f"{removed} logs")
        return removed
