"""Per-month reactor layout snapshots with copy-forward initialization."""

import copy
import logging
import random
from typing import Iterable, List, Optional

from config.defaults import DEFAULT_CAPACITY
from data.repositories import LayoutRepository, ZoneRepository
from engine.spatial import AddCommand, LayoutCommand, PlaceCommand, snap_position
from models.reactor import Position, Reactor

logger = logging.getLogger(__name__)


def find_copy_source(months: Iterable[str], target: str) -> Optional[str]:
    """Latest stored month strictly before `target` (YYYY-MM sorts chronologically)."""
    earlier = [m for m in months if m < target]
    return max(earlier) if earlier else None


def new_reactor_name() -> str:
    return f"R-{random.randint(0, 999)}"


class LayoutSnapshotManager:
    """Owns the placement of reactors per month.

    Each month's snapshot is an independent deep copy: moving, adding or deleting a
    reactor in one month never changes another month's stored layout.
    """

    def __init__(self, layouts: LayoutRepository, zones: ZoneRepository):
        self.layouts = layouts
        self.zones = zones

    def get_layout(self, month: str) -> List[Reactor]:
        """Stored layout for the month, copying forward from the latest earlier month."""
        reactors, _ = self.ensure_layout(month)
        return reactors

    def ensure_layout(self, month: str):
        """Return (reactors, copied_from) and store a copy-forward snapshot if needed."""
        stored = self.layouts.get(month)
        if stored is not None:
            return stored, None

        source = find_copy_source(self.layouts.months(), month)
        if source is not None:
            copied = self.layouts.get(source)
            self.layouts.put(month, copied)
            logger.info("Initialized layout for %s from %s (%d reactors)", month, source, len(copied))
            return copy.deepcopy(copied), source

        legacy = self.layouts.legacy_layout()
        if legacy:
            logger.info("Using legacy single layout for %s", month)
            return legacy, None
        return [], None

    def set_layout(self, month: str, reactors: List[Reactor]) -> None:
        self.layouts.put(month, reactors)

    def _find(self, reactors: List[Reactor], reactor_id: str) -> Optional[Reactor]:
        return next((r for r in reactors if r.reactor_id == reactor_id), None)

    def place_reactor(self, month: str, reactor_id: str, x: float, y: float) -> Optional[Position]:
        """Move a reactor to a snapped position. Returns None if rejected."""
        position = snap_position(x, y, self.zones.all())
        if position is None:
            logger.debug("Rejected placement of %s at (%s, %s)", reactor_id, x, y)
            return None
        reactors = self.get_layout(month)
        reactor = self._find(reactors, reactor_id)
        if reactor is None:
            logger.warning("Cannot place unknown reactor %s in %s", reactor_id, month)
            return None
        reactor.move_to(position)
        self.layouts.put(month, reactors)
        return position

    def add_reactor(
        self,
        month: str,
        capacity: int,
        x: float,
        y: float,
        reactor_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[Reactor]:
        position = snap_position(x, y, self.zones.all())
        if position is None:
            return None
        reactor = Reactor(name=name or new_reactor_name(), capacity=capacity or DEFAULT_CAPACITY)
        if reactor_id:
            reactor.reactor_id = reactor_id
        reactor.move_to(position)
        reactors = self.get_layout(month)
        reactors.append(reactor)
        self.layouts.put(month, reactors)
        return copy.deepcopy(reactor)

    def delete_reactor(self, month: str, reactor_id: str) -> bool:
        reactors = self.get_layout(month)
        remaining = [r for r in reactors if r.reactor_id != reactor_id]
        if len(remaining) == len(reactors):
            return False
        self.layouts.put(month, remaining)
        return True

    def apply(self, month: str, command: LayoutCommand):
        """Commit a resolved drag command."""
        if isinstance(command, PlaceCommand):
            reactors = self.get_layout(month)
            reactor = self._find(reactors, command.reactor_id)
            if reactor is None:
                return None
            reactor.move_to(command.position)
            self.layouts.put(month, reactors)
            return command.position
        if isinstance(command, AddCommand):
            reactor = Reactor(
                reactor_id=command.reactor_id,
                name=new_reactor_name(),
                capacity=command.capacity,
            )
            reactor.move_to(command.position)
            reactors = self.get_layout(month)
            reactors.append(reactor)
            self.layouts.put(month, reactors)
            return copy.deepcopy(reactor)
        raise TypeError(f"Unsupported layout command: {command!r}")
