"""Repositories for the three independently persisted keys: layouts, logs, zones."""

import copy
import logging
from typing import Dict, List, Optional

from config.defaults import (
    LAYOUT_KEY, LOGS_KEY, ZONES_KEY, LEGACY_LAYOUT_KEY, DEFAULT_ZONES,
)
from data.kv_store import KeyValueStore
from models.log import ReactorLog
from models.reactor import Reactor
from models.zone import Zone

logger = logging.getLogger(__name__)


def _reactors_from_list(raw, context: str) -> List[Reactor]:
    reactors = []
    for item in raw:
        try:
            reactors.append(Reactor.from_dict(item))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping malformed reactor in %s: %s", context, e)
    return reactors


class LayoutRepository:
    """Ordered month -> reactor layout map. Every read and write is a deep copy."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._layouts: Dict[str, List[Reactor]] = self._load()

    def _load(self) -> Dict[str, List[Reactor]]:
        raw = self.store.get(LAYOUT_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Stored layout map is not a mapping; starting empty")
            return {}
        layouts = {}
        for month, reactors in raw.items():
            if not isinstance(reactors, list):
                logger.warning("Ignoring malformed layout for %s", month)
                continue
            layouts[str(month)] = _reactors_from_list(reactors, f"layout {month}")
        return layouts

    def months(self) -> List[str]:
        return sorted(self._layouts)

    def has(self, month: str) -> bool:
        return month in self._layouts

    def get(self, month: str) -> Optional[List[Reactor]]:
        layout = self._layouts.get(month)
        return copy.deepcopy(layout) if layout is not None else None

    def put(self, month: str, reactors: List[Reactor]) -> None:
        self._layouts[month] = copy.deepcopy(list(reactors))

    def legacy_layout(self) -> Optional[List[Reactor]]:
        """Single pre-monthly layout, kept readable for old installations."""
        raw = self.store.get(LEGACY_LAYOUT_KEY)
        if not isinstance(raw, list):
            return None
        return _reactors_from_list(raw, "legacy layout")

    def persist(self) -> None:
        self.store.set(LAYOUT_KEY, {
            month: [r.to_dict() for r in reactors]
            for month, reactors in sorted(self._layouts.items())
        })


class LogRepository:
    """Flat list of stored reactor logs across all months."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._logs: List[ReactorLog] = self._load()

    def _load(self) -> List[ReactorLog]:
        raw = self.store.get(LOGS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Stored logs are not a list; starting empty")
            return []
        logs = []
        for item in raw:
            try:
                logs.append(ReactorLog.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed reactor log: %s", e)
        return logs

    def get(self, reactor_id: str, month: str) -> Optional[ReactorLog]:
        for log in self._logs:
            if log.reactor_id == reactor_id and log.month == month:
                return copy.deepcopy(log)
        return None

    def for_month(self, month: str) -> List[ReactorLog]:
        return [copy.deepcopy(l) for l in self._logs if l.month == month]

    def months(self) -> List[str]:
        return sorted({l.month for l in self._logs if l.month})

    def upsert(self, log: ReactorLog) -> None:
        self._logs = [l for l in self._logs
                      if not (l.reactor_id == log.reactor_id and l.month == log.month)]
        self._logs.append(copy.deepcopy(log))

    def remove(self, reactor_id: str, month: str) -> bool:
        before = len(self._logs)
        self._logs = [l for l in self._logs
                      if not (l.reactor_id == reactor_id and l.month == month)]
        return len(self._logs) < before

    def remove_month(self, month: str) -> int:
        before = len(self._logs)
        self._logs = [l for l in self._logs if l.month != month]
        return before - len(self._logs)

    def persist(self) -> None:
        self.store.set(LOGS_KEY, [l.to_dict() for l in self._logs])


class ZoneRepository:
    """Process-wide zones (lanes of the layout grid)."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._zones: List[Zone] = self._load()

    def _load(self) -> List[Zone]:
        raw = self.store.get(ZONES_KEY)
        if not isinstance(raw, list) or not raw:
            return [Zone(**z) for z in DEFAULT_ZONES]
        zones = []
        for idx, item in enumerate(raw):
            try:
                if isinstance(item, dict) and "row_index" not in item:
                    # Older zone lists were ordered top to bottom without row indices
                    item = {**item, "row_index": idx}
                zones.append(Zone.from_dict(item))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed zone: %s", e)
        return zones or [Zone(**z) for z in DEFAULT_ZONES]

    def all(self) -> List[Zone]:
        return sorted(copy.deepcopy(self._zones), key=lambda z: z.row_index)

    def add(self, name: Optional[str] = None) -> Zone:
        """Append a zone below the existing lanes; existing positions are untouched."""
        next_id = max((z.zone_id for z in self._zones), default=-1) + 1
        next_row = max((z.row_index for z in self._zones), default=-1) + 1
        zone = Zone(zone_id=next_id, name=name or f"New Factory {next_id + 1}", row_index=next_row)
        self._zones.append(zone)
        return copy.deepcopy(zone)

    def rename(self, zone_id: int, name: str) -> bool:
        for zone in self._zones:
            if zone.zone_id == zone_id:
                zone.name = name
                return True
        return False

    def persist(self) -> None:
        self.store.set(ZONES_KEY, [z.to_dict() for z in self._zones])
