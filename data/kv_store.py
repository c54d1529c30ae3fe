"""Local persisted state: a small key-value store plus per-key serialized writes."""

import copy
import json
import logging
import os
import threading
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from engine.errors import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """Process-local store, used in tests and as a session fallback."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data = copy.deepcopy(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStore:
    """All keys in one JSON document on disk, so state survives reloads.

    A corrupt or unreadable file loads as an empty store; writes replace the file
    atomically.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._data = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read state file %s: %s. Starting empty.", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("State file %s is not a JSON object. Starting empty.", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        updated = dict(self._data)
        updated[key] = copy.deepcopy(value)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(updated, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {key} to {self.path}: {e}") from e
        self._data = updated


class WriteQueue:
    """Serializes writes per key and remembers the latest failed write for retry."""

    def __init__(self):
        self._locks = defaultdict(threading.Lock)
        self._guard = threading.Lock()
        self.pending: Dict[str, Callable[[], None]] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks[key]

    def submit(self, key: str, write: Callable[[], None]) -> None:
        """Run a write for `key`. Raises PersistenceError after recording it as pending."""
        with self._lock_for(key):
            try:
                write()
            except PersistenceError:
                self.pending[key] = write
                raise
            self.pending.pop(key, None)

    def retry_pending(self) -> int:
        """Re-run failed writes. Returns how many are still pending."""
        for key, write in list(self.pending.items()):
            try:
                self.submit(key, write)
            except PersistenceError as e:
                logger.warning("Retry of pending write %s failed: %s", key, e)
        return len(self.pending)
