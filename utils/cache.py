"""Local persistence and in-memory caching for the work order dashboard.

Provides:
- LocalStore: a file-backed key-value store of string values, holding the
  last successful load (``cachedWorkOrders``), its timestamp
  (``lastSyncTime``) and the offline edit queue (``pendingUpdates``)
- TTLCache: a small in-memory cache with time-to-live expiry, used for the
  remote filter options
"""

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any

from utils.config import KnownValues

logger = logging.getLogger(__name__)


class LocalStore:
    """Thread-safe key-value blob store persisted as one JSON file.

    Values are strings, mirroring browser localStorage; the JSON helpers
    encode and decode structured values on top of that.  Writes replace the
    file atomically so a crash mid-write never leaves a truncated store.

    Usage::

        store = LocalStore(Path("workorders_store.json"))
        store.save_work_orders(rows, "2025-01-01T08:00:00+00:00")
        rows = store.cached_work_orders()   # list or None
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    # ── raw string access ─────────────────────────────────────────────────

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable local store %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed local store %s", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        """Return the string stored under *key*, or ``None``."""
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        """Store *value* (a string) under *key*."""
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def remove(self, key: str) -> None:
        """Delete *key* (no-op if absent)."""
        with self._lock:
            data = self._read_all()
            if data.pop(key, None) is not None:
                self._write_all(data)

    # ── JSON helpers ──────────────────────────────────────────────────────

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON value under *key*; *default* if missing or corrupt."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt %s entry in %s", key, self.path)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))

    # ── dashboard keys ────────────────────────────────────────────────────

    def cached_work_orders(self) -> list[dict[str, Any]] | None:
        """Raw backend rows from the last successful load, or ``None``."""
        rows = self.get_json(KnownValues.CACHED_WORK_ORDERS_KEY)
        return rows if isinstance(rows, list) else None

    def save_work_orders(self, rows: list[dict[str, Any]], synced_at: str) -> None:
        """Persist a successful load and its sync timestamp in one write."""
        with self._lock:
            data = self._read_all()
            data[KnownValues.CACHED_WORK_ORDERS_KEY] = json.dumps(rows)
            data[KnownValues.LAST_SYNC_TIME_KEY] = synced_at
            self._write_all(data)

    def last_sync_time(self) -> str | None:
        return self.get(KnownValues.LAST_SYNC_TIME_KEY)

    def pending_updates(self) -> list[dict[str, Any]]:
        """Queued offline edits, oldest first."""
        updates = self.get_json(KnownValues.PENDING_UPDATES_KEY, [])
        return updates if isinstance(updates, list) else []

    def append_pending(self, update: dict[str, Any]) -> int:
        """Append one offline edit to the queue.

        Returns:
            Queue length after the append.
        """
        with self._lock:
            data = self._read_all()
            try:
                queue = json.loads(data.get(KnownValues.PENDING_UPDATES_KEY, "[]"))
            except json.JSONDecodeError:
                queue = []
            if not isinstance(queue, list):
                queue = []
            queue.append(update)
            data[KnownValues.PENDING_UPDATES_KEY] = json.dumps(queue)
            self._write_all(data)
            return len(queue)

    def replace_pending(self, updates: list[dict[str, Any]]) -> None:
        """Overwrite the queue (used after an explicit replay)."""
        if updates:
            self.set_json(KnownValues.PENDING_UPDATES_KEY, updates)
        else:
            self.remove(KnownValues.PENDING_UPDATES_KEY)


class TTLCache:
    """Thread-safe in-memory cache with time-to-live (TTL) expiry.

    Entries expire after ``ttl_seconds``; at most ``maxsize`` entries are
    kept and the one expiring soonest is evicted first.

    Usage::

        cache = TTLCache(maxsize=4, ttl_seconds=300)
        cache.set("filter_options", {"hospitals": [...]})
        value = cache.get("filter_options")  # None once expired
    """

    def __init__(self, maxsize: int = 16, ttl_seconds: float = 300.0) -> None:
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        # key -> (value, expires_at)
        self._store: dict[Any, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: Any) -> Any | None:
        """Return cached value for *key*, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() > expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: Any, value: Any) -> None:
        expires_at = time.monotonic() + self._ttl
        with self._lock:
            if key not in self._store and len(self._store) >= self._maxsize:
                soonest = min(self._store, key=lambda k: self._store[k][1])
                del self._store[soonest]
            self._store[key] = (value, expires_at)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
