"""Origin-scoped key-value storage with cross-session change events.

A ``StorageArea`` holds string values for every session opened on it and can
be backed by a JSON file. Each ``StorageSession`` plays the role of one tab:
its writes are visible to every session immediately, and every *other*
session is told about them through a queued ``StorageEvent``. Events are
delivered only when the area dispatches its pending queue, never during the
write itself.

The HTTP service opens a single session, so nothing is ever queued there.
An embedder that runs several sessions on one area decides when other tabs
observe a write by calling ``StorageArea.dispatch_pending()``.
"""

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "nutri-mindflow"
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024
DAY_KEY_PREFIX = "mealStatus_"


class StorageQuotaExceeded(RuntimeError):
    """Raised when a write would grow the storage area past its quota."""


@dataclass(frozen=True)
class StorageEvent:
    """Raw change notification for a single key."""

    key: str
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class StorageArea:
    """Shared key-value area for all sessions of one origin."""

    def __init__(
        self, path: Path | None = None, quota_bytes: int = DEFAULT_QUOTA_BYTES
    ) -> None:
        self.path = path
        self.quota_bytes = quota_bytes
        self._items = self._load()
        self._listeners: dict[int, list[StorageListener]] = {}
        self._pending: list[tuple[int, StorageEvent]] = []
        self._next_session_id = 0

    def open_session(self) -> "StorageSession":
        """Open a new session (tab) on this area."""
        session_id = self._next_session_id
        self._next_session_id += 1
        self._listeners[session_id] = []
        return StorageSession(area=self, session_id=session_id)

    def close_session(self, session_id: int) -> None:
        """Drop a session's listeners and any events still queued for it."""
        self._listeners.pop(session_id, None)
        self._pending = [item for item in self._pending if item[0] != session_id]

    def pending_count(self) -> int:
        return len(self._pending)

    def dispatch_pending(self) -> int:
        """Deliver queued change events and return how many were delivered.

        Called by whatever hosts several sessions, typically after each unit of
        work, to play the part of the browser event loop.
        """
        delivered = 0
        while self._pending:
            session_id, event = self._pending.pop(0)
            for listener in list(self._listeners.get(session_id, [])):
                try:
                    listener(event)
                except Exception:
                    logger.exception("Storage listener failed for key %s", event.key)
                delivered += 1
        return delivered

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def keys(self) -> list[str]:
        return list(self._items)

    def set(self, session_id: int, key: str, value: str) -> None:
        """Store a value and queue change events for the other sessions."""
        old_value = self._items.get(key)
        if old_value == value:
            return
        size = self._size_with(key, value)
        if size > self.quota_bytes:
            raise StorageQuotaExceeded(
                f"Writing {key!r} needs {size} bytes, quota is {self.quota_bytes}"
            )
        self._items[key] = value
        try:
            self._flush()
        except OSError:
            self._restore(key, old_value)
            raise
        self._notify(session_id, StorageEvent(key, old_value, value))

    def remove(self, session_id: int, key: str) -> None:
        """Remove a key and queue change events for the other sessions."""
        if key not in self._items:
            return
        old_value = self._items.pop(key)
        try:
            self._flush()
        except OSError:
            self._restore(key, old_value)
            raise
        self._notify(session_id, StorageEvent(key, old_value, None))

    def add_listener(self, session_id: int, listener: StorageListener) -> None:
        self._listeners.setdefault(session_id, []).append(listener)

    def remove_listener(self, session_id: int, listener: StorageListener) -> None:
        listeners = self._listeners.get(session_id, [])
        if listener in listeners:
            listeners.remove(listener)

    def _notify(self, writer_id: int, event: StorageEvent) -> None:
        for session_id in self._listeners:
            if session_id != writer_id:
                self._pending.append((session_id, event))

    def _size_with(self, key: str, value: str) -> int:
        total = 0
        for existing_key, existing_value in self._items.items():
            if existing_key == key:
                continue
            total += _byte_len(existing_key) + _byte_len(existing_value)
        return total + _byte_len(key) + _byte_len(value)

    def _restore(self, key: str, old_value: str | None) -> None:
        if old_value is None:
            self._items.pop(key, None)
        else:
            self._items[key] = old_value

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable storage file %s", self.path)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed storage file %s", self.path)
            return {}
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._items), encoding="utf-8")
        os.replace(tmp_path, self.path)


@dataclass
class StorageSession:
    """One tab's handle on a storage area."""

    area: StorageArea
    session_id: int

    def get_item(self, key: str) -> str | None:
        """Return the raw value stored at a key, or None."""
        return self.area.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store a raw value, overwriting any previous one."""
        self.area.set(self.session_id, key, value)

    def remove_item(self, key: str) -> None:
        self.area.remove(self.session_id, key)

    def keys(self) -> list[str]:
        return self.area.keys()

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        """Listen for writes made by other sessions; returns a remover."""
        self.area.add_listener(self.session_id, listener)

        def remove() -> None:
            self.area.remove_listener(self.session_id, listener)

        return remove

    def close(self) -> None:
        self.area.close_session(self.session_id)


@dataclass(frozen=True)
class StorageKeys:
    """Key names used by the meal tracker inside a storage area."""

    namespace: str = DEFAULT_NAMESPACE
    day_prefix: str = DAY_KEY_PREFIX

    @property
    def meals(self) -> str:
        return f"{self.namespace}-meals"

    @property
    def calories(self) -> str:
        return f"{self.namespace}-calories"

    @property
    def history(self) -> str:
        return f"{self.namespace}-meals-history"

    @property
    def analyses(self) -> str:
        return f"{self.namespace}-analyses"

    def day(self, date_key: str) -> str:
        return f"{self.day_prefix}{date_key}"

    def parse_day(self, key: str) -> str | None:
        """Return the date key embedded in a day key, or None."""
        if not key.startswith(self.day_prefix):
            return None
        date_key = key[len(self.day_prefix) :]
        try:
            date.fromisoformat(date_key)
        except ValueError:
            return None
        return date_key

    def is_day_state(self, key: str) -> bool:
        """Return True for keys whose changes affect a day view."""
        return self.parse_day(key) is not None or key in {
            self.calories,
            self.meals,
            self.analyses,
        }


def read_json(storage: StorageSession, key: str) -> object | None:
    """Read and decode a JSON value; corrupt values count as absent."""
    raw = storage.get_item(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Ignoring corrupt JSON stored at %s", key)
        return None


def write_json(storage: StorageSession, key: str, value: object) -> bool:
    """Encode and store a JSON value; returns False if the write failed."""
    try:
        storage.set_item(key, json.dumps(value))
    except (TypeError, ValueError, StorageQuotaExceeded, OSError):
        logger.exception("Failed to write %s to local storage", key)
        return False
    return True


def _byte_len(value: str) -> int:
    return len(value.encode("utf-8"))
