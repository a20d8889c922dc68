"""Per-day keyed store for meal slot statuses."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from daily_meals.domain.days import DayRecord, HistoryEntry
from daily_meals.services.storage import (
    StorageKeys,
    StorageSession,
    read_json,
    write_json,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


class DayStore(Protocol):
    """Persistence interface for day records and their history."""

    def read(self, date_key: str) -> DayRecord | None:
        """Return the record stored for a date, or None."""

    def write(self, date_key: str, record: DayRecord) -> bool:
        """Overwrite the record for a date; False if the write failed."""

    def remove(self, date_key: str) -> None:
        """Remove the record for a date."""

    def day_keys(self) -> list[str]:
        """Return the date keys that currently hold a record, oldest first."""

    def archive(self, entry: HistoryEntry) -> bool:
        """Store an archived day in the history collection."""

    def list_history(self) -> list[HistoryEntry]:
        """Return archived days, oldest first."""


@dataclass
class LocalDayStore(DayStore):
    """Day store backed by a local storage session."""

    storage: StorageSession
    keys: StorageKeys = field(default_factory=StorageKeys)
    history_limit: int = DEFAULT_HISTORY_LIMIT

    def read(self, date_key: str) -> DayRecord | None:
        """Return the stored record; corrupt or unknown shapes count as absent."""
        raw = read_json(self.storage, self.keys.day(date_key))
        if raw is None:
            return None
        # Older clients stored a bare list of {id, status} objects.
        if isinstance(raw, list):
            raw = {"date": date_key, "slots": raw}
        try:
            record = DayRecord.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed day record for %s", date_key)
            return None
        if record.date != date_key:
            logger.warning(
                "Day record under %s claims date %s, ignoring", date_key, record.date
            )
            return None
        return record

    def write(self, date_key: str, record: DayRecord) -> bool:
        """Serialize and store a record, replacing the previous value."""
        return write_json(
            self.storage, self.keys.day(date_key), record.model_dump(mode="json")
        )

    def remove(self, date_key: str) -> None:
        try:
            self.storage.remove_item(self.keys.day(date_key))
        except OSError:
            logger.exception("Failed to remove day record for %s", date_key)

    def day_keys(self) -> list[str]:
        date_keys = [self.keys.parse_day(key) for key in self.storage.keys()]
        return sorted(date_key for date_key in date_keys if date_key is not None)

    def archive(self, entry: HistoryEntry) -> bool:
        """Add or replace the history entry for the entry's date."""
        history = self._load_history()
        history[entry.date] = entry
        kept = sorted(history)[-self.history_limit :]
        payload = {
            date_key: history[date_key].model_dump(mode="json") for date_key in kept
        }
        return write_json(self.storage, self.keys.history, payload)

    def list_history(self) -> list[HistoryEntry]:
        history = self._load_history()
        return [history[date_key] for date_key in sorted(history)]

    def _load_history(self) -> dict[str, HistoryEntry]:
        raw = read_json(self.storage, self.keys.history)
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("Ignoring malformed meal history")
            return {}
        history: dict[str, HistoryEntry] = {}
        for date_key, item in raw.items():
            try:
                history[date_key] = HistoryEntry.model_validate(item)
            except ValidationError:
                logger.warning("Skipping malformed history entry for %s", date_key)
        return history
