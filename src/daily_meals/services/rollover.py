"""Daily rollover: archive finished days and start today from the template."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from daily_meals.domain.days import HistoryEntry
from daily_meals.services.calories import CalorieAccumulator
from daily_meals.services.day_store import DayStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Current:
    """Stored state already belongs to ``date_key``."""

    date_key: str


@dataclass(frozen=True)
class NeedsRollover:
    """Records from earlier days are still stored as if they were current."""

    from_key: str
    to_key: str
    stale_keys: tuple[str, ...]


RolloverState = Current | NeedsRollover


def detect_rollover(store: DayStore, today_key: str) -> RolloverState:
    """Compare today's date key against the keys present in the store."""
    stale_keys = tuple(key for key in store.day_keys() if key < today_key)
    if not stale_keys:
        return Current(today_key)
    return NeedsRollover(
        from_key=stale_keys[-1], to_key=today_key, stale_keys=stale_keys
    )


def perform_rollover(
    state: RolloverState,
    store: DayStore,
    accumulator: CalorieAccumulator,
    backup: Callable[[HistoryEntry], object] | None = None,
    now: datetime | None = None,
) -> Current:
    """Archive every stale day, clear it and reset the calorie ledger."""
    if isinstance(state, Current):
        return state
    archived_at = now or datetime.now(tz=UTC)
    ledger = accumulator.stored_ledger()
    for date_key in state.stale_keys:
        record = store.read(date_key)
        total = ledger.total if ledger is not None and ledger.date == date_key else 0
        entry = HistoryEntry(
            date=date_key,
            slots=record.slots if record is not None else [],
            total_calories=total,
            archived_at=archived_at,
        )
        try:
            if not store.archive(entry):
                logger.warning("Archiving %s failed, rolling over anyway", date_key)
            if backup is not None:
                backup(entry)
        except Exception:
            logger.exception("Failed to archive %s, rolling over anyway", date_key)
        store.remove(date_key)
    accumulator.reset(state.to_key)
    logger.info("Rolled over meals from %s to %s", state.from_key, state.to_key)
    return Current(state.to_key)


@dataclass
class RolloverDetector:
    """Runs the rollover check once per view mount."""

    store: DayStore
    accumulator: CalorieAccumulator
    today: Callable[[], str]
    backup: Callable[[HistoryEntry], object] | None = None

    def check(self) -> RolloverState:
        return detect_rollover(self.store, self.today())

    def ensure_current(self) -> Current:
        """Perform a pending rollover and return the current state."""
        return perform_rollover(
            self.check(), self.store, self.accumulator, backup=self.backup
        )
