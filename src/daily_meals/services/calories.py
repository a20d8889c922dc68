"""Calorie accounting for completed meals."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.domain.days import CalorieLedger, MealEntry
from daily_meals.domain.meals import MealSlot
from daily_meals.services.storage import (
    StorageKeys,
    StorageSession,
    read_json,
    write_json,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalorieSources:
    """Everything known about a meal slot's calories."""

    slot: MealSlot
    entry: MealEntry | None = None
    analysis: AnalysisRecord | None = None


CalorieResolver = Callable[[CalorieSources], float | None]


def from_analysis(sources: CalorieSources) -> float | None:
    if sources.analysis is not None and sources.analysis.calories > 0:
        return sources.analysis.calories
    return None


def from_recorded_meal(sources: CalorieSources) -> float | None:
    entry = sources.entry
    if entry is not None and entry.nutrition is not None:
        if entry.nutrition.calories > 0:
            return entry.nutrition.calories
    return None


def from_template(sources: CalorieSources) -> float | None:
    nutrition = sources.slot.nutrition
    if nutrition is not None and nutrition.calories > 0:
        return nutrition.calories
    return None


# Ordered by precedence; the first resolver returning a value wins.
CALORIE_RESOLVERS: tuple[tuple[str, CalorieResolver], ...] = (
    ("analysis", from_analysis),
    ("recorded_meal", from_recorded_meal),
    ("template", from_template),
)


def resolve_calories(
    sources: CalorieSources,
    resolvers: tuple[tuple[str, CalorieResolver], ...] = CALORIE_RESOLVERS,
) -> tuple[int, str | None]:
    """Return the calories for a meal and the name of the source used."""
    for name, resolver in resolvers:
        value = resolver(sources)
        if value is not None:
            return round(value), name
    return 0, None


@dataclass
class CalorieAccumulator:
    """Running calorie total for today, persisted in local storage."""

    storage: StorageSession
    today: Callable[[], str]
    keys: StorageKeys = field(default_factory=StorageKeys)

    def stored_ledger(self) -> CalorieLedger | None:
        """Return the persisted ledger regardless of its date."""
        raw = read_json(self.storage, self.keys.calories)
        if raw is None:
            return None
        try:
            return CalorieLedger.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed calorie ledger")
            return None

    def ledger(self) -> CalorieLedger:
        """Return today's ledger; a ledger from another day counts as empty."""
        today = self.today()
        stored = self.stored_ledger()
        if stored is None or stored.date != today:
            return CalorieLedger(date=today)
        return stored

    def total(self) -> int:
        return self.ledger().total

    def apply_delta(self, amount: int) -> int:
        """Add or subtract calories from today's total, never below zero."""
        ledger = self.ledger()
        ledger.total = max(0, ledger.total + amount)
        self._save(ledger)
        return ledger.total

    def credit(self, slot_id: int, amount: int) -> int:
        """Record a slot's contribution once and return the amount credited."""
        ledger = self.ledger()
        if slot_id in ledger.contributions:
            return 0
        amount = max(0, amount)
        ledger.contributions[slot_id] = amount
        ledger.total += amount
        self._save(ledger)
        return amount

    def debit(self, slot_id: int) -> int:
        """Reverse exactly what a slot contributed and return that amount."""
        ledger = self.ledger()
        amount = ledger.contributions.pop(slot_id, 0)
        ledger.total = max(0, ledger.total - amount)
        self._save(ledger)
        return amount

    def reset(self, date_key: str) -> None:
        self._save(CalorieLedger(date=date_key))

    def _save(self, ledger: CalorieLedger) -> bool:
        return write_json(
            self.storage, self.keys.calories, ledger.model_dump(mode="json")
        )
