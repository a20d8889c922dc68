"""Local cache of recorded meal nutrition and photo analyses."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.domain.days import MealEntry
from daily_meals.domain.meals import Nutrition
from daily_meals.services.storage import (
    StorageKeys,
    StorageSession,
    read_json,
    write_json,
)

logger = logging.getLogger(__name__)


@dataclass
class MealRecordStore:
    """Reads and writes meal entries and analyses in local storage.

    Meal entries belong to the date they were recorded on. Entries from any
    other date are ignored on read and dropped on the next write, so a
    previous day's nutrition or analysis link never reaches today's slots.
    Analyses themselves are kept indefinitely.
    """

    storage: StorageSession
    today: Callable[[], str]
    keys: StorageKeys = field(default_factory=StorageKeys)

    def list_entries(self) -> list[MealEntry]:
        """Return the entries recorded today."""
        raw = read_json(self.storage, self.keys.meals)
        if not isinstance(raw, list):
            return []
        today = self.today()
        entries = []
        for item in raw:
            try:
                entry = MealEntry.model_validate(item)
            except ValidationError:
                logger.warning("Skipping malformed meal entry")
                continue
            if entry.date == today:
                entries.append(entry)
        return entries

    def get_entry(self, meal_id: int) -> MealEntry | None:
        for entry in self.list_entries():
            if entry.id == meal_id:
                return entry
        return None

    def save_entry(self, entry: MealEntry) -> bool:
        """Insert or replace today's entry with the same meal id."""
        entry = entry.model_copy(update={"date": self.today()})
        entries = [item for item in self.list_entries() if item.id != entry.id]
        entries.append(entry)
        return write_json(
            self.storage,
            self.keys.meals,
            [item.model_dump(mode="json") for item in entries],
        )

    def record_nutrition(
        self, meal_id: int, name: str, nutrition: Nutrition
    ) -> MealEntry:
        """Store manually recorded nutrition for a meal slot."""
        current = self.get_entry(meal_id)
        entry = MealEntry(
            id=meal_id,
            date=self.today(),
            name=name or (current.name if current else ""),
            nutrition=nutrition,
            analysis_id=current.analysis_id if current else None,
        )
        self.save_entry(entry)
        return entry

    def link_analysis(self, meal_id: int, name: str, analysis_id: str) -> MealEntry:
        """Point a meal slot at the analysis that describes it."""
        current = self.get_entry(meal_id)
        entry = MealEntry(
            id=meal_id,
            date=self.today(),
            name=name or (current.name if current else ""),
            nutrition=current.nutrition if current else None,
            analysis_id=analysis_id,
        )
        self.save_entry(entry)
        return entry

    def list_analyses(self) -> list[AnalysisRecord]:
        """Return cached analyses, oldest first."""
        records = list(self._load_analyses().values())
        return sorted(records, key=lambda record: record.created_at)

    def get_analysis(self, analysis_id: str) -> AnalysisRecord | None:
        return self._load_analyses().get(analysis_id)

    def save_analysis(self, record: AnalysisRecord) -> bool:
        analyses = self._load_analyses()
        analyses[record.id] = record
        return write_json(
            self.storage,
            self.keys.analyses,
            {key: value.model_dump(mode="json") for key, value in analyses.items()},
        )

    def analysis_for_meal(self, meal_id: int) -> AnalysisRecord | None:
        """Return the analysis linked to a meal slot, if any."""
        entry = self.get_entry(meal_id)
        if entry is None or not entry.analysis_id:
            return None
        return self.get_analysis(entry.analysis_id)

    def _load_analyses(self) -> dict[str, AnalysisRecord]:
        raw = read_json(self.storage, self.keys.analyses)
        if not isinstance(raw, dict):
            return {}
        analyses: dict[str, AnalysisRecord] = {}
        for key, item in raw.items():
            try:
                analyses[key] = AnalysisRecord.model_validate(item)
            except ValidationError:
                logger.warning("Skipping malformed analysis %s", key)
        return analyses
