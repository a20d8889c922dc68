"""Status reconciliation for today's meal slots."""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from daily_meals.domain.changes import MealChange
from daily_meals.domain.days import DayRecord, SlotStatus
from daily_meals.domain.meals import (
    COMPLETED,
    UPCOMING,
    MealSlot,
    MealStatus,
    Nutrition,
    UnknownMealSlot,
)
from daily_meals.services.calories import (
    CalorieAccumulator,
    CalorieSources,
    resolve_calories,
)
from daily_meals.services.day_store import DayStore
from daily_meals.services.meal_records import MealRecordStore
from daily_meals.services.notifier import ChangeNotifier
from daily_meals.services.rollover import RolloverDetector
from daily_meals.services.sync import MealSyncService

logger = logging.getLogger(__name__)


def reconcile(
    template: Sequence[MealSlot],
    record: DayRecord | None,
    nutrition: Mapping[int, Nutrition] | None = None,
) -> list[MealSlot]:
    """Overlay stored statuses and known nutrition onto the template.

    The template fixes which slots exist and their order. Stored entries for
    ids outside the template are ignored.
    """
    stored = {slot.id: slot.status for slot in record.slots} if record else {}
    overrides = nutrition or {}
    slots = []
    for slot in template:
        slots.append(
            replace(
                slot,
                status=stored.get(slot.id, slot.status),
                nutrition=overrides.get(slot.id, slot.nutrition),
            )
        )
    return slots


@dataclass
class DayView:
    """In-memory view of today's meals, kept in sync with local storage."""

    template: Sequence[MealSlot]
    store: DayStore
    accumulator: CalorieAccumulator
    meal_records: MealRecordStore
    notifier: ChangeNotifier
    rollover: RolloverDetector
    sync: MealSyncService | None = None
    slots: list[MealSlot] = field(default_factory=list, init=False)
    date_key: str | None = field(default=None, init=False)
    _unsubscribe: Callable[[], None] | None = field(default=None, init=False)

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> list[MealSlot]:
        """Roll over if needed, hydrate from storage and start listening."""
        self.date_key = self.rollover.ensure_current().date_key
        self.refresh()
        if self._unsubscribe is None:
            self._unsubscribe = self.notifier.subscribe(self._on_change)
        return self.slots

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def refresh(self) -> list[MealSlot]:
        """Re-derive the slots from what storage holds right now."""
        if self.date_key is None:
            self.date_key = self.rollover.today()
        record = self.store.read(self.date_key)
        self.slots = reconcile(self.template, record, self._analysis_nutrition())
        return self.slots

    def total_calories(self) -> int:
        return self.accumulator.total()

    def get_slot(self, slot_id: int) -> MealSlot:
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        raise UnknownMealSlot(slot_id)

    def confirm(self, slot_id: int) -> MealSlot:
        """Mark a slot completed and credit its calories once."""
        slot = self._current_slot(slot_id)
        if slot.status == COMPLETED:
            logger.info("Meal %s already completed on %s", slot_id, self.date_key)
            return slot
        entry = self.meal_records.get_entry(slot_id)
        analysis = self.meal_records.analysis_for_meal(slot_id)
        calories, source = resolve_calories(
            CalorieSources(slot=slot, entry=entry, analysis=analysis)
        )
        updated = self._set_status(slot_id, COMPLETED)
        credited = self.accumulator.credit(slot_id, calories)
        logger.info(
            "Meal %s completed on %s: %s kcal from %s",
            slot_id,
            self.date_key,
            credited,
            source or "no source",
        )
        self.notifier.publish(
            MealChange(
                meal_id=slot_id,
                status=COMPLETED,
                calories=credited,
                foods=list(slot.foods),
                analysis_data=analysis.model_dump(mode="json") if analysis else None,
                timestamp=datetime.now(tz=UTC),
            )
        )
        self._sync(updated)
        return updated

    def undo(self, slot_id: int) -> MealSlot:
        """Mark a slot upcoming again and reverse what confirm credited."""
        slot = self._current_slot(slot_id)
        if slot.status == UPCOMING:
            logger.info("Meal %s is not completed on %s", slot_id, self.date_key)
            return slot
        updated = self._set_status(slot_id, UPCOMING)
        debited = self.accumulator.debit(slot_id)
        logger.info("Meal %s reverted on %s: -%s kcal", slot_id, self.date_key, debited)
        self.notifier.publish(
            MealChange(
                meal_id=slot_id,
                status=UPCOMING,
                calories=-debited,
                foods=list(slot.foods),
                timestamp=datetime.now(tz=UTC),
            )
        )
        self._sync(updated)
        return updated

    def _current_slot(self, slot_id: int) -> MealSlot:
        self._follow_date()
        self.refresh()
        return self.get_slot(slot_id)

    def _follow_date(self) -> None:
        if self.date_key != self.rollover.today():
            self.date_key = self.rollover.ensure_current().date_key

    def _set_status(self, slot_id: int, status: MealStatus) -> MealSlot:
        self.slots = [
            slot.with_status(status) if slot.id == slot_id else slot
            for slot in self.slots
        ]
        record = DayRecord(
            date=self.date_key,
            slots=[SlotStatus(id=slot.id, status=slot.status) for slot in self.slots],
        )
        if not self.store.write(self.date_key, record):
            logger.warning("Status of meal %s was not persisted", slot_id)
        return self.get_slot(slot_id)

    def _sync(self, slot: MealSlot) -> None:
        if self.sync is not None:
            self.sync.sync_status(self.date_key, slot)

    def _analysis_nutrition(self) -> dict[int, Nutrition]:
        nutrition: dict[int, Nutrition] = {}
        for slot in self.template:
            analysis = self.meal_records.analysis_for_meal(slot.id)
            if analysis is not None and analysis.calories > 0:
                nutrition[slot.id] = analysis.nutrition()
        return nutrition

    def _on_change(self, change: MealChange | None) -> None:
        if not self.mounted:
            return
        logger.debug(
            "Refreshing %s after change to meal %s",
            self.date_key,
            change.meal_id if change else "unknown",
        )
        self._follow_date()
        self.refresh()
