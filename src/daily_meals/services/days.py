"""Entry points for working with today's meals."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from daily_meals.domain.days import HistoryEntry, MealEntry
from daily_meals.domain.meals import MealSlot, Nutrition, UnknownMealSlot
from daily_meals.services.calories import CalorieAccumulator
from daily_meals.services.day_store import DEFAULT_HISTORY_LIMIT, LocalDayStore
from daily_meals.services.meal_records import MealRecordStore
from daily_meals.services.notifier import (
    ChangeNotifier,
    CompositeNotifier,
    InProcessNotifier,
    StorageEventNotifier,
)
from daily_meals.services.reconciler import DayView
from daily_meals.services.rollover import RolloverDetector
from daily_meals.services.storage import StorageKeys, StorageSession
from daily_meals.services.sync import MealSyncService


@dataclass
class DayService:
    """Shares one session's stores and notifier between its day views."""

    template: tuple[MealSlot, ...]
    store: LocalDayStore
    accumulator: CalorieAccumulator
    meal_records: MealRecordStore
    notifier: ChangeNotifier
    rollover: RolloverDetector
    sync: MealSyncService | None = None

    def open_view(self) -> DayView:
        """Create and mount a new view of today's meals."""
        view = DayView(
            template=self.template,
            store=self.store,
            accumulator=self.accumulator,
            meal_records=self.meal_records,
            notifier=self.notifier,
            rollover=self.rollover,
            sync=self.sync,
        )
        view.mount()
        return view

    def record_nutrition(self, meal_id: int, nutrition: Nutrition) -> MealEntry:
        """Store manually entered nutrition for a template slot."""
        slot = self._template_slot(meal_id)
        return self.meal_records.record_nutrition(meal_id, slot.name, nutrition)

    def history(self) -> list[HistoryEntry]:
        self.rollover.ensure_current()
        return self.store.list_history()

    def _template_slot(self, meal_id: int) -> MealSlot:
        for slot in self.template:
            if slot.id == meal_id:
                return slot
        raise UnknownMealSlot(meal_id)


def build_day_service(  # noqa: PLR0913
    storage: StorageSession,
    *,
    template: Sequence[MealSlot],
    today: Callable[[], str],
    keys: StorageKeys | None = None,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
    sync: MealSyncService | None = None,
) -> DayService:
    """Wire the stores and notifiers of one storage session."""
    resolved_keys = keys or StorageKeys()
    store = LocalDayStore(storage, keys=resolved_keys, history_limit=history_limit)
    accumulator = CalorieAccumulator(storage, today=today, keys=resolved_keys)
    notifier = CompositeNotifier(
        [InProcessNotifier(), StorageEventNotifier(storage, keys=resolved_keys)]
    )
    rollover = RolloverDetector(
        store=store,
        accumulator=accumulator,
        today=today,
        backup=sync.backup_day if sync is not None else None,
    )
    return DayService(
        template=tuple(template),
        store=store,
        accumulator=accumulator,
        meal_records=MealRecordStore(storage, today=today, keys=resolved_keys),
        notifier=notifier,
        rollover=rollover,
        sync=sync,
    )
