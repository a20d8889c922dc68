"""Tests for daily rollover."""

import json
from datetime import UTC, datetime

from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.domain.days import DayRecord, HistoryEntry, SlotStatus
from daily_meals.domain.meals import Nutrition
from daily_meals.services.calories import CalorieAccumulator
from daily_meals.services.day_store import LocalDayStore
from daily_meals.services.days import DayService
from daily_meals.services.rollover import (
    Current,
    NeedsRollover,
    RolloverDetector,
    detect_rollover,
    perform_rollover,
)
from daily_meals.services.storage import StorageArea
from tests.conftest import FakeClock

NOW = datetime(2024, 5, 11, 0, 5, tzinfo=UTC)


def _wire(clock: FakeClock) -> tuple[LocalDayStore, CalorieAccumulator]:
    session = StorageArea().open_session()
    return LocalDayStore(session), CalorieAccumulator(session, today=clock)


def _completed(date_key: str, *slot_ids: int) -> DayRecord:
    return DayRecord(
        date=date_key,
        slots=[SlotStatus(id=slot_id, status="completed") for slot_id in slot_ids],
    )


def test_detect_current_when_only_today_is_stored() -> None:
    store, _ = _wire(FakeClock())
    store.write("2024-05-10", _completed("2024-05-10", 1))

    assert detect_rollover(store, "2024-05-10") == Current("2024-05-10")


def test_detect_collects_every_stale_key_and_ignores_future_ones() -> None:
    store, _ = _wire(FakeClock())
    for date_key in ("2024-05-07", "2024-05-09", "2024-05-12"):
        store.write(date_key, DayRecord(date=date_key))

    state = detect_rollover(store, "2024-05-10")

    assert state == NeedsRollover(
        from_key="2024-05-09",
        to_key="2024-05-10",
        stale_keys=("2024-05-07", "2024-05-09"),
    )


def test_rollover_archives_previous_day_and_resets_calories() -> None:
    clock = FakeClock()
    store, accumulator = _wire(clock)
    store.write("2024-05-10", _completed("2024-05-10", 1, 2))
    accumulator.credit(1, 350)
    accumulator.credit(2, 200)
    clock.advance()

    state = perform_rollover(
        detect_rollover(store, clock()), store, accumulator, now=NOW
    )

    assert state == Current("2024-05-11")
    assert store.read("2024-05-10") is None
    assert store.day_keys() == []
    assert accumulator.total() == 0
    stored = accumulator.stored_ledger()
    assert stored is not None
    assert stored.date == "2024-05-11"
    (entry,) = store.list_history()
    assert entry.date == "2024-05-10"
    assert entry.total_calories == 550
    assert entry.completed_count == 2
    assert entry.archived_at == NOW


def test_rollover_of_older_day_does_not_reuse_another_days_total() -> None:
    clock = FakeClock()
    store, accumulator = _wire(clock)
    store.write("2024-05-08", _completed("2024-05-08", 1))
    accumulator.credit(1, 350)

    perform_rollover(detect_rollover(store, clock()), store, accumulator, now=NOW)

    (entry,) = store.list_history()
    assert entry.date == "2024-05-08"
    assert entry.total_calories == 0


def test_rollover_is_a_no_op_when_current() -> None:
    store, accumulator = _wire(FakeClock())
    accumulator.credit(1, 350)

    state = perform_rollover(Current("2024-05-10"), store, accumulator)

    assert state == Current("2024-05-10")
    assert accumulator.total() == 350


def test_backup_failure_does_not_block_rollover() -> None:
    clock = FakeClock()
    store, accumulator = _wire(clock)
    store.write("2024-05-10", _completed("2024-05-10", 1))
    clock.advance()

    def failing_backup(_entry: HistoryEntry) -> None:
        raise ConnectionError("network unreachable")

    detector = RolloverDetector(
        store=store, accumulator=accumulator, today=clock, backup=failing_backup
    )

    assert detector.ensure_current() == Current("2024-05-11")
    assert store.day_keys() == []
    assert [entry.date for entry in store.list_history()] == ["2024-05-10"]


def test_detector_backs_up_archived_days() -> None:
    clock = FakeClock()
    store, accumulator = _wire(clock)
    store.write("2024-05-10", _completed("2024-05-10", 3))
    backed_up: list[HistoryEntry] = []
    detector = RolloverDetector(
        store=store, accumulator=accumulator, today=clock, backup=backed_up.append
    )
    clock.advance()

    assert isinstance(detector.check(), NeedsRollover)
    detector.ensure_current()

    assert [entry.date for entry in backed_up] == ["2024-05-10"]
    assert detector.check() == Current("2024-05-11")


def test_previous_days_analysis_does_not_carry_over(
    day_service: DayService, clock: FakeClock
) -> None:
    records = day_service.meal_records
    records.save_analysis(
        AnalysisRecord(
            id="analysis-1",
            food_name="Feast",
            calories=900,
            meal_id=3,
            created_at=datetime(2024, 5, 10, 12, tzinfo=UTC),
        )
    )
    records.link_analysis(3, "Lunch", "analysis-1")
    view = day_service.open_view()
    view.confirm(3)
    assert view.total_calories() == 900
    clock.advance()

    view.confirm(3)

    assert view.get_slot(3).nutrition == Nutrition(300)
    assert view.total_calories() == 300
    assert records.analysis_for_meal(3) is None
    assert records.get_analysis("analysis-1") is not None
    assert day_service.history()[0].total_calories == 900


def test_previous_days_recorded_nutrition_does_not_carry_over(
    day_service: DayService, clock: FakeClock
) -> None:
    day_service.record_nutrition(1, Nutrition(1200))
    day_service.open_view().confirm(1)
    clock.advance()

    view = day_service.open_view()
    view.confirm(1)

    assert view.total_calories() == 350
    assert day_service.meal_records.get_entry(1) is None


def test_recording_today_drops_entries_from_earlier_days(
    day_service: DayService, clock: FakeClock
) -> None:
    day_service.record_nutrition(1, Nutrition(1200))
    clock.advance()

    entry = day_service.record_nutrition(2, Nutrition(250))

    assert entry.date == "2024-05-11"
    assert [item.id for item in day_service.meal_records.list_entries()] == [2]
    raw = json.loads(day_service.store.storage.get_item("nutri-mindflow-meals"))
    assert [item["id"] for item in raw] == [2]
