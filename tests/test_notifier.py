"""Tests for change notifiers."""

from daily_meals.domain.changes import MealChange
from daily_meals.services.notifier import (
    CompositeNotifier,
    InProcessNotifier,
    StorageEventNotifier,
)
from daily_meals.services.storage import StorageArea


def test_in_process_delivers_synchronously() -> None:
    notifier = InProcessNotifier()
    received: list[MealChange | None] = []
    notifier.subscribe(received.append)

    notifier.publish(MealChange(meal_id=2, status="completed", calories=200))

    assert [change.meal_id for change in received] == [2]


def test_unsubscribe_stops_delivery() -> None:
    notifier = InProcessNotifier()
    received: list[MealChange | None] = []
    unsubscribe = notifier.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    notifier.publish(MealChange(meal_id=1))

    assert received == []
    assert notifier.subscriber_count() == 0


def test_failing_handler_does_not_block_others() -> None:
    notifier = InProcessNotifier()
    received: list[MealChange | None] = []

    def broken(_change: MealChange | None) -> None:
        raise ValueError("bad handler")

    notifier.subscribe(broken)
    notifier.subscribe(received.append)
    notifier.publish(MealChange(meal_id=1))

    assert len(received) == 1


def test_change_accepts_camel_case_payload() -> None:
    change = MealChange.model_validate(
        {"mealId": 4, "analysisData": {"calories": 420}}
    )

    assert change.meal_id == 4
    assert change.analysis_data == {"calories": 420}
    assert change.status is None


def test_storage_notifier_reacts_to_day_keys_from_other_sessions() -> None:
    area = StorageArea()
    writer = area.open_session()
    reader = area.open_session()
    received: list[MealChange | None] = []
    StorageEventNotifier(reader).subscribe(received.append)

    writer.set_item("mealStatus_2024-05-10", "{}")
    writer.set_item("unrelated", "1")
    area.dispatch_pending()

    assert received == [None]


def test_storage_notifier_ignores_own_writes() -> None:
    area = StorageArea()
    session = area.open_session()
    received: list[MealChange | None] = []
    StorageEventNotifier(session).subscribe(received.append)

    session.set_item("nutri-mindflow-calories", "{}")
    area.dispatch_pending()

    assert received == []


def test_composite_fans_out_and_unsubscribes_everywhere() -> None:
    area = StorageArea()
    writer = area.open_session()
    reader = area.open_session()
    local = InProcessNotifier()
    notifier = CompositeNotifier([local, StorageEventNotifier(reader)])
    received: list[MealChange | None] = []
    unsubscribe = notifier.subscribe(received.append)

    notifier.publish(MealChange(meal_id=1))
    writer.set_item("mealStatus_2024-05-10", "{}")
    area.dispatch_pending()
    unsubscribe()
    notifier.publish(MealChange(meal_id=2))
    writer.set_item("mealStatus_2024-05-10", "[]")
    area.dispatch_pending()

    assert len(received) == 2
    assert local.subscriber_count() == 0
