"""Change notification between mounted day views."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from daily_meals.domain.changes import MEAL_COMPLETED_EVENT, MealChange
from daily_meals.services.storage import StorageEvent, StorageKeys, StorageSession

logger = logging.getLogger(__name__)

# Handlers get the change when one is known, or None for a bare "re-read" hint.
ChangeHandler = Callable[[MealChange | None], None]
Unsubscribe = Callable[[], None]


class ChangeNotifier(Protocol):
    """Publish/subscribe interface for meal status changes."""

    def publish(self, change: MealChange) -> None:
        """Tell subscribers that a meal's status changed."""

    def subscribe(self, handler: ChangeHandler) -> Unsubscribe:
        """Register a handler and return a callable that removes it."""


@dataclass
class InProcessNotifier(ChangeNotifier):
    """Synchronous delivery to every subscriber in the same session."""

    _handlers: list[ChangeHandler] = field(default_factory=list)

    def publish(self, change: MealChange) -> None:
        logger.debug("Publishing %s for meal %s", MEAL_COMPLETED_EVENT, change.meal_id)
        for handler in list(self._handlers):
            try:
                handler(change)
            except Exception:
                logger.exception("Change handler failed for meal %s", change.meal_id)

    def subscribe(self, handler: ChangeHandler) -> Unsubscribe:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def subscriber_count(self) -> int:
        return len(self._handlers)


@dataclass
class StorageEventNotifier(ChangeNotifier):
    """Cross-session delivery driven by storage change events.

    The store write that accompanies every change already raises a storage
    event in the other sessions, so publishing does nothing here.
    """

    storage: StorageSession
    keys: StorageKeys = field(default_factory=StorageKeys)

    def publish(self, change: MealChange) -> None:
        return None

    def subscribe(self, handler: ChangeHandler) -> Unsubscribe:
        def on_storage(event: StorageEvent) -> None:
            if self.keys.is_day_state(event.key):
                handler(None)

        return self.storage.add_listener(on_storage)


@dataclass
class CompositeNotifier(ChangeNotifier):
    """Fans publish and subscribe out to several notifiers."""

    notifiers: list[ChangeNotifier]

    def publish(self, change: MealChange) -> None:
        for notifier in self.notifiers:
            notifier.publish(change)

    def subscribe(self, handler: ChangeHandler) -> Unsubscribe:
        removers = [notifier.subscribe(handler) for notifier in self.notifiers]

        def unsubscribe() -> None:
            for remove in removers:
                remove()

        return unsubscribe
