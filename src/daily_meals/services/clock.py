"""Local calendar date helpers."""

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo


def today_key(timezone_name: str) -> str:
    """Return today's date in the given timezone as ``YYYY-MM-DD``."""
    return datetime.now(tz=ZoneInfo(timezone_name)).date().isoformat()


def make_today(timezone_name: str) -> Callable[[], str]:
    """Return a callable producing today's date key for a timezone."""
    ZoneInfo(timezone_name)

    def today() -> str:
        return today_key(timezone_name)

    return today
