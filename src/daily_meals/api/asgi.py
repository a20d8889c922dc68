"""ASGI entrypoint for the daily meals API."""

from daily_meals.api.app import create_app
from daily_meals.containers import build_container

app = create_app(build_container())
