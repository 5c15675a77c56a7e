"""ASGI entrypoint for the poker tracker API."""

from poker_tracker.api.app import create_app
from poker_tracker.containers import build_container

app = create_app(build_container())
