"""ASGI entrypoint for the game server API."""

from uno_server.api.app import create_app
from uno_server.containers import build_container

app = create_app(build_container())
