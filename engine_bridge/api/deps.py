from __future__ import annotations

from starlette.requests import HTTPConnection

from engine_bridge.commands import CommandRouter
from engine_bridge.registry import SessionRegistry
from engine_bridge.settings import BridgeSettings


# HTTPConnection works for both HTTP and WebSocket routes.
def get_command_router(connection: HTTPConnection) -> CommandRouter:
    return connection.app.state.command_router


def get_registry(connection: HTTPConnection) -> SessionRegistry:
    return connection.app.state.registry


def get_settings(connection: HTTPConnection) -> BridgeSettings:
    return connection.app.state.settings
