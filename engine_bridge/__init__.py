"""Engine session bridge: one external UCI worker process per client connection.

The core (framing, process handle, registry, command routing) is kept free of
FastAPI concerns so it can be driven from the WebSocket routes and from tests.
"""
from __future__ import annotations

__version__ = "0.1.0"
