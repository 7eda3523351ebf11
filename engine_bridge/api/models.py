from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ClientMessageType = Literal["start-engine", "engine-command"]
SessionEventType = Literal["engine-response", "engine-error", "engine-status"]


class ClientMessage(BaseModel):
    """Inbound WebSocket frame.

    `{"type": "start-engine"}` or `{"type": "engine-command", "data": "go depth 4"}`.
    """

    type: ClientMessageType
    data: str | None = None


class SessionEvent(BaseModel):
    type: SessionEventType
    data: str

    @staticmethod
    def response(line: str) -> "SessionEvent":
        return SessionEvent(type="engine-response", data=line)

    @staticmethod
    def error(message: str) -> "SessionEvent":
        return SessionEvent(type="engine-error", data=message)

    @staticmethod
    def status(message: str) -> "SessionEvent":
        return SessionEvent(type="engine-status", data=message)


class EngineInfo(BaseModel):
    engine_path: str
    engine_found: bool
    sessions: int = Field(..., ge=0)
