from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from engine_bridge.api.models import SessionEvent
from engine_bridge.engine import EngineProcessHandle, wait_for_reapers

logger = logging.getLogger(__name__)

Emit = Callable[[SessionEvent], Awaitable[None]]


@dataclass(slots=True)
class Session:
    """One client connection and (at most) one worker process.

    `emit` pushes an event back to the client; `lock` serializes start/command
    handling for this session only.
    """

    session_id: str
    emit: Emit
    handle: EngineProcessHandle | None = None
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def release(self) -> None:
        self.closed = True
        handle, self.handle = self.handle, None
        if handle is not None:
            await handle.stop()


class SessionRegistry:
    """Session-id -> Session map.

    Contract:
      - `create(id, emit)` registers a session; registering an id that already
        exists stops the old session's worker and replaces it.
      - `remove(id)` stops the session's worker before the entry is dropped.

    Mutations are serialized by one lock; stopping a worker only signals it, so
    holding the lock across `stop()` never waits on a process.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def ids(self) -> list[str]:
        return list(self._sessions)

    async def create(self, session_id: str, *, emit: Emit) -> Session:
        async with self._lock:
            previous = self._sessions.get(session_id)
            if previous is not None:
                logger.info("Session %s registered again; replacing previous session", session_id)
                await previous.release()
            session = Session(session_id=session_id, emit=emit)
            self._sessions[session_id] = session
        return session

    async def get(self, session_id: str) -> Session | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> Session | None:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            await session.release()
            del self._sessions[session_id]
        return session

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            for session in sessions:
                await session.release()
            self._sessions.clear()
        # Stopped workers are only signalled; wait out their kill escalation.
        await wait_for_reapers()
        if sessions:
            logger.info("Closed %d session(s)", len(sessions))
