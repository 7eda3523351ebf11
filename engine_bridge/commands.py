from __future__ import annotations

import logging
from functools import partial

from engine_bridge.api.models import SessionEvent
from engine_bridge.engine import EngineProcessHandle
from engine_bridge.errors import BridgeError, WriteToDeadProcess
from engine_bridge.registry import Emit, Session, SessionRegistry
from engine_bridge.settings import BridgeSettings

logger = logging.getLogger(__name__)

ENGINE_STOPPED = "Engine stopped"


class CommandRouter:
    """Maps session events onto the session's `EngineProcessHandle`.

    start-engine -> fresh handle (the old one is stopped first)
    engine-command -> `handle.send`
    disconnect -> `SessionRegistry.remove`

    Handle output comes back as engine-response / engine-status events. Anything
    a replaced or stopped handle still produces is dropped here.
    """

    def __init__(self, *, registry: SessionRegistry, settings: BridgeSettings) -> None:
        self.registry = registry
        self.settings = settings

    async def connect(self, session_id: str, emit: Emit) -> Session:
        return await self.registry.create(session_id, emit=emit)

    async def disconnect(self, session_id: str) -> None:
        session = await self.registry.remove(session_id)
        if session is not None:
            logger.info("Session %s removed; engine released", session_id)

    async def start(self, session_id: str) -> EngineProcessHandle | None:
        session = await self.registry.get(session_id)
        if session is None:
            logger.warning("start-engine for unknown session %s", session_id)
            return None

        async with session.lock:
            if session.handle is not None:
                logger.info("Restarting engine for session %s", session_id)
                old, session.handle = session.handle, None
                await old.stop()

            handle = EngineProcessHandle(
                self.settings.engine_path,
                args=self.settings.engine_args,
                on_line=partial(self._on_line, session),
                on_exit=partial(self._on_exit, session),
            )
            session.handle = handle
            try:
                await handle.start()
            except BridgeError as e:
                logger.warning("Session %s: engine start failed (%s): %s", session_id, e.kind, e)
                session.handle = None
                await handle.stop()
                await self._emit(session, SessionEvent.error(e.message))
                return None

            if session.closed:
                # Disconnected while the process was spawning.
                session.handle = None
                await handle.stop()
                return None
            return handle

    async def command(self, session_id: str, text: str) -> None:
        session = await self.registry.get(session_id)
        if session is None:
            logger.warning("engine-command for unknown session %s", session_id)
            return

        async with session.lock:
            handle = session.handle
            try:
                if handle is None:
                    raise WriteToDeadProcess(f"No engine for session {session_id}; dropped command: {text!r}")
                await handle.send(text)
            except WriteToDeadProcess as e:
                logger.warning("Session %s: %s: %s", session_id, e.kind, e)
                await self._emit(session, SessionEvent.error(e.message))

    async def _emit(self, session: Session, event: SessionEvent) -> None:
        if session.closed:
            return
        await session.emit(event)

    async def _on_line(self, session: Session, handle: EngineProcessHandle, line: str) -> None:
        if session.handle is not handle:
            return
        await self._emit(session, SessionEvent.response(line))

    async def _on_exit(self, session: Session, handle: EngineProcessHandle, returncode: int | None) -> None:
        if session.handle is not handle:
            return
        logger.info("Engine for session %s exited unexpectedly (code %s)", session.session_id, returncode)
        await self._emit(session, SessionEvent.status(ENGINE_STOPPED))
