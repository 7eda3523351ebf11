from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from engine_bridge import __version__
from engine_bridge.api.deps import get_command_router, get_registry, get_settings
from engine_bridge.api.models import ClientMessage, EngineInfo, SessionEvent
from engine_bridge.commands import CommandRouter
from engine_bridge.registry import SessionRegistry
from engine_bridge.settings import BridgeSettings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/engine")
async def engine_ws(websocket: WebSocket, commands: CommandRouter = Depends(get_command_router)) -> None:
    await websocket.accept()
    session_id = uuid4().hex
    send_lock = asyncio.Lock()

    async def emit(event: SessionEvent) -> None:
        # One writer at a time keeps events in the order they were produced.
        async with send_lock:
            try:
                await websocket.send_json(event.model_dump())
            except Exception:
                # Socket is going away; the receive loop below tears the session down.
                logger.debug("Dropped %s for closed session %s", event.type, session_id)

    await commands.connect(session_id, emit)
    logger.info("Client connected: %s", session_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = ClientMessage.model_validate_json(raw)
            except ValidationError:
                logger.warning("Session %s sent an invalid frame: %.200s", session_id, raw)
                await emit(SessionEvent.error("Invalid message"))
                continue

            if msg.type == "start-engine":
                await commands.start(session_id)
            elif msg.data is None:
                await emit(SessionEvent.error("engine-command requires a data string"))
            else:
                await commands.command(session_id, msg.data)
    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", session_id)
        await commands.disconnect(session_id)
    except Exception:
        await commands.disconnect(session_id)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info")
async def info() -> dict[str, str]:
    return {"name": "engine-bridge", "version": __version__}


@router.get("/engine", response_model=EngineInfo)
async def engine_info(
    settings: BridgeSettings = Depends(get_settings),
    registry: SessionRegistry = Depends(get_registry),
) -> EngineInfo:
    return EngineInfo(
        engine_path=str(settings.engine_path),
        engine_found=settings.engine_path.is_file(),
        sessions=len(registry),
    )
