from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from engine_bridge import __version__
from engine_bridge.api.routes import router
from engine_bridge.commands import CommandRouter
from engine_bridge.registry import SessionRegistry
from engine_bridge.settings import BridgeSettings, get_log_level, project_root, settings_from_env

# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


def create_app(settings: BridgeSettings | None = None) -> FastAPI:
    """Build the bridge application.

    `settings=None` resolves them from the environment at startup; the engine
    path is fixed for the lifetime of the app from then on.
    """

    app = FastAPI(title="engine-bridge", version=__version__)
    app.include_router(router)

    @app.on_event("startup")
    async def _startup() -> None:
        resolved = settings or settings_from_env()
        registry = SessionRegistry()
        app.state.settings = resolved
        app.state.registry = registry
        app.state.command_router = CommandRouter(registry=registry, settings=resolved)

        logger.info("Engine bridge ready on %s:%s", resolved.host, resolved.port)
        logger.info("Engine path: %s", resolved.engine_path)
        if not resolved.engine_path.is_file():
            logger.warning("Engine binary is missing; start-engine will report an error until it is built")

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.registry.close_all()

    # Serve the browser client when it's checked out next to the bridge.
    # Absent in tests/CI; don't fail import.
    static_dir = project_root() / "public"
    if static_dir.exists():
        app.mount("/ui", StaticFiles(directory=str(static_dir), html=True), name="ui")

        @app.get("/")
        async def _root() -> RedirectResponse:
            return RedirectResponse(url="/ui/")

    return app


app = create_app()
