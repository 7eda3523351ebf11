from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3001


def project_root() -> Path:
    # engine_bridge/settings.py -> engine_bridge/ -> project root
    return Path(__file__).resolve().parents[1]


def default_engine_path(*, root: Path | None = None) -> Path:
    name = "oxidized-fish.exe" if sys.platform == "win32" else "oxidized-fish"
    return (root or project_root()) / "oxidized-fish" / "target" / "release" / name


@dataclass(frozen=True, slots=True)
class BridgeSettings:
    engine_path: Path
    engine_args: tuple[str, ...] = ()
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def settings_from_env() -> BridgeSettings:
    """Resolve settings once, at process start.

    ENGINE_PATH overrides the default relative location of the worker binary;
    ENGINE_ARGS is split shell-style and passed after the executable.
    """

    raw_path = os.environ.get("ENGINE_PATH")
    engine_path = Path(raw_path).expanduser().resolve() if raw_path else default_engine_path()

    raw_port = os.environ.get("PORT", str(DEFAULT_PORT))
    try:
        port = int(raw_port)
    except ValueError as e:
        raise ValueError(f"PORT must be an integer, got {raw_port!r}") from e

    return BridgeSettings(
        engine_path=engine_path,
        engine_args=tuple(shlex.split(os.environ.get("ENGINE_ARGS", ""))),
        host=os.environ.get("HOST", DEFAULT_HOST),
        port=port,
        log_level=get_log_level(),
    )
