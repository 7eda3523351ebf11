from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from engine_bridge.engine import EngineProcessHandle
from engine_bridge.settings import BridgeSettings
from engine_helpers import Recorder, fake_engine_args


@pytest.fixture(autouse=True)
def _hermetic_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's ENGINE_PATH / PORT (shell or .env) out of the tests."""

    for name in ("ENGINE_PATH", "ENGINE_ARGS", "HOST", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def transcript(tmp_path: Path) -> Path:
    """File the fake engine appends every received line to."""

    return tmp_path / "engine-input.log"


@pytest.fixture()
def fake_settings(transcript: Path) -> BridgeSettings:
    # The "engine" is the test interpreter running tests/fake_engine.py.
    return BridgeSettings(
        engine_path=Path(sys.executable),
        engine_args=fake_engine_args("--transcript", str(transcript)),
    )


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def make_handle(recorder: Recorder) -> Callable[..., EngineProcessHandle]:
    def _make(*extra: str, executable: Path | None = None) -> EngineProcessHandle:
        return EngineProcessHandle(
            executable or Path(sys.executable),
            args=fake_engine_args(*extra),
            on_line=recorder.on_line,
            on_exit=recorder.on_exit,
        )

    return _make
