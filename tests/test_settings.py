from __future__ import annotations

from pathlib import Path

import pytest

from engine_bridge.settings import DEFAULT_PORT, default_engine_path, project_root, settings_from_env


def test_defaults_point_at_release_build() -> None:
    s = settings_from_env()
    assert s.engine_path == default_engine_path()
    assert s.engine_path.parent == project_root() / "oxidized-fish" / "target" / "release"
    assert s.engine_args == ()
    assert s.host == "0.0.0.0"
    assert s.port == DEFAULT_PORT
    assert s.log_level == "INFO"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    engine = tmp_path / "engine"
    monkeypatch.setenv("ENGINE_PATH", str(engine))
    monkeypatch.setenv("ENGINE_ARGS", "--threads 2 'some arg'")
    monkeypatch.setenv("PORT", "8088")
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = settings_from_env()
    assert s.engine_path == engine.resolve()
    assert s.engine_args == ("--threads", "2", "some arg")
    assert s.port == 8088
    assert s.host == "127.0.0.1"
    assert s.log_level == "DEBUG"


def test_bad_port_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "not-a-port")
    with pytest.raises(ValueError, match="PORT"):
        settings_from_env()
