from __future__ import annotations

from enum import StrEnum
from pathlib import Path


class BridgeErrorKind(StrEnum):
    binary_not_found = "binary_not_found"
    spawn_failure = "spawn_failure"
    write_to_dead_process = "write_to_dead_process"


class BridgeError(RuntimeError):
    """Base for failures reported back to the owning session.

    `message` is what the client sees; `str(error)` carries the detail for logs.
    """

    kind: BridgeErrorKind
    message: str = "Engine bridge error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


class BinaryNotFound(BridgeError):
    kind = BridgeErrorKind.binary_not_found
    message = "Chess engine binary not found. Please ensure it is built."

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Engine binary not found at: {path}")


class SpawnFailure(BridgeError):
    kind = BridgeErrorKind.spawn_failure
    message = "Failed to start engine process"

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path = path
        super().__init__(f"Failed to spawn {path}: {cause}")


class WriteToDeadProcess(BridgeError):
    kind = BridgeErrorKind.write_to_dead_process
    message = "Engine not running"
