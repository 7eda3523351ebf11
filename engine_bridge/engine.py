from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from engine_bridge.errors import BinaryNotFound, BridgeError, SpawnFailure, WriteToDeadProcess
from engine_bridge.framing import LineFramer
from engine_bridge.lifecycle import EngineLifecycle, EngineState

logger = logging.getLogger(__name__)

# Sent on every fresh spawn, in this order.
HANDSHAKE: tuple[str, ...] = ("uci", "isready")
HANDSHAKE_ACK = "readyok"

READ_CHUNK_SIZE = 4096

# How long a terminated worker gets before it is killed outright.
KILL_GRACE_S = 2.0

LineCallback = Callable[["EngineProcessHandle", str], Awaitable[None]]
ExitCallback = Callable[["EngineProcessHandle", int | None], Awaitable[None]]

# Strong references to fire-and-forget reaper tasks.
_reapers: set[asyncio.Task[None]] = set()


async def _ignore_line(handle: EngineProcessHandle, line: str) -> None:
    return None


async def _ignore_exit(handle: EngineProcessHandle, returncode: int | None) -> None:
    return None


def _first_word(line: str) -> str:
    parts = line.split(maxsplit=1)
    return parts[0] if parts else ""


async def _reap(process: asyncio.subprocess.Process) -> None:
    try:
        await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_S)
    except TimeoutError:
        logger.warning("Engine pid %s ignored terminate; killing", process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


async def wait_for_reapers() -> None:
    """Wait (bounded) for every pending terminate-then-kill escalation.

    Used on shutdown so no signalled worker outlives the event loop.
    """

    pending = list(_reapers)
    if pending:
        await asyncio.wait(pending, timeout=KILL_GRACE_S + 1.0)


class EngineProcessHandle:
    """Owns exactly one external worker process and its I/O.

    Contract:
      - `start()` spawns the worker, binds a fresh `LineFramer` to its stdout
        and writes the handshake. Calling it again kills the previous process
        first; nothing the old process prints is delivered afterwards.
      - `send(line)` writes `line + "\\n"` to stdin. Writes are serialized, so
        lines arrive in the order `send` was called.
      - `stop()` signals the process, stops delivery and is idempotent.

    Output lines and the exit notification are delivered through the
    `on_line` / `on_exit` coroutines, from a reader task owned by the handle.
    """

    def __init__(
        self,
        executable: Path,
        *,
        args: Sequence[str] = (),
        on_line: LineCallback | None = None,
        on_exit: ExitCallback | None = None,
    ) -> None:
        self.executable = Path(executable)
        self.args = tuple(args)
        self.last_error: BridgeError | None = None
        self.returncode: int | None = None

        self._on_line = on_line or _ignore_line
        self._on_exit = on_exit or _ignore_exit
        self._lifecycle = EngineLifecycle()
        self._process: asyncio.subprocess.Process | None = None
        self._readers: list[asyncio.Task[None]] = []
        self._write_lock = asyncio.Lock()
        self._start_lock = asyncio.Lock()
        # Bumped by every start/stop; a spawn that finishes under a newer
        # generation was superseded and signals its own process.
        self._generation = 0
        self._settled = asyncio.Event()
        self._stopping = False

    @property
    def state(self) -> EngineState:
        return self._lifecycle.engine_state

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def writable(self) -> bool:
        if self.state in (EngineState.not_started, EngineState.terminated, EngineState.error):
            return False
        proc = self._process
        return (
            proc is not None
            and proc.returncode is None
            and proc.stdin is not None
            and not proc.stdin.is_closing()
        )

    async def start(self) -> None:
        async with self._start_lock:
            await self._start()

    async def _start(self) -> None:
        if self._process is not None or self.state is not EngineState.not_started:
            logger.info("Restarting engine %s (previous pid %s)", self.executable.name, self.pid)
            await self.stop()
            self._lifecycle = EngineLifecycle()
            self.last_error = None
            self.returncode = None

        self._generation += 1
        generation = self._generation
        self._stopping = False
        self._settled.clear()

        if not self.executable.is_file():
            raise self._failure(BinaryNotFound(self.executable))

        self._lifecycle.spawn()
        try:
            process = await asyncio.create_subprocess_exec(
                str(self.executable),
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise self._failure(SpawnFailure(self.executable, e)) from e

        self._process = process
        if generation != self._generation:
            # stop() ran while the process was being spawned.
            self._signal(process)
            return
        logger.info("Engine %s started (pid %s)", self.executable.name, process.pid)
        self._readers = [
            asyncio.create_task(self._read_stdout(process, LineFramer()), name=f"engine-stdout-{process.pid}"),
            asyncio.create_task(self._read_stderr(process, LineFramer()), name=f"engine-stderr-{process.pid}"),
        ]

        for line in HANDSHAKE:
            if generation != self._generation:
                return
            try:
                await self._write(line)
            except WriteToDeadProcess as e:
                if generation != self._generation:
                    return
                # The worker died before it could take the handshake.
                self._signal(process)
                raise self._failure(SpawnFailure(self.executable, e)) from e

    async def send(self, line: str) -> None:
        if self.state in (EngineState.not_started, EngineState.terminated, EngineState.error):
            raise WriteToDeadProcess(f"Engine is {self.state.value}; dropped command: {line!r}")

        # Mark busy before the write so a fast `bestmove` can't arrive first.
        if _first_word(line) == "go" and self.state is EngineState.ready:
            self._lifecycle.search()
        await self._write(line)

    async def stop(self) -> None:
        if self.state is EngineState.terminated:
            return

        self._stopping = True
        self._generation += 1
        if self._process is not None:
            self._signal(self._process)

        await self._cancel_readers()
        self._lifecycle.halt()
        self._settled.set()

    def _signal(self, process: asyncio.subprocess.Process) -> None:
        """Send SIGTERM and leave the process to a reaper task; never waits."""

        if process.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        task = asyncio.create_task(_reap(process), name=f"engine-reap-{process.pid}")
        _reapers.add(task)
        task.add_done_callback(_reapers.discard)
        logger.info("Engine %s signalled to stop (pid %s)", self.executable.name, process.pid)

    async def wait_until_ready(self) -> bool:
        """Wait for the handshake acknowledgment (or for the process to go away).

        Returns True if the handle reached `ready`. No timeout is applied here;
        wrap in `asyncio.wait_for` if the caller needs one.
        """

        await self._settled.wait()
        return self.state in (EngineState.ready, EngineState.busy)

    async def wait_exit(self) -> int | None:
        if self._process is None:
            return None
        return await self._process.wait()

    def _failure(self, error: BridgeError) -> BridgeError:
        """Record `error` and move to the error state; the caller raises it."""

        self.last_error = error
        if self.state not in (EngineState.error, EngineState.terminated):
            self._lifecycle.fail()
        self._settled.set()
        logger.error("%s", error)
        return error

    async def _write(self, line: str) -> None:
        async with self._write_lock:
            if not self.writable:
                raise WriteToDeadProcess(f"Engine input is closed; dropped command: {line!r}")
            proc = self._process
            assert proc is not None and proc.stdin is not None
            try:
                proc.stdin.write((line + "\n").encode("utf-8"))
                await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                raise WriteToDeadProcess(f"Engine input broke while writing {line!r}: {e}") from e
            logger.debug("[client -> engine %s] %s", proc.pid, line)

    async def _cancel_readers(self) -> None:
        current = asyncio.current_task()
        readers, self._readers = self._readers, []
        for task in readers:
            if task is current or task.done():
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _deliver(self, process: asyncio.subprocess.Process, line: str) -> None:
        if self._stopping or process is not self._process:
            return

        word = _first_word(line)
        if word == HANDSHAKE_ACK and self.state is EngineState.starting:
            self._lifecycle.handshake_ok()
            self._settled.set()
        elif word == "bestmove" and self.state is EngineState.busy:
            self._lifecycle.search_done()

        logger.debug("[engine %s -> client] %s", process.pid, line)
        await self._on_line(self, line)

    async def _read_stdout(self, process: asyncio.subprocess.Process, framer: LineFramer) -> None:
        assert process.stdout is not None
        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            for line in framer.feed(chunk):
                await self._deliver(process, line)
        for line in framer.flush():
            await self._deliver(process, line)

        returncode = await process.wait()
        await self._handle_exit(process, returncode)

    async def _read_stderr(self, process: asyncio.subprocess.Process, framer: LineFramer) -> None:
        # Diagnostics only: never forwarded to the client.
        assert process.stderr is not None
        while True:
            chunk = await process.stderr.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            for line in framer.feed(chunk):
                logger.warning("[engine %s stderr] %s", process.pid, line)
        for line in framer.flush():
            logger.warning("[engine %s stderr] %s", process.pid, line)

    async def _handle_exit(self, process: asyncio.subprocess.Process, returncode: int) -> None:
        if self._stopping or process is not self._process:
            return

        self.returncode = returncode
        logger.info("Engine process %s exited with code %s", process.pid, returncode)
        if returncode == 0:
            self._lifecycle.halt()
        elif self.state is not EngineState.error:
            self._lifecycle.fail()
        self._settled.set()
        await self._on_exit(self, returncode)
