from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class EngineState(StrEnum):
    not_started = "not_started"
    starting = "starting"
    ready = "ready"
    busy = "busy"
    terminated = "terminated"
    error = "error"


class EngineLifecycle(StateMachine):
    """Lifecycle of one worker process.

    not_started -> starting -> ready -> (busy <-> ready) -> terminated,
    with `errored` reachable from any running state. The handle drives the
    transitions; the machine only guards them.
    """

    not_started = State("NotStarted", value=EngineState.not_started.value, initial=True)
    starting = State("Starting", value=EngineState.starting.value)
    ready = State("Ready", value=EngineState.ready.value)
    busy = State("Busy", value=EngineState.busy.value)
    errored = State("Error", value=EngineState.error.value)
    terminated = State("Terminated", value=EngineState.terminated.value, final=True)

    spawn = not_started.to(starting)
    handshake_ok = starting.to(ready)
    search = ready.to(busy)
    search_done = busy.to(ready)
    fail = not_started.to(errored) | starting.to(errored) | ready.to(errored) | busy.to(errored)
    halt = (
        not_started.to(terminated)
        | starting.to(terminated)
        | ready.to(terminated)
        | busy.to(terminated)
        | errored.to(terminated)
    )

    @property
    def engine_state(self) -> EngineState:
        return EngineState(str(self.current_state.value))
