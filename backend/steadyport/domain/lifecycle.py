"""
ProcessHandle state machine.

    NotStarted -> Listening -> Stopped
    NotStarted -> Failed

Failed and Stopped are terminal. A handle is never restarted in place; the
launcher creates a fresh handle for every start attempt.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional
import uuid

from .errors import BindConflict, LifecycleError, StartupFailure
from .types import HandleId

if TYPE_CHECKING:
    from ..config.settings import Configuration
    from ..infrastructure.binder import ListenHandle


class HandleState(str, Enum):
    NOT_STARTED = "not_started"
    LISTENING = "listening"
    STOPPED = "stopped"
    FAILED = "failed"


_TRANSITIONS: Dict[HandleState, FrozenSet[HandleState]] = {
    HandleState.NOT_STARTED: frozenset({HandleState.LISTENING, HandleState.FAILED}),
    HandleState.LISTENING: frozenset({HandleState.STOPPED}),
    HandleState.STOPPED: frozenset(),
    HandleState.FAILED: frozenset(),
}


class ProcessHandle:
    def __init__(self, configuration: "Configuration") -> None:
        self.id = HandleId(uuid.uuid4().hex[:8])
        self.configuration = configuration
        self.state = HandleState.NOT_STARTED
        self.listener: Optional["ListenHandle"] = None
        self.failure: Optional[StartupFailure] = None

    @property
    def host(self) -> str:
        return self.configuration.host

    @property
    def port(self) -> int:
        return self.configuration.backend_port

    @property
    def is_listening(self) -> bool:
        return self.state is HandleState.LISTENING

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.state]

    @property
    def conflict(self) -> Optional[BindConflict]:
        return self.failure if isinstance(self.failure, BindConflict) else None

    def mark_listening(self, listener: "ListenHandle") -> None:
        self._transition(HandleState.LISTENING)
        self.listener = listener

    def mark_failed(self, failure: StartupFailure) -> None:
        self._transition(HandleState.FAILED)
        self.failure = failure

    def mark_stopped(self) -> None:
        self._transition(HandleState.STOPPED)

    def _transition(self, target: HandleState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise LifecycleError(
                f"Handle {self.id} cannot move from {self.state.value} to {target.value}"
            )
        self.state = target

    def __repr__(self) -> str:
        return f"ProcessHandle(id={self.id!r}, {self.host}:{self.port}, state={self.state.value})"
