"""
Error taxonomy for the launch subsystem.

Exceptions are raised for local failures (bad configuration, missing secrets,
unsafe paths, duplicate starts). Startup failures that a caller must be able to
tell apart programmatically are plain values instead: a BindConflict or a
StartupFault is carried on the failed ProcessHandle, never thrown.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence, Union


class SteadyportError(Exception):
    """Base class for every error raised by steadyport."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SteadyportError):
    """A required non-secret runtime value is missing or malformed."""


class MissingSecretError(SteadyportError):
    def __init__(self, name: str, env_var: str) -> None:
        super().__init__(f"Secret '{name}' is not configured. Set {env_var} in the environment.")
        self.name = name
        self.env_var = env_var


class AlreadyRunningError(SteadyportError):
    def __init__(self, host: str, port: int) -> None:
        super().__init__(
            f"Already listening on {host}:{port}. Stop the running instance before starting another."
        )
        self.host = host
        self.port = port


class PathTraversalError(SteadyportError, ValueError):
    def __init__(self, segments: Sequence[str], data_dir: Path) -> None:
        super().__init__(f"Path {list(segments)!r} escapes the data directory {data_dir}")
        self.segments = tuple(segments)
        self.data_dir = data_dir


class CorruptDocumentError(SteadyportError):
    """A stored document exists but cannot be parsed as a JSON object."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Document {path} is not valid JSON: {detail}")
        self.path = path
        self.detail = detail


class UnsafeTestConfigurationError(SteadyportError):
    """A test override would point at (or around) production data."""


class BindError(SteadyportError):
    """The socket could not be bound for a reason other than the address being in use."""

    def __init__(self, host: str, port: int, detail: str) -> None:
        super().__init__(f"Cannot bind {host}:{port}: {detail}")
        self.host = host
        self.port = port
        self.detail = detail


class LifecycleError(SteadyportError):
    """A ProcessHandle was asked to make a transition its state does not allow."""


class FailureCategory(str, Enum):
    BIND_CONFLICT = "bind_conflict"
    STARTUP_FAULT = "startup_fault"


@dataclass(frozen=True)
class BindConflict:
    host: str
    port: int

    @property
    def category(self) -> FailureCategory:
        return FailureCategory.BIND_CONFLICT

    @property
    def message(self) -> str:
        return (
            f"Cannot listen on {self.host}:{self.port}: address already in use. "
            f"Free port {self.port} or stop the stale process, then start again."
        )


@dataclass(frozen=True)
class StartupFault:
    host: str
    port: int
    detail: str

    @property
    def category(self) -> FailureCategory:
        return FailureCategory.STARTUP_FAULT

    @property
    def message(self) -> str:
        return f"Startup failed on {self.host}:{self.port}: {self.detail}"


StartupFailure = Union[BindConflict, StartupFault]
