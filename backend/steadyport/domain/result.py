"""
Result type for outcomes the caller must branch on.

PortBinder returns Result[ListenHandle] instead of letting a low-level
OSError escape for a busy port. Callers use isinstance checks:

    result = binder.bind(host, port)
    if isinstance(result, Err):
        # result.error is a BindConflict
    else:
        # result.value is the bound ListenHandle
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import BindConflict

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: BindConflict

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
