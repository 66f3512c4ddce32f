"""
Lifecycle events and a synchronous EventBus.

The launcher publishes one event per state change of a ProcessHandle; side
effects such as journaling are handlers registered in the composition root.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Type
import time
from loguru import logger

from .types import HandleId


@dataclass(frozen=True)
class DomainEvent:
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class LaunchEvent(DomainEvent):
    handle_id: HandleId = HandleId("")
    host: str = ""
    port: int = 0


@dataclass(frozen=True)
class LaunchSucceeded(LaunchEvent):
    """Fired once the listener is bound and the handle is Listening."""
    pass


@dataclass(frozen=True)
class LaunchFailed(LaunchEvent):
    """Fired when a start attempt ends in the Failed state."""
    category: str = ""
    detail: str = ""


@dataclass(frozen=True)
class LaunchStopped(LaunchEvent):
    """Fired after stop() has released the listener."""
    pass


class EventBus:
    """Synchronous publish/subscribe event bus."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable[[Any], None]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler failed for {type(event).__name__}: {e}")
