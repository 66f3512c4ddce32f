"""
Event handlers subscribe to launch events and execute side effects.

Wired in the composition root. Each handler is a small class with a
`handle(event)` method.
"""

from ..domain.events import LaunchEvent, LaunchFailed, LaunchStopped, LaunchSucceeded
from ..infrastructure.history import LaunchJournal, LaunchRecord

_EVENT_NAMES = {
    LaunchSucceeded: "listening",
    LaunchFailed: "failed",
    LaunchStopped: "stopped",
}


class JournalRecorder:
    """Listens to launch events, appends them to the launch journal."""

    def __init__(self, journal: LaunchJournal) -> None:
        self.journal = journal

    def handle(self, event: LaunchEvent) -> None:
        self.journal.add(LaunchRecord(
            handle_id=event.handle_id,
            timestamp=event.timestamp,
            event=_EVENT_NAMES[type(event)],
            host=event.host,
            port=event.port,
            detail=event.detail if isinstance(event, LaunchFailed) else "",
        ))
