"""
Composition Root: the single place where all services are instantiated and wired.

Call create_services() once per loaded Configuration. The Configuration is
passed in explicitly; nothing here reads global settings.
"""

from dataclasses import dataclass
from typing import Optional

from .config.settings import Configuration
from .domain.events import EventBus, LaunchFailed, LaunchStopped, LaunchSucceeded
from .application.handlers import JournalRecorder
from .application.launcher import ProcessLauncher
from .infrastructure.binder import PortBinder
from .infrastructure.documents import DocumentStore
from .infrastructure.history import LaunchJournal
from .infrastructure.paths import PathResolver


@dataclass
class AppServices:
    """Container for all application services."""
    configuration: Configuration
    paths: PathResolver
    documents: DocumentStore
    journal: LaunchJournal
    launcher: ProcessLauncher
    event_bus: EventBus


def create_services(configuration: Configuration,
                    binder: Optional[PortBinder] = None) -> AppServices:
    """Wire all services for one Configuration."""

    # 1. Paths and storage, all under data_dir
    paths = PathResolver(configuration.data_dir)
    documents = DocumentStore(paths)
    journal = LaunchJournal(paths)

    # 2. Event bus + handlers
    event_bus = EventBus()
    recorder = JournalRecorder(journal)
    for event_type in (LaunchSucceeded, LaunchFailed, LaunchStopped):
        event_bus.subscribe(event_type, recorder.handle)

    # 3. Lifecycle
    launcher = ProcessLauncher(binder=binder, event_bus=event_bus)

    return AppServices(
        configuration=configuration,
        paths=paths,
        documents=documents,
        journal=journal,
        launcher=launcher,
        event_bus=event_bus,
    )
