"""
ProcessLauncher owns the one ProcessHandle of this process.

start() binds exactly once through PortBinder and never picks another port.
serve() runs uvicorn on the socket that start() already bound (no reload,
single worker). stop() releases the socket and is the only way to reach
Stopped. A new configuration means stop() and a fresh start().
"""

from typing import Optional
import threading
import uvicorn
from loguru import logger

from ..config.settings import Configuration
from ..domain.app_constants import APP_NAME, SHUTDOWN_GRACE_S
from ..domain.errors import (
    AlreadyRunningError, BindError, LifecycleError, StartupFailure, StartupFault,
)
from ..domain.events import EventBus, LaunchFailed, LaunchStopped, LaunchSucceeded
from ..domain.lifecycle import HandleState, ProcessHandle
from ..domain.result import Err
from ..infrastructure.binder import PortBinder


class ProcessLauncher:
    def __init__(self,
                 binder: Optional[PortBinder] = None,
                 event_bus: Optional[EventBus] = None,
                 shutdown_grace_s: float = SHUTDOWN_GRACE_S):
        self.binder = binder or PortBinder()
        self.event_bus = event_bus or EventBus()
        self.shutdown_grace_s = shutdown_grace_s

        self._handle: Optional[ProcessHandle] = None
        self._server: Optional[uvicorn.Server] = None
        self._serving_thread: Optional[threading.Thread] = None
        self._serve_done = threading.Event()
        self._serve_done.set()

    @property
    def handle(self) -> Optional[ProcessHandle]:
        return self._handle

    @property
    def state(self) -> HandleState:
        """Health indication: the state of the current handle, if any."""
        return self._handle.state if self._handle else HandleState.NOT_STARTED

    @property
    def serving(self) -> bool:
        return self._server is not None

    def start(self, configuration: Configuration) -> ProcessHandle:
        current = self._handle
        if current is not None and current.is_listening:
            raise AlreadyRunningError(current.host, current.port)

        handle = ProcessHandle(configuration)
        self._handle = handle
        try:
            result = self.binder.bind(handle.host, handle.port)
        except BindError as e:
            return self._fail(handle, StartupFault(handle.host, handle.port, e.detail))
        except OSError as e:
            return self._fail(handle, StartupFault(handle.host, handle.port, e.strerror or str(e)))

        if isinstance(result, Err):
            return self._fail(handle, result.error)

        handle.mark_listening(result.value)
        logger.info(f"{APP_NAME} listening on {handle.host}:{handle.port}")
        self.event_bus.publish(LaunchSucceeded(
            handle_id=handle.id, host=handle.host, port=handle.port,
        ))
        return handle

    def serve(self, handle: ProcessHandle, app) -> bool:
        """Run the ASGI app on the handle's socket until asked to exit. Returns whether it started."""
        if handle is not self._handle or not handle.is_listening:
            raise LifecycleError(f"Handle {handle.id} is {handle.state.value}; only the listening handle can serve")
        if self._server is not None:
            raise AlreadyRunningError(handle.host, handle.port)

        config = uvicorn.Config(
            app,
            host=handle.host,
            port=handle.port,
            reload=False,
            workers=1,
            lifespan="on",
            log_config=None,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(config)
        self._server = server
        self._serving_thread = threading.current_thread()
        self._serve_done.clear()
        try:
            server.run(sockets=[handle.listener.sock])
        finally:
            self._server = None
            self._serving_thread = None
            self._serve_done.set()
        return server.started

    def request_shutdown(self) -> bool:
        """Ask a running server to exit; returns False when nothing is being served."""
        server = self._server
        if server is None:
            return False
        server.should_exit = True
        return True

    def stop(self, handle: ProcessHandle) -> HandleState:
        if not handle.is_listening:
            logger.info(f"Stop ignored: handle {handle.id} is {handle.state.value}")
            return handle.state

        if handle is self._handle:
            self._release_server()
        handle.listener.close()
        handle.mark_stopped()
        logger.info(f"{APP_NAME} stopped; released {handle.host}:{handle.port}")
        self.event_bus.publish(LaunchStopped(
            handle_id=handle.id, host=handle.host, port=handle.port,
        ))
        return handle.state

    def _release_server(self) -> None:
        if not self.request_shutdown():
            return
        if self._serving_thread is threading.current_thread():
            return
        if not self._serve_done.wait(self.shutdown_grace_s):
            logger.warning(f"Server did not exit within {self.shutdown_grace_s}s; closing the socket anyway")

    def _fail(self, handle: ProcessHandle, failure: StartupFailure) -> ProcessHandle:
        handle.mark_failed(failure)
        logger.error(failure.message)
        self.event_bus.publish(LaunchFailed(
            handle_id=handle.id, host=handle.host, port=handle.port,
            category=failure.category.value, detail=failure.message,
        ))
        return handle
