"""
Process entry point: load the configuration once, bind the fixed port, serve.

Exit codes: 0 after a clean stop, 2 on a configuration error, 3 when the
port is already taken, 1 for any other startup fault.
"""

from typing import Optional
import signal
from loguru import logger

from .config.settings import ConfigStore
from .domain.app_constants import (
    EXIT_BIND_CONFLICT, EXIT_CONFIG_ERROR, EXIT_OK, EXIT_STARTUP_FAULT,
)
from .domain.errors import ConfigurationError
from .domain.lifecycle import HandleState
from .composition_root import create_services
from .infrastructure.logging import configure_logging
from .main import create_app


class StopSignal(Exception):
    def __init__(self, signum: int) -> None:
        super().__init__(signum)
        self.signum = signum


def _raise_stop(signum, frame) -> None:
    raise StopSignal(signum)


def _install_stop_handlers() -> None:
    # uvicorn restores these after shutdown and re-raises the signal it caught
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _raise_stop)


def main(store: Optional[ConfigStore] = None) -> int:
    configure_logging()
    try:
        configuration = (store or ConfigStore()).load()
    except ConfigurationError as e:
        logger.error(e.message)
        return EXIT_CONFIG_ERROR

    services = create_services(configuration)
    launcher = services.launcher
    handle = launcher.start(configuration)
    if handle.state is HandleState.FAILED:
        return EXIT_BIND_CONFLICT if handle.conflict else EXIT_STARTUP_FAULT

    _install_stop_handlers()
    started = True
    try:
        started = launcher.serve(handle, create_app(services))
    except StopSignal as e:
        logger.debug(f"Received signal {e.signum}")
    finally:
        launcher.stop(handle)
    return EXIT_OK if started else EXIT_STARTUP_FAULT


if __name__ == "__main__":
    raise SystemExit(main())
