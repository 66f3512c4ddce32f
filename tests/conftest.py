from __future__ import annotations

import socket
from pathlib import Path
from typing import Iterator, List, Tuple

import pytest
from loguru import logger

from steadyport.config.settings import ConfigStore, Configuration
from steadyport.config.testing import for_testing


def free_port() -> int:
    """Ask the OS for a port that is free right now; tests then pin it as the fixed port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def make_config(data_dir: Path, port: int | None = None, environ: dict | None = None) -> Configuration:
    source = {
        "host": "127.0.0.1",
        "backend_port": port or free_port(),
        "peer_port": 1420,
        "data_dir": str(data_dir),
    }
    return ConfigStore(source=source, environ=environ or {}).load()


@pytest.fixture
def production_config(tmp_path: Path) -> Configuration:
    """A loaded configuration whose data_dir stands in for production."""
    return make_config(tmp_path / "production")


@pytest.fixture
def test_config(production_config: Configuration, tmp_path: Path) -> Configuration:
    """The production configuration redirected to an ephemeral data directory."""
    return for_testing(production_config, tmp_path / "ephemeral")


@pytest.fixture
def token_config(tmp_path: Path) -> Configuration:
    base = make_config(tmp_path / "production", environ={"STEADYPORT_SESSION_TOKEN": "s3cret-token"})
    return for_testing(base, tmp_path / "ephemeral")


@pytest.fixture
def occupied(production_config: Configuration) -> Iterator[Tuple[socket.socket, int]]:
    """Another listener already holding the configured port."""
    port = production_config.backend_port
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", port))
    blocker.listen(1)
    try:
        yield blocker, port
    finally:
        blocker.close()


@pytest.fixture
def log_lines() -> Iterator[List[str]]:
    """Messages logged at INFO and above while the test runs."""
    lines: List[str] = []
    sink_id = logger.add(lambda m: lines.append(m.record["message"]), level="INFO", format="{message}")
    try:
        yield lines
    finally:
        logger.remove(sink_id)
