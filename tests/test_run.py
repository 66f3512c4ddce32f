"""Tests for the process entry point and its exit codes."""
from __future__ import annotations

import pytest

from steadyport import run
from steadyport.application.launcher import ProcessLauncher
from steadyport.config.settings import ConfigStore
from steadyport.domain.app_constants import (
    EXIT_BIND_CONFLICT, EXIT_CONFIG_ERROR, EXIT_OK, EXIT_STARTUP_FAULT,
)
from steadyport.infrastructure.binder import PortBinder

from conftest import free_port


@pytest.fixture(autouse=True)
def quiet(monkeypatch):
    monkeypatch.setattr(run, "configure_logging", lambda: None)
    monkeypatch.setattr(run, "_install_stop_handlers", lambda: None)


def _store(tmp_path, port, host="127.0.0.1"):
    source = {"host": host, "backend_port": port, "data_dir": str(tmp_path / "data")}
    return ConfigStore(source=source, environ={})


class TestExitCodes:
    def test_configuration_error(self, tmp_path, log_lines):
        assert run.main(_store(tmp_path, "eighty")) == EXIT_CONFIG_ERROR
        assert any("backend_port" in line for line in log_lines)

    def test_port_in_use(self, tmp_path, occupied):
        _, port = occupied
        assert run.main(_store(tmp_path, port)) == EXIT_BIND_CONFLICT

    def test_other_startup_fault(self, tmp_path):
        assert run.main(_store(tmp_path, free_port(), host="192.0.2.1")) == EXIT_STARTUP_FAULT

    def test_unencodable_host_is_a_startup_fault(self, tmp_path, log_lines):
        assert run.main(_store(tmp_path, free_port(), host="a" * 64)) == EXIT_STARTUP_FAULT
        assert len(log_lines) == 1
        assert "invalid host name" in log_lines[0]

    def test_clean_stop_releases_port(self, tmp_path, monkeypatch):
        port = free_port()
        monkeypatch.setattr(ProcessLauncher, "serve", lambda self, handle, app: True)
        assert run.main(_store(tmp_path, port)) == EXIT_OK
        assert PortBinder().probe("127.0.0.1", port) is None

    def test_server_that_never_started(self, tmp_path, monkeypatch):
        monkeypatch.setattr(ProcessLauncher, "serve", lambda self, handle, app: False)
        assert run.main(_store(tmp_path, free_port())) == EXIT_STARTUP_FAULT

    def test_stop_signal_releases_port(self, tmp_path, monkeypatch):
        port = free_port()

        def interrupted(self, handle, app):
            raise run.StopSignal(2)

        monkeypatch.setattr(ProcessLauncher, "serve", interrupted)
        assert run.main(_store(tmp_path, port)) == EXIT_OK
        assert PortBinder().probe("127.0.0.1", port) is None

    def test_journal_records_the_run(self, tmp_path, monkeypatch):
        monkeypatch.setattr(ProcessLauncher, "serve", lambda self, handle, app: True)
        run.main(_store(tmp_path, free_port()))
        assert (tmp_path / "data" / "runtime" / "launches.json").is_file()
