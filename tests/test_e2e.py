"""
End-to-end run on the real configured port.

Deselected by default; run with `pytest -m e2e`. Fails fast, without
touching anything, when the port is already held by another process.
"""
from __future__ import annotations

import threading
import time

import httpx
import pytest

from steadyport.composition_root import create_services
from steadyport.config.settings import ConfigStore
from steadyport.config.testing import for_testing
from steadyport.domain.lifecycle import HandleState
from steadyport.infrastructure.binder import PortBinder
from steadyport.main import create_app

pytestmark = pytest.mark.e2e


def test_serves_health_on_configured_port(tmp_path):
    configuration = for_testing(ConfigStore().load(), tmp_path / "e2e-data")
    conflict = PortBinder().probe(configuration.host, configuration.backend_port)
    if conflict is not None:
        pytest.fail(conflict.message)

    services = create_services(configuration)
    launcher = services.launcher
    handle = launcher.start(configuration)
    assert handle.state is HandleState.LISTENING

    thread = threading.Thread(target=launcher.serve, args=(handle, create_app(services)), daemon=True)
    thread.start()
    try:
        deadline = time.monotonic() + 5
        while not launcher.serving and time.monotonic() < deadline:
            time.sleep(0.01)
        with httpx.Client(trust_env=False, timeout=5) as client:
            response = client.get(f"http://{configuration.host}:{configuration.backend_port}/health")
        assert response.status_code == 200
        assert response.json()["state"] == "listening"
    finally:
        launcher.stop(handle)
        thread.join(timeout=5)

    assert handle.state is HandleState.STOPPED
    assert (tmp_path / "e2e-data" / "runtime" / "launches.json").is_file()
