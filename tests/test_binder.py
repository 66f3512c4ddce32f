"""Tests for PortBinder."""
from __future__ import annotations

import socket

import pytest

from steadyport.domain.errors import BindConflict, BindError
from steadyport.domain.result import Err, Ok
from steadyport.infrastructure.binder import PortBinder

from conftest import free_port


class TestBind:
    def test_binds_exact_host_and_port(self):
        port = free_port()
        result = PortBinder().bind("127.0.0.1", port)
        assert isinstance(result, Ok)
        listener = result.value
        try:
            assert listener.sock.getsockname()[:2] == ("127.0.0.1", port)
            with socket.create_connection(("127.0.0.1", port), timeout=2):
                pass
        finally:
            listener.close()
        assert listener.closed

    def test_conflict_is_a_typed_result(self, occupied):
        _, port = occupied
        result = PortBinder().bind("127.0.0.1", port)
        assert isinstance(result, Err)
        assert result.error == BindConflict(host="127.0.0.1", port=port)

    def test_conflict_message_names_port_and_remedy(self, occupied):
        _, port = occupied
        conflict = PortBinder().bind("127.0.0.1", port).error
        assert str(port) in conflict.message
        assert "stop the stale process" in conflict.message
        assert conflict.message.isascii()

    def test_unavailable_address_is_not_a_conflict(self):
        # TEST-NET-1 address, not assigned to any local interface
        with pytest.raises(BindError) as exc:
            PortBinder().bind("192.0.2.1", free_port())
        assert exc.value.host == "192.0.2.1"

    def test_unencodable_host_is_a_bind_error(self):
        with pytest.raises(BindError, match="invalid host name"):
            PortBinder().bind("example..com", free_port())

    def test_released_port_can_be_bound_again(self):
        port = free_port()
        first = PortBinder().bind("127.0.0.1", port).value
        first.close()
        second = PortBinder().bind("127.0.0.1", port)
        assert isinstance(second, Ok)
        second.value.close()


class TestProbe:
    def test_free_port(self):
        port = free_port()
        binder = PortBinder()
        assert binder.probe("127.0.0.1", port) is None
        # the probe released the socket
        again = binder.bind("127.0.0.1", port)
        assert isinstance(again, Ok)
        again.value.close()

    def test_busy_port(self, occupied):
        _, port = occupied
        assert PortBinder().probe("127.0.0.1", port) == BindConflict("127.0.0.1", port)
