"""
PortBinder: one bind call at the configured host:port.

There is no retry, no port increment and no widening of the bind address.
A busy address comes back as Err(BindConflict); any other socket fault is
raised as BindError so callers can tell the two apart.
"""

from dataclasses import dataclass, field
from typing import Optional
import errno
import os
import socket
from loguru import logger

from ..domain.app_constants import LISTEN_BACKLOG
from ..domain.errors import BindConflict, BindError
from ..domain.result import Err, Ok, Result

# Linux/macOS errno plus the Winsock codes (WSAEACCES under SO_EXCLUSIVEADDRUSE)
_ADDRESS_IN_USE = frozenset({errno.EADDRINUSE, getattr(errno, "WSAEADDRINUSE", 10048)})
if os.name == "nt":
    _ADDRESS_IN_USE = _ADDRESS_IN_USE | {getattr(errno, "WSAEACCES", 10013)}


@dataclass
class ListenHandle:
    """An open listening socket, exclusively owned until close()."""
    host: str
    port: int
    sock: socket.socket = field(repr=False)

    @property
    def closed(self) -> bool:
        return self.sock.fileno() == -1

    def close(self) -> None:
        # socket.close() is idempotent; uvicorn may already have closed it on shutdown
        self.sock.close()


class PortBinder:
    def __init__(self, backlog: int = LISTEN_BACKLOG):
        self.backlog = backlog

    def bind(self, host: str, port: int) -> Result[ListenHandle]:
        family, sockaddr = self._address(host, port)
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            self._configure(sock, family)
            sock.bind(sockaddr)
            sock.listen(self.backlog)
        except OSError as e:
            sock.close()
            if e.errno in _ADDRESS_IN_USE:
                logger.debug(f"Bind {host}:{port} refused: address in use")
                return Err(BindConflict(host=host, port=port))
            raise BindError(host, port, e.strerror or str(e)) from e

        logger.debug(f"Bound listener on {host}:{port}")
        return Ok(ListenHandle(host=host, port=port, sock=sock))

    def probe(self, host: str, port: int) -> Optional[BindConflict]:
        """Check once whether host:port is free; the probe socket is released immediately."""
        result = self.bind(host, port)
        if isinstance(result, Err):
            return result.error
        result.value.close()
        return None

    def _address(self, host: str, port: int):
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
        except socket.gaierror as e:
            raise BindError(host, port, f"cannot resolve host ({e.strerror or e})") from e
        except UnicodeError as e:
            # idna rejects labels over 63 chars and empty labels ("example..com")
            raise BindError(host, port, f"invalid host name ({e})") from e
        if not infos:
            raise BindError(host, port, "cannot resolve host")
        family, _, _, _, sockaddr = infos[0]
        return family, sockaddr

    @staticmethod
    def _configure(sock: socket.socket, family: int) -> None:
        if os.name == "nt":
            # Windows SO_REUSEADDR would let a second process steal the port
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_EXCLUSIVEADDRUSE, 1)
        else:
            # Rebind straight after stop(); an active listener still conflicts
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if family == socket.AF_INET6 and hasattr(socket, "IPV6_V6ONLY"):
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
