"""Blocking TCP connection used for exactly one ABX request.

Each logical operation (the initial stream, or one recovery attempt) opens its
own :class:`Connection`, sends a single command, drains the response and
closes. Connections are never reused across requests.
"""
from __future__ import annotations

import logging
import socket
from typing import Optional

from abx_client.core.errors import (
    ConnectError,
    ConnectionClosed,
    NetworkError,
    ReceiveError,
    SendError,
    SocketCreationError,
)

LOGGER = logging.getLogger(__name__)


class Connection:
    """Owns one connected socket until :meth:`close` is called.

    Use as a context manager so the socket is released on every exit path::

        with open_connection(host, port) as conn:
            conn.send(command)
            frame = conn.receive_exact(FRAME_SIZE)
    """

    def __init__(self, sock: socket.socket, peer: str = "") -> None:
        self._socket: Optional[socket.socket] = sock
        self.peer = peer

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._socket is None

    def send(self, data: bytes) -> int:
        """Write ``data`` with a single blocking ``send`` call.

        No partial-write loop: commands are two bytes long.
        """

        sock = self._require_socket(SendError)
        try:
            sent = sock.send(data)
        except OSError as exc:
            raise SendError.from_os_error(exc) from exc
        if sent != len(data):
            LOGGER.warning("Short write to %s: %s of %s bytes", self.peer, sent, len(data))
        return sent

    def receive_exact(self, size: int) -> bytes:
        """Block until exactly ``size`` bytes have been read.

        Raises :class:`ConnectionClosed` when the peer closes (even mid-frame)
        and :class:`ReceiveError` for any other socket failure. Interrupted
        system calls are retried.
        """

        sock = self._require_socket(ReceiveError)
        buffer = bytearray()
        while len(buffer) < size:
            try:
                chunk = sock.recv(size - len(buffer))
            except InterruptedError:
                continue
            except OSError as exc:
                raise ReceiveError.from_os_error(exc) from exc
            if not chunk:
                raise ConnectionClosed(partial_bytes=len(buffer))
            buffer.extend(chunk)
        return bytes(buffer)

    def close(self) -> None:
        """Release the socket. Safe to call more than once."""

        if self._socket is None:
            return
        sock, self._socket = self._socket, None
        try:
            sock.close()
        except OSError as exc:  # pragma: no cover - close failures are not actionable
            LOGGER.debug("Error while closing socket to %s: %s", self.peer, exc)

    def _require_socket(self, error: type[NetworkError]) -> socket.socket:
        if self._socket is None:
            raise error("connection is already closed")
        return self._socket


def open_connection(host: str, port: int, timeout: float | None = None) -> Connection:
    """Create a TCP/IPv4 socket and connect it to ``host:port``.

    ``timeout`` of ``None`` leaves the socket fully blocking, relying on the OS
    connect timeout.
    """

    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as exc:
        raise SocketCreationError.from_os_error(exc) from exc
    if timeout is not None:
        sock.settimeout(timeout)
    peer = f"{host}:{port}"
    try:
        sock.connect((host, port))
    except OSError as exc:
        sock.close()
        raise ConnectError.from_os_error(exc, detail=f"could not reach {peer}") from exc
    LOGGER.debug("Connected to %s", peer)
    return Connection(sock, peer=peer)


__all__ = ["Connection", "open_connection"]
