"""Initial full-stream ingestion.

The ingestor walks ``Disconnected -> Connected -> Streaming -> Disconnected``:
connect, send the INITIAL_STREAM command, read 17-byte frames until the
exchange closes the connection, then close our side.

Only a failed connect is fatal. Any send/receive failure ends the streaming
phase early and keeps whatever was collected, so gap recovery can fill the
rest.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from abx_client.config.models import ServerConfig
from abx_client.core.enums import CommandType, IngestorState
from abx_client.core.errors import ConnectionClosed, NetworkError
from abx_client.protocol.codec import FRAME_SIZE, decode_frame, encode_command
from abx_client.protocol.connection import Connection, open_connection

from .state import SessionState

LOGGER = logging.getLogger(__name__)

Connector = Callable[..., Connection]


@dataclass(slots=True)
class IngestResult:
    """Summary of the streaming phase."""

    frames_received: int
    max_sequence: int
    completed: bool
    error: Optional[NetworkError] = None


class StreamIngestor:
    """Drive the INITIAL_STREAM request into a :class:`SessionState`."""

    def __init__(self, server: ServerConfig, *, connector: Connector = open_connection) -> None:
        self._server = server
        self._connector = connector
        self._state = IngestorState.DISCONNECTED

    @property
    def state(self) -> IngestorState:
        return self._state

    def run(self, session: SessionState) -> IngestResult:
        """Stream every available message into ``session``.

        Raises :class:`~abx_client.core.errors.ConnectError` (or
        ``SocketCreationError``) when the connection cannot be opened.
        """

        connection = self._connector(
            self._server.host,
            self._server.port,
            timeout=self._server.connect_timeout_sec,
        )
        self._state = IngestorState.CONNECTED
        LOGGER.info("Connected to data server", extra={"peer": connection.peer})

        frames = 0
        completed = False
        error: NetworkError | None = None
        try:
            LOGGER.info("Requesting initial data stream")
            connection.send(encode_command(CommandType.INITIAL_STREAM))
            self._state = IngestorState.STREAMING
            while True:
                raw = connection.receive_exact(FRAME_SIZE)
                frames += 1
                session.record(decode_frame(raw))
        except ConnectionClosed as closed:
            completed = True
            if closed.partial_bytes:
                LOGGER.warning("Stream ended inside a frame: %s", closed)
        except NetworkError as exc:
            error = exc
            LOGGER.warning(
                "Initial stream interrupted after %s frames: %s",
                frames,
                exc,
                extra={"errno": exc.errno},
            )
        finally:
            connection.close()
            self._state = IngestorState.DISCONNECTED

        max_sequence = session.max_sequence()
        session.stream_max_sequence = max_sequence
        LOGGER.info(
            "Initial data stream complete",
            extra={"frames": frames, "max_sequence": max_sequence, "completed": completed},
        )
        return IngestResult(frames_received=frames, max_sequence=max_sequence, completed=completed, error=error)


__all__ = ["IngestResult", "StreamIngestor"]
