"""Error hierarchy shared by the client subsystems.

Orchestrators need to tell a fatal condition (the initial connect failed)
from a local one (a single recovery attempt failed) and from the normal end
of a stream. Submodules should raise the most specific error available.
"""
from __future__ import annotations

import os


class CoreError(Exception):
    """Base class for all custom exceptions in the client."""


class ConfigurationError(CoreError):
    """Raised when configuration files are missing or invalid."""


class FrameError(CoreError):
    """Raised when bytes handed to the codec break the frame contract."""


class NetworkError(CoreError):
    """Socket-level failure carrying the OS error code when one is known."""

    context = "Network error"

    def __init__(self, detail: str = "", errno: int | None = None) -> None:
        self.errno = errno
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.context]
        if self.errno is not None:
            parts.append(f"Error Code: {self.errno} ({os.strerror(self.errno)})")
        if self.detail:
            parts.append(self.detail)
        return " - ".join(parts)

    @classmethod
    def from_os_error(cls, exc: OSError, detail: str = "") -> "NetworkError":
        return cls(detail or str(exc), errno=exc.errno)


class SocketCreationError(NetworkError):
    """Raised when the TCP socket itself cannot be created."""

    context = "Socket creation error"


class ConnectError(NetworkError):
    """Raised when the TCP connect to the exchange fails."""

    context = "Connection failed"


class SendError(NetworkError):
    """Raised when a command frame cannot be written."""

    context = "Send error"


class ReceiveError(NetworkError):
    """Raised for hard receive failures (anything but EINTR or EOF)."""

    context = "Data reception error"


class ConnectionClosed(CoreError):
    """The peer closed the connection.

    Not a failure: this is how the exchange marks the end of a full stream.
    ``partial_bytes`` counts bytes of an incomplete frame that were dropped.
    """

    def __init__(self, partial_bytes: int = 0) -> None:
        self.partial_bytes = partial_bytes
        message = "Connection closed by peer"
        if partial_bytes:
            message += f" ({partial_bytes} bytes of an incomplete frame discarded)"
        super().__init__(message)


class ExportError(CoreError):
    """Raised when the dataset or a report cannot be written to disk."""
