"""Enumerations shared across client subsystems."""
from __future__ import annotations

from enum import Enum, IntEnum


class CommandType(IntEnum):
    """Opcodes understood by the ABX exchange (first byte of a command)."""

    INITIAL_STREAM = 1
    SPECIFIC_SEQUENCE = 2


class IngestorState(str, Enum):
    """Lifecycle of the initial full-stream request."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    STREAMING = "streaming"
