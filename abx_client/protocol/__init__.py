"""ABX wire protocol: frame codec and per-request TCP connections."""

from .codec import (
    COMMAND_SIZE,
    FRAME_SIZE,
    MAX_COMMAND_PARAM,
    MarketMessage,
    decode_frame,
    encode_command,
    encode_frame,
)
from .connection import Connection, open_connection

__all__ = [
    "COMMAND_SIZE",
    "Connection",
    "FRAME_SIZE",
    "MAX_COMMAND_PARAM",
    "MarketMessage",
    "decode_frame",
    "encode_command",
    "encode_frame",
    "open_connection",
]
