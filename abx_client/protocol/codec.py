"""Fixed-width binary codec for the ABX wire protocol.

Outbound commands are two bytes::

    [opcode: u8][param: u8]

Inbound messages are 17 bytes, integers big-endian and signed::

    [assetCode: 4s][direction: c][size: i32][cost: i32][sequenceNum: i32]

There is no length prefix or checksum; framing is purely positional.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Dict

from abx_client.core.enums import CommandType
from abx_client.core.errors import FrameError
from abx_client.core.types import AssetCode, Price, Quantity, SequenceNumber

_COMMAND = struct.Struct(">BB")
_FRAME = struct.Struct(">4sciii")

ASSET_CODE_WIDTH = 4
COMMAND_SIZE = _COMMAND.size
FRAME_SIZE = _FRAME.size
MAX_COMMAND_PARAM = 0xFF

# Asset codes map bytes 1:1 to code points so non-printable values survive.
_TEXT_ENCODING = "latin-1"


@dataclass(frozen=True, slots=True)
class MarketMessage:
    """One trade message as decoded from a 17-byte frame."""

    asset_code: AssetCode
    order_direction: str
    size: Quantity
    cost: Price
    sequence_num: SequenceNumber

    def to_dict(self) -> Dict[str, Any]:
        """Return the record in the exported ``output.json`` shape."""

        return {
            "assetCode": self.asset_code,
            "orderDirection": self.order_direction,
            "size": self.size,
            "cost": self.cost,
            "sequenceNum": self.sequence_num,
        }


def encode_command(opcode: CommandType | int, param: int = 0) -> bytes:
    """Return the two-byte command for ``opcode`` and its one-byte parameter.

    The parameter is a single unsigned byte on the wire. Values outside
    ``0..255`` raise :class:`FrameError` rather than being truncated, since a
    truncated sequence number would silently request the wrong message.
    """

    if not 0 <= int(opcode) <= 0xFF:
        raise FrameError(f"Opcode {opcode} does not fit in one byte")
    if not 0 <= param <= MAX_COMMAND_PARAM:
        raise FrameError(f"Command parameter {param} is outside 0..{MAX_COMMAND_PARAM}")
    return _COMMAND.pack(int(opcode), param)


def decode_frame(raw: bytes) -> MarketMessage:
    """Decode exactly :data:`FRAME_SIZE` bytes into a :class:`MarketMessage`.

    Field values are not validated. The asset code ends at the first NUL
    byte, like the fixed C string it is on the server side.
    """

    if len(raw) != FRAME_SIZE:
        raise FrameError(f"Expected {FRAME_SIZE} bytes, got {len(raw)}")
    code, direction, size, cost, sequence = _FRAME.unpack(raw)
    return MarketMessage(
        asset_code=AssetCode(code.split(b"\x00", 1)[0].decode(_TEXT_ENCODING)),
        order_direction=direction.decode(_TEXT_ENCODING),
        size=Quantity(size),
        cost=Price(cost),
        sequence_num=SequenceNumber(sequence),
    )


def encode_frame(message: MarketMessage) -> bytes:
    """Encode ``message`` back into its 17-byte wire form.

    Asset codes shorter than four bytes are NUL-padded.
    """

    try:
        code = message.asset_code.encode(_TEXT_ENCODING)
        direction = message.order_direction.encode(_TEXT_ENCODING)
    except UnicodeEncodeError as exc:
        raise FrameError(f"Text field is not single-byte encodable: {exc}") from exc
    if len(code) > ASSET_CODE_WIDTH:
        raise FrameError(f"Asset code {message.asset_code!r} exceeds {ASSET_CODE_WIDTH} bytes")
    if len(direction) != 1:
        raise FrameError(f"Order direction must be one byte, got {message.order_direction!r}")
    try:
        return _FRAME.pack(code, direction, message.size, message.cost, message.sequence_num)
    except struct.error as exc:
        raise FrameError(f"Integer field out of int32 range: {exc}") from exc


__all__ = [
    "ASSET_CODE_WIDTH",
    "COMMAND_SIZE",
    "FRAME_SIZE",
    "MAX_COMMAND_PARAM",
    "MarketMessage",
    "decode_frame",
    "encode_command",
    "encode_frame",
]
