"""Shared type aliases for readability and contract enforcement.

The wire format mixes several 32-bit integer fields with identical layout;
aliases keep sequence numbers, sizes and costs from being mixed up across
subsystems.
"""
from __future__ import annotations

from typing import NewType

AssetCode = NewType("AssetCode", str)
SequenceNumber = NewType("SequenceNumber", int)
Quantity = NewType("Quantity", int)
Price = NewType("Price", int)
