"""Per-run session state shared by ingestion, recovery and finalization."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Set

from abx_client.core.time_utils import monotonic, now_utc
from abx_client.protocol.codec import MarketMessage

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionState:
    """Messages collected during one run.

    A single instance is created per run and handed from stage to stage
    (ingest, recover, finalize); it is never shared between runs.
    ``seen_sequences`` always mirrors the sequence numbers in ``message_log``.
    """

    message_log: List[MarketMessage] = field(default_factory=list)
    seen_sequences: Set[int] = field(default_factory=set)
    session_start: datetime = field(default_factory=now_utc)
    started_monotonic: float = field(default_factory=monotonic)
    stream_max_sequence: int = 0
    duplicates_dropped: int = 0

    def __len__(self) -> int:
        return len(self.message_log)

    def has(self, sequence: int) -> bool:
        return sequence in self.seen_sequences

    def record(self, message: MarketMessage) -> bool:
        """Append ``message`` unless its sequence number is already present.

        Returns ``True`` when the message was added.
        """

        if message.sequence_num in self.seen_sequences:
            self.duplicates_dropped += 1
            LOGGER.warning(
                "Dropping duplicate message %s (%s)",
                message.sequence_num,
                message.asset_code,
                extra={"sequence_num": message.sequence_num},
            )
            return False
        self.message_log.append(message)
        self.seen_sequences.add(message.sequence_num)
        LOGGER.debug("Received message %s (%s)", message.sequence_num, message.asset_code)
        return True

    def max_sequence(self) -> int:
        """Highest sequence number recorded so far, 0 for an empty log."""

        return max(self.seen_sequences, default=0)


__all__ = ["SessionState"]
