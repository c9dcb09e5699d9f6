"""Structured report models (gap recovery, whole session)."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List


@dataclass(slots=True)
class RecoveryReport:
    """Outcome of the gap recovery pass.

    Partial recovery is not an error: sequence numbers listed in
    ``failed_sequences`` are simply absent from the final dataset. Gaps above
    the one-byte command range are only counted in ``unaddressable_count``.
    """

    max_sequence: int
    missing_count: int = 0
    recovered_count: int = 0
    failed_sequences: List[int] = field(default_factory=list)
    unaddressable_count: int = 0

    @property
    def success_rate(self) -> float:
        """Recovered share of the missing messages in percent (100 when none)."""

        if self.missing_count == 0:
            return 100.0
        return self.recovered_count * 100.0 / self.missing_count

    @property
    def failed_count(self) -> int:
        return len(self.failed_sequences) + self.unaddressable_count

    @property
    def complete(self) -> bool:
        return self.recovered_count == self.missing_count

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["success_rate"] = self.success_rate
        data["failed_count"] = self.failed_count
        return data


@dataclass(slots=True)
class SessionReport:
    """Run summary logged at the end and persisted under ``reports/``."""

    started_at: datetime
    finished_at: datetime
    total_messages: int
    duration_sec: int
    stream_messages: int
    stream_completed: bool
    recovery: RecoveryReport

    @property
    def processing_rate(self) -> int:
        """Messages per second over the whole run, in whole messages."""

        return self.total_messages // (self.duration_sec or 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "total_messages": self.total_messages,
            "duration_sec": self.duration_sec,
            "processing_rate": self.processing_rate,
            "stream_messages": self.stream_messages,
            "stream_completed": self.stream_completed,
            "recovery": self.recovery.to_dict(),
        }


__all__ = ["RecoveryReport", "SessionReport"]
