"""End-to-end ABX session: ingest, recover, finalize."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List

from abx_client.config.models import ClientConfig
from abx_client.core.time_utils import elapsed_whole_seconds, monotonic, now_utc
from abx_client.protocol.codec import MarketMessage
from abx_client.protocol.connection import open_connection
from abx_client.telemetry.events import RecoveryReport, SessionReport

from .finalizer import finalize
from .ingestor import Connector, IngestResult, StreamIngestor
from .recovery import GapRecoveryEngine
from .state import SessionState

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionResult:
    """Everything a run produced, ready for export."""

    messages: List[MarketMessage]
    ingest: IngestResult
    recovery: RecoveryReport
    report: SessionReport


class MarketDataClient:
    """Run one complete ABX session.

    A fresh :class:`SessionState` is created per :meth:`run` and passed through
    the three stages; nothing is kept on the client between runs.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        connector: Connector = open_connection,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self.ingestor = StreamIngestor(config.server, connector=connector)
        self.recovery = GapRecoveryEngine(
            config.server,
            config.recovery,
            connector=connector,
            sleep=sleep,
            progress=config.telemetry.progress,
        )

    def run(self) -> SessionResult:
        """Execute ingest -> recover -> finalize.

        A failed initial connect propagates and aborts the run.
        """

        session = SessionState()
        LOGGER.info(
            "Session started",
            extra={"host": self._config.server.host, "port": self._config.server.port},
        )
        ingest = self.ingestor.run(session)
        recovery = self.recovery.run(session, session.stream_max_sequence)
        messages = finalize(session)
        report = SessionReport(
            started_at=session.session_start,
            finished_at=now_utc(),
            total_messages=len(messages),
            duration_sec=elapsed_whole_seconds(session.started_monotonic, monotonic()),
            stream_messages=ingest.frames_received,
            stream_completed=ingest.completed,
            recovery=recovery,
        )
        return SessionResult(messages=messages, ingest=ingest, recovery=recovery, report=report)


__all__ = ["MarketDataClient", "SessionResult"]
