"""Gap detection and per-sequence recovery.

After the initial stream, every integer in ``1..max_seen`` that never arrived
is requested individually: one fresh connection, one SPECIFIC_SEQUENCE
command, one frame, close. Attempts are independent; a failed one is
reported and never retried.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Collection, List

from abx_client.config.models import RecoveryConfig, ServerConfig
from abx_client.core.enums import CommandType
from abx_client.core.errors import ConnectionClosed, NetworkError
from abx_client.protocol.codec import FRAME_SIZE, MAX_COMMAND_PARAM, MarketMessage, decode_frame, encode_command
from abx_client.protocol.connection import open_connection
from abx_client.telemetry.events import RecoveryReport
from abx_client.telemetry.progress import progress_bar

from .ingestor import Connector
from .state import SessionState

LOGGER = logging.getLogger(__name__)


def find_missing(seen: Collection[int], max_seen: int) -> List[int]:
    """Return the ascending sequence numbers in ``1..max_seen`` absent from ``seen``."""

    return [sequence for sequence in range(1, max_seen + 1) if sequence not in seen]


def count_missing_above(seen: Collection[int], floor: int, max_seen: int) -> int:
    """Count the numbers in ``floor+1..max_seen`` absent from ``seen`` without listing them."""

    if max_seen <= floor:
        return 0
    present = sum(1 for sequence in seen if floor < sequence <= max_seen)
    return max_seen - floor - present


class GapRecoveryEngine:
    """Re-request missing sequence numbers one connection at a time.

    Parameters
    ----------
    server:
        Exchange address.
    recovery:
        Enable switch and the fixed pause between attempts.
    connector:
        Factory returning a :class:`~abx_client.protocol.connection.Connection`.
    sleep:
        Used for the inter-attempt delay; injectable for tests.

    Notes
    -----
    The command parameter is one byte wide, so sequence numbers above 255
    cannot be requested. They are counted in
    ``RecoveryReport.unaddressable_count`` instead of being sent truncated.
    A reply carrying a different sequence number is discarded.
    """

    def __init__(
        self,
        server: ServerConfig,
        recovery: RecoveryConfig,
        *,
        connector: Connector = open_connection,
        sleep: Callable[[float], None] = time.sleep,
        progress: bool = False,
    ) -> None:
        self._server = server
        self._recovery = recovery
        self._connector = connector
        self._sleep = sleep
        self._progress = progress

    def run(self, session: SessionState, max_seen: int) -> RecoveryReport:
        """Recover the gaps below ``max_seen`` into ``session``."""

        LOGGER.info("Validating data integrity", extra={"max_sequence": max_seen})
        missing = find_missing(session.seen_sequences, min(max_seen, MAX_COMMAND_PARAM))
        unaddressable = count_missing_above(session.seen_sequences, MAX_COMMAND_PARAM, max_seen)
        report = RecoveryReport(
            max_sequence=max_seen,
            missing_count=len(missing) + unaddressable,
            unaddressable_count=unaddressable,
        )
        if unaddressable:
            LOGGER.warning(
                "%s missing sequence numbers exceed %s and cannot be requested with a one-byte parameter",
                unaddressable,
                MAX_COMMAND_PARAM,
                extra={"unaddressable": unaddressable},
            )
        if not missing:
            self._log_results(report)
            return report
        if not self._recovery.enabled:
            LOGGER.warning("Gap recovery disabled; %s messages left missing", report.missing_count)
            report.failed_sequences.extend(missing)
            self._log_results(report)
            return report

        with progress_bar(len(missing), "Recovering", enabled=self._progress) as bar:
            for attempted, sequence in enumerate(missing):
                bar.update(1)
                if attempted and self._recovery.delay_sec:
                    self._sleep(self._recovery.delay_sec)
                if self._attempt(session, sequence):
                    report.recovered_count += 1
                else:
                    report.failed_sequences.append(sequence)

        self._log_results(report)
        return report

    def recover_one(self, sequence: int) -> MarketMessage:
        """Fetch one message over a dedicated connection.

        Raises :class:`NetworkError` or :class:`ConnectionClosed` on failure;
        the connection is closed on every path.
        """

        command = encode_command(CommandType.SPECIFIC_SEQUENCE, sequence)
        with self._connector(
            self._server.host,
            self._server.port,
            timeout=self._server.connect_timeout_sec,
        ) as connection:
            connection.send(command)
            return decode_frame(connection.receive_exact(FRAME_SIZE))

    def _attempt(self, session: SessionState, sequence: int) -> bool:
        LOGGER.info("Requesting sequence number %s", sequence, extra={"sequence_num": sequence})
        try:
            message = self.recover_one(sequence)
        except NetworkError as exc:
            LOGGER.warning(
                "Recovery of sequence %s failed: %s",
                sequence,
                exc,
                extra={"sequence_num": sequence, "errno": exc.errno},
            )
            return False
        except ConnectionClosed:
            LOGGER.warning("Server closed without sending sequence %s", sequence, extra={"sequence_num": sequence})
            return False

        if message.sequence_num != sequence:
            LOGGER.warning(
                "Requested sequence %s but received %s",
                sequence,
                message.sequence_num,
                extra={"sequence_num": sequence, "received_sequence_num": message.sequence_num},
            )
            return False
        session.record(message)
        LOGGER.info("Data recovered for sequence %s", sequence, extra={"sequence_num": sequence})
        return True

    @staticmethod
    def _log_results(report: RecoveryReport) -> None:
        if report.complete:
            LOGGER.info("Successfully recovered all %s missing messages", report.missing_count)
        else:
            LOGGER.warning(
                "Recovered %s of %s missing messages",
                report.recovered_count,
                report.missing_count,
            )
        LOGGER.info(
            "Data recovery results",
            extra={
                "total_expected": report.max_sequence,
                "missing": report.missing_count,
                "recovered": report.recovered_count,
                "success_rate": round(report.success_rate, 2),
            },
        )


__all__ = ["GapRecoveryEngine", "count_missing_above", "find_missing"]
