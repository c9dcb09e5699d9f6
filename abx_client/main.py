from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from abx_client.config.loader import apply_overrides, load_config_or_defaults
from abx_client.config.models import ClientConfig
from abx_client.core.errors import ConfigurationError, ExportError, NetworkError
from abx_client.session.client import MarketDataClient
from abx_client.telemetry import configure_logging
from abx_client.telemetry.events import SessionReport
from abx_client.telemetry.storage import default_storage

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abx-client",
        description="Fetch the ABX exchange trade stream, recover gaps and export an ordered dataset.",
    )
    parser.add_argument("--config", help="Path to client.yml (default: $ABX_CLIENT_CONFIG or config/client.yml)")
    parser.add_argument("--host", help="Exchange host (default 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Exchange port (default 3000)")
    parser.add_argument("--output", help="Dataset output path (default output.json)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--recovery-delay-ms", type=int, help="Pause between recovery attempts")
    parser.add_argument("--no-recovery", action="store_true", help="Skip gap recovery")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    return parser


def load_config(args: argparse.Namespace) -> ClientConfig:
    config = load_config_or_defaults(args.config)
    return apply_overrides(
        config,
        {
            "server": {"host": args.host, "port": args.port},
            "recovery": {
                "delay_ms": args.recovery_delay_ms,
                "enabled": False if args.no_recovery else None,
            },
            "export": {"output_path": args.output},
            "telemetry": {
                "log_level": args.log_level,
                "progress": False if args.no_progress else None,
            },
        },
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args)
    except (ConfigurationError, FileNotFoundError) as exc:
        print(f"[bootstrap] {exc}", file=sys.stderr)
        return EXIT_CONFIG

    log_dir = Path(config.telemetry.logs_dir) if config.telemetry.logs_dir else None
    logger = configure_logging(log_dir=log_dir, level=config.telemetry.log_level)
    logger.info(
        "Bootstrapping client",
        extra={"host": config.server.host, "port": config.server.port},
    )

    client = MarketDataClient(config)
    try:
        result = client.run()
    except NetworkError as exc:
        logger.error("Initial connection failed - aborting: %s", exc, extra={"errno": exc.errno})
        return EXIT_FAILURE
    except KeyboardInterrupt:  # pragma: no cover - manual exit
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED

    storage = default_storage(config.export, progress=config.telemetry.progress)
    output_path = Path(config.export.output_path)
    logger.info("Writing data", extra={"output_path": str(output_path)})
    try:
        storage.write_dataset(result.messages, output_path)
        report_path = storage.write_session_report(result.report)
    except ExportError as exc:
        logger.error("Export failed: %s", exc)
        return EXIT_FAILURE

    _log_session_report(result.report, logger)
    logger.info(
        "Process complete",
        extra={"output_path": str(output_path), "report_path": str(report_path) if report_path else None},
    )
    return EXIT_OK


def _log_session_report(report: SessionReport, logger: logging.Logger) -> None:
    logger.info(
        "Session report: %s messages in %ss (%s msg/s)",
        report.total_messages,
        report.duration_sec,
        report.processing_rate,
        extra={
            "total_messages": report.total_messages,
            "duration_sec": report.duration_sec,
            "processing_rate": report.processing_rate,
            "missing": report.recovery.missing_count,
            "recovered": report.recovery.recovered_count,
        },
    )


if __name__ == "__main__":
    sys.exit(main())
