"""Telemetry subsystem: reports, logging, progress and export."""
from .events import RecoveryReport, SessionReport
from .logging_setup import JsonFormatter, configure_logging
from .progress import progress_bar
from .storage import ExportStorage, default_storage

__all__ = [
    "ExportStorage",
    "JsonFormatter",
    "RecoveryReport",
    "SessionReport",
    "configure_logging",
    "default_storage",
    "progress_bar",
]
