"""Core primitives shared across all subsystems.

Enums, type aliases, time helpers and the error hierarchy live here so the
protocol, session and telemetry packages can import them without circular
dependencies.
"""

from . import enums, errors, time_utils, types

__all__ = ["enums", "errors", "time_utils", "types"]
