"""Typed configuration models for the ABX client.

The config subsystem relies on pydantic to validate the YAML file and to
hand strongly-typed objects to the rest of the runtime. Every section has
defaults so the client runs against ``127.0.0.1:3000`` with no file at all.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


class ServerConfig(BaseModel):
    """Address of the ABX exchange server."""

    host: str = Field(DEFAULT_HOST, min_length=1)
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)
    connect_timeout_sec: Optional[float] = Field(
        None, gt=0, description="Socket timeout; None keeps the OS blocking default"
    )


class RecoveryConfig(BaseModel):
    """Gap recovery switches.

    ``delay_ms`` is the fixed pause between two recovery attempts. It is a
    courtesy to the server, not part of the protocol.
    """

    enabled: bool = True
    delay_ms: int = Field(100, ge=0)

    @property
    def delay_sec(self) -> float:
        return self.delay_ms / 1000.0


class ExportConfig(BaseModel):
    """Where the ordered dataset and the session reports are written."""

    output_path: str = Field("output.json", min_length=1)
    reports_dir: Optional[str] = Field("data/reports")


class TelemetryConfig(BaseModel):
    """Logging and terminal feedback."""

    log_level: str = Field("INFO")
    logs_dir: Optional[str] = Field("data/logs")
    progress: bool = True

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class ClientConfig(BaseModel):
    """Top-level client config composed of the sections above."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    model_config = ConfigDict(frozen=True)
