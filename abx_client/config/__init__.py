"""Configuration loading and validation package."""

from .loader import apply_overrides, load_client_config, load_config_or_defaults, resolve_config_path
from .models import ClientConfig, ExportConfig, RecoveryConfig, ServerConfig, TelemetryConfig

__all__ = [
    "ClientConfig",
    "ExportConfig",
    "RecoveryConfig",
    "ServerConfig",
    "TelemetryConfig",
    "apply_overrides",
    "load_client_config",
    "load_config_or_defaults",
    "resolve_config_path",
]
