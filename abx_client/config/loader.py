"""YAML loader for the config subsystem.

``load_client_config`` consumes one YAML file, validates it via models.py and
returns a :class:`ClientConfig`. ``apply_overrides`` folds command-line values
on top of the file without mutating the loaded (frozen) model.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from abx_client.core.errors import ConfigurationError

from .models import ClientConfig

_DEFAULT_CONFIG_PATH = Path("config") / "client.yml"
CONFIG_ENV_VAR = "ABX_CLIENT_CONFIG"


def _read_yaml(path: Path) -> Mapping:
    """Read a YAML file and return a mapping (empty dict if file is blank)."""

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as fp:
        try:
            data = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"YAML root must be a mapping in {path}")
    return data


def load_client_config(path: Path | str = _DEFAULT_CONFIG_PATH) -> ClientConfig:
    """Load client.yml (server, recovery, export, telemetry sections)."""

    path = Path(path)
    data = _read_yaml(path)
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config in {path}: {exc}") from exc


def resolve_config_path(explicit: Path | str | None = None) -> Path | None:
    """Return the config file to use, or None to fall back to defaults.

    Precedence: explicit argument, then ``ABX_CLIENT_CONFIG``, then
    ``config/client.yml`` when it exists.
    """

    if explicit:
        return Path(explicit)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    if _DEFAULT_CONFIG_PATH.exists():
        return _DEFAULT_CONFIG_PATH
    return None


def load_config_or_defaults(path: Path | str | None = None) -> ClientConfig:
    resolved = resolve_config_path(path)
    if resolved is None:
        return ClientConfig()
    return load_client_config(resolved)


def apply_overrides(config: ClientConfig, overrides: Mapping[str, Mapping[str, Any]]) -> ClientConfig:
    """Return a copy of ``config`` with per-section overrides applied.

    ``overrides`` maps a section name to field values; ``None`` values are
    skipped so unset CLI flags keep the file's settings.
    """

    merged: Dict[str, Any] = config.model_dump()
    for section, values in overrides.items():
        if section not in merged:
            raise ConfigurationError(f"Unknown config section: {section}")
        for key, value in values.items():
            if value is None:
                continue
            merged[section][key] = value
    try:
        return ClientConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid override: {exc}") from exc
