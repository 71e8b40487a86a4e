"""Configuration file support for the ghappclone CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ghappclone.core.config import Settings
from ghappclone.core.errors import ConfigurationError


def load_cli_config(config_path: str | Path) -> dict[str, Any]:
    """Load settings overrides from a YAML file.

    Keys are settings field names (``repository``, ``branch``,
    ``github_app_private_key_path``, ...). Unknown keys are rejected so that
    typos do not silently fall back to defaults.

    Args:
        config_path: Path to the YAML file

    Returns:
        Mapping of settings field name to value

    Raises:
        ConfigurationError: If the file cannot be read or is malformed
    """
    path = Path(config_path).expanduser()
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    unknown = sorted(str(key) for key in data if key not in Settings.model_fields)
    if unknown:
        raise ConfigurationError(f"Unknown keys in config file {path}: {', '.join(unknown)}")

    return data


__all__ = ["load_cli_config"]
