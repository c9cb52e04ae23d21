"""Process-wide registry configuration.

run.py loads config/config.yaml once at startup; the rest of the code
reads it back either as the validated AppConfig or, for the event logger
defaults, by dot-path.

Usage:
    from src.config import load_config, get, get_validated_config

    load_config("config/config.yaml")
    config = get_validated_config()
    output_file = get("logging.output_file")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .config_schema import AppConfig, load_validated_config


DEFAULT_CONFIG_PATH: Path = Path(__file__).parent.parent / "config" / "config.yaml"

_validated_config: AppConfig | None = None


def load_config(config_path: str | None = None) -> AppConfig:
    """Load, validate and install the config file as the active config.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If any value is invalid.
    """
    global _validated_config
    _validated_config = load_validated_config(config_path or DEFAULT_CONFIG_PATH)
    return _validated_config


def get_validated_config() -> AppConfig:
    """The active config, loading the default file on first use."""
    if _validated_config is None:
        return load_config()
    return _validated_config


def get(key: str, default: Any = None) -> Any:
    """Look up a value by dot-separated path, e.g. ``get("logging.level")``.

    Paths that do not name a field return ``default``. Values are the
    validated ones, so omitted keys read back as their schema defaults.
    """
    value: Any = get_validated_config().model_dump()
    for part in key.split("."):
        if not isinstance(value, dict) or part not in value:
            return default
        value = value[part]
    return value
