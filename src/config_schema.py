"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# REGISTRY MODEL
# =============================================================================

class RegistryConfig(StrictModel):
    """Creature registry limits."""

    max_owned: int = Field(
        default=9999,
        ge=1,
        le=2**32 - 1,
        description="Maximum number of creatures a single account can own"
    )


# =============================================================================
# GENETICS MODEL
# =============================================================================

class GeneticsConfig(StrictModel):
    """Domain-separation tags for the randomness source."""

    dna_seed_tag: str = Field(
        default="dna",
        min_length=1,
        description="Randomness subject for DNA generation"
    )
    gender_seed_tag: str = Field(
        default="gender",
        min_length=1,
        description="Randomness subject for gender generation"
    )
    gender_source: Literal["random", "dna"] = Field(
        default="random",
        description="Gender of creatures minted without one: random draw or dna[0] parity"
    )

    @model_validator(mode="after")
    def tags_differ(self) -> "GeneticsConfig":
        """DNA and gender draws must be domain separated."""
        if self.dna_seed_tag == self.gender_seed_tag:
            raise ValueError(
                f"dna_seed_tag and gender_seed_tag must differ (both '{self.dna_seed_tag}')"
            )
        return self


# =============================================================================
# CHAIN MODEL
# =============================================================================

class ChainConfig(StrictModel):
    """Block clock and randomness settings."""

    random_material_len: int = Field(
        default=81,
        ge=1,
        description="Number of recent block hashes mixed into randomness"
    )
    genesis_hash: str | None = Field(
        default=None,
        description="Hex genesis block hash (random when unset)"
    )

    @field_validator("genesis_hash")
    @classmethod
    def genesis_hash_is_32_bytes(cls, v: str | None) -> str | None:
        """Ensure the genesis hash is 32 bytes of hex."""
        if v is None:
            return v
        try:
            raw = bytes.fromhex(v)
        except ValueError as exc:
            raise ValueError(f"genesis_hash is not hex: {v!r}") from exc
        if len(raw) != 32:
            raise ValueError(f"genesis_hash must be 32 bytes, got {len(raw)}")
        return v


# =============================================================================
# SCRIP MODEL
# =============================================================================

class ScripConfig(StrictModel):
    """Economic currency configuration."""

    starting_amount: int = Field(
        default=100,
        ge=0,
        description="Starting scrip for funded accounts"
    )


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    output_file: str = Field(
        default="events.jsonl",
        description="JSONL file for registry events"
    )
    logs_dir: str = Field(
        default="logs",
        description="Per-run logs directory (e.g., logs/run_20260115_120000/)"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Level for the standard library root logger"
    )


# =============================================================================
# CHECKPOINT MODEL
# =============================================================================

class CheckpointConfig(StrictModel):
    """Checkpoint persistence configuration."""

    checkpoint_file: str = Field(
        default="checkpoint.json",
        description="Where registry state is saved"
    )


# =============================================================================
# ROOT CONFIG
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model for the entire application.

    All fields have sensible defaults, so an empty config file is valid.
    """

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    genetics: GeneticsConfig = Field(default_factory=GeneticsConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    scrip: ScripConfig = Field(default_factory=ScripConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary.

    Returns:
        Validated AppConfig instance.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


__all__ = [
    "AppConfig",
    "RegistryConfig",
    "GeneticsConfig",
    "ChainConfig",
    "ScripConfig",
    "LoggingConfig",
    "CheckpointConfig",
    "load_validated_config",
    "validate_config_dict",
]
