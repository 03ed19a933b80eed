"""Configuration Management for ASEA Import

This module provides centralized configuration for an import run using Pydantic
settings. Values are read from ``ASEA_IMPORT_*`` environment variables and can be
overridden programmatically through ``set_config``.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_FORMATS = ["console", "json"]


class ImportConfig(BaseSettings):
    """Configuration for one import run."""

    asset_dir: str = Field(default="asea-assets", description="Directory holding resource files")
    output_dir: str = Field(default="asea-import-output", description="Where results are saved")
    ssm_prefix: str = Field(default="/accelerator", description="Prefix for emitted parameters")
    partition: str = "aws"
    parameter_batch_size: int = Field(default=5, description="Parameters per dependency batch")
    log_level: str = "INFO"
    log_format: str = "console"

    model_config = SettingsConfigDict(env_prefix="ASEA_IMPORT_")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in VALID_LOG_FORMATS:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("parameter_batch_size")
    @classmethod
    def validate_batch_size(cls, v):
        if v < 1:
            raise ValueError("parameter_batch_size must be at least 1")
        return v

    @field_validator("ssm_prefix")
    @classmethod
    def validate_ssm_prefix(cls, v):
        if not v.startswith("/"):
            raise ValueError("ssm_prefix must start with '/'")
        return v.rstrip("/")

    @property
    def asset_path(self) -> Path:
        return Path(self.asset_dir)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    def validation_errors(self) -> List[str]:
        """Validate cross-field settings and return any errors."""
        errors = []

        if Path(self.output_dir).resolve() == Path(self.asset_dir).resolve():
            errors.append("output_dir must differ from asset_dir")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    def __str__(self) -> str:
        return (
            f"ImportConfig(asset_dir={self.asset_dir}, output_dir={self.output_dir}, "
            f"ssm_prefix={self.ssm_prefix})"
        )


_global_config: Optional[ImportConfig] = None


def get_config() -> ImportConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = ImportConfig()
    return _global_config


def set_config(config: ImportConfig):
    """Set the global configuration instance."""
    global _global_config

    errors = config.validation_errors()
    if errors:
        raise ValueError(f"Configuration validation failed: {errors}")

    _global_config = config


def reset_config():
    """Reset the global configuration to default."""
    global _global_config
    _global_config = None
