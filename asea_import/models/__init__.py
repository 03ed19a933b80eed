"""
Data models for ASEA Import.

Legacy-side models describe what the previous landing zone deployed; the
configuration models are the typed, read-only view of the new accelerator
configuration the engine reconciles against.
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import Field, ValidationError

from ..errors import ResourceFileError
from .accounts import AccountConfig, AccountIdConfig, AccountsConfig
from .base import ConfigModel, DeploymentTargets, ShareTargets
from .global_config import GlobalConfig
from .iam import IamConfig
from .mapping import LegacyResourceRecord, StackMapping, StackMappings
from .network import NetworkConfig, VpcBaseConfig, VpcConfig, VpcTemplatesConfig
from .security import SecurityConfig


class AcceleratorConfig(ConfigModel):
    """Bundle of every configuration file the engine reads."""

    accounts: AccountsConfig
    global_config: GlobalConfig
    iam: IamConfig = Field(default_factory=IamConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AcceleratorConfig":
        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AcceleratorConfig":
        """Load the configuration bundle from one JSON or YAML document."""
        path = Path(path)
        try:
            with open(path, "r") as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ResourceFileError(str(path), str(e)) from e

        try:
            return cls.from_dict(data or {})
        except ValidationError as e:
            raise ResourceFileError(str(path), str(e)) from e


__all__ = [
    "AcceleratorConfig",
    "AccountConfig",
    "AccountIdConfig",
    "AccountsConfig",
    "ConfigModel",
    "DeploymentTargets",
    "GlobalConfig",
    "IamConfig",
    "LegacyResourceRecord",
    "NetworkConfig",
    "SecurityConfig",
    "ShareTargets",
    "StackMapping",
    "StackMappings",
    "VpcBaseConfig",
    "VpcConfig",
    "VpcTemplatesConfig",
]
