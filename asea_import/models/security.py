"""Security configuration consumed by the import: SSM inventory collection."""

from typing import Optional

from pydantic import Field

from .base import ConfigModel, DeploymentTargets


class SsmInventoryConfig(ConfigModel):
    enable: bool = False
    deployment_targets: DeploymentTargets = Field(default_factory=DeploymentTargets)


class CentralSecurityServicesConfig(ConfigModel):
    ssm_inventory: Optional[SsmInventoryConfig] = None


class SecurityConfig(ConfigModel):
    central_security_services: CentralSecurityServicesConfig = Field(
        default_factory=CentralSecurityServicesConfig
    )
