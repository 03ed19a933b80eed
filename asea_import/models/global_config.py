"""Global configuration: home region and legacy landing-zone settings."""

from typing import List

from pydantic import Field

from .base import ConfigModel


class ExternalLandingZoneResourcesConfig(ConfigModel):
    import_external_landing_zone_resources: bool = True
    accelerator_prefix: str = "ASEA"
    accelerator_name: str = "ASEA"


class GlobalConfig(ConfigModel):
    home_region: str
    enabled_regions: List[str] = Field(default_factory=list)
    external_landing_zone_resources: ExternalLandingZoneResourcesConfig = Field(
        default_factory=ExternalLandingZoneResourcesConfig
    )
