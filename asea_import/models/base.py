"""Shared building blocks for the configuration models."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ConfigModel(BaseModel):
    """Base for configuration items: camelCase keys, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class DeploymentTargets(ConfigModel):
    """Allow and deny lists deciding which accounts and regions an item applies to."""

    organizational_units: List[str] = Field(default_factory=list)
    accounts: List[str] = Field(default_factory=list)
    excluded_regions: List[str] = Field(default_factory=list)
    excluded_accounts: List[str] = Field(default_factory=list)


class ShareTargets(ConfigModel):
    """Accounts and organizational units a resource is shared with."""

    organizational_units: List[str] = Field(default_factory=list)
    accounts: List[str] = Field(default_factory=list)
