"""IAM configuration: policy, role, group and user sets."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import ConfigModel, DeploymentTargets


class PolicyConfig(ConfigModel):
    name: str
    policy: Optional[str] = None
    document: Optional[Dict[str, Any]] = None


class PolicySetConfig(ConfigModel):
    deployment_targets: DeploymentTargets = Field(default_factory=DeploymentTargets)
    policies: List[PolicyConfig] = Field(default_factory=list)


class PoliciesConfig(ConfigModel):
    """Managed policies attached to a role or group."""

    aws_managed: List[str] = Field(default_factory=list)
    customer_managed: List[str] = Field(default_factory=list)


class AssumedByConfig(ConfigModel):
    type: Literal["service", "account", "principalArn"]
    principal: str


class RoleConfig(ConfigModel):
    name: str
    assumed_by: List[AssumedByConfig] = Field(default_factory=list)
    policies: Optional[PoliciesConfig] = None
    boundary_policy: str = ""
    instance_profile: bool = False


class RoleSetConfig(ConfigModel):
    deployment_targets: DeploymentTargets = Field(default_factory=DeploymentTargets)
    path: Optional[str] = None
    roles: List[RoleConfig] = Field(default_factory=list)


class GroupConfig(ConfigModel):
    name: str
    policies: Optional[PoliciesConfig] = None


class GroupSetConfig(ConfigModel):
    deployment_targets: DeploymentTargets = Field(default_factory=DeploymentTargets)
    groups: List[GroupConfig] = Field(default_factory=list)


class UserConfig(ConfigModel):
    username: str
    group: str
    boundary_policy: str = ""
    disable_console_access: bool = False


class UserSetConfig(ConfigModel):
    deployment_targets: DeploymentTargets = Field(default_factory=DeploymentTargets)
    users: List[UserConfig] = Field(default_factory=list)


class IamConfig(ConfigModel):
    policy_sets: List[PolicySetConfig] = Field(default_factory=list)
    role_sets: List[RoleSetConfig] = Field(default_factory=list)
    group_sets: List[GroupSetConfig] = Field(default_factory=list)
    user_sets: List[UserSetConfig] = Field(default_factory=list)
