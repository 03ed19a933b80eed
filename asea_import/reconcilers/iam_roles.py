"""IAM roles and their instance profiles."""

import re
from typing import Any, Dict, List

from ..graph import ResourceNode
from ..logging import get_logger
from ..models.iam import AssumedByConfig, RoleConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler
from .iam_policies import managed_policy_arns, set_boundary_policy

logger = get_logger(__name__)

ACCOUNT_ID_PATTERN = re.compile(r"^\d{12}$")

# Roles the legacy product created for its own use; never flagged for deletion
EXCLUDED_ROLE_PREFIXES = ("{prefix}-VPC-FlowLog", "{prefix}-VPC-PCX", "{prefix}-Reports")


def instance_profile_name(role_name: str) -> str:
    return f"{role_name}-ip"


class RoleReconciler(Reconciler):
    """Adopts legacy roles by exact ``RoleName`` and rebuilds their trust and policies."""

    name = "iam_roles"
    phases = (1,)
    home_region_only = True

    def roles_in_scope(self) -> List[RoleConfig]:
        return [
            role
            for role_set in self.context.config.iam.role_sets
            if self.context.is_included(role_set.deployment_targets)
            for role in role_set.roles
        ]

    def reconcile(self) -> None:
        roles = self.roles_in_scope()
        self.flag_removed(roles)

        if not roles:
            logger.info("No roles to handle in stack", stack_key=self.context.stack_key)
            return

        for role in roles:
            self.update(role)

    def flag_removed(self, roles: List[RoleConfig]) -> None:
        prefixes = tuple(
            prefix.format(prefix=self.context.accelerator_prefix)
            for prefix in EXCLUDED_ROLE_PREFIXES
        )
        names = {role.name for role in roles}

        for record in self.inventory.by_type(CfnType.IAM_ROLE):
            role_name = record.typed().role_name
            if not role_name or role_name.startswith(prefixes) or role_name in names:
                continue
            self.cascade.with_instance_profile(
                self.inventory,
                record,
                self.context.ssm_path(SsmPath.IAM_ROLE, role_name),
                instance_profile_name(role_name),
                identifier=role_name,
            )

    def update(self, role: RoleConfig) -> None:
        record = self.context.lookup(
            self.matcher.role(role.name),
            LookupPolicy.SKIP,
            item=role.name,
            reason="role not deployed by legacy stack",
        )
        if record is None:
            return

        node = self.context.node_for(self.inventory, record)
        node.set("ManagedPolicyArns", managed_policy_arns(self.context, role.policies, role.name))
        node.set("AssumeRolePolicyDocument", self.assume_role_policy(role.assumed_by))
        set_boundary_policy(self.context, node, role.boundary_policy, role.name)
        self.set_instance_profile(role, node)

        self.context.add_parameter(
            pascal_case("SsmParam", role.name, "RoleArn"),
            self.context.ssm_path(SsmPath.IAM_ROLE, role.name),
            node.get_att("Arn"),
        )
        self.context.add_mapping_entry(AseaResourceType.IAM_ROLE, role.name, record)

    def assume_role_policy(self, assumed_by: List[AssumedByConfig]) -> Dict[str, Any]:
        statements = []
        for item in assumed_by:
            if item.type == "service":
                principal = {"Service": item.principal}
            elif item.type == "principalArn":
                principal = {"AWS": item.principal}
            else:
                principal = {"AWS": self.account_root_arn(item.principal)}
            statements.append(
                {"Effect": "Allow", "Principal": principal, "Action": "sts:AssumeRole"}
            )
        return {"Version": "2012-10-17", "Statement": statements}

    def account_root_arn(self, principal: str) -> str:
        """Root ARN for an account principal given as an id, a root ARN or an account name."""
        partition = self.context.partition
        if ACCOUNT_ID_PATTERN.match(principal):
            account_id = principal
        else:
            match = re.match(rf"^arn:{re.escape(partition)}:iam::(\d{{12}}):root$", principal)
            account_id = match.group(1) if match else self.context.account_id_for(principal)
        return f"arn:{partition}:iam::{account_id}:root"

    def set_instance_profile(self, role: RoleConfig, node: ResourceNode) -> None:
        """Remove, create or rename the role's instance profile to follow ``instance_profile``."""
        profile_name = instance_profile_name(role.name)
        existing = self.matcher.instance_profile(profile_name)
        graph = self.context.graph_for(self.inventory)

        if existing is not None and not role.instance_profile:
            graph.remove(existing.logical_resource_id)
            logger.info("Instance profile removed", role=role.name, logical_id=existing.logical_resource_id)
            return

        if not role.instance_profile:
            return

        if existing is None:
            logical_id = pascal_case(role.name, "InstanceProfile")
            profile = graph.get(logical_id)
            if profile is None:
                profile = graph.add_resource(logical_id, CfnType.IAM_INSTANCE_PROFILE)
                logger.info("Instance profile created", role=role.name, logical_id=logical_id)
            profile.set("Roles", [node.ref])
        else:
            profile = self.context.node_for(self.inventory, existing)

        profile.set("InstanceProfileName", profile_name)
