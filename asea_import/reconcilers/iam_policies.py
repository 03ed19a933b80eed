"""IAM customer managed policies, plus the policy ARN helpers shared by roles, groups and users."""

from typing import List, Optional

from ..graph import ResourceNode
from ..logging import get_logger
from ..models.iam import PoliciesConfig, PolicyConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, ParameterValue, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)


def managed_policy_arns(context, policies: Optional[PoliciesConfig], item: str) -> List[ParameterValue]:
    """ARNs for the AWS managed and customer managed policies attached to ``item``.

    Customer managed policies resolve through the policies reconciled in this
    stack, then the already-deployed parameters; unresolved ones are omitted.
    """
    if policies is None:
        return []

    arns: List[ParameterValue] = [
        context.aws_managed_policy_arn(name) for name in policies.aws_managed
    ]
    for name in policies.customer_managed:
        arn = context.lookup(
            context.policy_arn(name),
            LookupPolicy.WARN,
            item=item,
            reason="customer managed policy not found",
            policy_name=name,
        )
        if arn is not None:
            arns.append(arn)
    return arns


def boundary_policy_arn(context, name: str, item: str) -> Optional[ParameterValue]:
    if not name:
        return None
    return context.lookup(
        context.policy_arn(name),
        LookupPolicy.WARN,
        item=item,
        reason="boundary policy not found",
        policy_name=name,
    )


def set_boundary_policy(context, node: ResourceNode, name: Optional[str], item: str) -> None:
    """Point ``PermissionsBoundary`` at the configured policy.

    The property is removed only when no boundary is configured; a configured
    boundary that does not resolve yet leaves the legacy value in place.
    """
    if not name:
        node.unset("PermissionsBoundary")
        return
    arn = boundary_policy_arn(context, name, item)
    if arn is not None:
        node.set("PermissionsBoundary", arn)


class ManagedPolicyReconciler(Reconciler):
    """Adopts legacy managed policies by name and flags the ones no longer configured.

    Legacy policy names carry generated suffixes, so a configured policy
    matches the first legacy policy whose name contains it.
    """

    name = "iam_policies"
    phases = (1,)
    home_region_only = True

    def policies_in_scope(self) -> List[PolicyConfig]:
        return [
            policy
            for policy_set in self.context.config.iam.policy_sets
            if self.context.is_included(policy_set.deployment_targets)
            for policy in policy_set.policies
        ]

    def reconcile(self) -> None:
        policies = self.policies_in_scope()
        self.flag_removed(policies)

        if not policies:
            logger.info("No managed policies to handle in stack", stack_key=self.context.stack_key)
            return

        for policy in policies:
            self.update(policy)

    def flag_removed(self, policies: List[PolicyConfig]) -> None:
        names = [policy.name for policy in policies]
        for record in self.inventory.by_type(CfnType.IAM_MANAGED_POLICY):
            legacy_name = record.typed().managed_policy_name
            if not legacy_name:
                continue
            if any(name == legacy_name or name in legacy_name for name in names):
                continue
            self.cascade.with_parameter(
                self.inventory,
                record,
                self.context.ssm_path(SsmPath.IAM_POLICY, legacy_name),
                identifier=legacy_name,
            )

    def update(self, policy: PolicyConfig) -> None:
        record = self.context.lookup(
            self.matcher.managed_policy(policy.name),
            LookupPolicy.SKIP,
            item=policy.name,
            reason="managed policy not deployed by legacy stack",
        )
        if record is None:
            return

        node = self.context.node_for(self.inventory, record)
        if policy.document is not None:
            node.set("PolicyDocument", policy.document)

        self.context.policies[policy.name] = node.ref
        self.context.add_parameter(
            pascal_case("SsmParam", policy.name, "PolicyArn"),
            self.context.ssm_path(SsmPath.IAM_POLICY, policy.name),
            node.ref,
        )
        self.context.add_mapping_entry(AseaResourceType.IAM_POLICY, policy.name, record)
