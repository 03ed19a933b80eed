"""IAM groups."""

from typing import List

from ..logging import get_logger
from ..models.iam import GroupConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler
from .iam_policies import managed_policy_arns

logger = get_logger(__name__)


class GroupReconciler(Reconciler):
    name = "iam_groups"
    phases = (1,)
    home_region_only = True

    def groups_in_scope(self) -> List[GroupConfig]:
        return [
            group
            for group_set in self.context.config.iam.group_sets
            if self.context.is_included(group_set.deployment_targets)
            for group in group_set.groups
        ]

    def reconcile(self) -> None:
        groups = self.groups_in_scope()
        names = {group.name for group in groups}

        for record in self.inventory.by_type(CfnType.IAM_GROUP):
            group_name = record.typed().group_name
            if group_name and group_name not in names:
                self.cascade.with_parameter(
                    self.inventory,
                    record,
                    self.context.ssm_path(SsmPath.IAM_GROUP, group_name),
                    identifier=group_name,
                )

        for group in groups:
            record = self.context.lookup(
                self.matcher.group(group.name),
                LookupPolicy.SKIP,
                item=group.name,
                reason="group not deployed by legacy stack",
            )
            if record is None:
                continue

            node = self.context.node_for(self.inventory, record)
            node.set("ManagedPolicyArns", managed_policy_arns(self.context, group.policies, group.name))
            self.context.add_parameter(
                pascal_case("SsmParam", group.name, "GroupArn"),
                self.context.ssm_path(SsmPath.IAM_GROUP, group.name),
                node.get_att("Arn"),
            )
            self.context.add_mapping_entry(AseaResourceType.IAM_GROUP, group.name, record)
