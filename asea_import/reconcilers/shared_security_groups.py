"""Security groups replicated into accounts that a VPC's subnets are shared with.

The legacy product copies the groups of a shared VPC into every participant
account. The copies carry the VPC name in their description, which is the only
link back to the VPC, since the VPC itself lives in another account.
"""

from typing import List

from ..logging import get_logger
from ..matcher import description_mentions_vpc
from ..models.network import VpcBaseConfig, VpcConfig
from ..types import CfnType
from .security_groups import SecurityGroupReconciler

logger = get_logger(__name__)


class SharedSecurityGroupReconciler(SecurityGroupReconciler):
    name = "shared_security_groups"
    phases = (2,)

    def shared_vpcs(self) -> List[VpcBaseConfig]:
        vpcs = []
        for vpc in self.context.config.network.all_vpcs:
            if vpc.region != self.context.region or not vpc.is_shared:
                continue
            if isinstance(vpc, VpcConfig):
                if self.context.account_name == vpc.account:
                    continue
            elif self.context.is_included(vpc.deployment_targets):
                continue
            if any(self.context.is_shared_with(subnet.share_targets) for subnet in vpc.subnets):
                vpcs.append(vpc)
        return vpcs

    def reconcile(self) -> None:
        for vpc in self.shared_vpcs():
            candidates = [
                (inventory, record)
                for inventory, record in self.records(CfnType.SECURITY_GROUP)
                if inventory is not self.inventory
                and description_mentions_vpc(record.typed().group_description, vpc.name)
            ]
            if not candidates:
                logger.info("No shared security groups found", vpc=vpc.name)
                continue
            self.reconcile_groups(vpc, candidates)
