"""Security groups of the VPCs owned by the stack's account.

The legacy product deploys security groups in the phase 2 stack, separate from
the VPC, so groups are tied to their VPC by the VPC's physical id.
"""

from typing import List, Optional, Tuple

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import VpcBaseConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

Candidate = Tuple[ResourceInventory, LegacyResourceRecord]


def security_group_name(record: LegacyResourceRecord) -> Optional[str]:
    """Configured name of a legacy group: its ``Name`` tag, else its ``GroupName``."""
    return record.tag("Name") or record.typed().group_name


class SecurityGroupReconciler(Reconciler):
    name = "security_groups"
    phases = (2,)

    def reconcile(self) -> None:
        for vpc in self.context.vpcs_in_scope():
            vpc_id = self.context.lookup(
                self.context.resolver.vpc_id(vpc.name, self.context.account_id, self.context.region),
                LookupPolicy.SKIP,
                item=vpc.name,
                reason="VPC not deployed by legacy stack",
            )
            if vpc_id is None:
                continue

            candidates = [
                (inventory, record)
                for inventory, record in self.records(CfnType.SECURITY_GROUP)
                if inventory.physical_id(record.properties.get("VpcId")) == vpc_id
            ]
            self.reconcile_groups(vpc, candidates)

    def reconcile_groups(self, vpc: VpcBaseConfig, candidates: List[Candidate]) -> None:
        """Adopt the configured groups among ``candidates`` and flag the rest with their rules."""
        names = {group.name for group in vpc.security_groups}

        for inventory, record in candidates:
            name = security_group_name(record)
            if name in names:
                continue
            self.cascade.security_group(
                inventory,
                record,
                parameter_name=(
                    self.context.ssm_path(SsmPath.SECURITY_GROUP, vpc.name, name) if name else None
                ),
                identifier=f"{vpc.name}/{name or record.logical_resource_id}",
            )

        for group in vpc.security_groups:
            found = self.context.lookup(
                next(
                    (
                        (inventory, record)
                        for inventory, record in candidates
                        if security_group_name(record) == group.name
                    ),
                    None,
                ),
                LookupPolicy.SKIP,
                item=f"{vpc.name}/{group.name}",
                reason="security group not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, group.name, "Sg"),
                self.context.ssm_path(SsmPath.SECURITY_GROUP, vpc.name, group.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.EC2_SECURITY_GROUP, f"{vpc.name}/{group.name}", record
            )
