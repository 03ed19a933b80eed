"""VPCs, their additional CIDR blocks and subnets.

The legacy product deploys one nested stack per VPC in the phase 1 stack, so
every child of a VPC is looked up in that VPC's nested inventory.
"""

from typing import Optional, Union

from ..logging import get_logger
from ..matcher import VpcLocation
from ..models.network import VpcBaseConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)


def availability_zone(region: str, value: Optional[Union[str, int]]) -> Optional[str]:
    """Full zone name for a configured zone, which may be only the zone letter."""
    if value is None or isinstance(value, int):
        return None
    if len(value) == 1:
        return f"{region}{value}"
    return value


class VpcReconciler(Reconciler):
    name = "vpcs"
    phases = (1,)

    def reconcile(self) -> None:
        for vpc, location in self.vpc_locations():
            graph = self.context.graph_for(location.inventory)
            node = self.context.node_for(location.inventory, location.record)

            # Index 0 is always the primary CIDR block
            if vpc.cidrs:
                node.set("CidrBlock", vpc.cidrs[0])
            node.set("EnableDnsHostnames", vpc.enable_dns_hostnames)
            node.set("EnableDnsSupport", vpc.enable_dns_support)
            node.set("InstanceTenancy", vpc.instance_tenancy)

            self.reconcile_additional_cidrs(vpc, location)
            self.reconcile_subnets(vpc, location)

            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, "VpcId"),
                self.context.ssm_path(SsmPath.VPC, vpc.name),
                node.ref,
                graph=graph,
            )
            self.context.add_mapping_entry(AseaResourceType.EC2_VPC, vpc.name, location.record)

    def reconcile_additional_cidrs(self, vpc: VpcBaseConfig, location: VpcLocation) -> None:
        """Match additional CIDR blocks by exact CIDR; legacy blocks no longer configured are flagged."""
        inventory = location.inventory
        legacy = [
            record
            for record in inventory.by_type(CfnType.VPC_CIDR_BLOCK)
            if location.owns(record)
        ]
        additional = vpc.cidrs[1:]

        for cidr in additional:
            record = self.context.lookup(
                next((r for r in legacy if r.typed().cidr_block == cidr), None),
                LookupPolicy.SKIP,
                item=f"{vpc.name}/{cidr}",
                reason="additional CIDR not deployed by legacy stack",
            )
            if record is not None:
                self.context.add_mapping_entry(
                    AseaResourceType.EC2_VPC_CIDR, f"{vpc.name}/{cidr}", record
                )

        for record in legacy:
            cidr = record.typed().cidr_block
            if cidr not in additional:
                self.cascade.flag(inventory, record, identifier=f"{vpc.name}/{cidr}")

    def reconcile_subnets(self, vpc: VpcBaseConfig, location: VpcLocation) -> None:
        inventory = location.inventory
        graph = self.context.graph_for(inventory)

        for subnet in vpc.subnets:
            record = self.context.lookup(
                self.matcher.by_name_tag(CfnType.SUBNET, subnet.name, inventory),
                LookupPolicy.SKIP,
                item=f"{vpc.name}/{subnet.name}",
                reason="subnet not deployed by legacy stack",
            )
            if record is None:
                continue

            node = self.context.node_for(inventory, record)
            if subnet.ipv4_cidr_block:
                node.set("CidrBlock", subnet.ipv4_cidr_block)
            zone = availability_zone(self.context.region, subnet.availability_zone)
            if zone:
                node.set("AvailabilityZone", zone)
            node.set("MapPublicIpOnLaunch", subnet.map_public_ip_on_launch)

            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, subnet.name, "SubnetId"),
                self.context.ssm_path(SsmPath.SUBNET, vpc.name, subnet.name),
                node.ref,
                graph=graph,
            )
            self.context.add_mapping_entry(
                AseaResourceType.EC2_SUBNET, f"{vpc.name}/{subnet.name}", record
            )
