"""NAT gateways."""

from ..logging import get_logger
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)


class NatGatewayReconciler(Reconciler):
    name = "nat_gateways"
    phases = (1,)

    def reconcile(self) -> None:
        for vpc, location in self.vpc_locations():
            inventory = location.inventory
            graph = self.context.graph_for(inventory)
            names = {nat_gateway.name for nat_gateway in vpc.nat_gateways}

            for record in inventory.by_type(CfnType.NAT_GATEWAY):
                name = record.tag("Name")
                if not name or name in names:
                    continue
                self.cascade.with_references(
                    inventory,
                    record,
                    ["NatGatewayId"],
                    (CfnType.ROUTE,),
                    parameter_name=self.context.ssm_path(SsmPath.NAT_GW, vpc.name, name),
                    identifier=f"{vpc.name}/{name}",
                )

            for nat_gateway in vpc.nat_gateways:
                record = self.context.lookup(
                    self.matcher.by_name_tag(CfnType.NAT_GATEWAY, nat_gateway.name, inventory),
                    LookupPolicy.SKIP,
                    item=f"{vpc.name}/{nat_gateway.name}",
                    reason="NAT gateway not deployed by legacy stack",
                )
                if record is None:
                    continue

                node = self.context.node_for(inventory, record)
                subnet = self.matcher.by_name_tag(CfnType.SUBNET, nat_gateway.subnet, inventory)
                if subnet is not None:
                    node.set("SubnetId", self.context.node_for(inventory, subnet).ref)
                else:
                    logger.warning(
                        "NAT gateway subnet not found",
                        vpc=vpc.name,
                        nat_gateway=nat_gateway.name,
                        subnet=nat_gateway.subnet,
                    )

                self.context.add_parameter(
                    pascal_case("SsmParam", vpc.name, nat_gateway.name, "NatGatewayId"),
                    self.context.ssm_path(SsmPath.NAT_GW, vpc.name, nat_gateway.name),
                    node.ref,
                    graph=graph,
                )
                self.context.add_mapping_entry(
                    AseaResourceType.NAT_GATEWAY, f"{vpc.name}/{nat_gateway.name}", record
                )
