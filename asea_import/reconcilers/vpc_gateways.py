"""Internet gateways and virtual private gateways attached to VPCs."""

from typing import Optional

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..matcher import VpcLocation
from ..models.mapping import LegacyResourceRecord
from ..types import AseaResourceType, CfnType, SsmPath
from ..utils.naming import pascal_case, referenced_logical_id
from .base import Reconciler

logger = get_logger(__name__)


def attached_gateway(
    location: VpcLocation, resource_type: str, property_name: str
) -> Optional[LegacyResourceRecord]:
    """Gateway of ``resource_type`` attached to the VPC through a gateway attachment.

    Falls back to the only gateway of that type in the VPC's nested stack.
    """
    inventory = location.inventory
    for attachment in inventory.by_type(CfnType.VPC_GATEWAY_ATTACHMENT):
        if not location.owns(attachment):
            continue
        logical_id = referenced_logical_id(attachment.properties.get(property_name))
        record = inventory.by_logical_id(logical_id) if logical_id else None
        if record is not None and record.resource_type == resource_type:
            return record

    if location.nested_id is not None:
        gateways = inventory.by_type(resource_type)
        if len(gateways) == 1:
            return gateways[0]
    return None


class VpcGatewayReconciler(Reconciler):
    name = "vpc_gateways"
    phases = (1,)

    def reconcile(self) -> None:
        for vpc, location in self.vpc_locations():
            inventory = location.inventory

            igw = attached_gateway(location, CfnType.INTERNET_GATEWAY, "InternetGatewayId")
            if igw is not None:
                self.reconcile_gateway(
                    inventory,
                    igw,
                    configured=vpc.internet_gateway,
                    logical_id=pascal_case("SsmParam", vpc.name, "InternetGatewayId"),
                    parameter_name=self.context.ssm_path(SsmPath.IGW, vpc.name),
                    resource_type=AseaResourceType.EC2_VPC_IGW,
                    identifier=vpc.name,
                    reference_property="InternetGatewayId",
                )
            elif vpc.internet_gateway:
                logger.info("Internet gateway not deployed by legacy stack", vpc=vpc.name)

            vgw = attached_gateway(location, CfnType.VPN_GATEWAY, "VpnGatewayId")
            if vgw is not None:
                if vpc.virtual_private_gateway is not None:
                    node = self.context.node_for(inventory, vgw)
                    node.set("AmazonSideAsn", vpc.virtual_private_gateway.asn)
                self.reconcile_gateway(
                    inventory,
                    vgw,
                    configured=vpc.virtual_private_gateway is not None,
                    logical_id=pascal_case("SsmParam", vpc.name, "VirtualPrivateGatewayId"),
                    parameter_name=self.context.ssm_path(SsmPath.VPN_GW, vpc.name),
                    resource_type=AseaResourceType.EC2_VPC_VPN_GW,
                    identifier=vpc.name,
                    reference_property="VpnGatewayId",
                )
            elif vpc.virtual_private_gateway is not None:
                logger.info("Virtual private gateway not deployed by legacy stack", vpc=vpc.name)

    def reconcile_gateway(
        self,
        inventory: ResourceInventory,
        record: LegacyResourceRecord,
        configured: bool,
        logical_id: str,
        parameter_name: str,
        resource_type: AseaResourceType,
        identifier: str,
        reference_property: str,
    ) -> None:
        if not configured:
            # Routes target gateways through GatewayId
            self.cascade.with_references(
                inventory,
                record,
                [reference_property, "GatewayId"],
                (CfnType.VPC_GATEWAY_ATTACHMENT, CfnType.ROUTE),
                parameter_name=parameter_name,
                identifier=identifier,
            )
            return

        node = self.context.node_for(inventory, record)
        self.context.add_parameter(
            logical_id, parameter_name, node.ref, graph=self.context.graph_for(inventory)
        )
        self.context.add_mapping_entry(resource_type, identifier, record)
