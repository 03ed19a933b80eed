"""Transit gateways and their route tables, deployed in the phase 0 shared-network stack."""

from typing import List

from ..logging import get_logger
from ..models.network import TransitGatewayConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

ROUTE_TABLE_DEPENDENTS = (
    CfnType.TRANSIT_GATEWAY_ASSOCIATION,
    CfnType.TRANSIT_GATEWAY_PROPAGATION,
    CfnType.TRANSIT_GATEWAY_ROUTE,
)


class TransitGatewayReconciler(Reconciler):
    """Adopts transit gateways by ``Name`` tag and aligns their options.

    Transit gateways themselves are never flagged; only route tables of a
    configured gateway that no longer appear in configuration are.
    """

    name = "transit_gateways"
    phases = (0,)

    def transit_gateways_in_scope(self) -> List[TransitGatewayConfig]:
        return [
            tgw
            for tgw in self.context.config.network.transit_gateways
            if tgw.region == self.context.region
            and self.context.account_id_for(tgw.account) == self.context.account_id
        ]

    def reconcile(self) -> None:
        for tgw in self.transit_gateways_in_scope():
            found = self.context.lookup(
                next(
                    (
                        (inventory, record)
                        for inventory, record in self.records(CfnType.TRANSIT_GATEWAY)
                        if record.tag("Name") == tgw.name
                    ),
                    None,
                ),
                LookupPolicy.SKIP,
                item=tgw.name,
                reason="transit gateway not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            node.set("DnsSupport", tgw.dns_support)
            node.set("VpnEcmpSupport", tgw.vpn_ecmp_support)
            node.set("DefaultRouteTableAssociation", tgw.default_route_table_association)
            node.set("DefaultRouteTablePropagation", tgw.default_route_table_propagation)
            node.set("AutoAcceptSharedAttachments", tgw.auto_accept_sharing_attachments)

            self.context.add_parameter(
                pascal_case("SsmParam", tgw.name, "TransitGatewayId"),
                self.context.ssm_path(SsmPath.TGW, tgw.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(AseaResourceType.TRANSIT_GATEWAY, tgw.name, record)
            self.reconcile_route_tables(tgw, inventory, record)

    def reconcile_route_tables(self, tgw: TransitGatewayConfig, inventory, tgw_record) -> None:
        # Legacy route table names already include the transit gateway name
        names = {route_table.name for route_table in tgw.route_tables}
        graph = self.context.graph_for(inventory)
        owned = inventory.by_ref("TransitGatewayId", tgw_record.logical_resource_id)

        for record in owned:
            if record.resource_type != CfnType.TRANSIT_GATEWAY_ROUTE_TABLE:
                continue
            name = record.tag("Name")
            if not name or name in names:
                continue
            self.cascade.with_references(
                inventory,
                record,
                ["TransitGatewayRouteTableId"],
                ROUTE_TABLE_DEPENDENTS,
                parameter_name=self.context.ssm_path(SsmPath.TGW_ROUTE_TABLE, tgw.name, name),
                identifier=f"{tgw.name}/{name}",
            )

        for route_table in tgw.route_tables:
            record = self.context.lookup(
                inventory.by_type_and_tag(CfnType.TRANSIT_GATEWAY_ROUTE_TABLE, route_table.name),
                LookupPolicy.SKIP,
                item=f"{tgw.name}/{route_table.name}",
                reason="transit gateway route table not deployed by legacy stack",
            )
            if record is None:
                continue

            node = self.context.node_for(inventory, record)
            self.context.add_parameter(
                pascal_case("SsmParam", tgw.name, route_table.name, "TransitGatewayRouteTableId"),
                self.context.ssm_path(SsmPath.TGW_ROUTE_TABLE, tgw.name, route_table.name),
                node.ref,
                graph=graph,
            )
            self.context.add_mapping_entry(
                AseaResourceType.TRANSIT_GATEWAY_ROUTE_TABLE,
                f"{tgw.name}/{route_table.name}",
                record,
            )
