"""
Static transit gateway routes.

Route identity is ``{routeTable}-{destination}-{discriminator}`` where the
discriminator depends on the route target:

* VPC attachment: ``{vpcName}-{account}``
* peering attachment: ``{peeringName}``
* blackhole: the literal ``blackhole``

Route table ids resolve against the stack account's phase 0 stack first and
then against the global map built from every peering's requester and accepter
stacks. Attachment ids resolve through the VPC account's phase 1 stack, falling
back to the transit gateway account. A configured attachment that cannot be
located after every fallback is a configuration inconsistency. A route with no
matching legacy record is skipped: legacy inventories are known to miss routes.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import (
    TransitGatewayConfig,
    TransitGatewayRouteEntryConfig,
    TransitGatewayRouteTableConfig,
)
from ..types import AseaResourceType, CfnType, LookupPolicy
from .base import ALL_PHASES, Reconciler

logger = get_logger(__name__)

RouteRecord = Tuple[ResourceInventory, LegacyResourceRecord]


@dataclass
class RouteTarget:
    """Identity of a configured route and the attachment it sends traffic to."""

    route_id: str
    attachment_id: Optional[str] = None


def route_table_key(tgw_name: str, route_table_name: str) -> str:
    return f"{tgw_name}_{route_table_name}"


class TgwRouteReconciler(Reconciler):
    name = "tgw_routes"
    phases = ALL_PHASES

    def __init__(self, context) -> None:
        super().__init__(context)
        self.routes: List[RouteRecord] = []
        self.route_tables: Dict[str, str] = {}
        self.global_route_tables: Dict[str, str] = {}
        self.peering_attachments: Dict[str, str] = {}

    def reconcile(self) -> None:
        self.routes = list(self.records(CfnType.TRANSIT_GATEWAY_ROUTE))
        logger.debug("Transit gateway routes in stack", count=len(self.routes))
        if not self.routes:
            return

        phase0 = self.context.resolver.phase0(self.context.account_id, self.context.region)
        if phase0 is None:
            return

        peerings = self.context.config.network.transit_gateway_peering
        if peerings:
            self.global_route_tables = self.context.resolver.peering_route_tables(peerings)
            self.peering_attachments = self.context.resolver.peering_attachments(
                peerings, self.context.account_id
            )

        for tgw in self.context.config.network.transit_gateways:
            if self.is_local(tgw):
                self.index_route_tables(tgw, phase0)

        matched: Set[str] = set()
        reconciled_tables: Set[str] = set()
        incomplete_tables: Set[str] = set()
        for tgw in self.context.config.network.transit_gateways:
            for route_table in tgw.route_tables:
                logger.info(
                    "Reconciling static routes",
                    transit_gateway=tgw.name,
                    route_table=route_table.name,
                    routes=len(route_table.routes),
                )
                route_table_id = self.route_table_id(tgw, route_table)
                if route_table_id is None:
                    continue
                reconciled_tables.add(route_table_id)
                for route in route_table.routes:
                    if not self.is_reconcilable(route):
                        incomplete_tables.add(route_table_id)
                        continue
                    record = self.reconcile_route(tgw, route_table, route_table_id, route)
                    if record is not None:
                        matched.add(record.logical_resource_id)

        self.flag_removed(matched, reconciled_tables - incomplete_tables)

    def is_local(self, tgw: TransitGatewayConfig) -> bool:
        return (
            tgw.region == self.context.region
            and self.context.account_id_for(tgw.account) == self.context.account_id
        )

    def index_route_tables(self, tgw: TransitGatewayConfig, phase0: ResourceInventory) -> None:
        # Legacy route table names include the transit gateway name, so the tag is unique
        for route_table in tgw.route_tables:
            record = phase0.by_type_and_tag(CfnType.TRANSIT_GATEWAY_ROUTE_TABLE, route_table.name)
            if record is None or not record.physical_resource_id:
                continue
            self.route_tables[route_table_key(tgw.name, route_table.name)] = record.physical_resource_id

    def route_table_id(
        self, tgw: TransitGatewayConfig, route_table: TransitGatewayRouteTableConfig
    ) -> Optional[str]:
        key = route_table_key(tgw.name, route_table.name)
        route_table_id = self.route_tables.get(key) or self.global_route_tables.get(route_table.name)
        if route_table_id is not None:
            return route_table_id

        # Tables of transit gateways in other accounts or regions are only reachable through peering
        policy = LookupPolicy.FAIL if self.is_local(tgw) else LookupPolicy.SKIP
        return self.context.lookup(
            None,
            policy,
            item=key,
            reason="transit gateway route table not found",
            transit_gateway=tgw.name,
        )

    @staticmethod
    def is_reconcilable(route: TransitGatewayRouteEntryConfig) -> bool:
        """Prefix-list destinations and DX gateway or VPN targets are not adopted."""
        if route.destination_prefix_list:
            logger.info("Prefix list route skipped", prefix_list=route.destination_prefix_list)
            return False
        attachment = route.attachment
        if attachment is not None and (
            attachment.direct_connect_gateway_name or attachment.vpn_connection_name
        ):
            logger.info(
                "Route target not adopted",
                destination=route.destination_cidr_block,
                direct_connect_gateway=attachment.direct_connect_gateway_name,
                vpn_connection=attachment.vpn_connection_name,
            )
            return False
        return True

    def route_target(
        self,
        tgw: TransitGatewayConfig,
        route_table: TransitGatewayRouteTableConfig,
        route: TransitGatewayRouteEntryConfig,
    ) -> RouteTarget:
        destination = route.destination_cidr_block
        if route.blackhole:
            return RouteTarget(f"{route_table.name}-{destination}-blackhole")

        attachment = route.attachment
        target = RouteTarget("")
        if attachment is not None and attachment.vpc_name:
            target.route_id = f"{route_table.name}-{destination}-{attachment.vpc_name}-{attachment.account}"
            target.attachment_id = self.vpc_attachment_id(tgw, attachment.vpc_name, attachment.account)
        elif attachment is not None and attachment.transit_gateway_peering_name:
            target.route_id = f"{route_table.name}-{destination}-{attachment.transit_gateway_peering_name}"
            target.attachment_id = self.peering_attachments.get(attachment.transit_gateway_peering_name)

        if attachment is not None:
            self.context.lookup(
                target.attachment_id,
                LookupPolicy.FAIL,
                item=route_table.name,
                reason="transit gateway attachment not found",
                destination=destination,
            )
        return target

    def vpc_attachment_id(
        self, tgw: TransitGatewayConfig, vpc_name: str, account: Optional[str]
    ) -> Optional[str]:
        resolver = self.context.resolver
        if account:
            attachment_id = resolver.tgw_attachment_id(
                vpc_name, self.context.account_id_for(account), tgw.region
            )
            if attachment_id is not None:
                return attachment_id
            logger.info(
                "TGW attachment not found in account, trying transit gateway account",
                vpc=vpc_name,
                account=account,
                transit_gateway_account=tgw.account,
            )
        return resolver.tgw_attachment_id(vpc_name, self.context.account_id_for(tgw.account), tgw.region)

    def reconcile_route(
        self,
        tgw: TransitGatewayConfig,
        route_table: TransitGatewayRouteTableConfig,
        route_table_id: str,
        route: TransitGatewayRouteEntryConfig,
    ) -> Optional[LegacyResourceRecord]:
        target = self.route_target(tgw, route_table, route)
        record = self.find_route(route_table_id, target.attachment_id, route)
        if record is None or not target.route_id:
            logger.info(
                "Transit gateway route not found in legacy stack",
                route_table=route_table.name,
                destination=route.destination_cidr_block,
            )
            return None

        self.context.add_mapping_entry(AseaResourceType.TRANSIT_GATEWAY_ROUTE, target.route_id, record)
        return record

    def find_route(
        self,
        route_table_id: str,
        attachment_id: Optional[str],
        route: TransitGatewayRouteEntryConfig,
    ) -> Optional[LegacyResourceRecord]:
        for inventory, record in self.routes:
            properties = record.properties
            if inventory.physical_id(properties.get("TransitGatewayRouteTableId")) != route_table_id:
                continue
            if properties.get("DestinationCidrBlock") != route.destination_cidr_block:
                continue
            if route.blackhole:
                if properties.get("Blackhole") is True:
                    return record
                continue
            if inventory.physical_id(properties.get("TransitGatewayAttachmentId")) == attachment_id:
                return record
        return None

    def flag_removed(self, matched: Set[str], route_table_ids: Set[str]) -> None:
        """Flag legacy routes of fully reconciled route tables that no configured route claimed."""
        for inventory, record in self.routes:
            if record.logical_resource_id in matched:
                continue
            route_table_id = inventory.physical_id(record.properties.get("TransitGatewayRouteTableId"))
            if route_table_id in route_table_ids:
                self.cascade.flag(inventory, record)
