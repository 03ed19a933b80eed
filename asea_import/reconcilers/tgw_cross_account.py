"""Route table associations and propagations of VPC attachments owned by other accounts.

The legacy product creates these in the phase 2 stack of the transit gateway
account, while the attachments themselves live in the phase 1 stack of each
VPC account. Attachment and route table ids are therefore resolved across
stacks before the local records can be matched.
"""

from typing import Any, Dict, List, Optional

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import TransitGatewayAttachmentConfig, VpcBaseConfig
from ..types import AseaResourceType, CfnType
from ..utils.naming import referenced_logical_id
from .base import Reconciler

logger = get_logger(__name__)


def link_target(inventory: ResourceInventory, value: Any) -> Optional[str]:
    """Physical id a link property points at; a ``Ref`` to a template parameter yields its name."""
    return inventory.physical_id(value) or referenced_logical_id(value)


class TgwCrossAccountReconciler(Reconciler):
    name = "tgw_cross_account"
    phases = (2,)

    def reconcile(self) -> None:
        links = list(self.records(CfnType.TRANSIT_GATEWAY_ASSOCIATION)) + list(
            self.records(CfnType.TRANSIT_GATEWAY_PROPAGATION)
        )
        if not links:
            return

        matched = set()
        resolved_attachments = set()
        for vpc in self.vpcs_attached_here():
            if not vpc.transit_gateway_attachments:
                logger.warning("TGW attachment removed from VPC configuration", vpc=vpc.name)
                continue

            for attachment in vpc.transit_gateway_attachments:
                if attachment.transit_gateway.account != self.context.account_name:
                    continue
                for account_name in self.context.vpc_account_names(vpc):
                    attachment_id = self.attachment_id(vpc, attachment, account_name)
                    if attachment_id is None:
                        logger.info(
                            "Item excluded",
                            item=f"{account_name}/{vpc.name}/{attachment.name}",
                            reason="transit gateway attachment not found",
                        )
                        continue
                    resolved_attachments.add(attachment_id)
                    matched.update(self.reconcile_links(attachment, account_name, attachment_id))

        for inventory, record in links:
            if record.logical_resource_id in matched:
                continue
            attachment_id = link_target(inventory, record.properties.get("TransitGatewayAttachmentId"))
            if attachment_id in resolved_attachments:
                self.cascade.flag(inventory, record)

    def vpcs_attached_here(self) -> List[VpcBaseConfig]:
        """VPCs in this region attached to a transit gateway owned by this account."""
        return [
            vpc
            for vpc in self.context.config.network.all_vpcs
            if vpc.region == self.context.region
            and any(
                attachment.transit_gateway.account == self.context.account_name
                for attachment in vpc.transit_gateway_attachments
            )
        ]

    def attachment_id(
        self, vpc: VpcBaseConfig, attachment: TransitGatewayAttachmentConfig, account_name: str
    ) -> Optional[str]:
        account_id = self.context.account_id_for(account_name)
        record = self.context.resolver.tgw_attachment(account_id, vpc.region, vpc.name, attachment.name)
        if record is not None and record.physical_resource_id:
            return record.physical_resource_id
        return self.context.resolver.tgw_attachment_id(vpc.name, account_id, vpc.region)

    def reconcile_links(
        self, attachment: TransitGatewayAttachmentConfig, account_name: str, attachment_id: str
    ) -> List[str]:
        matched = []
        kinds = (
            (
                CfnType.TRANSIT_GATEWAY_ASSOCIATION,
                attachment.route_table_associations,
                AseaResourceType.TRANSIT_GATEWAY_ASSOCIATION,
            ),
            (
                CfnType.TRANSIT_GATEWAY_PROPAGATION,
                attachment.route_table_propagations,
                AseaResourceType.TRANSIT_GATEWAY_PROPAGATION,
            ),
        )
        route_table_ids: Dict[str, Optional[str]] = {}

        for resource_type, route_tables, mapping_type in kinds:
            for route_table in route_tables:
                if route_table not in route_table_ids:
                    route_table_ids[route_table] = self.context.resolver.route_table_id(
                        self.context.account_id, self.context.region, route_table
                    )
                route_table_id = route_table_ids[route_table]
                if route_table_id is None:
                    logger.info("Transit gateway route table not found", route_table=route_table)
                    continue

                record = self.find_link(resource_type, attachment_id, route_table_id)
                if record is None:
                    continue
                matched.append(record.logical_resource_id)
                self.context.add_mapping_entry(
                    mapping_type,
                    f"{account_name}/{attachment.transit_gateway.name}/{attachment.name}/{route_table}",
                    record,
                )
        return matched

    def find_link(
        self, resource_type: str, attachment_id: str, route_table_id: str
    ) -> Optional[LegacyResourceRecord]:
        for inventory, record in self.records(resource_type):
            properties = record.properties
            if (
                link_target(inventory, properties.get("TransitGatewayAttachmentId")) == attachment_id
                and link_target(inventory, properties.get("TransitGatewayRouteTableId")) == route_table_id
            ):
                return record
        return None
