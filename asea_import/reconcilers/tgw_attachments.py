"""Transit gateway VPC attachments."""

from typing import List, Optional

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import TransitGatewayAttachmentConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

ATTACHMENT_DEPENDENTS = (
    CfnType.TRANSIT_GATEWAY_ASSOCIATION,
    CfnType.TRANSIT_GATEWAY_PROPAGATION,
    CfnType.TRANSIT_GATEWAY_ROUTE,
)


class TgwAttachmentReconciler(Reconciler):
    """Adopts VPC attachments by ``Name`` tag.

    More than one attachment can carry the same name in one account, so the
    attachment whose ``TransitGatewayId`` is the configured transit gateway
    wins when the tag alone is ambiguous.
    """

    name = "tgw_attachments"
    phases = (1,)

    def reconcile(self) -> None:
        for vpc, location in self.vpc_locations():
            inventory = location.inventory
            graph = self.context.graph_for(inventory)
            names = {attachment.name for attachment in vpc.transit_gateway_attachments}

            for record in inventory.by_type(CfnType.TRANSIT_GATEWAY_ATTACHMENT):
                name = record.tag("Name")
                if not name or name in names:
                    continue
                self.cascade.with_references(
                    inventory,
                    record,
                    ["TransitGatewayAttachmentId"],
                    ATTACHMENT_DEPENDENTS,
                    parameter_name=self.context.ssm_path(SsmPath.TGW_ATTACHMENT, vpc.name, name),
                    identifier=f"{vpc.name}/{name}",
                )

            for attachment in vpc.transit_gateway_attachments:
                record = self.context.lookup(
                    self.select(
                        attachment, inventory, self.matcher.tgw_attachments(attachment.name, inventory)
                    ),
                    LookupPolicy.SKIP,
                    item=f"{vpc.name}/{attachment.name}",
                    reason="transit gateway attachment not deployed by legacy stack",
                )
                if record is None:
                    continue

                node = self.context.node_for(inventory, record)
                subnet_refs = []
                for subnet_name in attachment.subnets:
                    subnet = self.matcher.by_name_tag(CfnType.SUBNET, subnet_name, inventory)
                    if subnet is not None:
                        subnet_refs.append(self.context.node_for(inventory, subnet).ref)
                if subnet_refs:
                    node.set("SubnetIds", subnet_refs)

                self.context.add_parameter(
                    pascal_case("SsmParam", vpc.name, attachment.name, "TransitGatewayAttachmentId"),
                    self.context.ssm_path(SsmPath.TGW_ATTACHMENT, vpc.name, attachment.name),
                    node.ref,
                    graph=graph,
                )
                self.context.add_mapping_entry(
                    AseaResourceType.TRANSIT_GATEWAY_ATTACHMENT,
                    f"{vpc.name}/{attachment.name}",
                    record,
                )

    def select(
        self,
        attachment: TransitGatewayAttachmentConfig,
        inventory: ResourceInventory,
        candidates: List[LegacyResourceRecord],
    ) -> Optional[LegacyResourceRecord]:
        if len(candidates) <= 1:
            return next(iter(candidates), None)

        tgw_id = self.transit_gateway_id(attachment)
        for record in candidates:
            transit_gateway_id = inventory.physical_id(record.properties.get("TransitGatewayId"))
            if tgw_id is not None and transit_gateway_id == tgw_id:
                return record
        logger.warning(
            "Ambiguous transit gateway attachment, using first",
            attachment=attachment.name,
            candidates=[record.logical_resource_id for record in candidates],
        )
        return candidates[0]

    def transit_gateway_id(self, attachment: TransitGatewayAttachmentConfig) -> Optional[str]:
        account_id = self.context.account_id_for(attachment.transit_gateway.account)
        inventory = self.context.resolver.phase0(account_id, self.context.region)
        if inventory is None:
            return None
        record = inventory.by_type_and_tag(CfnType.TRANSIT_GATEWAY, attachment.transit_gateway.name)
        return record.physical_resource_id if record is not None else None
