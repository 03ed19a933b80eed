"""Transit gateway peering attachments created by the legacy custom resource."""

from ..logging import get_logger
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)


class TgwPeeringReconciler(Reconciler):
    """Peering attachments live in the requester's phase 1 stack, tagged through ``tagValue``."""

    name = "tgw_peering"
    phases = (1,)

    def reconcile(self) -> None:
        for peering in self.context.config.network.transit_gateway_peering:
            requester = peering.requester
            if requester.region != self.context.region:
                continue
            if self.context.account_id_for(requester.account) != self.context.account_id:
                continue

            found = self.context.lookup(
                next(
                    (
                        (inventory, record)
                        for inventory in self.inventory.walk()
                        for record in [self.matcher.tgw_peering_attachment(peering.name, inventory)]
                        if record is not None
                    ),
                    None,
                ),
                LookupPolicy.SKIP,
                item=peering.name,
                reason="peering attachment not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            tgw_name = requester.transit_gateway_name
            self.context.add_parameter(
                pascal_case("SsmParam", tgw_name, peering.name, "PeeringAttachmentId"),
                self.context.ssm_path(SsmPath.TGW_PEERING, tgw_name, peering.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.TRANSIT_GATEWAY_PEERING, peering.name, record
            )
