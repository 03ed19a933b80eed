"""VPC peering connections, owned by the account of the first (requester) VPC."""

from ..logging import get_logger
from ..models.network import VpcConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)


class VpcPeeringReconciler(Reconciler):
    name = "vpc_peering"
    phases = (2,)

    def reconcile(self) -> None:
        network = self.context.config.network
        peerings = []
        for peering in network.vpc_peering:
            requester = network.vpc(peering.vpcs[0]) if peering.vpcs else None
            if not isinstance(requester, VpcConfig):
                logger.info("Peering requester is not an account VPC", peering=peering.name)
                continue
            if requester.region != self.context.region:
                continue
            if self.context.account_id_for(requester.account) != self.context.account_id:
                continue
            peerings.append(peering)

        names = {peering.name for peering in peerings}
        for inventory, record in self.records(CfnType.VPC_PEERING_CONNECTION):
            name = record.tag("Name")
            if not name or name in names:
                continue
            self.cascade.with_references(
                inventory,
                record,
                ["VpcPeeringConnectionId"],
                (CfnType.ROUTE,),
                parameter_name=self.context.ssm_path(SsmPath.VPC_PEERING, name),
                identifier=name,
            )

        for peering in peerings:
            found = self.context.lookup(
                next(
                    (
                        (inventory, record)
                        for inventory, record in self.records(CfnType.VPC_PEERING_CONNECTION)
                        if record.tag("Name") == peering.name
                    ),
                    None,
                ),
                LookupPolicy.SKIP,
                item=peering.name,
                reason="peering connection not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            self.context.add_parameter(
                pascal_case("SsmParam", peering.name, "VpcPeering"),
                self.context.ssm_path(SsmPath.VPC_PEERING, peering.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.EC2_VPC_PEERING_CONNECTION, peering.name, record
            )
