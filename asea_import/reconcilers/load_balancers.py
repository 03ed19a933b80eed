"""Application load balancers and target groups deployed in the phase 3 stack."""

from typing import Optional, Tuple

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import VpcBaseConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

Found = Tuple[ResourceInventory, LegacyResourceRecord]


class LoadBalancerReconciler(Reconciler):
    name = "load_balancers"
    phases = (3,)

    def find(self, resource_type: str, name: str) -> Optional[Found]:
        return next(
            (
                (inventory, record)
                for inventory, record in self.records(resource_type)
                if record.properties.get("Name") == name
            ),
            None,
        )

    def reconcile(self) -> None:
        vpcs = self.context.vpcs_in_scope()
        configured = {
            alb.name
            for vpc in vpcs
            if vpc.load_balancers is not None
            for alb in vpc.load_balancers.application_load_balancers
        }

        for inventory, record in self.records(CfnType.LOAD_BALANCER):
            name = record.typed().name
            if record.typed().type not in (None, "application"):
                continue
            if name and name not in configured:
                self.cascade.with_references(
                    inventory, record, ["LoadBalancerArn"], (CfnType.LISTENER,), identifier=name
                )

        for vpc in vpcs:
            self.reconcile_load_balancers(vpc)
            self.reconcile_target_groups(vpc)

    def reconcile_load_balancers(self, vpc: VpcBaseConfig) -> None:
        if vpc.load_balancers is None:
            return

        for alb in vpc.load_balancers.application_load_balancers:
            identifier = f"{vpc.name}/{alb.name}"
            found = self.context.lookup(
                self.find(CfnType.LOAD_BALANCER, alb.name),
                LookupPolicy.SKIP,
                item=identifier,
                reason="load balancer not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, alb.name, "Alb"),
                self.context.ssm_path(SsmPath.ALB, vpc.name, alb.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.APPLICATION_LOAD_BALANCER, identifier, record
            )

    def reconcile_target_groups(self, vpc: VpcBaseConfig) -> None:
        for target_group in vpc.target_groups:
            identifier = f"{vpc.name}/{target_group.name}"
            found = self.context.lookup(
                self.find(CfnType.TARGET_GROUP, target_group.name),
                LookupPolicy.SKIP,
                item=identifier,
                reason="target group not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, target_group.name, "TargetGroup"),
                self.context.ssm_path(SsmPath.TARGET_GROUP, vpc.name, target_group.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(AseaResourceType.EC2_TARGET_GROUP, identifier, record)
