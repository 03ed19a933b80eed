"""VPC route tables."""

from ..logging import get_logger
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

# Records that stop making sense once their route table is gone
ROUTE_TABLE_DEPENDENTS = (CfnType.ROUTE, CfnType.SUBNET_ROUTE_TABLE_ASSOCIATION)


class RouteTableReconciler(Reconciler):
    name = "route_tables"
    phases = (1,)

    def reconcile(self) -> None:
        for vpc, location in self.vpc_locations():
            inventory = location.inventory
            graph = self.context.graph_for(inventory)
            names = {route_table.name for route_table in vpc.route_tables}

            for record in inventory.by_type(CfnType.ROUTE_TABLE):
                name = record.tag("Name")
                if not name or name in names or not location.owns(record):
                    continue
                self.cascade.with_references(
                    inventory,
                    record,
                    ["RouteTableId"],
                    ROUTE_TABLE_DEPENDENTS,
                    parameter_name=self.context.ssm_path(SsmPath.ROUTE_TABLE, vpc.name, name),
                    identifier=f"{vpc.name}/{name}",
                )

            for route_table in vpc.route_tables:
                record = self.context.lookup(
                    self.matcher.by_name_tag(CfnType.ROUTE_TABLE, route_table.name, inventory),
                    LookupPolicy.SKIP,
                    item=f"{vpc.name}/{route_table.name}",
                    reason="route table not deployed by legacy stack",
                )
                if record is None:
                    continue

                node = self.context.node_for(inventory, record)
                self.context.add_parameter(
                    pascal_case("SsmParam", vpc.name, route_table.name, "RouteTableId"),
                    self.context.ssm_path(SsmPath.ROUTE_TABLE, vpc.name, route_table.name),
                    node.ref,
                    graph=graph,
                )
                self.context.add_mapping_entry(
                    AseaResourceType.ROUTE_TABLE, f"{vpc.name}/{route_table.name}", record
                )
