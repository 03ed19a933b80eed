"""Resolver query logging configurations and their VPC associations."""

from typing import Optional, Tuple

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case, referenced_logical_id
from .base import Reconciler

logger = get_logger(__name__)

Found = Tuple[ResourceInventory, LegacyResourceRecord]


class QueryLoggingReconciler(Reconciler):
    """Adopts the query log association of each VPC and the configuration it points at.

    A VPC with no ``queryLogs`` loses its association; the configuration goes
    with it once no other association refers to it.
    """

    name = "query_logging"
    phases = (2,)

    def reconcile(self) -> None:
        services = self.context.config.network.central_network_services
        resolver = services.route53_resolver if services is not None else None
        query_logs = resolver.query_logs if resolver is not None else None

        for vpc in self.context.vpcs_in_scope():
            vpc_id = self.context.resolver.vpc_id(vpc.name, self.context.account_id, self.context.region)
            if vpc_id is None:
                continue

            association = self.association(vpc_id)
            if association is None:
                continue

            if query_logs is None or query_logs.name not in vpc.query_logs:
                self.flag(vpc.name, association)
                continue

            identifier = f"{vpc.name}/{query_logs.name}"
            inventory, record = association
            self.context.add_mapping_entry(
                AseaResourceType.ROUTE_53_QUERY_LOGGING_ASSOCIATION, identifier, record
            )

            config = self.context.lookup(
                self.config_for(inventory, record),
                LookupPolicy.WARN,
                item=identifier,
                reason="query logging configuration not found",
            )
            if config is None:
                continue

            config_inventory, config_record = config
            node = self.context.node_for(config_inventory, config_record)
            self.context.add_parameter(
                pascal_case("SsmParam", query_logs.name, vpc.name, "QueryLogConfig"),
                self.context.ssm_path(SsmPath.QUERY_LOGS, f"{query_logs.name}-{vpc.name}"),
                node.ref,
                graph=self.context.graph_for(config_inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.ROUTE_53_QUERY_LOGGING, identifier, config_record
            )

    def association(self, vpc_id: str) -> Optional[Found]:
        for inventory, record in self.records(CfnType.QUERY_LOGGING_ASSOCIATION):
            if inventory.physical_id(record.properties.get("ResourceId")) == vpc_id:
                return inventory, record
        return None

    @staticmethod
    def config_for(inventory: ResourceInventory, association: LegacyResourceRecord) -> Optional[Found]:
        logical_id = referenced_logical_id(association.properties.get("ResolverQueryLogConfigId"))
        if logical_id is not None:
            record = inventory.by_logical_id(logical_id)
            if record is not None:
                return inventory, record

        config_id = inventory.physical_id(association.properties.get("ResolverQueryLogConfigId"))
        for record in inventory.by_type(CfnType.QUERY_LOGGING_CONFIG):
            if config_id is not None and record.physical_resource_id == config_id:
                return inventory, record
        return None

    def flag(self, vpc_name: str, association: Found) -> None:
        inventory, record = association
        self.cascade.flag(inventory, record, vpc_name)

        config = self.config_for(inventory, record)
        if config is None:
            return
        config_inventory, config_record = config
        remaining = config_inventory.by_ref("ResolverQueryLogConfigId", config_record.logical_resource_id)
        if not remaining:
            self.cascade.flag(config_inventory, config_record, vpc_name)
