"""Route 53 Resolver endpoints of the central network services."""

from typing import List, Optional, Tuple

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..matcher import resolver_endpoint_logical_prefix, resolver_endpoint_name
from ..models.mapping import LegacyResourceRecord
from ..models.network import ResolverEndpointConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

DIRECTIONS = ("INBOUND", "OUTBOUND")


class ResolverEndpointReconciler(Reconciler):
    """Legacy endpoints are named ``<vpc> <Direction> Endpoint``.

    Older resource files omit the ``Name`` property, so the logical id prefix
    derived from the same name is used as a fallback.
    """

    name = "resolver_endpoints"
    phases = (2,)

    def endpoints_in_scope(self) -> List[ResolverEndpointConfig]:
        services = self.context.config.network.central_network_services
        if services is None or services.route53_resolver is None:
            return []
        vpcs = {vpc.name for vpc in self.context.vpcs_in_scope()}
        return [endpoint for endpoint in services.route53_resolver.endpoints if endpoint.vpc in vpcs]

    def reconcile(self) -> None:
        endpoints = self.endpoints_in_scope()
        configured = {(endpoint.vpc, endpoint.type) for endpoint in endpoints}

        for vpc in self.context.vpcs_in_scope():
            for direction in DIRECTIONS:
                if (vpc.name, direction) in configured:
                    continue
                found = self.find(vpc.name, direction)
                if found is not None:
                    self.cascade.flag(found[0], found[1], resolver_endpoint_name(vpc.name, direction))

        for endpoint in endpoints:
            found = self.context.lookup(
                self.find(endpoint.vpc, endpoint.type),
                LookupPolicy.SKIP,
                item=endpoint.name,
                reason="resolver endpoint not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            self.context.add_parameter(
                pascal_case("SsmParam", endpoint.name, "ResolverEndpoint"),
                self.context.ssm_path(SsmPath.RESOLVER_ENDPOINT, endpoint.name),
                node.ref,
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.ROUTE_53_RESOLVER_ENDPOINT, endpoint.name, record
            )

    def find(
        self, vpc_name: str, direction: str
    ) -> Optional[Tuple[ResourceInventory, LegacyResourceRecord]]:
        for inventory in self.inventory.walk():
            record = self.matcher.resolver_endpoint(vpc_name, direction, inventory)
            if record is not None:
                return inventory, record

        prefix = resolver_endpoint_logical_prefix(vpc_name, direction)
        for inventory, record in self.records(CfnType.RESOLVER_ENDPOINT):
            if record.logical_resource_id.startswith(prefix):
                return inventory, record
        return None
