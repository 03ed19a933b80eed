"""
Interface endpoints and their private hosted zones.

Each legacy interface endpoint comes with a private hosted zone named for the
service and an alias record set at the zone apex. All three are adopted
together and all three are flagged together once the service leaves the VPC's
configuration. Zones are told apart by the VPC they are associated with, since
every VPC carrying the same service has a zone of the same name; record sets
are looked up inside the matched zone only.
"""

import re
from typing import Iterator, List, Optional, Set, Tuple

from ..hosted_zones import endpoint_hosted_zone_name
from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import VpcBaseConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case, referenced_logical_id
from .base import Reconciler

logger = get_logger(__name__)

Found = Tuple[ResourceInventory, LegacyResourceRecord]


def endpoint_service(service_name: str, region: str) -> Optional[str]:
    """Short service name from an endpoint ``ServiceName``, e.g. ``ssm`` from ``com.amazonaws.<region>.ssm``."""
    match = re.match(rf"^(?:com\.amazonaws|aws\.sagemaker)\.{re.escape(region)}\.(.+)$", service_name or "")
    return match.group(1) if match else None


def zone_vpc_ids(inventory: ResourceInventory, zone: LegacyResourceRecord) -> Set[str]:
    """Physical ids of the VPCs a private hosted zone is associated with."""
    vpc_ids = set()
    for association in zone.properties.get("VPCs") or []:
        if not isinstance(association, dict):
            continue
        vpc_id = inventory.physical_id(association.get("VPCId"))
        if vpc_id:
            vpc_ids.add(vpc_id)
    return vpc_ids


def in_zone(record_set: LegacyResourceRecord, zone: LegacyResourceRecord) -> bool:
    hosted_zone_id = record_set.properties.get("HostedZoneId")
    if referenced_logical_id(hosted_zone_id) == zone.logical_resource_id:
        return True
    return zone.physical_resource_id is not None and hosted_zone_id == zone.physical_resource_id


class VpcEndpointReconciler(Reconciler):
    name = "vpc_endpoints"
    phases = (2,)

    def reconcile(self) -> None:
        if next(self.records(CfnType.VPC_ENDPOINT), None) is None:
            return

        region = self.context.region
        for vpc in self.context.vpcs_in_scope():
            vpc_id = self.context.resolver.vpc_id(vpc.name, self.context.account_id, region)
            if vpc_id is None:
                logger.info("Item excluded", item=vpc.name, reason="VPC not deployed by legacy stack")
                continue

            endpoints = list(self.endpoints_of(vpc_id))
            if not endpoints:
                continue

            services = self.configured_services(vpc)
            for inventory, record in endpoints:
                service = endpoint_service(record.properties.get("ServiceName"), region)
                if service is not None and service not in services:
                    self.flag_endpoint(vpc, vpc_id, service, inventory, record)

            for service in services:
                self.reconcile_endpoint(vpc, vpc_id, service)

    @staticmethod
    def configured_services(vpc: VpcBaseConfig) -> List[str]:
        if vpc.interface_endpoints is None:
            return []
        return [endpoint.service for endpoint in vpc.interface_endpoints.endpoints]

    def find_zone(self, zone_name: str, vpc_id: str) -> Optional[Found]:
        """Private hosted zone named ``zone_name`` and associated with ``vpc_id``."""
        for inventory, record in self.records(CfnType.HOSTED_ZONE):
            if record.properties.get("Name") != zone_name:
                continue
            if vpc_id in zone_vpc_ids(inventory, record):
                return inventory, record
        return None

    @staticmethod
    def find_record_set(zone: Found, zone_name: str) -> Optional[Found]:
        """Apex record set of ``zone``, from the zone's own stack."""
        inventory, zone_record = zone
        for record in inventory.by_type(CfnType.RECORD_SET):
            if record.properties.get("Name") != zone_name:
                continue
            if in_zone(record, zone_record):
                return inventory, record
        return None

    def find_endpoint(self, service: str, vpc_id: str) -> Optional[Found]:
        for inventory in self.inventory.walk():
            record = self.matcher.vpc_endpoint(service, self.context.region, vpc_id, inventory)
            if record is not None:
                return inventory, record
        return None

    def reconcile_endpoint(self, vpc: VpcBaseConfig, vpc_id: str, service: str) -> None:
        identifier = f"{vpc.name}/{service}"
        found = self.context.lookup(
            self.find_endpoint(service, vpc_id),
            LookupPolicy.SKIP,
            item=identifier,
            reason="interface endpoint not deployed by legacy stack",
        )
        if found is None:
            return

        inventory, record = found
        node = self.context.node_for(inventory, record)
        self.context.add_parameter(
            pascal_case("SsmParam", vpc.name, service, "EndpointId"),
            self.context.ssm_path(SsmPath.VPC_ENDPOINT, vpc.name, service),
            node.ref,
            graph=self.context.graph_for(inventory),
        )
        self.context.add_mapping_entry(AseaResourceType.VPC_ENDPOINT, identifier, record)

        zone_name = endpoint_hosted_zone_name(service, self.context.region) + "."
        zone = self.context.lookup(
            self.find_zone(zone_name, vpc_id),
            LookupPolicy.WARN,
            item=identifier,
            reason="private hosted zone not found",
            hosted_zone=zone_name,
        )
        if zone is None:
            return

        zone_inventory, zone_record = zone
        zone_node = self.context.node_for(zone_inventory, zone_record)
        self.context.add_parameter(
            f"SsmParam{pascal_case(vpc.name)}Vpc{pascal_case(service)}EpHostedZone",
            self.context.ssm_path(SsmPath.PHZ_ID, vpc.name, service),
            zone_node.get_att("Id"),
            graph=self.context.graph_for(zone_inventory),
        )
        self.context.add_mapping_entry(AseaResourceType.ROUTE_53_PHZ, identifier, zone_record)

        record_set = self.context.lookup(
            self.find_record_set(zone, zone_name),
            LookupPolicy.WARN,
            item=identifier,
            reason="interface endpoint is managed by legacy stack but no record set found",
        )
        if record_set is None:
            return

        record_set_inventory, record_set_record = record_set
        alias = record_set_record.typed().alias_target
        graph = self.context.graph_for(record_set_inventory)
        if alias is not None and alias.dns_name:
            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, service, "Dns"),
                self.context.ssm_path(SsmPath.ENDPOINT_DNS, vpc.name, service),
                alias.dns_name,
                graph=graph,
            )
        if alias is not None and alias.hosted_zone_id:
            self.context.add_parameter(
                pascal_case("SsmParam", vpc.name, service, "Phz"),
                self.context.ssm_path(SsmPath.ENDPOINT_ZONE_ID, vpc.name, service),
                alias.hosted_zone_id,
                graph=graph,
            )
        self.context.add_mapping_entry(
            AseaResourceType.ROUTE_53_RECORD_SET, identifier, record_set_record
        )

    def flag_endpoint(
        self,
        vpc: VpcBaseConfig,
        vpc_id: str,
        service: str,
        inventory: ResourceInventory,
        record: LegacyResourceRecord,
    ) -> None:
        identifier = f"{vpc.name}/{service}"
        zone_name = endpoint_hosted_zone_name(service, self.context.region) + "."
        related = [
            inventory.ssm_parameter_by_name(
                self.context.ssm_path(SsmPath.VPC_ENDPOINT, vpc.name, service)
            )
        ]
        self.cascade.cascade(inventory, record, related, identifier)
        zone = self.find_zone(zone_name, vpc_id)
        if zone is None:
            return
        self.cascade.flag(zone[0], zone[1], identifier)
        record_set = self.find_record_set(zone, zone_name)
        if record_set is not None:
            self.cascade.flag(record_set[0], record_set[1], identifier)

    def endpoints_of(self, vpc_id: str) -> Iterator[Found]:
        for inventory, record in self.records(CfnType.VPC_ENDPOINT):
            if inventory.physical_id(record.properties.get("VpcId")) == vpc_id:
                yield inventory, record
