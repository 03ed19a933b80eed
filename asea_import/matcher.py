"""
Resource Matcher

Per-resource-type lookup strategies layered on the inventory. There is no
uniform identity scheme across AWS resource types, so each family matches on
the property the legacy product kept stable:

* IAM roles, users, groups and instance profiles: exact name property
* IAM managed policies: exact name, then substring (legacy names carry suffixes)
* VPCs, subnets, security groups, route tables, TGW route tables: ``Name`` tag
* TGW attachments and peering: tag value combined with the expected name
* Interface endpoints: computed ``ServiceName``
* Resolver endpoints: computed ``Name`` from the VPC name and direction

Matchers never mutate the inventory and return ``None`` (or an empty list)
when nothing matches.
"""

from dataclasses import dataclass
from typing import List, Optional

from .hosted_zones import endpoint_service_name
from .inventory import ResourceInventory
from .models.mapping import LegacyResourceRecord
from .types import CfnType
from .utils.naming import referenced_logical_id

VPC_NAME_SUFFIX = "_vpc"


def vpc_short_name(vpc_name: str) -> str:
    """Strip the legacy ``_vpc`` suffix from a VPC name."""
    if vpc_name.lower().endswith(VPC_NAME_SUFFIX):
        return vpc_name[: -len(VPC_NAME_SUFFIX)]
    return vpc_name


def description_mentions_vpc(description: Optional[str], vpc_name: str) -> bool:
    """True when ``description`` holds the VPC name as a whitespace-delimited token."""
    if not description:
        return False
    tokens = description.split()
    return vpc_short_name(vpc_name) in tokens or vpc_name in tokens


def resolver_endpoint_name(vpc_name: str, direction: str) -> str:
    """Display name of a legacy resolver endpoint, e.g. ``Central Inbound Endpoint``."""
    return f"{vpc_short_name(vpc_name)} {direction.capitalize()} Endpoint"


def resolver_endpoint_logical_prefix(vpc_name: str, direction: str) -> str:
    """Resolver endpoint name without spaces, used to derive logical ids."""
    return resolver_endpoint_name(vpc_name, direction).replace(" ", "")


@dataclass
class VpcLocation:
    """Where a VPC was found: the nested stack inventory and the VPC record."""

    nested_id: Optional[str]
    inventory: ResourceInventory
    record: LegacyResourceRecord

    @property
    def vpc_id(self) -> Optional[str]:
        return self.record.physical_resource_id

    def owns(self, record: LegacyResourceRecord) -> bool:
        """Whether ``record``'s ``VpcId`` points at this VPC, by reference or physical id."""
        value = record.properties.get("VpcId")
        if referenced_logical_id(value) == self.record.logical_resource_id:
            return True
        return self.vpc_id is not None and self.inventory.physical_id(value) == self.vpc_id


class ResourceMatcher:
    """Lookup strategies over one stack inventory (and its nested stacks)."""

    def __init__(self, inventory: ResourceInventory):
        self.inventory = inventory

    def _target(self, inventory: Optional[ResourceInventory]) -> ResourceInventory:
        return inventory if inventory is not None else self.inventory

    def by_name_property(
        self,
        resource_type: str,
        property_name: str,
        value: str,
        inventory: Optional[ResourceInventory] = None,
    ) -> Optional[LegacyResourceRecord]:
        return next(
            (
                record
                for record in self._target(inventory).by_type(resource_type)
                if record.properties.get(property_name) == value
            ),
            None,
        )

    def role(self, name: str) -> Optional[LegacyResourceRecord]:
        return self.by_name_property(CfnType.IAM_ROLE, "RoleName", name)

    def user(self, name: str) -> Optional[LegacyResourceRecord]:
        return self.by_name_property(CfnType.IAM_USER, "UserName", name)

    def group(self, name: str) -> Optional[LegacyResourceRecord]:
        return self.by_name_property(CfnType.IAM_GROUP, "GroupName", name)

    def instance_profile(self, name: str) -> Optional[LegacyResourceRecord]:
        return self.by_name_property(CfnType.IAM_INSTANCE_PROFILE, "InstanceProfileName", name)

    def managed_policy(self, name: str) -> Optional[LegacyResourceRecord]:
        """Exact policy name first, then a name containing ``name``."""
        exact = self.by_name_property(CfnType.IAM_MANAGED_POLICY, "ManagedPolicyName", name)
        if exact is not None:
            return exact
        return next(
            (
                record
                for record in self.inventory.by_type(CfnType.IAM_MANAGED_POLICY)
                if name in (record.properties.get("ManagedPolicyName") or "")
            ),
            None,
        )

    def by_name_tag(
        self,
        resource_type: str,
        name: str,
        inventory: Optional[ResourceInventory] = None,
    ) -> Optional[LegacyResourceRecord]:
        return self._target(inventory).by_type_and_tag(resource_type, name)

    def vpc(self, vpc_name: str) -> Optional[VpcLocation]:
        """Find a VPC by Name tag in the nested stacks, then in the stack itself."""
        found = self.inventory.find_in_nested(CfnType.VPC, vpc_name)
        if found is not None:
            nested_id, inventory, record = found
            return VpcLocation(nested_id, inventory, record)

        record = self.inventory.by_type_and_tag(CfnType.VPC, vpc_name)
        if record is not None:
            return VpcLocation(None, self.inventory, record)
        return None

    def tgw_attachments(
        self, expected_name: str, inventory: Optional[ResourceInventory] = None
    ) -> List[LegacyResourceRecord]:
        """Attachments tagged with ``expected_name``; the caller disambiguates."""
        return [
            record
            for record in self._target(inventory).by_type(CfnType.TRANSIT_GATEWAY_ATTACHMENT)
            if record.tag("Name") == expected_name
        ]

    def tgw_peering_attachment(
        self, peering_name: str, inventory: Optional[ResourceInventory] = None
    ) -> Optional[LegacyResourceRecord]:
        return next(
            (
                record
                for record in self._target(inventory).by_type(CfnType.TGW_PEERING_ATTACHMENT)
                if record.properties.get("tagValue") == peering_name
            ),
            None,
        )

    def vpc_endpoint(
        self,
        service: str,
        region: str,
        vpc_id: Optional[str] = None,
        inventory: Optional[ResourceInventory] = None,
    ) -> Optional[LegacyResourceRecord]:
        service_name = endpoint_service_name(service, region)
        target = self._target(inventory)
        for record in target.by_type(CfnType.VPC_ENDPOINT):
            if record.properties.get("ServiceName") != service_name:
                continue
            if vpc_id is not None and target.physical_id(record.properties.get("VpcId")) != vpc_id:
                continue
            return record
        return None

    def resolver_endpoint(
        self, vpc_name: str, direction: str, inventory: Optional[ResourceInventory] = None
    ) -> Optional[LegacyResourceRecord]:
        return self.by_name_property(
            CfnType.RESOLVER_ENDPOINT,
            "Name",
            resolver_endpoint_name(vpc_name, direction),
            inventory,
        )

    def ssm_parameter(self, name: str) -> Optional[LegacyResourceRecord]:
        return self.inventory.ssm_parameter_by_name(name)
