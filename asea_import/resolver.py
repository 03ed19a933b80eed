"""
Cross-Account/Cross-Stack Resolver

Transit gateway routes, associations and propagations refer to resources that
the legacy product deployed in other stacks: route tables live in the phase 0
shared-network stack of the TGW account, VPC attachments in the phase 1 stack
(one nested stack per VPC) of the VPC account, and peering attachments in the
requester's phase 1 shared-network stack. The resolver finds those stacks in
the global mapping table and loads their inventories through the shared,
memoizing loader. Sibling inventories are only ever read.
"""

from typing import Dict, Iterable, List, Optional

from .inventory import InventoryLoader, ResourceInventory
from .logging import get_logger
from .matcher import VpcLocation
from .models.accounts import AccountsConfig
from .models.mapping import LegacyResourceRecord, StackMapping, StackMappings
from .models.network import TransitGatewayPeeringConfig
from .types import CfnType

logger = get_logger(__name__)

SHARED_NETWORK_STACK = "{prefix}-SharedNetwork-Phase{phase}"


class CrossStackResolver:
    """Locates sibling legacy stacks and resolves physical ids across them."""

    def __init__(
        self,
        mappings: StackMappings,
        loader: InventoryLoader,
        accounts: AccountsConfig,
        accelerator_prefix: str = "ASEA",
    ):
        self.mappings = mappings
        self.loader = loader
        self.accounts = accounts
        self.accelerator_prefix = accelerator_prefix

    # Stack lookup

    def find_stacks(
        self,
        account_id: str,
        region: str,
        phase: Optional[int] = None,
        with_nested: bool = False,
    ) -> List[StackMapping]:
        stacks = self.mappings.filter(account_id=account_id, region=region, phase=phase)
        if with_nested:
            stacks = [mapping for mapping in stacks if mapping.nested_stacks]
        return stacks

    def find_stack(
        self,
        account_id: str,
        region: str,
        phase: Optional[int] = None,
        with_nested: bool = False,
    ) -> Optional[StackMapping]:
        return next(iter(self.find_stacks(account_id, region, phase, with_nested)), None)

    def inventory(self, mapping: StackMapping) -> ResourceInventory:
        return self.loader.load(mapping)

    def phase0(self, account_id: str, region: str) -> Optional[ResourceInventory]:
        """Inventory of the shared-network (phase 0) stack of an account and region."""
        mapping = self.find_stack(account_id, region, phase=0)
        if mapping is None:
            logger.info("No phase 0 stack found", account_id=account_id, region=region)
            return None
        return self.inventory(mapping)

    def shared_network(
        self, account_id: str, region: str, phase: int
    ) -> Optional[ResourceInventory]:
        """Inventory of the ``<prefix>-SharedNetwork-Phase<n>`` stack, if it was deployed."""
        stack_name = SHARED_NETWORK_STACK.format(prefix=self.accelerator_prefix, phase=phase)
        mapping = self.mappings.get(f"{account_id}|{region}|{stack_name}")
        if mapping is None:
            logger.warning(
                "Shared network stack not found",
                account_id=account_id,
                region=region,
                stack_name=stack_name,
            )
            return None
        return self.inventory(mapping)

    # VPC and attachment lookups

    def vpc_inventory(self, vpc_name: str, account_id: str, region: str) -> Optional[VpcLocation]:
        """Find the nested stack holding ``vpc_name`` among the phase 1 stacks of an account."""
        for mapping in self.find_stacks(account_id, region, phase=1):
            inventory = self.inventory(mapping)
            found = inventory.find_in_nested(CfnType.VPC, vpc_name)
            if found is not None:
                nested_id, nested, record = found
                return VpcLocation(nested_id, nested, record)
            record = inventory.by_type_and_tag(CfnType.VPC, vpc_name)
            if record is not None:
                return VpcLocation(None, inventory, record)

        logger.info("VPC not found in legacy stacks", vpc=vpc_name, account_id=account_id)
        return None

    def vpc_id(self, vpc_name: str, account_id: str, region: str) -> Optional[str]:
        location = self.vpc_inventory(vpc_name, account_id, region)
        return location.vpc_id if location is not None else None

    def tgw_attachment_id(self, vpc_name: str, account_id: str, region: str) -> Optional[str]:
        """Physical id of the TGW attachment of a VPC.

        The legacy product creates exactly one attachment per VPC, in the
        VPC's nested stack.
        """
        location = self.vpc_inventory(vpc_name, account_id, region)
        if location is None:
            return None
        attachments = location.inventory.by_type(CfnType.TRANSIT_GATEWAY_ATTACHMENT)
        if not attachments:
            return None
        return attachments[0].physical_resource_id

    def tgw_attachment(
        self, account_id: str, region: str, vpc_name: str, attachment_name: str
    ) -> Optional[LegacyResourceRecord]:
        """TGW attachment of a VPC selected by its ``Name`` tag."""
        location = self.vpc_inventory(vpc_name, account_id, region)
        if location is None:
            return None
        return location.inventory.by_type_and_tag(
            CfnType.TRANSIT_GATEWAY_ATTACHMENT, attachment_name
        )

    def route_table_id(self, account_id: str, region: str, name: str) -> Optional[str]:
        """Physical id of a TGW route table found by ``Name`` tag in the phase 0 stack."""
        inventory = self.phase0(account_id, region)
        if inventory is None:
            return None
        record = inventory.by_type_and_tag(CfnType.TRANSIT_GATEWAY_ROUTE_TABLE, name)
        return record.physical_resource_id if record is not None else None

    # Global peering maps

    def peering_route_tables(
        self, peerings: Iterable[TransitGatewayPeeringConfig]
    ) -> Dict[str, str]:
        """Route table name to physical id, from the requester and accepter phase 0 stacks."""
        route_tables: Dict[str, str] = {}
        for peering in peerings:
            for endpoint in (peering.requester, peering.accepter):
                account_id = self.accounts.get_account_id(endpoint.account)
                inventory = self.shared_network(account_id, endpoint.region, 0)
                if inventory is None:
                    continue
                for record in inventory.by_type(CfnType.TRANSIT_GATEWAY_ROUTE_TABLE):
                    name = record.tag("Name")
                    if name and record.physical_resource_id:
                        route_tables[name] = record.physical_resource_id
        return route_tables

    def peering_attachments(
        self, peerings: Iterable[TransitGatewayPeeringConfig], account_id: str
    ) -> Dict[str, str]:
        """Peering name to attachment id, from ``account_id``'s phase 1 stack in the requester region."""
        attachments: Dict[str, str] = {}
        for peering in peerings:
            inventory = self.shared_network(account_id, peering.requester.region, 1)
            if inventory is None:
                continue
            for record in inventory.by_type(CfnType.TGW_PEERING_ATTACHMENT):
                name = record.properties.get("tagValue")
                if name and record.physical_resource_id:
                    attachments[name] = record.physical_resource_id
        return attachments
