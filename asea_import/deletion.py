"""
Deletion-Cascade Calculator

When a reconciler finds a legacy resource with no configuration counterpart it
asks the cascade to flag that resource together with the artifacts derived
from it. Which artifacts are related is decided by the reconciler; this module
supplies the recurring patterns:

* two-hop: primary resource and the parameter emitted for it
* instance profile: role, its parameter and its instance profile
* three-hop: security group, its parameter and every rule referencing it
* references: primary resource and the records pointing at it through a property

The caller's identifier names the primary resource. Related records carry
their own: the parameter name for SSM parameters, otherwise the physical id.
Flagging is idempotent. A record that is already flagged produces no entry.
"""

from typing import Iterable, List, Optional, Sequence

from .inventory import ResourceInventory
from .logging import get_logger
from .models.mapping import LegacyResourceRecord
from .types import CfnType, DeletionFlagEntry

logger = get_logger(__name__)

SECURITY_GROUP_RULE_TYPES = (CfnType.SECURITY_GROUP_INGRESS, CfnType.SECURITY_GROUP_EGRESS)
SECURITY_GROUP_REFERENCE_PROPERTIES = (
    "GroupId",
    "SourceSecurityGroupId",
    "DestinationSecurityGroupId",
)


def related_identifier(record: LegacyResourceRecord) -> Optional[str]:
    if record.resource_type == CfnType.SSM_PARAMETER:
        return record.properties.get("Name")
    return None


class DeletionCascade:
    """Flags legacy records for deletion and keeps the entries produced this run."""

    def __init__(self):
        self.entries: List[DeletionFlagEntry] = []

    def flag(
        self,
        inventory: ResourceInventory,
        record: LegacyResourceRecord,
        identifier: Optional[str] = None,
    ) -> Optional[DeletionFlagEntry]:
        """Flag one record; returns the new entry, or ``None`` if it was already flagged."""
        if not inventory.mark_deleted(record.logical_resource_id, identifier):
            return None

        entry = inventory.deletions.get(record.logical_resource_id)
        self.entries.append(entry)
        logger.info(
            "Resource flagged for deletion",
            stack_key=inventory.stack_key,
            resource_type=record.resource_type,
            logical_id=record.logical_resource_id,
            identifier=entry.identifier,
        )
        return entry

    def cascade(
        self,
        inventory: ResourceInventory,
        primary: LegacyResourceRecord,
        related: Iterable[Optional[LegacyResourceRecord]],
        identifier: Optional[str] = None,
    ) -> List[DeletionFlagEntry]:
        """Flag ``primary`` and every related record that exists."""
        flagged = []
        entry = self.flag(inventory, primary, identifier)
        if entry is not None:
            flagged.append(entry)
        for record in related:
            if record is None:
                continue
            entry = self.flag(inventory, record, related_identifier(record))
            if entry is not None:
                flagged.append(entry)
        return flagged

    def with_parameter(
        self,
        inventory: ResourceInventory,
        primary: LegacyResourceRecord,
        parameter_name: str,
        identifier: Optional[str] = None,
    ) -> List[DeletionFlagEntry]:
        """Flag a resource and the parameter emitted for it."""
        return self.cascade(
            inventory, primary, [inventory.ssm_parameter_by_name(parameter_name)], identifier
        )

    def with_instance_profile(
        self,
        inventory: ResourceInventory,
        role: LegacyResourceRecord,
        parameter_name: str,
        instance_profile_name: str,
        identifier: Optional[str] = None,
    ) -> List[DeletionFlagEntry]:
        """Flag a role, its parameter and its instance profile."""
        instance_profile = next(
            (
                record
                for record in inventory.by_type(CfnType.IAM_INSTANCE_PROFILE)
                if record.properties.get("InstanceProfileName") == instance_profile_name
            ),
            None,
        )
        return self.cascade(
            inventory,
            role,
            [inventory.ssm_parameter_by_name(parameter_name), instance_profile],
            identifier,
        )

    def security_group(
        self,
        inventory: ResourceInventory,
        group: LegacyResourceRecord,
        parameter_name: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> List[DeletionFlagEntry]:
        """Flag a security group, its parameter and every rule that references it."""
        related: List[Optional[LegacyResourceRecord]] = []
        if parameter_name:
            related.append(inventory.ssm_parameter_by_name(parameter_name))
        related.extend(
            self.references(
                inventory,
                group,
                SECURITY_GROUP_REFERENCE_PROPERTIES,
                SECURITY_GROUP_RULE_TYPES,
            )
        )
        return self.cascade(inventory, group, related, identifier)

    def with_references(
        self,
        inventory: ResourceInventory,
        primary: LegacyResourceRecord,
        properties: Sequence[str],
        resource_types: Optional[Sequence[str]] = None,
        parameter_name: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> List[DeletionFlagEntry]:
        """Flag a resource, its parameter and records referring to it through ``properties``."""
        related: List[Optional[LegacyResourceRecord]] = []
        if parameter_name:
            related.append(inventory.ssm_parameter_by_name(parameter_name))
        related.extend(self.references(inventory, primary, properties, resource_types))
        return self.cascade(inventory, primary, related, identifier)

    @staticmethod
    def references(
        inventory: ResourceInventory,
        primary: LegacyResourceRecord,
        properties: Sequence[str],
        resource_types: Optional[Sequence[str]] = None,
    ) -> List[LegacyResourceRecord]:
        """Records referring to ``primary`` through any of ``properties``."""
        seen = set()
        matches = []
        for name in properties:
            for record in inventory.by_ref(name, primary.logical_resource_id):
                if resource_types and record.resource_type not in resource_types:
                    continue
                if record.logical_resource_id not in seen:
                    seen.add(record.logical_resource_id)
                    matches.append(record)
        return matches
