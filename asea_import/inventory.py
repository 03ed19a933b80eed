"""
Resource Inventory Store for ASEA Import

This module loads the resource file written for every legacy stack and exposes
the lookups reconcilers use to find legacy resources by type, tag, property,
reference and logical id.

Deletion is never applied to a record in place. Each inventory owns an
append-only ``DeletionLog`` keyed by logical id; a record is visible when its
logical id is absent from the log. Records that were already flagged in a
previous run seed the log when the file is loaded.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

from .errors import ResourceFileError
from .logging import get_logger
from .models.mapping import LegacyResourceRecord, StackMapping
from .types import CfnType, DeletionFlagEntry
from .utils.naming import referenced_logical_id

logger = get_logger(__name__)


class DeletionLog:
    """Append-only log of deletion flags for one inventory."""

    def __init__(self):
        self._entries: List[DeletionFlagEntry] = []
        self._by_logical_id: Dict[str, DeletionFlagEntry] = {}
        self._seeded: Set[str] = set()

    def record(self, entry: DeletionFlagEntry, seeded: bool = False) -> bool:
        """Append ``entry``; returns ``False`` when the logical id is already flagged."""
        if entry.logical_id in self._by_logical_id:
            return False
        self._entries.append(entry)
        self._by_logical_id[entry.logical_id] = entry
        if seeded:
            self._seeded.add(entry.logical_id)
        return True

    def __contains__(self, logical_id: str) -> bool:
        return logical_id in self._by_logical_id

    def get(self, logical_id: str) -> Optional[DeletionFlagEntry]:
        return self._by_logical_id.get(logical_id)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[DeletionFlagEntry]:
        return list(self._entries)

    @property
    def new_entries(self) -> List[DeletionFlagEntry]:
        """Entries flagged during this run, excluding those loaded from disk."""
        return [entry for entry in self._entries if entry.logical_id not in self._seeded]


class ResourceInventory:
    """
    Queryable record set of one legacy stack.

    Nested stacks get their own inventory (logical ids are only unique per
    stack) and are reachable through ``nested`` keyed by the logical id of the
    nested stack resource in the parent template.
    """

    def __init__(
        self,
        stack_key: str,
        records: Sequence[LegacyResourceRecord],
        nested: Optional[Dict[str, "ResourceInventory"]] = None,
        mapping: Optional[StackMapping] = None,
    ):
        self.stack_key = stack_key
        self.mapping = mapping
        self.nested: Dict[str, ResourceInventory] = dict(nested or {})
        self.deletions = DeletionLog()
        self._records: List[LegacyResourceRecord] = []
        self._by_logical_id: Dict[str, LegacyResourceRecord] = {}

        for record in records:
            if record.logical_resource_id in self._by_logical_id:
                logger.warning(
                    "Duplicate logical id in resource file, keeping first",
                    stack_key=stack_key,
                    logical_id=record.logical_resource_id,
                )
                continue
            self._records.append(record)
            self._by_logical_id[record.logical_resource_id] = record
            if record.is_deleted:
                self.deletions.record(self._flag_entry(record), seeded=True)

    def _flag_entry(self, record: LegacyResourceRecord, identifier: Optional[str] = None):
        return DeletionFlagEntry(
            resource_type=record.resource_type,
            identifier=identifier or record.physical_resource_id or record.logical_resource_id,
            logical_id=record.logical_resource_id,
            stack_key=self.stack_key,
        )

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LegacyResourceRecord]:
        return iter(self.visible())

    def is_visible(self, record: LegacyResourceRecord) -> bool:
        return record.logical_resource_id not in self.deletions

    def is_deleted(self, logical_id: str) -> bool:
        return logical_id in self.deletions

    def walk(self) -> Iterator["ResourceInventory"]:
        """This inventory followed by every nested inventory, depth first."""
        yield self
        for nested in self.nested.values():
            yield from nested.walk()

    def visible(self) -> List[LegacyResourceRecord]:
        return [record for record in self._records if self.is_visible(record)]

    def all_records(self) -> List[LegacyResourceRecord]:
        """Every record, including those flagged for deletion."""
        return list(self._records)

    def _candidates(self, include_deleted: bool) -> List[LegacyResourceRecord]:
        return self.all_records() if include_deleted else self.visible()

    # Lookups

    def by_type(self, resource_type: str) -> List[LegacyResourceRecord]:
        return [record for record in self.visible() if record.resource_type == resource_type]

    def by_tag(self, value: str, name: str = "Name") -> Optional[LegacyResourceRecord]:
        return next(iter(self.all_by_tag(value, name)), None)

    def all_by_tag(self, value: str, name: str = "Name") -> List[LegacyResourceRecord]:
        return [record for record in self.visible() if record.tag(name) == value]

    def by_type_and_tag(
        self, resource_type: str, value: str, name: str = "Name"
    ) -> Optional[LegacyResourceRecord]:
        return next(
            (record for record in self.by_type(resource_type) if record.tag(name) == value),
            None,
        )

    def by_property(
        self, name: str, value: Any, partial: bool = False, include_deleted: bool = False
    ) -> Optional[LegacyResourceRecord]:
        """First record whose property ``name`` equals (or, if ``partial``, contains) ``value``."""
        for record in self._candidates(include_deleted):
            current = record.properties.get(name)
            if current is None:
                continue
            if partial:
                if isinstance(current, str) and isinstance(value, str) and value in current:
                    return record
            elif current == value:
                return record
        return None

    def by_property_including_deleted(self, name: str, value: Any) -> Optional[LegacyResourceRecord]:
        return self.by_property(name, value, include_deleted=True)

    def by_ref(
        self, name: str, logical_id: str, include_deleted: bool = False
    ) -> List[LegacyResourceRecord]:
        """Records whose property ``name`` refers to ``logical_id`` through an intrinsic."""
        matches = []
        for record in self._candidates(include_deleted):
            value = record.properties.get(name)
            values = value if isinstance(value, list) else [value]
            if any(referenced_logical_id(item) == logical_id for item in values):
                matches.append(record)
        return matches

    def by_ref_including_deleted(self, name: str, logical_id: str) -> List[LegacyResourceRecord]:
        return self.by_ref(name, logical_id, include_deleted=True)

    def by_logical_id(
        self, logical_id: str, include_deleted: bool = False
    ) -> Optional[LegacyResourceRecord]:
        record = self._by_logical_id.get(logical_id)
        if record is None or (not include_deleted and not self.is_visible(record)):
            return None
        return record

    def by_logical_id_including_deleted(self, logical_id: str) -> Optional[LegacyResourceRecord]:
        return self.by_logical_id(logical_id, include_deleted=True)

    def by_identifier(self, resource_identifier: str) -> Optional[LegacyResourceRecord]:
        return next(
            (r for r in self.visible() if r.resource_identifier == resource_identifier), None
        )

    def ssm_parameter_by_name(self, name: str) -> Optional[LegacyResourceRecord]:
        return next(
            (
                record
                for record in self.by_type(CfnType.SSM_PARAMETER)
                if record.properties.get("Name") == name
            ),
            None,
        )

    def physical_id(self, value: Any) -> Optional[str]:
        """Physical id behind a property value that is a literal or a ``Ref`` to a local record."""
        if isinstance(value, str):
            return value
        logical_id = referenced_logical_id(value)
        if logical_id is None:
            return None
        record = self._by_logical_id.get(logical_id)
        return record.physical_resource_id if record is not None else None

    def find_in_nested(
        self, resource_type: str, value: str, name: str = "Name"
    ) -> Optional[Tuple[str, "ResourceInventory", LegacyResourceRecord]]:
        """Search nested stacks for a tagged resource; returns (nested id, inventory, record)."""
        for nested_id, inventory in self.nested.items():
            record = inventory.by_type_and_tag(resource_type, value, name)
            if record is not None:
                return nested_id, inventory, record
        return None

    # Mutations

    def mark_deleted(self, logical_id: str, identifier: Optional[str] = None) -> bool:
        """Flag a record for deletion; returns ``True`` only when newly flagged."""
        record = self._by_logical_id.get(logical_id)
        if record is None:
            logger.error(
                "Resource not found for deletion", stack_key=self.stack_key, logical_id=logical_id
            )
            return False
        return self.deletions.record(self._flag_entry(record, identifier))

    def set_properties(self, logical_id: str, values: Sequence[Tuple[str, Any]]):
        """Overwrite properties of a record in place."""
        record = self._by_logical_id.get(logical_id)
        if record is None:
            logger.error(
                "Resource not found for property update",
                stack_key=self.stack_key,
                logical_id=logical_id,
            )
            return
        for name, value in values:
            record.properties[name] = value

    def to_records(self) -> List[Dict[str, Any]]:
        """Serialize records with deletion flags folded into ``isDeleted``."""
        return [
            record.to_dict(is_deleted=self.is_deleted(record.logical_resource_id))
            for record in self._records
        ]


class InventoryLoader:
    """Reads resource files under ``asset_dir`` and memoizes inventories per stack key."""

    def __init__(self, asset_dir: Union[str, Path]):
        self.asset_dir = Path(asset_dir)
        self._cache: Dict[str, ResourceInventory] = {}

    def __contains__(self, stack_key: str) -> bool:
        return stack_key in self._cache

    @property
    def loaded(self) -> Dict[str, ResourceInventory]:
        return dict(self._cache)

    def load(self, mapping: StackMapping) -> ResourceInventory:
        cached = self._cache.get(mapping.key)
        if cached is not None:
            return cached

        inventory = self._build(mapping)
        self._cache[mapping.key] = inventory
        logger.debug(
            "Loaded stack inventory",
            stack_key=mapping.key,
            resources=len(inventory),
            nested_stacks=len(inventory.nested),
        )
        return inventory

    def _build(self, mapping: StackMapping) -> ResourceInventory:
        nested = {}
        for name, nested_mapping in mapping.nested_stacks.items():
            nested[nested_mapping.logical_resource_id or name] = self._build(nested_mapping)
        records = self.read_records(self.asset_dir / mapping.resource_path)
        return ResourceInventory(mapping.key, records, nested=nested, mapping=mapping)

    @staticmethod
    def read_records(path: Path) -> List[LegacyResourceRecord]:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ResourceFileError(str(path), str(e)) from e

        if not isinstance(data, list):
            raise ResourceFileError(str(path), "resource file must contain a list of records")

        try:
            return [LegacyResourceRecord.model_validate(item) for item in data]
        except ValueError as e:
            raise ResourceFileError(str(path), str(e)) from e
