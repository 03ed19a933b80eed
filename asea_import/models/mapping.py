"""Pydantic models for legacy resource files and the stack mapping table."""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..errors import MappingError, ResourceFileError
from ..properties import ResourceProperties, typed_properties


class LegacyResourceRecord(BaseModel):
    """One physical resource recorded in a legacy stack's resource file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    logical_resource_id: str
    physical_resource_id: Optional[str] = None
    resource_type: str
    resource_identifier: Optional[str] = None
    resource_metadata: Dict[str, Any] = Field(default_factory=dict)
    is_deleted: bool = False

    @property
    def properties(self) -> Dict[str, Any]:
        """The raw ``Properties`` bag of the template resource."""
        return self.resource_metadata.setdefault("Properties", {})

    def typed(self) -> ResourceProperties:
        """Typed view of the properties for this resource type."""
        return typed_properties(self.resource_type, self.properties)

    def tag(self, name: str = "Name") -> Optional[str]:
        for tag in self.properties.get("Tags") or []:
            if isinstance(tag, dict) and tag.get("Key") == name:
                return tag.get("Value")
        return None

    def to_dict(self, is_deleted: Optional[bool] = None) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        if is_deleted is not None:
            data["isDeleted"] = is_deleted
        return data


class StackMapping(BaseModel):
    """Location of one legacy stack and its resource file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stack_name: str
    account_id: str
    account_key: str
    region: str
    phase: Optional[int] = None
    template_path: Optional[str] = None
    resource_path: str
    count_verified: bool = False
    number_of_resources: int = 0
    number_of_resources_in_template: int = 0
    nested_stacks: Dict[str, "StackMapping"] = Field(default_factory=dict)
    parent_stack: Optional[str] = None
    logical_resource_id: Optional[str] = None
    stack_key: Optional[str] = None

    @field_validator("phase", mode="before")
    @classmethod
    def parse_phase(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            if v.lstrip("-").isdigit():
                return int(v)
            return None
        return v

    @property
    def key(self) -> str:
        return f"{self.account_id}|{self.region}|{self.stack_name}"

    @property
    def is_nested(self) -> bool:
        return self.logical_resource_id is not None


StackMapping.model_rebuild()


class StackMappings:
    """Global table of legacy stacks keyed by ``accountId|region|stackName``."""

    def __init__(self, mappings: Optional[Dict[str, StackMapping]] = None):
        self._mappings: Dict[str, StackMapping] = {}
        for key, mapping in (mappings or {}).items():
            self.add(mapping, key)

    def add(self, mapping: StackMapping, key: Optional[str] = None):
        key = key or mapping.key
        if key != mapping.key:
            raise MappingError("key does not match stack identity", stack_keys=[key, mapping.key])
        self._mappings[key] = mapping

    def get(self, key: str) -> Optional[StackMapping]:
        return self._mappings.get(key)

    def __getitem__(self, key: str) -> StackMapping:
        mapping = self._mappings.get(key)
        if mapping is None:
            raise MappingError("unknown stack", stack_keys=[key])
        return mapping

    def __contains__(self, key: str) -> bool:
        return key in self._mappings

    def __iter__(self) -> Iterator[StackMapping]:
        return iter(self._mappings.values())

    def __len__(self) -> int:
        return len(self._mappings)

    def keys(self) -> List[str]:
        return list(self._mappings.keys())

    def filter(
        self,
        account_id: Optional[str] = None,
        region: Optional[str] = None,
        phase: Optional[int] = None,
    ) -> List[StackMapping]:
        """Return mappings matching every criterion that is not ``None``."""
        return [
            mapping
            for mapping in self._mappings.values()
            if (account_id is None or mapping.account_id == account_id)
            and (region is None or mapping.region == region)
            and (phase is None or mapping.phase == phase)
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StackMappings":
        try:
            mappings = {key: StackMapping.model_validate(value) for key, value in data.items()}
        except ValueError as e:
            raise MappingError(str(e)) from e
        return cls(mappings)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "StackMappings":
        """Load the mapping table from a JSON or YAML document."""
        path = Path(path)
        try:
            with open(path, "r") as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ResourceFileError(str(path), str(e)) from e

        if not isinstance(data, dict):
            raise ResourceFileError(str(path), "mapping table must be an object")

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: mapping.model_dump(by_alias=True, exclude_none=True)
            for key, mapping in self._mappings.items()
        }
