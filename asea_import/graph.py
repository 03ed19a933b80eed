"""
Template Graph Implementation for ASEA Import

This module provides the live, mutable resource graph built from a legacy
stack's CloudFormation template. Reconcilers never create a second copy of a
legacy resource: they edit the node that already carries its logical id, and
the graph is serialized back to a template for the deploy step.
"""

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set, Union

from .errors import DuplicateResourceError, ResourceFileError, TemplateDriftError
from .logging import get_logger
from .models.mapping import LegacyResourceRecord
from .utils.naming import get_att, ref

logger = get_logger(__name__)

# Template keys of a resource other than Type, Properties and DependsOn
_RESOURCE_ATTRIBUTES = (
    "Condition",
    "DeletionPolicy",
    "UpdateReplacePolicy",
    "Metadata",
    "UpdatePolicy",
    "CreationPolicy",
)


@dataclass
class ResourceNode:
    """Represents one resource in a template graph."""

    logical_id: str
    resource_type: str
    properties: Dict[str, Any] = field(default_factory=dict)
    depends_on: Set[str] = field(default_factory=set)
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def ref(self) -> Dict[str, str]:
        return ref(self.logical_id)

    def get_att(self, attribute: str) -> Dict[str, List[str]]:
        return get_att(self.logical_id, attribute)

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def set(self, name: str, value: Any):
        """Set a property; ``None`` removes it."""
        if value is None:
            self.properties.pop(name, None)
        else:
            self.properties[name] = value

    def unset(self, name: str):
        self.properties.pop(name, None)

    def add_dependency(self, logical_id: str):
        self.depends_on.add(logical_id)

    def to_template(self) -> Dict[str, Any]:
        resource: Dict[str, Any] = {"Type": self.resource_type}
        if self.properties:
            resource["Properties"] = self.properties
        if self.depends_on:
            resource["DependsOn"] = sorted(self.depends_on)
        resource.update(self.attributes)
        return resource

    @classmethod
    def from_template(cls, logical_id: str, resource: Dict[str, Any]) -> "ResourceNode":
        depends_on = resource.get("DependsOn") or []
        if isinstance(depends_on, str):
            depends_on = [depends_on]
        return cls(
            logical_id=logical_id,
            resource_type=resource.get("Type", ""),
            properties=copy.deepcopy(resource.get("Properties") or {}),
            depends_on=set(depends_on),
            attributes={k: resource[k] for k in _RESOURCE_ATTRIBUTES if k in resource},
        )


class TemplateGraph:
    """
    Mutable resource graph of one stack scope.

    Nested stacks are child graphs held in ``nested`` under the logical id of
    the nested stack resource. The scope key of a graph equals the stack key of
    the inventory built from the same stack, so a record found in an inventory
    resolves to the graph with the same key.
    """

    def __init__(
        self,
        scope_key: str,
        nodes: Optional[Dict[str, ResourceNode]] = None,
        nested: Optional[Dict[str, "TemplateGraph"]] = None,
        sections: Optional[Dict[str, Any]] = None,
    ):
        self.scope_key = scope_key
        self.nodes: Dict[str, ResourceNode] = dict(nodes or {})
        self.nested: Dict[str, TemplateGraph] = dict(nested or {})
        self.sections: Dict[str, Any] = dict(sections or {})
        self.removed: List[str] = []
        self.added: List[str] = []

    def __contains__(self, logical_id: str) -> bool:
        return logical_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self.nodes.values())

    def get(self, logical_id: str) -> Optional[ResourceNode]:
        return self.nodes.get(logical_id)

    def add(self, node: ResourceNode) -> ResourceNode:
        if node.logical_id in self.nodes:
            raise DuplicateResourceError(self.scope_key, node.logical_id)
        self.nodes[node.logical_id] = node
        self.added.append(node.logical_id)
        logger.debug(
            "Resource added to graph",
            scope_key=self.scope_key,
            logical_id=node.logical_id,
            resource_type=node.resource_type,
        )
        return node

    def add_resource(
        self, logical_id: str, resource_type: str, properties: Optional[Dict[str, Any]] = None
    ) -> ResourceNode:
        return self.add(ResourceNode(logical_id, resource_type, dict(properties or {})))

    def remove(self, logical_id: str) -> bool:
        """Remove a node and every dependency edge pointing at it."""
        if logical_id not in self.nodes:
            return False
        del self.nodes[logical_id]
        for node in self.nodes.values():
            node.depends_on.discard(logical_id)
        self.removed.append(logical_id)
        logger.info("Resource removed from graph", scope_key=self.scope_key, logical_id=logical_id)
        return True

    def add_dependency(self, logical_id: str, depends_on: str):
        for required in (logical_id, depends_on):
            if required not in self.nodes:
                raise TemplateDriftError(self.scope_key, required)
        self.nodes[logical_id].add_dependency(depends_on)

    def scopes(self) -> Iterator["TemplateGraph"]:
        """This graph followed by every nested graph, depth first."""
        yield self
        for child in self.nested.values():
            yield from child.scopes()

    def to_template(self) -> Dict[str, Any]:
        template = dict(self.sections)
        template["Resources"] = {
            logical_id: node.to_template() for logical_id, node in self.nodes.items()
        }
        return template

    @classmethod
    def from_template(
        cls,
        scope_key: str,
        template: Dict[str, Any],
        nested: Optional[Dict[str, "TemplateGraph"]] = None,
    ) -> "TemplateGraph":
        resources = template.get("Resources") or {}
        nodes = {
            logical_id: ResourceNode.from_template(logical_id, resource)
            for logical_id, resource in resources.items()
        }
        sections = {key: value for key, value in template.items() if key != "Resources"}
        return cls(scope_key, nodes=nodes, nested=nested, sections=sections)

    @classmethod
    def from_records(
        cls,
        scope_key: str,
        records: List[LegacyResourceRecord],
        nested: Optional[Dict[str, "TemplateGraph"]] = None,
    ) -> "TemplateGraph":
        """Rebuild a graph from resource metadata when no template file is available."""
        resources = {
            record.logical_resource_id: {
                "Type": record.resource_metadata.get("Type", record.resource_type),
                "Properties": record.properties,
            }
            for record in records
        }
        return cls.from_template(scope_key, {"Resources": resources}, nested=nested)

    @classmethod
    def load(
        cls,
        scope_key: str,
        path: Union[str, Path],
        nested: Optional[Dict[str, "TemplateGraph"]] = None,
    ) -> "TemplateGraph":
        try:
            with open(path, "r") as f:
                template = json.load(f)
        except (OSError, ValueError) as e:
            raise ResourceFileError(str(path), str(e)) from e
        return cls.from_template(scope_key, template, nested=nested)
