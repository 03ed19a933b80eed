"""
Identity Preservation Adapter

Binds a legacy record's logical id to the live node in the template graph it
was loaded from. The inventory and the graph come from the same stack, so a
failure to resolve means the two have drifted apart and is always fatal.
"""

from typing import Dict

from .errors import TemplateDriftError
from .graph import ResourceNode, TemplateGraph
from .inventory import ResourceInventory
from .logging import get_logger
from .models.mapping import LegacyResourceRecord

logger = get_logger(__name__)


class IdentityAdapter:
    """Resolves (scope key, logical id) pairs to live template nodes."""

    def __init__(self, root: TemplateGraph):
        self.root = root
        self._scopes: Dict[str, TemplateGraph] = {graph.scope_key: graph for graph in root.scopes()}

    def scope(self, scope_key: str) -> TemplateGraph:
        graph = self._scopes.get(scope_key)
        if graph is None:
            raise TemplateDriftError(scope_key)
        return graph

    def resolve(self, scope_key: str, logical_id: str) -> ResourceNode:
        node = self.scope(scope_key).get(logical_id)
        if node is None:
            raise TemplateDriftError(scope_key, logical_id)
        return node

    def resolve_nested(self, parent_scope_key: str, nested_logical_id: str) -> TemplateGraph:
        graph = self.scope(parent_scope_key).nested.get(nested_logical_id)
        if graph is None:
            raise TemplateDriftError(parent_scope_key, nested_logical_id, reason="nested stack")
        return graph

    def resolve_record(
        self, inventory: ResourceInventory, record: LegacyResourceRecord
    ) -> ResourceNode:
        """Live node for ``record`` found in ``inventory``."""
        return self.resolve(inventory.stack_key, record.logical_resource_id)
