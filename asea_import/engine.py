"""
Import Engine

Drives one reconciliation run: loads every legacy stack through the shared
inventory loader, builds its live template graph, runs each reconciler against
it and flushes the queued parameters. Stacks are processed one at a time in
phase order, nested stacks together with their parent.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Type, Union

from .config import ImportConfig, get_config
from .context import ImportContext
from .deletion import DeletionCascade
from .graph import TemplateGraph
from .inventory import InventoryLoader, ResourceInventory
from .logging import get_logger, stack_context, trace_operation
from .models import AcceleratorConfig
from .models.mapping import StackMapping, StackMappings
from .reconcilers import ALL_RECONCILERS, Reconciler
from .resolver import CrossStackResolver
from .types import DeletionFlagEntry, ParameterEmissionRequest, ResourceMappingEntry

logger = get_logger(__name__)

RESOURCE_MAPPING_FILE = "asea-resource-mapping.json"
DELETIONS_FILE = "asea-deletions.json"


def _phase_order(mapping: StackMapping):
    # Stacks without a phase run last
    return (mapping.phase is None, mapping.phase if mapping.phase is not None else 0, mapping.key)


@dataclass
class ImportResult:
    """Everything a run produced, ready for the external persistence step."""

    entries: List[ResourceMappingEntry] = field(default_factory=list)
    deletions: List[DeletionFlagEntry] = field(default_factory=list)
    parameters: List[ParameterEmissionRequest] = field(default_factory=list)
    graphs: Dict[str, TemplateGraph] = field(default_factory=dict)
    inventories: Dict[str, ResourceInventory] = field(default_factory=dict)

    @property
    def templates(self) -> Dict[str, dict]:
        """Serialized template of every reconciled scope, keyed by stack key."""
        return {
            graph.scope_key: graph.to_template()
            for root in self.graphs.values()
            for graph in root.scopes()
        }

    def summary(self) -> Dict[str, int]:
        return {
            "stacks": len(self.graphs),
            "mapped_resources": len(self.entries),
            "deleted_resources": len(self.deletions),
            "parameters": len(self.parameters),
        }

    def save(self, output_dir: Union[str, Path]) -> Path:
        """Write mapping entries, deletions, templates and resource files under ``output_dir``."""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        with open(output_path / RESOURCE_MAPPING_FILE, "w") as f:
            json.dump([entry.to_dict() for entry in self.entries], f, indent=2)
        with open(output_path / DELETIONS_FILE, "w") as f:
            json.dump([entry.to_dict() for entry in self.deletions], f, indent=2)

        templates = self.templates
        for inventory in self.inventories.values():
            for scope in inventory.walk():
                mapping = scope.mapping
                if mapping is None:
                    continue
                self._write(output_path / mapping.resource_path, scope.to_records())
                template = templates.get(scope.stack_key)
                if template is not None:
                    template_path = mapping.template_path or (
                        f"{mapping.account_id}/{mapping.region}/{mapping.stack_name}.template.json"
                    )
                    self._write(output_path / template_path, template)

        logger.info("Import results saved", output_dir=str(output_path), **self.summary())
        return output_path

    @staticmethod
    def _write(path: Path, data) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)


class ImportEngine:
    """Reconciles every legacy stack of the mapping table against the configuration."""

    def __init__(
        self,
        mappings: StackMappings,
        config: AcceleratorConfig,
        settings: Optional[ImportConfig] = None,
        ssm_lookup: Optional[Dict[str, str]] = None,
        reconcilers: Iterable[Type[Reconciler]] = ALL_RECONCILERS,
    ):
        self.mappings = mappings
        self.config = config
        self.settings = settings or get_config()
        self.ssm_lookup = dict(ssm_lookup or {})
        self.reconcilers = list(reconcilers)

        self.loader = InventoryLoader(self.settings.asset_path)
        self.resolver = CrossStackResolver(
            mappings,
            self.loader,
            config.accounts,
            accelerator_prefix=config.global_config.external_landing_zone_resources.accelerator_prefix,
        )
        self.cascade = DeletionCascade()

    def stacks(self, keys: Optional[Iterable[str]] = None) -> List[StackMapping]:
        """Top-level stacks to reconcile, in phase order."""
        if keys is not None:
            selected = [self.mappings[key] for key in keys]
        else:
            selected = list(self.mappings)
        return sorted((mapping for mapping in selected if not mapping.is_nested), key=_phase_order)

    def load_graph(self, mapping: StackMapping, inventory: ResourceInventory) -> TemplateGraph:
        """Live graph of a stack; rebuilt from resource metadata when no template was exported."""
        nested = {}
        for nested_id, nested_inventory in inventory.nested.items():
            nested[nested_id] = self.load_graph(nested_inventory.mapping, nested_inventory)

        if mapping.template_path:
            return TemplateGraph.load(
                mapping.key, self.settings.asset_path / mapping.template_path, nested=nested
            )
        return TemplateGraph.from_records(mapping.key, inventory.all_records(), nested=nested)

    @trace_operation("reconcile_stack")
    def reconcile_stack(self, mapping: StackMapping) -> ImportContext:
        with stack_context(mapping.key, mapping.phase):
            inventory = self.loader.load(mapping)
            graph = self.load_graph(mapping, inventory)
            context = ImportContext(
                mapping,
                inventory,
                graph,
                self.config,
                self.resolver,
                cascade=self.cascade,
                settings=self.settings,
                ssm_lookup=self.ssm_lookup,
            )

            for reconciler_cls in self.reconcilers:
                reconciler_cls(context).run()

            context.aggregator.flush()
            logger.info(
                "Stack reconciled",
                mapped_resources=len(context.entries),
                parameters=len(context.aggregator.created),
            )
            return context

    @trace_operation("import_run")
    def run(self, keys: Optional[Iterable[str]] = None) -> ImportResult:
        result = ImportResult()
        landing_zone = self.config.global_config.external_landing_zone_resources
        if not landing_zone.import_external_landing_zone_resources:
            logger.info("Import of external landing zone resources disabled")
            return result

        for mapping in self.stacks(keys):
            context = self.reconcile_stack(mapping)
            result.entries.extend(context.entries)
            result.parameters.extend(context.aggregator.created)
            result.graphs[mapping.key] = context.graph
            result.inventories[mapping.key] = context.inventory

        result.deletions = list(self.cascade.entries)
        logger.info("Import run complete", **result.summary())
        return result
