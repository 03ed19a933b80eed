"""
ASEA Import - Reconciles legacy ASEA stacks against Landing Zone Accelerator configuration.

This package contains the resource inventory, matcher, identity adapter,
per-resource-type reconcilers, deletion cascade, parameter aggregator and
cross-stack resolver that together adopt legacy resources into LZA.
"""

from .config import ImportConfig
from .deletion import DeletionCascade
from .engine import ImportEngine, ImportResult
from .errors import (
    AseaImportError,
    ConfigurationInconsistencyError,
    DuplicateResourceError,
    MappingError,
    ParameterFlushError,
    ResourceFileError,
    TemplateDriftError,
)
from .graph import ResourceNode, TemplateGraph
from .inventory import InventoryLoader, ResourceInventory
from .models import AcceleratorConfig
from .models.mapping import LegacyResourceRecord, StackMapping, StackMappings
from .parameters import ParameterAggregator
from .resolver import CrossStackResolver
from .types import (
    AseaResourceType,
    DeletionFlagEntry,
    LookupPolicy,
    ParameterEmissionRequest,
    ResourceMappingEntry,
)

__all__ = [
    "ImportConfig",
    "ImportEngine",
    "ImportResult",
    "AcceleratorConfig",
    "StackMapping",
    "StackMappings",
    "LegacyResourceRecord",
    "ResourceInventory",
    "InventoryLoader",
    "TemplateGraph",
    "ResourceNode",
    "DeletionCascade",
    "ParameterAggregator",
    "CrossStackResolver",
    "AseaResourceType",
    "LookupPolicy",
    "ResourceMappingEntry",
    "ParameterEmissionRequest",
    "DeletionFlagEntry",
    "AseaImportError",
    "ConfigurationInconsistencyError",
    "TemplateDriftError",
    "ResourceFileError",
    "ParameterFlushError",
    "DuplicateResourceError",
    "MappingError",
]
