"""
Error Definitions for ASEA Import

This module defines the exception classes raised while reconciling legacy
ASEA stacks. Only fatal conditions are modelled as exceptions: a configuration
item that has no legacy counterpart, or a related resource that cannot be
found, is logged by the reconciler that noticed it and never raised.
"""

from typing import Any, Dict, List, Optional


class AseaImportError(Exception):
    """Base exception class for all import errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationInconsistencyError(AseaImportError):
    """Raised when a configuration item must resolve to an identifier but cannot."""

    def __init__(self, item: str, reason: str, **details):
        message = f"Configuration inconsistency for {item}: {reason}"

        super().__init__(message, {"item": item, "reason": reason, **details})
        self.item = item
        self.reason = reason


class TemplateDriftError(AseaImportError):
    """Raised when the live template graph does not contain a resource the inventory has."""

    def __init__(self, scope_key: str, logical_id: Optional[str] = None, **details):
        if logical_id:
            message = f"Resource {logical_id} not found in template scope {scope_key}"
        else:
            message = f"Template scope {scope_key} not found"

        super().__init__(message, {"scope_key": scope_key, "logical_id": logical_id, **details})
        self.scope_key = scope_key
        self.logical_id = logical_id


class ResourceFileError(AseaImportError):
    """Raised when a resource, template or mapping file cannot be read or parsed."""

    def __init__(self, path: str, reason: str, **details):
        message = f"Unable to read file {path}: {reason}"

        super().__init__(message, {"path": path, "reason": reason, **details})
        self.path = path
        self.reason = reason


class ParameterFlushError(AseaImportError):
    """Raised when a batched parameter depends on a parameter that was never created."""

    def __init__(self, logical_id: str, missing_dependency: str, **details):
        message = f"Parameter {logical_id} depends on missing parameter {missing_dependency}"

        super().__init__(
            message,
            {"logical_id": logical_id, "missing_dependency": missing_dependency, **details},
        )
        self.logical_id = logical_id
        self.missing_dependency = missing_dependency


class DuplicateResourceError(AseaImportError):
    """Raised when a node is added to a template graph under an existing logical id."""

    def __init__(self, scope_key: str, logical_id: str, **details):
        message = f"Resource {logical_id} already exists in template scope {scope_key}"

        super().__init__(message, {"scope_key": scope_key, "logical_id": logical_id, **details})
        self.scope_key = scope_key
        self.logical_id = logical_id


class MappingError(AseaImportError):
    """Raised when the stack mapping table is inconsistent."""

    def __init__(self, reason: str, stack_keys: Optional[List[str]] = None, **details):
        if stack_keys:
            message = f"Invalid stack mapping for {stack_keys}: {reason}"
        else:
            message = f"Invalid stack mapping: {reason}"

        super().__init__(message, {"reason": reason, "stack_keys": stack_keys, **details})
        self.reason = reason
        self.stack_keys = stack_keys or []


# Convenience functions for raising common errors
def raise_configuration_inconsistency(item: str, reason: str, **details):
    """Raise a configuration inconsistency error."""
    raise ConfigurationInconsistencyError(item, reason, **details)


def raise_template_drift(scope_key: str, logical_id: Optional[str] = None, **details):
    """Raise a template drift error."""
    raise TemplateDriftError(scope_key, logical_id, **details)
