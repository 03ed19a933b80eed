"""Utility helpers for ASEA Import."""

from .naming import get_att, pascal_case, ref, referenced_logical_id

__all__ = ["get_att", "pascal_case", "ref", "referenced_logical_id"]
