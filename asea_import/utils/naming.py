"""
Naming helpers shared by reconcilers.

Logical ids for resources created during reconciliation are derived from
configuration names, so they must be stable across runs.
"""

import re
from typing import Any, Dict, List, Optional

_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def split_words(value: str) -> List[str]:
    spaced = _WORD_BOUNDARY.sub(
        lambda m: f"{m.group(1)} {m.group(2)}" if m.group(1) else f"{m.group(3)} {m.group(4)}",
        value,
    )
    return [word for word in _SEPARATORS.split(spaced) if word]


def pascal_case(*values: str) -> str:
    """Join ``values`` into one PascalCase identifier.

    >>> pascal_case("my-role")
    'MyRole'
    >>> pascal_case("Shared_vpc", "App_az1")
    'SharedVpcAppAz1'
    """
    words: List[str] = []
    for value in values:
        words.extend(split_words(value))
    return "".join(word[0].upper() + word[1:].lower() for word in words)


def ref(logical_id: str) -> Dict[str, str]:
    """CloudFormation ``Ref`` intrinsic."""
    return {"Ref": logical_id}


def get_att(logical_id: str, attribute: str) -> Dict[str, List[str]]:
    """CloudFormation ``Fn::GetAtt`` intrinsic."""
    return {"Fn::GetAtt": [logical_id, attribute]}


def referenced_logical_id(value: Any) -> Optional[str]:
    """Return the logical id a ``Ref`` or ``Fn::GetAtt`` value points to."""
    if not isinstance(value, dict):
        return None
    if "Ref" in value and isinstance(value["Ref"], str):
        return value["Ref"]
    get_att_value = value.get("Fn::GetAtt")
    if isinstance(get_att_value, list) and get_att_value:
        return get_att_value[0]
    if isinstance(get_att_value, str):
        return get_att_value.split(".", 1)[0]
    return None
