"""Field paths derived from a JSON Schema data model.

Used by expression pickers to offer ``customer.address.city`` style paths.
Array item fields are written as ``items[].name``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

MAX_DEPTH = 5
UNKNOWN_TYPE = "unknown"


@dataclass(frozen=True, slots=True)
class FieldPath:
    path: str
    type: str


def extract_field_paths(schema: Mapping[str, Any]) -> list[FieldPath]:
    """Flatten the ``properties`` of ``schema`` into dot-separated paths.

    Objects and arrays of objects are walked depth-first in declaration
    order. Properties nested deeper than :data:`MAX_DEPTH` are listed but not
    descended into.
    """

    paths: list[FieldPath] = []
    _walk(schema.get("properties"), "", 0, paths)
    return paths


def _walk(properties: Any, prefix: str, depth: int, out: list[FieldPath]) -> None:
    if not isinstance(properties, Mapping):
        return
    for name, prop in properties.items():
        if not isinstance(prop, Mapping):
            continue
        path = f"{prefix}{name}"
        prop_type = prop.get("type")
        prop_type = prop_type if isinstance(prop_type, str) else UNKNOWN_TYPE
        out.append(FieldPath(path=path, type=prop_type))
        if depth >= MAX_DEPTH:
            continue
        if prop_type == "object":
            _walk(prop.get("properties"), f"{path}.", depth + 1, out)
        elif prop_type == "array":
            items = prop.get("items")
            if isinstance(items, Mapping) and items.get("type") == "object":
                _walk(items.get("properties"), f"{path}[].", depth + 1, out)


__all__ = ["FieldPath", "MAX_DEPTH", "extract_field_paths"]
