"""Deep freeze / thaw helpers for JSON-like document payloads.

Frozen values are read-only views: mappings become :class:`types.MappingProxyType`
and lists become tuples. ``thaw`` is the inverse and doubles as a deep clone,
so anything handed back to callers can be mutated without touching a snapshot.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

__all__ = ["deep_freeze", "is_frozen", "thaw"]


def deep_freeze(value: Any) -> Any:
    """Return a read-only deep copy of ``value``."""

    if isinstance(value, MappingProxyType):
        if all(is_frozen(item) for item in value.values()):
            return value
        return MappingProxyType({key: deep_freeze(item) for key, item in value.items()})
    if isinstance(value, Mapping):
        return MappingProxyType({key: deep_freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(deep_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(deep_freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Return a mutable deep copy of ``value`` built from plain dicts and lists."""

    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return {thaw(item) for item in value}
    return value


def is_frozen(value: Any) -> bool:
    """Return ``True`` when ``value`` cannot be mutated in place."""

    if isinstance(value, MappingProxyType):
        return all(is_frozen(item) for item in value.values())
    if isinstance(value, tuple):
        return all(is_frozen(item) for item in value)
    if isinstance(value, frozenset):
        return True
    return not isinstance(value, (dict, list, set)) and not isinstance(value, Mapping)
