"""Recursive overlay of one configuration mapping onto another."""

from __future__ import annotations

from copy import deepcopy
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


def freeze(value: Any) -> Any:
    """Read-only deep copy: mappings become ``MappingProxyType``, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def plain_copy(value: Any) -> Any:
    """Deep copy ``value`` turning read-only mappings/tuples back into dicts/lists."""
    if isinstance(value, Mapping):
        return {k: plain_copy(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_copy(v) for v in value]
    return deepcopy(value)


def deep_merge(base: Mapping[str, Any], overlay: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a new mapping with ``overlay`` laid over ``base``.

    Mapping-over-mapping recurses; every other pairing (arrays included) is
    replaced by the overlay value. Keys only in ``base`` are kept, keys only in
    ``overlay`` are added. Neither argument is modified.

    >>> deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": [1]})
    {'a': {'x': 1, 'y': 3}, 'b': [1]}
    """
    merged = plain_copy(base)
    if not overlay:
        return merged
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = plain_copy(value)
    return merged
