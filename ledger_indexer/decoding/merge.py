"""
Reconstruction of entry-function arguments.

Call arguments arrive as an ordered list of JSON values, one per declared
parameter. Folding them left to right into a single value lets one typed model
describe the whole call regardless of how the fields were split across
parameters:

    merge_values([{"a": 1}, {"b": 2}, {"a": 3}])   -> {"a": 3, "b": 2}
    merge_values([{"a": {"x": 1}}, {"a": {"y": 2}}]) -> {"a": {"x": 1, "y": 2}}
    merge_values([{"a": 1}, [9]])                  -> [9]
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def merge_two(acc: Any, item: Any) -> Any:
    """Merge `item` into `acc`; objects merge recursively, anything else replaces."""
    if isinstance(acc, Mapping) and isinstance(item, Mapping):
        merged = dict(acc)
        for key, value in item.items():
            merged[key] = merge_two(merged[key], value) if key in merged else value
        return merged
    return item


def merge_values(values: Sequence[Any]) -> Any:
    """Fold a list of JSON-like values into one. Returns None for an empty list."""
    if not values:
        return None
    acc = values[0]
    for item in values[1:]:
        acc = merge_two(acc, item)
    return acc


__all__ = ["merge_two", "merge_values"]
