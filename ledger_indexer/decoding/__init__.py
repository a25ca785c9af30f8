"""
Decoding engine: tag dispatch and argument reconstruction.

This package provides:
- `TypeRegistry`: closed set of fully-qualified tags mapped to typed models
- `merge_values`: recursive structural merge of positional call arguments
"""

from ledger_indexer.decoding.merge import merge_two, merge_values
from ledger_indexer.decoding.registry import (
    TypeRegistry,
    normalize_address,
    normalize_tag,
)

__all__ = [
    "TypeRegistry",
    "merge_two",
    "merge_values",
    "normalize_address",
    "normalize_tag",
]
