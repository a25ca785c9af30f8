"""
Tag-based dispatch from fully-qualified on-chain type names to typed models.

A `TypeRegistry` is built once from a static table of
``(fully-qualified name, pydantic model)`` pairs and is then a pure lookup:

- unknown tag            -> None (not applicable, not an error)
- known tag, good shape  -> model instance (the variant)
- known tag, bad shape   -> DecodeError tagged with the transaction version

Tags are compared after normalizing the module address, since nodes print
addresses without leading zeros (``0x0ab::m::T`` and ``0xab::m::T`` are the
same type).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ledger_indexer.decoding.merge import merge_values
from ledger_indexer.domain.errors import DecodeError

T = TypeVar("T", bound=BaseModel)


def normalize_address(address: str) -> str:
    """Lower-case an account address and strip leading zeros after 0x."""
    address = address.strip().lower()
    if address.startswith("0x"):
        return "0x" + (address[2:].lstrip("0") or "0")
    return address


def normalize_tag(tag: str) -> str:
    """Normalize the address segment of a `address::module::name` tag."""
    address, sep, rest = tag.strip().partition("::")
    if not sep:
        return tag.strip()
    return f"{normalize_address(address)}::{rest}"


class TypeRegistry(Generic[T]):
    """Closed set of known tags for one kind of on-chain data."""

    def __init__(self, kind: str, entries: Iterable[Tuple[str, Type[T]]]) -> None:
        self.kind = kind
        self._entries: Dict[str, Type[T]] = {}
        for tag, model in entries:
            key = normalize_tag(tag)
            if key in self._entries:
                raise ValueError(f"Duplicate {kind} tag registered: {tag}")
            self._entries[key] = model

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and normalize_tag(tag) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, tag: str) -> Optional[Type[T]]:
        return self._entries.get(normalize_tag(tag))

    def decode(self, tag: str, value: Any, version: int) -> Optional[T]:
        """Decode `value` into the model registered for `tag`."""
        model = self.lookup(tag)
        if model is None:
            return None
        try:
            return model.model_validate(value)
        except ValidationError as exc:
            raise DecodeError(version, self.kind, tag, value) from exc

    def decode_arguments(
        self, function: str, arguments: Sequence[Any], version: int
    ) -> Optional[T]:
        """Merge positional call arguments, then decode them like a tag."""
        if self.lookup(function) is None:
            return None
        return self.decode(function, merge_values(arguments), version)


__all__ = [
    "TypeRegistry",
    "normalize_address",
    "normalize_tag",
]
