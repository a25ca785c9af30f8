from __future__ import annotations

import pytest
from pydantic import BaseModel

from ledger_indexer.decoding.registry import (
    TypeRegistry,
    normalize_address,
    normalize_tag,
)
from ledger_indexer.domain.errors import DecodeError

VERSION = 42


class _Thing(BaseModel):
    price: int
    owner: str


class _Other(BaseModel):
    count: int


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry(
        "type",
        [
            ("0x00ab::store::Thing", _Thing),
            ("0xab::store::Other", _Other),
        ],
    )


def test_normalize_address_strips_leading_zeros_and_case() -> None:
    assert normalize_address("0x00AB") == "0xab"
    assert normalize_address("0x0") == "0x0"
    assert normalize_address("0x000") == "0x0"


def test_normalize_tag_only_touches_address_segment() -> None:
    assert normalize_tag("0x0AB::Store::Thing") == "0xab::Store::Thing"
    assert normalize_tag("u64") == "u64"


def test_decode_known_tag_returns_model(registry: TypeRegistry) -> None:
    decoded = registry.decode("0xab::store::Thing", {"price": "500", "owner": "0xBB"}, VERSION)

    assert isinstance(decoded, _Thing)
    assert decoded.price == 500
    assert decoded.owner == "0xBB"


def test_decode_matches_equivalent_address_spelling(registry: TypeRegistry) -> None:
    assert "0x000ab::store::Other" in registry
    assert isinstance(registry.decode("0x0ab::store::Other", {"count": 1}, VERSION), _Other)


def test_decode_unknown_tag_is_not_an_error(registry: TypeRegistry) -> None:
    assert registry.decode("0xab::store::Missing", {"whatever": True}, VERSION) is None
    assert registry.lookup("0x1::coin::CoinStore") is None


def test_decode_malformed_value_raises_with_version(registry: TypeRegistry) -> None:
    with pytest.raises(DecodeError) as excinfo:
        registry.decode("0xab::store::Thing", {"price": "not-a-number"}, VERSION)

    err = excinfo.value
    assert err.version == VERSION
    assert err.kind == "type"
    assert err.type_tag == "0xab::store::Thing"
    assert str(err).startswith(f"Version {VERSION} failed! Failed to parse type 0xab::store::Thing")


def test_decode_arguments_merges_before_validating(registry: TypeRegistry) -> None:
    decoded = registry.decode_arguments(
        "0xab::store::Thing", [{"price": 1}, {"owner": "0xCC"}, {"price": 7}], VERSION
    )

    assert decoded == _Thing(price=7, owner="0xCC")


def test_decode_arguments_unknown_function_returns_none(registry: TypeRegistry) -> None:
    assert registry.decode_arguments("0xab::store::nope", [{"price": 1}], VERSION) is None


def test_duplicate_tags_are_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        TypeRegistry("type", [("0x1::m::T", _Thing), ("0x01::m::T", _Other)])


def test_registry_exposes_tags(registry: TypeRegistry) -> None:
    assert len(registry) == 2
    assert set(registry.tags) == {"0xab::store::Thing", "0xab::store::Other"}
