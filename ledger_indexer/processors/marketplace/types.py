"""
On-chain shapes of the marketplace module and the registries that dispatch to them.

Three closed sets of variants, one per kind of on-chain data:

- table-item writes:  ``{addr}::collection::{Offer,Order,Bid}``
- events:             ``{addr}::events::CollectionRegistrationEvent``
- entry functions:    ``{addr}::core::{list_item,place_blind_order,place_bidding}``

u64 values arrive as decimal strings and are coerced by Pydantic.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_validator

from ledger_indexer.decoding.registry import TypeRegistry
from ledger_indexer.domain.models import parse_timestamp


class _Shape(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# Table-item values


class OfferType(_Shape):
    price: int
    seller: str


class OrderType(_Shape):
    price: int
    quantity: int


class BidType(_Shape):
    price: int
    maker: str


MarketplaceWriteSet = Union[OfferType, OrderType, BidType]


# Events


class CollectionRegistrationEvent(_Shape):
    creator: str
    collection_address: str
    collection_name: str
    timestamp: datetime
    event_counter: Decimal

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return parse_timestamp(value)


MarketplaceEvent = CollectionRegistrationEvent


# Entry-function payloads (after argument merge)


class ListItemPayload(_Shape):
    creator: str
    collection_name: str
    token_name: str
    property_version: int
    price: int


class PlaceOrderPayload(_Shape):
    creator: str
    collection_name: str
    price: int
    quantity: int


class PlaceBidPayload(_Shape):
    creator: str
    collection_name: str
    token_name: str
    property_version: int
    price: int


MarketplacePayload = Union[ListItemPayload, PlaceOrderPayload, PlaceBidPayload]


class MarketplaceRegistries:
    """The three marketplace registries, bound to one module address."""

    def __init__(self, address: str) -> None:
        self.address = address
        self.write_sets: TypeRegistry[Any] = TypeRegistry(
            "type",
            [
                (f"{address}::collection::Offer", OfferType),
                (f"{address}::collection::Order", OrderType),
                (f"{address}::collection::Bid", BidType),
            ],
        )
        self.events: TypeRegistry[Any] = TypeRegistry(
            "event",
            [
                (f"{address}::events::CollectionRegistrationEvent", CollectionRegistrationEvent),
            ],
        )
        self.payloads: TypeRegistry[Any] = TypeRegistry(
            "function",
            [
                (f"{address}::core::list_item", ListItemPayload),
                (f"{address}::core::place_blind_order", PlaceOrderPayload),
                (f"{address}::core::place_bidding", PlaceBidPayload),
            ],
        )


__all__ = [
    "BidType",
    "CollectionRegistrationEvent",
    "ListItemPayload",
    "MarketplaceEvent",
    "MarketplacePayload",
    "MarketplaceRegistries",
    "MarketplaceWriteSet",
    "OfferType",
    "OrderType",
    "PlaceBidPayload",
    "PlaceOrderPayload",
]
