"""
Marketplace rows, one model per table.

Every table is keyed by ``(creator_address, collection_name)``; string limits
mirror the VARCHAR widths in `db/init.sql`.
"""
from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Dict, Tuple

from ledger_indexer.domain.models import DomainRecord

ADDRESS_LENGTH = 66
NAME_LENGTH = 128

_COLLECTION_KEY = ("creator_address", "collection_name")


class MarketplaceOffer(DomainRecord):
    table_name: ClassVar[str] = "marketplace_offers"
    natural_key: ClassVar[Tuple[str, ...]] = _COLLECTION_KEY
    max_lengths: ClassVar[Dict[str, int]] = {
        "creator_address": ADDRESS_LENGTH,
        "collection_name": NAME_LENGTH,
        "token_name": NAME_LENGTH,
        "seller": ADDRESS_LENGTH,
    }

    creator_address: str
    collection_name: str
    token_name: str
    property_version: int
    price: int
    seller: str
    timestamp: datetime


class MarketplaceOrder(DomainRecord):
    table_name: ClassVar[str] = "marketplace_orders"
    natural_key: ClassVar[Tuple[str, ...]] = _COLLECTION_KEY
    max_lengths: ClassVar[Dict[str, int]] = {
        "creator_address": ADDRESS_LENGTH,
        "collection_name": NAME_LENGTH,
        "maker": ADDRESS_LENGTH,
    }

    creator_address: str
    collection_name: str
    price: int
    quantity: int
    maker: str
    timestamp: datetime


class MarketplaceBid(DomainRecord):
    table_name: ClassVar[str] = "marketplace_bids"
    natural_key: ClassVar[Tuple[str, ...]] = _COLLECTION_KEY
    max_lengths: ClassVar[Dict[str, int]] = {
        "creator_address": ADDRESS_LENGTH,
        "collection_name": NAME_LENGTH,
        "token_name": NAME_LENGTH,
        "maker": ADDRESS_LENGTH,
    }

    creator_address: str
    collection_name: str
    token_name: str
    property_version: int
    price: int
    maker: str
    timestamp: datetime


class MarketplaceCollection(DomainRecord):
    table_name: ClassVar[str] = "marketplace_collections"
    natural_key: ClassVar[Tuple[str, ...]] = _COLLECTION_KEY
    max_lengths: ClassVar[Dict[str, int]] = {
        "creator_address": ADDRESS_LENGTH,
        "collection_address": ADDRESS_LENGTH,
        "collection_name": NAME_LENGTH,
    }

    creator_address: str
    collection_address: str
    collection_name: str
    creation_timestamp: datetime


__all__ = [
    "MarketplaceBid",
    "MarketplaceCollection",
    "MarketplaceOffer",
    "MarketplaceOrder",
]
