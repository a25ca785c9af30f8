"""
Marketplace record extraction: pure functions from one transaction to rows.

Collections come straight from registration events. Offers, orders and bids
need two halves from the same transaction: the table-item write holds the
price side (price, seller/maker, quantity) and the entry-function call holds
the identity side (creator, collection, token). A row is emitted only when the
payload and a write of the matching kind are both present.

Pairing policy: a transaction has at most one payload, and it is paired with
the first qualifying write of each kind. Later writes of the same kind in the
same transaction are ignored.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple

from ledger_indexer.domain.errors import DecodeError
from ledger_indexer.domain.models import DomainRecord, Transaction, WriteTableItemData
from ledger_indexer.processors.marketplace.models import (
    MarketplaceBid,
    MarketplaceCollection,
    MarketplaceOffer,
    MarketplaceOrder,
)
from ledger_indexer.processors.marketplace.types import (
    BidType,
    CollectionRegistrationEvent,
    ListItemPayload,
    MarketplacePayload,
    MarketplaceRegistries,
    OfferType,
    OrderType,
    PlaceBidPayload,
    PlaceOrderPayload,
)
from ledger_indexer.utils.logging import get_logger

log = get_logger(__name__)

DecodedWrites = Dict[type, Tuple[WriteTableItemData, Any]]


class MarketplaceExtractor:
    """Decodes marketplace facts out of transactions. No I/O."""

    def __init__(self, registries: MarketplaceRegistries) -> None:
        self.registries = registries

    def extract(self, transaction: Transaction) -> List[DomainRecord]:
        records: List[DomainRecord] = list(self.collections(transaction))
        joined = self.join(transaction)
        if joined is not None:
            records.append(joined)
        return records

    def collections(self, transaction: Transaction) -> Iterator[MarketplaceCollection]:
        for event in transaction.events:
            decoded = self.registries.events.decode(event.type, event.data, transaction.version)
            if isinstance(decoded, CollectionRegistrationEvent):
                yield MarketplaceCollection(
                    creator_address=decoded.creator,
                    collection_address=decoded.collection_address,
                    collection_name=decoded.collection_name,
                    creation_timestamp=decoded.timestamp,
                )

    def payload(self, transaction: Transaction) -> Optional[MarketplacePayload]:
        if transaction.payload is None:
            return None
        return self.registries.payloads.decode_arguments(
            transaction.payload.function,
            transaction.payload.arguments,
            transaction.version,
        )

    def writes(self, transaction: Transaction) -> DecodedWrites:
        """First decoded table-item write of each kind, keyed by variant class."""
        found: DecodedWrites = {}
        for change in transaction.changes:
            item = change.table_item
            if item is None:
                continue
            # Keyed on value_type on purpose: key_type is the key's own type.
            decoded = self.registries.write_sets.decode(
                item.value_type, item.value, transaction.version
            )
            if decoded is None:
                continue
            if type(decoded) in found:
                log.debug(
                    "Ignoring additional marketplace write",
                    extra={"version": transaction.version, "value_type": item.value_type},
                )
                continue
            found[type(decoded)] = (item, decoded)
        return found

    def join(self, transaction: Transaction) -> Optional[DomainRecord]:
        """Pair the call payload with its table-item write, if both exist."""
        writes = self.writes(transaction)
        payload = self.payload(transaction)
        if payload is None or not writes:
            return None

        timestamp = transaction.timestamp
        if isinstance(payload, ListItemPayload) and OfferType in writes:
            _, offer = writes[OfferType]
            return MarketplaceOffer(
                creator_address=payload.creator,
                collection_name=payload.collection_name,
                token_name=payload.token_name,
                property_version=payload.property_version,
                price=offer.price,
                seller=offer.seller,
                timestamp=timestamp,
            )
        if isinstance(payload, PlaceOrderPayload) and OrderType in writes:
            item, order = writes[OrderType]
            return MarketplaceOrder(
                creator_address=payload.creator,
                collection_name=payload.collection_name,
                price=order.price,
                quantity=order.quantity,
                maker=_address_key(item, transaction.version),
                timestamp=timestamp,
            )
        if isinstance(payload, PlaceBidPayload) and BidType in writes:
            _, bid = writes[BidType]
            return MarketplaceBid(
                creator_address=payload.creator,
                collection_name=payload.collection_name,
                token_name=payload.token_name,
                property_version=payload.property_version,
                price=bid.price,
                maker=bid.maker,
                timestamp=timestamp,
            )
        return None


def _address_key(item: WriteTableItemData, version: int) -> str:
    # Orders are keyed by the maker's address in the on-chain table.
    if not isinstance(item.key, str):
        raise DecodeError(version, "key", item.key_type, item.key)
    return item.key


__all__ = ["MarketplaceExtractor"]
