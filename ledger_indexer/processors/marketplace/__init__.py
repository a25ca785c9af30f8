"""
Marketplace processor: decoding shapes, rows, extractor and the processor itself.
"""

from ledger_indexer.processors.marketplace.extractor import MarketplaceExtractor
from ledger_indexer.processors.marketplace.models import (
    MarketplaceBid,
    MarketplaceCollection,
    MarketplaceOffer,
    MarketplaceOrder,
)
from ledger_indexer.processors.marketplace.processor import NAME, MarketplaceProcessor
from ledger_indexer.processors.marketplace.types import MarketplaceRegistries

__all__ = [
    "NAME",
    "MarketplaceBid",
    "MarketplaceCollection",
    "MarketplaceExtractor",
    "MarketplaceOffer",
    "MarketplaceOrder",
    "MarketplaceProcessor",
    "MarketplaceRegistries",
]
