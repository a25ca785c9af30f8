from __future__ import annotations

from typing import List, Optional

from psycopg_pool import ConnectionPool

from ledger_indexer.config import DEFAULT_MARKETPLACE_ADDRESS, POSTGRES_MAX_QUERY_PARAMS
from ledger_indexer.domain.models import DomainRecord, Transaction
from ledger_indexer.persistence.batch_writer import BatchWriter
from ledger_indexer.processors.abstract import AbstractTransactionProcessor
from ledger_indexer.processors.marketplace.extractor import MarketplaceExtractor
from ledger_indexer.processors.marketplace.types import MarketplaceRegistries

NAME = "marketplace_processor"


class MarketplaceProcessor(AbstractTransactionProcessor):
    """
    Indexes marketplace listings, blind orders, bids and collection registrations.

    Pass `writer` to reuse an existing BatchWriter (tests inject fakes this way).
    """

    name: str = NAME

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        marketplace_address: str = DEFAULT_MARKETPLACE_ADDRESS,
        max_params: int = POSTGRES_MAX_QUERY_PARAMS,
        statement_timeout_ms: int = 0,
        writer: Optional[BatchWriter] = None,
    ) -> None:
        if writer is None:
            if pool is None:
                raise ValueError("MarketplaceProcessor needs a connection pool or a writer")
            writer = BatchWriter(
                pool, max_params=max_params, statement_timeout_ms=statement_timeout_ms
            )
        super().__init__(writer)
        self.extractor = MarketplaceExtractor(MarketplaceRegistries(marketplace_address))

    def extract(self, transaction: Transaction) -> List[DomainRecord]:
        return self.extractor.extract(transaction)

    def __repr__(self) -> str:
        return f"MarketplaceProcessor(address={self.extractor.registries.address!r})"


__all__ = ["NAME", "MarketplaceProcessor"]
