"""
Ledger Indexer - Concurrent blockchain transaction indexer backed by PostgreSQL.

This package tails a ledger's committed transactions in gap-free batches,
decodes the ones a processor recognizes into domain rows, and upserts them in
bulk, including:

- Tag-driven decoding of events, table-item writes and entry-function payloads
- A marketplace processor joining payload arguments with their table writes
- Parameter-limit-aware chunked upserts with sanitize-and-retry
- Concurrent workers with a contiguous-completion resume cursor

Progress is persisted per processor so a restart resumes where the last run
left off, reprocessing a lookback window to close any gaps.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from ledger_indexer.config import Settings, get_settings
from ledger_indexer.decoding import TypeRegistry, merge_values
from ledger_indexer.domain import (
    DomainRecord,
    IndexerError,
    ProcessingResult,
    Transaction,
    TransactionProcessingError,
)
from ledger_indexer.persistence import BatchWriter
from ledger_indexer.pipeline import Tailer, TransactionFetcher
from ledger_indexer.processors import (
    AbstractTransactionProcessor,
    MarketplaceProcessor,
    TransactionProcessor,
    available_processors,
    resolve_processor,
)
from ledger_indexer.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Decoding
    "TypeRegistry",
    "merge_values",
    # Domain
    "DomainRecord",
    "IndexerError",
    "ProcessingResult",
    "Transaction",
    "TransactionProcessingError",
    # Processing
    "AbstractTransactionProcessor",
    "BatchWriter",
    "MarketplaceProcessor",
    "TransactionProcessor",
    "available_processors",
    "resolve_processor",
    # Pipeline
    "Tailer",
    "TransactionFetcher",
    # Logging
    "configure_logging",
    "get_logger",
]
