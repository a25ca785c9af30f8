"""
Domain package for the ledger indexer.

Exports the transaction models, the record base class and the error taxonomy
shared by the decoding engine, processors and the tailer.
"""

from ledger_indexer.domain.errors import (
    ChainIdMismatchError,
    ConfigurationError,
    DecodeError,
    FetchContractError,
    FetchError,
    IndexerError,
    TransactionProcessingError,
)
from ledger_indexer.domain.models import (
    DomainRecord,
    EntryFunctionPayload,
    Event,
    ProcessingResult,
    Transaction,
    WriteSetChange,
    WriteTableItemData,
)

__all__ = [
    # Models
    "DomainRecord",
    "EntryFunctionPayload",
    "Event",
    "ProcessingResult",
    "Transaction",
    "WriteSetChange",
    "WriteTableItemData",
    # Errors
    "ChainIdMismatchError",
    "ConfigurationError",
    "DecodeError",
    "FetchContractError",
    "FetchError",
    "IndexerError",
    "TransactionProcessingError",
]
