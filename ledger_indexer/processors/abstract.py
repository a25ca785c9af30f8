"""
Processor interfaces for the ledger indexer.

A processor turns one batch of transactions into rows of one domain. Concrete
processors implement `TransactionProcessor` (usually by subclassing
`AbstractTransactionProcessor`, which binds an extractor to a `BatchWriter`)
and are selected at startup by name.
"""

from __future__ import annotations

import abc
from typing import List, Protocol, Sequence, runtime_checkable

import psycopg

from ledger_indexer.domain.errors import IndexerError, TransactionProcessingError
from ledger_indexer.domain.models import DomainRecord, ProcessingResult, Transaction
from ledger_indexer.persistence.batch_writer import BatchWriter


@runtime_checkable
class TransactionProcessor(Protocol):
    """
    Common interface the tailer drives.

    `process` is called concurrently from several workers on disjoint version
    ranges; implementations may share only their connection pool.
    """

    name: str

    def process(
        self,
        transactions: Sequence[Transaction],
        start_version: int,
        end_version: int,
    ) -> ProcessingResult:
        """
        Decode and persist one batch.

        Raises
        ------
        TransactionProcessingError
            If decoding or writing fails; carries the range and processor name.
        """
        ...


class AbstractTransactionProcessor(abc.ABC):
    """
    Extract-then-write helper for class-based processors.

    Subclasses set `name` and implement `extract`, a pure function of one
    transaction. Any failure is wrapped with the batch range before it leaves
    `process`.
    """

    name: str

    def __init__(self, writer: BatchWriter) -> None:
        self.writer = writer

    @abc.abstractmethod
    def extract(self, transaction: Transaction) -> List[DomainRecord]:  # pragma: no cover - interface only
        """Return every record the transaction yields (possibly none)."""
        raise NotImplementedError

    def process(
        self,
        transactions: Sequence[Transaction],
        start_version: int,
        end_version: int,
    ) -> ProcessingResult:
        try:
            records: List[DomainRecord] = []
            for transaction in transactions:
                records.extend(self.extract(transaction))
            written = self.writer.write(records, start_version, end_version)
        except (IndexerError, psycopg.Error) as exc:
            raise TransactionProcessingError(exc, start_version, end_version, self.name) from exc
        return ProcessingResult(
            processor_name=self.name,
            start_version=start_version,
            end_version=end_version,
            record_count=written,
        )


__all__ = [
    "AbstractTransactionProcessor",
    "TransactionProcessor",
]
