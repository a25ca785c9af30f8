from __future__ import annotations

from typing import List, Sequence, Tuple

import psycopg
import pytest

from ledger_indexer.config import Settings
from ledger_indexer.domain.errors import (
    ConfigurationError,
    DecodeError,
    TransactionProcessingError,
)
from ledger_indexer.domain.models import DomainRecord
from ledger_indexer.processors import (
    MarketplaceProcessor,
    TransactionProcessor,
    available_processors,
    resolve_processor,
)
from ledger_indexer.processors.marketplace import MarketplaceOffer

START_VERSION = 100
END_VERSION = 101


class _FakeWriter:
    def __init__(self, error: Exception = None) -> None:
        self.error = error
        self.calls: List[Tuple[List[DomainRecord], int, int]] = []

    def write(self, records: Sequence[DomainRecord], start_version: int, end_version: int) -> int:
        if self.error is not None:
            raise self.error
        self.calls.append((list(records), start_version, end_version))
        return len(records)


@pytest.fixture
def offer_transactions(make_txn, make_write, marketplace_address: str):
    return [
        make_txn(
            START_VERSION,
            function=f"{marketplace_address}::core::list_item",
            arguments=[{"creator": "0xAA", "collection_name": "C1"}, {"token_name": "T1", "property_version": 0, "price": 500}],
            changes=[make_write(f"{marketplace_address}::collection::Offer", {"price": "500", "seller": "0xBB"})],
        ),
        make_txn(END_VERSION),
    ]


def test_process_extracts_then_writes_once_per_batch(offer_transactions) -> None:
    writer = _FakeWriter()
    processor = MarketplaceProcessor(writer=writer)

    result = processor.process(offer_transactions, START_VERSION, END_VERSION)

    assert isinstance(processor, TransactionProcessor)
    assert len(writer.calls) == 1
    records, start, end = writer.calls[0]
    assert (start, end) == (START_VERSION, END_VERSION)
    assert [type(r) for r in records] == [MarketplaceOffer]
    assert result.processor_name == "marketplace_processor"
    assert result.record_count == 1
    assert result.num_versions == 2


def test_decode_errors_are_wrapped_with_range(make_txn, make_write, marketplace_address) -> None:
    bad = make_txn(
        START_VERSION,
        function=f"{marketplace_address}::core::list_item",
        arguments=[{"creator": "0xAA"}],
        changes=[make_write(f"{marketplace_address}::collection::Offer", {"price": "1", "seller": "0xBB"})],
    )
    writer = _FakeWriter()
    processor = MarketplaceProcessor(writer=writer)

    with pytest.raises(TransactionProcessingError) as excinfo:
        processor.process([bad], START_VERSION, START_VERSION)

    cause, start, end, name = excinfo.value.inner()
    assert isinstance(cause, DecodeError)
    assert (start, end, name) == (START_VERSION, START_VERSION, "marketplace_processor")
    assert writer.calls == []


def test_database_errors_are_wrapped_with_range(offer_transactions) -> None:
    processor = MarketplaceProcessor(writer=_FakeWriter(psycopg.OperationalError("gone")))

    with pytest.raises(TransactionProcessingError) as excinfo:
        processor.process(offer_transactions, START_VERSION, END_VERSION)

    assert isinstance(excinfo.value.cause, psycopg.OperationalError)
    assert "100..101" in str(excinfo.value)


def test_processor_requires_pool_or_writer() -> None:
    with pytest.raises(ValueError):
        MarketplaceProcessor()


def test_registry_lists_and_resolves_processors() -> None:
    assert available_processors() == ["marketplace_processor"]

    processor = resolve_processor("marketplace_processor", object(), Settings(MAX_QUERY_PARAMS=1000))

    assert isinstance(processor, MarketplaceProcessor)
    assert processor.writer.max_params == 1000


def test_unknown_processor_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Unknown processor 'nope'"):
        resolve_processor("nope", object(), Settings())
