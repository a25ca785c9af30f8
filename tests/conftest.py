"""
Pytest configuration for the ledger indexer.

Provides fixtures for:
- Database connection management
- Schema bootstrap and table cleanup for integration tests
- Transaction builders shared by the unit tests
- Settings override for integration tests
"""

from __future__ import annotations

import os
from typing import Any, Dict, Generator, List, Optional

import psycopg
import pytest

from ledger_indexer.config import DEFAULT_MARKETPLACE_ADDRESS, Settings
from ledger_indexer.domain.models import Transaction
from ledger_indexer.infrastructure.schema import apply_schema

MARKETPLACE = DEFAULT_MARKETPLACE_ADDRESS

_INDEXER_TABLES = (
    "marketplace_collections",
    "marketplace_offers",
    "marketplace_orders",
    "marketplace_bids",
    "processor_status",
    "ledger_infos",
)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "ledger_indexer"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the indexer schema exists.
    """
    apply_schema(db_connection)
    return True


@pytest.fixture(scope="function")
def clean_indexer_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty every indexer table before and after each test function.
    """
    statement = f"TRUNCATE TABLE {', '.join(_INDEXER_TABLES)};"
    with db_connection.cursor() as cur:
        cur.execute(statement)
    yield
    with db_connection.cursor() as cur:
        cur.execute(statement)


def make_transaction(
    version: int,
    function: Optional[str] = None,
    arguments: Optional[List[Any]] = None,
    events: Optional[List[Dict[str, Any]]] = None,
    changes: Optional[List[Dict[str, Any]]] = None,
    timestamp: int = 1_700_000_000_000_000,
) -> Transaction:
    """Build a transaction the way the node serializes one."""
    raw: Dict[str, Any] = {
        "version": str(version),
        "timestamp": str(timestamp),
        "type": "user_transaction",
        "events": events or [],
        "changes": changes or [],
    }
    if function is not None:
        raw["payload"] = {
            "type": "entry_function_payload",
            "function": function,
            "type_arguments": [],
            "arguments": arguments or [],
        }
    return Transaction.model_validate(raw)


def table_write(
    value_type: str,
    value: Dict[str, Any],
    key: Any = "0x1",
    key_type: str = "address",
) -> Dict[str, Any]:
    """A `write_table_item` change as the node serializes it."""
    return {
        "type": "write_table_item",
        "handle": "0xhandle",
        "key": "0xkey",
        "data": {"key": key, "key_type": key_type, "value": value, "value_type": value_type},
    }


def empty_transactions(start: int, end: int) -> List[Transaction]:
    """Transactions [start, end] with nothing a processor recognizes."""
    return [make_transaction(version) for version in range(start, end + 1)]


@pytest.fixture
def make_txn():
    """Factory fixture for node-shaped transactions."""
    return make_transaction


@pytest.fixture
def make_write():
    """Factory fixture for `write_table_item` changes."""
    return table_write


@pytest.fixture
def make_empty_range():
    """Factory fixture for runs of transactions no processor recognizes."""
    return empty_transactions


@pytest.fixture
def marketplace_address() -> str:
    return MARKETPLACE
