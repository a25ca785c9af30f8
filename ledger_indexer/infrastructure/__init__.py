"""
Infrastructure package for the ledger indexer.

Centralizes database concerns (connection pool, schema bootstrap, progress
cursor). Keep this layer focused on I/O and resource management, decoupled
from decoding and pipeline logic.
"""

from ledger_indexer.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)
from ledger_indexer.infrastructure.progress import (
    check_or_update_chain_id,
    get_last_success_version,
    list_processor_status,
    update_last_success_version,
)
from ledger_indexer.infrastructure.schema import apply_schema

__all__ = [
    "PoolManager",
    "apply_schema",
    "apply_statement_timeout",
    "build_dsn",
    "check_or_update_chain_id",
    "get_last_success_version",
    "get_sync_connection",
    "get_sync_pool",
    "list_processor_status",
    "update_last_success_version",
]
