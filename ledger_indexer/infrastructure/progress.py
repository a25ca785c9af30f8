"""
Persisted progress: the per-processor resume cursor and the chain identity.

The cursor row is only ever moved forward (`GREATEST`), so a restart that
reprocesses a lookback window can never rewind what an earlier run recorded.
"""

from __future__ import annotations

from typing import Optional

import psycopg

from ledger_indexer.domain.errors import ChainIdMismatchError

_SELECT_CURSOR = (
    "SELECT last_success_version FROM processor_status WHERE processor = %s"
)

_UPSERT_CURSOR = """
    INSERT INTO processor_status (processor, last_success_version, last_updated)
    VALUES (%s, %s, NOW())
    ON CONFLICT (processor) DO UPDATE SET
        last_success_version = GREATEST(
            processor_status.last_success_version, EXCLUDED.last_success_version
        ),
        last_updated = EXCLUDED.last_updated
"""

_SELECT_CHAIN_ID = "SELECT chain_id FROM ledger_infos LIMIT 1"

_INSERT_CHAIN_ID = (
    "INSERT INTO ledger_infos (chain_id) VALUES (%s) ON CONFLICT (chain_id) DO NOTHING"
)

_SELECT_ALL_CURSORS = (
    "SELECT processor, last_success_version, last_updated "
    "FROM processor_status ORDER BY processor"
)


def get_last_success_version(
    conn: psycopg.Connection, processor_name: str
) -> Optional[int]:
    """Return the stored cursor for `processor_name`, or None if it never ran."""
    with conn.cursor() as cur:
        cur.execute(_SELECT_CURSOR, (processor_name,))
        row = cur.fetchone()
    return int(row[0]) if row else None


def update_last_success_version(
    conn: psycopg.Connection, processor_name: str, version: int
) -> None:
    """Advance the cursor to `version`; a lower value leaves the row unchanged."""
    with conn.transaction():
        with conn.cursor() as cur:
            cur.execute(_UPSERT_CURSOR, (processor_name, version))


def list_processor_status(conn: psycopg.Connection) -> list[tuple]:
    """Return `(processor, last_success_version, last_updated)` for every processor."""
    with conn.cursor() as cur:
        cur.execute(_SELECT_ALL_CURSORS)
        return list(cur.fetchall())


def check_or_update_chain_id(conn: psycopg.Connection, chain_id: int) -> int:
    """
    Record the chain id on first run; afterwards insist it never changes.

    Raises
    ------
    ChainIdMismatchError
        If the database was populated from a different network.
    """
    with conn.transaction():
        with conn.cursor() as cur:
            cur.execute(_SELECT_CHAIN_ID)
            row = cur.fetchone()
            if row is None:
                cur.execute(_INSERT_CHAIN_ID, (chain_id,))
                return chain_id
    stored = int(row[0])
    if stored != chain_id:
        raise ChainIdMismatchError(expected=stored, actual=chain_id, source="database")
    return stored


__all__ = [
    "check_or_update_chain_id",
    "get_last_success_version",
    "list_processor_status",
    "update_last_success_version",
]
