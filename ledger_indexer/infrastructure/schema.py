"""
Schema bootstrap for the ledger indexer.

`db/init.sql` ships inside the package and only contains idempotent
`CREATE TABLE IF NOT EXISTS` statements, so applying it on every start is safe.
"""

from __future__ import annotations

from importlib import resources

import psycopg

from ledger_indexer.utils.logging import get_logger

log = get_logger(__name__)


def load_init_sql() -> str:
    """Return the bootstrap DDL script bundled with the package."""
    script = resources.files("ledger_indexer") / "db" / "init.sql"
    return script.read_text(encoding="utf-8")


def apply_schema(conn: psycopg.Connection) -> None:
    """Create every indexer table that does not exist yet."""
    with conn.transaction():
        with conn.cursor() as cur:
            cur.execute(load_init_sql())
    log.info("Schema applied")


__all__ = [
    "apply_schema",
    "load_init_sql",
]
