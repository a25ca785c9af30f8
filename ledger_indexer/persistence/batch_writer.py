"""
Chunked, transactional persistence of decoded records.

One batch (all record kinds a processor produced for a version range) is
written inside a single transaction on a single pooled connection:

1. Records are grouped per table and collapsed to the last record per natural
   key, since PostgreSQL refuses to upsert the same key twice in one statement.
2. Each group is written with `INSERT ... ON CONFLICT (natural key) DO UPDATE`
   in chunks sized so that ``rows * columns`` stays under the bind-parameter
   ceiling.
3. If the transaction fails, it is rolled back, every record is sanitized
   (NUL bytes stripped, invalid code points replaced, strings truncated to the
   column limit) and the batch is retried once in a fresh transaction. A second
   failure propagates to the caller.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

import psycopg
from psycopg import sql
from psycopg_pool import ConnectionPool

from ledger_indexer.config import POSTGRES_MAX_QUERY_PARAMS
from ledger_indexer.domain.models import DomainRecord
from ledger_indexer.infrastructure.db_factory import apply_statement_timeout
from ledger_indexer.utils.logging import get_logger

log = get_logger(__name__)

RecordGroups = Dict[Type[DomainRecord], List[DomainRecord]]


def get_chunks(
    num_items: int,
    column_count: int,
    max_params: int = POSTGRES_MAX_QUERY_PARAMS,
) -> List[Tuple[int, int]]:
    """
    Split ``num_items`` rows into contiguous ``[start, end)`` slices.

    Each slice holds at most ``max_params // column_count`` rows (at least one).
    """
    if column_count <= 0:
        raise ValueError("column_count must be positive")
    chunk_size = max(1, max_params // column_count)
    return [
        (start, min(start + chunk_size, num_items))
        for start in range(0, num_items, chunk_size)
    ]


def dedupe_by_key(records: Iterable[DomainRecord]) -> List[DomainRecord]:
    """Keep the last record for each natural key, in first-seen key order."""
    latest: "OrderedDict[tuple, DomainRecord]" = OrderedDict()
    for record in records:
        latest[record.key()] = record
    return list(latest.values())


def group_by_table(records: Iterable[DomainRecord]) -> RecordGroups:
    """Group records by their model class, deduplicating each group."""
    grouped: RecordGroups = OrderedDict()
    for record in records:
        grouped.setdefault(type(record), []).append(record)
    return OrderedDict((model, dedupe_by_key(rows)) for model, rows in grouped.items())


def build_upsert(
    table: str,
    columns: Sequence[str],
    key: Sequence[str],
    num_rows: int,
) -> sql.Composed:
    """Compose a multi-row upsert that replaces non-key columns on conflict."""
    row_placeholder = sql.SQL("({})").format(
        sql.SQL(", ").join([sql.Placeholder()] * len(columns))
    )
    updates = [column for column in columns if column not in key]
    if updates:
        on_conflict = sql.SQL("DO UPDATE SET {}").format(
            sql.SQL(", ").join(
                sql.SQL("{} = EXCLUDED.{}").format(sql.Identifier(c), sql.Identifier(c))
                for c in updates
            )
        )
    else:
        on_conflict = sql.SQL("DO NOTHING")
    return sql.SQL("INSERT INTO {} ({}) VALUES {} ON CONFLICT ({}) {}").format(
        sql.Identifier(table),
        sql.SQL(", ").join(map(sql.Identifier, columns)),
        sql.SQL(", ").join([row_placeholder] * num_rows),
        sql.SQL(", ").join(map(sql.Identifier, key)),
        on_conflict,
    )


def sanitize_text(value: str, max_length: Optional[int] = None) -> str:
    """Make a string storable in a VARCHAR/TEXT column."""
    clean = value.replace("\x00", "")
    clean = clean.encode("utf-8", "replace").decode("utf-8")
    if max_length is not None and len(clean) > max_length:
        clean = clean[:max_length]
    return clean


def sanitize_record(record: DomainRecord) -> DomainRecord:
    """Return a copy with every string field sanitized; other fields are untouched."""
    updates = {}
    for name in record.columns():
        value = getattr(record, name)
        if isinstance(value, str):
            clean = sanitize_text(value, record.max_lengths.get(name))
            if clean != value:
                updates[name] = clean
    if not updates:
        return record
    return record.model_copy(update=updates)


class BatchWriter:
    """
    Writes one batch of records per call, sharing a connection pool.

    Safe to call from several worker threads at once: each call checks out its
    own connection for the duration of the transaction.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        max_params: int = POSTGRES_MAX_QUERY_PARAMS,
        statement_timeout_ms: int = 0,
    ) -> None:
        self._pool = pool
        self.max_params = max_params
        self.statement_timeout_ms = statement_timeout_ms

    def write(
        self,
        records: Sequence[DomainRecord],
        start_version: int = 0,
        end_version: int = 0,
    ) -> int:
        """
        Persist `records` atomically; returns the number of rows upserted.

        Raises
        ------
        psycopg.Error
            If the sanitized retry fails as well.
        """
        if not records:
            return 0
        grouped = group_by_table(records)
        with self._pool.connection() as conn:
            try:
                return self._write_groups(conn, grouped)
            except psycopg.Error as exc:
                log.warning(
                    "Batch write failed, retrying with sanitized records",
                    extra={
                        "start_version": start_version,
                        "end_version": end_version,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
            sanitized = group_by_table(
                sanitize_record(record) for rows in grouped.values() for record in rows
            )
            written = self._write_groups(conn, sanitized)
            log.info(
                "Sanitized retry succeeded",
                extra={"start_version": start_version, "end_version": end_version},
            )
            return written

    def _write_groups(self, conn: psycopg.Connection, grouped: RecordGroups) -> int:
        written = 0
        with conn.transaction():
            with conn.cursor() as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
                for model, rows in grouped.items():
                    written += self._write_table(cur, model, rows)
        return written

    def _write_table(
        self,
        cur: psycopg.Cursor,
        model: Type[DomainRecord],
        rows: Sequence[DomainRecord],
    ) -> int:
        columns = model.columns()
        for start, end in get_chunks(len(rows), len(columns), self.max_params):
            chunk = rows[start:end]
            statement = build_upsert(model.table_name, columns, model.natural_key, len(chunk))
            params = [value for record in chunk for value in record.row()]
            cur.execute(statement, params)
        return len(rows)


__all__ = [
    "BatchWriter",
    "build_upsert",
    "dedupe_by_key",
    "get_chunks",
    "group_by_table",
    "sanitize_record",
    "sanitize_text",
]
