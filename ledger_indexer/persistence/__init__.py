"""
Persistence package: chunked upserts with a sanitize-and-retry fallback.
"""

from ledger_indexer.persistence.batch_writer import (
    BatchWriter,
    build_upsert,
    dedupe_by_key,
    get_chunks,
    group_by_table,
    sanitize_record,
    sanitize_text,
)

__all__ = [
    "BatchWriter",
    "build_upsert",
    "dedupe_by_key",
    "get_chunks",
    "group_by_table",
    "sanitize_record",
    "sanitize_text",
]
