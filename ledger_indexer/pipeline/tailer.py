"""
Tailer: runs one processor over the ledger with concurrent workers.

Usage (example from CLI):
    from ledger_indexer.pipeline.tailer import Tailer

    tailer = Tailer(processor, fetcher, pool, settings)
    tailer.run_migrations()
    stats = tailer.run()

Each worker loops on "claim next batch, process it, report". A single
reporting loop in the calling thread consumes a bounded channel of outcomes,
keeps the trailing throughput, and advances the persisted cursor to the
contiguous-completion frontier. The first failed batch stops everything.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import List, NoReturn, Optional

from psycopg_pool import ConnectionPool

from ledger_indexer.config import Settings, get_settings
from ledger_indexer.domain.errors import (
    ChainIdMismatchError,
    FetchError,
    IndexerError,
    TransactionProcessingError,
)
from ledger_indexer.domain.models import ProcessingResult
from ledger_indexer.infrastructure.progress import (
    check_or_update_chain_id,
    get_last_success_version,
    update_last_success_version,
)
from ledger_indexer.infrastructure.schema import apply_schema
from ledger_indexer.pipeline.fetcher import TransactionFetcher
from ledger_indexer.pipeline.rate import MovingAverage
from ledger_indexer.pipeline.watermark import VersionWatermark
from ledger_indexer.processors.abstract import TransactionProcessor
from ledger_indexer.utils.logging import get_logger

log = get_logger(__name__)

CHANNEL_SIZE = 100
RATE_WINDOW_MILLIS = 10_000
_POLL_SECONDS = 0.5


@dataclass(frozen=True)
class BatchOutcome:
    """What a worker reports for one claimed batch."""

    num_versions: int
    result: Optional[ProcessingResult] = None
    error: Optional[IndexerError] = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("BatchOutcome needs exactly one of result or error")


@dataclass
class TailerStats:
    versions_processed: int = 0
    records_written: int = 0
    batches: int = 0
    last_success_version: Optional[int] = None
    tps: float = 0.0


class Tailer:
    """
    Drives `processor` over batches claimed from `fetcher`.

    Parameters
    ----------
    processor : TransactionProcessor
        Decodes and persists one batch; must be safe to call concurrently.
    fetcher : TransactionFetcher
        Allocates gap-free batches to workers.
    pool : ConnectionPool
        Used for migrations, chain id checks and the resume cursor.
    settings : Settings | None
        Worker count, log cadence, lookback and chain id options.
    """

    def __init__(
        self,
        processor: TransactionProcessor,
        fetcher: TransactionFetcher,
        pool: ConnectionPool,
        settings: Optional[Settings] = None,
        channel_size: int = CHANNEL_SIZE,
    ) -> None:
        self.processor = processor
        self.fetcher = fetcher
        self.pool = pool
        self.settings = settings or get_settings()
        self.channel_size = channel_size
        self._stop = threading.Event()
        self._workers: List[threading.Thread] = []

    @property
    def processor_name(self) -> str:
        return self.processor.name

    def run_migrations(self) -> None:
        """Create the cursor, chain and domain tables if missing."""
        if self.settings.skip_migrations:
            log.info("Skipping migrations")
            return
        with self.pool.connection() as conn:
            apply_schema(conn)
        log.info("Schema is up to date")

    def get_start_version(self, lookback: int) -> Optional[int]:
        """
        Stored cursor minus `lookback` (floored at 0), or None on first run.

        Reprocessing a lookback window re-covers versions that may have been
        committed above the cursor when a previous run stopped.
        """
        with self.pool.connection() as conn:
            last_success = get_last_success_version(conn, self.processor_name)
        if last_success is None:
            return None
        return max(0, last_success - lookback)

    def resolve_start_version(self) -> int:
        if self.settings.starting_version is not None:
            log.info(
                "Starting from configured version",
                extra={
                    "processor_name": self.processor_name,
                    "start_version": self.settings.starting_version,
                },
            )
            return self.settings.starting_version
        start = self.get_start_version(self.settings.gap_lookback_versions)
        if start is None:
            log.info(
                "No stored progress, starting from genesis",
                extra={"processor_name": self.processor_name},
            )
            return 0
        log.info(
            "Resuming from stored progress",
            extra={
                "processor_name": self.processor_name,
                "start_version": start,
                "lookback": self.settings.gap_lookback_versions,
            },
        )
        return start

    def check_or_update_chain_id(self) -> int:
        """
        Make sure the source, the configuration and the database agree on the chain.

        Raises
        ------
        ChainIdMismatchError
            On any disagreement.
        """
        source_chain_id = self.fetcher.chain_id()
        expected = self.settings.chain_id
        if expected is not None and expected != source_chain_id:
            raise ChainIdMismatchError(
                expected=expected, actual=source_chain_id, source="fetch source"
            )
        with self.pool.connection() as conn:
            chain_id = check_or_update_chain_id(conn, source_chain_id)
        log.info("Chain id verified", extra={"chain_id": chain_id})
        return chain_id

    def stop(self) -> None:
        self._stop.set()
        self.fetcher.stop()

    def process_next_batch(self) -> Optional[BatchOutcome]:
        """Claim one batch and process it. None means the fetcher was stopped."""
        try:
            batch = self.fetcher.next_batch()
        except IndexerError as exc:
            return BatchOutcome(num_versions=0, error=exc)
        except Exception as exc:  # noqa: BLE001 - reported to the reporting loop, which raises
            error = FetchError(
                f"Fetching from version {self.fetcher.next_version} failed: {exc!r}"
            )
            error.__cause__ = exc
            return BatchOutcome(num_versions=0, error=error)
        if batch is None:
            return None
        try:
            result = self.processor.process(
                batch.transactions, batch.start_version, batch.end_version
            )
        except TransactionProcessingError as exc:
            return BatchOutcome(num_versions=len(batch), error=exc)
        except Exception as exc:  # noqa: BLE001 - reported to the reporting loop, which raises
            wrapped = TransactionProcessingError(
                exc, batch.start_version, batch.end_version, self.processor_name
            )
            return BatchOutcome(num_versions=len(batch), error=wrapped)
        return BatchOutcome(num_versions=len(batch), result=result)

    def run(self, until_version: Optional[int] = None) -> TailerStats:
        """
        Process batches until stopped, failed, or `until_version` is covered.

        Raises
        ------
        IndexerError
            The first batch, fetch or chain id failure; nothing after it is
            committed to the cursor.
        """
        self._stop.clear()
        self.fetcher.start()
        start_version = self.resolve_start_version()
        if self.settings.check_chain_id:
            self.check_or_update_chain_id()
        self.fetcher.set_version(start_version)

        watermark = VersionWatermark(start_version)
        channel: "queue.Queue[BatchOutcome]" = queue.Queue(maxsize=self.channel_size)
        self._workers = [
            threading.Thread(
                target=self._worker_loop,
                args=(channel,),
                name=f"{self.processor_name}-worker-{i}",
                daemon=True,
            )
            for i in range(self.settings.processor_tasks)
        ]
        log.info(
            "Starting tailer",
            extra={
                "processor_name": self.processor_name,
                "start_version": start_version,
                "tasks": len(self._workers),
                "batch_size": self.fetcher.batch_size,
            },
        )
        for worker in self._workers:
            worker.start()
        try:
            return self._report(channel, watermark, until_version)
        finally:
            self.stop()
            for worker in self._workers:
                worker.join(timeout=5.0)

    def _worker_loop(self, channel: "queue.Queue[BatchOutcome]") -> None:
        while not self._stop.is_set():
            outcome = self.process_next_batch()
            if outcome is None:
                return
            self._put(channel, outcome)
            if outcome.error is not None:
                return

    def _put(self, channel: "queue.Queue[BatchOutcome]", outcome: BatchOutcome) -> None:
        while not self._stop.is_set():
            try:
                channel.put(outcome, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def _report(
        self,
        channel: "queue.Queue[BatchOutcome]",
        watermark: VersionWatermark,
        until_version: Optional[int],
    ) -> TailerStats:
        stats = TailerStats()
        moving_average = MovingAverage(RATE_WINDOW_MILLIS)
        emit_every = self.settings.emit_every
        base = 0

        while not self._reached(watermark, until_version):
            try:
                outcome = channel.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                if self._stop.is_set():
                    break
                if not any(w.is_alive() for w in self._workers) and channel.empty():
                    self._fail(
                        IndexerError(
                            f"All {self.processor_name} workers exited without reporting "
                            f"(last success version {watermark.last_success_version})"
                        )
                    )
                continue

            if outcome.error is not None:
                self._fail(outcome.error)

            result = outcome.result
            if result is None:
                self._fail(IndexerError("Worker reported a batch without a result"))
            avg = moving_average.tick_now(outcome.num_versions)
            stats.versions_processed += outcome.num_versions
            stats.records_written += result.record_count
            stats.batches += 1
            stats.tps = avg * 1000

            frontier = watermark.complete(result.start_version, result.end_version)
            if frontier is not None:
                self._persist_progress(frontier)
                stats.last_success_version = frontier

            if emit_every and stats.versions_processed // emit_every != base:
                base = stats.versions_processed // emit_every
                log.info(
                    "Processed batch version",
                    extra={
                        "processor_name": self.processor_name,
                        "start_version": result.start_version,
                        "end_version": result.end_version,
                        "versions_processed": stats.versions_processed,
                        "records_written": stats.records_written,
                        "last_success_version": watermark.last_success_version,
                        "tps": round(stats.tps, 2),
                    },
                )

        log.info(
            "Tailer finished",
            extra={
                "processor_name": self.processor_name,
                "versions_processed": stats.versions_processed,
                "records_written": stats.records_written,
                "last_success_version": stats.last_success_version,
            },
        )
        return stats

    @staticmethod
    def _reached(watermark: VersionWatermark, until_version: Optional[int]) -> bool:
        if until_version is None:
            return False
        last = watermark.last_success_version
        return last is not None and last >= until_version

    def _persist_progress(self, version: int) -> None:
        with self.pool.connection() as conn:
            update_last_success_version(conn, self.processor_name, version)

    def _fail(self, error: IndexerError) -> NoReturn:
        self.stop()
        if isinstance(error, TransactionProcessingError):
            log.error(
                "Error processing transactions",
                extra={
                    "processor_name": error.processor_name,
                    "start_version": error.start_version,
                    "end_version": error.end_version,
                    "error": str(error.cause),
                },
            )
        else:
            log.error(
                "Tailer stopped on error",
                extra={"processor_name": self.processor_name, "error": str(error)},
            )
        raise error


__all__ = [
    "BatchOutcome",
    "CHANNEL_SIZE",
    "Tailer",
    "TailerStats",
]
