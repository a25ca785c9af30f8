"""
Fetching committed transactions in gap-free batches.

- `TransactionSource`: contract for anything that can serve transactions by
  version (a node's REST API, a replay file, an in-memory list in tests).
- `NodeTransactionSource`: `httpx` client for the node REST API.
- `TransactionFetcher`: hands out consecutive batches to concurrent workers.
  Allocation is serialized under a lock so no two workers ever receive
  overlapping ranges; transient source errors are retried with tenacity, and
  an empty response ("caught up") is polled rather than treated as an error.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import httpx
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from ledger_indexer.domain.errors import FetchContractError, FetchError
from ledger_indexer.domain.models import Transaction
from ledger_indexer.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class TransactionSource(Protocol):
    """
    Serves committed transactions by version.

    `get_batch` must start exactly at `start_version` and return the version
    to ask for next. An empty list means "no new data yet"; connectivity
    problems must raise `FetchError` instead.
    """

    def get_batch(self, start_version: int, limit: int) -> Tuple[List[Transaction], int]:
        ...

    def chain_id(self) -> int:
        ...


@dataclass(frozen=True)
class TransactionBatch:
    """Consecutive transactions covering the inclusive range [start, end]."""

    transactions: Sequence[Transaction]
    start_version: int
    end_version: int

    def __len__(self) -> int:
        return len(self.transactions)


class NodeTransactionSource:
    """
    Minimal client for the node REST API.

    Parameters
    ----------
    url : str
        Node base URL (without the `/v1` suffix).
    timeout_s : float
        Per-operation timeout in seconds (connect/read/write).
    client : httpx.Client | None
        Pre-built client, mostly for tests (`httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_s: float = 20.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.client = client or httpx.Client(timeout=httpx.Timeout(timeout_s))

    def _get(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            response = self.client.get(f"{self.url}/v1{path}", params=params)
        except httpx.HTTPError as exc:
            raise FetchError(f"Node request {path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise FetchError(
                f"Node request {path} returned HTTP {response.status_code}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(
                f"Node request {path} returned a non-JSON body: {response.text[:200]}"
            ) from exc

    def _ledger_info(self, field: str) -> int:
        info = self._get("")
        try:
            return int(info[field])
        except (KeyError, TypeError, ValueError) as exc:
            raise FetchError(f"Node ledger info has no usable {field!r}: {info!r}") from exc

    def chain_id(self) -> int:
        """Return the chain id the node reports in its ledger info."""
        return self._ledger_info("chain_id")

    def ledger_version(self) -> int:
        return self._ledger_info("ledger_version")

    def get_batch(self, start_version: int, limit: int) -> Tuple[List[Transaction], int]:
        """Fetch up to `limit` transactions starting at `start_version`."""
        if start_version > self.ledger_version():
            return [], start_version
        raw = self._get("/transactions", params={"start": start_version, "limit": limit})
        if not isinstance(raw, list):
            raise FetchContractError(
                f"Node returned {type(raw).__name__} instead of a transaction list"
            )
        try:
            transactions = [Transaction.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise FetchContractError(
                f"Node returned malformed transactions from version {start_version}: {exc}"
            ) from exc
        next_version = transactions[-1].version + 1 if transactions else start_version
        return transactions, next_version

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and not isinstance(exc, FetchContractError)


def validate_batch(
    transactions: Sequence[Transaction], start_version: int, next_version: int
) -> TransactionBatch:
    """
    Enforce the gap-free contract on a non-empty source response.

    Raises
    ------
    FetchContractError
        If the batch does not start at `start_version`, skips or repeats a
        version, or disagrees with `next_version`.
    """
    expected = start_version
    for transaction in transactions:
        if transaction.version != expected:
            raise FetchContractError(
                f"Expected version {expected}, source returned {transaction.version}"
            )
        expected += 1
    if next_version != expected:
        raise FetchContractError(
            f"Source reported next version {next_version}, expected {expected}"
        )
    return TransactionBatch(
        transactions=tuple(transactions),
        start_version=start_version,
        end_version=expected - 1,
    )


class TransactionFetcher:
    """
    Thread-safe batch allocator over a `TransactionSource`.

    `next_batch` blocks while the source has nothing new and returns None once
    `stop` has been called.
    """

    def __init__(
        self,
        source: TransactionSource,
        batch_size: int,
        poll_interval_seconds: float = 0.5,
        max_attempts: int = 5,
        retry_wait_seconds: float = 1.0,
    ) -> None:
        self.source = source
        self.batch_size = batch_size
        self.poll_interval_seconds = poll_interval_seconds
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._next_version = 0
        self._retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=retry_wait_seconds, max=10 * retry_wait_seconds),
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @property
    def next_version(self) -> int:
        return self._next_version

    def set_version(self, version: int) -> None:
        with self._lock:
            self._next_version = version

    def start(self) -> None:
        """Re-arm a stopped fetcher so `next_batch` hands out batches again."""
        self._stopped.clear()

    def stop(self) -> None:
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def chain_id(self) -> int:
        return self._retrying(self.source.chain_id)

    def next_batch(self) -> Optional[TransactionBatch]:
        """Claim the next consecutive batch for the calling worker."""
        with self._lock:
            while not self._stopped.is_set():
                start = self._next_version
                transactions, next_version = self._retrying(
                    self.source.get_batch, start, self.batch_size
                )
                if transactions:
                    batch = validate_batch(transactions, start, next_version)
                    self._next_version = next_version
                    return batch
                self._stopped.wait(self.poll_interval_seconds)
        return None

    def _log_retry(self, retry_state: Any) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "Fetch failed, retrying",
            extra={
                "version": self._next_version,
                "attempt": retry_state.attempt_number,
                "error": str(exc),
            },
        )


__all__ = [
    "NodeTransactionSource",
    "TransactionBatch",
    "TransactionFetcher",
    "TransactionSource",
    "validate_batch",
]
