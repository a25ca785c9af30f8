"""
Error taxonomy for the ledger indexer.

Decode misses (an unrecognized tag or function) are not errors and never show
up here: decoders return ``None`` for them. Everything below is loud.
"""

from __future__ import annotations

from typing import Any, Tuple


class IndexerError(Exception):
    """Base class for all indexer failures."""


class ConfigurationError(IndexerError):
    """Startup configuration is unusable (unknown processor, bad settings)."""


class ChainIdMismatchError(ConfigurationError):
    """The fetch source or the database belongs to a different network."""

    def __init__(self, expected: int, actual: int, source: str) -> None:
        super().__init__(
            f"Chain id mismatch from {source}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
        self.source = source


class DecodeError(IndexerError):
    """A recognized tag or function whose payload does not match its shape."""

    def __init__(self, version: int, kind: str, type_tag: str, data: Any) -> None:
        super().__init__(
            f"Version {version} failed! Failed to parse {kind} {type_tag}, data {data!r}"
        )
        self.version = version
        self.kind = kind
        self.type_tag = type_tag
        self.data = data


class FetchError(IndexerError):
    """The fetch source could not be reached or returned an unusable response."""


class FetchContractError(FetchError):
    """The fetch source returned a batch that breaks the gap-free contract."""


class TransactionProcessingError(IndexerError):
    """A batch could not be processed; carries the range and processor name."""

    def __init__(
        self,
        cause: BaseException,
        start_version: int,
        end_version: int,
        processor_name: str,
    ) -> None:
        super().__init__(
            f"[{processor_name}] failed to process versions "
            f"{start_version}..{end_version}: {cause}"
        )
        self.cause = cause
        self.start_version = start_version
        self.end_version = end_version
        self.processor_name = processor_name

    def inner(self) -> Tuple[BaseException, int, int, str]:
        return self.cause, self.start_version, self.end_version, self.processor_name


__all__ = [
    "ChainIdMismatchError",
    "ConfigurationError",
    "DecodeError",
    "FetchContractError",
    "FetchError",
    "IndexerError",
    "TransactionProcessingError",
]
