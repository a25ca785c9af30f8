"""
Processors package for the ledger indexer.

Re-exports the processor interfaces and holds the name -> factory registry the
tailer uses to pick a processor at startup.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from psycopg_pool import ConnectionPool

from ledger_indexer.config import Settings
from ledger_indexer.domain.errors import ConfigurationError
from ledger_indexer.processors.abstract import (
    AbstractTransactionProcessor,
    TransactionProcessor,
)
from ledger_indexer.processors.marketplace import NAME as MARKETPLACE_PROCESSOR_NAME
from ledger_indexer.processors.marketplace import MarketplaceProcessor

ProcessorFactory = Callable[[ConnectionPool, Settings], TransactionProcessor]


def _processor_factories() -> Dict[str, ProcessorFactory]:
    """Registry of available processors."""
    return {
        MARKETPLACE_PROCESSOR_NAME: lambda pool, settings: MarketplaceProcessor(
            pool,
            marketplace_address=settings.marketplace_address,
            max_params=settings.max_query_params,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        ),
    }


def available_processors() -> List[str]:
    """List available processor names."""
    return sorted(_processor_factories().keys())


def resolve_processor(
    name: str, pool: ConnectionPool, settings: Settings
) -> TransactionProcessor:
    """
    Build the processor registered under `name`.

    Raises
    ------
    ConfigurationError
        If no processor is registered under that name.
    """
    factories = _processor_factories()
    if name not in factories:
        raise ConfigurationError(
            f"Unknown processor '{name}'. Available: {', '.join(sorted(factories))}"
        )
    return factories[name](pool, settings)


__all__ = [
    "AbstractTransactionProcessor",
    "MarketplaceProcessor",
    "TransactionProcessor",
    "available_processors",
    "resolve_processor",
]
