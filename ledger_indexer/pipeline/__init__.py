"""
Pipeline package: batch fetching, completion tracking, throughput and the tailer.
"""

from ledger_indexer.pipeline.fetcher import (
    NodeTransactionSource,
    TransactionBatch,
    TransactionFetcher,
    TransactionSource,
)
from ledger_indexer.pipeline.rate import MovingAverage
from ledger_indexer.pipeline.tailer import Tailer, TailerStats
from ledger_indexer.pipeline.watermark import VersionWatermark

__all__ = [
    "MovingAverage",
    "NodeTransactionSource",
    "Tailer",
    "TailerStats",
    "TransactionBatch",
    "TransactionFetcher",
    "TransactionSource",
    "VersionWatermark",
]
