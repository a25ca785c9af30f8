from __future__ import annotations

import pytest

from ledger_indexer.pipeline.watermark import VersionWatermark


def test_in_order_completion_advances_frontier() -> None:
    watermark = VersionWatermark(0)

    assert watermark.last_success_version is None
    assert watermark.complete(0, 99) == 99
    assert watermark.complete(100, 199) == 199
    assert watermark.next_version == 200


def test_out_of_order_completion_waits_for_gap() -> None:
    watermark = VersionWatermark(1_000)

    assert watermark.complete(1_100, 1_199) is None
    assert watermark.complete(1_200, 1_299) is None
    assert watermark.pending_ranges == 2
    assert watermark.last_success_version == 999

    assert watermark.complete(1_000, 1_099) == 1_299
    assert watermark.pending_ranges == 0


def test_frontier_stops_at_remaining_gap() -> None:
    watermark = VersionWatermark(0)
    watermark.complete(10, 19)
    watermark.complete(30, 39)

    assert watermark.complete(0, 9) == 19
    assert watermark.pending_ranges == 1


@pytest.mark.parametrize(("start", "end"), [(5, 4), (0, 9), (3, 12), (20, 25)])
def test_rejects_empty_or_repeated_ranges(start: int, end: int) -> None:
    watermark = VersionWatermark(0)
    watermark.complete(0, 9)
    watermark.complete(20, 29)

    with pytest.raises(ValueError):
        watermark.complete(start, end)
