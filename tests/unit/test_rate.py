from __future__ import annotations

import pytest

from ledger_indexer.pipeline.rate import MovingAverage

WINDOW_MILLIS = 10_000


def test_moving_average_evicts_samples_outside_window() -> None:
    ma = MovingAverage(WINDOW_MILLIS)

    ma.tick(0, 5)
    ma.tick(5_000, 5)
    avg = ma.tick(12_000, 5)

    assert ma.sum == 10
    assert len(ma) == 2
    assert avg == pytest.approx(10 / 7_000)


def test_moving_average_keeps_sample_exactly_at_window_edge() -> None:
    ma = MovingAverage(WINDOW_MILLIS)

    ma.tick(0, 1)
    ma.tick(WINDOW_MILLIS, 1)

    assert len(ma) == 2
    assert ma.avg() == pytest.approx(2 / WINDOW_MILLIS)


def test_moving_average_needs_elapsed_time() -> None:
    ma = MovingAverage(WINDOW_MILLIS)
    assert ma.avg() == 0.0

    ma.tick(100, 50)
    assert ma.avg() == 0.0

    ma.tick(100, 50)
    assert ma.avg() == 0.0


def test_tick_now_uses_monotonic_clock(monkeypatch) -> None:
    clock = iter([1_000, 3_000])
    monkeypatch.setattr("ledger_indexer.pipeline.rate.now_millis", lambda: next(clock))
    ma = MovingAverage(WINDOW_MILLIS)

    ma.tick_now(10)
    avg = ma.tick_now(10)

    assert avg == pytest.approx(20 / 2_000)
