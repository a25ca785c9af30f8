from __future__ import annotations

import time
from collections import deque
from typing import Deque, Tuple


def now_millis() -> int:
    return int(time.monotonic() * 1000)


class MovingAverage:
    """
    Trailing rate over a time window, in values per millisecond.

    Not thread-safe; the tailer's reporting loop is its only writer.
    """

    def __init__(self, window_millis: int) -> None:
        self.window_millis = window_millis
        self._values: Deque[Tuple[int, int]] = deque()
        self.sum = 0

    def tick_now(self, value: int) -> float:
        return self.tick(now_millis(), value)

    def tick(self, timestamp_millis: int, value: int) -> float:
        self._values.append((timestamp_millis, value))
        self.sum += value
        while self._values and timestamp_millis - self._values[0][0] > self.window_millis:
            _, expired = self._values.popleft()
            self.sum -= expired
        return self.avg()

    def avg(self) -> float:
        if len(self._values) < 2:
            return 0.0
        elapsed = self._values[-1][0] - self._values[0][0]
        if elapsed <= 0:
            return 0.0
        return self.sum / elapsed

    def __len__(self) -> int:
        return len(self._values)


__all__ = ["MovingAverage", "now_millis"]
