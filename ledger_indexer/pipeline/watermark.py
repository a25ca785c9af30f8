"""
Contiguous-completion watermark over out-of-order version ranges.

Workers finish batches in any order. The resume cursor may only move to the
end of the longest gap-free prefix of completed versions, so finished ranges
that sit beyond a gap are parked until the gap closes.

All ranges are inclusive on both ends: [start, end].
"""

from __future__ import annotations

from typing import Dict, Optional


class VersionWatermark:
    """Tracks completed ranges starting at `start_version`."""

    def __init__(self, start_version: int) -> None:
        self._next = start_version
        self._pending: Dict[int, int] = {}

    @property
    def next_version(self) -> int:
        """First version not yet known to be complete."""
        return self._next

    @property
    def last_success_version(self) -> Optional[int]:
        """Highest version with no gap below it, or None before any progress."""
        return self._next - 1 if self._next > 0 else None

    @property
    def pending_ranges(self) -> int:
        return len(self._pending)

    def complete(self, start: int, end: int) -> Optional[int]:
        """
        Record [start, end] as done.

        Returns the new `last_success_version` if the frontier advanced,
        otherwise None.

        Raises
        ------
        ValueError
            If the range is empty or overlaps one already recorded.
        """
        if end < start:
            raise ValueError(f"Empty version range {start}..{end}")
        if start < self._next or start in self._pending:
            raise ValueError(f"Version range {start}..{end} was already completed")

        self._pending[start] = end
        advanced = False
        while self._next in self._pending:
            self._next = self._pending.pop(self._next) + 1
            advanced = True
        return self._next - 1 if advanced else None


__all__ = ["VersionWatermark"]
