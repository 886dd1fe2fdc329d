"""Logical clock used to evaluate grant expirations."""

from __future__ import annotations

import threading
from typing import Protocol


class Clock(Protocol):
    def height(self) -> int: ...


class BlockClock:
    """Monotonically non-decreasing ordinal height, advanced by its owner."""

    def __init__(self, start: int = 1):
        if start < 0:
            raise ValueError(f"Clock height cannot be negative: {start}")
        self._height = start
        self._lock = threading.Lock()

    def height(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError(f"Clock cannot move backwards by {blocks}")
        with self._lock:
            self._height += blocks
            return self._height

    def set(self, height: int) -> int:
        with self._lock:
            if height < self._height:
                raise ValueError(f"Clock cannot move backwards from {self._height} to {height}")
            self._height = height
            return self._height
