"""Bounded, age-addressed store of recent frames."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from leapstream.entities import Frame

DEFAULT_HISTORY_SIZE = 60


class FrameHistory:
    """Fixed-capacity frame store, newest first.

    ``get(0)`` is the most recently pushed frame. Pushing into a full store
    evicts the oldest entry.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._frames: deque[Frame] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._frames.maxlen

    def push(self, frame: Frame):
        self._frames.appendleft(frame)

    def get(self, age: int = 0) -> Frame:
        """Frame at ``age``, or an invalid Frame when nothing is stored there."""
        if age < 0 or age >= len(self._frames):
            return Frame.invalid()
        return self._frames[age]

    def clear(self):
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)
