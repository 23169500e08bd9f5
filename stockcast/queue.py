"""Monotonic queue for sliding-window maxima and minima."""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable, Iterator

Compare = Callable[[float, float], bool]


def max_compare(a: float, b: float) -> bool:
    """Drop an older value that cannot be a window maximum any more."""
    return a <= b


def min_compare(a: float, b: float) -> bool:
    """Drop an older value that cannot be a window minimum any more."""
    return a >= b


class MonotonicQueue:
    """Values kept in monotonic order so the front is the window's extreme."""

    def __init__(self, window_size: int, compare: Compare) -> None:
        if window_size < 1:
            raise ValueError("window size must be at least 1")
        self.window_size = window_size
        self._compare = compare
        self._items: deque[tuple[float, int]] = deque()

    def push(self, value: float, index: int) -> None:
        """Add a value, discarding older values it dominates."""
        while self._items and self._compare(self._items[-1][0], value):
            self._items.pop()
        self._items.append((value, index))

    def expire(self, window_start: int) -> None:
        """Drop values whose index lies before the window start."""
        while self._items and self._items[0][1] < window_start:
            self._items.popleft()

    def front(self) -> float:
        """The extreme value of the current window."""
        if not self._items:
            raise IndexError("front of an empty queue")
        return self._items[0][0]

    def __len__(self) -> int:
        return len(self._items)


def sliding_extreme(values: Iterable[float], window: int, compare: Compare) -> Iterator[float]:
    """Yield the extreme of each full window of the given size."""
    queue = MonotonicQueue(window, compare)
    for index, value in enumerate(values):
        queue.push(value, index)
        queue.expire(index - window + 1)
        if index >= window - 1:
            yield queue.front()