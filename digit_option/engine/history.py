"""
Fixed-size rolling price history for chart display.

The tick index is a display counter (chart x-axis), not contract state.
"""

from __future__ import annotations

from collections import deque
from typing import NamedTuple

HISTORY_LEN: int = 10


class PricePoint(NamedTuple):
    t: int
    price: float


class PriceHistory:
    """Keep the last ``maxlen`` quotes together with a running tick index.

    Examples:
        >>> h = PriceHistory(maxlen=2)
        >>> for q in (1.0, 2.0, 3.0):
        ...     _ = h.push(q)
        >>> h.points
        [PricePoint(t=2, price=2.0), PricePoint(t=3, price=3.0)]
    """

    def __init__(self, maxlen: int = HISTORY_LEN) -> None:
        if maxlen < 1:
            raise ValueError(f"maxlen must be >= 1, got {maxlen}.")
        self.maxlen = maxlen
        self._points: deque[PricePoint] = deque(maxlen=maxlen)
        self._tick_index = 0

    def push(self, price: float) -> PricePoint:
        self._tick_index += 1
        point = PricePoint(self._tick_index, float(price))
        self._points.append(point)
        return point

    def reset(self) -> None:
        self._points.clear()
        self._tick_index = 0

    @property
    def tick_index(self) -> int:
        return self._tick_index

    @property
    def points(self) -> list[PricePoint]:
        return list(self._points)

    @property
    def last(self) -> PricePoint | None:
        return self._points[-1] if self._points else None

    def __len__(self) -> int:
        return len(self._points)
