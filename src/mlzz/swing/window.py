"""Trailing-window extreme evaluation.

evaluate_window(bars, length, shift) looks at the `length` bars ending at the
evaluated bar (bars[-1 - shift]) and reports where the highest high and the
lowest low sit, as bars-back offsets from the evaluated bar (0 = that bar).
Ties resolve to the most recent bar.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from mlzz.data.types import Bar


@dataclass(frozen=True)
class WindowSample:
    bar: Bar
    high_extreme: float
    high_offset: int
    low_extreme: float
    low_offset: int
    channels: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def extreme(self, polarity: int) -> Tuple[float, int]:
        """(value, offset) of the high (polarity > 0) or low (polarity < 0) extreme."""
        if polarity > 0:
            return self.high_extreme, self.high_offset
        return self.low_extreme, self.low_offset

    def channel_values(self, polarity: int) -> Tuple[List[str], List[float]]:
        """Channel names and the side of each channel matching the pivot polarity."""
        names = list(self.channels.keys())
        side = 0 if polarity > 0 else 1
        return names, [float(self.channels[n][side]) for n in names]


def evaluate_window(bars: Sequence[Bar], length: int, shift: int = 0) -> WindowSample:
    if length < 1:
        raise ValueError(f"length must be >= 1 (got {length})")
    n = len(bars)
    cur = n - 1 - int(shift)
    if cur < 0:
        raise ValueError(f"window is empty (bars={n}, shift={shift})")

    start = max(0, cur - int(length) + 1)
    hi_val = bars[cur].high
    hi_off = 0
    lo_val = bars[cur].low
    lo_off = 0
    # walk backwards from the evaluated bar; strict comparison keeps the newest on ties
    for pos in range(cur - 1, start - 1, -1):
        b = bars[pos]
        if b.high > hi_val:
            hi_val, hi_off = b.high, cur - pos
        if b.low < lo_val:
            lo_val, lo_off = b.low, cur - pos

    return WindowSample(
        bar=bars[cur],
        high_extreme=float(hi_val),
        high_offset=hi_off,
        low_extreme=float(lo_val),
        low_offset=lo_off,
        channels=dict(bars[cur].indicators),
    )
