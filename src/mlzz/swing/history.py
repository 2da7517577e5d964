"""Pivot history aggregation.

append_pivot() is the only way a pivot enters a history. It stamps the derived
fields of the incoming pivot against the retained ones, then pushes it to the
front of the (most-recent-first, capacity-bounded) deque:

    ratio      = |last - new| / |second - last|
    bar_ratio  = same on bar indexes
    size_ratio = |last - new| / |third - second|
    dir        = sign * 2 when new extends past `second` in its own direction, else sign * 1

Two adjacent pivots with the same polarity mean the caller corrupted the
history (replacing a pivot must remove it first), so that raises.
"""

from __future__ import annotations

from typing import Deque, List, Optional, Sequence

from mlzz.logging import get_logger
from mlzz.swing.model import Pivot

log = get_logger("mlzz.history")

RATIO_DIGITS = 3


class ZigzagError(Exception):
    pass


class DirectionMismatchError(ZigzagError):
    """Appending would put two same-polarity pivots next to each other."""

    def __init__(self, last: Pivot, new: Pivot):
        self.last = last
        self.new = new
        super().__init__(
            f"direction mismatch: last pivot dir={last.dir} at index={last.index} "
            f"and new pivot dir={new.dir} at index={new.index}"
        )


def ratio(numerator: float, denominator: float) -> Optional[float]:
    """round(|num| / |den|, 3); None when the denominator is zero."""
    den = abs(float(denominator))
    if den == 0.0:
        return None
    return round(abs(float(numerator)) / den, RATIO_DIGITS)


def _indicator_ratios(new: Pivot, last: Pivot, second: Pivot) -> List[Optional[float]]:
    last_vals = last.indicators()
    second_vals = second.indicators()
    out: List[Optional[float]] = []
    for name, value in zip(new.indicator_names, new.indicator_values):
        if name not in last_vals or name not in second_vals:
            out.append(None)
            continue
        out.append(ratio(last_vals[name] - value, second_vals[name] - last_vals[name]))
    return out


def append_pivot(history: Deque[Pivot], pivot: Pivot,
                 components: Optional[Sequence[Pivot]] = None) -> Pivot:
    """Stamp `pivot` against `history` and push it to the front.

    components: the lower-level history a folded pivot was taken from; when given,
    sub_components / sub_pivots / micro_components are filled from it.
    """
    sign = pivot.polarity
    if sign == 0:
        raise ValueError(f"pivot dir must be non-zero (index={pivot.index})")

    magnitude = 1
    pivot.indicator_ratios = [None] * len(pivot.indicator_names)
    if history:
        last = history[0]
        if last.polarity == sign:
            log.error("direction mismatch", extra={"last_dir": last.dir, "new_dir": pivot.dir,
                                                   "last_index": last.index, "new_index": pivot.index})
            raise DirectionMismatchError(last, pivot)

        if len(history) >= 2:
            second = history[1]
            if sign * pivot.price > sign * second.price:
                magnitude = 2
            pivot.ratio = ratio(last.price - pivot.price, second.price - last.price)
            pivot.bar_ratio = ratio(last.index - pivot.index, second.index - last.index)
            pivot.indicator_ratios = _indicator_ratios(pivot, last, second)
            if len(history) >= 3:
                third = history[2]
                pivot.size_ratio = ratio(last.price - pivot.price, third.price - second.price)

        if components is not None:
            pivot.sub_components = last.component_index - pivot.component_index
            lo, hi = pivot.component_index, last.component_index
            pivot.sub_pivots = [p.copy() for p in list(components)[lo:hi]]
            pivot.micro_components = sum(max(1, p.micro_components) for p in pivot.sub_pivots)

    pivot.dir = sign * magnitude

    if history.maxlen is not None and len(history) >= history.maxlen:
        evicted = history[-1]
        log.debug("pivot evicted", extra={"index": evicted.index, "dir": evicted.dir, "zz_level": evicted.level})
    history.appendleft(pivot)
    return pivot


def remove_last_pivot(history: Deque[Pivot]) -> Pivot:
    return history.popleft()
