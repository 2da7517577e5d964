"""Incremental zigzag engine.

One bar at a time:
- update(state, bar)        push the bar, apply the offset delay, evaluate the window, calculate()
- calculate(state, sample)  the per-bar state machine (replace / alternate / overflow)
- Zigzag                    small facade owning one ZigzagState
- run_zigzag(bars, cfg)     replay helper over a bar iterable or BarSeries

Per call, in order:
  1. replace-extend: the last pivot's side has its window extreme on the current bar and it
     is at least as extreme as the last pivot -> the last pivot is replaced
  2. new-alternate: the opposite side has its extreme on the current bar -> new opposite pivot
     (after a replace only when that extreme crosses the pivot before the last one)
  3. overflow: nothing fired and the last pivot is `length` bars old -> the opposite window
     extreme is recorded at the bar where it happened
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from mlzz.data.types import Bar
from mlzz.logging import get_logger
from mlzz.swing.history import append_pivot, remove_last_pivot
from mlzz.swing.levels import fold_level, fold_levels
from mlzz.swing.model import Pivot, Point, ZigzagConfig, ZigzagFlags, ZigzagState
from mlzz.swing.window import WindowSample, evaluate_window

log = get_logger("mlzz.zigzag")


def _make_pivot(state: ZigzagState, sample: WindowSample, price: float, polarity: int) -> Pivot:
    names, values = sample.channel_values(polarity)
    return Pivot(
        point=Point(index=sample.bar.index, time=sample.bar.time, price=float(price)),
        dir=polarity,
        level=state.level,
        indicator_names=names,
        indicator_values=values,
    )


def _bars_since(state: ZigzagState, bar: Bar, pivot: Pivot) -> int:
    """Buffered bars between `pivot` and `bar`, independent of how the host numbers them.

    A pivot older than the buffer is at least a full window back. A sample whose bar is
    not buffered (calculate() driven directly) falls back to the index difference.
    """
    indexes = [b.index for b in state.bars]
    if bar.index not in indexes:
        return bar.index - pivot.index
    pos = indexes.index(bar.index)
    if pivot.index not in indexes:
        return max(state.length, pos + 1)
    return pos - indexes.index(pivot.index)


def calculate(state: ZigzagState, sample: WindowSample) -> ZigzagFlags:
    """Apply one evaluated window to the state.

    `sample` must be the window evaluated at `state.offset` bars back from the newest
    buffered bar; the overflow branch re-evaluates from `state.bars` relative to it.
    Raises DirectionMismatchError if the history was corrupted.
    """
    state.flags = ZigzagFlags()
    history = state.history
    last = state.last_pivot
    p_dir = last.polarity if last is not None else 1
    distance = _bars_since(state, sample.bar, last) if last is not None else 0

    same_val, same_off = sample.extreme(p_dir)
    opp_val, opp_off = sample.extreme(-p_dir)
    force_double = len(history) >= 2 and (-p_dir) * opp_val > (-p_dir) * history[1].price

    new_pivot = False
    double_pivot = False
    update_last = False

    if last is not None and same_off == 0 and p_dir * same_val >= p_dir * last.price:
        remove_last_pivot(history)
        pv = append_pivot(history, _make_pivot(state, sample, same_val, p_dir))
        update_last = True
        new_pivot = True
        log.debug("pivot replaced", extra={"index": pv.index, "price": pv.price, "dir": pv.dir,
                                           "replaced_index": last.index, "zz_level": state.level})

    if opp_off == 0 and (not update_last or force_double):
        pv = append_pivot(history, _make_pivot(state, sample, opp_val, -p_dir))
        double_pivot = update_last
        new_pivot = True
        log.debug("pivot added", extra={"index": pv.index, "price": pv.price, "dir": pv.dir,
                                        "double": double_pivot, "zz_level": state.level})

    if not new_pivot and last is not None and distance >= state.length:
        shifted = evaluate_window(list(state.bars), state.length, shift=state.offset + opp_off)
        pv = append_pivot(history, _make_pivot(state, shifted, opp_val, -p_dir))
        new_pivot = True
        log.debug("overflow pivot", extra={"index": pv.index, "price": pv.price, "dir": pv.dir,
                                           "distance": distance, "zz_level": state.level})

    state.flags = ZigzagFlags(new_pivot=new_pivot, double_pivot=double_pivot, update_last_pivot=update_last)
    return state.flags


def update(state: ZigzagState, bar: Bar) -> ZigzagFlags:
    """Feed one bar. Bars must arrive with strictly increasing index."""
    if state.bars and bar.index <= state.bars[-1].index:
        raise ValueError(f"bars must arrive in increasing index order "
                         f"(got {bar.index} after {state.bars[-1].index})")
    state.bars.append(bar)
    if len(state.bars) <= state.offset:
        state.flags = ZigzagFlags()
        return state.flags
    sample = evaluate_window(list(state.bars), state.length, shift=state.offset)
    return calculate(state, sample)


class Zigzag:
    """Owns one ZigzagState and feeds it bar by bar."""

    def __init__(self, cfg: Optional[ZigzagConfig] = None, state: Optional[ZigzagState] = None):
        self.state = state if state is not None else ZigzagState.from_config(cfg or ZigzagConfig())

    @property
    def history(self) -> List[Pivot]:
        return self.state.pivots()

    @property
    def flags(self) -> ZigzagFlags:
        return self.state.flags

    @property
    def level(self) -> int:
        return self.state.level

    def update(self, bar: Bar) -> ZigzagFlags:
        return update(self.state, bar)

    def run(self, bars: Iterable[Bar]) -> "Zigzag":
        for bar in bars:
            update(self.state, bar)
        return self

    def next_level(self) -> "Zigzag":
        return Zigzag(state=fold_level(self.state))

    def levels(self, max_levels: Optional[int] = None) -> List["Zigzag"]:
        return [Zigzag(state=s) for s in fold_levels(self.state, max_levels=max_levels)]


def run_zigzag(bars: Iterable[Bar], cfg: Optional[ZigzagConfig] = None) -> ZigzagState:
    """Replay `bars` from an empty state; identical input gives identical history."""
    zz = Zigzag(cfg).run(bars)
    log.debug("zigzag done", extra={"pivots": len(zz.state.history), "length": zz.state.length})
    return zz.state
