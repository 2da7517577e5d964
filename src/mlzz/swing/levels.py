"""Multi-level folding.

fold_level() turns a finished level-N history into a level-(N+1) zigzag. Only
escalated pivots (|dir| == 2) are guaranteed a place one level up; normal pivots
are kept as the best high / best low seen since the last emitted pivot and are
only emitted when they are needed to keep the new level alternating (or to keep
a larger swing the escalated pivot would otherwise hide).

The source state is never touched: every pivot is deep-copied before it is
re-stamped, and each folded pivot owns copies of the source pivots it covers.
A fold that does not compress the source returns an empty history.
"""

from __future__ import annotations

from typing import List, Optional

from mlzz.logging import get_logger
from mlzz.swing.history import append_pivot, remove_last_pivot
from mlzz.swing.model import Pivot, ZigzagState

log = get_logger("mlzz.levels")


def _lift(pivot: Pivot, component_index: int) -> Pivot:
    out = pivot.copy()
    out.level = pivot.level + 1
    out.component_index = component_index
    out.sub_components = 0
    out.micro_components = 0
    out.sub_pivots = []
    out.ratio = None
    out.bar_ratio = None
    out.size_ratio = None
    return out


def _emit_escalated(out: ZigzagState, pivot: Pivot, same: Optional[Pivot], opposite: Optional[Pivot],
                    components: List[Pivot]) -> None:
    d = pivot.polarity
    last = out.last_pivot

    if last is None:
        if opposite is not None:
            append_pivot(out.history, opposite, components)
        append_pivot(out.history, pivot, components)
        return

    if last.polarity == d:
        if d * pivot.price >= d * last.price:
            remove_last_pivot(out.history)
        elif opposite is not None:
            append_pivot(out.history, opposite, components)
        else:
            log.debug("escalated pivot skipped", extra={"index": pivot.index, "dir": pivot.dir, "zz_level": pivot.level})
            return
        append_pivot(out.history, pivot, components)
        return

    # last pivot is on the other side: keep a larger same-side swing hidden behind this one
    if (same is not None and opposite is not None
            and d * same.price > d * pivot.price and same.index < opposite.index):
        append_pivot(out.history, same, components)
        append_pivot(out.history, opposite, components)
    append_pivot(out.history, pivot, components)


def fold_level(source: ZigzagState) -> ZigzagState:
    out = ZigzagState(
        length=source.length,
        number_of_pivots=source.number_of_pivots,
        offset=0,
        level=source.level + 1,
    )
    components = source.pivots()
    bullish: Optional[Pivot] = None
    bearish: Optional[Pivot] = None

    for i in range(len(components) - 1, -1, -1):
        pv = _lift(components[i], i)
        d = pv.polarity
        if pv.is_escalated:
            same, opposite = (bullish, bearish) if d > 0 else (bearish, bullish)
            _emit_escalated(out, pv, same, opposite, components)
            bullish = None
            bearish = None
            continue

        cur = bullish if d > 0 else bearish
        if cur is None or d * pv.price >= d * cur.price:
            if d > 0:
                bullish = pv
            else:
                bearish = pv

    if len(out.history) >= len(components):
        log.debug("level not compressed", extra={"zz_level": out.level, "source": len(components),
                                                 "folded": len(out.history)})
        out.history.clear()
    else:
        log.debug("level folded", extra={"zz_level": out.level, "source": len(components),
                                         "folded": len(out.history)})
    return out


def fold_levels(state: ZigzagState, max_levels: Optional[int] = None) -> List[ZigzagState]:
    """Fold repeatedly until a level comes back empty (or max_levels is reached)."""
    levels: List[ZigzagState] = []
    cur = state
    while max_levels is None or len(levels) < max_levels:
        nxt = fold_level(cur)
        if not nxt.history:
            break
        levels.append(nxt)
        cur = nxt
    return levels
