from collections import deque

import pytest

from mlzz.swing.history import DirectionMismatchError, append_pivot, ratio
from mlzz.swing.model import Pivot, Point


def _pv(index, price, d, **kw):
    return Pivot(point=Point(index=index, time=index, price=price), dir=d, **kw)


def test_ratio_helper():
    assert ratio(2, -4) == 0.5
    assert ratio(1, 3) == 0.333
    assert ratio(5, 0) is None


def test_first_pivot_has_no_ratios():
    h = deque(maxlen=10)
    p = append_pivot(h, _pv(0, 10.0, -1))
    assert list(h) == [p]
    assert p.ratio is None and p.bar_ratio is None and p.size_ratio is None
    assert p.dir == -1


def test_ratio_against_last_two_pivots():
    h = deque(maxlen=10)
    append_pivot(h, _pv(0, 10.0, -1))
    append_pivot(h, _pv(4, 14.0, 1))
    p = append_pivot(h, _pv(6, 12.0, -1))
    assert p.ratio == 0.5
    assert p.bar_ratio == 0.5
    assert p.size_ratio is None
    assert p.dir == -1


def test_size_ratio_and_escalation():
    h = deque(maxlen=10)
    for idx, price, d in [(0, 10.0, -1), (4, 14.0, 1), (6, 12.0, -1)]:
        append_pivot(h, _pv(idx, price, d))
    p = append_pivot(h, _pv(9, 20.0, 1))
    assert p.ratio == 4.0
    assert p.bar_ratio == 1.5
    assert p.size_ratio == 2.0
    assert p.dir == 2
    assert [x.price for x in h] == [20.0, 12.0, 14.0, 10.0]


def test_escalation_is_recomputed_not_trusted():
    h = deque(maxlen=10)
    append_pivot(h, _pv(0, 10.0, -1))
    append_pivot(h, _pv(1, 20.0, 2))
    p = append_pivot(h, _pv(2, 15.0, -2))
    assert h[1].dir == 1
    assert p.dir == -1


def test_zero_denominator_gives_undefined_ratio():
    h = deque(maxlen=10)
    append_pivot(h, _pv(0, 10.0, -1))
    append_pivot(h, _pv(1, 10.0, 1))
    p = append_pivot(h, _pv(2, 8.0, -1))
    assert p.ratio is None
    assert p.bar_ratio == 1.0

    h = deque(maxlen=10)
    append_pivot(h, _pv(3, 10.0, -1))
    append_pivot(h, _pv(3, 12.0, 1))
    p = append_pivot(h, _pv(5, 11.0, -1))
    assert p.bar_ratio is None
    assert p.ratio == 0.5


def test_same_polarity_append_is_fatal():
    h = deque(maxlen=10)
    append_pivot(h, _pv(0, 10.0, 1))
    with pytest.raises(DirectionMismatchError):
        append_pivot(h, _pv(1, 12.0, 1))
    assert len(h) == 1


def test_zero_dir_rejected():
    with pytest.raises(ValueError):
        append_pivot(deque(maxlen=3), _pv(0, 1.0, 0))


def test_oldest_pivot_is_evicted_silently():
    h = deque(maxlen=3)
    for i in range(5):
        append_pivot(h, _pv(i, 10.0 + (i % 2), 1 if i % 2 else -1))
    assert len(h) == 3
    assert [p.index for p in h] == [4, 3, 2]


def test_indicator_ratios():
    h = deque(maxlen=10)
    append_pivot(h, _pv(0, 10.0, -1, indicator_names=["rsi"], indicator_values=[30.0]))
    append_pivot(h, _pv(1, 14.0, 1, indicator_names=["rsi"], indicator_values=[70.0]))
    p = append_pivot(h, _pv(2, 12.0, -1, indicator_names=["rsi", "obv"], indicator_values=[50.0, 1.0]))
    assert p.indicator_ratios == [0.5, None]
    assert h[1].indicator_ratios == [None]


def test_components_fill_sub_pivots_with_copies():
    components = [_pv(3, 30.0, 2), _pv(2, 14.0, -1), _pv(1, 18.0, 1), _pv(0, 10.0, -1)]
    components[1].micro_components = 2
    h = deque(maxlen=10)
    first = _pv(0, 10.0, -1, component_index=3)
    append_pivot(h, first, components)
    assert first.sub_components == 0 and first.sub_pivots == []

    top = _pv(3, 30.0, 2, component_index=0)
    append_pivot(h, top, components)
    assert top.sub_components == 3
    assert [p.price for p in top.sub_pivots] == [30.0, 14.0, 18.0]
    assert top.micro_components == 1 + 2 + 1
    assert top.sub_pivots[0] is not components[0]
    top.sub_pivots[0].point = Point(index=99, time=99, price=0.0)
    assert components[0].price == 30.0
