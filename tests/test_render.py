import json

import pytest

from mlzz.reporting.render import (
    ALL_KEYS,
    DEFAULT_KEYS,
    pivot_to_dict,
    pivots_to_frame,
    pivots_to_json,
    pivots_to_records,
    render_levels,
)
from mlzz.swing.model import Pivot, Point, ZigzagState


def _pivots():
    return [
        Pivot(point=Point(index=6, time="2025-01-07", price=12.0), dir=-1, ratio=0.5, bar_ratio=0.5,
              indicator_names=["rsi"], indicator_values=[40.0], indicator_ratios=[0.25]),
        Pivot(point=Point(index=4, time="2025-01-05", price=14.0), dir=1,
              indicator_names=["rsi"], indicator_values=[60.0], indicator_ratios=[None]),
    ]


def test_default_keys():
    d = pivot_to_dict(_pivots()[0])
    assert tuple(d.keys()) == DEFAULT_KEYS
    assert d["price"] == 12.0
    assert d["size_ratio"] is None


def test_empty_key_filter_uses_defaults():
    assert pivot_to_dict(_pivots()[0], keys=[]) == pivot_to_dict(_pivots()[0])


def test_key_allow_list_and_ordering():
    p = _pivots()[0]
    assert list(pivot_to_dict(p, keys=["price", "dir", "index"])) == ["price", "dir", "index"]
    assert list(pivot_to_dict(p, keys=["price", "dir", "index"], sort="asc")) == ["dir", "index", "price"]
    assert list(pivot_to_dict(p, keys=["price", "dir", "index"], sort="desc")) == ["price", "index", "dir"]


def test_indicator_keys():
    d = pivot_to_dict(_pivots()[0], keys=["indicators", "indicator_ratios"])
    assert d == {"indicators": {"rsi": 40.0}, "indicator_ratios": {"rsi": 0.25}}
    assert set(ALL_KEYS) >= set(DEFAULT_KEYS)


def test_bad_keys_and_sort():
    with pytest.raises(KeyError):
        pivot_to_dict(_pivots()[0], keys=["nope"])
    with pytest.raises(ValueError):
        pivot_to_dict(_pivots()[0], sort="sideways")


def test_records_json_and_frame():
    recs = pivots_to_records(_pivots(), keys=["index", "ratio"])
    assert recs == [{"index": 6, "ratio": 0.5}, {"index": 4, "ratio": None}]
    assert json.loads(pivots_to_json(_pivots(), keys=["index", "ratio"])) == recs
    df = pivots_to_frame(_pivots(), keys=["index", "price"])
    assert list(df.columns) == ["index", "price"]
    assert df["price"].tolist() == [12.0, 14.0]
    assert list(pivots_to_frame([]).columns) == list(DEFAULT_KEYS)


def test_frame_honours_key_order():
    df = pivots_to_frame(_pivots(), keys=["index", "price", "dir"], sort="desc")
    assert list(df.columns) == ["price", "index", "dir"]
    with pytest.raises(ValueError):
        pivots_to_frame(_pivots(), sort="sideways")


def test_render_levels_text():
    st = ZigzagState(history=_pivots())
    txt = render_levels([st], max_pivots=1)
    lines = txt.splitlines()
    assert lines[0] == "level=0 pivots=2 length=5"
    assert lines[1].startswith("  L1 idx=6 price=12 ratio=0.500")
    assert lines[-1] == "  ... (1 more)"
