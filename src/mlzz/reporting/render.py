"""Read-only projections of pivot histories.

pivot_to_dict(pivot, keys=None, sort=None)
  keys: allow-list of field keys (None/empty -> DEFAULT_KEYS)
  sort: None keeps the key order, "asc"/"desc" order keys alphabetically

Fields are read through a typed accessor table, so an unknown key is a KeyError
rather than a silent None.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from mlzz.swing.model import Pivot, ZigzagState

_FIELDS: Dict[str, Callable[[Pivot], Any]] = {
    "index": lambda p: p.point.index,
    "time": lambda p: p.point.time,
    "price": lambda p: p.point.price,
    "dir": lambda p: p.dir,
    "level": lambda p: p.level,
    "component_index": lambda p: p.component_index,
    "sub_components": lambda p: p.sub_components,
    "micro_components": lambda p: p.micro_components,
    "ratio": lambda p: p.ratio,
    "bar_ratio": lambda p: p.bar_ratio,
    "size_ratio": lambda p: p.size_ratio,
    "indicators": lambda p: p.indicators(),
    "indicator_ratios": lambda p: dict(zip(p.indicator_names, p.indicator_ratios)),
}

DEFAULT_KEYS = (
    "index", "time", "price", "dir", "level", "component_index",
    "sub_components", "micro_components", "ratio", "bar_ratio", "size_ratio",
)
ALL_KEYS = tuple(_FIELDS.keys())


def _resolve_keys(keys: Optional[Sequence[str]], sort: Optional[str]) -> List[str]:
    out = list(keys) if keys else list(DEFAULT_KEYS)
    unknown = [k for k in out if k not in _FIELDS]
    if unknown:
        raise KeyError(f"unknown pivot keys: {unknown}")
    if sort is None:
        return out
    s = sort.strip().lower()
    if s not in ("asc", "desc"):
        raise ValueError(f"sort must be 'asc', 'desc' or None (got {sort!r})")
    return sorted(out, reverse=(s == "desc"))


def pivot_to_dict(pivot: Pivot, keys: Optional[Sequence[str]] = None, sort: Optional[str] = None) -> Dict[str, Any]:
    return {k: _FIELDS[k](pivot) for k in _resolve_keys(keys, sort)}


def pivots_to_records(pivots: Iterable[Pivot], keys: Optional[Sequence[str]] = None,
                      sort: Optional[str] = None) -> List[Dict[str, Any]]:
    ks = _resolve_keys(keys, sort)
    return [{k: _FIELDS[k](p) for k in ks} for p in pivots]


def pivots_to_json(pivots: Iterable[Pivot], keys: Optional[Sequence[str]] = None,
                   sort: Optional[str] = None, indent: Optional[int] = None) -> str:
    return json.dumps(pivots_to_records(pivots, keys, sort), ensure_ascii=False, indent=indent, default=str)


def pivots_to_frame(pivots: Iterable[Pivot], keys: Optional[Sequence[str]] = None,
                    sort: Optional[str] = None) -> pd.DataFrame:
    ks = _resolve_keys(keys, sort)
    return pd.DataFrame(pivots_to_records(pivots, ks), columns=ks)


def _fmt_ratio(x: Optional[float]) -> str:
    return "-" if x is None else f"{x:.3f}"


def render_levels(levels: Sequence[ZigzagState], max_pivots: int = 10) -> str:
    """Short text view: one header line per level, then its newest pivots."""
    lines: List[str] = []
    for st in levels:
        lines.append(f"level={st.level} pivots={len(st.history)} length={st.length}")
        for p in list(st.history)[:max_pivots]:
            side = "H" if p.is_high else "L"
            lines.append(
                f"  {side}{abs(p.dir)} idx={p.index} price={p.price:g} "
                f"ratio={_fmt_ratio(p.ratio)} bar_ratio={_fmt_ratio(p.bar_ratio)} "
                f"size_ratio={_fmt_ratio(p.size_ratio)} sub={p.sub_components}"
            )
        if len(st.history) > max_pivots:
            lines.append(f"  ... ({len(st.history) - max_pivots} more)")
    return "\n".join(lines)
