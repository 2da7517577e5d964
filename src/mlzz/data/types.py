from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class Bar:
    """Single bar as seen by the zigzag engine.

    indicators maps channel name -> (value used for high pivots, value used for low pivots).
    """

    index: int
    time: Any
    high: float
    low: float
    indicators: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # NaN never compares as an extreme, a pivot priced at NaN would never be replaced
        if math.isnan(self.high) or math.isnan(self.low):
            raise ValueError(f"bar {self.index} has a missing price (high={self.high}, low={self.low})")

    @staticmethod
    def from_value(index: int, time: Any, value: float,
                   indicators: Optional[Dict[str, Tuple[float, float]]] = None) -> "Bar":
        """Generic single-series bar (high = low = value)."""
        return Bar(index=int(index), time=time, high=float(value), low=float(value),
                   indicators=dict(indicators or {}))


class BarSeries:
    """A thin wrapper around a pandas DataFrame with columns: high,low (+ optional close/time/ts).

    Indicator channels are declared as {name: (high_column, low_column)}; a channel
    can point both sides at the same column.

    source:
      - "hl"    : bars use the high/low columns
      - "close" : bars use close for both high and low
    """

    def __init__(self, df: pd.DataFrame, indicators: Optional[Mapping[str, Tuple[str, str]]] = None,
                 source: str = "hl"):
        self.df = df
        self.indicators: Dict[str, Tuple[str, str]] = dict(indicators or {})
        self.source = (source or "hl").strip().lower()

    def validate(self) -> None:
        if self.source not in ("hl", "close"):
            raise ValueError(f"BarSeries source must be 'hl' or 'close' (got {self.source!r})")
        req = set(self._price_columns())
        for hi_col, lo_col in self.indicators.values():
            req.update((hi_col, lo_col))
        missing = req - set(self.df.columns)
        if missing:
            raise ValueError(f"BarSeries missing columns: {sorted(missing)}")
        for col in self._price_columns():
            values = pd.to_numeric(self.df[col], errors="coerce")
            bad = self.df.index[values.isna()].tolist()
            if bad:
                raise ValueError(f"BarSeries column {col!r} has missing or non-numeric values at rows {bad[:5]}")

    def _price_columns(self) -> List[str]:
        return ["high", "low"] if self.source == "hl" else ["close"]

    def __len__(self) -> int:
        return len(self.df)

    def _times(self) -> List[Any]:
        if "time" in self.df.columns:
            return self.df["time"].tolist()
        if "ts" in self.df.columns:
            return [int(x) for x in self.df["ts"].tolist()]
        if isinstance(self.df.index, pd.DatetimeIndex):
            return list(self.df.index)
        return list(range(len(self.df)))

    def __iter__(self) -> Iterator[Bar]:
        self.validate()
        times = self._times()
        if self.source == "close":
            highs = self.df["close"].astype(float).tolist()
            lows = highs
        else:
            highs = self.df["high"].astype(float).tolist()
            lows = self.df["low"].astype(float).tolist()
        channels = {
            name: (self.df[hi_col].astype(float).tolist(), self.df[lo_col].astype(float).tolist())
            for name, (hi_col, lo_col) in self.indicators.items()
        }
        for i in range(len(self.df)):
            yield Bar(
                index=i,
                time=times[i],
                high=highs[i],
                low=lows[i],
                indicators={name: (hv[i], lv[i]) for name, (hv, lv) in channels.items()},
            )

    def bars(self) -> List[Bar]:
        return list(iter(self))

    @staticmethod
    def read_csv(path: str, indicators: Optional[Mapping[str, Tuple[str, str]]] = None,
                 source: str = "hl") -> "BarSeries":
        return BarSeries(pd.read_csv(path), indicators=indicators, source=source)
