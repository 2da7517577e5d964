"""Zigzag data model.

Everything the engine and the level folder pass around lives here:
- ZigzagConfig(length, number_of_pivots, offset)
- Point / Pivot: one recorded swing extreme with its derived ratios
- ZigzagFlags: outcome of the most recent calculate() call
- ZigzagState: bounded most-recent-first pivot history + trailing bar buffer

History ordering is most-recent-first: history[0] is the last pivot.
"""

from __future__ import annotations

import copy
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Mapping, Optional

from mlzz.data.types import Bar


@dataclass(frozen=True)
class ZigzagConfig:
    length: int = 5
    number_of_pivots: int = 20
    offset: int = 0

    def __post_init__(self) -> None:
        if int(self.length) < 1:
            raise ValueError(f"length must be >= 1 (got {self.length})")
        if int(self.number_of_pivots) < 1:
            raise ValueError(f"number_of_pivots must be >= 1 (got {self.number_of_pivots})")
        if int(self.offset) < 0:
            raise ValueError(f"offset must be >= 0 (got {self.offset})")

    @staticmethod
    def from_dict(data: Optional[Mapping[str, Any]]) -> "ZigzagConfig":
        """Build from a config section; accepts snake_case and camelCase keys."""
        d = dict(data or {})
        length = d.get("length", 5)
        pivots = d.get("number_of_pivots", d.get("numberOfPivots", d.get("pivots", 20)))
        offset = d.get("offset", 0)
        return ZigzagConfig(length=int(length), number_of_pivots=int(pivots), offset=int(offset))


@dataclass(frozen=True)
class Point:
    index: int
    time: Any
    price: float


@dataclass
class Pivot:
    """A recorded swing extreme.

    dir: sign is polarity (+ high, - low), magnitude is kind
    (1 = alternating pivot, 2 = escalated past the previous same-side pivot).
    Ratios stay None when undefined (first pivots, zero denominators).
    """

    point: Point
    dir: int
    level: int = 0
    component_index: int = 0
    sub_components: int = 0
    micro_components: int = 0
    ratio: Optional[float] = None
    size_ratio: Optional[float] = None
    bar_ratio: Optional[float] = None
    sub_pivots: List["Pivot"] = field(default_factory=list)
    indicator_names: List[str] = field(default_factory=list)
    indicator_values: List[float] = field(default_factory=list)
    indicator_ratios: List[Optional[float]] = field(default_factory=list)

    @property
    def price(self) -> float:
        return self.point.price

    @property
    def index(self) -> int:
        return self.point.index

    @property
    def time(self) -> Any:
        return self.point.time

    @property
    def polarity(self) -> int:
        if self.dir > 0:
            return 1
        if self.dir < 0:
            return -1
        return 0

    @property
    def is_high(self) -> bool:
        return self.dir > 0

    @property
    def is_escalated(self) -> bool:
        return abs(self.dir) == 2

    def indicators(self) -> Dict[str, float]:
        return dict(zip(self.indicator_names, self.indicator_values))

    def copy(self) -> "Pivot":
        return copy.deepcopy(self)


@dataclass(frozen=True)
class ZigzagFlags:
    new_pivot: bool = False
    double_pivot: bool = False
    update_last_pivot: bool = False


@dataclass
class ZigzagState:
    length: int = 5
    number_of_pivots: int = 20
    offset: int = 0
    level: int = 0
    history: Deque[Pivot] = field(default_factory=deque)
    flags: ZigzagFlags = field(default_factory=ZigzagFlags)
    bars: Deque[Bar] = field(default_factory=deque)

    def __post_init__(self) -> None:
        # re-wrap so capacity is always enforced by the containers themselves
        self.history = deque(self.history, maxlen=int(self.number_of_pivots))
        self.bars = deque(self.bars, maxlen=int(self.length) + int(self.offset))

    @staticmethod
    def from_config(cfg: ZigzagConfig, level: int = 0) -> "ZigzagState":
        return ZigzagState(
            length=cfg.length,
            number_of_pivots=cfg.number_of_pivots,
            offset=cfg.offset,
            level=level,
        )

    @property
    def config(self) -> ZigzagConfig:
        return ZigzagConfig(length=self.length, number_of_pivots=self.number_of_pivots, offset=self.offset)

    @property
    def last_pivot(self) -> Optional[Pivot]:
        return self.history[0] if self.history else None

    def pivot(self, i: int) -> Optional[Pivot]:
        """i-th pivot counting back from the most recent one (0 = last)."""
        if 0 <= i < len(self.history):
            return self.history[i]
        return None

    def pivots(self) -> List[Pivot]:
        return list(self.history)

    def __len__(self) -> int:
        return len(self.history)
