"""MLZZ CLI.

- Loads bars from a CSV (pandas): high/low columns, or close with --source close.
- Runs the incremental zigzag bar by bar.
- Optionally folds the result into higher levels (--levels N, 0 = base only, -1 = until empty).
- Prints a text summary, JSON records or CSV; optional export to a file.
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from mlzz.config import load_config, zigzag_config
from mlzz.data.types import BarSeries
from mlzz.logging import LogConfig, get_logger, setup_logging
from mlzz.reporting.render import pivots_to_frame, pivots_to_records, render_levels
from mlzz.swing.history import ZigzagError
from mlzz.swing.levels import fold_levels
from mlzz.swing.model import ZigzagState
from mlzz.swing.zigzag import run_zigzag

log = get_logger("mlzz.cli")


# ----------------------------- helpers -----------------------------

def _parse_csv_list(s: Optional[str]) -> List[str]:
    if not s:
        return []
    return [x.strip() for x in s.split(",") if x.strip()]


def _parse_indicators(specs: Sequence[str]) -> Dict[str, Tuple[str, str]]:
    """name=high_col:low_col, or name=col for both sides."""
    out: Dict[str, Tuple[str, str]] = {}
    for spec in specs:
        name, sep, cols = spec.partition("=")
        if not sep or not name.strip() or not cols.strip():
            raise ValueError(f"bad --indicator {spec!r} (expected name=high_col:low_col)")
        hi, _, lo = cols.partition(":")
        out[name.strip()] = (hi.strip(), (lo or hi).strip())
    return out


def _ensure_dir(p: str) -> None:
    Path(p).parent.mkdir(parents=True, exist_ok=True)


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    zz: Dict[str, Any] = {}
    if args.length is not None:
        zz["length"] = args.length
    if args.pivots is not None:
        zz["number_of_pivots"] = args.pivots
    if args.offset is not None:
        zz["offset"] = args.offset
    out: Dict[str, Any] = {"zigzag": zz} if zz else {}
    if args.levels is not None:
        out["levels"] = args.levels
    lg: Dict[str, Any] = {}
    if args.log_level:
        lg["level"] = args.log_level
    if args.log_json:
        lg["json"] = True
    if lg:
        out["logging"] = lg
    return out


def _export(path: str, levels: List[ZigzagState], keys: List[str], sort: Optional[str]) -> None:
    _ensure_dir(path)
    if path.lower().endswith(".csv"):
        frames = []
        for st in levels:
            frames.append(pivots_to_frame(st.history, keys or None, sort))
        pd.concat(frames, ignore_index=True).to_csv(path, index=False)
        return
    payload = [{"level": st.level, "pivots": pivots_to_records(st.history, keys or None, sort)} for st in levels]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)


# ----------------------------- main -----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mlzz")

    # input
    p.add_argument("--csv", required=True, help="Bars CSV (high,low[,time|ts][,close])")
    p.add_argument("--source", default="hl", choices=["hl", "close"])
    p.add_argument("--indicator", action="append", default=[],
                   help="Indicator channel name=high_col:low_col (repeatable)")

    # zigzag
    p.add_argument("--length", type=int, default=None)
    p.add_argument("--pivots", type=int, default=None, help="History capacity (number of pivots)")
    p.add_argument("--offset", type=int, default=None)
    p.add_argument("--levels", type=int, default=None, help="Higher levels to fold (-1 = until empty)")

    # output
    p.add_argument("--format", default="text", choices=["text", "json", "csv"])
    p.add_argument("--keys", default="", help="Comma-separated pivot keys")
    p.add_argument("--order", default="", help="asc|desc key ordering")
    p.add_argument("--export", default="", help="Write levels to .json or .csv")

    # logging/config
    p.add_argument("--config", default=os.environ.get("MLZZ_CONFIG", ""))
    p.add_argument("--log_level", default=os.environ.get("MLZZ_LOG_LEVEL", ""))
    p.add_argument("--log_json", action="store_true")

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LogConfig(level=str(args.log_level or "info"), json=bool(args.log_json)))

    try:
        cfg = load_config(file_path=args.config or None, overrides=_overrides(args))
        zz_cfg = zigzag_config(cfg)
        indicators = _parse_indicators(args.indicator)
        keys = _parse_csv_list(args.keys)
        sort = args.order.strip().lower() or None
        pivots_to_records([], keys or None, sort)
    except (KeyError, ValueError, FileNotFoundError, RuntimeError) as e:
        log.error("invalid configuration: %s", e)
        return 2
    setup_logging(LogConfig.from_dict(cfg.get("logging")))

    if not os.path.exists(args.csv):
        log.error("csv not found: %s", args.csv)
        return 2
    try:
        series = BarSeries.read_csv(args.csv, indicators=indicators, source=args.source)
        series.validate()
    except (pd.errors.EmptyDataError, pd.errors.ParserError, ValueError) as e:
        log.error("invalid bars: %s", e)
        return 2

    try:
        base = run_zigzag(series, zz_cfg)
        n_levels = int(cfg.get("levels", 0) or 0)
        levels = [base]
        if n_levels != 0:
            levels.extend(fold_levels(base, max_levels=None if n_levels < 0 else n_levels))
    except ZigzagError:
        log.exception("zigzag failed")
        return 1
    except ValueError as e:
        log.error("invalid bars: %s", e)
        return 2

    log.info("zigzag done", extra={"bars": len(series), "pivots": len(base.history), "levels": len(levels)})
    if args.format == "json":
        payload = [{"level": st.level, "pivots": pivots_to_records(st.history, keys or None, sort)} for st in levels]
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))
    elif args.format == "csv":
        frames = [pivots_to_frame(st.history, keys or None, sort) for st in levels]
        print(pd.concat(frames, ignore_index=True).to_csv(index=False), end="")
    else:
        print(render_levels(levels))

    if args.export:
        _export(args.export, levels, keys, sort)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
