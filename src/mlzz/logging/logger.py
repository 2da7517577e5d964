"""stdlib logging setup for mlzz.

Engine code logs structured context through `extra=` (pivot index, price, dir,
zz_level, ...). Both formatters carry those fields: the JSON formatter as top
level keys, the text formatter as trailing key=value pairs. An extra field that
collides with a payload key is kept under `extra_<key>`.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# LogRecord attributes that are not user `extra=` fields
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LogConfig:
    level: str = "info"
    json: bool = False
    to_file: Optional[str] = None
    utc: bool = True

    @staticmethod
    def from_dict(data: Optional[Mapping[str, Any]]) -> "LogConfig":
        d = dict(data or {})
        return LogConfig(
            level=str(d.get("level", "info")),
            json=bool(d.get("json", False)),
            to_file=d.get("to_file") or None,
            utc=bool(d.get("utc", True)),
        )


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if not k.startswith("_") and k not in _RECORD_ATTRS}


class _JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def __init__(self, utc: bool = True):
        super().__init__()
        self.utc = utc

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc if self.utc else None)
        payload: Dict[str, Any] = {
            "ts": ts.isoformat(),
            "level": record.levelname.lower(),
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in _extra_fields(record).items():
            payload[f"extra_{k}" if k in payload else k] = v
        return json.dumps(payload, ensure_ascii=False, default=str)


class _TextFormatter(logging.Formatter):
    """Classic one-line format with the `extra=` context appended as key=value."""

    def __init__(self) -> None:
        super().__init__(fmt=_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extra_fields(record)
        if not extras:
            return line
        ctx = " ".join(f"{k}={v}" for k, v in extras.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{ctx}]{sep}{tail}"


def _resolve_level(name: str) -> int:
    s = (name or "").strip().lower()
    if s.isdigit():
        return int(s)
    return _LEVELS.get(s, logging.INFO)


def _handlers(cfg: LogConfig) -> List[logging.Handler]:
    out: List[logging.Handler] = [logging.StreamHandler()]
    if cfg.to_file:
        os.makedirs(os.path.dirname(cfg.to_file) or ".", exist_ok=True)
        out.append(logging.FileHandler(cfg.to_file, encoding="utf-8"))
    return out


def setup_logging(cfg: LogConfig) -> None:
    """Replace the root handlers with a stream (and optional file) handler per `cfg`."""
    lvl = _resolve_level(cfg.level)
    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt: logging.Formatter = _JsonFormatter(utc=cfg.utc) if cfg.json else _TextFormatter()
    for h in _handlers(cfg):
        h.setLevel(lvl)
        h.setFormatter(fmt)
        root.addHandler(h)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
