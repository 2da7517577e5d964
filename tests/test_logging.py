import json
import logging

from mlzz.logging import LogConfig, get_logger, setup_logging
from mlzz.logging.logger import _JsonFormatter, _TextFormatter, _resolve_level


def test_json_formatter_includes_extra_fields():
    rec = logging.LogRecord("mlzz.test", logging.INFO, __file__, 1, "pivot %s", ("added",), None)
    rec.index = 7
    rec.price = 12.5
    payload = json.loads(_JsonFormatter().format(rec))
    assert payload["msg"] == "pivot added"
    assert payload["level"] == "info"
    assert payload["name"] == "mlzz.test"
    assert payload["index"] == 7
    assert payload["price"] == 12.5
    assert "lineno" not in payload


def test_setup_logging_sets_level_and_file(tmp_path):
    path = tmp_path / "logs" / "mlzz.log"
    setup_logging(LogConfig(level="debug", to_file=str(path)))
    try:
        get_logger("mlzz.test").debug("hello")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        for h in root.handlers:
            h.flush()
        assert "hello" in path.read_text(encoding="utf-8")
    finally:
        for h in list(logging.getLogger().handlers):
            h.close()
            logging.getLogger().removeHandler(h)


def test_log_config_from_dict():
    cfg = LogConfig.from_dict({"level": "warning", "json": True})
    assert cfg.level == "warning" and cfg.json is True and cfg.to_file is None


def test_json_formatter_keeps_colliding_extra():
    rec = logging.LogRecord("mlzz.test", logging.DEBUG, __file__, 1, "pivot added", (), None)
    rec.zz_level = 1
    rec.level = 3
    payload = json.loads(_JsonFormatter().format(rec))
    assert payload["level"] == "debug"
    assert payload["extra_level"] == 3
    assert payload["zz_level"] == 1


def test_text_formatter_appends_context():
    rec = logging.LogRecord("mlzz.zigzag", logging.DEBUG, __file__, 1, "overflow pivot", (), None)
    rec.index = 12
    rec.zz_level = 0
    line = _TextFormatter().format(rec)
    assert "DEBUG mlzz.zigzag: overflow pivot [index=12 zz_level=0]" in line
    plain = logging.LogRecord("mlzz.zigzag", logging.INFO, __file__, 1, "done", (), None)
    assert _TextFormatter().format(plain).endswith("mlzz.zigzag: done")


def test_resolve_level():
    assert _resolve_level("WARN") == logging.WARNING
    assert _resolve_level("15") == 15
    assert _resolve_level("bogus") == logging.INFO
