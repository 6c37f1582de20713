"""Test logging setup.

Tests for stylus_calibration.utils.logging_config:
    - JSON file output carries context fields
    - Repeated setup_logging() replaces only its own handlers
    - logging_context() scopes fields and skips None values
    - Uncaught exceptions are logged

Run:
    pytest tests/test_logging_config.py -v
"""

import json
import logging
import logging.handlers
import sys

import pytest

from stylus_calibration.utils import logging_config


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    """Undo root logger and context changes made by each test."""
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    token = logging_config._context.set({})
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging_config._context.reset(token)
    logging.captureWarnings(False)


def _json_lines(path):
    return [json.loads(line) for line in path.read_text().strip().splitlines()]


def _render(msg, level=logging.INFO):
    record = logging.LogRecord("x", level, __file__, 1, msg, (), None)
    return logging_config.LogLineFormatter().format(record)


# ============================================================================
# SETUP
# ============================================================================

def test_logging_idempotency(tmp_path):
    """Test file output and that a second setup does not duplicate lines."""
    log_path = tmp_path / "calibration.log"
    kwargs = dict(log_level="INFO", log_file=str(log_path), json=True, to_stderr=False)

    logging_config.setup_logging(**kwargs, context={"app": "test"})
    logger = logging.getLogger("utils_test")
    logger.info("hello")

    logging_config.setup_logging(**kwargs)
    logger.info("world")

    records = _json_lines(log_path)
    assert [r["msg"] for r in records] == ["hello", "world"]
    assert records[0]["app"] == "test"
    assert records[0]["lvl"] == "INFO"


def test_setup_keeps_foreign_handlers(tmp_path):
    """Test repeated setup only swaps the handlers it installed itself."""
    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    before = list(root.handlers)

    logging_config.setup_logging(log_file=str(tmp_path / "a.log"), to_stderr=False)
    info = logging_config.setup_logging(log_file=str(tmp_path / "a.log"), to_stderr=False)

    assert foreign in root.handlers
    assert [h for h in root.handlers if h not in before] == info["handlers"]


def test_setup_returns_handlers(tmp_path):
    """Test returned handler list matches requested outputs."""
    info = logging_config.setup_logging(
        log_file=str(tmp_path / "a.log"), to_stderr=True, capture_warnings=False
    )
    assert len(info["handlers"]) == 2


def test_size_rotation_handler(tmp_path):
    """Test size rotation builds a RotatingFileHandler."""
    info = logging_config.setup_logging(
        log_file=str(tmp_path / "r.log"),
        to_stderr=False,
        rotate={"mode": "size", "max_bytes": 1000, "backup_count": 2},
    )
    handler = info["handlers"][0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.backupCount == 2


def test_unknown_rotation_mode(tmp_path):
    """Test unknown rotation modes are rejected."""
    with pytest.raises(ValueError, match="rotation mode"):
        logging_config.setup_logging(
            log_file=str(tmp_path / "r.log"), to_stderr=False, rotate={"mode": "weekly"}
        )


# ============================================================================
# CONTEXT
# ============================================================================

def test_setup_context_replaces_previous():
    """Test each setup_logging(context=...) starts from a fresh context."""
    logging_config.setup_logging(to_stderr=False, context={"app": "first", "brush": "Ink"})
    logging_config.setup_logging(to_stderr=False, context={"app": "calibrate"})
    assert _render("ready").endswith("| app=calibrate | ready")


def test_logging_context_scoped():
    """Test logging_context restores the previous fields on exit."""
    logging_config.setup_logging(to_stderr=False, context={"app": "calibrate"})
    with logging_config.logging_context(brush="Ink", device=None):
        assert "| app=calibrate brush=Ink | inside" in _render("inside")
    assert _render("outside").endswith("| app=calibrate | outside")


def test_logging_context_restored_on_error():
    """Test fields are restored when the block raises."""
    with pytest.raises(RuntimeError):
        with logging_config.logging_context(brush="Ink"):
            raise RuntimeError("boom")
    assert "brush" not in _render("after")


def test_human_format_includes_context():
    """Test human lines carry level, context and message."""
    with logging_config.logging_context(brush="Ink"):
        line = _render("curve saved", logging.WARNING)
    assert "WARNING" in line
    assert "brush=Ink |" in line
    assert line.endswith("curve saved")


# ============================================================================
# HOOKS
# ============================================================================

def test_install_excepthook_logs(caplog):
    """Test uncaught exceptions are logged as CRITICAL."""
    logging_config.install_excepthook()
    try:
        raise ValueError("unhandled")
    except ValueError:
        sys.excepthook(*sys.exc_info())
    assert any(r.levelno == logging.CRITICAL for r in caplog.records)
