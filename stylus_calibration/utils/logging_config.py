"""Logging setup for the calibration engine and its CLI.

Console lines are human readable; the optional log file can hold JSON lines
instead. Every line carries the contextual fields (app, device, brush) set
by :func:`setup_logging` or scoped with :func:`logging_context`::

    setup_logging(**cfg.logging.as_kwargs(), context={"app": "calibrate"})
    with logging_context(brush="Pencil 02", device="stylus"):
        logger.info("Calibration applied")

Line formats:
    Human: 2026-10-19T13:45:12.345Z | INFO     | app=calibrate brush=Ink | Calibration applied
    JSON:  {"t": "2026-10-19T13:45:12.345000+00:00", "lvl": "INFO", "name": "...", "msg": "...", "brush": "Ink"}

Only handlers installed here are replaced on a repeated setup_logging()
call; handlers owned by the host application or by pytest are left alone.
"""

import contextlib
import contextvars
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


_context: contextvars.ContextVar = contextvars.ContextVar("calibration_log_context", default={})

_OWNED = "_stylus_calibration_handler"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


# ============================================================================
# FORMATTING
# ============================================================================

class LogLineFormatter(logging.Formatter):
    """Render a record as one human line or one JSON object.

    Parameters
    ----------
    json_lines : bool
        Emit JSON objects instead of ``|``-separated text.
    color : bool
        Color the level name (human lines only).
    """

    def __init__(self, json_lines: bool = False, color: bool = False):
        super().__init__()
        self.json_lines = json_lines
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        fields = _context.get()

        if self.json_lines:
            payload = {
                "t": ts.isoformat(),
                "lvl": record.levelname,
                "name": record.name,
                "msg": record.getMessage(),
                **fields,
            }
            if record.exc_info:
                payload["exc"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        level = f"{record.levelname:8s}"
        if self.color:
            level = f"{LEVEL_COLORS.get(record.levelname, '')}{level}{RESET}"
        stamp = ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"

        segments = [stamp, level]
        if fields:
            segments.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        segments.append(record.getMessage())
        line = " | ".join(segments)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# SETUP
# ============================================================================

def _file_handler(log_file: str, rotate: Optional[Dict[str, Any]]) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    mode = (rotate or {}).get("mode")
    if mode is None:
        return logging.FileHandler(log_file, encoding="utf-8")
    if mode == "size":
        return logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=int(rotate.get("max_bytes", 5_000_000)),
            backupCount=int(rotate.get("backup_count", 3)),
            encoding="utf-8",
        )
    if mode == "time":
        return logging.handlers.TimedRotatingFileHandler(
            log_file,
            when=rotate.get("when", "D"),
            interval=int(rotate.get("interval", 1)),
            backupCount=int(rotate.get("backup_count", 7)),
            encoding="utf-8",
        )
    raise ValueError(f"Unknown rotation mode {mode!r}; use 'size' or 'time'")


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    capture_warnings: bool = True,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Configure the root logger (idempotent).

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
    log_file : str, optional
        Log file path; None for console only
    json : bool
        Write JSON lines to the log file
    color : bool
        Color console level names when stderr is a terminal
    to_stderr : bool
        Log to stderr
    rotate : dict, optional
        ``{"mode": "size", "max_bytes": ..., "backup_count": ...}`` or
        ``{"mode": "time", "when": "D", "interval": 1, "backup_count": ...}``
    capture_warnings : bool
        Route Python warnings through logging
    context : dict, optional
        Fields attached to every line; replaces any earlier context

    Returns
    -------
    dict
        ``{"handlers": [...]}`` installed by this call

    Raises
    ------
    ValueError
        On an unknown rotation mode.
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level.upper())

    handlers = []
    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(LogLineFormatter(color=color and sys.stderr.isatty()))
        handlers.append(console)
    if log_file:
        file_handler = _file_handler(log_file, rotate)
        file_handler.setFormatter(LogLineFormatter(json_lines=json))
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _OWNED, True)
        root.addHandler(handler)

    if context is not None:
        _context.set(dict(context))
    logging.captureWarnings(capture_warnings)

    return {"handlers": handlers}


# ============================================================================
# CONTEXT AND HOOKS
# ============================================================================

@contextlib.contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Add fields to log lines inside a ``with`` block.

    ``None`` values are skipped. The previous fields are restored on exit.
    """
    token = _context.set({**_context.get(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _context.reset(token)


def install_excepthook(logger_name: str = "stylus_calibration") -> None:
    """Log uncaught exceptions as CRITICAL before the interpreter exits."""
    log = logging.getLogger(logger_name)

    def _hook(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        log.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = _hook
