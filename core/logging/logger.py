"""
Centralized logging configuration for the transition compositor.

Uses a rotating file handler with logs stored in the logs/ directory.
Console output (debug mode only) collapses repeated records and can be
colored when attached to a terminal.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


_VERBOSE: bool = False
_PERF_METRICS_ENABLED: bool = True
# Effective log directory. setup_logging() may redirect it (CLI --log-dir,
# tests) so get_log_dir() always reports the active location.
_LOG_DIR: Path = Path(__file__).parent.parent.parent / "logs"

_LOG_FORMAT = '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s'

_env_perf = os.getenv("TRANSITIONS_PERF_METRICS")
if _env_perf is not None:
    if _env_perf.strip().lower() in ("0", "false", "off", "no"):
        _PERF_METRICS_ENABLED = False
    elif _env_perf.strip().lower() in ("1", "true", "on", "yes"):
        _PERF_METRICS_ENABLED = True


class ColoredFormatter(logging.Formatter):
    """Formatter that adds ANSI colors to console output."""

    COLORS = {
        'DEBUG': '\033[36m',       # Cyan
        'INFO': '\033[32m',        # Green
        'WARNING': '\033[33m',     # Yellow
        'ERROR': '\033[31m',       # Red
        'CRITICAL': '\033[35m',    # Magenta
    }
    FALLBACK_COLOR = '\033[38;5;208m'
    PERF_COLOR = '\033[38;5;135m'
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        original_levelname = record.levelname
        msg_text = str(record.msg)

        if '[FALLBACK]' in msg_text:
            # Degraded paths stand out regardless of level
            color = self.FALLBACK_COLOR
        elif '[PERF]' in msg_text:
            color = self.PERF_COLOR
        else:
            color = self.COLORS.get(record.levelname)

        if color is None:
            return super().format(record)

        record.levelname = f"{self.BOLD}{color}{record.levelname}{self.RESET}"
        try:
            return f"{color}{super().format(record)}{self.RESET}"
        finally:
            record.levelname = original_levelname


class SuppressingStreamHandler(logging.StreamHandler):
    """Stream handler that collapses consecutive records from one source.

    Per-frame DEBUG/INFO lines from the same logger and level are folded into
    a single "[N Suppressed: CHECK LOG]" summary; WARNING and above always pass
    through. File handlers are unaffected.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_key: Optional[tuple] = None
        self._suppress_count: int = 0
        self._last_record: Optional[logging.LogRecord] = None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._emit_with_suppression(record)
        except Exception:
            self.handleError(record)

    def _emit_with_suppression(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.WARNING:
            self._flush_summary()
            self._emit_record(record)
            self._last_key = None
            return

        key = (record.name, record.levelno)
        if key == self._last_key:
            self._suppress_count += 1
            self._last_record = record
            return

        self._flush_summary()
        self._emit_record(record)
        self._last_key = key
        self._last_record = record

    def _emit_record(self, record: logging.LogRecord) -> None:
        """Write one record, degrading characters the console cannot encode."""
        stream = self.stream
        if stream is None:
            return
        text = self.format(record) + self.terminator
        try:
            stream.write(text)
        except UnicodeEncodeError:
            encoding = getattr(stream, "encoding", None) or "ascii"
            stream.write(text.encode(encoding, errors="replace").decode(encoding, errors="replace"))
        self.flush()

    def _flush_summary(self) -> None:
        if self._suppress_count <= 0 or self._last_record is None:
            self._suppress_count = 0
            return

        last = self._last_record
        summary = logging.LogRecord(
            last.name,
            last.levelno,
            last.pathname,
            last.lineno,
            f"[{self._suppress_count} Suppressed: CHECK LOG]",
            args=None,
            exc_info=None,
        )
        summary.created = last.created
        summary.msecs = last.msecs
        summary.relativeCreated = last.relativeCreated
        summary.thread = last.thread
        summary.threadName = last.threadName
        self._emit_record(summary)
        self._suppress_count = 0

    def close(self) -> None:
        try:
            self._flush_summary()
        finally:
            super().close()


def get_log_dir() -> Path:
    """Return the directory used for log files."""
    return _LOG_DIR


def setup_logging(debug: bool = False, verbose: bool = False,
                  log_dir: Optional[Path] = None) -> None:
    """
    Configure application logging with file rotation.

    Args:
        debug: If True, set log level to DEBUG and enable console output.
        verbose: Enables high-volume per-frame debug lines (partition
            layouts, cache hits). Verbose mode implies debug.
        log_dir: Optional override for the log directory.
    """
    global _VERBOSE, _LOG_DIR

    debug_enabled = debug or verbose
    if log_dir is not None:
        _LOG_DIR = Path(log_dir)

    _LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = _LOG_DIR / "compositor.log"

    level = logging.DEBUG if debug_enabled else logging.INFO
    formatter = logging.Formatter(_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # 1MB max, keep 5 backups
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    if debug_enabled:
        console_handler = SuppressingStreamHandler(sys.stdout)
        if sys.stdout.isatty():
            console_handler.setFormatter(ColoredFormatter(_LOG_FORMAT, datefmt='%H:%M:%S'))
        else:
            console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt='%H:%M:%S'))
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    # PIL chatter only when explicitly asked for
    logging.getLogger("PIL").setLevel(logging.DEBUG if verbose else logging.INFO)

    _VERBOSE = bool(verbose)

    root_logger.info("=" * 60)
    root_logger.info(
        "Compositor logging initialized (debug=%s, verbose=%s, dir=%s)",
        debug_enabled,
        _VERBOSE,
        _LOG_DIR,
    )
    root_logger.info("=" * 60)


_SHORT_NAME_OVERRIDES = {
    "transitions.compositor": "compositor",
    "rendering.perspective_projector": "rendering.perspective",
    "rendering.luma_processor": "rendering.luma",
    "rendering.blur_processor": "rendering.blur",
    "rendering.sequence_renderer": "rendering.sequence",
    "core.threading.manager": "threading",
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with optional short-name overrides."""
    return logging.getLogger(_SHORT_NAME_OVERRIDES.get(name, name))


def is_verbose_logging() -> bool:
    """Return True when verbose debug logging is enabled globally."""

    return _VERBOSE


def is_perf_metrics_enabled() -> bool:
    """Return True when PERF timing lines are enabled globally."""

    return _PERF_METRICS_ENABLED
