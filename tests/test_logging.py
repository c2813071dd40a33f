"""
Tests for logging setup and console suppression.
"""
import io
import logging

import pytest

from core.logging import logger as log_module
from core.logging.logger import (
    ColoredFormatter,
    SuppressingStreamHandler,
    get_log_dir,
    get_logger,
    is_verbose_logging,
    setup_logging,
)


def _record(msg, level=logging.DEBUG, name="test"):
    return logging.LogRecord(name=name, level=level, pathname="", lineno=0,
                             msg=msg, args=(), exc_info=None)


@pytest.fixture
def restore_root_logging():
    """Undo handler and level changes made by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    verbose = log_module._VERBOSE
    log_dir = log_module._LOG_DIR
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    log_module._VERBOSE = verbose
    log_module._LOG_DIR = log_dir


def test_setup_logging_writes_rotating_file(tmp_path, restore_root_logging):
    setup_logging(debug=True, verbose=True, log_dir=tmp_path)

    get_logger("transitions.compositor").info("hello from the compositor")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert get_log_dir() == tmp_path
    assert is_verbose_logging() is True
    log_file = tmp_path / "compositor.log"
    assert log_file.exists()
    assert "hello from the compositor" in log_file.read_text(encoding="utf-8")


def test_short_name_overrides():
    assert get_logger("rendering.luma_processor").name == "rendering.luma"
    assert get_logger("some.other.module").name == "some.other.module"


def test_suppressing_handler_collapses_repeats():
    stream = io.StringIO()
    handler = SuppressingStreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))

    for i in range(4):
        handler.emit(_record(f"frame {i}"))
    handler.emit(_record("other source", name="elsewhere"))
    handler.close()

    lines = stream.getvalue().splitlines()
    assert lines == ["frame 0", "[3 Suppressed: CHECK LOG]", "other source"]


def test_warnings_are_never_suppressed():
    stream = io.StringIO()
    handler = SuppressingStreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))

    handler.emit(_record("[FALLBACK] one", level=logging.WARNING))
    handler.emit(_record("[FALLBACK] two", level=logging.WARNING))
    handler.close()

    assert stream.getvalue().splitlines() == ["[FALLBACK] one", "[FALLBACK] two"]


def test_colored_formatter_wraps_message():
    formatter = ColoredFormatter("%(levelname)s %(message)s")
    record = _record("[PERF] blur 2ms", level=logging.INFO)

    text = formatter.format(record)

    assert "[PERF] blur 2ms" in text
    assert text.endswith(ColoredFormatter.RESET)
    assert record.levelname == "INFO"
