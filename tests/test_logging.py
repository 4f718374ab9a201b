"""Tests for the colored log formatter."""

import logging

from dashvault.core.logging import RED, RESET, YELLOW, ColoredFormatter, get_logger


def _record(level, msg):
    return logging.LogRecord("dashvault.test", level, __file__, 1, msg, None, None)


def test_info_is_uncolored():
    formatted = ColoredFormatter().format(_record(logging.INFO, "Created connection"))
    assert formatted.endswith("| INFO     | dashvault.test | Created connection")
    assert "\033[" not in formatted


def test_warning_is_yellow():
    formatted = ColoredFormatter().format(_record(logging.WARNING, "check failed"))
    assert formatted.startswith(YELLOW)
    assert formatted.endswith(RESET)


def test_failed_keyword_highlighted():
    formatted = ColoredFormatter().format(_record(logging.INFO, "Query FAILED on c1"))
    assert f"{RED}FAILED{RESET}" in formatted


def test_unknown_level_uses_base_format():
    formatted = ColoredFormatter().format(_record(25, "between info and warning"))
    assert "| Level 25 | dashvault.test | between info and warning" in formatted
    assert "\033[" not in formatted.split("|", 1)[0]


def test_get_logger_names():
    assert get_logger("dashvault.core").name == "dashvault.core"
