"""Tests for the colorful log formatter."""

import logging
import sys

from shellfleet.utils.console import ColorfulFormatter


def _record(name: str, msg: str, level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, exc_info)


def test_plain_format_strips_package_prefix():
    formatter = ColorfulFormatter(use_colors=False)

    line = formatter.format(_record("shellfleet.services.enforcer", "Limit check completed"))

    parts = [p.strip() for p in line.split("|")]
    assert parts[1] == "INFO"
    assert parts[2] == "services.enforcer"
    assert parts[3] == "Limit check completed"
    assert "\033[" not in line


def test_colors_highlight_endpoint_and_ratio():
    formatter = ColorfulFormatter(use_colors=True)

    line = formatter.format(
        _record("shellfleet.services.session", "Opening root@10.0.0.1:22 (3/2)", logging.WARNING)
    )

    assert "\033[95mroot@10.0.0.1:22\033[0m" in line
    assert "\033[93m(3/2)\033[0m" in line


def test_exception_is_appended():
    formatter = ColorfulFormatter(use_colors=False)
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("shellfleet", "failed", logging.ERROR, sys.exc_info())

    assert "RuntimeError: boom" in formatter.format(record)
