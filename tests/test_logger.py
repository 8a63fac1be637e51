"""Tests for the console log formatting"""

import logging

from pasbook.logger import CustomFormatter


def _record(level: int, message: str) -> logging.LogRecord:
    return logging.LogRecord("ImportCoordinator", level, __file__, 1, message, (), None)


def test_lines_are_coloured_by_level():
    formatter = CustomFormatter()

    warning = formatter.format(_record(logging.WARNING, "Working directory left"))
    error = formatter.format(_record(logging.ERROR, "Import failed"))

    assert warning.startswith(CustomFormatter.COLOURS[logging.WARNING])
    assert error.startswith(CustomFormatter.COLOURS[logging.ERROR])
    assert warning.endswith(CustomFormatter.reset)
    assert "[ImportCoordinator] Working directory left" in warning


def test_custom_levels_are_not_coloured():
    line = CustomFormatter().format(_record(25, "Retrying"))

    assert "\x1b[" not in line
    assert line.endswith("[ImportCoordinator] Retrying")
