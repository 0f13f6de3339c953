"""Unit tests for logging setup."""

from __future__ import annotations

import json
import logging

import pytest

from mcpgen.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("httpx", "httpcore", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_records_go_to_stderr_as_json(capsys) -> None:
    setup_logging("INFO")

    logging.getLogger("mcpgen.importer").warning("definition_fetched")

    captured = capsys.readouterr()
    assert captured.out == ""
    record = json.loads(captured.err.strip().splitlines()[-1])
    assert record["event"] == "definition_fetched"
    assert record["level"] == "warning"


def test_library_loggers_held_at_warning() -> None:
    setup_logging("INFO")

    assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING
    assert logging.getLogger("aiosqlite").getEffectiveLevel() == logging.WARNING


def test_debug_lets_library_loggers_through() -> None:
    setup_logging("debug")

    assert logging.getLogger("httpx").getEffectiveLevel() == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG
