"""
Tests for the command line entry point and logging setup.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from binsql import tui
from binsql.app import run_interactive
from binsql.cli import main
from binsql.log import setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("binsql")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_query_flag(db_path, capsys):
    assert main(["-q", "select 1 as a", "sqlite", db_path]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[1] == "│ a │"
    assert out[3] == "│ 1 │"


def test_default_listing_when_not_a_terminal(db_path, capsys):
    assert main(["sqlite", db_path]) == 0
    assert "users" in capsys.readouterr().out


def test_query_error_exit_code(db_path, capsys):
    assert main(["--query", "select * from nowhere", "sqlite", db_path]) == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_unknown_driver_is_rejected(db_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["oracle", db_path])
    assert exc_info.value.code == 2


def test_invalid_environment(db_path, capsys, monkeypatch):
    monkeypatch.setenv("BINSQL_MAX_CONNECTIONS", "many")
    assert main(["-q", "select 1", "sqlite", db_path]) == 2
    assert "BINSQL_MAX_CONNECTIONS" in capsys.readouterr().err


def test_interactive_logging_stays_off_the_terminal(tmp_path):
    log_file = tmp_path / "binsql.log"
    setup_logging(True, {"BINSQL_LOG_LEVEL": "debug", "BINSQL_LOG_FILE": str(log_file)})

    logger = logging.getLogger("binsql")
    assert logger.level == logging.DEBUG
    assert [type(h) for h in logger.handlers] == [RotatingFileHandler]

    logging.getLogger("binsql.client").debug("hello")
    logger.handlers[0].flush()
    assert "hello" in log_file.read_text()


def test_logging_defaults():
    setup_logging(True, {})
    logger = logging.getLogger("binsql")
    assert logger.level == logging.WARNING
    assert [type(h) for h in logger.handlers] == [logging.NullHandler]

    setup_logging(False, {"BINSQL_LOG_LEVEL": "nonsense"})
    assert logger.level == logging.WARNING
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]


def test_interactive_shutdown_cancels_context(db_path, monkeypatch):
    seen = []

    def interrupted(console, theme=None):
        seen.append(console)
        raise KeyboardInterrupt

    monkeypatch.setattr(tui, "run", interrupted)
    run_interactive("sqlite", db_path)

    console = seen[0]
    assert console.ctx.cancelled
    assert console.client.closed


def test_interactive_quit_cancels_context(db_path, monkeypatch):
    seen = []

    def quit_at_once(console, theme=None):
        seen.append(console)
        console.submit("/q")

    monkeypatch.setattr(tui, "run", quit_at_once)
    run_interactive("sqlite", db_path)

    assert not seen[0].running
    assert seen[0].ctx.cancelled
    assert seen[0].client.closed
