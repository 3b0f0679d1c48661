"""Unit tests for the logging helpers."""

import logging
from logging.handlers import MemoryHandler

import pytest
from rich.logging import RichHandler

from tessera.logging import (
    ThirdPartyPrefixFilter,
    config_console_handler,
    config_flight_recorder,
    configure_logging,
    log_startup,
)

# pylint: disable=magic-value-comparison


def make_record(name: str) -> logging.LogRecord:
    """Create a log record for logger `name`."""
    return logging.LogRecord(name, logging.INFO, __file__, 1, "message", None, None)


@pytest.mark.parametrize(
    ("name", "prefix"),
    [("httpcore.connection", "[httpcore]"), ("httpx", "[httpx]"), ("tessera.engine", "")],
)
def test_third_party_prefix(name, prefix) -> None:
    """Third-party records get a short prefix; project records none."""
    record = make_record(name)
    assert ThirdPartyPrefixFilter().filter(record)
    assert record.prefix == prefix


class TestConsoleHandler:
    """Tests for config_console_handler."""

    @staticmethod
    def test_normal_mode() -> None:
        """The normal handler keeps its level and prefixes third-party records."""
        handler = config_console_handler(logging.INFO, color=False)
        assert isinstance(handler, RichHandler)
        assert handler.level == logging.INFO
        assert any(isinstance(f, ThirdPartyPrefixFilter) for f in handler.filters)

    @staticmethod
    def test_debug_mode() -> None:
        """Debug mode forces DEBUG and shows names instead of prefixes."""
        handler = config_console_handler(logging.WARNING, debug_mode=True)
        assert handler.level == logging.DEBUG
        assert not handler.filters
        assert "%(name)s" in handler.formatter._fmt  # pylint: disable=protected-access


def test_flight_recorder_flushes_on_warning(tmp_path) -> None:
    """Buffered records reach the file once a warning is emitted."""
    path = tmp_path / "tessera.log"
    recorder = config_flight_recorder(path, capacity=10)
    logger = logging.getLogger("tessera.tests.flight")
    logger.addHandler(recorder)
    logger.setLevel(logging.DEBUG)
    try:
        logger.debug("buffered")
        assert path.read_text(encoding="utf-8") == ""
        logger.warning("flush now")
        text = path.read_text(encoding="utf-8")
        assert "buffered" in text
        assert "flush now" in text
    finally:
        logger.removeHandler(recorder)
        recorder.close()
        recorder.target.close()


def test_configure_logging_attaches_handlers(tmp_path) -> None:
    """configure_logging attaches the console handler and the flight recorder."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        handlers = configure_logging(
            logging.INFO,
            color=False,
            log_path=tmp_path / "tessera.log",
            logger_levels={"httpx": logging.ERROR},
        )
        assert [type(h) for h in handlers] == [RichHandler, MemoryHandler]
        assert all(handler in root.handlers for handler in handlers)
        assert logging.getLogger("httpx").level == logging.ERROR
    finally:
        for handler in handlers:
            root.removeHandler(handler)
            handler.close()
        handlers[-1].target.close()
        root.setLevel(level)
        logging.getLogger("httpx").setLevel(logging.NOTSET)
    assert root.handlers == before


def test_log_startup(caplog, tmp_path) -> None:
    """The startup summary names the engine version and the recorder state."""
    logger = logging.getLogger("tessera.tests.startup")
    with caplog.at_level(logging.DEBUG, logger="tessera.tests.startup"):
        log_startup(
            logger,
            engine_version="1.0.0",
            level=logging.INFO,
            handlers=[logging.NullHandler()],
            log_path=tmp_path / "tessera.log",
            flight_capacity=100,
        )
    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "TESSERA 1.0.0: console=INFO, flight-recorder=ON"
    assert any(message.startswith("httpx: ") for message in messages)
    assert "Handlers: ['NullHandler']" in messages
