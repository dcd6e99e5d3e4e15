"""Tests for CLI logging setup and shutdown noise suppression."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator

import pytest
from rich.logging import RichHandler

from toolveil.cli.common import ShutdownNoiseFilter, configure_logging, is_shutdown_noise
from toolveil.cli.ui import error_console


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _run_record(exc: BaseException, logger_name: str = "toolveil.cli.run") -> logging.LogRecord:
    return logging.getLogger(logger_name).makeRecord(
        logger_name,
        logging.ERROR,
        __file__,
        1,
        "Proxy session failed",
        (),
        (type(exc), exc, None),
    )


@pytest.mark.parametrize(
    "exc",
    [
        KeyboardInterrupt(),
        asyncio.CancelledError(),
        BrokenPipeError(32, "Broken pipe"),
        ConnectionResetError("Connection lost"),
    ],
)
def test_run_shutdown_records_are_dropped(exc: BaseException) -> None:
    assert ShutdownNoiseFilter().filter(_run_record(exc)) is False


def test_cancelled_pumps_with_hung_up_client_are_dropped() -> None:
    exc = BaseExceptionGroup(
        "proxy pumps", [asyncio.CancelledError(), BrokenPipeError(32, "Broken pipe")]
    )
    assert is_shutdown_noise(exc)
    assert ShutdownNoiseFilter().filter(_run_record(exc)) is False


def test_group_with_real_failure_is_kept() -> None:
    exc = BaseExceptionGroup("proxy pumps", [asyncio.CancelledError(), ValueError("bad line")])
    assert not is_shutdown_noise(exc)
    assert ShutdownNoiseFilter().filter(_run_record(exc)) is True


def test_target_errors_are_kept() -> None:
    record = _run_record(OSError(2, "No such file"), "toolveil.mcp.target")
    assert ShutdownNoiseFilter().filter(record) is True


def test_plain_records_are_kept() -> None:
    record = logging.getLogger("toolveil.mcp.proxy").makeRecord(
        "toolveil.mcp.proxy", logging.INFO, __file__, 1, "Proxy stopped", (), None
    )
    assert ShutdownNoiseFilter().filter(record) is True


def test_configure_logging_routes_to_stderr_console(
    restore_root_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("TOOLVEIL_LOG_LEVEL", raising=False)

    configure_logging()

    (handler,) = restore_root_logger.handlers
    assert isinstance(handler, RichHandler)
    assert handler.console is error_console
    assert any(isinstance(f, ShutdownNoiseFilter) for f in handler.filters)
    assert restore_root_logger.level == logging.WARNING


def test_configure_logging_levels(
    restore_root_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TOOLVEIL_LOG_LEVEL", "info")
    configure_logging()
    assert restore_root_logger.level == logging.INFO

    configure_logging(verbose=True)
    assert restore_root_logger.level == logging.DEBUG

    monkeypatch.setenv("TOOLVEIL_LOG_LEVEL", "chatty")
    configure_logging()
    assert restore_root_logger.level == logging.WARNING
