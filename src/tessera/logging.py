"""Logging helpers used by applications embedding the Tessera runtime.

This module provides utilities for configuring console logging with Rich
and an in-memory "flight recorder" that buffers log records and writes them
to disk on flush. It also provides a filter that annotates third-party
log records with a short prefix used by console formatting.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import httpx
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "tessera"


class ThirdPartyPrefixFilter(logging.Filter):
    """Annotate third-party log records with a short prefix.

    For records whose logger name does not start with the project prefix,
    sets `record.prefix` to a short bracketed token like "[httpx]". For
    project loggers the prefix is set to an empty string. The filter always
    returns True to allow the record to be processed.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith(PROJECT_PREFIX):
            # e.g. "httpcore.connection" -> "[httpcore]"
            record.prefix = f"[{record.name.split('.')[0]}]"
        else:
            record.prefix = ""
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Configure and return a RichHandler for console output.

    The handler writes to stderr and supports optional color and a debug
    mode. In debug mode the handler is set to DEBUG and includes source
    file/line information; otherwise a short third-party prefix is applied.

    Args:
        level: Minimum level for console output (overridden to DEBUG in debug_mode).
        debug_mode: When True, enable debug formatting (show_path, timestamps).
        color: Enable color output when True.

    Returns:
        RichHandler: Configured handler suitable to attach to the root logger.
    """

    ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]
    color_system: ColorSystem | None = "auto" if color else None

    console = Console(color_system=color_system, stderr=True)

    if debug_mode:
        level = logging.DEBUG

    handler = RichHandler(
        level=level,
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )

    fmt = (
        "%(prefix)s %(message)s"
        if not debug_mode
        else "%(asctime)s %(name)s: %(message)s"
    )
    handler.setFormatter(logging.Formatter(fmt=fmt))

    if not debug_mode:
        handler.addFilter(ThirdPartyPrefixFilter())

    return handler


def config_flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """Configure and return an in-memory flight recorder backed by a file.

    The flight recorder buffers up to `capacity` log records and flushes
    them to the provided file handler when a record at `flush_level` or
    higher is emitted (or on close if `flush_on_close` is True).

    Args:
        path: Destination file path for flushed records.
        capacity: Number of records to buffer in memory.
        flush_level: Level at or above which the buffer will be flushed.
        flush_on_close: If True, flush the buffer when the handler is closed.

    Returns:
        MemoryHandler: A memory-backed handler with a FileHandler target.
    """

    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(process)d:%(taskName)s] %(levelname)s %(name)s:%(lineno)d: %(message)s"
            if sys.version_info >= (3, 12)
            else "[%(asctime)s] [%(process)d] %(levelname)s %(name)s:%(lineno)d: %(message)s"
        )
    )

    return MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=file_handler,
        flushOnClose=flush_on_close,
    )


def configure_logging(  # pylint: disable=too-many-arguments
    level: int = logging.WARNING,
    *,
    debug_mode: bool = False,
    color: bool = True,
    log_path: Path | None = None,
    flight_capacity: int = 2000,
    logger_levels: dict[str, int] | None = None,
) -> list[logging.Handler]:
    """Attach the console handler (and optionally the flight recorder) to the root logger.

    Args:
        level: Console level.
        debug_mode: Enable debug formatting on the console.
        color: Enable color output.
        log_path: When given, enable the flight recorder writing to this path.
        flight_capacity: Number of records the flight recorder keeps.
        logger_levels: Per-logger minimum levels, e.g. ``{"httpx": logging.WARNING}``.

    Returns:
        The handlers that were attached.
    """
    handlers: list[logging.Handler] = [
        config_console_handler(level, debug_mode=debug_mode, color=color)
    ]
    if log_path is not None:
        handlers.append(config_flight_recorder(log_path, capacity=flight_capacity))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in handlers:
        root.addHandler(handler)
    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(logger_level)
    return handlers


def log_startup(  # pylint: disable=too-many-arguments
    logger: Logger,
    *,
    engine_version: str,
    level: int,
    handlers: list[logging.Handler],
    log_path: Path | None,
    flight_capacity: int | None,
) -> None:
    """Log a human-friendly startup line and detailed diagnostics.

    Emits an informational one-line summary describing the engine version and
    whether the flight-recorder is enabled. Additional DEBUG-level diagnostics
    are emitted for troubleshooting, including Python and platform versions,
    process id, current working directory, the httpx version and the active
    handler types.

    Args:
        logger: Logger used to emit startup messages.
        engine_version: Engine version label to display.
        level: Effective console logging level (numeric).
        handlers: Active logging handlers attached to the root logger.
        log_path: Path to the flight-recorder output file, or None.
        flight_capacity: Configured capacity of the flight recorder buffer, or None.
    """

    logger.info(
        "TESSERA %s: console=%s, flight-recorder=%s",
        engine_version,
        logging.getLevelName(level),
        "ON" if log_path else "OFF",
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s", os.getpid())
    logger.debug("CWD: %s", Path.cwd())
    logger.debug("httpx: %s", httpx.__version__)
    logger.debug("Handlers: %s", [type(h).__name__ for h in handlers])
    if log_path:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s", str(log_path), flight_capacity
        )
