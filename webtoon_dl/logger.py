from __future__ import annotations

import asyncio
import fnmatch
import logging
import sqlite3
import sys
from logging import FileHandler, Formatter, NullHandler
from logging.handlers import QueueHandler, QueueListener
from queue import Queue
from typing import Mapping

import aiofiles
import dacite
import httpx
import rich_click as click
from rich import traceback
from rich.console import Console
from rich.logging import RichHandler

FILE_LOG_FORMAT = "%(asctime)s - %(levelname)-6s - [%(name)s] - %(message)s - %(filename)s - %(lineno)d"

NOISY_LOGGERS = {
    "httpx": logging.INFO,
    "httpcore": logging.INFO,
    "hpack": logging.WARNING,
    "click": logging.WARNING,
    "asyncio": logging.INFO,
    "aiofiles": logging.INFO,
    "PIL": logging.INFO,
}
"""Minimum level of third party loggers"""


class AsyncLogger:
    """Moves the handling of log records to a background thread so logging never blocks the event loop."""

    _queue: Queue = Queue(-1)
    _listener: QueueListener | None = None

    @classmethod
    def setup(cls, handlers: list[logging.Handler]) -> logging.Handler:
        queue_handler = QueueHandler(cls._queue)
        if cls._listener is None:
            cls._listener = QueueListener(cls._queue, *handlers, respect_handler_level=True)
            cls._listener.start()
        return queue_handler

    @classmethod
    def shutdown(cls) -> None:
        if cls._listener is not None:
            cls._listener.stop()
            cls._listener = None


class LevelRewriteFilter(logging.Filter):
    """
    A `logging.Filter` that changes the level of records whose logger name matches a glob pattern.

    >>> handler.addFilter(LevelRewriteFilter({"httpx*": {logging.INFO: logging.DEBUG}}))
    """

    def __init__(self, rules: Mapping[str, Mapping[int, int]]) -> None:
        super().__init__()
        self.rules = dict(rules)

    def filter(self, record: logging.LogRecord) -> bool:
        for pattern, mapping in self.rules.items():
            if not fnmatch.fnmatch(record.name, pattern):
                continue
            if new := mapping.get(record.levelno):
                record.levelno = new
                record.levelname = logging.getLevelName(new)
            break
        return True


def shutdown() -> None:
    AsyncLogger.shutdown()


def setup(
    log_level: int = logging.DEBUG,
    log_filename: str | None = None,
    enable_console_logging: bool = False,
    enable_traceback: bool = False,
) -> tuple[logging.Logger, Console]:
    """
    Sets up the logging system with non-blocking handlers and a rich console.

    Args:
        log_level               : Level of the root logger.
        log_filename            : Optional file receiving every record of `log_level` and above.
        enable_console_logging  : Print records of level INFO and above in the console.
        enable_traceback        : Install rich tracebacks, full tracebacks are hidden otherwise.

    Returns:
        Tuple of configured root logger and the rich Console instance.
    """
    suppress = [click, httpx, aiofiles, asyncio, dacite, sqlite3]
    console = Console()

    if not enable_traceback:
        sys.tracebacklimit = 0
    else:
        traceback.install(console=console, show_locals=False, suppress=suppress)

    log = logging.getLogger()
    log.setLevel(log_level)

    handlers: list[logging.Handler] = []

    if enable_console_logging:
        handlers.append(
            RichHandler(
                console=console,
                level=max(log_level, logging.INFO),
                rich_tracebacks=enable_traceback,
                markup=True,
                tracebacks_suppress=suppress,
                log_time_format="[%H:%M:%S]",
            )
        )

    if log_filename:
        file_handler = FileHandler(log_filename, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(Formatter(FILE_LOG_FORMAT))
        handlers.append(file_handler)

    if not handlers:
        log.addHandler(NullHandler())
    else:
        queue_handler = AsyncLogger.setup(handlers)
        queue_handler.addFilter(LevelRewriteFilter({"httpx*": {logging.INFO: logging.DEBUG}}))
        log.addHandler(queue_handler)

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    if log_level < logging.INFO:
        log.warning("Logging level is %s", logging.getLevelName(log_level))

    if log_filename:
        log.info("Logging to %s", log_filename)

    return log, console
