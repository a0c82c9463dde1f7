# src/taskmaster/logging_setup.py

from __future__ import annotations

import contextlib
import logging
import sys
import threading
from collections.abc import Iterator
from pathlib import Path

LOG_FILE_NAME = "taskmaster.log"

_SDK_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google_genai")

# Handlers installed by setup_logging carry this attribute, so a second call
# replaces them without touching handlers owned by someone else.
_OWNED_ATTR = "_taskmaster_owned"


class _ConsoleNoiseFilter(logging.Filter):
    """
    stdout carries the JSON result, so stderr stays terse:
    taskmaster records pass at the handler level, anything else
    (SDKs, captured py.warnings) only from ERROR up.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "taskmaster" or name.startswith("taskmaster."):
            return True
        return record.levelno >= logging.ERROR


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_ATTR, True)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskmaster",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install a filtered stderr handler and a full file log under log_dir.

    Safe to call more than once. Returns the log file path.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in [h for h in root.handlers if getattr(h, _OWNED_ATTR, False)]:
        root.removeHandler(h)
        h.close()

    console = _owned(logging.StreamHandler(sys.stderr))
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(levelname)-7s %(name)s: %(message)s"))
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = _owned(logging.FileHandler(log_file, encoding="utf-8"))
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s.%(msecs)03d [%(threadName)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file


class OperationLog:
    """
    Per-operation log sink.

    Replaces a process-wide "silent mode" switch: each pipeline owns its
    sink, and muted() only affects records emitted through that sink.
    While muted, DEBUG/INFO/WARNING records are demoted to DEBUG so they
    still reach the file log but stay off the console. ERROR always passes.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("taskmaster")
        self._depth = 0
        self._lock = threading.Lock()

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def is_muted(self) -> bool:
        return self._depth > 0

    @contextlib.contextmanager
    def muted(self) -> Iterator[None]:
        with self._lock:
            self._depth += 1
        try:
            yield
        finally:
            with self._lock:
                self._depth -= 1

    def _level(self, level: int) -> int:
        if self.is_muted and level < logging.ERROR:
            return logging.DEBUG
        return level

    def debug(self, msg: str, *args: object) -> None:
        self._logger.log(logging.DEBUG, msg, *args)

    def info(self, msg: str, *args: object) -> None:
        self._logger.log(self._level(logging.INFO), msg, *args)

    def warning(self, msg: str, *args: object) -> None:
        self._logger.log(self._level(logging.WARNING), msg, *args)

    def error(self, msg: str, *args: object) -> None:
        self._logger.log(logging.ERROR, msg, *args)

    def exception(self, msg: str, *args: object) -> None:
        self._logger.log(logging.ERROR, msg, *args, exc_info=True)
