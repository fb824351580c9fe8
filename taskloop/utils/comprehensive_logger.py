"""
Comprehensive Logging System with File and Console Output

All taskloop loggers hang off a single ``taskloop`` root logger that owns the
handlers:
- console output on stderr (stdout carries the ``[taskloop]`` transcript)
- an optional rotating ``taskloop.log`` in the configured log folder

TaskLogger adds structured ``extra`` context and helpers for exceptions and
timings.
"""

import json
import logging
import logging.handlers
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, Optional


ROOT_LOGGER_NAME = "taskloop"
LOG_FILE_NAME = "taskloop.log"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ComprehensiveLogger:
    """
    Owner of the root handlers and the cache of TaskLogger wrappers.

    Usage:
        ComprehensiveLogger.initialize(log_level="DEBUG", enable_file=True)
        logger = ComprehensiveLogger.get_logger("taskloop.core.engine")
        logger.info("Task claimed", extra={"task_id": "3"})
    """

    _loggers: Dict[str, "TaskLogger"] = {}

    @classmethod
    def initialize(
        cls,
        log_folder: Optional[str] = None,
        log_level: str = "INFO",
        enable_console: bool = True,
        enable_file: bool = False,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        """
        (Re)build the root handlers.

        Args:
            log_folder: Folder for taskloop.log (default: ./logs)
            log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
            enable_console: Log to stderr
            enable_file: Log to a rotating file
            max_bytes: File size that triggers rotation
            backup_count: Rotated files to keep
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(log_level.upper())
        root.propagate = False

        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        if enable_console:
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(console)

        if enable_file:
            folder = Path(log_folder or "./logs")
            try:
                folder.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    folder / LOG_FILE_NAME,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            except OSError as e:
                root.warning(f"File logging disabled: {e}")
            else:
                file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
                root.addHandler(file_handler)

    @classmethod
    def get_logger(cls, name: str) -> "TaskLogger":
        """
        Get or create the TaskLogger for *name*.

        Names outside the ``taskloop`` hierarchy (``ui.server``) are nested
        under it so they share its handlers.
        """
        if name not in cls._loggers:
            if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
                qualified = f"{ROOT_LOGGER_NAME}.{name}"
            else:
                qualified = name
            cls._loggers[name] = TaskLogger(logging.getLogger(qualified))
        return cls._loggers[name]


class TaskLogger:
    """Thin wrapper over a stdlib logger with structured context."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @property
    def name(self) -> str:
        return self.logger.name

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.ERROR, message, extra)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.CRITICAL, message, extra)

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if extra:
            message = f"{message} | {json.dumps(extra, default=str, ensure_ascii=False)}"
        # report the caller of debug()/info()/..., not this wrapper
        self.logger.log(level, message, stacklevel=3)

    def log_exception(self, message: str, exc: Optional[BaseException] = None) -> None:
        """
        Log *message* at ERROR with the traceback of *exc* (or of the
        exception currently being handled).
        """
        if exc is not None:
            lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
            detail = "".join(lines)
        else:
            detail = traceback.format_exc()
        self.logger.error(f"{message}\n{detail.rstrip()}", stacklevel=2)

    def log_performance(
        self,
        operation: str,
        duration_seconds: float,
        success: bool = True,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record how long *operation* took.

        Successes are logged at INFO, failures at WARNING.
        """
        extra = {
            **(metadata or {}),
            "operation": operation,
            "duration_seconds": round(duration_seconds, 3),
            "success": success,
        }
        mark = "✓" if success else "✗"
        level = logging.INFO if success else logging.WARNING
        self._log(level, f"{mark} {operation} took {duration_seconds:.2f}s", extra)
