"""Centralized logging factory for consistent logger creation.

The CLI installs its own Rich console handler; this factory covers the rest:
library callers get one-time configuration from ``Config`` (level, format
and an optional log file) the first time they ask for a logger.

Usage:
    LoggingFactory.initialize(level=logging.DEBUG)
    logger = get_logger(__name__)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..config import get_config

APP_LOGGER = "fxcore"


class LoggingFactory:
    """Configures the ``fxcore`` logger hierarchy once per process.

    Class Attributes:
        _initialized: Flag to ensure single initialization
        _log_file: File receiving log records, if any
    """

    _initialized = False
    _log_file: Optional[Path] = None

    @classmethod
    def initialize(
        cls,
        log_file: Optional[Path] = None,
        level: Optional[int] = None,
        format_string: Optional[str] = None,
        console: bool = True,
    ) -> None:
        """Initialize logging for the application logger.

        Subsequent calls are ignored until ``reset()``.

        Args:
            log_file: Optional file to append records to (defaults to FXCORE_LOG_FILE)
            level: Level for the ``fxcore`` logger (defaults to FXCORE_LOG_LEVEL)
            format_string: Record format (defaults to FXCORE_LOG_FORMAT)
            console: Also log to stderr with a plain stream handler
        """
        if cls._initialized:
            return

        config = get_config()
        if level is None:
            level = logging.getLevelName(config.log_level)
        formatter = logging.Formatter(format_string or config.log_format)

        app_logger = logging.getLogger(APP_LOGGER)
        app_logger.setLevel(level)

        log_path = log_file or (Path(config.log_file) if config.log_file else None)
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            app_logger.addHandler(file_handler)
            cls._log_file = log_path

        if console:
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(formatter)
            app_logger.addHandler(stream_handler)

        cls._initialized = True

    @classmethod
    def mark_initialized(cls) -> None:
        """Record that handlers were installed elsewhere (e.g. by the CLI)."""
        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Remove installed handlers so the next call re-initializes."""
        app_logger = logging.getLogger(APP_LOGGER)
        for handler in list(app_logger.handlers):
            app_logger.removeHandler(handler)
            handler.close()
        cls._initialized = False
        cls._log_file = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger, initializing with defaults on first use."""
        if not cls._initialized:
            cls.initialize()
        return logging.getLogger(name)

    @classmethod
    def set_level(cls, name: str, level: int) -> None:
        logging.getLogger(name).setLevel(level)

    @classmethod
    def configure_verbose(cls, verbose: bool = False) -> None:
        """Switch the application logger between DEBUG and INFO.

        Driver output (script stdout) is logged at DEBUG, so verbose mode
        also shows what scripts print.
        """
        level = logging.DEBUG if verbose else logging.INFO
        logging.getLogger(APP_LOGGER).setLevel(level)
        logging.getLogger(f"{APP_LOGGER}.drivers").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper for ``LoggingFactory.get_logger``."""
    return LoggingFactory.get_logger(name)
