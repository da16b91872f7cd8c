"""Utility modules: logging setup and file helpers for project folders."""

from .logging_factory import LoggingFactory, get_logger
from .paths import atomic_write_text, read_json, resolve_within, write_json

__all__ = [
    "LoggingFactory",
    "atomic_write_text",
    "get_logger",
    "read_json",
    "resolve_within",
    "write_json",
]
