"""Command modules for the CLI."""

from .cli_utils import EXIT_FAILURE, EXIT_PARTIAL, EXIT_SUCCESS, create_parser, setup_logging
from .env_command import env_command
from .lifecycle_command import build_inputs, lifecycle_command

__all__ = [
    "EXIT_FAILURE",
    "EXIT_PARTIAL",
    "EXIT_SUCCESS",
    "build_inputs",
    "create_parser",
    "env_command",
    "lifecycle_command",
    "setup_logging",
]
