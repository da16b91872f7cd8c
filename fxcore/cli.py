"""Command-line entry point.

Routes ``provision``, ``deploy``, ``publish`` and ``env`` to their command
handlers and maps outcomes to exit codes.
"""
from __future__ import annotations

import logging
import sys
from typing import List, Optional

from .commands import (
    EXIT_FAILURE,
    create_parser,
    env_command,
    lifecycle_command,
    setup_logging,
)
from .config import load_dotenv_file
from .errors import ConfigurationError
from .ui.console import ConsoleManager

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 success, 1 failure, 3 partial success)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    load_dotenv_file()
    console_manager = ConsoleManager(verbose=args.verbose, json_output=args.json_output)

    try:
        setup_logging(args.verbose, console_manager)

        if args.command in ("provision", "deploy", "publish"):
            return lifecycle_command(args, console_manager)
        elif args.command == "env":
            return env_command(args, console_manager)
        else:
            parser.print_help()
            return EXIT_FAILURE
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
