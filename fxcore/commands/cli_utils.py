"""Shared CLI utilities and argument parser."""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from .. import __version__
from ..ui.console import ConsoleManager
from ..utils.logging_factory import APP_LOGGER, LoggingFactory

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_PARTIAL = 3


def setup_logging(verbose: bool = False, console_manager: Optional[ConsoleManager] = None) -> None:
    """Setup logging configuration based on verbosity level.

    Args:
        verbose: If True, set to DEBUG level; otherwise INFO
        console_manager: Installs its Rich (or JSON) handler on the app logger
    """
    # File logging from FXCORE_LOG_FILE; console output comes from the manager
    LoggingFactory.initialize(console=console_manager is None)
    if console_manager is not None:
        console_manager.setup_logging(logging.getLogger(APP_LOGGER))
    LoggingFactory.configure_verbose(verbose)


def _add_project_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--folder", "-f", default=".", help="Project root folder (default: current directory)"
    )
    parser.add_argument("--env", "-e", help="Target environment name (e.g. dev)")


def _add_stage_arguments(parser: argparse.ArgumentParser) -> None:
    _add_project_arguments(parser)
    parser.add_argument("--workflow-file", help="Workflow file to use instead of teamsapp.yml")
    parser.add_argument(
        "--interactive",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Prompt for missing values and consent (default: on)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="fxcore",
        description="Run the provision, deploy and publish stages of a project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Provision the dev environment of the project in the current folder
  fxcore provision --env dev

  # Provision without prompts, naming subscription and resource group
  fxcore provision --env dev --no-interactive --subscription <id> --resource-group rg-dev

  # Deploy with a specific workflow file
  fxcore deploy --env dev --workflow-file teamsapp.custom.yml

  # Publish and emit JSON events for CI
  fxcore --json-output publish --env prod --no-interactive

  # Manage environments
  fxcore env list
  fxcore env add staging
  fxcore env show dev

Exit codes:
  0  stage succeeded
  1  stage failed before or while running
  3  stage partially succeeded (outputs of completed steps were saved)
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Emit machine-readable JSON events to stderr/stdout",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    provision_parser = subparsers.add_parser(
        "provision",
        help="Provision cloud resources",
        description="Run the 'provision' stage of the workflow file",
    )
    _add_stage_arguments(provision_parser)
    provision_parser.add_argument("--subscription", help="Azure subscription id")
    provision_parser.add_argument("--resource-group", help="Azure resource group name")
    provision_parser.add_argument("--region", help="Location for a new resource group")

    deploy_parser = subparsers.add_parser(
        "deploy",
        help="Deploy application code",
        description="Run the 'deploy' stage of the workflow file",
    )
    _add_stage_arguments(deploy_parser)

    publish_parser = subparsers.add_parser(
        "publish",
        help="Publish the app to the organization's catalog",
        description="Run the 'publish' stage of the workflow file",
    )
    _add_stage_arguments(publish_parser)

    env_parser = subparsers.add_parser(
        "env", help="Manage environments", description="List, create and inspect environments"
    )
    env_subparsers = env_parser.add_subparsers(dest="env_command", required=True)

    env_list = env_subparsers.add_parser("list", help="List environments")
    env_list.add_argument("--folder", "-f", default=".", help="Project root folder")
    env_list.add_argument(
        "--remote", action="store_true", help="Exclude local debug environments"
    )

    env_add = env_subparsers.add_parser("add", help="Create an environment")
    env_add.add_argument("name", help="New environment name")
    env_add.add_argument("--folder", "-f", default=".", help="Project root folder")

    env_show = env_subparsers.add_parser("show", help="Show an environment's values")
    env_show.add_argument("name", help="Environment name")
    env_show.add_argument("--folder", "-f", default=".", help="Project root folder")

    return parser
