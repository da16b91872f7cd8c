"""provision, deploy and publish command implementations."""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from ..coordinator import Coordinator, CoordinatorContext, Inputs, Platform, StageStatus
from ..ui.console import ConsoleManager, ConsoleUserInteraction
from .cli_utils import EXIT_FAILURE, EXIT_PARTIAL, EXIT_SUCCESS

logger = logging.getLogger(__name__)

_EXIT_CODES = {
    StageStatus.SUCCEEDED: EXIT_SUCCESS,
    StageStatus.PARTIALLY_FAILED: EXIT_PARTIAL,
    StageStatus.FAILED: EXIT_FAILURE,
}


def build_inputs(args: argparse.Namespace) -> Inputs:
    """Translate parsed arguments into coordinator inputs."""
    return Inputs(
        project_path=args.folder,
        env=args.env,
        platform=Platform.CLI,
        workflow_file_path=getattr(args, "workflow_file", None),
        interactive=getattr(args, "interactive", True) and not getattr(args, "json_output", False),
        target_subscription_id=getattr(args, "subscription", None),
        target_resource_group_name=getattr(args, "resource_group", None),
        target_resource_location=getattr(args, "region", None),
    )


def lifecycle_command(
    args: argparse.Namespace, console_manager: Optional[ConsoleManager] = None
) -> int:
    """Handle the provision, deploy and publish subcommands.

    Args:
        args: Command line arguments
        console_manager: Console manager for output and prompts

    Returns:
        Exit code (0 success, 1 failure, 3 partial success)
    """
    console_manager = console_manager or ConsoleManager(json_output=args.json_output)
    inputs = build_inputs(args)
    ui = ConsoleUserInteraction(console_manager, interactive=inputs.interactive)
    coordinator = Coordinator(CoordinatorContext(ui=ui))

    stage = args.command
    console_manager.print_stage(f"{stage} ({inputs.env or 'select environment'})", "starting")
    result = asyncio.run(getattr(coordinator, stage)(inputs))
    console_manager.print_stage_result(result)

    if result.status is StageStatus.PARTIALLY_FAILED:
        logger.warning(
            f"{stage} stopped early; outputs of completed steps were saved to '{result.env_name}'"
        )
    return _EXIT_CODES[result.status]
