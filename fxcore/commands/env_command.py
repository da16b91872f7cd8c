"""env list/add/show command implementation."""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from ..coordinator import Coordinator, Inputs
from ..envs import EnvironmentStore
from ..errors import FxError
from ..ui.console import ConsoleManager
from .cli_utils import EXIT_FAILURE, EXIT_SUCCESS

logger = logging.getLogger(__name__)


def env_command(args: argparse.Namespace, console_manager: Optional[ConsoleManager] = None) -> int:
    """Handle the env subcommands.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    console_manager = console_manager or ConsoleManager(json_output=args.json_output)
    store = EnvironmentStore()
    coordinator = Coordinator(env_store=store)
    inputs = Inputs(project_path=args.folder, interactive=False)

    try:
        env_folder = coordinator.resolve_env_folder(inputs)
        if args.env_command == "list":
            if args.remote:
                envs = store.list_remote_env(args.folder, env_folder)
            else:
                envs = store.list_env(args.folder, env_folder)
            console_manager.print_env_list(envs)
        elif args.env_command == "add":
            path = store.create_env(args.folder, args.name, env_folder=env_folder)
            console_manager.print_message("info", f"Created environment '{args.name}' at {path}")
        elif args.env_command == "show":
            values = store.read_env(
                args.folder,
                args.name,
                env_folder=env_folder,
                project_id=coordinator.resolve_project_id(inputs),
            )
            console_manager.print_env(args.name, values)
        return EXIT_SUCCESS
    except FxError as e:
        logger.error(f"[{e.name}] {e}")
        return EXIT_FAILURE
