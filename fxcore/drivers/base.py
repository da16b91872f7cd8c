"""Abstract base class for lifecycle step drivers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from ..coordinator.interaction import ProgressHandler, UserInteraction

logger = logging.getLogger(__name__)


@dataclass
class DriverContext:
    """Everything a driver may use while running one step.

    Attributes:
        project_path: Root folder of the project
        env_name: Selected environment (e.g. "dev")
        platform: Calling surface ("cli", "vscode", "vs")
        env: Resolution environment (persisted values plus earlier outputs)
        step_env: The step's own ``env`` block with placeholders resolved
        ui: Optional user interaction collaborator
        progress: Optional progress handler of the running stage
        logger: Logger drivers should report through
        extra: Free-form values for drivers registered by callers
    """

    project_path: Path
    env_name: str = ""
    platform: str = "cli"
    env: Dict[str, str] = field(default_factory=dict)
    step_env: Dict[str, str] = field(default_factory=dict)
    ui: Optional["UserInteraction"] = None
    progress: Optional["ProgressHandler"] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("fxcore.drivers"))
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DriverOutput:
    """Result of the execute-style driver capability."""

    env: Dict[str, str] = field(default_factory=dict)
    summaries: List[str] = field(default_factory=list)


class StepDriver(ABC):
    """A unit that performs one concrete operation of a lifecycle stage.

    Subclasses implement ``run`` and are registered under their ``uses``
    identifier in the DriverRegistry. Instances are created fresh for every
    execution and must not keep state between runs.
    """

    description: str = ""

    @abstractmethod
    async def run(self, args: Any, context: DriverContext) -> Dict[str, str]:
        """Run the step.

        Args:
            args: The step's ``with`` configuration with placeholders resolved
            context: Driver context

        Returns:
            Output environment variables

        Raises:
            Exception: Any failure; the executor stops the stage on it
        """
        pass

    async def execute(self, args: Any, context: DriverContext) -> DriverOutput:
        """Run the step and describe what happened.

        The default wraps ``run``; drivers with richer reporting override it.
        """
        outputs = await self.run(args, context)
        summaries = [self.describe(args)] if self.description else []
        if outputs:
            summaries.append(f"Produced {', '.join(sorted(outputs))}")
        return DriverOutput(env=dict(outputs), summaries=summaries)

    def describe(self, args: Any) -> str:
        """Human-readable description of what the step will do."""
        return self.description or type(self).__name__
