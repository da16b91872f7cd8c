"""Inputs and results of coordinator stage runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import FxError
from .interaction import ProvisionPrechecks, UserInteraction


class Platform(Enum):
    CLI = "cli"
    VSCODE = "vscode"
    VS = "vs"


class StageStatus(Enum):
    """Terminal state of a stage run."""

    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"


@dataclass
class Inputs:
    """Caller inputs for one stage invocation.

    Attributes:
        project_path: Project root folder
        env: Target environment; prompted for when omitted and interactive
        platform: Calling surface
        workflow_file_path: Explicit workflow file, overriding the default choice
        interactive: Whether prompts may be shown
        ignore_lock: Accepted for test harnesses; no lock is taken either way
        target_subscription_id: Subscription to use instead of prompting
        target_resource_group_name: Resource group to use instead of prompting
        target_resource_location: Location for a new resource group
        env_vars: Filled with the stage output after the run
    """

    project_path: Optional[str] = None
    env: Optional[str] = None
    platform: Platform = Platform.CLI
    workflow_file_path: Optional[str] = None
    interactive: bool = True
    ignore_lock: bool = False
    target_subscription_id: Optional[str] = None
    target_resource_group_name: Optional[str] = None
    target_resource_location: Optional[str] = None
    env_vars: Dict[str, str] = field(default_factory=dict)


@dataclass
class StageResult:
    """Outcome of a provision, deploy or publish run."""

    stage: str
    env_name: str
    status: StageStatus
    output: Dict[str, str] = field(default_factory=dict)
    error: Optional[FxError] = None
    summaries: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is StageStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "stage": self.stage,
            "env": self.env_name,
            "status": self.status.value,
            "output": dict(self.output),
            "error": self.error.to_dict() if self.error else None,
            "summaries": list(self.summaries),
        }


@dataclass
class PreProvisionResult:
    """What a Visual Studio host must set up before provisioning."""

    need_azure_login: bool
    need_m365_login: bool
    resolved_azure_subscription_id: Optional[str] = None
    resolved_azure_resource_group_name: Optional[str] = None


@dataclass
class CoordinatorContext:
    """Collaborators handed to the coordinator.

    Attributes:
        ui: Prompts, messages and progress; None for headless runs
        prechecks: Account and consent checks; defaults to ``DefaultPrechecks``
        logger: Logger for coordinator messages
    """

    ui: Optional[UserInteraction] = None
    prechecks: Optional[ProvisionPrechecks] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("fxcore.coordinator"))
