"""Workflow parsing and lifecycle execution."""

from .executor import LifecycleExecutor
from .models import (
    STAGES,
    DriverDefinition,
    DriverErrorReason,
    DriverInstance,
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    Lifecycle,
    PartialSuccess,
    ProjectModel,
    StepStatus,
    StepSummary,
    UnresolvedPlaceholdersReason,
)
from .parser import WorkflowParser, get_workflow_file_path

__all__ = [
    "STAGES",
    "DriverDefinition",
    "DriverErrorReason",
    "DriverInstance",
    "ExecutionFailure",
    "ExecutionResult",
    "ExecutionSuccess",
    "Lifecycle",
    "LifecycleExecutor",
    "PartialSuccess",
    "ProjectModel",
    "StepStatus",
    "StepSummary",
    "UnresolvedPlaceholdersReason",
    "WorkflowParser",
    "get_workflow_file_path",
]
