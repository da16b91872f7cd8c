"""Human-readable descriptions of what a stage will do and what it did."""

from __future__ import annotations

from typing import List, Type

from ..drivers.registry import DriverRegistry
from ..lifecycle.models import (
    DriverErrorReason,
    ExecutionFailure,
    ExecutionResult,
    Lifecycle,
    PartialSuccess,
    StepStatus,
    UnresolvedPlaceholdersReason,
)

DONE = "(√) Done:"
ERROR = "(×) Error:"
WARNING = "(!) Warning:"


def get_lifecycle_descriptions(
    lifecycle: Lifecycle, registry: Type[DriverRegistry] = DriverRegistry
) -> List[str]:
    """Describe each step of ``lifecycle``, numbered in declaration order.

    Args:
        lifecycle: Stage to describe
        registry: Registry used to look up each step's driver

    Returns:
        Lines of the form ``(1) <name>: <description>``

    Raises:
        DriverNotFoundError: If a step's driver is not registered
    """
    lines = []
    for index, instance in enumerate(lifecycle.resolve_driver_instances(registry), start=1):
        definition = instance.definition
        lines.append(
            f"({index}) {definition.display_name}: {instance.instance.describe(definition.with_)}"
        )
    return lines


def summarize_execution(result: ExecutionResult) -> List[str]:
    """Post-run report lines for an execution result."""
    lines: List[str] = []
    for step in result.summaries:
        if step.status is StepStatus.SUCCEEDED:
            detail = "; ".join(step.lines)
            lines.append(f"{DONE} {step.name}" + (f" ({detail})" if detail else ""))

    outcome = result.result
    if isinstance(outcome, ExecutionFailure):
        lines.append(f"{ERROR} {outcome.error}")
    elif isinstance(outcome, PartialSuccess):
        reason = outcome.reason
        if isinstance(reason, DriverErrorReason):
            lines.append(f"{ERROR} {reason.failed_driver.display_name} failed: {reason.error}")
        elif isinstance(reason, UnresolvedPlaceholdersReason):
            lines.append(
                f"{WARNING} {reason.failed_driver.display_name} was not run, unresolved "
                f"placeholders: {', '.join(reason.unresolved_placeholders)}"
            )
    return lines
