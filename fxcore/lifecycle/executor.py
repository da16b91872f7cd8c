"""
Sequential lifecycle executor.

Steps run strictly one after another. Each step sees the resolution
environment plus every output produced earlier in the same run, and the first
unresolved placeholder or driver error stops the stage.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Dict, List, Optional, Tuple, Type

from ..drivers.base import DriverContext
from ..drivers.registry import DriverRegistry
from ..errors import DriverExecutionError, DriverNotFoundError, FxError
from .models import (
    DriverErrorReason,
    DriverInstance,
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    Lifecycle,
    PartialSuccess,
    StepStatus,
    StepSummary,
    UnresolvedPlaceholdersReason,
)
from .placeholders import substitute, substitute_env_block

logger = logging.getLogger(__name__)


def wrap_driver_error(error: BaseException, uses: str) -> FxError:
    """Return ``error`` as an FxError naming the failed driver."""
    if isinstance(error, FxError):
        return error
    return DriverExecutionError(f"{uses}: {error}", driver=uses, inner_error=error)


class LifecycleExecutor:
    """Runs a lifecycle's steps in declaration order."""

    def __init__(self, registry: Type[DriverRegistry] = DriverRegistry):
        """Initialize executor.

        Args:
            registry: Registry resolving ``uses`` identifiers
        """
        self.registry = registry

    async def execute(self, lifecycle: Lifecycle, context: DriverContext) -> ExecutionResult:
        """Execute ``lifecycle``.

        Args:
            lifecycle: Stage to run
            context: Driver context; ``context.env`` is the initial environment

        Returns:
            ExecutionResult whose env holds only outputs produced in this run
        """
        try:
            instances = lifecycle.resolve_driver_instances(self.registry)
        except DriverNotFoundError as e:
            logger.error(f"Cannot run '{lifecycle.name}': {e}")
            return ExecutionResult(result=ExecutionFailure(error=e))

        logger.info(f"Executing lifecycle '{lifecycle.name}' with {len(instances)} step(s)")
        outputs: Dict[str, str] = {}
        summaries: List[StepSummary] = []

        for index, step in enumerate(instances, start=1):
            definition = step.definition
            env = {**context.env, **outputs}

            args, unresolved = substitute(definition.with_, env)
            step_env, unresolved_env = substitute_env_block(definition.env or {}, env)
            unresolved += [name for name in unresolved_env if name not in unresolved]
            if unresolved:
                logger.warning(
                    f"Step {index} '{definition.display_name}' has unresolved placeholders: "
                    f"{', '.join(unresolved)}"
                )
                summaries.append(
                    StepSummary(
                        name=definition.display_name,
                        uses=definition.uses,
                        status=StepStatus.UNRESOLVED,
                        lines=[f"Unresolved placeholders: {', '.join(unresolved)}"],
                    )
                )
                reason = UnresolvedPlaceholdersReason(
                    failed_driver=definition, unresolved_placeholders=unresolved
                )
                return ExecutionResult(
                    result=PartialSuccess(env=dict(outputs), reason=reason), summaries=summaries
                )

            summary, produced, error = await self._run_step(
                step, index, args, step_env, env, context
            )
            summaries.append(summary)
            if error is not None:
                reason = DriverErrorReason(failed_driver=definition, error=error)
                return ExecutionResult(
                    result=PartialSuccess(env=dict(outputs), reason=reason), summaries=summaries
                )
            # Later steps override earlier values of the same key
            outputs.update(produced)

        logger.info(f"Lifecycle '{lifecycle.name}' completed")
        return ExecutionResult(result=ExecutionSuccess(env=outputs), summaries=summaries)

    async def _run_step(
        self,
        step: DriverInstance,
        index: int,
        args: Any,
        step_env: Dict[str, str],
        env: Dict[str, str],
        context: DriverContext,
    ) -> Tuple[StepSummary, Dict[str, str], Optional[FxError]]:
        """Run one step against a copy of ``context`` bound to ``env``.

        Returns:
            Tuple of (summary, produced outputs, error or None)
        """
        definition = step.definition
        step_context = dataclasses.replace(context, env=env, step_env=step_env)
        if context.progress is not None:
            context.progress.next(definition.display_name)

        logger.info(f"Step {index}: {definition.display_name} ({definition.uses})")
        start = time.monotonic()
        try:
            result = await step.instance.execute(args, step_context)
        except Exception as e:
            duration = time.monotonic() - start
            error = wrap_driver_error(e, definition.uses)
            logger.error(f"Step {index} '{definition.display_name}' failed: {error}")
            return (
                StepSummary(
                    name=definition.display_name,
                    uses=definition.uses,
                    status=StepStatus.FAILED,
                    duration=duration,
                    lines=[str(error)],
                ),
                {},
                error,
            )

        duration = time.monotonic() - start
        produced = {key: "" if value is None else str(value) for key, value in result.env.items()}
        logger.debug(f"Step {index} produced {len(produced)} output(s) in {duration:.2f}s")
        return (
            StepSummary(
                name=definition.display_name,
                uses=definition.uses,
                status=StepStatus.SUCCEEDED,
                duration=duration,
                lines=list(result.summaries),
            ),
            produced,
            None,
        )
