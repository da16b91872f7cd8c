"""
Lifecycle models and execution results.

This module defines the parsed workflow document (``ProjectModel``), the
per-stage ``Lifecycle`` with its ordered driver definitions, and the closed
set of result variants produced by executing a lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..drivers.base import StepDriver
from ..drivers.registry import DriverRegistry
from ..errors import FxError
from .placeholders import find_unresolved

if TYPE_CHECKING:
    from ..drivers.base import DriverContext

STAGES = ("provision", "deploy", "publish", "registerApp")


class DriverDefinition(BaseModel):
    """One declared step: ``{uses, with, name?, env?}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uses: str
    with_: Any = Field(default=None, alias="with")
    name: Optional[str] = None
    env: Optional[Dict[str, str]] = None

    @field_validator("uses")
    @classmethod
    def validate_uses(cls, v):
        """Require a non-empty identifier."""
        if not v or not v.strip():
            raise ValueError("'uses' must be a non-empty string")
        return v.strip()

    @field_validator("env", mode="before")
    @classmethod
    def stringify_env(cls, v):
        """Step env values are strings, whatever YAML made of them."""
        if v is None:
            return None
        if not isinstance(v, dict):
            raise ValueError("'env' must be a mapping")
        return {str(key): "" if value is None else str(value) for key, value in v.items()}

    @property
    def display_name(self) -> str:
        return self.name or self.uses


@dataclass(frozen=True)
class DriverInstance:
    """A definition bound to a freshly created driver."""

    definition: DriverDefinition
    instance: StepDriver

    @property
    def uses(self) -> str:
        return self.definition.uses


class Lifecycle(BaseModel):
    """A named, ordered sequence of driver definitions for one stage."""

    model_config = ConfigDict(frozen=True)

    name: str
    driver_defs: Tuple[DriverDefinition, ...] = ()

    def resolve_placeholders(self, env: Dict[str, str]) -> List[str]:
        """Names referenced by any step's ``with`` but not bound in ``env``.

        Ordered by first reference, without duplicates.
        """
        unresolved: List[str] = []
        for definition in self.driver_defs:
            for name in find_unresolved(definition.with_, env):
                if name not in unresolved:
                    unresolved.append(name)
        return unresolved

    def resolve_driver_instances(
        self, registry: Type[DriverRegistry] = DriverRegistry
    ) -> List[DriverInstance]:
        """Bind every definition to a new driver, in declaration order.

        Raises:
            DriverNotFoundError: On the first unregistered ``uses``
        """
        return [
            DriverInstance(definition=definition, instance=registry.resolve(definition.uses))
            for definition in self.driver_defs
        ]

    async def execute(
        self, context: "DriverContext", registry: Type[DriverRegistry] = DriverRegistry
    ) -> "ExecutionResult":
        """Run this lifecycle; see ``LifecycleExecutor``."""
        # Import here to avoid circular imports
        from .executor import LifecycleExecutor

        return await LifecycleExecutor(registry).execute(self, context)


class ProjectModel(BaseModel):
    """The parsed workflow document."""

    model_config = ConfigDict(frozen=True)

    version: str
    project_id: Optional[str] = None
    environment_folder_path: Optional[str] = None
    provision: Optional[Lifecycle] = None
    deploy: Optional[Lifecycle] = None
    publish: Optional[Lifecycle] = None
    register_app: Optional[Lifecycle] = None

    def get_lifecycle(self, name: str) -> Optional[Lifecycle]:
        """Look up a stage by its workflow key (``registerApp`` or ``register_app``)."""
        attr = "register_app" if name in ("registerApp", "register_app") else name
        if attr not in ("provision", "deploy", "publish", "register_app"):
            return None
        return getattr(self, attr)


# ---------------------------------------------------------------------------
# Execution results
# ---------------------------------------------------------------------------


class StepStatus(Enum):
    """Outcome of one step in a lifecycle run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNRESOLVED = "unresolved"


@dataclass
class StepSummary:
    """What one step did, for reporting."""

    name: str
    uses: str
    status: StepStatus
    duration: float = 0.0
    lines: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DriverErrorReason:
    failed_driver: DriverDefinition
    error: FxError
    kind: Literal["DriverError"] = "DriverError"


@dataclass(frozen=True)
class UnresolvedPlaceholdersReason:
    failed_driver: DriverDefinition
    unresolved_placeholders: List[str]
    kind: Literal["UnresolvedPlaceholders"] = "UnresolvedPlaceholders"


PartialReason = Union[DriverErrorReason, UnresolvedPlaceholdersReason]


@dataclass(frozen=True)
class ExecutionSuccess:
    env: Dict[str, str]
    kind: Literal["Success"] = "Success"


@dataclass(frozen=True)
class ExecutionFailure:
    """The stage could not start; nothing ran."""

    error: FxError
    kind: Literal["Failure"] = "Failure"


@dataclass(frozen=True)
class PartialSuccess:
    """A strict prefix of the steps completed; ``env`` holds their outputs."""

    env: Dict[str, str]
    reason: PartialReason
    kind: Literal["PartialSuccess"] = "PartialSuccess"


ExecutionOutcome = Union[ExecutionSuccess, ExecutionFailure, PartialSuccess]


@dataclass
class ExecutionResult:
    """Outcome of a lifecycle run plus per-step summaries."""

    result: ExecutionOutcome
    summaries: List[StepSummary] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return isinstance(self.result, ExecutionSuccess)
