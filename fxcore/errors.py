"""Error taxonomy for the lifecycle engine.

Every error carries a stable ``name`` so callers can branch on it without
importing the concrete class, plus a ``source`` naming the component that
raised it. ``UserError`` marks problems the user can fix (bad workflow file,
missing input, declined consent); ``InternalError`` marks internal failures.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class FxError(Exception):
    """Base class for all errors surfaced by the coordinator."""

    name: str = "FxError"
    source: str = "fxcore"

    def __init__(
        self,
        message: str = "",
        *,
        source: Optional[str] = None,
        name: Optional[str] = None,
        inner_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if source is not None:
            self.source = source
        if name is not None:
            self.name = name
        self.inner_error = inner_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {"name": self.name, "source": self.source, "message": self.message}

    def __str__(self) -> str:
        return self.message or self.name


class UserError(FxError):
    """An error caused by user input or project content."""

    name = "UserError"


class InternalError(FxError):
    """An unexpected internal failure."""

    name = "InternalError"


# ---------------------------------------------------------------------------
# Workflow document
# ---------------------------------------------------------------------------


class WorkflowFileNotFoundError(UserError):
    name = "WorkflowFileNotFoundError"
    source = "parser"

    def __init__(self, path: Any) -> None:
        super().__init__(f"Workflow file not found: {path}")
        self.path = path


class WorkflowParseError(UserError):
    """Raised when the workflow document is malformed."""

    name = "WorkflowParseError"
    source = "parser"

    def __init__(self, path: Any, reason: str) -> None:
        super().__init__(f"Failed to parse workflow file {path}: {reason}")
        self.path = path
        self.reason = reason


class UnsupportedWorkflowVersionError(UserError):
    name = "UnsupportedWorkflowVersionError"
    source = "parser"

    def __init__(self, path: Any, version: str) -> None:
        super().__init__(f"Workflow file {path} declares unsupported version '{version}'")
        self.path = path
        self.version = version


class LifeCycleUndefinedError(UserError):
    """The requested stage has no steps declared in the workflow file."""

    name = "LifeCycleUndefinedError"
    source = "coordinator"

    def __init__(self, lifecycle: str) -> None:
        super().__init__(f"The '{lifecycle}' stage is not defined in the workflow file")
        self.lifecycle = lifecycle


# ---------------------------------------------------------------------------
# Drivers and execution
# ---------------------------------------------------------------------------


class DriverNotFoundError(UserError):
    name = "DriverNotFoundError"
    source = "registry"

    def __init__(self, uses: str, available: Optional[List[str]] = None) -> None:
        message = f"No driver registered for '{uses}'"
        if available:
            message += f". Available drivers: {', '.join(sorted(available))}"
        super().__init__(message)
        self.uses = uses


class MissingEnvironmentVariablesError(UserError):
    """One or more placeholders never received a value."""

    name = "MissingEnvironmentVariablesError"
    source = "executor"

    def __init__(
        self,
        variables: List[str],
        driver: Optional[str] = None,
        env_file: Optional[str] = None,
    ) -> None:
        message = f"Missing environment variables: {', '.join(variables)}"
        if driver:
            message += f" (required by '{driver}')"
        if env_file:
            message += f". Set them in {env_file} and run again"
        super().__init__(message)
        self.variables = list(variables)
        self.driver = driver


class DriverExecutionError(UserError):
    """A driver reported a failure; wraps the original error."""

    name = "DriverExecutionError"
    source = "executor"

    def __init__(
        self,
        message: str,
        *,
        driver: Optional[str] = None,
        inner_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, inner_error=inner_error)
        self.driver = driver


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


class PreconditionError(UserError):
    name = "PreconditionError"
    source = "coordinator"


class UserCancelError(PreconditionError):
    name = "UserCancelError"

    def __init__(self, message: str = "The operation was cancelled by the user") -> None:
        super().__init__(message)


class SelectSubscriptionError(PreconditionError):
    name = "SelectSubscriptionError"


class ResourceGroupError(PreconditionError):
    name = "ResourceGroupError"


class M365TenantMismatchError(PreconditionError):
    name = "M365TenantMismatchError"

    def __init__(self, env_name: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Environment '{env_name}' was provisioned in M365 tenant {expected}, "
            f"but the signed-in account belongs to tenant {actual}"
        )
        self.expected = expected
        self.actual = actual


class InvalidSubscriptionIdError(PreconditionError):
    name = "InvalidSubscriptionIdError"

    def __init__(self, driver: str) -> None:
        super().__init__(
            f"'subscriptionId' of step '{driver}' is an empty string. "
            "Remove the field or set it to a subscription id"
        )
        self.driver = driver


# ---------------------------------------------------------------------------
# Inputs, environments, configuration
# ---------------------------------------------------------------------------


class MissingRequiredInputError(UserError):
    name = "MissingRequiredInputError"

    def __init__(self, input_name: str) -> None:
        super().__init__(f"Missing required input: {input_name}")
        self.input_name = input_name


class InputValidationError(UserError):
    name = "InputValidationError"

    def __init__(self, input_name: str, reason: str) -> None:
        super().__init__(f"Invalid input '{input_name}': {reason}")
        self.input_name = input_name


class EnvironmentNotFoundError(UserError):
    name = "EnvironmentNotFoundError"
    source = "envs"

    def __init__(self, env_name: str, env_file: Any = None) -> None:
        message = f"Environment '{env_name}' does not exist"
        if env_file is not None:
            message += f" ({env_file} not found)"
        super().__init__(message)
        self.env_name = env_name


class DecryptionError(InternalError):
    name = "DecryptionError"
    source = "envs"

    def __init__(self, key: Optional[str] = None) -> None:
        target = f" for '{key}'" if key else ""
        super().__init__(
            f"Failed to decrypt secret value{target}. The value may have been "
            "encrypted for a different project"
        )
        self.key = key


class ConfigurationError(UserError):
    """Raised when configuration validation fails."""

    name = "ConfigurationError"
    source = "config"
