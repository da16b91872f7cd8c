"""Stage coordination: provision, deploy and publish."""

from .coordinator import Coordinator, convert_execute_result
from .inputs import (
    CoordinatorContext,
    Inputs,
    Platform,
    PreProvisionResult,
    StageResult,
    StageStatus,
)
from .interaction import NoopProgress, ProgressHandler, ProvisionPrechecks, UserInteraction
from .prechecks import DefaultPrechecks, ensure_m365_tenant_matches

__all__ = [
    "Coordinator",
    "CoordinatorContext",
    "DefaultPrechecks",
    "Inputs",
    "NoopProgress",
    "Platform",
    "PreProvisionResult",
    "ProgressHandler",
    "ProvisionPrechecks",
    "StageResult",
    "StageStatus",
    "UserInteraction",
    "convert_execute_result",
    "ensure_m365_tenant_matches",
]
