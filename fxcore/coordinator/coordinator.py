"""
Stage coordinator.

Runs the provision, deploy and publish stages of a project end to end:
selects the environment, loads the workflow, checks stage preconditions, runs
the lifecycle, persists what it produced and reports the outcome.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, Tuple, Type

from ..config import (
    AZURE_RESOURCE_GROUP_NAME,
    AZURE_SUBSCRIPTION_ID,
    LOCAL_ENV_NAMES,
    TEAMS_APP_TENANT_ID,
    get_config,
)
from ..drivers.base import DriverContext
from ..drivers.registry import DriverRegistry
from ..envs.store import EnvironmentStore
from ..errors import (
    EnvironmentNotFoundError,
    FxError,
    InputValidationError,
    InternalError,
    InvalidSubscriptionIdError,
    LifeCycleUndefinedError,
    MissingEnvironmentVariablesError,
    MissingRequiredInputError,
    UserCancelError,
)
from ..lifecycle.models import (
    DriverErrorReason,
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    Lifecycle,
    ProjectModel,
)
from ..lifecycle.parser import WorkflowParser, get_workflow_file_path
from ..lifecycle.placeholders import find_placeholders, substitute
from ..reporting.summary import get_lifecycle_descriptions, summarize_execution
from .inputs import CoordinatorContext, Inputs, PreProvisionResult, StageResult, StageStatus
from .interaction import NoopProgress, ProgressHandler
from .prechecks import DefaultPrechecks, ensure_m365_tenant_matches

AZURE_DRIVER_PREFIXES = ("arm/", "azure")
M365_DRIVER_PREFIXES = ("teamsApp/", "aadApp/", "botAadApp/", "botFramework/")
ADMIN_PORTAL_ITEM = "Go to admin portal"

Preconditions = Callable[[Inputs, str, Lifecycle, Dict[str, str]], Awaitable[Dict[str, str]]]


def convert_execute_result(
    result: ExecutionResult, env_file: Optional[str] = None
) -> Tuple[Dict[str, str], Optional[FxError]]:
    """Turn an execution result into ``(output, error)`` for callers.

    - success: all outputs, no error
    - failure: empty output, the original error
    - partial success: outputs of the completed steps, plus the driver's
      error or a ``MissingEnvironmentVariablesError`` naming the placeholders
    """
    outcome = result.result
    if isinstance(outcome, ExecutionSuccess):
        return dict(outcome.env), None
    if isinstance(outcome, ExecutionFailure):
        return {}, outcome.error

    reason = outcome.reason
    if isinstance(reason, DriverErrorReason):
        return dict(outcome.env), reason.error
    return dict(outcome.env), MissingEnvironmentVariablesError(
        reason.unresolved_placeholders, driver=reason.failed_driver.display_name, env_file=env_file
    )


def _uses_any(lifecycle: Lifecycle, prefixes: Tuple[str, ...]) -> bool:
    return any(d.uses.startswith(prefixes) for d in lifecycle.driver_defs)


class Coordinator:
    """Runs lifecycle stages for a project."""

    def __init__(
        self,
        context: Optional[CoordinatorContext] = None,
        registry: Type[DriverRegistry] = DriverRegistry,
        parser: Optional[WorkflowParser] = None,
        env_store: Optional[EnvironmentStore] = None,
    ):
        """Initialize the coordinator.

        Args:
            context: UI, prechecks and logger
            registry: Driver registry used to resolve steps
            parser: Workflow parser
            env_store: Environment persistence
        """
        self.context = context or CoordinatorContext()
        self.registry = registry
        self.parser = parser or WorkflowParser()
        self.env_store = env_store or EnvironmentStore()
        self.logger = self.context.logger
        self.prechecks = self.context.prechecks or DefaultPrechecks(self.context.ui)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def provision(self, inputs: Inputs) -> StageResult:
        return await self._run_stage("provision", inputs, self._provision_preconditions)

    async def deploy(self, inputs: Inputs) -> StageResult:
        return await self._run_stage("deploy", inputs, self._deploy_preconditions)

    async def publish(self, inputs: Inputs) -> StageResult:
        result = await self._run_stage("publish", inputs, notify=False)
        if result.ok:
            await self._offer_admin_portal(inputs, result.env_name)
        return result

    async def _run_stage(
        self,
        stage: str,
        inputs: Inputs,
        preconditions: Optional[Preconditions] = None,
        notify: bool = True,
    ) -> StageResult:
        """Shared stage flow; failures are reported in the result, never raised."""
        env_name = inputs.env or ""
        progress: Optional[ProgressHandler] = None
        try:
            project_path = self._require_project_path(inputs)
            project = self._load_project(inputs, inputs.env)
            lifecycle = self._require_lifecycle(project, stage)

            env_name = await self.get_selected_env(inputs, project)
            if env_name != inputs.env:
                inputs.env = env_name
                project = self._load_project(inputs, env_name)
                lifecycle = self._require_lifecycle(project, stage)

            persisted = self.env_store.read_env(
                project_path,
                env_name,
                env_folder=project.environment_folder_path,
                project_id=project.project_id,
            )
            env = self._resolution_env(persisted)

            extra: Dict[str, str] = {}
            if preconditions is not None:
                extra = await preconditions(inputs, env_name, lifecycle, env)
                env.update(extra)

            # No prompts may run once the live display has started
            progress = self._create_progress(stage, lifecycle)
            progress.start()

            self.logger.info(f"Running {stage} in environment '{env_name}'")
            driver_context = DriverContext(
                project_path=Path(project_path),
                env_name=env_name,
                platform=inputs.platform.value,
                env=env,
                ui=self.context.ui,
                progress=progress,
                logger=self.logger.getChild("drivers"),
            )
            result = await lifecycle.execute(driver_context, self.registry)
        except FxError as e:
            self.logger.error(f"{stage} failed: {e}")
            if progress is not None:
                progress.end(False)
            return StageResult(stage=stage, env_name=env_name, status=StageStatus.FAILED, error=e)
        except Exception as e:
            self.logger.exception(f"{stage} failed unexpectedly: {e}")
            if progress is not None:
                progress.end(False)
            error = InternalError(f"{stage} failed unexpectedly: {e}", inner_error=e)
            return StageResult(stage=stage, env_name=env_name, status=StageStatus.FAILED, error=error)

        env_file = self.env_store.get_env_file_path(
            project_path, env_name, project.environment_folder_path
        )
        output, error = convert_execute_result(result, str(env_file))
        if isinstance(result.result, ExecutionFailure):
            status = StageStatus.FAILED
        else:
            status = StageStatus.SUCCEEDED if error is None else StageStatus.PARTIALLY_FAILED
            output = {**extra, **output}

        to_persist = {**extra, **output}
        if to_persist:
            try:
                self.env_store.write_env(
                    project_path,
                    env_name,
                    to_persist,
                    env_folder=project.environment_folder_path,
                    project_id=project.project_id,
                )
            except OSError as e:
                error = error or InternalError(
                    f"Failed to write environment '{env_name}': {e}", inner_error=e
                )
                status = StageStatus.FAILED

        inputs.env_vars = dict(output)
        progress.end(status is StageStatus.SUCCEEDED)
        summaries = summarize_execution(result)
        for line in summaries:
            self.logger.info(line)

        if status is StageStatus.SUCCEEDED:
            self.logger.info(f"{stage} succeeded in environment '{env_name}'")
            if notify:
                await self._notify(f"'{stage}' completed successfully in environment '{env_name}'")
        else:
            self.logger.error(f"{stage} {status.value.replace('_', ' ')}: {error}")

        return StageResult(
            stage=stage,
            env_name=env_name,
            status=status,
            output=output,
            error=error,
            summaries=summaries,
        )

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    async def _provision_preconditions(
        self, inputs: Inputs, env_name: str, lifecycle: Lifecycle, env: Dict[str, str]
    ) -> Dict[str, str]:
        for definition in lifecycle.driver_defs:
            args = definition.with_
            if definition.uses == "arm/deploy" and isinstance(args, dict):
                if args.get("subscriptionId") == "":
                    raise InvalidSubscriptionIdError(definition.display_name)

        extra: Dict[str, str] = {}
        unresolved = lifecycle.resolve_placeholders(env)
        if AZURE_SUBSCRIPTION_ID in unresolved:
            extra[AZURE_SUBSCRIPTION_ID] = await self.prechecks.ensure_subscription(inputs)
            self.logger.info(f"Using subscription {extra[AZURE_SUBSCRIPTION_ID]}")
        if AZURE_RESOURCE_GROUP_NAME in unresolved:
            subscription_id = extra.get(AZURE_SUBSCRIPTION_ID) or env.get(AZURE_SUBSCRIPTION_ID, "")
            extra[AZURE_RESOURCE_GROUP_NAME] = await self.prechecks.ensure_resource_group(
                inputs, subscription_id
            )
            self.logger.info(f"Using resource group {extra[AZURE_RESOURCE_GROUP_NAME]}")

        if _uses_any(lifecycle, M365_DRIVER_PREFIXES):
            tenant_id = await self.prechecks.get_m365_tenant_id(inputs)
            if tenant_id:
                ensure_m365_tenant_matches(env_name, env.get(TEAMS_APP_TENANT_ID), tenant_id)
                extra[TEAMS_APP_TENANT_ID] = tenant_id

        descriptions = get_lifecycle_descriptions(lifecycle, self.registry)
        if env_name not in LOCAL_ENV_NAMES and inputs.interactive:
            if not await self.prechecks.ask_for_provision_consent(inputs, env_name, descriptions):
                raise UserCancelError()
        return extra

    async def _deploy_preconditions(
        self, inputs: Inputs, env_name: str, lifecycle: Lifecycle, env: Dict[str, str]
    ) -> Dict[str, str]:
        descriptions = get_lifecycle_descriptions(lifecycle, self.registry)
        if env_name not in LOCAL_ENV_NAMES and inputs.interactive:
            if not await self.prechecks.ask_for_deploy_consent(inputs, env_name, descriptions):
                raise UserCancelError()
        return {}

    # ------------------------------------------------------------------
    # Environment selection and loading
    # ------------------------------------------------------------------

    async def get_selected_env(
        self, inputs: Inputs, project: Optional[ProjectModel] = None
    ) -> str:
        """Return the environment to run against, prompting when allowed.

        Raises:
            EnvironmentNotFoundError: If the requested environment does not exist
            MissingRequiredInputError: If no environment was given and none can be chosen
            UserCancelError: If the user backs out of the selection
        """
        project_path = self._require_project_path(inputs)
        env_folder = self.resolve_env_folder(inputs, project)
        envs = self.env_store.list_env(project_path, env_folder)

        if inputs.env:
            if inputs.env not in envs:
                raise EnvironmentNotFoundError(
                    inputs.env, self.env_store.get_env_file_path(project_path, inputs.env, env_folder)
                )
            return inputs.env

        ui = self.context.ui
        if ui is None or not inputs.interactive or not envs:
            raise MissingRequiredInputError("env")
        options = self.env_store.list_remote_env(project_path, env_folder) or envs
        return await ui.select_option("env", "Select an environment", options)

    def get_dot_envs(self, inputs: Inputs) -> Dict[str, Dict[str, str]]:
        """Read every environment of the project, keyed by name."""
        project_path = self._require_project_path(inputs)
        env_folder = self.resolve_env_folder(inputs)
        project_id = self.resolve_project_id(inputs)
        return {
            name: self.env_store.read_env(
                project_path, name, env_folder=env_folder, project_id=project_id
            )
            for name in self.env_store.list_env(project_path, env_folder)
        }

    async def pre_provision_for_vs(self, inputs: Inputs) -> PreProvisionResult:
        """Report which sign-ins a Visual Studio host needs before provisioning.

        Raises:
            FxError: On any selection, parse or environment error
        """
        project_path = self._require_project_path(inputs)
        env_name = await self.get_selected_env(inputs)
        project = self._load_project(inputs, env_name)
        lifecycle = project.register_app or project.provision
        if lifecycle is None:
            raise LifeCycleUndefinedError("registerApp")

        persisted = self.env_store.read_env(
            project_path,
            env_name,
            env_folder=project.environment_folder_path,
            project_id=project.project_id,
        )
        env = self._resolution_env(persisted)

        subscription_id = env.get(AZURE_SUBSCRIPTION_ID) or None
        resource_group = env.get(AZURE_RESOURCE_GROUP_NAME) or None
        for definition in lifecycle.driver_defs:
            if definition.uses != "arm/deploy" or not isinstance(definition.with_, dict):
                continue
            args, _ = substitute(definition.with_, env)
            value = args.get("subscriptionId")
            if value and not find_placeholders(value):
                subscription_id = str(value)
            value = args.get("resourceGroupName")
            if value and not find_placeholders(value):
                resource_group = str(value)
            break

        return PreProvisionResult(
            need_azure_login=_uses_any(lifecycle, AZURE_DRIVER_PREFIXES),
            need_m365_login=_uses_any(lifecycle, M365_DRIVER_PREFIXES),
            resolved_azure_subscription_id=subscription_id,
            resolved_azure_resource_group_name=resource_group,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_project_path(inputs: Inputs) -> str:
        if not inputs.project_path:
            raise MissingRequiredInputError("project_path")
        if not Path(inputs.project_path).is_dir():
            raise InputValidationError(
                "project_path", f"{inputs.project_path} is not a directory"
            )
        return inputs.project_path

    def _load_project(self, inputs: Inputs, env_name: Optional[str]) -> ProjectModel:
        path = get_workflow_file_path(inputs.project_path, env_name, inputs.workflow_file_path)
        self.logger.debug(f"Loading workflow {path}")
        return self.parser.parse(path)

    @staticmethod
    def _require_lifecycle(project: ProjectModel, stage: str) -> Lifecycle:
        lifecycle = project.get_lifecycle(stage)
        if lifecycle is None:
            raise LifeCycleUndefinedError(stage)
        return lifecycle

    def resolve_env_folder(
        self, inputs: Inputs, project: Optional[ProjectModel] = None
    ) -> Optional[str]:
        """Environment folder declared by the project's workflow file, if any."""
        if project is not None:
            return project.environment_folder_path
        path = get_workflow_file_path(inputs.project_path, inputs.env, inputs.workflow_file_path)
        return self.parser.parse(path).environment_folder_path if path.is_file() else None

    def resolve_project_id(self, inputs: Inputs) -> Optional[str]:
        path = get_workflow_file_path(inputs.project_path, inputs.env, inputs.workflow_file_path)
        return self.parser.parse(path).project_id if path.is_file() else None

    @staticmethod
    def _resolution_env(persisted: Dict[str, str]) -> Dict[str, str]:
        """Persisted values, over the process environment when enabled."""
        if get_config().resolve_process_env:
            return {**os.environ, **persisted}
        return dict(persisted)

    def _create_progress(self, stage: str, lifecycle: Lifecycle) -> ProgressHandler:
        ui = self.context.ui
        if ui is None:
            return NoopProgress()
        return ui.create_progress_bar(f"Executing {stage}", len(lifecycle.driver_defs))

    async def _notify(self, message: str) -> None:
        if self.context.ui is not None:
            await self.context.ui.show_message("info", message, [])

    async def _offer_admin_portal(self, inputs: Inputs, env_name: str) -> None:
        ui = self.context.ui
        if ui is None:
            return
        url = get_config().admin_portal_url
        if not inputs.interactive:
            await ui.show_message(
                "info", f"Your app in '{env_name}' is pending approval in the admin portal: {url}", []
            )
            return
        choice = await ui.show_message(
            "info",
            f"Your app in '{env_name}' was published. An administrator can approve it in the admin portal.",
            [ADMIN_PORTAL_ITEM],
        )
        if choice == ADMIN_PORTAL_ITEM:
            await ui.open_url(url)

