"""Tests for the stage coordinator."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from fxcore.config import reset_config
from fxcore.coordinator import (
    Coordinator,
    CoordinatorContext,
    Inputs,
    StageStatus,
    convert_execute_result,
)
from fxcore.coordinator.coordinator import ADMIN_PORTAL_ITEM
from fxcore.envs import EnvironmentStore, parse_dotenv
from fxcore.errors import (
    DriverExecutionError,
    DriverNotFoundError,
    EnvironmentNotFoundError,
    InternalError,
    InvalidSubscriptionIdError,
    LifeCycleUndefinedError,
    M365TenantMismatchError,
    MissingEnvironmentVariablesError,
    MissingRequiredInputError,
    UserCancelError,
    WorkflowParseError,
)
from fxcore.lifecycle import (
    DriverDefinition,
    DriverErrorReason,
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    PartialSuccess,
    UnresolvedPlaceholdersReason,
)

PROVISION_WORKFLOW = """
version: 1.0.0
provision:
  - uses: arm/deploy
    with:
      subscriptionId: ${{AZURE_SUBSCRIPTION_ID}}
      resourceGroupName: ${{AZURE_RESOURCE_GROUP_NAME}}
  - uses: teamsApp/create
    with:
      name: app-${{TEAMSFX_ENV}}
"""


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Resolve placeholders from env files only."""
    monkeypatch.setenv("FXCORE_RESOLVE_PROCESS_ENV", "false")
    reset_config()


@pytest.fixture
def progress():
    return Mock()


@pytest.fixture
def ui(progress):
    ui = Mock()
    ui.select_option = AsyncMock(return_value="dev")
    ui.input_text = AsyncMock(return_value="")
    ui.confirm = AsyncMock(return_value=True)
    ui.show_message = AsyncMock(return_value=None)
    ui.open_url = AsyncMock(return_value=True)
    ui.create_progress_bar = Mock(return_value=progress)
    return ui


@pytest.fixture
def prechecks():
    prechecks = Mock()
    prechecks.ensure_subscription = AsyncMock(return_value="sub-1")
    prechecks.ensure_resource_group = AsyncMock(return_value="rg-1")
    prechecks.get_m365_tenant_id = AsyncMock(return_value="tenant-1")
    prechecks.ask_for_provision_consent = AsyncMock(return_value=True)
    prechecks.ask_for_deploy_consent = AsyncMock(return_value=True)
    return prechecks


@pytest.fixture
def coordinator(ui, prechecks):
    return Coordinator(CoordinatorContext(ui=ui, prechecks=prechecks))


@pytest.fixture
def cloud_drivers(driver_factory):
    arm = driver_factory("arm/deploy", outputs={"STORAGE_NAME": "st1"}, description="Deploy ARM")
    teams = driver_factory("teamsApp/create", outputs={"TEAMS_APP_ID": "app-1"})
    return arm, teams


def read_env_file(project_dir: Path, env: str = "dev") -> dict:
    return parse_dotenv((project_dir / "env" / f".env.{env}").read_text())


class TestProvision:
    """Provision stage."""

    @pytest.mark.asyncio
    async def test_happy_path_from_zero(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks, progress
    ):
        write_workflow(PROVISION_WORKFLOW)
        arm, _ = cloud_drivers
        inputs = Inputs(project_path=str(project_dir), env="dev")

        result = await coordinator.provision(inputs)

        assert result.status is StageStatus.SUCCEEDED, result.error
        assert result.error is None
        assert result.output == {
            "AZURE_SUBSCRIPTION_ID": "sub-1",
            "AZURE_RESOURCE_GROUP_NAME": "rg-1",
            "TEAMS_APP_TENANT_ID": "tenant-1",
            "STORAGE_NAME": "st1",
            "TEAMS_APP_ID": "app-1",
        }
        assert inputs.env_vars == result.output
        assert arm.calls[0]["args"] == {"subscriptionId": "sub-1", "resourceGroupName": "rg-1"}

        persisted = read_env_file(project_dir)
        assert persisted["TEAMSFX_ENV"] == "dev"
        assert persisted["AZURE_SUBSCRIPTION_ID"] == "sub-1"
        assert persisted["TEAMS_APP_ID"] == "app-1"

        progress.start.assert_called_once()
        progress.end.assert_called_once_with(True)
        prechecks.ask_for_provision_consent.assert_awaited_once()
        descriptions = prechecks.ask_for_provision_consent.call_args.args[2]
        assert descriptions == ["(1) arm/deploy: Deploy ARM", "(2) teamsApp/create: Scripted[teamsApp/create]"]

    @pytest.mark.asyncio
    async def test_subscription_already_in_env(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks
    ):
        write_workflow(PROVISION_WORKFLOW)
        (project_dir / "env" / ".env.dev").write_text(
            "TEAMSFX_ENV=dev\nAZURE_SUBSCRIPTION_ID=existing\nAZURE_RESOURCE_GROUP_NAME=rg\n"
        )

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok
        prechecks.ensure_subscription.assert_not_awaited()
        prechecks.ensure_resource_group.assert_not_awaited()
        assert cloud_drivers[0].calls[0]["args"]["subscriptionId"] == "existing"

    @pytest.mark.asyncio
    async def test_empty_subscription_in_env_is_requested(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks
    ):
        write_workflow(PROVISION_WORKFLOW)
        (project_dir / "env" / ".env.dev").write_text(
            "TEAMSFX_ENV=dev\nAZURE_SUBSCRIPTION_ID=\nAZURE_RESOURCE_GROUP_NAME=\n"
        )

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.SUCCEEDED, result.error
        prechecks.ensure_subscription.assert_awaited_once()
        prechecks.ensure_resource_group.assert_awaited_once()
        assert prechecks.ensure_resource_group.call_args.args[1] == "sub-1"
        assert cloud_drivers[0].calls[0]["args"] == {
            "subscriptionId": "sub-1",
            "resourceGroupName": "rg-1",
        }
        assert read_env_file(project_dir)["AZURE_SUBSCRIPTION_ID"] == "sub-1"

    @pytest.mark.asyncio
    async def test_unexpected_precheck_error_is_reported(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks, progress
    ):
        write_workflow(PROVISION_WORKFLOW)
        cause = RuntimeError("token provider down")
        prechecks.ensure_subscription = AsyncMock(side_effect=cause)

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.FAILED
        assert isinstance(result.error, InternalError)
        assert result.error.inner_error is cause
        assert "token provider down" in str(result.error)
        assert cloud_drivers[0].calls == []
        progress.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_after_start_ends_progress(
        self, coordinator, cloud_drivers, write_workflow, project_dir, progress, monkeypatch
    ):
        write_workflow(PROVISION_WORKFLOW)
        monkeypatch.setattr(
            "fxcore.coordinator.coordinator.DriverContext", Mock(side_effect=RuntimeError("boom"))
        )

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.FAILED
        assert isinstance(result.error, InternalError)
        progress.start.assert_called_once()
        progress.end.assert_called_once_with(False)

    @pytest.mark.asyncio
    async def test_prompts_finish_before_progress_starts(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks, progress
    ):
        write_workflow(PROVISION_WORKFLOW)
        started_during_prompt = []

        async def consent(*args):
            started_during_prompt.append(progress.start.called)
            return True

        prechecks.ask_for_provision_consent = AsyncMock(side_effect=consent)

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok
        assert started_during_prompt == [False]
        progress.start.assert_called_once()

    @pytest.mark.asyncio
    async def test_prompts_for_env(self, coordinator, cloud_drivers, write_workflow, project_dir, ui):
        write_workflow(PROVISION_WORKFLOW)
        (project_dir / "env" / ".env.local").write_text("TEAMSFX_ENV=local\n")
        inputs = Inputs(project_path=str(project_dir))

        result = await coordinator.provision(inputs)

        assert result.ok
        assert result.env_name == "dev"
        assert inputs.env == "dev"
        assert ui.select_option.call_args.args[2] == ["dev"]

    @pytest.mark.asyncio
    async def test_missing_env_non_interactive(
        self, coordinator, cloud_drivers, write_workflow, project_dir, ui
    ):
        write_workflow(PROVISION_WORKFLOW)

        result = await coordinator.provision(Inputs(project_path=str(project_dir), interactive=False))

        assert result.status is StageStatus.FAILED
        assert isinstance(result.error, MissingRequiredInputError)
        ui.create_progress_bar.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_env(self, coordinator, cloud_drivers, write_workflow, project_dir):
        write_workflow(PROVISION_WORKFLOW)
        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="prod"))
        assert isinstance(result.error, EnvironmentNotFoundError)

    @pytest.mark.asyncio
    async def test_missing_project_path(self, coordinator):
        result = await coordinator.provision(Inputs(env="dev"))
        assert isinstance(result.error, MissingRequiredInputError)

    @pytest.mark.asyncio
    async def test_parse_error(self, coordinator, write_workflow, project_dir):
        write_workflow("version: 1.0.0\nprovision: {}\n")
        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))
        assert isinstance(result.error, WorkflowParseError)

    @pytest.mark.asyncio
    async def test_empty_subscription_id(
        self, coordinator, cloud_drivers, write_workflow, project_dir, progress
    ):
        write_workflow(
            """
            version: 1.0.0
            provision:
              - uses: arm/deploy
                with:
                  subscriptionId: ""
            """
        )

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert isinstance(result.error, InvalidSubscriptionIdError)
        assert cloud_drivers[0].calls == []
        progress.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_consent_declined(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks, progress
    ):
        write_workflow(PROVISION_WORKFLOW)
        prechecks.ask_for_provision_consent.return_value = False

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert isinstance(result.error, UserCancelError)
        assert result.error.name == "UserCancelError"
        assert cloud_drivers[0].calls == []
        progress.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_subscription_selection_cancelled(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks
    ):
        write_workflow(PROVISION_WORKFLOW)
        prechecks.ensure_subscription.side_effect = UserCancelError()

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.FAILED
        assert isinstance(result.error, UserCancelError)
        assert cloud_drivers[0].calls == []

    @pytest.mark.asyncio
    async def test_no_consent_for_local_env(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks
    ):
        write_workflow(PROVISION_WORKFLOW)
        (project_dir / "env" / ".env.local").write_text("TEAMSFX_ENV=local\n")

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="local"))

        assert result.ok
        prechecks.ask_for_provision_consent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_local_workflow_variant(
        self, coordinator, driver_factory, write_workflow, project_dir
    ):
        write_workflow(PROVISION_WORKFLOW)
        write_workflow(
            "version: 1.0.0\nprovision:\n  - uses: test/local\n", name="teamsapp.local.yml"
        )
        (project_dir / "env" / ".env.local").write_text("TEAMSFX_ENV=local\n")
        local = driver_factory("test/local", outputs={"LOCAL": "yes"})

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="local"))

        assert result.output == {"LOCAL": "yes"}
        assert len(local.calls) == 1

    @pytest.mark.asyncio
    async def test_tenant_mismatch(
        self, coordinator, cloud_drivers, write_workflow, project_dir, prechecks
    ):
        write_workflow(PROVISION_WORKFLOW)
        (project_dir / "env" / ".env.dev").write_text(
            "TEAMSFX_ENV=dev\nTEAMS_APP_TENANT_ID=tenant-old\n"
        )

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert isinstance(result.error, M365TenantMismatchError)
        assert cloud_drivers[1].calls == []

    @pytest.mark.asyncio
    async def test_description_failure_aborts(
        self, coordinator, driver_factory, write_workflow, project_dir, progress
    ):
        write_workflow("version: 1.0.0\nprovision:\n  - uses: unknown/driver\n")

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.FAILED
        assert isinstance(result.error, DriverNotFoundError)
        progress.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_partial_success_is_persisted(
        self, coordinator, driver_factory, write_workflow, project_dir, progress
    ):
        write_workflow(
            "version: 1.0.0\nprovision:\n  - uses: test/a\n  - uses: test/b\n  - uses: test/c\n"
        )
        (project_dir / "env" / ".env.dev").write_text("TEAMSFX_ENV=dev\nPREVIOUS=kept\n")
        driver_factory("test/a", outputs={"K1": "V1"})
        driver_factory("test/b", error=DriverExecutionError("failed", driver="test/b"))
        c = driver_factory("test/c", outputs={"K3": "V3"})

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.PARTIALLY_FAILED
        assert isinstance(result.error, DriverExecutionError)
        assert result.output == {"K1": "V1"}
        assert c.calls == []
        assert read_env_file(project_dir) == {"TEAMSFX_ENV": "dev", "PREVIOUS": "kept", "K1": "V1"}
        progress.end.assert_called_once_with(False)
        assert result.summaries[0] == "(√) Done: test/a"

    @pytest.mark.asyncio
    async def test_unresolved_then_resume(
        self, coordinator, driver_factory, write_workflow, project_dir
    ):
        write_workflow(
            """
            version: 1.0.0
            provision:
              - uses: test/a
              - uses: test/b
                with:
                  key: ${{USER_VALUE}}
            """
        )
        a = driver_factory("test/a", outputs={"A_OUT": "1"})
        b = driver_factory("test/b", outputs={"B_OUT": "2"})
        inputs = Inputs(project_path=str(project_dir), env="dev")

        first = await coordinator.provision(inputs)

        assert first.status is StageStatus.PARTIALLY_FAILED
        assert isinstance(first.error, MissingEnvironmentVariablesError)
        assert first.error.variables == ["USER_VALUE"]
        assert read_env_file(project_dir)["A_OUT"] == "1"

        env_file = project_dir / "env" / ".env.dev"
        env_file.write_text(env_file.read_text() + "USER_VALUE=given\n")
        second = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert second.ok
        assert b.calls[0]["args"] == {"key": "given"}
        assert len(a.calls) == 2

    @pytest.mark.asyncio
    async def test_secrets_go_to_user_file(
        self, coordinator, driver_factory, write_workflow, project_dir
    ):
        write_workflow("version: 1.0.0\nprovision:\n  - uses: test/a\n")
        driver_factory("test/a", outputs={"KEY1": "v1", "SECRET_KEY2": "s2"})

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok
        main = read_env_file(project_dir)
        user = parse_dotenv((project_dir / "env" / ".env.dev.user").read_text())
        assert main["KEY1"] == "v1"
        assert "SECRET_KEY2" not in main
        assert user["SECRET_KEY2"].startswith("crypto_")
        assert EnvironmentStore().read_env(project_dir, "dev")["SECRET_KEY2"] == "s2"

    @pytest.mark.asyncio
    async def test_without_ui(self, prechecks, cloud_drivers, write_workflow, project_dir):
        write_workflow(PROVISION_WORKFLOW)
        coordinator = Coordinator(CoordinatorContext(prechecks=prechecks))

        result = await coordinator.provision(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok


class TestLifecycleUndefined:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("stage", ["provision", "deploy", "publish"])
    async def test_stage_absent(self, coordinator, write_workflow, project_dir, progress, stage):
        write_workflow("version: 1.0.0\nregisterApp:\n  - uses: teamsApp/create\n")

        for env in ("dev", "does-not-exist", None):
            result = await getattr(coordinator, stage)(
                Inputs(project_path=str(project_dir), env=env, interactive=False)
            )
            assert result.status is StageStatus.FAILED
            assert isinstance(result.error, LifeCycleUndefinedError)
            assert result.error.name == "LifeCycleUndefinedError"
        progress.start.assert_not_called()


class TestDeploy:
    DEPLOY_WORKFLOW = "version: 1.0.0\ndeploy:\n  - uses: test/deploy\n"

    @pytest.mark.asyncio
    async def test_happy_path(self, coordinator, driver_factory, write_workflow, project_dir, prechecks, progress):
        write_workflow(self.DEPLOY_WORKFLOW)
        driver_factory("test/deploy", outputs={"ENDPOINT": "https://x"})

        result = await coordinator.deploy(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok
        prechecks.ask_for_deploy_consent.assert_awaited_once()
        progress.end.assert_called_once_with(True)
        assert read_env_file(project_dir)["ENDPOINT"] == "https://x"

    @pytest.mark.asyncio
    async def test_cancel(self, coordinator, driver_factory, write_workflow, project_dir, prechecks):
        write_workflow(self.DEPLOY_WORKFLOW)
        deploy = driver_factory("test/deploy")
        prechecks.ask_for_deploy_consent.return_value = False

        result = await coordinator.deploy(Inputs(project_path=str(project_dir), env="dev"))

        assert isinstance(result.error, UserCancelError)
        assert deploy.calls == []

    @pytest.mark.asyncio
    async def test_non_interactive_skips_consent(
        self, coordinator, driver_factory, write_workflow, project_dir, prechecks
    ):
        write_workflow(self.DEPLOY_WORKFLOW)
        driver_factory("test/deploy")

        result = await coordinator.deploy(
            Inputs(project_path=str(project_dir), env="dev", interactive=False)
        )

        assert result.ok
        prechecks.ask_for_deploy_consent.assert_not_awaited()


class TestPublish:
    PUBLISH_WORKFLOW = "version: 1.0.0\npublish:\n  - uses: test/publish\n"

    @pytest.mark.asyncio
    async def test_offers_admin_portal(self, coordinator, driver_factory, write_workflow, project_dir, ui):
        write_workflow(self.PUBLISH_WORKFLOW)
        driver_factory("test/publish")
        ui.show_message.return_value = ADMIN_PORTAL_ITEM

        result = await coordinator.publish(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok
        ui.show_message.assert_awaited_once()
        assert ui.show_message.call_args.args[2] == [ADMIN_PORTAL_ITEM]
        ui.open_url.assert_awaited_once_with(
            "https://admin.teams.microsoft.com/policies/manage-apps"
        )

    @pytest.mark.asyncio
    async def test_no_ui(self, driver_factory, write_workflow, project_dir):
        write_workflow(self.PUBLISH_WORKFLOW)
        driver_factory("test/publish")

        result = await Coordinator().publish(Inputs(project_path=str(project_dir), env="dev"))

        assert result.ok

    @pytest.mark.asyncio
    async def test_failed(self, coordinator, driver_factory, write_workflow, project_dir, ui, progress):
        write_workflow(self.PUBLISH_WORKFLOW)
        driver_factory("test/publish", error=RuntimeError("rejected"))

        result = await coordinator.publish(Inputs(project_path=str(project_dir), env="dev"))

        assert result.status is StageStatus.PARTIALLY_FAILED
        assert "rejected" in str(result.error)
        ui.open_url.assert_not_awaited()
        progress.end.assert_called_once_with(False)


class TestConvertExecuteResult:
    def test_ok(self):
        output, error = convert_execute_result(ExecutionResult(result=ExecutionSuccess(env={"A": "1"})))
        assert output == {"A": "1"}
        assert error is None

    def test_failure(self):
        failure = DriverNotFoundError("x/y")
        output, error = convert_execute_result(ExecutionResult(result=ExecutionFailure(error=failure)))
        assert output == {}
        assert error is failure

    def test_partial_driver_error(self):
        driver_error = DriverExecutionError("bad")
        reason = DriverErrorReason(failed_driver=DriverDefinition(uses="x/y"), error=driver_error)
        output, error = convert_execute_result(
            ExecutionResult(result=PartialSuccess(env={"A": "1"}, reason=reason))
        )
        assert output == {"A": "1"}
        assert error is driver_error

    def test_partial_unresolved(self):
        reason = UnresolvedPlaceholdersReason(
            failed_driver=DriverDefinition(uses="x/y"), unresolved_placeholders=["X", "Y"]
        )
        output, error = convert_execute_result(
            ExecutionResult(result=PartialSuccess(env={"A": "1"}, reason=reason)), "env/.env.dev"
        )
        assert output == {"A": "1"}
        assert isinstance(error, MissingEnvironmentVariablesError)
        assert error.variables == ["X", "Y"]
        assert "env/.env.dev" in str(error)


class TestSupplementalOperations:
    @pytest.mark.asyncio
    async def test_get_selected_env(self, coordinator, write_workflow, project_dir):
        write_workflow(PROVISION_WORKFLOW)
        env = await coordinator.get_selected_env(Inputs(project_path=str(project_dir), env="dev"))
        assert env == "dev"

    @pytest.mark.asyncio
    async def test_get_selected_env_cancelled(self, coordinator, write_workflow, project_dir, ui):
        write_workflow(PROVISION_WORKFLOW)
        ui.select_option.side_effect = UserCancelError()
        with pytest.raises(UserCancelError):
            await coordinator.get_selected_env(Inputs(project_path=str(project_dir)))

    @pytest.mark.asyncio
    async def test_pre_provision_for_vs(self, coordinator, write_workflow, project_dir):
        write_workflow(
            """
            version: 1.0.0
            registerApp:
              - uses: arm/deploy
                with:
                  subscriptionId: mockSubId
                  resourceGroupName: mockRG
              - uses: teamsApp/create
            """
        )

        result = await coordinator.pre_provision_for_vs(Inputs(project_path=str(project_dir), env="dev"))

        assert result.need_azure_login is True
        assert result.need_m365_login is True
        assert result.resolved_azure_subscription_id == "mockSubId"
        assert result.resolved_azure_resource_group_name == "mockRG"

    @pytest.mark.asyncio
    async def test_pre_provision_for_vs_unresolved(self, coordinator, write_workflow, project_dir):
        write_workflow(PROVISION_WORKFLOW)

        result = await coordinator.pre_provision_for_vs(Inputs(project_path=str(project_dir), env="dev"))

        assert result.need_azure_login is True
        assert result.resolved_azure_subscription_id is None
        assert result.resolved_azure_resource_group_name is None

    @pytest.mark.asyncio
    async def test_pre_provision_for_vs_m365_only(self, coordinator, write_workflow, project_dir):
        write_workflow("version: 1.0.0\nprovision:\n  - uses: teamsApp/create\n")
        result = await coordinator.pre_provision_for_vs(Inputs(project_path=str(project_dir), env="dev"))
        assert result.need_azure_login is False
        assert result.need_m365_login is True

    def test_get_dot_envs(self, coordinator, write_workflow, project_dir):
        write_workflow(PROVISION_WORKFLOW)
        (project_dir / "env" / ".env.prod").write_text("TEAMSFX_ENV=prod\nK=v\n")

        envs = coordinator.get_dot_envs(Inputs(project_path=str(project_dir)))

        assert list(envs) == ["dev", "prod"]
        assert envs["prod"] == {"TEAMSFX_ENV": "prod", "K": "v"}
