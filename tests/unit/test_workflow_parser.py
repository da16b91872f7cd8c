"""Tests for workflow parsing and workflow file selection."""

from pathlib import Path

import pytest

from fxcore.errors import (
    UnsupportedWorkflowVersionError,
    WorkflowFileNotFoundError,
    WorkflowParseError,
)
from fxcore.lifecycle import (
    DriverDefinition,
    Lifecycle,
    WorkflowParser,
    get_workflow_file_path,
)

WORKFLOW = """
version: v1.2
projectId: 00000000-1111-2222-3333-444444444444
environmentFolderPath: ./envs
provision:
  - uses: arm/deploy
    name: Deploy resources
    with:
      subscriptionId: ${{AZURE_SUBSCRIPTION_ID}}
      templates:
        - path: ./infra/azure.bicep
  - uses: teamsApp/create
    with:
      name: demo-${{TEAMSFX_ENV}}
deploy:
  - uses: script
    env:
      PORT: 3978
      DEBUG:
    with:
      run: npm install
registerApp:
  - uses: teamsApp/create
"""


@pytest.fixture
def parser():
    return WorkflowParser()


class TestWorkflowParser:
    """Test parsing workflow documents."""

    def test_parses_stages(self, parser, write_workflow):
        model = parser.parse(write_workflow(WORKFLOW))

        assert model.version == "v1.2"
        assert model.project_id == "00000000-1111-2222-3333-444444444444"
        assert model.environment_folder_path == "./envs"
        assert model.publish is None

        provision = model.get_lifecycle("provision")
        assert provision.name == "provision"
        assert [d.uses for d in provision.driver_defs] == ["arm/deploy", "teamsApp/create"]
        assert provision.driver_defs[0].name == "Deploy resources"
        assert provision.driver_defs[0].with_["templates"] == [{"path": "./infra/azure.bicep"}]
        assert provision.driver_defs[1].display_name == "teamsApp/create"

        deploy = model.get_lifecycle("deploy")
        assert deploy.driver_defs[0].env == {"PORT": "3978", "DEBUG": ""}

        assert model.get_lifecycle("registerApp") is model.register_app
        assert model.register_app.driver_defs[0].with_ is None

    def test_parsing_is_deterministic(self, parser, write_workflow):
        path = write_workflow(WORKFLOW)
        assert parser.parse(path) == parser.parse(path)

    def test_unknown_uses_is_not_checked(self, parser, write_workflow):
        model = parser.parse(write_workflow("version: 1.0.0\npublish:\n  - uses: not/registered\n"))
        assert model.publish.driver_defs[0].uses == "not/registered"

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(WorkflowFileNotFoundError):
            parser.parse(tmp_path / "teamsapp.yml")

    @pytest.mark.parametrize(
        "content",
        [
            "version: 1.0.0\nprovision: [\n",
            "- just\n- a list\n",
            "provision: []\n",
            "version: 1.0.0\nprovision: {uses: script}\n",
            "version: 1.0.0\nprovision:\n  - just-a-string\n",
            "version: 1.0.0\nprovision:\n  - with: {}\n",
            "version: 1.0.0\nprovision:\n  - uses: 42\n",
            "version: 1.0.0\nprovision:\n  - uses: '  '\n",
            "version: 1.0.0\ndeploy:\n  - uses: script\n    env: [a]\n",
        ],
    )
    def test_malformed_documents(self, parser, write_workflow, content):
        with pytest.raises(WorkflowParseError):
            parser.parse(write_workflow(content))

    def test_non_utf8_file(self, parser, project_dir):
        path = project_dir / "teamsapp.yml"
        path.write_bytes(b"version: 1.0.0\nprovision:\n  - uses: \xff\xfe\n")

        with pytest.raises(WorkflowParseError, match="not valid UTF-8"):
            parser.parse(path)

    def test_unsupported_version(self, parser, write_workflow):
        with pytest.raises(UnsupportedWorkflowVersionError) as exc_info:
            parser.parse(write_workflow("version: 2.0.0\n"))
        assert exc_info.value.version == "2.0.0"

    def test_supported_versions_from_config(self, parser, write_workflow, monkeypatch):
        from fxcore.config import reset_config

        monkeypatch.setenv("FXCORE_WORKFLOW_VERSIONS", "1,2")
        reset_config()
        assert parser.parse(write_workflow("version: v2.0\n")).version == "v2.0"

    def test_empty_stage_is_defined(self, parser, write_workflow):
        model = parser.parse(write_workflow("version: 1.1.0\ndeploy: []\n"))
        assert model.deploy == Lifecycle(name="deploy", driver_defs=())
        assert model.provision is None


class TestModels:
    def test_driver_definition_alias(self):
        definition = DriverDefinition.model_validate({"uses": "script", "with": {"run": "ls"}})
        assert definition.with_ == {"run": "ls"}

    def test_definitions_are_immutable(self):
        definition = DriverDefinition(uses="script")
        with pytest.raises(Exception):
            definition.uses = "other"

    def test_unknown_lifecycle_name(self):
        from fxcore.lifecycle import ProjectModel

        assert ProjectModel(version="1.0.0").get_lifecycle("configure") is None


class TestGetWorkflowFilePath:
    def test_default(self, tmp_path: Path):
        assert get_workflow_file_path(tmp_path, "dev") == tmp_path / "teamsapp.yml"

    def test_local_variant_when_present(self, tmp_path: Path):
        assert get_workflow_file_path(tmp_path, "local") == tmp_path / "teamsapp.yml"
        (tmp_path / "teamsapp.local.yml").write_text("version: 1.0.0\n")
        assert get_workflow_file_path(tmp_path, "local") == tmp_path / "teamsapp.local.yml"

    def test_testtool_variant(self, tmp_path: Path):
        (tmp_path / "teamsapp.testtool.yml").write_text("version: 1.0.0\n")
        assert get_workflow_file_path(tmp_path, "testtool") == tmp_path / "teamsapp.testtool.yml"

    def test_explicit_path_wins(self, tmp_path: Path):
        (tmp_path / "teamsapp.local.yml").write_text("version: 1.0.0\n")
        assert get_workflow_file_path(tmp_path, "local", "custom.yml") == tmp_path / "custom.yml"
        absolute = tmp_path / "elsewhere" / "x.yml"
        assert get_workflow_file_path(tmp_path, "dev", absolute) == absolute
