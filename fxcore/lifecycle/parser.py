"""Workflow document parsing.

A workflow file maps stage names to ordered step lists::

    version: v1.2
    environmentFolderPath: ./env
    provision:
      - uses: arm/deploy
        with:
          subscriptionId: ${{AZURE_SUBSCRIPTION_ID}}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import (
    LOCAL_WORKFLOW_FILE_NAME,
    TESTTOOL_WORKFLOW_FILE_NAME,
    get_config,
)
from ..errors import UnsupportedWorkflowVersionError, WorkflowFileNotFoundError, WorkflowParseError
from .models import STAGES, DriverDefinition, Lifecycle, ProjectModel

logger = logging.getLogger(__name__)

_VARIANT_FILES = {
    "local": LOCAL_WORKFLOW_FILE_NAME,
    "testtool": TESTTOOL_WORKFLOW_FILE_NAME,
}


def get_workflow_file_path(
    project_path: Union[str, Path],
    env: Optional[str] = None,
    workflow_file_path: Optional[Union[str, Path]] = None,
) -> Path:
    """Pick the workflow file for ``env``.

    An explicit ``workflow_file_path`` wins (relative paths are taken from the
    project). Local-debug environments use their own variant file when the
    project has one; everything else uses the main workflow file.
    """
    project = Path(project_path)
    if workflow_file_path:
        explicit = Path(workflow_file_path)
        return explicit if explicit.is_absolute() else project / explicit

    variant = _VARIANT_FILES.get(env or "")
    if variant and (project / variant).exists():
        return project / variant
    return project / get_config().workflow_file_name


class WorkflowParser:
    """Parses workflow files into ``ProjectModel`` objects."""

    def parse(self, yml_path: Union[str, Path]) -> ProjectModel:
        """Read and validate a workflow file.

        Raises:
            WorkflowFileNotFoundError: If the file does not exist
            WorkflowParseError: If the document is malformed
            UnsupportedWorkflowVersionError: If the version is not supported
        """
        path = Path(yml_path)
        if not path.is_file():
            raise WorkflowFileNotFoundError(path)

        try:
            document = yaml.safe_load(path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as e:
            raise WorkflowParseError(path, f"not valid UTF-8: {e}") from e
        except yaml.YAMLError as e:
            raise WorkflowParseError(path, f"invalid YAML: {e}") from e

        model = self.parse_document(document, path)
        logger.debug(
            f"Parsed {path.name}: "
            + ", ".join(s for s in STAGES if model.get_lifecycle(s) is not None)
        )
        return model

    def parse_document(self, document: Any, path: Union[str, Path] = "<document>") -> ProjectModel:
        """Build a ``ProjectModel`` from an already loaded document."""
        if not isinstance(document, dict):
            raise WorkflowParseError(path, "the top level must be a mapping")

        version = document.get("version")
        if version is None or str(version).strip() == "":
            raise WorkflowParseError(path, "missing 'version'")
        version = str(version).strip()
        if not get_config().is_supported_workflow_version(version):
            raise UnsupportedWorkflowVersionError(path, version)

        lifecycles: Dict[str, Lifecycle] = {}
        for stage in STAGES:
            if stage not in document or document[stage] is None:
                continue
            lifecycles[stage] = Lifecycle(
                name=stage, driver_defs=tuple(self._parse_steps(document[stage], stage, path))
            )

        env_folder = document.get("environmentFolderPath")
        project_id = document.get("projectId")
        return ProjectModel(
            version=version,
            project_id=str(project_id) if project_id else None,
            environment_folder_path=str(env_folder) if env_folder else None,
            provision=lifecycles.get("provision"),
            deploy=lifecycles.get("deploy"),
            publish=lifecycles.get("publish"),
            register_app=lifecycles.get("registerApp"),
        )

    @staticmethod
    def _parse_steps(steps: Any, stage: str, path: Union[str, Path]) -> List[DriverDefinition]:
        if not isinstance(steps, list):
            raise WorkflowParseError(path, f"'{stage}' must be a list of steps")

        definitions = []
        for index, step in enumerate(steps, start=1):
            if not isinstance(step, dict):
                raise WorkflowParseError(path, f"step {index} of '{stage}' must be a mapping")
            if not isinstance(step.get("uses"), str):
                raise WorkflowParseError(path, f"step {index} of '{stage}' lacks a string 'uses'")
            try:
                definitions.append(
                    DriverDefinition(
                        uses=step["uses"],
                        with_=step.get("with"),
                        name=step.get("name"),
                        env=step.get("env"),
                    )
                )
            except ValidationError as e:
                raise WorkflowParseError(path, f"step {index} of '{stage}': {e}") from e
        return definitions
