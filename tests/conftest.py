"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- Clean configuration and driver registry per test
- A project folder with a workflow file and a ``dev`` environment
- Scripted drivers that return fixed outputs or raise
"""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type

import pytest

from fxcore.config import reset_config
from fxcore.drivers import DriverContext, DriverRegistry, StepDriver


class ScriptedDriver(StepDriver):
    """Driver returning fixed outputs (or raising) and recording its calls."""

    outputs: Dict[str, str] = {}
    error: Optional[BaseException] = None
    calls: List[Dict[str, Any]] = []

    async def run(self, args: Any, context: DriverContext) -> Dict[str, str]:
        type(self).calls.append({"args": args, "env": dict(context.env), "step_env": dict(context.step_env)})
        if self.error is not None:
            raise self.error
        return dict(self.outputs)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Drop FXCORE_* overrides and the cached config around each test."""
    import os

    for key in list(os.environ):
        if key.startswith("FXCORE_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clean_registry():
    """Snapshot the driver registry and restore it after the test."""
    original_drivers = DriverRegistry._drivers.copy()
    yield DriverRegistry
    DriverRegistry._drivers.clear()
    DriverRegistry._drivers.update(original_drivers)


@pytest.fixture
def driver_factory(clean_registry) -> Callable[..., Type[ScriptedDriver]]:
    """Register a scripted driver under a ``uses`` identifier."""

    def factory(
        uses: str,
        outputs: Optional[Dict[str, str]] = None,
        error: Optional[BaseException] = None,
        description: str = "",
    ) -> Type[ScriptedDriver]:
        driver_class = type(
            f"Scripted[{uses}]",
            (ScriptedDriver,),
            {
                "outputs": dict(outputs or {}),
                "error": error,
                "calls": [],
                "description": description,
            },
        )
        DriverRegistry.register(uses, driver_class)
        return driver_class

    return factory


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project folder with an ``env/.env.dev`` file and no workflow yet."""
    env_folder = tmp_path / "env"
    env_folder.mkdir()
    (env_folder / ".env.dev").write_text("TEAMSFX_ENV=dev\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def write_workflow(project_dir: Path) -> Callable[..., Path]:
    """Write a workflow file into the project folder."""

    def writer(content: str, name: str = "teamsapp.yml") -> Path:
        path = project_dir / name
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path

    return writer
