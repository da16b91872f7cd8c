"""Drivers that write generated values into project files."""

from __future__ import annotations

import json
from typing import Any, Dict

from ..errors import DriverExecutionError
from ..envs.store import merge_dotenv
from ..utils.paths import atomic_write_text, read_json, resolve_within, write_json
from .base import DriverContext, StepDriver
from .registry import register_driver


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``update`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _require_target(args: Any, driver: str) -> str:
    if not isinstance(args, dict) or not isinstance(args.get("target"), str) or not args["target"]:
        raise DriverExecutionError(f"'{driver}' requires a 'target' file path", driver=driver)
    return args["target"]


@register_driver("file/createOrUpdateEnvironmentFile")
class CreateOrUpdateEnvironmentFileDriver(StepDriver):
    """Merge ``envs`` into a dotenv file, keeping its other lines."""

    description = "Create or update an environment file"

    async def run(self, args: Any, context: DriverContext) -> Dict[str, str]:
        uses = "file/createOrUpdateEnvironmentFile"
        target = _require_target(args, uses)
        envs = args.get("envs") or {}
        if not isinstance(envs, dict):
            raise DriverExecutionError("'envs' must be a mapping", driver=uses)

        try:
            path = resolve_within(context.project_path, target)
        except ValueError as e:
            raise DriverExecutionError(str(e), driver=uses) from e

        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        updates = {str(k): "" if v is None else str(v) for k, v in envs.items()}
        atomic_write_text(path, merge_dotenv(existing, updates))
        context.logger.info(f"Updated {len(updates)} value(s) in {path}")
        return {}

    def describe(self, args: Any) -> str:
        target = args.get("target") if isinstance(args, dict) else None
        return f"Write environment variables to '{target}'" if target else self.description


@register_driver("file/createOrUpdateJsonFile")
class CreateOrUpdateJsonFileDriver(StepDriver):
    """Deep-merge ``content`` (a mapping or JSON text) into a JSON file."""

    description = "Create or update a JSON file"

    async def run(self, args: Any, context: DriverContext) -> Dict[str, str]:
        uses = "file/createOrUpdateJsonFile"
        target = _require_target(args, uses)
        content = args.get("content") or {}
        if isinstance(content, str):
            try:
                content = json.loads(content)
            except json.JSONDecodeError as e:
                raise DriverExecutionError(f"'content' is not valid JSON: {e}", driver=uses) from e
        if not isinstance(content, dict):
            raise DriverExecutionError("'content' must be a JSON object", driver=uses)

        try:
            path = resolve_within(context.project_path, target)
            existing = read_json(path)
        except ValueError as e:
            raise DriverExecutionError(str(e), driver=uses) from e
        if not isinstance(existing, dict):
            raise DriverExecutionError(f"{path} does not hold a JSON object", driver=uses)

        write_json(path, deep_merge(existing, content))
        context.logger.info(f"Updated JSON file {path}")
        return {}

    def describe(self, args: Any) -> str:
        target = args.get("target") if isinstance(args, dict) else None
        return f"Write JSON content to '{target}'" if target else self.description
