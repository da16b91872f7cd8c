"""Driver running a user script as a lifecycle step.

The script's stdout is scanned for output commands:

    ::set-teamsfx-env KEY=VALUE
    ::set-output name=KEY::VALUE

Each one becomes an output variable of the step.
"""

from __future__ import annotations

import asyncio
import os
import re
from typing import Any, Dict, List, Optional

from ..config import get_config
from ..errors import DriverExecutionError
from ..utils.paths import resolve_within
from .base import DriverContext, StepDriver
from .registry import register_driver

_SET_ENV_PATTERN = re.compile(r"^::set-teamsfx-env\s+([A-Za-z_][A-Za-z0-9_]*)=(.*)$")
_SET_OUTPUT_PATTERN = re.compile(r"^::set-output\s+name=([A-Za-z_][A-Za-z0-9_]*)::(.*)$")

# Keep failure messages readable when scripts are chatty
_OUTPUT_TAIL = 4000


def parse_script_outputs(stdout: str) -> Dict[str, str]:
    """Collect output variables declared on stdout; later lines win."""
    outputs: Dict[str, str] = {}
    for raw_line in stdout.splitlines():
        line = raw_line.strip()
        match = _SET_ENV_PATTERN.match(line) or _SET_OUTPUT_PATTERN.match(line)
        if match:
            outputs[match.group(1)] = match.group(2).strip()
    return outputs


@register_driver("script")
class ScriptDriver(StepDriver):
    """Run a shell command in the project folder."""

    description = "Run a script"

    async def run(self, args: Any, context: DriverContext) -> Dict[str, str]:
        if not isinstance(args, dict) or not isinstance(args.get("run"), str) or not args["run"].strip():
            raise DriverExecutionError("'script' requires a non-empty 'run' command", driver="script")

        command: str = args["run"]
        try:
            cwd = resolve_within(context.project_path, args.get("workingDirectory") or ".")
        except ValueError as e:
            raise DriverExecutionError(str(e), driver="script") from e
        if not cwd.is_dir():
            raise DriverExecutionError(f"Working directory not found: {cwd}", driver="script")

        timeout = float(args.get("timeout") or get_config().script_timeout)
        env = {**os.environ, **context.env, **context.step_env}

        context.logger.info(f"Running script: {command}")
        proc = await self._spawn(command, args.get("shell"), str(cwd), env)
        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise DriverExecutionError(
                f"Script timed out after {timeout:.0f}s: {command}", driver="script"
            ) from e

        stdout = stdout_b.decode("utf-8", errors="replace")
        stderr = stderr_b.decode("utf-8", errors="replace")
        for line in stdout.splitlines():
            context.logger.debug(line)

        if proc.returncode != 0:
            raise DriverExecutionError(
                f"Script failed (exit={proc.returncode}): {command}\n{stderr[-_OUTPUT_TAIL:]}",
                driver="script",
            )

        return parse_script_outputs(stdout)

    def describe(self, args: Any) -> str:
        command = args.get("run") if isinstance(args, dict) else None
        return f"Run script '{command}'" if command else self.description

    @staticmethod
    async def _spawn(
        command: str, shell: Optional[str], cwd: str, env: Dict[str, str]
    ) -> asyncio.subprocess.Process:
        if shell:
            argv: List[str] = [shell, "-c", command]
            return await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        return await asyncio.create_subprocess_shell(
            command,
            cwd=cwd,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
