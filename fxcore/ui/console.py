"""Console management with Rich integration.

This module provides a ConsoleManager that adapts output to:
- Rich-rendered panels, tables and progress bars when in a TTY
- JSON lines for machine-readable logs (CI/CD)
- Plain-text fallback for non-TTY environments

It also provides ``ConsoleUserInteraction``, the terminal implementation of
the coordinator's ``UserInteraction`` interface.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sys
import threading
import time
import webbrowser
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ..config import get_config
from ..coordinator.inputs import StageResult, StageStatus
from ..errors import UserCancelError

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


class ThreadSafeConsole:
    """Thread-safe wrapper around Rich Console."""

    def __init__(self, console: Console):
        self._console = console
        self._lock = threading.RLock()  # Reentrant lock for nested calls

    def print(self, *args, **kwargs):
        with self._lock:
            self._console.print(*args, **kwargs)


class ConsoleManager:
    """Manages console output with Rich integration."""

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self._json_max_field_length = 2000
        self._json_max_nesting_depth = 10
        self.is_tty = sys.stderr.isatty()

        if self.json_output:
            self.console = None
        else:
            self.console = ThreadSafeConsole(Console(stderr=True))

    @property
    def raw_console(self) -> Optional[Console]:
        return self.console._console if self.console else None

    def setup_logging(self, logger: logging.Logger) -> None:
        """Configure logging with Rich handler or JSON/plain formatter.

        Adds a handler and sets logger level based on `verbose`.
        """

        # Prevent duplicate handlers if called multiple times
        def _has_handler_of_type(h_type):
            return any(type(h) is h_type for h in logger.handlers)

        if self.json_output:
            if not _has_handler_of_type(logging.StreamHandler):
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(handler)
        else:
            if not _has_handler_of_type(RichHandler):
                handler = RichHandler(
                    console=self.raw_console,
                    show_time=True,
                    show_path=self.verbose,
                    rich_tracebacks=True,
                )
                logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def create_progress(self, title: str, total: int):
        """Progress handler matching the output mode."""
        if self.json_output:
            return JsonProgressHandler(title, total)
        if self.is_tty and self.console is not None:
            return RichProgressHandler(self.raw_console, title, total)
        return FallbackProgressHandler(title, total)

    def print_stage(self, stage: str, status: str = "starting") -> None:
        """Print stage information with appropriate renderer."""
        if self.json_output:
            self._emit_json({"stage": stage, "status": status}, file=sys.stderr)
        elif self.console:
            status_color = {
                "starting": "blue",
                "complete": "green",
                "error": "red",
                "warning": "yellow",
            }.get(status, "white")

            self.console.print(Panel(f"[bold]{stage}[/bold]", style=status_color, padding=(0, 1)))
        else:
            print(f"[{status.upper()}] {stage}", file=sys.stderr)

    def print_message(self, level: str, message: str) -> None:
        if self.json_output:
            self._emit_json({"type": "message", "level": level, "message": message}, file=sys.stderr)
        elif self.console:
            color = {"info": "green", "warning": "yellow", "error": "red"}.get(level, "white")
            self.console.print(f"[{color}]{message}[/{color}]")
        else:
            print(message, file=sys.stderr)

    def print_stage_result(self, result: StageResult) -> None:
        """Print a stage outcome: summary lines, outputs and error."""
        if self.json_output:
            self._emit_json({"type": "result", "result": result.to_dict()})
            return

        for line in result.summaries:
            self.print_message("info" if line.startswith("(√)") else "warning", line)

        if self.console:
            if result.output:
                table = Table(title=f"{result.stage} output ({result.env_name})")
                table.add_column("Variable", style="cyan")
                table.add_column("Value", style="green")
                for key, value in result.output.items():
                    table.add_row(key, self._mask(key, value))
                self.console.print(table)
        else:
            for key, value in result.output.items():
                print(f"  {key}={self._mask(key, value)}", file=sys.stderr)

        status = {
            StageStatus.SUCCEEDED: "complete",
            StageStatus.PARTIALLY_FAILED: "warning",
            StageStatus.FAILED: "error",
        }[result.status]
        title = f"{result.stage}: {result.status.value.replace('_', ' ')}"
        if result.error is not None:
            title += f" [{result.error.name}] {result.error}"
        self.print_stage(title, status)

    def print_env(self, name: str, values: Dict[str, str]) -> None:
        if self.json_output:
            self._emit_json({"type": "env", "env": name, "values": values})
        elif self.console:
            table = Table(title=f"Environment '{name}'")
            table.add_column("Variable", style="cyan")
            table.add_column("Value", style="green")
            for key, value in values.items():
                table.add_row(key, self._mask(key, value))
            self.console.print(table)
        else:
            for key, value in values.items():
                print(f"{key}={self._mask(key, value)}")

    def print_env_list(self, envs: List[str]) -> None:
        if self.json_output:
            self._emit_json({"type": "envs", "envs": envs})
        else:
            for name in envs:
                print(name)

    @staticmethod
    def _mask(key: str, value: str) -> str:
        return "******" if value and get_config().is_secret_key(key) else value

    def _emit_json(self, payload: Dict[str, Any], file=None) -> None:
        data = {"timestamp": datetime.now().isoformat(), **self._sanitize_json_value(payload)}
        print(json.dumps(data), file=file or sys.stdout)

    def _sanitize_json_value(self, value: Any, depth: int = 0) -> Any:
        """JSON value sanitization with depth limiting."""
        if depth > self._json_max_nesting_depth:
            return "[TRUNCATED: Max depth exceeded]"

        if isinstance(value, str):
            value = _CONTROL_CHARS.sub("", value)
            if len(value) > self._json_max_field_length:
                value = value[: self._json_max_field_length - 3] + "..."
            return value
        elif isinstance(value, (bool, int, float)) or value is None:
            return value
        elif isinstance(value, dict):
            return {str(k): self._sanitize_json_value(v, depth + 1) for k, v in value.items()}
        elif isinstance(value, (list, tuple)):
            return [self._sanitize_json_value(item, depth + 1) for item in value]
        else:
            return self._sanitize_json_value(str(value), depth)


class RichProgressHandler:
    """Stage progress shown as a Rich progress bar."""

    def __init__(self, console: Console, title: str, total: int):
        self.title = title
        self.total = max(total, 1)
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=console,
        )
        self.task_id = None
        self.step = 0
        self._started = False

    def start(self) -> None:
        self.progress.start()
        self.task_id = self.progress.add_task(self.title, total=self.total)
        self._started = True

    def next(self, detail: str = "") -> None:
        if not self._started:
            return
        # Called as each step starts, so the previous steps are complete
        self.step += 1
        self.progress.update(
            self.task_id,
            completed=self.step - 1,
            description=f"{self.title}: {detail}" if detail else self.title,
        )

    def end(self, success: bool) -> None:
        if not self._started:
            return
        if success:
            self.progress.update(self.task_id, completed=self.total, description=self.title)
        self.progress.stop()
        self._started = False


class JsonProgressHandler:
    """Stage progress as JSON lines on stderr."""

    def __init__(self, title: str, total: int):
        self.title = title
        self.total = total
        self.step = 0
        self.start_time = time.time()

    def _emit(self, event: str, **fields: Any) -> None:
        data = {
            "timestamp": datetime.now().isoformat(),
            "type": "progress",
            "stage": self.title,
            "event": event,
            "elapsed": round(time.time() - self.start_time, 3),
            **fields,
        }
        print(json.dumps(data), file=sys.stderr)

    def start(self) -> None:
        self.start_time = time.time()
        self._emit("start", total=self.total)

    def next(self, detail: str = "") -> None:
        self.step += 1
        self._emit("step", step=self.step, total=self.total, detail=detail)

    def end(self, success: bool) -> None:
        self._emit("end", success=success)


class FallbackProgressHandler:
    """Plain-text progress for non-TTY environments."""

    def __init__(self, title: str, total: int):
        self.title = title
        self.total = total
        self.step = 0

    def start(self) -> None:
        print(f"{self.title} ({self.total} step(s))", file=sys.stderr)

    def next(self, detail: str = "") -> None:
        self.step += 1
        print(f"  [{self.step}/{self.total}] {detail}", file=sys.stderr)

    def end(self, success: bool) -> None:
        print(f"{self.title}: {'done' if success else 'failed'}", file=sys.stderr)


class ConsoleUserInteraction:
    """Terminal prompts and notifications for the coordinator.

    Blocking prompts run in a worker thread so the event loop stays free.
    """

    def __init__(self, manager: ConsoleManager, interactive: bool = True):
        self.manager = manager
        self.interactive = interactive and not manager.json_output

    async def select_option(self, name: str, title: str, options: List[str]) -> str:
        if not options:
            raise UserCancelError(f"No options available for {name}")
        if not self.interactive:
            return options[0]
        try:
            return await asyncio.to_thread(
                Prompt.ask, title, choices=options, default=options[0], console=self.manager.raw_console
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise UserCancelError() from e

    async def input_text(self, name: str, title: str, default: Optional[str] = None) -> str:
        if not self.interactive:
            if default is None:
                raise UserCancelError(f"Input '{name}' is required")
            return default
        try:
            if default is None:
                return await asyncio.to_thread(Prompt.ask, title, console=self.manager.raw_console)
            return await asyncio.to_thread(
                Prompt.ask, title, default=default, console=self.manager.raw_console
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise UserCancelError() from e

    async def confirm(self, title: str, message: str) -> bool:
        if message:
            self.manager.print_message("info", message)
        if not self.interactive:
            return True
        try:
            return await asyncio.to_thread(
                Confirm.ask, title, default=True, console=self.manager.raw_console
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise UserCancelError() from e

    async def show_message(self, level: str, message: str, items: List[str]) -> Optional[str]:
        self.manager.print_message(level, message)
        if not items or not self.interactive:
            return None
        choices = [*items, "Skip"]
        try:
            choice = await asyncio.to_thread(
                Prompt.ask, "Next", choices=choices, default="Skip", console=self.manager.raw_console
            )
        except (KeyboardInterrupt, EOFError):
            return None
        return None if choice == "Skip" else choice

    async def open_url(self, url: str) -> bool:
        self.manager.print_message("info", f"Opening {url}")
        return await asyncio.to_thread(webbrowser.open, url)

    def create_progress_bar(self, title: str, total: int):
        return self.manager.create_progress(title, total)
