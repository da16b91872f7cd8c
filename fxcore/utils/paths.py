"""File helpers for project folders.

Drivers and the environment store only touch files inside the project, and
replace them atomically so an interrupted run never leaves a half-written env
or settings file behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def resolve_within(root: Path | str, relative: Path | str) -> Path:
    """Resolve ``relative`` against ``root`` and refuse paths outside it.

    Raises:
        ValueError: If the resolved path escapes ``root``
    """
    root_resolved = Path(root).resolve()
    candidate = (root_resolved / Path(relative)).resolve()
    if candidate != root_resolved and root_resolved not in candidate.parents:
        raise ValueError(f"Path escapes project folder: {candidate} not in {root_resolved}")
    return candidate


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``text`` via a temporary sibling file.

    Parent folders are created. OSError propagates to the caller.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_json(path: Path, *, encoding: str = "utf-8") -> Any:
    """Read JSON from ``path``; a missing or empty file reads as ``{}``."""
    if not path.exists():
        return {}
    text = path.read_text(encoding=encoding)
    return json.loads(text) if text.strip() else {}


def write_json(path: Path, data: Any, *, indent: int = 2) -> None:
    """Atomically write ``data`` as indented JSON with a trailing newline."""
    atomic_write_text(path, json.dumps(data, indent=indent) + "\n")
