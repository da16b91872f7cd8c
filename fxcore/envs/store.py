"""Per-environment key/value persistence.

Each environment ``<name>`` of a project is stored in two dotenv files inside
the environment folder (``<project>/env`` unless the workflow overrides it):

- ``.env.<name>``: plain values, one ``KEY=VALUE`` per line
- ``.env.<name>.user``: secret values (keys with the secret prefix), encrypted

Writes merge into the existing files: unrelated keys, comments and line order
survive, new keys are appended.
"""
from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Union

from dotenv import dotenv_values

from ..config import ENV_NAME_KEY, LOCAL_ENV_NAMES, get_config
from ..errors import EnvironmentNotFoundError, InputValidationError
from ..utils.paths import atomic_write_text
from .crypto import LocalCrypto

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ENV_FILE_PREFIX = ".env."
USER_FILE_SUFFIX = ".user"

_ENV_NAME_PATTERN = re.compile(r"^[\w-]+$")
_KEY_LINE_PATTERN = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_.-]*)\s*=")
_NEEDS_QUOTES = re.compile(r"[\s#'\"\\]")


def read_env_text(path: Path) -> str:
    """Read an env file, or "" when it does not exist.

    Raises:
        InputValidationError: If the file is not valid UTF-8
    """
    if not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InputValidationError("env", f"{path} is not valid UTF-8 text: {e}") from e


def parse_dotenv(text: str) -> Dict[str, str]:
    """Parse dotenv content into an ordered ``{key: value}`` mapping."""
    parsed = dotenv_values(stream=io.StringIO(text), interpolate=False)
    return {key: ("" if value is None else value) for key, value in parsed.items()}


def format_dotenv_value(value: str) -> str:
    """Quote a value when the unquoted form would not survive a parse."""
    if value == "" or not _NEEDS_QUOTES.search(value):
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def merge_dotenv(text: str, updates: Dict[str, str], remove: Iterable[str] = ()) -> str:
    """Apply ``updates`` to dotenv ``text`` keeping comments and line order.

    Args:
        text: Existing file content (may be empty)
        updates: Keys to set; existing lines are rewritten in place
        remove: Keys whose lines are dropped

    Returns:
        New file content
    """
    removed: Set[str] = set(remove)
    written: Set[str] = set()
    lines: List[str] = []

    for line in text.splitlines():
        match = _KEY_LINE_PATTERN.match(line)
        if match:
            key = match.group(1)
            if key in removed:
                continue
            if key in updates:
                if key not in written:
                    lines.append(f"{key}={format_dotenv_value(updates[key])}")
                    written.add(key)
                continue
        lines.append(line)

    for key, value in updates.items():
        if key not in written and key not in removed:
            lines.append(f"{key}={format_dotenv_value(value)}")

    return "\n".join(lines) + "\n" if lines else ""


class EnvironmentStore:
    """Reads and writes environment snapshots for a project."""

    def __init__(self, env_folder: Optional[str] = None):
        """Initialize the store.

        Args:
            env_folder: Default environment folder relative to the project
                (falls back to configuration)
        """
        self.env_folder = env_folder

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def get_env_folder(self, project_path: PathLike, env_folder: Optional[str] = None) -> Path:
        folder = env_folder or self.env_folder or get_config().env_folder
        return (Path(project_path) / folder).resolve()

    def get_env_file_path(
        self, project_path: PathLike, env: str, env_folder: Optional[str] = None
    ) -> Path:
        return self.get_env_folder(project_path, env_folder) / f"{ENV_FILE_PREFIX}{env}"

    def get_user_file_path(
        self, project_path: PathLike, env: str, env_folder: Optional[str] = None
    ) -> Path:
        env_file = self.get_env_file_path(project_path, env, env_folder)
        return env_file.with_name(env_file.name + USER_FILE_SUFFIX)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_env(self, project_path: PathLike, env_folder: Optional[str] = None) -> List[str]:
        """List environment names that have an env file, sorted."""
        folder = self.get_env_folder(project_path, env_folder)
        if not folder.is_dir():
            logger.debug(f"Environment folder {folder} does not exist")
            return []

        names = []
        for entry in folder.iterdir():
            if not entry.is_file() or not entry.name.startswith(ENV_FILE_PREFIX):
                continue
            if entry.name.endswith(USER_FILE_SUFFIX):
                continue
            name = entry.name[len(ENV_FILE_PREFIX):]
            if _ENV_NAME_PATTERN.match(name):
                names.append(name)
        return sorted(names)

    def list_remote_env(self, project_path: PathLike, env_folder: Optional[str] = None) -> List[str]:
        """List environments excluding the local-debug ones."""
        return [
            name
            for name in self.list_env(project_path, env_folder)
            if name not in LOCAL_ENV_NAMES
        ]

    def read_env(
        self,
        project_path: PathLike,
        env: str,
        *,
        env_folder: Optional[str] = None,
        project_id: Optional[str] = None,
        must_exist: bool = True,
    ) -> Dict[str, str]:
        """Read one environment as a single decrypted snapshot.

        Raises:
            EnvironmentNotFoundError: If the env file is missing and ``must_exist``
            DecryptionError: If a secret value cannot be decrypted
            InputValidationError: If an env file is not valid UTF-8
        """
        env_file = self.get_env_file_path(project_path, env, env_folder)
        user_file = self.get_user_file_path(project_path, env, env_folder)

        if not env_file.exists():
            if must_exist:
                raise EnvironmentNotFoundError(env, env_file)
            logger.debug(f"Env file {env_file} not found, using empty snapshot")
            return {}

        config = get_config()
        crypto = self._crypto(project_path, project_id)
        snapshot = {
            key: crypto.decrypt(value, key) if config.is_secret_key(key) else value
            for key, value in parse_dotenv(read_env_text(env_file)).items()
        }
        for key, value in parse_dotenv(read_env_text(user_file)).items():
            snapshot[key] = crypto.decrypt(value, key)
        return snapshot

    def write_env(
        self,
        project_path: PathLike,
        env: str,
        snapshot: Dict[str, str],
        *,
        env_folder: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> Path:
        """Merge ``snapshot`` into the environment's files.

        Secret keys go, encrypted, to the ``.user`` sibling and are removed
        from the plain file; everything else goes to the plain file.

        Returns:
            Path of the plain env file
        """
        self._validate_env_name(env)
        config = get_config()
        env_file = self.get_env_file_path(project_path, env, env_folder)
        user_file = self.get_user_file_path(project_path, env, env_folder)
        crypto = self._crypto(project_path, project_id)
        plain: Dict[str, str] = {}
        secrets: Dict[str, str] = {}
        for key, value in snapshot.items():
            value = "" if value is None else str(value)
            if config.is_secret_key(key):
                secrets[key] = crypto.encrypt(value)
            else:
                plain[key] = value

        existing = read_env_text(env_file)
        if ENV_NAME_KEY not in plain and ENV_NAME_KEY not in parse_dotenv(existing):
            plain = {ENV_NAME_KEY: env, **plain}
        atomic_write_text(env_file, merge_dotenv(existing, plain, remove=secrets))

        if secrets:
            existing_user = read_env_text(user_file)
            atomic_write_text(user_file, merge_dotenv(existing_user, secrets))

        logger.debug(
            f"Wrote {len(plain)} plain and {len(secrets)} secret value(s) to environment '{env}'"
        )
        return env_file

    def create_env(
        self, project_path: PathLike, env: str, *, env_folder: Optional[str] = None
    ) -> Path:
        """Create an empty environment holding only its name.

        Raises:
            InputValidationError: If the name is invalid or already exists
        """
        self._validate_env_name(env)
        env_file = self.get_env_file_path(project_path, env, env_folder)
        if env_file.exists():
            raise InputValidationError("env", f"environment '{env}' already exists")
        atomic_write_text(env_file, f"{ENV_NAME_KEY}={env}\n")
        logger.info(f"Created environment '{env}' at {env_file}")
        return env_file

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_env_name(env: str) -> None:
        if not env or not _ENV_NAME_PATTERN.match(env):
            raise InputValidationError(
                "env", f"'{env}' may only contain letters, digits, '_' and '-'"
            )

    @staticmethod
    def _crypto(project_path: PathLike, project_id: Optional[str]) -> LocalCrypto:
        return LocalCrypto(project_id or Path(project_path).resolve().name)
