"""Configuration management using environment variables.

Settings are read from the process environment (a ``.env`` file in the
working directory is loaded first, without overriding variables that are
already set). Every field can be overridden with an ``FXCORE_*`` variable.
"""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# Workflow file names per environment flavour
WORKFLOW_FILE_NAME = "teamsapp.yml"
LOCAL_WORKFLOW_FILE_NAME = "teamsapp.local.yml"
TESTTOOL_WORKFLOW_FILE_NAME = "teamsapp.testtool.yml"

LOCAL_ENV_NAMES = ("local", "testtool")

ENV_NAME_KEY = "TEAMSFX_ENV"

# Well-known variables the provision preconditions fill in
AZURE_SUBSCRIPTION_ID = "AZURE_SUBSCRIPTION_ID"
AZURE_RESOURCE_GROUP_NAME = "AZURE_RESOURCE_GROUP_NAME"
TEAMS_APP_TENANT_ID = "TEAMS_APP_TENANT_ID"
TEAMS_APP_ID = "TEAMS_APP_ID"


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def _parse_list(value: str | List[str] | None, delimiter: str = ",") -> List[str]:
    """Parse list value from string or return as-is if already a list."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [item.strip() for item in value.split(delimiter) if item.strip()]
    return [] if value is None else [value]


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_int(key: str, default: int) -> int:
    """Get integer environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Parsed integer value

    Raises:
        ConfigurationError: If value cannot be parsed as integer
    """
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid integer value for {key}='{value}'. Expected integer, got: {value}"
        ) from e


def load_dotenv_file(path: Optional[Path] = None) -> bool:
    """Load a ``.env`` file into the process environment if present.

    Returns:
        True if a file was loaded
    """
    env_path = path or Path(".env")
    if env_path.exists():
        load_dotenv(env_path, override=False)
        logger.debug(f"Loaded environment from {env_path}")
        return True
    return False


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # ========== Application Settings ==========
    app_name: str = field(default_factory=lambda: _getenv("FXCORE_APP_NAME", "fxcore"))
    app_version: str = field(default_factory=lambda: _getenv("FXCORE_APP_VERSION", "1.0.0"))

    # ========== Project Layout ==========
    env_folder: str = field(default_factory=lambda: _getenv("FXCORE_ENV_FOLDER", "env"))
    workflow_file_name: str = field(
        default_factory=lambda: _getenv("FXCORE_WORKFLOW_FILE", WORKFLOW_FILE_NAME)
    )
    supported_workflow_versions: List[str] = field(
        default_factory=lambda: _parse_list(_getenv("FXCORE_WORKFLOW_VERSIONS", "1"))
    )

    # ========== Environment Files ==========
    secret_prefix: str = field(default_factory=lambda: _getenv("FXCORE_SECRET_PREFIX", "SECRET_"))
    encrypted_prefix: str = field(
        default_factory=lambda: _getenv("FXCORE_ENCRYPTED_PREFIX", "crypto_")
    )
    resolve_process_env: bool = field(
        default_factory=lambda: _parse_bool(_getenv("FXCORE_RESOLVE_PROCESS_ENV", "true"))
    )

    # ========== Logging ==========
    log_level: str = field(default_factory=lambda: _getenv("FXCORE_LOG_LEVEL", "INFO").upper())
    log_format: str = field(
        default_factory=lambda: _getenv(
            "FXCORE_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )
    log_file: Optional[str] = field(default_factory=lambda: _getenv("FXCORE_LOG_FILE") or None)

    # ========== Drivers ==========
    script_timeout: int = field(default_factory=lambda: _getenv_int("FXCORE_SCRIPT_TIMEOUT", 600))

    # ========== Accounts ==========
    m365_tenant_id: Optional[str] = field(
        default_factory=lambda: _getenv("FXCORE_M365_TENANT_ID") or None
    )

    # ========== Publish ==========
    admin_portal_url: str = field(
        default_factory=lambda: _getenv(
            "FXCORE_ADMIN_PORTAL_URL", "https://admin.teams.microsoft.com/policies/manage-apps"
        )
    )

    def __post_init__(self) -> None:
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log level: {self.log_level}")
        if not self.secret_prefix:
            raise ConfigurationError("FXCORE_SECRET_PREFIX must not be empty")
        if not self.encrypted_prefix:
            raise ConfigurationError("FXCORE_ENCRYPTED_PREFIX must not be empty")

    def is_secret_key(self, key: str) -> bool:
        """Whether values of ``key`` are encrypted at rest."""
        return key.startswith(self.secret_prefix)

    def is_supported_workflow_version(self, version: str) -> bool:
        """Check a workflow ``version`` against the supported major versions."""
        major = version.lstrip("vV").split(".", 1)[0]
        return major in self.supported_workflow_versions


# Singleton instance with thread-safe initialization
_config_instance: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance (singleton pattern, thread-safe)."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            # Double-check pattern to prevent race conditions
            if _config_instance is None:
                _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached instance so the next ``get_config()`` re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "AZURE_RESOURCE_GROUP_NAME",
    "AZURE_SUBSCRIPTION_ID",
    "Config",
    "ENV_NAME_KEY",
    "LOCAL_ENV_NAMES",
    "LOCAL_WORKFLOW_FILE_NAME",
    "TEAMS_APP_ID",
    "TEAMS_APP_TENANT_ID",
    "TESTTOOL_WORKFLOW_FILE_NAME",
    "WORKFLOW_FILE_NAME",
    "get_config",
    "load_dotenv_file",
    "reset_config",
]
