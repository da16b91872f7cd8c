"""Environment snapshots persisted as dotenv files."""

from .crypto import LocalCrypto
from .store import EnvironmentStore, format_dotenv_value, merge_dotenv, parse_dotenv

__all__ = [
    "EnvironmentStore",
    "LocalCrypto",
    "format_dotenv_value",
    "merge_dotenv",
    "parse_dotenv",
]
