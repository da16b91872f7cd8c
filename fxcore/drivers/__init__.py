"""Step drivers and the registry resolving them.

Importing this package registers the builtin drivers.
"""

from .base import DriverContext, DriverOutput, StepDriver
from .registry import DriverRegistry, register_driver

# Builtin drivers register on import
from . import file, script  # noqa: E402,F401

__all__ = [
    "DriverContext",
    "DriverOutput",
    "DriverRegistry",
    "StepDriver",
    "register_driver",
]
