"""Registry mapping ``uses`` identifiers to step drivers.

Drivers register themselves under a namespaced identifier such as
``script`` or ``arm/deploy``; the lifecycle executor resolves each step's
``uses`` through the registry and gets a fresh driver instance per run.

Example:
    >>> @register_driver("hello/world")
    ... class HelloDriver(StepDriver):
    ...     async def run(self, args, context):
    ...         return {"GREETING": "hello"}
    >>> driver = DriverRegistry.resolve("hello/world")
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Type, TypeVar

from ..errors import DriverNotFoundError
from .base import StepDriver

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Type[StepDriver])


class DriverRegistry:
    """Class-level registry of step drivers.

    All methods are class methods so the registry can be used without
    instantiation. Registration is expected at import time; resolution is
    read-only and safe to call repeatedly.
    """

    # Registry of available drivers: maps uses identifiers to driver classes
    _drivers: Dict[str, Type[StepDriver]] = {}

    @classmethod
    def register(cls, uses: str, driver_class: Type[StepDriver]) -> None:
        """Register a driver.

        Args:
            uses: Identifier used in workflow files (e.g. 'arm/deploy')
            driver_class: Class implementing StepDriver
        """
        if not uses:
            raise ValueError("Driver identifier must not be empty")
        if uses in cls._drivers and cls._drivers[uses] is not driver_class:
            logger.warning(f"Replacing driver registered for '{uses}'")
        cls._drivers[uses] = driver_class
        logger.debug(f"Registered driver: {uses}")

    @classmethod
    def unregister(cls, uses: str) -> None:
        cls._drivers.pop(uses, None)

    @classmethod
    def is_registered(cls, uses: str) -> bool:
        return uses in cls._drivers

    @classmethod
    def get_registered_drivers(cls) -> List[str]:
        """Get registered identifiers in registration order."""
        return list(cls._drivers.keys())

    @classmethod
    def resolve(cls, uses: str) -> StepDriver:
        """Create a new instance of the driver registered for ``uses``.

        Raises:
            DriverNotFoundError: If nothing is registered under ``uses``
        """
        driver_class = cls._drivers.get(uses)
        if driver_class is None:
            raise DriverNotFoundError(uses, cls.get_registered_drivers())
        return driver_class()


def register_driver(uses: str) -> Callable[[D], D]:
    """Class decorator registering a driver under ``uses``."""

    def decorator(driver_class: D) -> D:
        DriverRegistry.register(uses, driver_class)
        return driver_class

    return decorator
