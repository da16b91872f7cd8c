"""Terminal user interface: console output, progress and prompts."""

from .console import ConsoleManager, ConsoleUserInteraction

__all__ = ["ConsoleManager", "ConsoleUserInteraction"]
