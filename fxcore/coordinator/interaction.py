"""Collaborator interfaces the coordinator talks to.

The coordinator never renders anything itself: prompts, progress bars and
account checks go through these interfaces, passed in explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .inputs import Inputs


@runtime_checkable
class ProgressHandler(Protocol):
    """Progress indicator for one stage run."""

    def start(self) -> None: ...

    def next(self, detail: str = "") -> None: ...

    def end(self, success: bool) -> None: ...


class NoopProgress:
    """Progress handler used when no UI is available."""

    def start(self) -> None:
        pass

    def next(self, detail: str = "") -> None:
        pass

    def end(self, success: bool) -> None:
        pass


@runtime_checkable
class UserInteraction(Protocol):
    """Prompts and notifications shown to the user.

    Prompt methods raise ``UserCancelError`` when the user backs out.
    """

    async def select_option(self, name: str, title: str, options: List[str]) -> str: ...

    async def input_text(self, name: str, title: str, default: Optional[str] = None) -> str: ...

    async def confirm(self, title: str, message: str) -> bool: ...

    async def show_message(self, level: str, message: str, items: List[str]) -> Optional[str]:
        """Show ``message``; return the item the user picked, if any."""
        ...

    async def open_url(self, url: str) -> bool: ...

    def create_progress_bar(self, title: str, total: int) -> ProgressHandler: ...


@runtime_checkable
class ProvisionPrechecks(Protocol):
    """Account and consent checks run before a stage executes."""

    async def ensure_subscription(self, inputs: "Inputs") -> str:
        """Return the Azure subscription id to provision into."""
        ...

    async def ensure_resource_group(self, inputs: "Inputs", subscription_id: str) -> str:
        """Return the resource group to provision into, creating it if needed."""
        ...

    async def get_m365_tenant_id(self, inputs: "Inputs") -> Optional[str]:
        """Tenant of the signed-in M365 account, or None when unknown."""
        ...

    async def ask_for_provision_consent(
        self, inputs: "Inputs", env_name: str, descriptions: List[str]
    ) -> bool: ...

    async def ask_for_deploy_consent(
        self, inputs: "Inputs", env_name: str, descriptions: List[str]
    ) -> bool: ...
