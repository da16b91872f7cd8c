"""Default stage preconditions for hosts without a cloud account provider.

Subscription and resource group come from the inputs, or from the user when
the run is interactive. The signed-in M365 tenant comes from configuration.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..config import get_config
from ..errors import M365TenantMismatchError, ResourceGroupError, SelectSubscriptionError
from .inputs import Inputs
from .interaction import UserInteraction

logger = logging.getLogger(__name__)


def ensure_m365_tenant_matches(env_name: str, expected: Optional[str], actual: str) -> None:
    """Fail when the environment was provisioned for a different M365 tenant.

    Raises:
        M365TenantMismatchError: If ``expected`` is set and differs from ``actual``
    """
    if expected and expected != actual:
        raise M365TenantMismatchError(env_name, expected, actual)


class DefaultPrechecks:
    """``ProvisionPrechecks`` backed by inputs, configuration and prompts."""

    def __init__(self, ui: Optional[UserInteraction] = None):
        self.ui = ui

    def _can_prompt(self, inputs: Inputs) -> bool:
        return self.ui is not None and inputs.interactive

    async def ensure_subscription(self, inputs: Inputs) -> str:
        if inputs.target_subscription_id:
            return inputs.target_subscription_id
        if self._can_prompt(inputs):
            subscription_id = (
                await self.ui.input_text("subscription", "Azure subscription id")
            ).strip()
            if subscription_id:
                return subscription_id
        raise SelectSubscriptionError(
            "No Azure subscription selected. Pass --subscription or set AZURE_SUBSCRIPTION_ID"
        )

    async def ensure_resource_group(self, inputs: Inputs, subscription_id: str) -> str:
        if inputs.target_resource_group_name:
            return inputs.target_resource_group_name
        if self._can_prompt(inputs):
            default = f"rg-{inputs.env}" if inputs.env else None
            name = (
                await self.ui.input_text(
                    "resourceGroup",
                    f"Resource group in subscription {subscription_id}",
                    default,
                )
            ).strip()
            if name:
                return name
        raise ResourceGroupError(
            "No resource group selected. Pass --resource-group or set AZURE_RESOURCE_GROUP_NAME"
        )

    async def get_m365_tenant_id(self, inputs: Inputs) -> Optional[str]:
        return get_config().m365_tenant_id

    async def ask_for_provision_consent(
        self, inputs: Inputs, env_name: str, descriptions: List[str]
    ) -> bool:
        return await self._ask(f"Provision resources in environment '{env_name}'?", descriptions)

    async def ask_for_deploy_consent(
        self, inputs: Inputs, env_name: str, descriptions: List[str]
    ) -> bool:
        return await self._ask(f"Deploy to environment '{env_name}'?", descriptions)

    async def _ask(self, title: str, descriptions: List[str]) -> bool:
        if self.ui is None:
            logger.debug(f"No UI available, assuming consent: {title}")
            return True
        return await self.ui.confirm(title, "\n".join(descriptions))
