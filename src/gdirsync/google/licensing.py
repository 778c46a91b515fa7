"""Enterprise License Manager API client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from gdirsync.google.client import GoogleAPIClient, GoogleNotFoundError
from gdirsync.models.licenses import License

logger = logging.getLogger(__name__)


class LicensingService(GoogleAPIClient):
    """Async client for license assignments.

    The licensing API has a low per-user quota, so every request is
    followed by a configurable pause.
    """

    def __init__(self, *args, customer_id: str, delay: float = 0.5, **kwargs):
        """Initialize the client.

        Args:
            customer_id: Primary domain of the organization
            delay: Seconds to wait after every request
        """
        super().__init__(*args, **kwargs)
        self._customer = customer_id
        self._delay = delay

    async def _request(self, *args, **kwargs) -> Any:
        result = await super()._request(*args, **kwargs)
        if self._delay > 0:
            await asyncio.sleep(self._delay)
        return result

    async def license_assignees(self, license: License) -> list[str]:
        """Return the user ids (emails) holding the given license."""
        path = f"/product/{license.product_id}/sku/{license.sku_id}/users"
        try:
            items = await self._paginate(path, "items", params={"customerId": self._customer})
        except GoogleNotFoundError:
            # The customer has no subscription for this SKU
            logger.debug("No subscription for license %s", license.name)
            return []
        return [item["userId"] for item in items if item.get("userId")]

    async def assign_license(self, user_email: str, license: License) -> None:
        logger.debug("Assigning %s to %s", license.name, user_email)
        await self._post(
            f"/product/{license.product_id}/sku/{license.sku_id}/user",
            json={"userId": user_email},
        )

    async def unassign_license(self, user_email: str, license: License) -> None:
        logger.debug("Unassigning %s from %s", license.name, user_email)
        await self._delete(
            f"/product/{license.product_id}/sku/{license.sku_id}/user/{user_email}"
        )
