"""Groups Settings API client."""

from __future__ import annotations

import logging
from typing import Any

from gdirsync.google.client import GoogleAPIClient

logger = logging.getLogger(__name__)


class GroupsSettingsService(GoogleAPIClient):
    """Async client for the Groups Settings API.

    The API answers in Atom XML unless JSON is requested explicitly, and it
    reports its boolean settings as the strings "true"/"false".
    """

    async def get_settings(self, group_email: str) -> dict[str, Any]:
        return await self._get(f"/{group_email}", params={"alt": "json"})

    async def update_settings(
        self, group: dict[str, Any], settings: dict[str, Any]
    ) -> dict[str, Any]:
        logger.debug("Updating settings of group: %s", group.get("email"))
        return await self._request(
            "PUT", f"/{group['email']}", params={"alt": "json"}, json=settings
        )
