"""Admin SDK Directory API client.

Wraps the Directory v1 REST API for managing:
- Organizational units
- Users and their email aliases
- Groups and group memberships
- Custom user schemas
"""

from __future__ import annotations

import logging
import secrets
import string
from typing import Any

from gdirsync.google.client import GoogleAPIClient, GoogleNotFoundError

logger = logging.getLogger(__name__)

_PASSWORD_ALPHABET = string.ascii_letters + string.digits + string.punctuation
GENERATED_PASSWORD_LENGTH = 20


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Generate a random initial password for a new account."""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


class DirectoryService(GoogleAPIClient):
    """Async client for the Directory API."""

    def __init__(self, *args, customer_id: str = "my_customer", **kwargs):
        super().__init__(*args, **kwargs)
        self._customer = customer_id

    # -------------------------------------------------------------------------
    # Org units
    # -------------------------------------------------------------------------

    async def list_org_units(self) -> list[dict[str, Any]]:
        """List every org unit in the domain (not just direct children)."""
        data = await self._get(f"/customer/{self._customer}/orgunits", params={"type": "all"})
        return (data or {}).get("organizationUnits", [])

    async def create_org_unit(self, org_unit: dict[str, Any]) -> dict[str, Any]:
        logger.debug("Creating org unit: %s", org_unit.get("name"))
        return await self._post(f"/customer/{self._customer}/orgunits", json=org_unit)

    async def update_org_unit(
        self, live: dict[str, Any], org_unit: dict[str, Any]
    ) -> dict[str, Any]:
        logger.debug("Updating org unit: %s", live.get("name"))
        return await self._put(
            f"/customer/{self._customer}/orgunits/{live['orgUnitId']}", json=org_unit
        )

    async def delete_org_unit(self, live: dict[str, Any]) -> None:
        logger.debug("Deleting org unit: %s", live.get("name"))
        await self._delete(f"/customer/{self._customer}/orgunits/{live['orgUnitId']}")

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def list_users(self) -> list[dict[str, Any]]:
        """List all users, including custom schema values."""
        return await self._paginate(
            "/users",
            "users",
            params={"customer": self._customer, "orderBy": "email", "projection": "full"},
        )

    async def create_user(self, user: dict[str, Any]) -> dict[str, Any]:
        """Create a user.

        Accounts without a configured password get a random one that must be
        changed at first login.
        """
        body = dict(user)
        if not body.get("password"):
            body["password"] = generate_password()
            body["changePasswordAtNextLogin"] = True
        logger.debug("Creating user: %s", body.get("primaryEmail"))
        return await self._post("/users", json=body)

    async def update_user(self, live: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
        logger.debug("Updating user: %s", live.get("primaryEmail"))
        return await self._put(f"/users/{live['primaryEmail']}", json=user)

    async def delete_user(self, live: dict[str, Any]) -> None:
        logger.debug("Deleting user: %s", live.get("primaryEmail"))
        await self._delete(f"/users/{live['primaryEmail']}")

    async def get_user_aliases(self, user: dict[str, Any]) -> list[str]:
        """Return the sorted alias addresses of a user."""
        data = await self._get(f"/users/{user['primaryEmail']}/aliases")
        return sorted(a["alias"] for a in (data or {}).get("aliases", []) if a.get("alias"))

    async def create_user_alias(self, user: dict[str, Any], alias: str) -> None:
        logger.debug("Adding alias %s to %s", alias, user.get("primaryEmail"))
        await self._post(f"/users/{user['primaryEmail']}/aliases", json={"alias": alias})

    async def delete_user_alias(self, user: dict[str, Any], alias: str) -> None:
        logger.debug("Removing alias %s from %s", alias, user.get("primaryEmail"))
        await self._delete(f"/users/{user['primaryEmail']}/aliases/{alias}")

    # -------------------------------------------------------------------------
    # Groups and members
    # -------------------------------------------------------------------------

    async def list_groups(self) -> list[dict[str, Any]]:
        return await self._paginate(
            "/groups", "groups", params={"customer": self._customer, "orderBy": "email"}
        )

    async def create_group(self, group: dict[str, Any]) -> dict[str, Any]:
        logger.debug("Creating group: %s", group.get("email"))
        return await self._post("/groups", json=group)

    async def update_group(self, live: dict[str, Any], group: dict[str, Any]) -> dict[str, Any]:
        logger.debug("Updating group: %s", live.get("email"))
        return await self._put(f"/groups/{live['email']}", json=group)

    async def delete_group(self, live: dict[str, Any]) -> None:
        logger.debug("Deleting group: %s", live.get("email"))
        await self._delete(f"/groups/{live['email']}")

    async def list_members(self, group: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._paginate(f"/groups/{group['email']}/members", "members")

    async def add_member(self, group: dict[str, Any], member: dict[str, Any]) -> None:
        logger.debug("Adding %s to %s", member.get("email"), group.get("email"))
        await self._post(f"/groups/{group['email']}/members", json=member)

    async def update_member(self, group: dict[str, Any], member: dict[str, Any]) -> None:
        logger.debug("Updating %s in %s", member.get("email"), group.get("email"))
        await self._put(f"/groups/{group['email']}/members/{member['email']}", json=member)

    async def remove_member(self, group: dict[str, Any], member: dict[str, Any]) -> None:
        logger.debug("Removing %s from %s", member.get("email"), group.get("email"))
        await self._delete(f"/groups/{group['email']}/members/{member['email']}")

    # -------------------------------------------------------------------------
    # Custom schemas
    # -------------------------------------------------------------------------

    async def get_schema(self, name: str) -> dict[str, Any] | None:
        """Get a custom schema by name, or None if it does not exist."""
        try:
            return await self._get(f"/customer/{self._customer}/schemas/{name}")
        except GoogleNotFoundError:
            return None

    async def create_schema(self, schema: dict[str, Any]) -> dict[str, Any]:
        logger.debug("Creating schema: %s", schema.get("schemaName"))
        return await self._post(f"/customer/{self._customer}/schemas", json=schema)

    async def update_schema(
        self, live: dict[str, Any], schema: dict[str, Any]
    ) -> dict[str, Any]:
        logger.debug("Updating schema: %s", live.get("schemaName"))
        return await self._put(
            f"/customer/{self._customer}/schemas/{live['schemaId']}", json=schema
        )
