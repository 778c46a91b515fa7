"""Custom schema holding the password fingerprint of managed users."""

from __future__ import annotations

import logging
from typing import Any

from gdirsync.audit.logger import SCHEMA, ChangeLog
from gdirsync.google.client import GoogleAPIError
from gdirsync.models.config import PASSWORD_HASH_FIELD, SCHEMA_DISPLAY_NAME, SCHEMA_NAME
from gdirsync.sync.errors import SchemaFailure

logger = logging.getLogger(__name__)


def desired_schema() -> dict[str, Any]:
    return {
        "schemaName": SCHEMA_NAME,
        "displayName": SCHEMA_DISPLAY_NAME,
        "fields": [
            {
                "fieldName": PASSWORD_HASH_FIELD,
                "fieldType": "STRING",
                "readAccessType": "ADMINS_AND_SELF",
                "multiValued": False,
                "indexed": False,
            }
        ],
    }


def _schema_fields(schema: dict[str, Any]) -> tuple:
    fields = sorted(
        (
            f.get("fieldName", ""),
            f.get("fieldType", ""),
            f.get("readAccessType", "ALL_DOMAIN_USERS"),
            bool(f.get("multiValued", False)),
            bool(f.get("indexed", True)),
        )
        for f in schema.get("fields") or []
    )
    return schema.get("displayName", ""), tuple(fields)


def schema_up_to_date(live: dict[str, Any]) -> bool:
    return _schema_fields(live) == _schema_fields(desired_schema())


async def sync_schema(directory, changes: ChangeLog, confirm: bool) -> bool:
    """Make sure the password fingerprint schema exists as expected.

    Returns True if the schema was (or would be) created or updated.
    """
    changes.section("Schema")
    desired = desired_schema()

    try:
        live = await directory.get_schema(SCHEMA_NAME)
    except GoogleAPIError as e:
        raise SchemaFailure(SCHEMA, SCHEMA_NAME, f"unable to fetch schema: {e}") from e

    if live is None:
        changes.create(SCHEMA, SCHEMA_NAME)
        if confirm:
            try:
                await directory.create_schema(desired)
            except GoogleAPIError as e:
                raise SchemaFailure(SCHEMA, SCHEMA_NAME, f"unable to create schema: {e}") from e
        return True

    if schema_up_to_date(live):
        changes.unchanged(SCHEMA, SCHEMA_NAME)
        return False

    changes.update(SCHEMA, SCHEMA_NAME)
    if confirm:
        try:
            await directory.update_schema(live, desired)
        except GoogleAPIError as e:
            raise SchemaFailure(SCHEMA, SCHEMA_NAME, f"unable to update schema: {e}") from e
    return True
