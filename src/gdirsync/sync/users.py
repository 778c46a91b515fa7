"""User reconciliation, including aliases and licenses."""

from __future__ import annotations

import logging
from typing import Any

from gdirsync.audit.logger import ALIAS, USER, ChangeLog
from gdirsync.google.client import GoogleAPIError
from gdirsync.google.conversion import ConversionError, to_api_user
from gdirsync.models.config import Configuration, User
from gdirsync.models.licenses import LicenseCatalog
from gdirsync.sync.compare import password_up_to_date, user_up_to_date
from gdirsync.sync.errors import (
    ConvertFailure,
    CreateFailure,
    DeleteFailure,
    ListFailure,
    UpdateFailure,
)
from gdirsync.sync.license_status import LicenseStatus
from gdirsync.sync.licenses import sync_user_licenses

logger = logging.getLogger(__name__)


async def sync_users(
    directory,
    licensing,
    cfg: Configuration,
    license_status: LicenseStatus,
    catalog: LicenseCatalog,
    changes: ChangeLog,
    confirm: bool,
    enable_passwords: bool = False,
) -> bool:
    """Converge user accounts, their aliases and their licenses.

    Returns True if anything was (or would be) changed.
    """
    if cfg.users is None:
        logger.warning("No users section configured, leaving users untouched")
        return False

    changes.section("Users")
    changed = False

    try:
        live_users = await directory.list_users()
    except GoogleAPIError as e:
        raise ListFailure(USER, "", str(e)) from e

    desired = {u.primary_email.lower(): u for u in cfg.users}
    live_emails: set[str] = set()

    for live in live_users:
        email = live.get("primaryEmail", "")
        live_emails.add(email.lower())
        expected = desired.get(email.lower())

        if expected is None:
            changed = True
            changes.delete(USER, email)
            if confirm:
                try:
                    await directory.delete_user(live)
                except GoogleAPIError as e:
                    raise DeleteFailure(USER, email, str(e)) from e
            continue

        try:
            live_aliases = await directory.get_user_aliases(live)
        except GoogleAPIError as e:
            raise ListFailure(ALIAS, email, str(e)) from e
        live_licenses = license_status.licenses_for_user(email)

        try:
            up_to_date = user_up_to_date(
                expected, live, live_licenses, live_aliases
            ) and password_up_to_date(expected, live)
        except ConversionError as e:
            raise ConvertFailure(USER, email, str(e)) from e

        if up_to_date:
            changes.unchanged(USER, email)
            continue

        changed = True
        changes.update(USER, email)

        updated = live
        if confirm:
            try:
                updated = await directory.update_user(
                    live, to_api_user(expected, enable_passwords)
                ) or live
            except GoogleAPIError as e:
                raise UpdateFailure(USER, email, str(e)) from e

        await sync_user_aliases(directory, expected, updated, live_aliases, changes, confirm)
        await sync_user_licenses(
            licensing, expected, updated, license_status, catalog, changes, confirm
        )

    for expected in cfg.users:
        email = expected.primary_email
        if email.lower() in live_emails:
            continue

        changed = True
        changes.create(USER, email)

        created: dict[str, Any] | None = None
        if confirm:
            try:
                created = await directory.create_user(to_api_user(expected, enable_passwords))
            except GoogleAPIError as e:
                raise CreateFailure(USER, email, str(e)) from e

        await sync_user_aliases(directory, expected, created, None, changes, confirm)
        await sync_user_licenses(
            licensing, expected, created, license_status, catalog, changes, confirm
        )

    return changed


async def sync_user_aliases(
    directory,
    expected: User,
    live_user: dict[str, Any] | None,
    live_aliases: list[str] | None,
    changes: ChangeLog,
    confirm: bool,
) -> bool:
    """Add missing and remove extra email aliases of a single user."""
    email = expected.primary_email
    wanted = {a.lower() for a in expected.aliases}
    current = list(live_aliases or [])
    changed = False

    for alias in current:
        if alias.lower() in wanted:
            continue
        changed = True
        changes.delete(ALIAS, alias, parent=email)
        if confirm:
            try:
                await directory.delete_user_alias(live_user, alias)
            except GoogleAPIError as e:
                raise DeleteFailure(ALIAS, alias, str(e)) from e

    for alias in sorted(wanted.difference(a.lower() for a in current)):
        changed = True
        changes.create(ALIAS, alias, parent=email)
        if confirm:
            try:
                await directory.create_user_alias(live_user, alias)
            except GoogleAPIError as e:
                raise CreateFailure(ALIAS, alias, str(e)) from e

    return changed
