"""Group reconciliation, including settings and memberships."""

from __future__ import annotations

import logging
from typing import Any

from gdirsync.audit.logger import GROUP, MEMBER, ChangeLog
from gdirsync.google.client import GoogleAPIError
from gdirsync.google.conversion import ConversionError, to_api_group, to_api_member
from gdirsync.models.config import Configuration, Group
from gdirsync.sync.compare import group_up_to_date, member_up_to_date
from gdirsync.sync.errors import (
    ConvertFailure,
    CreateFailure,
    DeleteFailure,
    ListFailure,
    UpdateFailure,
)

logger = logging.getLogger(__name__)


async def sync_groups(
    directory,
    groups_settings,
    cfg: Configuration,
    changes: ChangeLog,
    confirm: bool,
) -> bool:
    """Converge groups, their settings and their members.

    Returns True if anything was (or would be) changed.
    """
    if cfg.groups is None:
        logger.warning("No groups section configured, leaving groups untouched")
        return False

    changes.section("Groups")
    changed = False

    try:
        live_groups = await directory.list_groups()
    except GoogleAPIError as e:
        raise ListFailure(GROUP, "", str(e)) from e

    desired = {g.email.lower(): g for g in cfg.groups}
    live_emails: set[str] = set()

    for live in live_groups:
        email = live.get("email", "")
        live_emails.add(email.lower())
        expected = desired.get(email.lower())

        if expected is None:
            changed = True
            changes.delete(GROUP, email)
            if confirm:
                try:
                    await directory.delete_group(live)
                except GoogleAPIError as e:
                    raise DeleteFailure(GROUP, email, str(e)) from e
            continue

        try:
            live_members = await directory.list_members(live)
        except GoogleAPIError as e:
            raise ListFailure(MEMBER, email, str(e)) from e
        try:
            live_settings = await groups_settings.get_settings(email)
        except GoogleAPIError as e:
            raise ListFailure(GROUP, email, f"unable to fetch settings: {e}") from e

        try:
            up_to_date = group_up_to_date(expected, live, live_settings, live_members)
        except ConversionError as e:
            raise ConvertFailure(GROUP, email, str(e)) from e

        if up_to_date:
            changes.unchanged(GROUP, email)
            continue

        changed = True
        changes.update(GROUP, email)

        updated = live
        if confirm:
            group_body, settings_body = to_api_group(expected)
            try:
                updated = await directory.update_group(live, group_body) or live
                await groups_settings.update_settings(updated, settings_body)
            except GoogleAPIError as e:
                raise UpdateFailure(GROUP, email, str(e)) from e

        await sync_group_members(directory, expected, updated, live_members, changes, confirm)

    for expected in cfg.groups:
        email = expected.email
        if email.lower() in live_emails:
            continue

        changed = True
        changes.create(GROUP, email)

        created: dict[str, Any] | None = None
        if confirm:
            group_body, settings_body = to_api_group(expected)
            try:
                created = await directory.create_group(group_body) or group_body
                await groups_settings.update_settings(created, settings_body)
            except GoogleAPIError as e:
                raise CreateFailure(GROUP, email, str(e)) from e

        await sync_group_members(directory, expected, created, None, changes, confirm)

    return changed


async def sync_group_members(
    directory,
    expected: Group,
    live_group: dict[str, Any] | None,
    live_members: list[dict[str, Any]] | None,
    changes: ChangeLog,
    confirm: bool,
) -> bool:
    """Add, update and remove members of a single group.

    A member whose role changed is updated in place, never removed and
    re-added, so it does not lose access in between.
    """
    group_email = expected.email
    wanted = {m.email.lower(): m for m in expected.members}
    live_member_emails: set[str] = set()
    changed = False

    for live in live_members or []:
        email = live.get("email", "")
        live_member_emails.add(email.lower())
        member = wanted.get(email.lower())

        if member is None:
            changed = True
            changes.delete(MEMBER, email, parent=group_email)
            if confirm:
                try:
                    await directory.remove_member(live_group, live)
                except GoogleAPIError as e:
                    raise DeleteFailure(MEMBER, email, str(e)) from e
            continue

        if member_up_to_date(member, live):
            continue

        changed = True
        changes.update(MEMBER, email, parent=group_email)
        if confirm:
            try:
                await directory.update_member(live_group, to_api_member(member, live))
            except GoogleAPIError as e:
                raise UpdateFailure(MEMBER, email, str(e)) from e

    for member in expected.members:
        if member.email.lower() in live_member_emails:
            continue
        changed = True
        changes.create(MEMBER, member.email, parent=group_email)
        if confirm:
            try:
                await directory.add_member(live_group, to_api_member(member))
            except GoogleAPIError as e:
                raise CreateFailure(MEMBER, member.email, str(e)) from e

    return changed
