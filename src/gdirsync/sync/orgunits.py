"""Organizational unit reconciliation."""

from __future__ import annotations

import logging

from gdirsync.audit.logger import ORG_UNIT, ChangeLog
from gdirsync.google.client import GoogleAPIError
from gdirsync.google.conversion import to_api_org_unit
from gdirsync.models.config import Configuration
from gdirsync.sync.compare import org_unit_up_to_date
from gdirsync.sync.errors import CreateFailure, DeleteFailure, ListFailure, UpdateFailure

logger = logging.getLogger(__name__)


async def sync_org_units(
    directory,
    cfg: Configuration,
    changes: ChangeLog,
    confirm: bool,
) -> bool:
    """Converge org units to the configured list.

    Returns True if anything was (or would be) changed.
    """
    if cfg.org_units is None:
        logger.warning("No orgUnits section configured, leaving org units untouched")
        return False

    changes.section("Organizational units")
    changed = False

    try:
        live_units = await directory.list_org_units()
    except GoogleAPIError as e:
        raise ListFailure(ORG_UNIT, "", str(e)) from e

    desired = {ou.name: ou for ou in cfg.org_units}
    live_names: set[str] = set()

    for live in live_units:
        name = live.get("name", "")
        live_names.add(name)
        expected = desired.get(name)

        if expected is None:
            changed = True
            changes.delete(ORG_UNIT, name)
            if confirm:
                try:
                    await directory.delete_org_unit(live)
                except GoogleAPIError as e:
                    raise DeleteFailure(ORG_UNIT, name, str(e)) from e
            continue

        if org_unit_up_to_date(expected, live):
            changes.unchanged(ORG_UNIT, name)
            continue

        changed = True
        changes.update(ORG_UNIT, name)
        if confirm:
            try:
                await directory.update_org_unit(live, to_api_org_unit(expected))
            except GoogleAPIError as e:
                raise UpdateFailure(ORG_UNIT, name, str(e)) from e

    for expected in cfg.org_units:
        if expected.name in live_names:
            continue

        changed = True
        changes.create(ORG_UNIT, expected.name)
        if confirm:
            try:
                await directory.create_org_unit(to_api_org_unit(expected))
            except GoogleAPIError as e:
                raise CreateFailure(ORG_UNIT, expected.name, str(e)) from e

    return changed
