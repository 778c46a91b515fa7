"""Runs the per-kind reconcilers in dependency order.

Org units come first because users are placed into them, and the schema
must exist before user updates can store password fingerprints. Groups
reference members by email only, so they do not depend on users.
"""

from __future__ import annotations

import logging

from gdirsync.audit.logger import ChangeLog
from gdirsync.models.config import Configuration
from gdirsync.models.licenses import LicenseCatalog
from gdirsync.sync.groups import sync_groups
from gdirsync.sync.license_status import LicenseStatus, fetch_license_status
from gdirsync.sync.orgunits import sync_org_units
from gdirsync.sync.schema import sync_schema
from gdirsync.sync.users import sync_users

logger = logging.getLogger(__name__)


async def sync_configuration(
    cfg: Configuration,
    directory,
    groups_settings,
    licensing,
    catalog: LicenseCatalog,
    confirm: bool,
    license_status: LicenseStatus | None = None,
    changes: ChangeLog | None = None,
    enable_passwords: bool = False,
) -> bool:
    """Reconcile the whole directory against the configuration.

    Args:
        cfg: Desired state
        directory: Directory API client
        groups_settings: Groups Settings API client
        licensing: Licensing API client
        catalog: Licenses that configuration names resolve against
        confirm: Apply changes if True, otherwise only report them
        license_status: Pre-fetched license snapshot; fetched here if omitted
        changes: Change log collecting every mark
        enable_passwords: Send configured passwords to the directory

    Returns:
        True if any change was made or would be made.

    Raises:
        ValueError: If the configuration holds passwords but they are not enabled
        SyncError: On the first failing API call; earlier changes stay applied
    """
    if cfg.has_passwords() and not enable_passwords:
        # the fingerprint would never be stored, so every run would update
        raise ValueError(
            "configuration contains static passwords, but passwords are not enabled"
        )

    changes = changes if changes is not None else ChangeLog()
    logger.info(
        "Synchronizing %s (%s)", cfg.organization, "apply" if confirm else "dry run"
    )

    if license_status is None and cfg.users is not None:
        license_status = await fetch_license_status(licensing, catalog)

    changed = False

    changed |= await sync_org_units(directory, cfg, changes, confirm)
    changed |= await sync_schema(directory, changes, confirm)
    changed |= await sync_users(
        directory,
        licensing,
        cfg,
        license_status,
        catalog,
        changes,
        confirm,
        enable_passwords=enable_passwords,
    )
    changed |= await sync_groups(directory, groups_settings, cfg, changes, confirm)

    return changed
