"""Per-user license reconciliation, served from the license status snapshot."""

from __future__ import annotations

import logging
from typing import Any

from gdirsync.audit.logger import LICENSE, ChangeLog
from gdirsync.google.client import GoogleAPIError
from gdirsync.models.config import User
from gdirsync.models.licenses import License, LicenseCatalog
from gdirsync.sync.errors import LicenseFailure
from gdirsync.sync.license_status import LicenseStatus

logger = logging.getLogger(__name__)


def _resolve(expected: User, catalog: LicenseCatalog) -> list[License]:
    """Resolve configured license names, once per SKU."""
    resolved: dict[str, License] = {}
    for name in expected.licenses:
        license = catalog.by_name(name)
        if license is None:
            raise LicenseFailure(LICENSE, expected.primary_email, f"unknown license {name!r}")
        resolved.setdefault(license.sku_id, license)
    return list(resolved.values())


async def sync_user_licenses(
    licensing,
    expected: User,
    live_user: dict[str, Any] | None,
    license_status: LicenseStatus,
    catalog: LicenseCatalog,
    changes: ChangeLog,
    confirm: bool,
) -> bool:
    """Assign missing and unassign extra licenses of a single user.

    ``live_user`` is None for a user that does not exist yet (dry run),
    in which case every configured license counts as missing.
    """
    email = expected.primary_email
    wanted = _resolve(expected, catalog)
    wanted_skus = {lic.sku_id for lic in wanted}

    current: list[License] = []
    if live_user is not None:
        current = license_status.licenses_for_user(live_user.get("primaryEmail", email))
    current_skus = {lic.sku_id for lic in current}

    changed = False

    for license in current:
        if license.sku_id in wanted_skus:
            continue
        changed = True
        changes.delete(LICENSE, license.name, parent=email)
        if confirm:
            try:
                await licensing.unassign_license(email, license)
            except GoogleAPIError as e:
                raise LicenseFailure(
                    LICENSE, email, f"unable to unassign {license.name}: {e}"
                ) from e

    for license in wanted:
        if license.sku_id in current_skus:
            continue
        changed = True
        changes.create(LICENSE, license.name, parent=email)
        if confirm:
            try:
                await licensing.assign_license(email, license)
            except GoogleAPIError as e:
                raise LicenseFailure(
                    LICENSE, email, f"unable to assign {license.name}: {e}"
                ) from e

    return changed
