"""Run-scoped snapshot of license assignments.

Asking the licensing API whether a given user holds a given license costs
one request per (user, license) pair. Instead, every license's assignees
are listed once per run and all later lookups are served from memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gdirsync.audit.logger import LICENSE
from gdirsync.google.client import GoogleAPIError
from gdirsync.models.licenses import License, LicenseCatalog
from gdirsync.sync.errors import ListFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LicenseStatus:
    """Current assignees per license SKU.

    The snapshot is never updated during a run; assignments made by the
    run itself only become visible to the next run.
    """

    assignments: dict[str, frozenset[str]] = field(default_factory=dict)  # sku -> user emails
    licenses: dict[str, License] = field(default_factory=dict)  # sku -> license

    def licenses_for_user(self, email: str) -> list[License]:
        """Return the licenses currently assigned to a user, in catalog order."""
        email = email.lower()
        return [
            self.licenses[sku]
            for sku, assignees in self.assignments.items()
            if email in assignees
        ]

    def get_license(self, sku_id: str) -> License | None:
        return self.licenses.get(sku_id)


async def fetch_license_status(licensing, catalog: LicenseCatalog) -> LicenseStatus:
    """List the assignees of every catalog license.

    Raises:
        ListFailure: If the assignees of a license cannot be listed
    """
    logger.info("► Fetching license status…")

    assignments: dict[str, frozenset[str]] = {}
    licenses: dict[str, License] = {}
    for license in catalog:
        try:
            assignees = await licensing.license_assignees(license)
        except GoogleAPIError as e:
            raise ListFailure(LICENSE, license.name, str(e)) from e

        logger.debug("  %s: %d assignees", license.name, len(assignees))
        assignments[license.sku_id] = frozenset(a.lower() for a in assignees)
        licenses[license.sku_id] = license

    return LicenseStatus(assignments=assignments, licenses=licenses)
