"""Reconciliation engine.

Compares the configured directory against the live one and creates,
updates or deletes entities until they match.
"""

from gdirsync.sync.errors import (
    ConvertFailure,
    CreateFailure,
    DeleteFailure,
    LicenseFailure,
    ListFailure,
    SchemaFailure,
    SyncError,
    UpdateFailure,
)
from gdirsync.sync.license_status import LicenseStatus, fetch_license_status
from gdirsync.sync.orchestrator import sync_configuration

__all__ = [
    "ConvertFailure",
    "CreateFailure",
    "DeleteFailure",
    "LicenseFailure",
    "ListFailure",
    "SchemaFailure",
    "SyncError",
    "UpdateFailure",
    "LicenseStatus",
    "fetch_license_status",
    "sync_configuration",
]
