"""Google Workspace API clients.

Provides async clients for the Directory, Groups Settings and Licensing APIs
plus the adapters converting their resources to configuration models.
"""

from gdirsync.google.auth import ServiceAccountCredentials
from gdirsync.google.client import (
    GoogleAPIClient,
    GoogleAPIError,
    GoogleAuthError,
    GoogleConflictError,
    GoogleNotFoundError,
)
from gdirsync.google.conversion import ConversionError
from gdirsync.google.directory import DirectoryService
from gdirsync.google.groupssettings import GroupsSettingsService
from gdirsync.google.licensing import LicensingService

__all__ = [
    "ServiceAccountCredentials",
    "GoogleAPIClient",
    "GoogleAPIError",
    "GoogleAuthError",
    "GoogleConflictError",
    "GoogleNotFoundError",
    "ConversionError",
    "DirectoryService",
    "GroupsSettingsService",
    "LicensingService",
]
