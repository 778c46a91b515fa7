"""Desired-state models and the license catalog."""

from gdirsync.models.config import (
    Configuration,
    Employee,
    Group,
    Location,
    Member,
    OrgUnit,
    User,
    hash_password,
    validate_configuration,
)
from gdirsync.models.licenses import DEFAULT_CATALOG, License, LicenseCatalog

__all__ = [
    "Configuration",
    "Employee",
    "Group",
    "Location",
    "Member",
    "OrgUnit",
    "User",
    "hash_password",
    "validate_configuration",
    "DEFAULT_CATALOG",
    "License",
    "LicenseCatalog",
]
