"""Pydantic models for the declarative directory configuration.

Example YAML structure:
    organization: example.com

    orgUnits:
      - name: Engineering
        description: Builders
        parentOrgUnitPath: /

    users:
      - givenName: Ada
        familyName: Lovelace
        primaryEmail: ada@example.com
        aliases:
          - countess@example.com
        orgUnitPath: /Engineering
        licenses:
          - GoogleWorkspaceBusinessStandard
        password: ${ADA_PASSWORD}   # optional, requires --insecure-passwords

    groups:
      - name: Team
        email: team@example.com
        members:
          - email: ada@example.com
            role: owner

A section that is left out entirely is not managed. An explicitly empty
list means every live entity of that kind is deleted.
"""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from gdirsync.models.licenses import License, LicenseCatalog

# Custom schema used to remember which password was last set by this tool
SCHEMA_NAME = "gdirsync"
SCHEMA_DISPLAY_NAME = "gdirsync"
PASSWORD_HASH_FIELD = "passwordHash"

# Group policy options
WHO_CAN_CONTACT_OWNER = (
    "ALL_MANAGERS_CAN_CONTACT",
    "ALL_MEMBERS_CAN_CONTACT",
    "ALL_IN_DOMAIN_CAN_CONTACT",
    "ANYONE_CAN_CONTACT",
)
WHO_CAN_VIEW_MEMBERSHIP = (
    "ALL_MANAGERS_CAN_VIEW",
    "ALL_MEMBERS_CAN_VIEW",
    "ALL_IN_DOMAIN_CAN_VIEW",
)
WHO_CAN_APPROVE_MEMBERS = (
    "ALL_MANAGERS_CAN_APPROVE",
    "ALL_OWNERS_CAN_APPROVE",
    "ALL_MEMBERS_CAN_APPROVE",
    "NONE_CAN_APPROVE",
)
WHO_CAN_POST_MESSAGE = (
    "NONE_CAN_POST",
    "ALL_OWNERS_CAN_POST",
    "ALL_MANAGERS_CAN_POST",
    "ALL_MEMBERS_CAN_POST",
    "ALL_IN_DOMAIN_CAN_POST",
    "ANYONE_CAN_POST",
)
WHO_CAN_JOIN = (
    "INVITED_CAN_JOIN",
    "CAN_REQUEST_TO_JOIN",
    "ALL_IN_DOMAIN_CAN_JOIN",
    "ANYONE_CAN_JOIN",
)

DEFAULT_WHO_CAN_CONTACT_OWNER = "ALL_IN_DOMAIN_CAN_CONTACT"
DEFAULT_WHO_CAN_VIEW_MEMBERSHIP = "ALL_MEMBERS_CAN_VIEW"
DEFAULT_WHO_CAN_APPROVE_MEMBERS = "ALL_MANAGERS_CAN_APPROVE"
DEFAULT_WHO_CAN_POST_MESSAGE = "ALL_MEMBERS_CAN_POST"
DEFAULT_WHO_CAN_JOIN = "INVITED_CAN_JOIN"

_POLICY_DEFAULTS = {
    "who_can_contact_owner": DEFAULT_WHO_CAN_CONTACT_OWNER,
    "who_can_view_membership": DEFAULT_WHO_CAN_VIEW_MEMBERSHIP,
    "who_can_approve_members": DEFAULT_WHO_CAN_APPROVE_MEMBERS,
    "who_can_post_message": DEFAULT_WHO_CAN_POST_MESSAGE,
    "who_can_join": DEFAULT_WHO_CAN_JOIN,
}

ROLE_OWNER = "OWNER"
ROLE_MANAGER = "MANAGER"
ROLE_MEMBER = "MEMBER"
MEMBER_ROLES = (ROLE_OWNER, ROLE_MANAGER, ROLE_MEMBER)

# Pattern for ${VAR} and ${VAR:-default} interpolation
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(:-([^}]*))?\}")

_E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def _resolve_env_str(s: str) -> str:
    """Resolve environment variable placeholders in a string."""
    def repl(m: re.Match[str]) -> str:
        val = os.getenv(m.group(1))
        if val is None or val == "":
            return m.group(3) if m.group(3) is not None else ""
        return val

    # Defaults may themselves contain placeholders
    prev = None
    cur = s
    for _ in range(5):
        if cur == prev:
            break
        prev = cur
        cur = _ENV_PATTERN.sub(repl, cur)
    return cur


def _resolve_env(value: Any) -> Any:
    """Recursively resolve environment variables in a data structure."""
    if isinstance(value, str):
        return _resolve_env_str(value)
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    return value


def _lower_address(v: Any) -> Any:
    # The directory stores addresses in lower case and matches them that way
    return v.strip().lower() if isinstance(v, str) else v


def hash_password(password: str) -> str:
    """Return a short one-way fingerprint of a password.

    The value only detects whether the configured password changed since it
    was last set. It is not suitable for verifying credentials.
    """
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return digest[:16].hex()


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OrgUnit(_ConfigModel):
    """An organizational unit, keyed by name."""

    name: str = Field(..., description="Org unit name (unique)")
    description: str = Field(default="")
    parent_org_unit_path: str = Field(default="/", alias="parentOrgUnitPath")
    block_inheritance: bool = Field(default=False, alias="blockInheritance")

    @field_validator("description", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("parent_org_unit_path", mode="before")
    @classmethod
    def default_parent_path(cls, v: Any) -> Any:
        return v or "/"


class Employee(_ConfigModel):
    """Employment details stored on the directory user."""

    employee_id: str = Field(default="", alias="id")
    department: str = Field(default="")
    job_title: str = Field(default="", alias="jobTitle")
    type: str = Field(default="")
    cost_center: str = Field(default="", alias="costCenter")
    manager_email: str = Field(default="", alias="managerEmail")

    def is_empty(self) -> bool:
        return not any(
            (
                self.employee_id,
                self.department,
                self.job_title,
                self.type,
                self.cost_center,
                self.manager_email,
            )
        )


class Location(_ConfigModel):
    """Desk location of a user."""

    building: str = Field(default="")
    floor: str = Field(default="")
    floor_section: str = Field(default="", alias="floorSection")

    def is_empty(self) -> bool:
        return not (self.building or self.floor or self.floor_section)


class User(_ConfigModel):
    """A directory user account, keyed by primary email."""

    given_name: str = Field(default="", alias="givenName")
    family_name: str = Field(default="", alias="familyName")
    primary_email: str = Field(..., alias="primaryEmail")
    aliases: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    recovery_phone: str = Field(default="", alias="recoveryPhone")
    recovery_email: str = Field(default="", alias="recoveryEmail")
    org_unit_path: str = Field(default="/", alias="orgUnitPath")
    licenses: list[str] = Field(
        default_factory=list,
        description="License names, resolved against the license catalog",
    )
    employee: Employee = Field(default_factory=Employee, alias="employeeInfo")
    location: Location = Field(default_factory=Location)
    address: str = Field(default="")

    # Never sent back in exports or comparisons, see hash_password()
    password: str | None = Field(default=None, repr=False)

    @field_validator("aliases", "phones", "licenses", mode="before")
    @classmethod
    def none_as_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("employee", "location", mode="before")
    @classmethod
    def none_as_empty_model(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("org_unit_path", mode="before")
    @classmethod
    def default_org_unit_path(cls, v: Any) -> Any:
        return v or "/"

    @field_validator("password", mode="before")
    @classmethod
    def empty_password_as_none(cls, v: Any) -> Any:
        return v or None

    @field_validator("primary_email", mode="before")
    @classmethod
    def lower_primary_email(cls, v: Any) -> Any:
        return _lower_address(v)

    @field_validator("aliases")
    @classmethod
    def lower_aliases(cls, v: list[str]) -> list[str]:
        return [_lower_address(a) for a in v]


class Member(_ConfigModel):
    """A group membership, keyed by email within its group."""

    email: str
    role: str = Field(default=ROLE_MEMBER)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v: Any) -> Any:
        return _lower_address(v)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Any) -> Any:
        if not v:
            return ROLE_MEMBER
        return str(v).upper()


class Group(_ConfigModel):
    """A mailing/collaboration group, keyed by email."""

    name: str = Field(default="")
    email: str
    description: str = Field(default="")
    who_can_contact_owner: str = Field(
        default=DEFAULT_WHO_CAN_CONTACT_OWNER, alias="whoCanContactOwner"
    )
    who_can_view_membership: str = Field(
        default=DEFAULT_WHO_CAN_VIEW_MEMBERSHIP, alias="whoCanViewMembers"
    )
    who_can_approve_members: str = Field(
        default=DEFAULT_WHO_CAN_APPROVE_MEMBERS, alias="whoCanApproveMembers"
    )
    who_can_post_message: str = Field(
        default=DEFAULT_WHO_CAN_POST_MESSAGE, alias="whoCanPostMessage"
    )
    who_can_join: str = Field(default=DEFAULT_WHO_CAN_JOIN, alias="whoCanJoin")
    allow_external_members: bool = Field(default=False, alias="allowExternalMembers")
    is_archived: bool = Field(default=False, alias="isArchived")
    members: list[Member] = Field(default_factory=list)

    @field_validator(
        "who_can_contact_owner",
        "who_can_view_membership",
        "who_can_approve_members",
        "who_can_post_message",
        "who_can_join",
        mode="before",
    )
    @classmethod
    def default_policy(cls, v: Any, info: ValidationInfo) -> Any:
        """Apply the policy default and upper-case the value."""
        if not v:
            return _POLICY_DEFAULTS[info.field_name]
        return str(v).upper()

    @field_validator("description", "name", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("members", mode="before")
    @classmethod
    def none_as_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v: Any) -> Any:
        return _lower_address(v)


class Configuration(_ConfigModel):
    """Top-level desired state of the directory.

    ``None`` for a section means the section was absent and that entity
    kind is left alone.
    """

    organization: str = Field(default="", description="Primary domain of the organization")
    org_units: list[OrgUnit] | None = Field(default=None, alias="orgUnits")
    users: list[User] | None = Field(default=None)
    groups: list[Group] | None = Field(default=None)
    licenses: list[License] | None = Field(
        default=None,
        description="Optional license list, only read when used as a licenses config",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Configuration":
        """Load configuration from a YAML file with env var interpolation."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        raw = yaml.safe_load(p.read_text())
        if not isinstance(raw, dict):
            raise ValueError(f"Config file must be a YAML mapping: {path}")

        return cls.model_validate(_resolve_env(raw))

    def has_passwords(self) -> bool:
        return any(u.password for u in self.users or [])


def _valid_email(email: str) -> bool:
    return len(email) < 129 and "@" in email


def _duplicates(keys: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for key in keys:
        if key in seen and key not in dupes:
            dupes.append(key)
        seen.add(key)
    return dupes


def validate_configuration(
    cfg: Configuration,
    catalog: LicenseCatalog,
    allow_passwords: bool = False,
) -> list[str]:
    """Check a configuration for problems.

    Returns a list of human readable problems, empty when the configuration
    can be synchronized.
    """
    problems: list[str] = []

    if not cfg.organization:
        problems.append("no organization configured")

    org_units = cfg.org_units or []
    for name in _duplicates([ou.name for ou in org_units]):
        problems.append(f"[org unit: {name}] duplicate org unit defined")
    for ou in org_units:
        if not ou.name:
            problems.append("[org unit: ] no name specified")
        if not ou.parent_org_unit_path.startswith("/"):
            problems.append(
                f"[org unit: {ou.name}] parentOrgUnitPath must start with a slash"
            )

    users = cfg.users or []
    for email in _duplicates([u.primary_email for u in users]):
        problems.append(f"[user: {email}] duplicate user defined")
    for user in users:
        key = user.primary_email
        if not key:
            problems.append(f"[user: {user.family_name}] primary email is required")
        elif not _valid_email(key):
            problems.append(f"[user: {key}] primary email is not a valid email address")
        if not user.given_name or not user.family_name:
            problems.append(f"[user: {key}] given and family names are required")
        if user.recovery_email and not _valid_email(user.recovery_email):
            problems.append(f"[user: {key}] recovery email is not a valid email address")
        if user.employee.manager_email and not _valid_email(user.employee.manager_email):
            problems.append(f"[user: {key}] manager's email is not a valid email address")
        if user.recovery_phone and not _E164_PATTERN.match(user.recovery_phone):
            problems.append(
                f"[user: {key}] recovery phone must be in E.164 format, "
                "e.g. +16506661212"
            )
        for alias in _duplicates(user.aliases):
            problems.append(f"[user: {key}] duplicate alias {alias!r} defined")
        if key in user.aliases:
            problems.append(f"[user: {key}] primary email is also listed as an alias")
        for alias in user.aliases:
            if not _valid_email(alias):
                problems.append(f"[user: {key}] alias {alias!r} is not a valid email address")
        for name in _duplicates(user.licenses):
            problems.append(f"[user: {key}] duplicate license {name!r} defined")
        for name in user.licenses:
            if name not in catalog:
                problems.append(f"[user: {key}] unknown license {name!r}")
        if user.password and not allow_passwords:
            problems.append(
                f"[user: {key}] static passwords are configured, "
                "but insecure passwords are not enabled"
            )

    groups = cfg.groups or []
    for email in _duplicates([g.email for g in groups]):
        problems.append(f"[group: {email}] duplicate group email defined")
    policies = (
        ("whoCanContactOwner", "who_can_contact_owner", WHO_CAN_CONTACT_OWNER),
        ("whoCanViewMembers", "who_can_view_membership", WHO_CAN_VIEW_MEMBERSHIP),
        ("whoCanApproveMembers", "who_can_approve_members", WHO_CAN_APPROVE_MEMBERS),
        ("whoCanPostMessage", "who_can_post_message", WHO_CAN_POST_MESSAGE),
        ("whoCanJoin", "who_can_join", WHO_CAN_JOIN),
    )
    for group in groups:
        key = group.email
        if not _valid_email(key):
            problems.append(f"[group: {key}] group email is not a valid email address")
        for label, attr, allowed in policies:
            if getattr(group, attr) not in allowed:
                problems.append(
                    f"[group: {key}] invalid value for '{label}', "
                    f"must be one of {', '.join(allowed)}"
                )
        for email in _duplicates([m.email for m in group.members]):
            problems.append(f"[group: {key}] duplicate member {email!r} defined")
        for member in group.members:
            if not _valid_email(member.email):
                problems.append(
                    f"[group: {key}] member {member.email!r} is not a valid email address"
                )
            if member.role not in MEMBER_ROLES:
                problems.append(
                    f"[group: {key}] invalid role for {member.email!r}, "
                    f"must be one of {', '.join(MEMBER_ROLES)}"
                )

    return problems
