"""Adapters between API resources and configuration models.

``to_config_*`` functions turn live API payloads into configuration shape so
they can be compared with the desired state. ``to_api_*`` functions build
request bodies from configuration.
"""

from __future__ import annotations

import json
from typing import Any

from gdirsync.models.config import (
    PASSWORD_HASH_FIELD,
    SCHEMA_NAME,
    Employee,
    Group,
    Location,
    Member,
    OrgUnit,
    User,
    hash_password,
)
from gdirsync.models.licenses import License

_TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}


class ConversionError(ValueError):
    """A live resource could not be converted into configuration shape."""

    pass


def parse_bool(value: Any, field: str) -> bool:
    """Parse a boolean that the API may deliver as a string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
    raise ConversionError(f"invalid {field!r} value: {value!r}")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


# -----------------------------------------------------------------------------
# Org units
# -----------------------------------------------------------------------------


def to_config_org_unit(live: dict[str, Any]) -> OrgUnit:
    return OrgUnit(
        name=live.get("name", ""),
        description=live.get("description", ""),
        parent_org_unit_path=live.get("parentOrgUnitPath") or "/",
        block_inheritance=bool(live.get("blockInheritance", False)),
    )


def to_api_org_unit(org_unit: OrgUnit) -> dict[str, Any]:
    return {
        "name": org_unit.name,
        "description": org_unit.description,
        "parentOrgUnitPath": org_unit.parent_org_unit_path,
        "blockInheritance": org_unit.block_inheritance,
    }


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


def _entries(live: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = live.get(key) or []
    if not isinstance(value, list):
        raise ConversionError(f"expected a list for {key!r}, got {type(value).__name__}")
    return value


def password_hash_of(live: dict[str, Any]) -> str | None:
    """Return the password hash stored on a live user, if any."""
    schemas = live.get("customSchemas") or {}
    fields = schemas.get(SCHEMA_NAME)
    if isinstance(fields, str):
        # Some API versions deliver the schema values JSON-encoded
        try:
            fields = json.loads(fields)
        except json.JSONDecodeError:
            return None
    if not isinstance(fields, dict):
        return None
    return fields.get(PASSWORD_HASH_FIELD) or None


def to_config_user(
    live: dict[str, Any],
    licenses: list[License] | None = None,
    aliases: list[str] | None = None,
) -> User:
    """Convert a live user into configuration shape.

    Args:
        live: User resource as returned by the Directory API
        licenses: Licenses currently assigned to the user
        aliases: Alias addresses; falls back to the ``aliases`` field of the resource
    """
    primary_email = live.get("primaryEmail", "")
    for email in _entries(live, "emails"):
        if email.get("primary"):
            primary_email = email.get("address", primary_email)
            break

    employee = Employee()
    for ext in _entries(live, "externalIds"):
        if ext.get("type") == "organization":
            employee.employee_id = ext.get("value", "")
    for org in _entries(live, "organizations"):
        employee.department = org.get("department", "")
        employee.job_title = org.get("title", "")
        employee.type = org.get("description", "")
        employee.cost_center = org.get("costCenter", "")
    for relation in _entries(live, "relations"):
        if relation.get("type") == "manager":
            employee.manager_email = relation.get("value", "")

    location = Location()
    for loc in _entries(live, "locations"):
        location.building = loc.get("buildingId", "")
        location.floor = loc.get("floorName", "")
        location.floor_section = loc.get("floorSection", "")

    address = ""
    for addr in _entries(live, "addresses"):
        if addr.get("type") == "home":
            address = addr.get("formatted", "")

    name = live.get("name") or {}
    if aliases is None:
        aliases = live.get("aliases") or []

    return User(
        given_name=name.get("givenName", ""),
        family_name=name.get("familyName", ""),
        primary_email=primary_email,
        aliases=sorted(aliases),
        phones=sorted(p.get("value", "") for p in _entries(live, "phones")),
        recovery_phone=live.get("recoveryPhone", ""),
        recovery_email=live.get("recoveryEmail", ""),
        org_unit_path=live.get("orgUnitPath") or "/",
        licenses=sorted(lic.name for lic in licenses or []),
        employee=employee,
        location=location,
        address=address,
    )


def to_api_user(user: User, enable_passwords: bool = False) -> dict[str, Any]:
    """Build a Directory API user body.

    Repeated fields are always sent, empty when unset, so stale values are
    cleared on update.
    """
    body: dict[str, Any] = {
        "name": {"givenName": user.given_name, "familyName": user.family_name},
        "primaryEmail": user.primary_email,
        "recoveryEmail": user.recovery_email,
        "recoveryPhone": user.recovery_phone,
        "orgUnitPath": user.org_unit_path,
        "phones": [{"value": phone, "type": "home"} for phone in user.phones],
        "addresses": [],
        "organizations": [],
        "relations": [],
        "externalIds": [],
        "locations": [],
        "customSchemas": {},
    }

    if user.address:
        body["addresses"] = [{"formatted": user.address, "type": "home"}]

    emp = user.employee
    if not emp.is_empty():
        body["organizations"] = [
            {
                "department": emp.department,
                "title": emp.job_title,
                "costCenter": emp.cost_center,
                "description": emp.type,
            }
        ]
        if emp.manager_email:
            body["relations"] = [{"value": emp.manager_email, "type": "manager"}]
        if emp.employee_id:
            body["externalIds"] = [{"value": emp.employee_id, "type": "organization"}]

    loc = user.location
    if not loc.is_empty():
        body["locations"] = [
            {
                "area": "desk",
                "buildingId": loc.building,
                "floorName": loc.floor,
                "floorSection": loc.floor_section,
                "type": "desk",
            }
        ]

    if enable_passwords and user.password:
        body["password"] = user.password
        body["customSchemas"] = {
            SCHEMA_NAME: {PASSWORD_HASH_FIELD: hash_password(user.password)}
        }

    return body


# -----------------------------------------------------------------------------
# Groups
# -----------------------------------------------------------------------------


def to_config_member(live: dict[str, Any]) -> Member:
    return Member(email=live.get("email", ""), role=(live.get("role") or "").upper())


def to_api_member(member: Member, live: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"email": member.email, "role": member.role}
    if live is not None:
        for key in ("id", "etag"):
            if live.get(key):
                body[key] = live[key]
    return body


def to_config_group(
    live: dict[str, Any],
    settings: dict[str, Any],
    members: list[dict[str, Any]] | None,
) -> Group:
    """Convert a live group, its settings and its members into configuration shape."""
    return Group(
        name=live.get("name", ""),
        email=live.get("email", ""),
        description=live.get("description", ""),
        who_can_contact_owner=settings.get("whoCanContactOwner", ""),
        who_can_view_membership=settings.get("whoCanViewMembership", ""),
        who_can_approve_members=settings.get("whoCanApproveMembers", ""),
        who_can_post_message=settings.get("whoCanPostMessage", ""),
        who_can_join=settings.get("whoCanJoin", ""),
        allow_external_members=parse_bool(
            settings.get("allowExternalMembers", "false"), "allowExternalMembers"
        ),
        is_archived=parse_bool(settings.get("isArchived", "false"), "isArchived"),
        members=sorted(
            (to_config_member(m) for m in members or []), key=lambda m: m.email
        ),
    )


def to_api_group(group: Group) -> tuple[dict[str, Any], dict[str, Any]]:
    """Build the Directory API group body and the Groups Settings body."""
    directory_body = {
        "name": group.name,
        "email": group.email,
        "description": group.description,
    }
    settings_body = {
        "whoCanContactOwner": group.who_can_contact_owner,
        "whoCanViewMembership": group.who_can_view_membership,
        "whoCanApproveMembers": group.who_can_approve_members,
        "whoCanPostMessage": group.who_can_post_message,
        "whoCanJoin": group.who_can_join,
        "allowExternalMembers": format_bool(group.allow_external_members),
        "isArchived": format_bool(group.is_archived),
    }
    return directory_body, settings_body
