"""Equality checks between configured entities and their live counterparts.

Live resources are converted into configuration shape first. Collections
whose order carries no meaning (aliases, licenses, members) compare as sets
so that an absent collection equals an empty one. Addresses compare
without regard to case.
"""

from __future__ import annotations

from typing import Any

from gdirsync.google.conversion import (
    password_hash_of,
    to_config_group,
    to_config_member,
    to_config_org_unit,
    to_config_user,
)
from gdirsync.models.config import Group, Member, OrgUnit, User, hash_password
from gdirsync.models.licenses import License


def _org_unit_fields(org_unit: OrgUnit) -> tuple:
    return (
        org_unit.description,
        org_unit.parent_org_unit_path,
        org_unit.block_inheritance,
    )


def _user_fields(user: User) -> dict[str, Any]:
    # password drift is handled by password_up_to_date()
    data = user.model_dump(exclude={"password", "aliases", "licenses", "phones"})
    data["primary_email"] = user.primary_email.lower()
    data["aliases"] = frozenset(a.lower() for a in user.aliases or ())
    data["licenses"] = frozenset(user.licenses or ())
    data["phones"] = tuple(sorted(user.phones or ()))
    return data


def _member_fields(member: Member) -> tuple[str, str]:
    return member.email.lower(), member.role.upper()


def _group_fields(group: Group) -> dict[str, Any]:
    data = group.model_dump(exclude={"members"})
    data["email"] = group.email.lower()
    data["members"] = frozenset(_member_fields(m) for m in group.members or ())
    return data


def org_unit_up_to_date(configured: OrgUnit, live: dict[str, Any]) -> bool:
    return _org_unit_fields(configured) == _org_unit_fields(to_config_org_unit(live))


def user_up_to_date(
    configured: User,
    live: dict[str, Any],
    live_licenses: list[License] | None,
    live_aliases: list[str] | None,
) -> bool:
    """Check every user field except the password.

    Raises:
        ConversionError: If the live user cannot be converted
    """
    converted = to_config_user(live, live_licenses, live_aliases or [])
    return _user_fields(configured) == _user_fields(converted)


def password_up_to_date(configured: User, live: dict[str, Any]) -> bool:
    """Check whether the configured password is the one last set by this tool.

    The directory never returns passwords, so the comparison uses the hash
    stored in the custom schema at the last password update. Without a
    configured password the live state is irrelevant.
    """
    if not configured.password:
        return True
    return password_hash_of(live) == hash_password(configured.password)


def group_up_to_date(
    configured: Group,
    live: dict[str, Any],
    live_settings: dict[str, Any],
    live_members: list[dict[str, Any]] | None,
) -> bool:
    """Compare a group including its settings and membership.

    Raises:
        ConversionError: If the live settings contain malformed values
    """
    converted = to_config_group(live, live_settings, live_members or [])
    return _group_fields(configured) == _group_fields(converted)


def member_up_to_date(configured: Member, live: dict[str, Any]) -> bool:
    return _member_fields(configured) == _member_fields(to_config_member(live))
