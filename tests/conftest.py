"""Pytest configuration and fixtures.

The fakes below keep their state in plain dicts and apply every mutation,
so a second reconciliation run observes the effects of the first.
"""

import copy

import pytest

from gdirsync.audit.logger import ChangeLog
from gdirsync.google.client import GoogleAPIError, GoogleNotFoundError
from gdirsync.models.licenses import License, LicenseCatalog


class FakeStructLogger:
    def __init__(self):
        self.calls = []

    def debug(self, **kwargs):
        self.calls.append(("debug", kwargs))

    def info(self, **kwargs):
        self.calls.append(("info", kwargs))

    def warning(self, **kwargs):
        self.calls.append(("warning", kwargs))

    def error(self, **kwargs):
        self.calls.append(("error", kwargs))


class _Recorder:
    """Records mutating calls and fails the ones listed in ``fail_on``."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def _mutate(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise GoogleAPIError(f"{name} failed", status_code=500)

    def call_names(self):
        return [c[0] for c in self.calls]


class FakeDirectory(_Recorder):
    def __init__(
        self,
        org_units=None,
        users=None,
        aliases=None,
        groups=None,
        members=None,
        schema=None,
        fail_on=(),
    ):
        super().__init__(fail_on)
        self.org_units = copy.deepcopy(list(org_units or []))
        self.users = copy.deepcopy(list(users or []))
        self.aliases = copy.deepcopy(dict(aliases or {}))
        self.groups = copy.deepcopy(list(groups or []))
        self.members = copy.deepcopy(dict(members or {}))
        self.schema = copy.deepcopy(schema)
        self.list_calls = 0

    # org units

    async def list_org_units(self):
        self.list_calls += 1
        return copy.deepcopy(self.org_units)

    async def create_org_unit(self, body):
        self._mutate("create_org_unit", body["name"])
        self.org_units.append({**body, "orgUnitId": f"id:{body['name']}"})
        return copy.deepcopy(body)

    async def update_org_unit(self, live, body):
        self._mutate("update_org_unit", live["name"])
        for ou in self.org_units:
            if ou["orgUnitId"] == live["orgUnitId"]:
                ou.update(body)
        return copy.deepcopy(body)

    async def delete_org_unit(self, live):
        self._mutate("delete_org_unit", live["name"])
        self.org_units = [ou for ou in self.org_units if ou["orgUnitId"] != live["orgUnitId"]]

    # users

    async def list_users(self):
        self.list_calls += 1
        return copy.deepcopy(self.users)

    async def create_user(self, body):
        self._mutate("create_user", body["primaryEmail"])
        user = {k: v for k, v in copy.deepcopy(body).items() if k != "password"}
        user["emails"] = [{"address": body["primaryEmail"], "primary": True}]
        self.users.append(user)
        return copy.deepcopy(user)

    async def update_user(self, live, body):
        self._mutate("update_user", live["primaryEmail"])
        for user in self.users:
            if user["primaryEmail"] == live["primaryEmail"]:
                user.update({k: v for k, v in copy.deepcopy(body).items() if k != "password"})
                user["emails"] = [{"address": body["primaryEmail"], "primary": True}]
                return copy.deepcopy(user)
        raise GoogleNotFoundError("no such user", status_code=404)

    async def delete_user(self, live):
        self._mutate("delete_user", live["primaryEmail"])
        self.users = [u for u in self.users if u["primaryEmail"] != live["primaryEmail"]]

    async def get_user_aliases(self, user):
        return sorted(self.aliases.get(user["primaryEmail"], []))

    async def create_user_alias(self, user, alias):
        self._mutate("create_user_alias", user["primaryEmail"], alias)
        self.aliases.setdefault(user["primaryEmail"], []).append(alias)

    async def delete_user_alias(self, user, alias):
        self._mutate("delete_user_alias", user["primaryEmail"], alias)
        self.aliases[user["primaryEmail"]].remove(alias)

    # groups

    async def list_groups(self):
        self.list_calls += 1
        return copy.deepcopy(self.groups)

    async def create_group(self, body):
        self._mutate("create_group", body["email"])
        group = {**copy.deepcopy(body), "id": f"gid-{body['email']}"}
        self.groups.append(group)
        return copy.deepcopy(group)

    async def update_group(self, live, body):
        self._mutate("update_group", live["email"])
        for group in self.groups:
            if group["email"] == live["email"]:
                group.update(copy.deepcopy(body))
                return copy.deepcopy(group)
        raise GoogleNotFoundError("no such group", status_code=404)

    async def delete_group(self, live):
        self._mutate("delete_group", live["email"])
        self.groups = [g for g in self.groups if g["email"] != live["email"]]
        self.members.pop(live["email"], None)

    async def list_members(self, group):
        return copy.deepcopy(self.members.get(group["email"], []))

    async def add_member(self, group, member):
        self._mutate("add_member", group["email"], member["email"], member["role"])
        self.members.setdefault(group["email"], []).append(copy.deepcopy(member))

    async def update_member(self, group, member):
        self._mutate("update_member", group["email"], member["email"], member["role"])
        for m in self.members[group["email"]]:
            if m["email"] == member["email"]:
                m.update(copy.deepcopy(member))

    async def remove_member(self, group, member):
        self._mutate("remove_member", group["email"], member["email"])
        self.members[group["email"]] = [
            m for m in self.members[group["email"]] if m["email"] != member["email"]
        ]

    # schemas

    async def get_schema(self, name):
        if self.schema and self.schema.get("schemaName") == name:
            return copy.deepcopy(self.schema)
        return None

    async def create_schema(self, body):
        self._mutate("create_schema", body["schemaName"])
        self.schema = {**copy.deepcopy(body), "schemaId": "schema-1"}
        return copy.deepcopy(self.schema)

    async def update_schema(self, live, body):
        self._mutate("update_schema", live["schemaName"])
        self.schema = {**copy.deepcopy(body), "schemaId": live["schemaId"]}
        return copy.deepcopy(self.schema)


DEFAULT_SETTINGS = {
    "whoCanContactOwner": "ALL_IN_DOMAIN_CAN_CONTACT",
    "whoCanViewMembership": "ALL_MEMBERS_CAN_VIEW",
    "whoCanApproveMembers": "ALL_MANAGERS_CAN_APPROVE",
    "whoCanPostMessage": "ALL_MEMBERS_CAN_POST",
    "whoCanJoin": "INVITED_CAN_JOIN",
    "allowExternalMembers": "false",
    "isArchived": "false",
}


class FakeGroupsSettings(_Recorder):
    def __init__(self, settings=None, fail_on=()):
        super().__init__(fail_on)
        self.settings = copy.deepcopy(dict(settings or {}))

    async def get_settings(self, group_email):
        return copy.deepcopy(self.settings.get(group_email, DEFAULT_SETTINGS))

    async def update_settings(self, group, settings):
        self._mutate("update_settings", group["email"])
        self.settings[group["email"]] = copy.deepcopy(settings)
        return copy.deepcopy(settings)


class FakeLicensing(_Recorder):
    def __init__(self, assignments=None, fail_on=()):
        super().__init__(fail_on)
        self.assignments = copy.deepcopy(dict(assignments or {}))  # sku -> [emails]
        self.listed = []

    async def license_assignees(self, license):
        self.listed.append(license.sku_id)
        return list(self.assignments.get(license.sku_id, []))

    async def assign_license(self, user_email, license):
        self._mutate("assign_license", user_email, license.sku_id)
        self.assignments.setdefault(license.sku_id, []).append(user_email)

    async def unassign_license(self, user_email, license):
        self._mutate("unassign_license", user_email, license.sku_id)
        self.assignments[license.sku_id].remove(user_email)


def make_live_user(email, given="Ada", family="Lovelace", **extra):
    """Build a Directory API user resource."""
    user = {
        "id": f"uid-{email}",
        "primaryEmail": email,
        "name": {"givenName": given, "familyName": family},
        "emails": [{"address": email, "primary": True}],
        "orgUnitPath": "/",
    }
    user.update(extra)
    return user


def make_live_group(email, name="Team", description=""):
    return {"id": f"gid-{email}", "email": email, "name": name, "description": description}


@pytest.fixture
def catalog() -> LicenseCatalog:
    """A small catalog with four licenses L1..L4."""
    return LicenseCatalog(
        [
            License(name=f"L{i}", product_id="Product", sku_id=f"sku-{i}")
            for i in range(1, 5)
        ]
    )


@pytest.fixture
def fake_logger() -> FakeStructLogger:
    return FakeStructLogger()


@pytest.fixture
def changes(fake_logger) -> ChangeLog:
    return ChangeLog(logger=fake_logger)
