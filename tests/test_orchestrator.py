"""End-to-end reconciliation runs against in-memory fakes."""

import pytest

from conftest import (
    FakeDirectory,
    FakeGroupsSettings,
    FakeLicensing,
    make_live_group,
    make_live_user,
)
from gdirsync.audit.logger import ChangeLog
from gdirsync.models.config import (
    Configuration,
    Employee,
    Group,
    Location,
    Member,
    OrgUnit,
    User,
)
from gdirsync.sync.orchestrator import sync_configuration


def _configuration() -> Configuration:
    return Configuration(
        organization="example.com",
        org_units=[
            OrgUnit(name="Engineering", description="Builders"),
            OrgUnit(name="Research", parent_org_unit_path="/Engineering", block_inheritance=True),
        ],
        users=[
            User(
                given_name="Ada",
                family_name="Lovelace",
                primary_email="ada@example.com",
                aliases=["countess@example.com"],
                phones=["+441234567"],
                org_unit_path="/Engineering",
                licenses=["L1", "L2"],
                employee=Employee(employee_id="1", department="R&D", job_title="Analyst"),
                location=Location(building="HQ", floor="1"),
                address="12 St James's Square",
            ),
            User(
                given_name="Charles",
                family_name="Babbage",
                primary_email="charles@example.com",
                licenses=["L1"],
                password="engine",
            ),
        ],
        groups=[
            Group(
                name="Team",
                email="team@example.com",
                description="Everyone",
                who_can_post_message="ANYONE_CAN_POST",
                allow_external_members=True,
                members=[
                    Member(email="ada@example.com", role="OWNER"),
                    Member(email="charles@example.com"),
                ],
            )
        ],
    )


def _fakes():
    directory = FakeDirectory(
        org_units=[
            {
                "orgUnitId": "id:Legacy",
                "name": "Legacy",
                "description": "",
                "parentOrgUnitPath": "/",
            }
        ],
        users=[make_live_user("ada@example.com"), make_live_user("gone@example.com")],
        aliases={"ada@example.com": ["stale@example.com"]},
        groups=[make_live_group("old@example.com")],
    )
    licensing = FakeLicensing(assignments={"sku-1": ["ada@example.com"], "sku-4": ["ada@example.com"]})
    return directory, FakeGroupsSettings(), licensing


async def _sync(cfg, directory, settings, licensing, catalog, confirm, changes=None):
    return await sync_configuration(
        cfg,
        directory,
        settings,
        licensing,
        catalog,
        confirm,
        changes=changes,
        enable_passwords=True,
    )


@pytest.mark.asyncio
async def test_second_run_is_a_no_op(catalog, fake_logger):
    directory, settings, licensing = _fakes()
    cfg = _configuration()

    first = ChangeLog(logger=fake_logger)
    assert await _sync(cfg, directory, settings, licensing, catalog, True, first) is True
    assert first.has_changes

    calls_after_first = (
        len(directory.calls),
        len(settings.calls),
        len(licensing.calls),
    )

    second = ChangeLog(logger=fake_logger)
    assert await _sync(cfg, directory, settings, licensing, catalog, True, second) is False
    assert not second.has_changes
    assert (len(directory.calls), len(settings.calls), len(licensing.calls)) == calls_after_first


@pytest.mark.asyncio
async def test_dry_run_makes_no_mutating_calls(catalog, changes):
    directory, settings, licensing = _fakes()

    changed = await _sync(_configuration(), directory, settings, licensing, catalog, False, changes)

    assert changed is True
    assert directory.calls == []
    assert settings.calls == []
    assert licensing.calls == []
    assert changes.has_changes


@pytest.mark.asyncio
async def test_dry_run_then_confirm_report_the_same_changes(catalog, fake_logger):
    dry = ChangeLog(logger=fake_logger)
    directory, settings, licensing = _fakes()
    await _sync(_configuration(), directory, settings, licensing, catalog, False, dry)

    applied = ChangeLog(logger=fake_logger)
    await _sync(_configuration(), directory, settings, licensing, catalog, True, applied)

    assert dry.changes == applied.changes


@pytest.mark.asyncio
async def test_kinds_run_in_dependency_order(catalog, changes):
    directory, settings, licensing = _fakes()

    await _sync(_configuration(), directory, settings, licensing, catalog, True, changes)

    first_call = {}
    for index, name in enumerate(directory.call_names()):
        first_call.setdefault(name, index)
    assert first_call["delete_org_unit"] < first_call["create_schema"] < first_call["update_user"]
    assert first_call["update_user"] < first_call["delete_group"]


@pytest.mark.asyncio
async def test_unmanaged_sections_are_left_alone(catalog, changes):
    directory, settings, licensing = _fakes()
    cfg = Configuration(organization="example.com")

    changed = await _sync(cfg, directory, settings, licensing, catalog, True, changes)

    # only the schema is always managed
    assert changed is True
    assert directory.call_names() == ["create_schema"]
    assert licensing.listed == []
    assert settings.calls == []


@pytest.mark.asyncio
async def test_aggregate_is_false_when_in_sync(catalog, fake_logger):
    directory = FakeDirectory(schema=None)
    settings = FakeGroupsSettings()
    licensing = FakeLicensing()
    cfg = Configuration(organization="example.com", org_units=[], users=[], groups=[])

    # create the schema first so only the empty sections remain
    await _sync(cfg, directory, settings, licensing, catalog, True, ChangeLog(logger=fake_logger))

    changes = ChangeLog(logger=fake_logger)
    assert await _sync(cfg, directory, settings, licensing, catalog, True, changes) is False
    assert [c.key for c in changes.changes] == ["gdirsync"]


@pytest.mark.asyncio
async def test_passwords_must_be_enabled(catalog, changes):
    directory, settings, licensing = _fakes()

    with pytest.raises(ValueError, match="passwords are not enabled"):
        await sync_configuration(
            _configuration(), directory, settings, licensing, catalog, False, changes=changes
        )

    assert licensing.listed == []
    assert changes.changes == []
