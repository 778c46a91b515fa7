"""Tests for the password fingerprint schema."""

import pytest

from conftest import FakeDirectory
from gdirsync.audit.logger import SCHEMA, Action
from gdirsync.google.client import GoogleAPIError
from gdirsync.sync.errors import SchemaFailure
from gdirsync.sync.schema import desired_schema, schema_up_to_date, sync_schema


@pytest.mark.asyncio
async def test_missing_schema_is_created(changes):
    directory = FakeDirectory()

    assert await sync_schema(directory, changes, confirm=True) is True
    assert directory.calls == [("create_schema", "gdirsync")]
    assert [(c.kind, c.action) for c in changes.changes] == [(SCHEMA, Action.CREATE)]

    # second run finds it as created
    assert await sync_schema(directory, changes, confirm=True) is False


@pytest.mark.asyncio
async def test_dry_run_only_reports(changes):
    directory = FakeDirectory()

    assert await sync_schema(directory, changes, confirm=False) is True
    assert directory.calls == []


@pytest.mark.asyncio
async def test_differing_schema_is_updated(changes):
    live = {**desired_schema(), "schemaId": "s1", "displayName": "Something else"}
    directory = FakeDirectory(schema=live)

    assert await sync_schema(directory, changes, confirm=True) is True
    assert directory.calls == [("update_schema", "gdirsync")]
    assert directory.schema["schemaId"] == "s1"
    assert schema_up_to_date(directory.schema)


def test_schema_comparison_ignores_server_fields():
    live = desired_schema()
    live["schemaId"] = "s1"
    live["etag"] = "e"
    live["fields"][0]["fieldId"] = "f1"
    assert schema_up_to_date(live)


@pytest.mark.asyncio
async def test_fetch_failure(changes):
    class BrokenDirectory(FakeDirectory):
        async def get_schema(self, name):
            raise GoogleAPIError("forbidden", status_code=500)

    with pytest.raises(SchemaFailure, match="unable to fetch schema"):
        await sync_schema(BrokenDirectory(), changes, confirm=False)
