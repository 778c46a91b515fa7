"""Tests for the per-run license assignment snapshot."""

import pytest

from conftest import FakeLicensing
from gdirsync.audit.logger import LICENSE
from gdirsync.google.client import GoogleAPIError
from gdirsync.sync.errors import ListFailure
from gdirsync.sync.license_status import LicenseStatus, fetch_license_status


@pytest.mark.asyncio
async def test_fetch_lists_every_license(catalog):
    licensing = FakeLicensing(assignments={"sku-2": ["Ada@Example.com"], "sku-3": ["bob@example.com"]})

    status = await fetch_license_status(licensing, catalog)

    assert licensing.listed == ["sku-1", "sku-2", "sku-3", "sku-4"]
    assert [lic.name for lic in status.licenses_for_user("ada@example.com")] == ["L2"]
    assert [lic.name for lic in status.licenses_for_user("BOB@example.com")] == ["L3"]
    assert status.licenses_for_user("nobody@example.com") == []
    assert status.get_license("sku-4").name == "L4"
    assert status.get_license("sku-9") is None


@pytest.mark.asyncio
async def test_fetch_failure_names_the_license(catalog):
    class BrokenLicensing(FakeLicensing):
        async def license_assignees(self, license):
            raise GoogleAPIError("quota", status_code=429)

    with pytest.raises(ListFailure) as exc_info:
        await fetch_license_status(BrokenLicensing(), catalog)

    assert exc_info.value.entity_kind == LICENSE
    assert exc_info.value.key == "L1"


def test_empty_status():
    assert LicenseStatus().licenses_for_user("ada@example.com") == []
