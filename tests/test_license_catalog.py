"""Tests for the license catalog."""

import pytest
import yaml

from gdirsync.models.licenses import DEFAULT_CATALOG, License, LicenseCatalog


def test_default_catalog_lookups():
    lic = DEFAULT_CATALOG.by_name("GoogleWorkspaceBusinessStandard")
    assert lic is not None
    assert lic.product_id == "Google-Apps"
    assert lic.sku_id == "1010020028"
    assert DEFAULT_CATALOG.by_sku("1010020028") is lic
    assert "GSuiteBasic" in DEFAULT_CATALOG
    assert "NotALicense" not in DEFAULT_CATALOG
    assert DEFAULT_CATALOG.by_name("NotALicense") is None


def test_default_catalog_names_are_unique():
    names = DEFAULT_CATALOG.names
    assert len(names) == len(set(names)) == len(DEFAULT_CATALOG)


def test_license_is_frozen():
    lic = License(name="L", product_id="P", sku_id="S")
    with pytest.raises(Exception):
        lic.name = "other"


def test_to_yaml_uses_camel_case_keys(catalog):
    data = yaml.safe_load(catalog.to_yaml())
    assert data["licenses"][0] == {"name": "L1", "productId": "Product", "skuId": "sku-1"}
    assert len(data["licenses"]) == 4


def test_from_yaml(tmp_path):
    path = tmp_path / "licenses.yaml"
    path.write_text(
        "licenses:\n"
        "  - name: Custom\n"
        "    productId: Prod\n"
        '    skuId: "123"\n'
    )

    loaded = LicenseCatalog.from_yaml(path)

    assert loaded.names == ["Custom"]
    assert loaded.by_sku("123").product_id == "Prod"


def test_from_yaml_requires_licenses_list(tmp_path):
    path = tmp_path / "licenses.yaml"
    path.write_text("organization: example.com\n")

    with pytest.raises(ValueError):
        LicenseCatalog.from_yaml(path)
