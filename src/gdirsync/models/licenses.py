"""License catalog.

A catalog is an immutable, ordered collection of assignable licenses. The
engine receives it explicitly so a deployment (or a test) can swap in a
smaller or custom list via ``--licenses-config``.

Example YAML structure for a replacement catalog:
    licenses:
      - name: GoogleWorkspaceBusinessStarter
        productId: Google-Apps
        skuId: "1010020027"
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import yaml
from pydantic import BaseModel, ConfigDict, Field


class License(BaseModel):
    """A single assignable license, identified at the API level by product + SKU."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Human readable key used in user configuration")
    product_id: str = Field(..., alias="productId")
    sku_id: str = Field(..., alias="skuId")


class LicenseCatalog:
    """Ordered, read-only set of licenses indexed by name and by SKU."""

    def __init__(self, licenses: list[License] | tuple[License, ...]):
        self._licenses = tuple(licenses)
        self._by_name = {lic.name: lic for lic in self._licenses}
        self._by_sku = {lic.sku_id: lic for lic in self._licenses}

    def __iter__(self) -> Iterator[License]:
        return iter(self._licenses)

    def __len__(self) -> int:
        return len(self._licenses)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> list[str]:
        return [lic.name for lic in self._licenses]

    def by_name(self, name: str) -> License | None:
        """Look up a license by its configuration name."""
        return self._by_name.get(name)

    def by_sku(self, sku_id: str) -> License | None:
        """Look up a license by its SKU identifier."""
        return self._by_sku.get(sku_id)

    def to_yaml(self) -> str:
        data = {
            "licenses": [lic.model_dump(by_alias=True) for lic in self._licenses],
        }
        return yaml.safe_dump(data, sort_keys=False)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "LicenseCatalog":
        """Load a catalog from the ``licenses`` key of a YAML file."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"License file not found: {path}")

        raw = yaml.safe_load(p.read_text())
        if not isinstance(raw, dict) or not isinstance(raw.get("licenses"), list):
            raise ValueError(f"License file must contain a 'licenses' list: {path}")

        return cls([License.model_validate(item) for item in raw["licenses"]])


def _lic(name: str, product_id: str, sku_id: str) -> License:
    return License(name=name, product_id=product_id, sku_id=sku_id)


# https://developers.google.com/admin-sdk/licensing/v1/how-tos/products
DEFAULT_CATALOG = LicenseCatalog(
    [
        # Google Workspace
        _lic("GoogleWorkspaceBusinessStarter", "Google-Apps", "1010020027"),
        _lic("GoogleWorkspaceBusinessStandard", "Google-Apps", "1010020028"),
        _lic("GoogleWorkspaceBusinessPlus", "Google-Apps", "1010020025"),
        _lic("GoogleWorkspaceEnterpriseEssentials", "Google-Apps", "1010060003"),
        _lic("GoogleWorkspaceEnterpriseStandard", "Google-Apps", "1010020026"),
        _lic("GoogleWorkspaceEnterprisePlus", "Google-Apps", "1010020020"),
        _lic("GoogleWorkspaceEssentials", "Google-Apps", "1010060001"),
        # G Suite legacy editions
        _lic("GSuiteBusiness", "Google-Apps", "Google-Apps-Unlimited"),
        _lic("GSuiteBasic", "Google-Apps", "Google-Apps-For-Business"),
        _lic("GSuiteLite", "Google-Apps", "Google-Apps-Lite"),
        _lic("GoogleAppsMessageSecurity", "Google-Apps", "Google-Apps-For-Postini"),
        # Education
        _lic("GSuiteEnterpriseForEducation", "101031", "1010310002"),
        _lic("GSuiteEnterpriseForEducationStudent", "101031", "1010310003"),
        # Drive storage
        _lic("GoogleDriveStorage20GB", "Google-Drive-storage", "Google-Drive-storage-20GB"),
        _lic("GoogleDriveStorage50GB", "Google-Drive-storage", "Google-Drive-storage-50GB"),
        _lic("GoogleDriveStorage200GB", "Google-Drive-storage", "Google-Drive-storage-200GB"),
        _lic("GoogleDriveStorage400GB", "Google-Drive-storage", "Google-Drive-storage-400GB"),
        _lic("GoogleDriveStorage1TB", "Google-Drive-storage", "Google-Drive-storage-1TB"),
        _lic("GoogleDriveStorage2TB", "Google-Drive-storage", "Google-Drive-storage-2TB"),
        _lic("GoogleDriveStorage4TB", "Google-Drive-storage", "Google-Drive-storage-4TB"),
        _lic("GoogleDriveStorage8TB", "Google-Drive-storage", "Google-Drive-storage-8TB"),
        _lic("GoogleDriveStorage16TB", "Google-Drive-storage", "Google-Drive-storage-16TB"),
        # Vault
        _lic("GoogleVault", "Google-Vault", "Google-Vault"),
        _lic("GoogleVaultFormerEmployee", "Google-Vault", "Google-Vault-Former-Employee"),
        # Cloud Identity
        _lic("CloudIdentity", "101001", "1010010001"),
        _lic("CloudIdentityPremium", "101005", "1010050001"),
        # Voice
        _lic("GoogleVoiceStarter", "101033", "1010330003"),
        _lic("GoogleVoiceStandard", "101033", "1010330004"),
        _lic("GoogleVoicePremier", "101033", "1010330002"),
    ]
)
