"""Service account authentication with domain-wide delegation.

A signed RS256 assertion naming the impersonated admin is exchanged at the
token endpoint for a short-lived OAuth access token.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import jwt

from gdirsync.google.client import GoogleAuthError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

_SCOPE_PREFIX = "https://www.googleapis.com/auth/"

DIRECTORY_SCOPES = [
    _SCOPE_PREFIX + "admin.directory.user",
    _SCOPE_PREFIX + "admin.directory.group",
    _SCOPE_PREFIX + "admin.directory.group.member",
    _SCOPE_PREFIX + "admin.directory.orgunit",
    _SCOPE_PREFIX + "admin.directory.userschema",
]
DIRECTORY_READONLY_SCOPES = [scope + ".readonly" for scope in DIRECTORY_SCOPES]
GROUPS_SETTINGS_SCOPES = [_SCOPE_PREFIX + "apps.groups.settings"]
LICENSING_SCOPES = [_SCOPE_PREFIX + "apps.licensing"]


@dataclass
class TokenInfo:
    """OAuth token information."""

    access_token: str
    expires_at: float

    def is_valid(self, leeway: int = 30) -> bool:
        """Check if token is still valid."""
        return time.time() < (self.expires_at - leeway)


class ServiceAccountCredentials:
    """Access tokens for a service account impersonating a directory admin."""

    def __init__(
        self,
        info: dict[str, Any],
        subject: str,
        scopes: list[str],
        lifetime: int = 3600,
    ):
        """Initialize credentials.

        Args:
            info: Parsed service account key file
            subject: Email of the admin to impersonate
            scopes: OAuth scopes to request
            lifetime: Assertion lifetime in seconds (Google caps this at 1h)
        """
        try:
            self._client_email = info["client_email"]
            self._private_key = info["private_key"]
        except KeyError as e:
            raise GoogleAuthError(f"Service account key is missing {e}") from e
        self._private_key_id = info.get("private_key_id")
        self._token_uri = info.get("token_uri") or GOOGLE_TOKEN_URI
        self._subject = subject
        self._scopes = list(scopes)
        self._lifetime = lifetime
        self._token: TokenInfo | None = None

    @classmethod
    def from_file(
        cls, path: str | Path, subject: str, scopes: list[str]
    ) -> "ServiceAccountCredentials":
        """Load credentials from a service account JSON key file."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Service account key not found: {path}")
        try:
            info = json.loads(p.read_text())
        except json.JSONDecodeError as e:
            raise GoogleAuthError(f"Service account key is not valid JSON: {e}") from e
        return cls(info, subject=subject, scopes=scopes)

    @property
    def scopes(self) -> list[str]:
        return list(self._scopes)

    def with_scopes(self, scopes: list[str]) -> "ServiceAccountCredentials":
        """Return credentials for the same account with different scopes."""
        info = {
            "client_email": self._client_email,
            "private_key": self._private_key,
            "private_key_id": self._private_key_id,
            "token_uri": self._token_uri,
        }
        return ServiceAccountCredentials(info, self._subject, scopes, self._lifetime)

    def build_assertion(self, now: float | None = None) -> str:
        """Sign the JWT assertion that is exchanged for an access token."""
        issued_at = int(now if now is not None else time.time())
        payload = {
            "iss": self._client_email,
            "sub": self._subject,
            "scope": " ".join(self._scopes),
            "aud": self._token_uri,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        headers = {"kid": self._private_key_id} if self._private_key_id else None
        return jwt.encode(payload, self._private_key, algorithm="RS256", headers=headers)

    async def access_token(self, client: httpx.AsyncClient) -> str:
        """Return a valid access token, fetching a new one when needed."""
        if self._token and self._token.is_valid():
            return self._token.access_token

        logger.debug(
            "Requesting access token for %s as %s", self._client_email, self._subject
        )
        data = {"grant_type": JWT_BEARER_GRANT, "assertion": self.build_assertion()}
        try:
            response = await client.post(self._token_uri, data=data)
        except httpx.HTTPError as e:
            raise GoogleAuthError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            raise GoogleAuthError(
                f"Service account authentication failed: {response.text}",
                status_code=response.status_code,
            )

        payload = response.json()
        self._token = TokenInfo(
            access_token=payload["access_token"],
            expires_at=time.time() + float(payload.get("expires_in", 3600)),
        )
        logger.info("Authenticated as %s (impersonating %s)", self._client_email, self._subject)
        return self._token.access_token
