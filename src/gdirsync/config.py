"""Runtime settings using pydantic-settings.

Settings can be provided via:
1. Environment variables (GDIRSYNC_*)
2. A local .env file
3. CLI arguments (--private-key, --impersonated-email, etc.)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Connection, throttling and logging settings for a reconciliation run."""

    model_config = SettingsConfigDict(
        env_prefix="GDIRSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Authentication
    private_key: Path | None = Field(
        default=None,
        description="Path to the service account key file (.json)",
    )
    impersonated_email: str | None = Field(
        default=None,
        description="Admin email the service account impersonates",
    )
    customer_id: str = Field(
        default="my_customer",
        description="Directory API customer identifier",
    )

    # Request pacing
    throttle_requests: float = Field(
        default=0.5,
        ge=0,
        description="Delay in seconds after every licensing API request",
    )
    http_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )

    # Behaviour
    insecure_passwords: bool = Field(
        default=False,
        description="Allow static passwords to be configured for users",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    # API endpoints
    directory_url: str = "https://admin.googleapis.com/admin/directory/v1"
    groups_settings_url: str = "https://www.googleapis.com/groups/v1/groups"
    licensing_url: str = "https://licensing.googleapis.com/apps/licensing/v1"

    @property
    def has_credentials(self) -> bool:
        """Check if service account credentials are available."""
        return bool(self.private_key and self.impersonated_email)

    def with_overrides(
        self,
        *,
        private_key: Path | None = None,
        impersonated_email: str | None = None,
        throttle_requests: float | None = None,
        insecure_passwords: bool | None = None,
        log_level: str | None = None,
    ) -> "Settings":
        """Create a new settings instance with CLI overrides applied."""
        updates = {
            "private_key": private_key,
            "impersonated_email": impersonated_email,
            "throttle_requests": throttle_requests,
            "insecure_passwords": insecure_passwords,
            "log_level": log_level,
        }
        return self.model_copy(
            update={k: v for k, v in updates.items() if v is not None}
        )
