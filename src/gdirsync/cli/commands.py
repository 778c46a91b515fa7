"""gdirsync CLI commands.

Commands:
    gdirsync sync <config.yaml> [--confirm]
    gdirsync validate <config.yaml>
    gdirsync licenses [--yaml]
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from gdirsync.audit.logger import ChangeLog, configure_logging
from gdirsync.config import Settings
from gdirsync.google.auth import (
    DIRECTORY_READONLY_SCOPES,
    DIRECTORY_SCOPES,
    GROUPS_SETTINGS_SCOPES,
    LICENSING_SCOPES,
    ServiceAccountCredentials,
)
from gdirsync.google.client import GoogleAPIError, GoogleAuthError
from gdirsync.google.directory import DirectoryService
from gdirsync.google.groupssettings import GroupsSettingsService
from gdirsync.google.licensing import LicensingService
from gdirsync.models.config import Configuration, validate_configuration
from gdirsync.models.licenses import DEFAULT_CATALOG, LicenseCatalog
from gdirsync.sync.errors import SyncError
from gdirsync.sync.license_status import fetch_license_status
from gdirsync.sync.orchestrator import sync_configuration

logger = logging.getLogger(__name__)

MSG_SYNCHRONIZED = "✓ Organization successfully synchronized."
MSG_RUN_AGAIN = "⚠ Run again with --confirm to apply the changes above."
MSG_IN_SYNC = "✓ No changes necessary, organization is in sync."


def _load_catalog(licenses_config: Path | None) -> LicenseCatalog:
    """Use the built-in catalog unless a replacement file is given."""
    if licenses_config is None:
        return DEFAULT_CATALOG
    try:
        return LicenseCatalog.from_yaml(licenses_config)
    except Exception as e:
        typer.secho(f"Error loading licenses: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _load_config(config_path: Path) -> Configuration:
    try:
        return Configuration.from_yaml(config_path)
    except Exception as e:
        typer.secho(f"Error loading config: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _report_problems(problems: list[str]) -> None:
    typer.secho(
        f"Configuration is invalid ({len(problems)} problems):",
        fg=typer.colors.RED,
        err=True,
    )
    for problem in problems:
        typer.secho(f"  - {problem}", fg=typer.colors.RED, err=True)


def sync(
    config_path: Path = typer.Argument(
        help="Path to the directory configuration YAML file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    confirm: Annotated[
        bool,
        typer.Option("--confirm", help="Apply the changes instead of only showing them"),
    ] = False,
    licenses_config: Annotated[
        Optional[Path],
        typer.Option("--licenses-config", help="YAML file replacing the built-in license list"),
    ] = None,
    # Connection options
    private_key: Annotated[
        Optional[Path],
        typer.Option("--private-key", help="Service account key file (.json)"),
    ] = None,
    impersonated_email: Annotated[
        Optional[str],
        typer.Option("--impersonated-email", help="Admin email to impersonate"),
    ] = None,
    throttle_requests: Annotated[
        Optional[float],
        typer.Option("--throttle-requests", help="Delay in seconds after licensing API requests"),
    ] = None,
    insecure_passwords: Annotated[
        bool,
        typer.Option("--insecure-passwords", help="Allow static passwords in the configuration"),
    ] = False,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Abort the run after this many seconds"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Synchronize the directory with the configuration.

    Without --confirm only the changes that would be made are shown.
    Running it repeatedly is safe: every run starts from the live state.

    Example:
        gdirsync sync directory.yaml
        gdirsync sync directory.yaml --confirm --private-key key.json --impersonated-email admin@example.com
    """
    settings = Settings().with_overrides(
        private_key=private_key,
        impersonated_email=impersonated_email,
        throttle_requests=throttle_requests,
        insecure_passwords=insecure_passwords or None,
        log_level="DEBUG" if verbose else None,
    )
    configure_logging(log_level=settings.log_level, json_format=settings.log_json)

    catalog = _load_catalog(licenses_config)
    config = _load_config(config_path)

    problems = validate_configuration(config, catalog, settings.insecure_passwords)
    if problems:
        _report_problems(problems)
        raise typer.Exit(1)

    if not settings.has_credentials:
        typer.secho(
            "No credentials provided. Use --private-key and --impersonated-email "
            "or GDIRSYNC_PRIVATE_KEY and GDIRSYNC_IMPERSONATED_EMAIL",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)

    mode = "" if confirm else " [DRY RUN]"
    typer.echo(f"Synchronizing organization: {config.organization}{mode}")

    changes = ChangeLog()
    try:
        changed = asyncio.run(
            asyncio.wait_for(
                _async_sync(
                    settings=settings,
                    config=config,
                    catalog=catalog,
                    confirm=confirm,
                    changes=changes,
                ),
                timeout=timeout,
            )
        )
    except asyncio.TimeoutError:
        typer.echo("\n" + changes.summary())
        typer.secho(f"⚠ Aborted after {timeout}s.", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except GoogleAuthError as e:
        typer.secho(f"Authentication failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except (SyncError, GoogleAPIError) as e:
        typer.echo("\n" + changes.summary())
        typer.secho(f"⚠ Failed to sync: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except Exception as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        if verbose:
            import traceback

            traceback.print_exc()
        raise typer.Exit(1)

    typer.echo("\n" + changes.summary())

    if confirm:
        typer.secho(MSG_SYNCHRONIZED, fg=typer.colors.GREEN)
    elif changed:
        typer.secho(MSG_RUN_AGAIN, fg=typer.colors.YELLOW)
    else:
        typer.secho(MSG_IN_SYNC, fg=typer.colors.GREEN)


async def _async_sync(
    settings: Settings,
    config: Configuration,
    catalog: LicenseCatalog,
    confirm: bool,
    changes: ChangeLog,
) -> bool:
    """Run the async reconciliation."""
    credentials = ServiceAccountCredentials.from_file(
        settings.private_key,
        subject=settings.impersonated_email,
        scopes=DIRECTORY_SCOPES if confirm else DIRECTORY_READONLY_SCOPES,
    )

    async with DirectoryService(
        settings.directory_url,
        credentials,
        timeout=settings.http_timeout,
        customer_id=settings.customer_id,
    ) as directory, GroupsSettingsService(
        settings.groups_settings_url,
        credentials.with_scopes(GROUPS_SETTINGS_SCOPES),
        timeout=settings.http_timeout,
    ) as groups_settings, LicensingService(
        settings.licensing_url,
        credentials.with_scopes(LICENSING_SCOPES),
        timeout=settings.http_timeout,
        customer_id=config.organization,
        delay=settings.throttle_requests,
    ) as licensing:
        license_status = None
        if config.users is not None:
            license_status = await fetch_license_status(licensing, catalog)

        return await sync_configuration(
            config,
            directory,
            groups_settings,
            licensing,
            catalog,
            confirm,
            license_status=license_status,
            changes=changes,
            enable_passwords=settings.insecure_passwords,
        )


def validate(
    config_path: Path = typer.Argument(
        help="Path to the directory configuration YAML file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    licenses_config: Annotated[
        Optional[Path],
        typer.Option("--licenses-config", help="YAML file replacing the built-in license list"),
    ] = None,
    insecure_passwords: Annotated[
        bool,
        typer.Option("--insecure-passwords", help="Allow static passwords in the configuration"),
    ] = False,
) -> None:
    """Check a configuration file without contacting Google."""
    catalog = _load_catalog(licenses_config)
    config = _load_config(config_path)

    problems = validate_configuration(config, catalog, insecure_passwords)
    if problems:
        _report_problems(problems)
        raise typer.Exit(1)

    counts = {
        "org units": config.org_units,
        "users": config.users,
        "groups": config.groups,
    }
    managed = ", ".join(
        f"{len(items)} {label}" for label, items in counts.items() if items is not None
    )
    typer.secho(
        f"✓ Configuration is valid ({managed or 'nothing managed'}).",
        fg=typer.colors.GREEN,
    )


def licenses(
    as_yaml: Annotated[
        bool,
        typer.Option("--yaml", help="Print the licenses as YAML"),
    ] = False,
    licenses_config: Annotated[
        Optional[Path],
        typer.Option("--licenses-config", help="YAML file replacing the built-in license list"),
    ] = None,
) -> None:
    """List the licenses that users can be assigned."""
    catalog = _load_catalog(licenses_config)

    if as_yaml:
        typer.echo(catalog.to_yaml(), nl=False)
        return

    for license in catalog:
        typer.echo(
            f'- {license.name} (productID "{license.product_id}", SKU "{license.sku_id}")'
        )
