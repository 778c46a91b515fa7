"""gdirsync CLI - Main entrypoint.

Usage:
    gdirsync sync directory.yaml --confirm
    gdirsync validate directory.yaml
    gdirsync licenses --yaml
"""

from __future__ import annotations

import typer

from gdirsync.cli.commands import licenses, sync, validate

app = typer.Typer(
    name="gdirsync",
    help="Declarative Google Workspace directory management",
    add_completion=True,
)

app.command("sync")(sync)
app.command("validate")(validate)
app.command("licenses")(licenses)


def create_app() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    create_app()
