"""CLI command modules for the GOV.UK Prototype Kit."""

from __future__ import annotations

import typer

from .migrate_cmd import migrate


def register_commands(app: typer.Typer) -> None:
    """Attach every command to the root Typer app."""
    app.command("migrate")(migrate)


__all__ = ["register_commands"]
