"""Migrate command: bring an older prototype up to the current kit.

Usage:
    govuk-prototype-kit migrate                  # Migrate the current directory
    govuk-prototype-kit migrate ../my-prototype  # Migrate another directory
    govuk-prototype-kit migrate --version 13.2.0 # Pin the kit version used

The command runs in two stages:

1. **Stage one** checks that the project can be migrated, installs the
   requested kit version into the project and re-runs itself from there.
2. **Stage two** runs inside that pinned copy. It plans and applies the
   migration steps for the project's detected version.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from govuk_prototype_kit.config import PrototypeConfigError, load_prototype_config
from govuk_prototype_kit.core.preflight import ensure_preflight
from govuk_prototype_kit.errors import BootstrapError, PreflightError, StepError
from govuk_prototype_kit.runtime.bootstrap import (
    SENTINEL_OPTION,
    is_stage_two_invocation,
    prepare_migration,
    resolve_dependency_spec,
    run_stage_two,
)
from govuk_prototype_kit.upgrade.registry import MigrationRegistry
from govuk_prototype_kit.upgrade.runner import MigrationReport, migrate as run_migration

console = Console()


def _verbose(ctx: typer.Context) -> bool:
    return bool(isinstance(ctx.obj, dict) and ctx.obj.get("verbose"))


def _plan_table(report: MigrationReport) -> Table:
    failed = report.failed_step
    done = {result.step_id for result in report.results if result.success}

    table = Table(title="Migration Plan", show_lines=False, header_style="bold cyan")
    table.add_column("Step", style="bright_white")
    table.add_column("Description", style="dim")
    table.add_column("Applies", style="cyan")
    table.add_column("Status")

    for step_id in report.planned:
        step = MigrationRegistry.get_by_id(step_id)
        if step_id in done:
            status = "[green]applied[/green]"
        elif failed is not None and failed.step_id == step_id:
            status = "[red]failed[/red]"
        else:
            status = "[yellow]not run[/yellow]"
        table.add_row(
            step_id,
            step.description if step else "",
            step.version_range if step else "",
            status,
        )
    return table


def _print_report(report: MigrationReport, verbose: bool) -> None:
    console.print(
        f"Migrating from [cyan]{report.from_version}[/cyan] to [cyan]{report.to_version}[/cyan]"
    )
    console.print(_plan_table(report))
    console.print()

    if verbose:
        for result in report.results:
            for path in result.changed_files:
                console.print(f"  [dim]{result.step_id}: {path}[/dim]")

    console.print(f"{len(report.changed_files)} file(s) changed")


def _stage_one(project_root: Path, version: str, verbose: bool) -> None:
    try:
        ensure_preflight(project_root)
    except PreflightError as exc:
        console.print("[red]This prototype cannot be migrated yet:[/red]")
        for reason in exc.reasons:
            console.print(f"  - {reason}")
        raise typer.Exit(1)

    try:
        dependency_spec = resolve_dependency_spec(version)
        console.print(f"Installing [cyan]{dependency_spec}[/cyan]...")
        prepare_migration(dependency_spec, project_root)
        exit_code = run_stage_two(project_root, verbose=verbose)
    except BootstrapError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(exc.exit_code or 1)

    raise typer.Exit(exit_code)


def _stage_two(project_root: Path, verbose: bool) -> None:
    try:
        report = run_migration(project_root)
    except StepError as exc:
        if exc.report is not None:
            _print_report(exc.report, verbose)
        console.print(f"[red]Migration failed:[/red] {exc.description}")
        console.print(f"  [dim]{exc.cause}[/dim]")
        raise typer.Exit(1)

    if not report.planned:
        console.print("[green]Prototype is already up to date![/green]")
        return

    _print_report(report, verbose)
    try:
        config = load_prototype_config(project_root)
    except PrototypeConfigError as exc:
        console.print(f"[yellow]Warning:[/yellow] {exc}")
        config = None
    if config is not None and config.service_name:
        console.print(f"Service name: [bold]{config.service_name}[/bold]")
    console.print("[green]Migration complete.[/green] Review the changes and commit them.")


def migrate(
    ctx: typer.Context,
    project_dir: Path = typer.Argument(
        Path("."),
        help="Prototype directory to migrate (defaults to the current directory)",
    ),
    version: str = typer.Option(
        "latest",
        "--version",
        help="Kit version to migrate with: latest, local, X.Y.Z, or a path/URL",
    ),
    stage_two_token: Optional[str] = typer.Option(
        None,
        SENTINEL_OPTION,
        hidden=True,
    ),
) -> None:
    """Migrate a prototype made with an older kit to the current kit.

    Installs the requested kit version into the prototype, then runs the
    migration steps that apply to the version the prototype was built
    with. Running it again on a migrated prototype changes nothing.
    """
    project_root = project_dir.resolve()
    verbose = _verbose(ctx)

    if stage_two_token is None:
        _stage_one(project_root, version, verbose)
        return

    if not is_stage_two_invocation(stage_two_token):
        console.print(f"[red]Error:[/red] {SENTINEL_OPTION} is for internal use only.")
        raise typer.Exit(2)
    _stage_two(project_root, verbose)
