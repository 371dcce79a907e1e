"""
GOV.UK Prototype Kit command line.

Usage:
    govuk-prototype-kit migrate [PROJECT_DIR] [--version latest|local|X.Y.Z]
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from govuk_prototype_kit.version_utils import get_version

__version__ = get_version()

from govuk_prototype_kit.cli.commands import register_commands  # noqa: E402
from govuk_prototype_kit.utils import QuietLogFilter  # noqa: E402

console = Console()

app = typer.Typer(
    name="govuk-prototype-kit",
    help="Tools for prototypes built with the GOV.UK Prototype Kit",
    add_completion=False,
    no_args_is_help=True,
)


def configure_logging(verbose: bool = False) -> None:
    """Send the kit's log records to stderr through Rich."""
    kit_logger = logging.getLogger("govuk_prototype_kit")
    for handler in list(kit_logger.handlers):
        if isinstance(handler, RichHandler):
            kit_logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.addFilter(QuietLogFilter())
    kit_logger.addHandler(handler)
    kit_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _show_version(value: bool) -> None:
    if value:
        console.print(f"govuk-prototype-kit {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress"),
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show the kit version and exit",
    ),
) -> None:
    """Configure logging for every command."""
    configure_logging(verbose)
    ctx.obj = {"verbose": verbose}


register_commands(app)


def main():
    app()


if __name__ == "__main__":
    main()
