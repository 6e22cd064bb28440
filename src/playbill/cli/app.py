"""playbill command line.

``playbill config show`` / ``playbill evidence`` / ``playbill install``, plus
the global ``--version`` and ``--verbose`` flags.
"""

from __future__ import annotations

import logging
from importlib import metadata

import typer
from rich.console import Console

from playbill import __version__
from playbill.cli.config_cmd import config_app
from playbill.cli.evidence_cmd import evidence
from playbill.cli.install import install

TAGLINE = "Actors, abilities and evidence for behavior-driven tests."

console = Console()

app = typer.Typer(
    name="playbill",
    help=TAGLINE,
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


def _engine_version() -> str:
    try:
        return metadata.version("playwright")
    except metadata.PackageNotFoundError:
        return "not installed"


def _show_version(value: bool) -> None:
    if not value:
        return
    console.print(f"playbill v{__version__}", style="bold cyan")
    console.print(f"  playwright {_engine_version()}", style="dim")
    raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    # Library modules log under "playbill.*"; only the CLI decides where it goes.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)-7s %(name)s  %(message)s",
    )


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Print the playbill and Playwright versions, then exit.",
        callback=_show_version,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log ability lifecycle and per-verb detail."),
) -> None:
    """Playbill: Screenplay-pattern test harness for web UIs and HTTP APIs."""
    _configure_logging(verbose)


app.add_typer(config_app, name="config", help="View the resolved Playbill configuration.")
app.command(name="evidence", help="List captured evidence artifacts.")(evidence)
app.command(name="install", help="Install the Playwright browsers scenarios launch.")(install)
