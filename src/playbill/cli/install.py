"""playbill install — Install Playwright browser binaries.

Defaults to the browsers listed in the resolved web config (``browsers``,
else ``browser_type``), so CI installs exactly what the matrix will launch.
"""

from __future__ import annotations

import subprocess
import sys

import typer
from rich.console import Console
from rich.panel import Panel

from playbill.config import PlaybillConfigError, load_web_config
from playbill.models import BROWSER_FAMILIES

console = Console()

INSTALL_TIMEOUT_S = 600


def _configured_browsers() -> list[str]:
    try:
        config = load_web_config()
    except PlaybillConfigError:
        return ["chromium"]
    return [b.lower() for b in config.browsers] or [config.browser_type.lower()]


def _install_command(browsers: list[str], with_deps: bool) -> list[str]:
    cmd = [sys.executable, "-m", "playwright", "install"]
    if with_deps:
        cmd.append("--with-deps")
    return cmd + browsers


def _fail(message: str, title: str) -> None:
    console.print(Panel(message, title=f"[red]{title}[/red]", border_style="red"))
    raise typer.Exit(code=3)


def install(
    browsers: str | None = typer.Option(
        None,
        "--browsers",
        "-b",
        help="Comma-separated browsers to install (chromium, firefox, webkit). Default: from config.",
    ),
    with_deps: bool = typer.Option(
        False,
        "--with-deps",
        help="Also install the system libraries the browsers need (Linux).",
    ),
    ci: bool = typer.Option(
        False,
        "--ci",
        help="Quiet mode for CI: no panels or spinner, errors only.",
    ),
) -> None:
    """Install the Playwright browsers Playbill web scenarios launch."""
    browser_list = [b.strip().lower() for b in browsers.split(",") if b.strip()] if browsers else _configured_browsers()
    unknown = [b for b in browser_list if b not in BROWSER_FAMILIES]
    if unknown:
        console.print(f"[red]Unknown browser(s):[/red] {', '.join(unknown)} (choose from {', '.join(BROWSER_FAMILIES)})")
        raise typer.Exit(code=2)

    cmd = _install_command(browser_list, with_deps)
    if not ci:
        console.print()
        console.print(
            Panel(
                f"Installing browsers: [bold cyan]{', '.join(browser_list)}[/bold cyan]\n\n"
                "[dim]First run downloads the browser binaries and may take a few minutes.[/dim]",
                title="[bold]Playbill Browser Setup[/bold]",
                border_style="blue",
            )
        )

    try:
        if ci:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=INSTALL_TIMEOUT_S)
        else:
            with console.status(f"[bold blue]Installing {', '.join(browser_list)}...[/bold blue]", spinner="dots"):
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=INSTALL_TIMEOUT_S)
    except subprocess.TimeoutExpired:
        _fail("[red]Installation timed out after 10 minutes.[/red]\n\nCheck your network connection and try again.", "Timeout")
    except FileNotFoundError:
        _fail("[red]Could not run the Python interpreter to invoke Playwright.[/red]", "Missing Interpreter")

    if result.returncode != 0:
        stderr = result.stderr.strip() if result.stderr else "No error output."
        if ci:
            console.print(f"[red]Installation failed (exit {result.returncode})[/red]\n{stderr}")
            raise typer.Exit(code=3)
        _fail(
            f"[red]Playwright install failed (exit code {result.returncode}).[/red]\n\n{stderr}\n\n"
            f"[dim]Try running manually:[/dim]\n  {' '.join(cmd)}",
            "Installation Failed",
        )

    if not ci:
        console.print(
            Panel(
                f"[green]Installed: {', '.join(browser_list)}[/green]",
                title="[bold green]Installation Complete[/bold green]",
                border_style="green",
            )
        )
