"""playbill config — View the resolved Playbill configuration.

Subcommands: show.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Mapping

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from playbill.config import (
    API_ENV_VARS,
    WEB_ENV_VARS,
    PlaybillConfigError,
    env_fields,
    file_fields,
    load_api_config,
    load_web_config,
    resolve_config_path,
)
from playbill.credentials import mask_key

console = Console()

config_app = typer.Typer(
    name="config",
    help="View the resolved Playbill configuration.",
    no_args_is_help=True,
)

SECRET_FIELDS = frozenset({"bearer_token", "basic_password"})
SECRET_HEADERS = frozenset({"authorization", "proxy-authorization", "x-api-key"})


def _display(name: str, value: Any) -> str:
    if name in SECRET_FIELDS:
        return mask_key(value)
    if isinstance(value, tuple) and name == "viewport":
        return f"{value[0]}x{value[1]}"
    if isinstance(value, (tuple, list)):
        return ", ".join(value) or "-"
    if isinstance(value, Mapping):
        return "; ".join(f"{k}: {mask_key(v) if k.lower() in SECRET_HEADERS else v}" for k, v in value.items()) or "-"
    if value in ("", None):
        return "-"
    return str(value)


def _source(name: str, env_vars: Mapping[str, str], env_section: set[str], file_section: set[str]) -> str:
    if name in env_section:
        return f"env: {env_vars[name]}"
    if name in file_section:
        return "config"
    return "default"


def _add_section(table: Table, title: str, config: Any, env_vars: Mapping[str, str], file_section: set[str]) -> None:
    env_section = env_fields(title)
    table.add_row(f"[bold cyan]{title}[/bold cyan]", "", "")
    for f in dataclasses.fields(config):
        source = _source(f.name, env_vars, env_section, file_section)
        table.add_row(f"  {f.name}", _display(f.name, getattr(config, f.name)), source)


@config_app.command(name="show")
def config_show(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to playbill.yaml (default: PLAYBILL_CONFIG or ./playbill.yaml).",
    ),
) -> None:
    """Show the resolved web and API configuration.

    Merges the config file with environment overrides. Secrets are masked.
    """
    config_path = resolve_config_path(config)
    try:
        web = load_web_config(config)
        api = load_api_config(config)
        web_fields = file_fields(config_path, "web") if config_path else set()
        api_fields = file_fields(config_path, "api") if config_path else set()
    except PlaybillConfigError as exc:
        console.print(Panel(f"[red]{exc}[/red]", title="[red]Config Error[/red]", border_style="red"))
        raise typer.Exit(code=2)

    table = Table(title="Playbill Configuration", border_style="cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    table.add_row("Config File", str(config_path) if config_path else "-", "resolved" if config_path else "none")
    _add_section(table, "web", web, WEB_ENV_VARS, web_fields)
    _add_section(table, "api", api, API_ENV_VARS, api_fields)

    console.print()
    console.print(table)
    console.print()
