"""playbill evidence — List captured evidence artifacts.

Reads the JSON manifests written at scenario end; when there are none
(reporting disabled), scans the category directories instead.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from playbill.config import PlaybillConfigError, load_web_config

console = Console()

CATEGORIES = ("screenshots", "videos", "errors", "api")

# Kind recorded for a file found by scanning, keyed by category and suffix
_SCANNED_KINDS = {
    ("screenshots", ".png"): "screenshot",
    ("errors", ".png"): "screenshot",
    ("errors", ".txt"): "error_detail",
    ("videos", ".webm"): "video",
    ("api", ".txt"): "request_log",
    ("api", ".json"): "response_log",
}


def _category_of(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).parts[0]
    except (ValueError, IndexError):
        return "?"


def _from_manifests(base: Path) -> list[dict]:
    artifacts: list[dict] = []
    manifest_dir = base / "manifest"
    if not manifest_dir.is_dir():
        return artifacts
    for manifest in sorted(manifest_dir.glob("*.json")):
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            console.print(f"[yellow]Skipping unreadable manifest:[/yellow] {manifest}")
            continue
        for item in data.get("artifacts", []):
            item = dict(item)
            item.setdefault("scenario", data.get("scenario", "?"))
            item["category"] = _category_of(Path(item.get("path", "")), base)
            artifacts.append(item)
    return artifacts


def _from_scan(base: Path) -> list[dict]:
    artifacts: list[dict] = []
    for category in CATEGORIES:
        root = base / category
        if not root.is_dir():
            continue
        for path in sorted(p for p in root.rglob("*") if p.is_file()):
            scenario = path.relative_to(root).parts[0] if len(path.relative_to(root).parts) > 1 else "?"
            artifacts.append(
                {
                    "path": str(path),
                    "kind": _SCANNED_KINDS.get((category, path.suffix.lower()), "file"),
                    "scenario": scenario,
                    "step": path.stem,
                    "category": category,
                }
            )
    return artifacts


def evidence(
    base: Path | None = typer.Option(
        None,
        "--base",
        "-b",
        help="Evidence base directory. Default: evidence_base_path from config.",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Only show one category: screenshots, videos, errors or api.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the artifact list as JSON.",
    ),
) -> None:
    """List evidence artifacts captured by past scenarios."""
    if category is not None and category not in CATEGORIES:
        console.print(f"[red]Unknown category:[/red] {category} (choose from {', '.join(CATEGORIES)})")
        raise typer.Exit(code=2)

    if base is None:
        try:
            base = Path(load_web_config().evidence_base_path)
        except PlaybillConfigError as exc:
            console.print(Panel(f"[red]{exc}[/red]", title="[red]Config Error[/red]", border_style="red"))
            raise typer.Exit(code=2)

    if not base.is_dir():
        console.print(
            Panel(
                f"[yellow]Evidence directory not found:[/yellow] {base}\n\n"
                "No evidence captured yet. Run some scenarios first.",
                title="[yellow]No Evidence[/yellow]",
                border_style="yellow",
            )
        )
        raise typer.Exit(code=0)

    artifacts = _from_manifests(base)
    source = "manifest"
    if not artifacts:
        artifacts = _from_scan(base)
        source = "scan"
    if category is not None:
        artifacts = [a for a in artifacts if a.get("category") == category]

    if as_json:
        console.print_json(json.dumps(artifacts))
        return

    if not artifacts:
        console.print("[yellow]No artifacts found.[/yellow]")
        return

    table = Table(title=f"Evidence ({source})", border_style="cyan")
    table.add_column("Scenario", style="bold")
    table.add_column("Kind")
    table.add_column("Step")
    table.add_column("Path", style="dim", overflow="fold")

    for a in artifacts:
        table.add_row(a.get("scenario", "?"), a.get("kind", "?"), a.get("step", "") or "-", a.get("path", "?"))

    console.print()
    console.print(table)
    console.print(f"[dim]{len(artifacts)} artifact(s) under {base}[/dim]")
    console.print()
