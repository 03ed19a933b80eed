"""
ASEA Import CLI: reconcile legacy ASEA stacks from the command line.

Usage:
    asea-import run         Reconcile every stack and save the results
    asea-import stacks      List the stacks of the mapping table in run order
    asea-import validate    Validate settings, mapping table and configuration
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import ImportConfig, get_config, set_config
from .engine import ImportEngine
from .errors import AseaImportError, ConfigurationInconsistencyError
from .models import AcceleratorConfig
from .models.mapping import StackMappings
from .reconcilers import ALL_RECONCILERS, select_reconcilers

console = Console()
cli = typer.Typer(
    name="asea-import",
    help="Reconcile legacy ASEA stacks against Landing Zone Accelerator configuration.",
    no_args_is_help=True,
)


def _settings(asset_dir: Optional[str], output_dir: Optional[str]) -> ImportConfig:
    settings = get_config()
    overrides = {}
    if asset_dir:
        overrides["asset_dir"] = asset_dir
    if output_dir:
        overrides["output_dir"] = output_dir
    if overrides:
        settings = settings.model_copy(update=overrides)
        set_config(settings)
    return settings


def _ssm_lookup(path: Optional[Path]) -> Dict[str, str]:
    if path is None:
        return {}
    with open(path, "r") as f:
        return json.load(f)


@cli.command()
def run(
    mapping: Path = typer.Argument(..., help="Stack mapping table (JSON or YAML)"),
    config: Path = typer.Argument(..., help="Accelerator configuration (JSON or YAML)"),
    asset_dir: Optional[str] = typer.Option(None, "--asset-dir", help="Directory holding resource files"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Where results are saved"),
    ssm_lookup: Optional[Path] = typer.Option(None, "--ssm-lookup", help="JSON map of deployed parameters"),
    stack: List[str] = typer.Option([], "--stack", "-s", help="Stack key to reconcile (repeatable)"),
    reconciler: List[str] = typer.Option(["all"], "--reconciler", "-r", help="Reconciler name (repeatable)"),
):
    """Reconcile legacy stacks and save mapping entries, deletions and updated files."""
    try:
        settings = _settings(asset_dir, output_dir)
        engine = ImportEngine(
            StackMappings.load(mapping),
            AcceleratorConfig.load(config),
            settings=settings,
            ssm_lookup=_ssm_lookup(ssm_lookup),
            reconcilers=select_reconcilers(reconciler),
        )
        result = engine.run(stack or None)
        output_path = result.save(settings.output_path)
    except ConfigurationInconsistencyError as e:
        console.print(f"[red]Configuration inconsistency:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except AseaImportError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]Validation error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    table = Table(title="Import Summary", box=box.ROUNDED)
    table.add_column("Item", style="bold")
    table.add_column("Count")
    for key, value in result.summary().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)
    console.print(f"\n[dim]Results written to {output_path}[/dim]")


@cli.command()
def stacks(
    mapping: Path = typer.Argument(..., help="Stack mapping table (JSON or YAML)"),
    output_json: bool = typer.Option(False, "--json", help="Output stacks as JSON"),
):
    """List the top-level stacks of the mapping table in reconciliation order."""
    try:
        mappings = StackMappings.load(mapping)
    except AseaImportError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    ordered = sorted(
        (item for item in mappings if not item.is_nested),
        key=lambda item: (item.phase is None, item.phase or 0, item.key),
    )

    if output_json:
        console.print(json.dumps([item.key for item in ordered], indent=2))
        return

    table = Table(title="Legacy Stacks", box=box.ROUNDED)
    table.add_column("Phase", style="dim")
    table.add_column("Account", style="bold")
    table.add_column("Region")
    table.add_column("Stack")
    table.add_column("Nested")
    for item in ordered:
        table.add_row(
            "-" if item.phase is None else str(item.phase),
            f"{item.account_key} ({item.account_id})",
            item.region,
            item.stack_name,
            str(len(item.nested_stacks)),
        )
    console.print(table)


@cli.command()
def validate(
    mapping: Optional[Path] = typer.Option(None, "--mapping", help="Stack mapping table to check"),
    config: Optional[Path] = typer.Option(None, "--config", help="Accelerator configuration to check"),
):
    """Validate settings and, when given, the mapping table and configuration."""
    settings = get_config()

    console.print("[bold]Running validation checks...[/bold]\n")
    errors = []

    settings_errors = settings.validation_errors()
    if settings_errors:
        for err in settings_errors:
            errors.append(f"Settings: {err}")
            console.print(f"  [red]FAIL[/red] {escape(err)}")
    else:
        console.print("  [green]PASS[/green] Settings are valid")

    if mapping is not None:
        try:
            mappings = StackMappings.load(mapping)
            console.print(f"  [green]PASS[/green] Mapping table loaded ({len(mappings)} stacks)")
        except AseaImportError as e:
            errors.append(f"Mapping: {e}")
            console.print(f"  [red]FAIL[/red] {escape(str(e))}")

    if config is not None:
        try:
            AcceleratorConfig.load(config)
            console.print("  [green]PASS[/green] Configuration loaded")
        except AseaImportError as e:
            errors.append(f"Configuration: {e}")
            console.print(f"  [red]FAIL[/red] {escape(str(e))}")

    console.print()
    if errors:
        console.print(f"[red]Validation failed with {len(errors)} error(s).[/red]")
        raise typer.Exit(code=1)
    console.print(
        Panel(
            "\n".join(f"{cls.name}: phases {', '.join(map(str, cls.phases))}" for cls in ALL_RECONCILERS),
            title="Reconcilers",
            border_style="cyan",
        )
    )
    console.print("[green]All validation checks passed.[/green]")


if __name__ == "__main__":
    cli()
