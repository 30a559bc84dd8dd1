"""MTOCalc CLI.

Commands:
- map-columns: Show how take-off headers map to expected fields
- validate: Validate a take-off file and report errors/skips
- weights: Build components, total their weights and optionally distribute a budget
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from mtocalc.config import get_config
from mtocalc.core.logging import configure_logging
from mtocalc.ingestion.takeoff import TakeoffFileError, preview_import, read_takeoff
from mtocalc.ingestion.validator import get_error_details, get_skip_details
from mtocalc.manhour.budget import distribute_budget
from mtocalc.manhour.weights import calculate_weight
from mtocalc.mapping.column_mapper import load_synonyms, map_columns
from mtocalc.models import ImportPreview

app = typer.Typer(
    name="mtocalc",
    help="MTOCalc - Material take-off import and installation-effort weighting",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)


def _load(file: Path) -> tuple[list[str], list[dict[str, str]]]:
    try:
        return read_takeoff(file)
    except (FileNotFoundError, TakeoffFileError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=2)


def _print_summary(preview: ImportPreview, limit: int) -> None:
    summary = preview.summary
    if summary is None:
        return

    table = Table(title="Validation Summary")
    table.add_column("Status", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_row("Valid", str(summary.valid_count))
    table.add_row("Skipped", str(summary.skipped_count))
    table.add_row("Errors", str(summary.error_count))
    table.add_row("Total", str(summary.total_rows))
    console.print(table)

    for label, details, style in (
        ("Errors", get_error_details(preview.outcomes), "red"),
        ("Skipped", get_skip_details(preview.outcomes), "yellow"),
    ):
        if not details:
            continue
        console.print(f"\n[bold {style}]{label}[/bold {style}] (first {min(limit, len(details))})")
        for detail in details[:limit]:
            console.print(
                f"  Row {detail['row_number']}: {detail['reason']} "
                f"[dim]({detail['category'].value})[/dim]"
            )


@app.command(name="map-columns")
def map_columns_cmd(
    file: Path = typer.Argument(..., help="Take-off file (CSV/XLSX)"),
):
    """Show how the file's headers map to expected fields."""
    headers, _ = _load(file)
    result = map_columns(headers, load_synonyms(get_config().ingestion.synonyms_path))

    table = Table(title=f"Column Mapping: {file.name}")
    table.add_column("Header", style="cyan")
    table.add_column("Field")
    table.add_column("Tier")
    table.add_column("Confidence", justify="right")
    for mapping in result.mappings:
        table.add_row(
            mapping.csv_column,
            mapping.expected_field.value,
            mapping.match_tier.value,
            f"{mapping.confidence}%",
        )
    console.print(table)

    if result.unmapped_headers:
        console.print(f"[yellow]⚠[/yellow] Unmapped: {', '.join(result.unmapped_headers)}")
    if result.missing_required_fields:
        missing = ", ".join(field.value for field in result.missing_required_fields)
        console.print(f"[red]✗[/red] Missing required fields: {missing}")
        raise typer.Exit(code=1)

    console.print("[bold green]✓[/bold green] All required fields mapped")


@app.command()
def validate(
    file: Path = typer.Argument(..., help="Take-off file (CSV/XLSX)"),
    limit: int = typer.Option(10, "--limit", help="Errors/skips to show per status"),
):
    """Validate a take-off file without importing it."""
    headers, rows = _load(file)
    preview = preview_import(headers, rows)

    if not preview.mapping.has_all_required_fields:
        missing = ", ".join(field.value for field in preview.mapping.missing_required_fields)
        console.print(f"[red]✗[/red] Missing required fields: {missing}")
        raise typer.Exit(code=1)

    _print_summary(preview, limit)

    if not preview.can_import:
        console.print("\n[red]✗[/red] Import blocked by errors")
        raise typer.Exit(code=1)

    console.print(
        f"\n[bold green]✓[/bold green] Ready to import: {len(preview.components)} components"
    )


@app.command()
def weights(
    file: Path = typer.Argument(..., help="Take-off file (CSV/XLSX)"),
    budget: float | None = typer.Option(None, "--budget", help="Total manhours to distribute"),
):
    """Show installation-effort weights per component type."""
    headers, rows = _load(file)
    preview = preview_import(headers, rows)

    if not preview.can_import:
        console.print("[red]✗[/red] File does not validate; run 'mtocalc validate' for details")
        raise typer.Exit(code=1)

    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for component in preview.components:
        result = calculate_weight(
            component.identity, component.component_type, component.attributes
        )
        totals[component.component_type] += result.weight
        counts[component.component_type] += 1

    table = Table(title="Weights by Component Type")
    table.add_column("Type", style="cyan")
    table.add_column("Components", justify="right")
    table.add_column("Total Weight", justify="right")
    for component_type in sorted(totals):
        table.add_row(
            component_type, str(counts[component_type]), f"{totals[component_type]:.4f}"
        )
    console.print(table)

    if budget is None:
        return

    try:
        allocation = distribute_budget(preview.components, budget)
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    hours: dict[str, float] = defaultdict(float)
    for item in allocation.allocations:
        hours[item.component_type] += item.budgeted_manhours

    budget_table = Table(title=f"Budget Distribution ({allocation.total_manhours:g} MH)")
    budget_table.add_column("Type", style="cyan")
    budget_table.add_column("Manhours", justify="right")
    for component_type in sorted(hours):
        budget_table.add_row(component_type, f"{hours[component_type]:.2f}")
    console.print(budget_table)

    if allocation.warnings:
        console.print(f"[yellow]⚠[/yellow] {len(allocation.warnings)} components use a fixed weight")


if __name__ == "__main__":
    app()
