"""pbirdoc CLI."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pbirdoc.config import settings
from pbirdoc.models import NormalizationResult
from pbirdoc.pipeline import ReportNormalizer, summarize
from pbirdoc.validation import RequiredKeysValidator

app = typer.Typer(
    name="pbirdoc",
    help="Document the pages, visuals, fields and filters of a PBIR report definition",
    add_completion=False,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _normalize(report_dir: str, strict: bool) -> NormalizationResult:
    path = Path(report_dir)
    if not path.is_dir():
        console.print(f"[bold red]Error:[/bold red] directory not found: {report_dir}")
        raise typer.Exit(code=1)

    if settings.schema_dir:
        validator = RequiredKeysValidator.from_schema_dir(settings.schema_dir)
    else:
        validator = RequiredKeysValidator()

    result = ReportNormalizer(validator=validator).normalize_directory(path)

    if result.errors:
        console.print(f"\n[bold red]Parse Errors ({len(result.errors)}):[/bold red]")
        for issue in result.errors:
            console.print(f"  • {issue}")
    if result.warnings:
        console.print(f"\n[bold yellow]Parse Warnings ({len(result.warnings)}):[/bold yellow]")
        for issue in result.warnings:
            console.print(f"  • {issue}")
    if result.root_missing:
        console.print("\n[bold yellow]No definition/report.json found[/bold yellow]")
        if strict:
            raise typer.Exit(code=1)
    return result


def _write_output(output: Optional[str], payload: str) -> None:
    if output:
        Path(output).write_text(payload, encoding="utf-8")
        console.print(f"\n[dim]Results saved to: {output}[/dim]")


@app.command()
def parse(
    report_dir: str = typer.Argument(..., help="Report folder containing definition/"),
    output: Optional[str] = typer.Option(None, help="Save the canonical model as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List every visual"),
    strict: bool = typer.Option(False, help="Exit non-zero when report.json is missing"),
) -> None:
    """Normalize a report folder and print its pages."""
    _configure_logging(verbose)
    console.print(f"[bold blue]Parsing:[/bold blue] {report_dir}")
    result = _normalize(report_dir, strict)
    report = result.report

    table = Table(title="Pages")
    table.add_column("#", justify="right")
    table.add_column("Page")
    table.add_column("Id", style="dim")
    table.add_column("Visuals", justify="right")
    table.add_column("Filters", justify="right")
    for index, page in enumerate(report.pages, start=1):
        name = f"{page.display_name} [dim](hidden)[/dim]" if page.is_hidden else page.display_name
        table.add_row(str(index), name, page.id, str(page.visual_count), str(len(page.filters)))
    console.print(table)

    if verbose:
        for page in report.pages:
            console.print(f"\n[bold]{page.display_name}[/bold]")
            for visual in page.visuals:
                console.print(
                    f"  ◦ {visual.display_name} ({visual.visual_type}): "
                    f"{visual.bindings.total} fields, {len(visual.filters)} filters"
                )
                for descriptor in visual.filters:
                    console.print(f"      [dim]{descriptor.display_name}: {descriptor.description}[/dim]")

    _write_output(output, result.model_dump_json(indent=2))


@app.command()
def summary(
    report_dir: str = typer.Argument(..., help="Report folder containing definition/"),
    output: Optional[str] = typer.Option(None, help="Save the summary as JSON"),
    strict: bool = typer.Option(False, help="Exit non-zero when report.json is missing"),
) -> None:
    """Print report statistics."""
    _configure_logging(False)
    result = _normalize(report_dir, strict)
    stats = summarize(result.report)

    console.print("\n[bold blue]Report Summary[/bold blue]")
    console.print(f"  Pages: {stats.total_pages} ({stats.hidden_pages} hidden)")
    console.print(f"  Visuals: {stats.total_visuals}")
    console.print(f"  Bookmarks: {stats.total_bookmarks}")
    console.print(f"  Field bindings: {stats.total_bindings}")
    console.print(f"  Filters: {stats.total_filters}")

    if stats.visual_types:
        console.print("\n[bold blue]Visual Types[/bold blue]")
        for visual_type, count in stats.visual_types.items():
            console.print(f"  • {visual_type}: {count}")

    _write_output(output, stats.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
