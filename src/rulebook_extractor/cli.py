"""Command-line interface for Rulebook Extractor."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from rulebook_extractor import __version__
from rulebook_extractor.models.records import ContentKind

console = Console()

KIND_CHOICE = click.Choice([kind.value for kind in ContentKind], case_sensitive=False)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _kinds(values: tuple[str, ...]) -> list[ContentKind] | None:
    return [ContentKind(value.lower()) for value in values] or None


def _kind_from_filename(path: Path) -> ContentKind | None:
    """``spells-extracted.json`` -> ContentKind.SPELL."""
    stem = path.name.split("-")[0].lower()
    for kind in ContentKind:
        if stem == kind.collection:
            return kind
    return None


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Logging level (default from RBX_LOG_LEVEL)")
def main(log_level: str | None) -> None:
    """Rulebook Extractor - Turn tabletop RPG rulebooks into structured records."""
    from rulebook_extractor.config import get_settings

    _setup_logging(log_level or get_settings().log_level)


@main.command()
def status() -> None:
    """Show effective settings and PDF support."""
    import pymupdf

    from rulebook_extractor.config import get_settings

    settings = get_settings()

    console.print("[bold]Rulebook Extractor Status[/bold]\n")

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)

    input_dir = Path(settings.input_dir)
    if input_dir.is_dir():
        console.print(f"[green]✓[/green] Input directory found: {input_dir}")
    else:
        console.print(f"[yellow]![/yellow] Input directory missing: {input_dir}")

    console.print(f"[green]✓[/green] PDF support: PyMuPDF {pymupdf.__version__}")


@main.command()
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--output", "-o", "output_dir", type=click.Path(file_okay=False), help="Output directory")
@click.option("--workers", "-w", type=int, help="Worker processes (1 runs in-process)")
@click.option("--timeout", type=float, help="Per-file extraction budget in seconds")
@click.option("--kind", "-k", "kinds", multiple=True, type=KIND_CHOICE, help="Only extract these kinds")
@click.option("--strip-html", is_flag=True, help="Convert HTML to text before extraction")
@click.option("--drop-invalid", is_flag=True, help="Drop records with validation errors")
def run(
    input_dir: str,
    output_dir: str | None,
    workers: int | None,
    timeout: float | None,
    kinds: tuple[str, ...],
    strip_html: bool,
    drop_invalid: bool,
) -> None:
    """Extract every rulebook under INPUT_DIR."""
    from rulebook_extractor.config import get_settings
    from rulebook_extractor.pipeline import run_batch

    overrides = {
        "input_dir": Path(input_dir),
        "output_dir": Path(output_dir) if output_dir else None,
        "max_workers": workers,
        "file_timeout_seconds": timeout,
        "strip_html": strip_html or None,
        "drop_invalid": drop_invalid or None,
    }
    settings = get_settings().model_copy(update={k: v for k, v in overrides.items() if v is not None})

    console.print(f"[bold]Extracting:[/bold] {settings.input_dir}")
    console.print(f"[dim]Output: {settings.output_dir}[/dim]")
    console.print(f"[dim]Workers: {settings.max_workers}, timeout: {settings.file_timeout_seconds}s[/dim]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Processing files...", total=None)

        def set_total(total: int) -> None:
            progress.update(task, total=total)

        def update_progress(current: int, total: int) -> None:
            progress.update(task, completed=current, total=total)

        summary = run_batch(
            settings,
            kinds=_kinds(kinds),
            progress_callback=update_progress,
            total_callback=set_total,
        )

    console.print("\n[bold green]✓ Extraction complete![/bold green]\n")

    files = Table(title="Files")
    files.add_column("Metric", style="cyan")
    files.add_column("Value", style="green", justify="right")
    files.add_row("Found", f"{summary.files_total:,}")
    files.add_row("Processed", f"{summary.files_processed:,}")
    files.add_row("Skipped", f"{summary.files_skipped:,}")
    files.add_row("Failed", f"{summary.files_failed:,}")
    files.add_row("Duration", f"{summary.duration_seconds:.1f}s")
    console.print(files)

    records = Table(title="Records")
    records.add_column("Kind", style="cyan")
    records.add_column("Primary", justify="right")
    records.add_column("Enhanced", justify="right")
    records.add_column("Merged", justify="right")
    records.add_column("Invalid", justify="right", style="red")
    records.add_column("Written", justify="right", style="green")
    records.add_column("Avg score", justify="right")
    for kind, totals in summary.totals.items():
        records.add_row(
            kind.collection,
            f"{totals.primary:,}",
            f"{totals.enhanced:,}",
            f"{totals.merged:,}",
            f"{totals.invalid:,}",
            f"{totals.written:,}",
            f"{summary.validation[kind].average_score:.0f}",
        )
    console.print(records)

    if summary.failures:
        console.print(f"\n[bold red]Failures ({len(summary.failures)}):[/bold red]")
        for failure in summary.failures[:10]:
            console.print(f"  {failure['path']}: {failure['error']}")

    console.print(f"\n[green]✓[/green] Summary saved to {settings.summary_path}")


# ============================================================================
# Extract Commands
# ============================================================================

@main.group()
def extract() -> None:
    """Single-file extraction commands."""
    pass


@extract.command(name="file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--kind", "-k", "kinds", multiple=True, type=KIND_CHOICE, help="Only extract these kinds")
@click.option("--output", "-o", type=click.Path(), help="Output file for results (JSON)")
@click.option("--strip-html", is_flag=True, help="Convert HTML to text before extraction")
def extract_file(path: str, kinds: tuple[str, ...], output: str | None, strip_html: bool) -> None:
    """Run the extractors over one file."""
    from rulebook_extractor.dedupe import merge_passes, sort_by_key
    from rulebook_extractor.errors import UnsupportedFormat
    from rulebook_extractor.extract import ScanContext, extract_all
    from rulebook_extractor.ingest.loader import extract_text
    from rulebook_extractor.pipeline.io import write_json

    file_path = Path(path)
    source = file_path.stem

    try:
        text = extract_text(file_path, strip_html=strip_html)
    except UnsupportedFormat as exc:
        console.print(f"[red]{exc}[/red]")
        return

    console.print(f"[bold]Extracting from:[/bold] {file_path}")
    console.print(f"[dim]{len(text):,} characters[/dim]\n")

    context = ScanContext()
    primary, enhanced = extract_all(text, source, _kinds(kinds), context)

    table = Table(title="Extracted Records")
    table.add_column("Kind", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_column("Sample")

    output_data = {}
    for kind, records in primary.items():
        merged = sort_by_key(merge_passes(records, enhanced.get(kind, [])))
        output_data[kind.collection] = [record.to_dict() for record in merged]
        sample = ", ".join(record.name for record in merged[:3])
        table.add_row(kind.collection, f"{len(merged):,}", sample)

    console.print(table)

    if context.rejected:
        console.print("\n[bold]Top rejections:[/bold]")
        for reason, count in context.rejected.most_common(10):
            console.print(f"  {reason}: {count:,}")

    if output:
        write_json(output_data, output)
        console.print(f"\n[green]✓[/green] Results saved to {output}")


# ============================================================================
# Validation Commands
# ============================================================================

@main.command()
@click.argument("collection", type=click.Path(exists=True, dir_okay=False))
@click.option("--kind", "-k", type=KIND_CHOICE, help="Record kind (inferred from the file name if omitted)")
@click.option("--output", "-o", type=click.Path(), help="Write the validation report here (JSON)")
def validate(collection: str, kind: str | None, output: str | None) -> None:
    """Validate an existing JSON collection."""
    from rulebook_extractor.errors import ExtractionFailure
    from rulebook_extractor.pipeline.io import read_collection
    from rulebook_extractor.validation import validate_records, write_report

    path = Path(collection)
    content_kind = ContentKind(kind.lower()) if kind else _kind_from_filename(path)
    if content_kind is None:
        console.print(f"[red]Cannot infer record kind from '{path.name}'; pass --kind[/red]")
        return

    try:
        records = read_collection(path)
    except ExtractionFailure as exc:
        console.print(f"[red]{exc}[/red]")
        return

    stats = validate_records(records, content_kind)
    _print_stats({content_kind: stats})

    if output:
        write_report({content_kind: stats}, Path(output))
        console.print(f"\n[green]✓[/green] Report saved to {output}")


@main.command()
@click.argument("output_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--count", "-n", type=int, help="Records to validate per collection")
def sample(output_dir: str, count: int | None) -> None:
    """Validate the first N records of each collection in OUTPUT_DIR."""
    from rulebook_extractor.config import get_settings
    from rulebook_extractor.errors import ExtractionFailure
    from rulebook_extractor.pipeline.io import read_collection
    from rulebook_extractor.validation import validate_records, write_report

    directory = Path(output_dir)
    if count is None:
        count = get_settings().sample_size

    stats = {}
    for kind in ContentKind:
        path = directory / kind.output_filename
        if not path.exists():
            continue
        try:
            records = read_collection(path)
        except ExtractionFailure as exc:
            console.print(f"[red]{exc}[/red]")
            continue
        stats[kind] = validate_records(records[:count], kind)

    if not stats:
        console.print(f"[red]No extracted collections found in {directory}[/red]")
        return

    _print_stats(stats)
    report = write_report(stats, directory / "sample-validation.json")
    console.print(f"\n[green]✓[/green] Sample report saved to {report}")


def _print_stats(stats: dict) -> None:
    table = Table(title="Validation")
    table.add_column("Kind", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Valid", justify="right", style="green")
    table.add_column("Invalid", justify="right", style="red")
    table.add_column("Warnings", justify="right", style="yellow")
    table.add_column("Avg score", justify="right")

    for kind, kind_stats in stats.items():
        table.add_row(
            kind.collection,
            f"{kind_stats.total:,}",
            f"{kind_stats.valid:,}",
            f"{kind_stats.invalid:,}",
            f"{kind_stats.warnings:,}",
            f"{kind_stats.average_score:.0f}",
        )
    console.print(table)

    for kind, kind_stats in stats.items():
        invalid = [r for r in kind_stats.results if not r.valid][:10]
        if invalid:
            console.print(f"\n[bold]{kind.collection} - invalid entries:[/bold]")
            for result in invalid:
                console.print(f"  - {result.name} ({result.source}): {', '.join(result.errors)}")


# ============================================================================
# Estimate Commands
# ============================================================================

@main.group()
def estimate() -> None:
    """Cost and weight calculators."""
    pass


@estimate.command(name="cost")
@click.argument("raw", required=False)
@click.option("--name", help="Item name, used for the known-price table")
@click.option("--kind", default="other", help="Item kind (weapon, armor, tool, consumable, magic_item, other)")
@click.option("--rarity", help="Item rarity")
def estimate_cost_cmd(raw: str | None, name: str | None, kind: str, rarity: str | None) -> None:
    """Normalize a printed cost such as '2,500 gp' to gold pieces."""
    from rulebook_extractor.extract.items import normalize_rarity
    from rulebook_extractor.normalize import normalize_item_cost

    result = normalize_item_cost(name=name, kind=kind, rarity=normalize_rarity(rarity), cost=raw)
    breakdown = result.cost_breakdown

    console.print(f"[bold]Cost:[/bold] {result.cost_gp:g} gp")
    if breakdown is not None:
        console.print(
            f"  [dim]{breakdown.pp} pp, {breakdown.gp} gp, {breakdown.sp} sp, {breakdown.cp} cp[/dim]"
        )
    if result.estimated:
        console.print("[yellow]Estimated (no readable printed cost)[/yellow]")


@estimate.command(name="weight")
@click.argument("name")
@click.option("--kind", default="other", help="Item kind")
@click.option("--description", default="", help="Item description")
@click.option("--weight-lb", type=float, help="Printed weight in pounds")
def estimate_weight_cmd(name: str, kind: str, description: str, weight_lb: float | None) -> None:
    """Estimate weight in kg and volume category for an item."""
    from rulebook_extractor.normalize import process_item_weight_and_volume

    result = process_item_weight_and_volume(name=name, kind=kind, description=description, weight_lb=weight_lb)

    table = Table(title=name)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("weight_kg", "-" if result.weight_kg is None else f"{result.weight_kg:g}")
    table.add_row(
        "estimated_real_weight_kg",
        "-" if result.estimated_real_weight_kg is None else f"{result.estimated_real_weight_kg:g}",
    )
    table.add_row("volume_category", result.volume_category)
    table.add_row("confidence", str(result.confidence))
    console.print(table)


if __name__ == "__main__":
    main()
