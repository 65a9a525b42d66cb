"""
CLI Main - Typer command-line interface.
========================================

Commands:
- index: Index every institution and store the results
- institutions: List registered institutions
- courses: List indexed courses in a subject
- equivalencies: Show how one course transfers
- institution: Show what one institution grants for some courses
- info: Show system information
- clear-cache: Delete cached raw payloads
"""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from novaxfer.shared.logging import get_console, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="novaxfer",
    help="""NovaXfer - Community-college transfer equivalency indexer

Downloads the transfer equivalency tables four-year institutions publish
(HTML pages and PDF guides), turns them into one course-by-course schema,
and stores them in a local SQLite database for querying.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

QUICK START:

  novaxfer index                          # Index every institution
  novaxfer courses MTH                    # Indexed MTH courses
  novaxfer equivalencies MTH 263          # Where MTH 263 transfers
  novaxfer institution UVA "MTH 263"      # What UVA grants for MTH 263

Use 'novaxfer <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Configure logging from settings before any command runs."""
    from novaxfer.shared.config import get_settings
    from novaxfer.shared.logging import setup_logging

    settings = get_settings()
    setup_logging(
        level="DEBUG" if verbose else settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


def _resolve_store_path(store_path: Optional[Path]) -> Path:
    from novaxfer.shared.config import get_settings

    return store_path or get_settings().get_effective_store_path()


def _open_existing_store(store_path: Optional[Path]):
    """Open the store for a query command, exiting if nothing was indexed yet."""
    from novaxfer.storage.store import EquivalencyStore

    path = _resolve_store_path(store_path)
    if not path.exists():
        console.print(f"[red]Store not found: {path}[/red]")
        console.print("Run 'novaxfer index' first.")
        raise typer.Exit(1)
    return EquivalencyStore(path)


def _format_courses(courses) -> str:
    return ", ".join(str(course) for course in courses) or "-"


# ─────────────────────────────────────────────────────────────────────────────
# Index Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def index(
    institution: Optional[str] = typer.Option(
        None,
        "--institution", "-i",
        help="Institution acronym to index (e.g. UVA). Omit for all institutions.",
    ),
    store_path: Optional[Path] = typer.Option(
        None,
        "--store", "-s",
        help="SQLite store path. Default: from config/settings.yaml or NOVAXFER_STORE.",
    ),
    store: bool = typer.Option(
        True,
        "--store-results/--no-store",
        help="Write equivalencies to the store, or only report on them.",
    ),
    report_file: Optional[Path] = typer.Option(
        None,
        "--report", "-r",
        help="Save the full index report as JSON.",
    ),
):
    """
    Index transfer equivalencies from every registered institution.

    Each institution is indexed independently; one failing doesn't stop
    the others. Exits with status 1 if any institution failed.

    Examples:
        novaxfer index                 # Index and store everything
        novaxfer index -i UVA          # Only the University of Virginia
        novaxfer index --no-store -r report.json
    """
    from novaxfer.indexers.aggregator import index_all, index_institutions
    from novaxfer.indexers.registry import find_indexers, get_indexer
    from novaxfer.shared.errors import StoreError
    from novaxfer.shared.utils import save_json
    from novaxfer.storage.store import EquivalencyStore

    if institution:
        indexer = get_indexer(institution)
        if indexer is None:
            console.print(f"[red]No indexer for institution '{institution}'[/red]")
            raise typer.Exit(1)
        indexers = [indexer]
    else:
        indexers = find_indexers()

    path = _resolve_store_path(store_path)
    console.print(Panel(
        f"[bold]Indexing Configuration[/bold]\n"
        f"Institutions: {', '.join(i.acronym for i in indexers)}\n"
        f"Store: {path if store else 'disabled'}",
        title="Index",
    ))

    try:
        if store:
            with EquivalencyStore(path) as equivalency_store:
                # A partial run must not wipe other institutions' courses
                report = index_institutions(
                    equivalency_store, indexers, reset=institution is None
                )
        else:
            report = index_all(indexers)
    except StoreError as e:
        logger.error(f"Indexing aborted by store error: {e}")
        raise typer.Exit(1)

    table = Table(title="Index Report")
    table.add_column("Institution", style="cyan")
    table.add_column("Equivalencies", justify="right")
    table.add_column("Unparsed", justify="right")
    table.add_column("Parsed", justify="right")
    table.add_column("Status")

    for context in report.contexts:
        table.add_row(
            context.institution.acronym,
            str(len(context.equivalencies)),
            str(context.unparsed_count),
            f"{context.parse_success_rate:.1%}",
            "[green]ok[/green]",
        )
    for failure in report.failures:
        table.add_row(
            failure.institution.acronym,
            "-",
            "-",
            "-",
            f"[red]{failure.error_type}[/red]",
        )

    console.print(table)
    console.print(
        f"\n[bold]{report.courses_indexed}[/bold] equivalencies from "
        f"{report.institutions_indexed} institutions, "
        f"{report.weighted_success_rate:.1%} of rows parsed"
    )

    for failure in report.failures:
        console.print(f"[red]✗ {failure.institution.acronym}: {escape(failure.message)}[/red]")

    if report_file:
        save_json(report_file, report.model_dump(mode="json"))
        console.print(f"\n[green]✓ Report saved to {report_file}[/green]")

    if not report.succeeded:
        raise typer.Exit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Query Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def institutions():
    """List the institutions NovaXfer can index."""
    from novaxfer.indexers.registry import find_indexers

    table = Table(title="Registered Institutions")
    table.add_column("Acronym", style="cyan")
    table.add_column("Name")
    table.add_column("Source")

    for indexer in find_indexers():
        table.add_row(
            indexer.acronym,
            indexer.institution.full_name,
            indexer.prepare_request().url,
        )

    console.print(table)


@app.command()
def courses(
    subject: str = typer.Argument(..., help="Community-college subject, e.g. MTH"),
    store_path: Optional[Path] = typer.Option(None, "--store", "-s", help="SQLite store path."),
):
    """List indexed community-college courses in a subject."""
    with _open_existing_store(store_path) as store:
        found = store.query_by_subject(subject)

    if not found:
        console.print(f"[yellow]No indexed courses in {subject.upper()}[/yellow]")
        return

    console.print(f"[bold]{subject.upper()}[/bold]: {', '.join(c.number for c in found)}")


@app.command()
def equivalencies(
    subject: str = typer.Argument(..., help="Community-college subject, e.g. MTH"),
    number: str = typer.Argument(..., help="Course number, e.g. 263"),
    institution: Optional[list[str]] = typer.Option(
        None,
        "--institution", "-i",
        help="Only show these institutions. May be repeated.",
    ),
    store_path: Optional[Path] = typer.Option(None, "--store", "-s", help="SQLite store path."),
):
    """
    Show where a community-college course transfers.

    Examples:
        novaxfer equivalencies MTH 263
        novaxfer equivalencies MTH 263 -i UVA -i CNU
    """
    with _open_existing_store(store_path) as store:
        document = store.query_equivalencies_for_course(subject, number, institution or None)

    title = f"{document.subject} {document.number}"
    if not document.equivalencies:
        console.print(f"[yellow]No equivalencies for {title}[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Institution", style="cyan")
    table.add_column("Requires")
    table.add_column("Grants")
    table.add_column("Type")

    for entry in document.equivalencies:
        table.add_row(
            entry.institution or "-",
            _format_courses(entry.input),
            _format_courses(entry.output),
            entry.type.value,
        )

    console.print(table)


@app.command("institution")
def institution_courses(
    acronym: str = typer.Argument(..., help="Institution acronym, e.g. UVA"),
    course_list: list[str] = typer.Argument(..., help="Courses such as 'MTH 263' or MTH263"),
    store_path: Optional[Path] = typer.Option(None, "--store", "-s", help="SQLite store path."),
):
    """
    Show what one institution grants for a list of courses.

    Example:
        novaxfer institution UVA "MTH 263" ENG111
    """
    from novaxfer.parsing.courses import separate_course_parts
    from novaxfer.shared.schemas import CourseKey

    keys: list[CourseKey] = []
    for raw in course_list:
        parts = separate_course_parts(raw.strip().upper())
        if len(parts) != 2:
            console.print(f"[red]Not a course: '{raw}'[/red]")
            raise typer.Exit(1)
        keys.append(CourseKey(subject=parts[0], number=parts[1]))

    with _open_existing_store(store_path) as store:
        document = store.query_equivalencies_for_institution(acronym, keys)

    table = Table(title=document.institution)
    table.add_column("Course", style="cyan")
    table.add_column("Grants")
    table.add_column("Type")

    for course in document.courses:
        for entry in course.equivalencies:
            table.add_row(
                _format_courses(entry.input),
                _format_courses(entry.output),
                entry.type.value,
            )

    found = {(course.subject, course.number) for course in document.courses}
    for key in keys:
        if (key.subject, key.number) not in found:
            table.add_row(f"{key.subject} {key.number}", "[dim]not indexed[/dim]", "-")

    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """
    Show system information and configuration.

    Displays the version, registered institutions, data paths and the
    contents of the store.
    """
    from novaxfer import __version__
    from novaxfer.indexers.registry import list_institutions
    from novaxfer.shared.config import get_settings
    from novaxfer.storage.store import EquivalencyStore

    settings = get_settings()
    store_path = settings.get_effective_store_path()

    console.print(Panel(
        f"[bold]NovaXfer[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: config/settings.yaml\n"
        f"Workers: {settings.get_effective_max_workers()}\n"
        f"Log level: {settings.get_effective_log_level()}",
        title="Info",
    ))

    console.print("\n[bold]Institutions:[/bold]")
    table = Table()
    table.add_column("Acronym")
    table.add_column("Name")
    for inst in list_institutions():
        table.add_row(inst.acronym, inst.full_name)
    console.print(table)

    console.print("\n[bold]Data Paths:[/bold]")
    resolved_paths = settings.resolved_paths
    path_dict = {
        "data_dir": resolved_paths.data_dir,
        "raw_dir": resolved_paths.raw_dir,
        "reports_dir": resolved_paths.reports_dir,
        "store": store_path,
    }
    for name, path in path_dict.items():
        exists = "✓" if path.exists() else "✗"
        console.print(f"  {name}: {path} [{exists}]")

    if store_path.exists():
        with EquivalencyStore(store_path) as store:
            console.print(
                f"\n[bold]Store:[/bold] {store.count_courses()} courses, "
                f"{store.count_equivalencies()} equivalencies"
            )


@app.command("clear-cache")
def clear_cache(
    cache_dir: Optional[Path] = typer.Option(
        None, "--cache-dir", help="Raw payload cache (default: paths.raw_dir)."
    ),
):
    """Delete cached raw payloads so the next index run downloads fresh copies."""
    from novaxfer.ingestion.fetcher import Fetcher

    with Fetcher(cache_dir=cache_dir, cache_enabled=False) as fetcher:
        removed = fetcher.clear_cache()

    console.print(f"[green]✓[/green] Removed {removed} cached payloads from {fetcher.cache_dir}")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
