"""
Report Sync - CLI Entry Point

Command-line interface for projecting the decision database into the report
database.

Usage:
    # Regenerate the report for every meeting
    report-sync generate

    # Remove one decision from the report
    report-sync delete-decision BV 12 3 1

    # Show report statistics
    report-sync status
"""

import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from report_sync.config import Settings, get_settings
from report_sync.enums import MeetingType
from report_sync.errors import StructuralError
from report_sync.keys import DecisionKey
from report_sync.metrics import MetricsCollector
from report_sync.notifications import EventEmitter
from report_sync.storage import (
    ReportRepository,
    SourceRepository,
    create_engine_from_url,
    create_session_factory,
    init_report_schema,
    verify_source_schema,
)
from report_sync.sync import ReportOrchestrator

app = typer.Typer(
    name="report-sync",
    help="Projection of the decision database into the report database",
    add_completion=False,
)
console = Console()
metrics = MetricsCollector()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def print_banner() -> None:
    """Print the application banner."""
    console.print(Panel.fit(
        "[bold blue]Report Sync[/bold blue]\n"
        "[dim]Decision database to report database projection[/dim]",
        border_style="blue",
    ))
    console.print()


def _redact(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


@contextmanager
def open_orchestrator(settings: Settings) -> Iterator[ReportOrchestrator]:
    """Open both stores and wire up an orchestrator."""
    source_engine = create_engine_from_url(settings.source_database_url)
    report_engine = create_engine_from_url(settings.report_database_url)

    with ExitStack() as stack:
        stack.callback(source_engine.dispose)
        stack.callback(report_engine.dispose)

        verify_source_schema(source_engine)
        source_session = stack.enter_context(create_session_factory(source_engine)())
        report_session = stack.enter_context(create_session_factory(report_engine)())
        events = None
        if settings.events_enabled:
            events = stack.enter_context(EventEmitter(settings))

        yield ReportOrchestrator(
            SourceRepository(source_session),
            ReportRepository(report_session),
            settings=settings,
            metrics=metrics,
            events=events,
        )


@app.command()
def generate(
    lazy: bool = typer.Option(
        False, "--lazy", help="Load decisions per meeting instead of all up front"
    ),
) -> None:
    """
    Regenerate the report database from the decision database.

    Every meeting is re-projected. Decisions that fail are skipped and
    reported; the rest of the corpus is still projected.
    """
    settings = get_settings()
    configure_logging(settings)
    print_banner()

    try:
        with open_orchestrator(settings) as orchestrator:
            result = orchestrator.generate_with_progress(eager=not lazy)
            orchestrator.print_result(result)
    except KeyboardInterrupt:
        console.print("\n[yellow]Generation interrupted by user[/yellow]")
        raise typer.Exit(130)
    except Exception as e:
        console.print(f"\n[red]Generation failed: {e}[/red]")
        raise typer.Exit(1)


@app.command("delete-decision")
def delete_decision(
    meeting_type: MeetingType = typer.Argument(..., help="Meeting type (BV, AV, VV, Virt)"),
    meeting_number: int = typer.Argument(..., help="Meeting number"),
    point: int = typer.Argument(..., help="Decision point"),
    number: int = typer.Argument(..., help="Decision number"),
) -> None:
    """
    Remove a decision and its derived organ data from the report database.

    Examples:

        report-sync delete-decision BV 12 3 1
    """
    settings = get_settings()
    configure_logging(settings)
    print_banner()

    key = DecisionKey(meeting_type, meeting_number, point, number)
    console.print(f"[blue]Deleting decision {key}...[/blue]")

    try:
        with open_orchestrator(settings) as orchestrator:
            orchestrator.delete_decision(key)
    except StructuralError as e:
        console.print(f"[red]Cannot delete decision: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Decision {key} removed from report[/green]")


@app.command()
def status() -> None:
    """
    Show report database statistics.

    Displays row counts for all report entity types.
    """
    settings = get_settings()
    print_banner()

    console.print("[bold]Configuration:[/bold]")
    console.print(f"  Decision database: {_redact(settings.source_database_url)}")
    console.print(f"  Report database: {_redact(settings.report_database_url)}")
    console.print(f"  Failure mail: {settings.email_transport}")
    console.print(f"  Events: {'enabled' if settings.events_enabled else 'disabled'}")
    console.print()

    try:
        with open_orchestrator(settings) as orchestrator:
            stats = orchestrator.get_status()["report_stats"]
    except Exception as e:
        console.print(f"[red]Could not connect to database: {e}[/red]")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Entity Type", style="cyan")
    table.add_column("Count", justify="right", style="green")

    for entity_type, count in stats.items():
        table.add_row(entity_type.replace("_", " ").title(), f"{count:,}")

    console.print(table)


@app.command("init-db")
def init_db() -> None:
    """
    Initialize the report database schema.

    Creates all report tables if they don't exist.
    """
    settings = get_settings()
    print_banner()
    console.print("[blue]Initializing report schema...[/blue]")

    engine = create_engine_from_url(settings.report_database_url)
    try:
        init_report_schema(engine)
    except Exception as e:
        console.print(f"[red]Failed to initialize report schema: {e}[/red]")
        raise typer.Exit(1)
    finally:
        engine.dispose()

    console.print("[green]Report schema initialized successfully![/green]")


@app.command("metrics")
def show_metrics() -> None:
    """
    Show metrics collected by this process.

    Mostly useful from an interactive session; scheduled runs export to the
    configured textfile instead.
    """
    print_banner()

    data = metrics.get_simple_metrics()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Runs", f"{data['runs_total']:,}")
    table.add_row("Meetings Synced", f"{data['meetings_synced_total']:,}")
    table.add_row("Decisions Synced", f"{data['decisions_synced_total']:,}")
    table.add_row("Decision Failures", f"{data['decision_failures_total']:,}")
    table.add_row("Decisions Deleted", f"{data['decisions_deleted_total']:,}")
    table.add_row("Last Run Duration", f"{data['last_run_duration_seconds']:.1f}s")

    console.print(table)


@app.callback()
def main() -> None:
    """
    Report Sync - projection of the decision database into the report database.

    Use 'report-sync COMMAND --help' for more information on a command.
    """
    pass


if __name__ == "__main__":
    app()
