"""
Report Orchestrator

Coordinates report generation:
- Full reprojection of every meeting in the decision database
- Commit and clear of the report session after each meeting
- Progress tracking and statistics
- Failure notification, Redis event emission and Prometheus metrics
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from report_sync.config import Settings, get_settings
from report_sync.metrics import MetricsCollector
from report_sync.notifications import (
    EventEmitter,
    FailureContext,
    FailureNotifier,
    build_notifier,
)
from report_sync.storage.repositories import ReportRepository, SourceRepository
from report_sync.sync.deletion import DeletionCascade
from report_sync.sync.organs import OrganProjector
from report_sync.sync.synchronizer import DecisionSynchronizer, MeetingSynchronizer
from report_sync.sync.transcoder import SubDecisionTranscoder

console = Console()
logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class GenerateResult:
    """Result of a report generation run."""

    success: bool = False
    meetings_total: int = 0
    meetings_synced: int = 0
    decisions_synced: int = 0
    failures: list[FailureContext] = field(default_factory=list)
    duration_seconds: float = 0.0


class ReportOrchestrator:
    """
    Orchestrates the projection of the decision database into the report.

    Features:
    - Full reprojection: every meeting is upserted by natural key, so
      re-running is idempotent
    - Bounded memory: the report session is committed and cleared per meeting
    - Error isolation: a failing decision is reported and skipped
    - Orphaned report rows are left alone; deletions go through
      ``delete_decision``
    """

    def __init__(
        self,
        source: SourceRepository,
        report: ReportRepository,
        settings: Settings | None = None,
        notifier: FailureNotifier | None = None,
        metrics: MetricsCollector | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.source = source
        self.report = report
        self.events = events
        self.metrics = metrics or MetricsCollector(enabled=self.settings.metrics_enabled)
        self.notifier = notifier or build_notifier(self.settings, events)

        organs = OrganProjector(report) if self.settings.project_organs else None
        self.transcoder = SubDecisionTranscoder(report, organs)
        self.decisions = DecisionSynchronizer(report, self.transcoder)
        self.meetings = MeetingSynchronizer(report, self.decisions, self.notifier, self.metrics)
        self.deletion = DeletionCascade(report, self.metrics)

    def generate(
        self,
        eager: bool = True,
        on_progress: ProgressCallback | None = None,
    ) -> GenerateResult:
        """
        Regenerate the report for every meeting.

        Commit errors are not isolated; they abort the run.

        Args:
            eager: Load the whole decision graph up front
            on_progress: Called with (processed, total) after each meeting
        """
        start_time = time.monotonic()
        result = GenerateResult()

        if self.events is not None:
            self.events.emit_run_started()

        meetings = self.source.find_all_meetings(eager=eager)
        result.meetings_total = len(meetings)
        logger.info("Generating report for %d meetings", result.meetings_total)

        for num, meeting in enumerate(meetings, start=1):
            meeting_result = self.meetings.synchronize(meeting)
            self.report.commit()
            self.report.clear()

            result.meetings_synced += 1
            result.decisions_synced += meeting_result.decisions_synced
            result.failures.extend(meeting_result.failures)

            if on_progress is not None:
                on_progress(num, result.meetings_total)

        # Nothing should be pending after the last meeting's commit
        self.report.commit()

        result.success = True
        result.duration_seconds = time.monotonic() - start_time

        self.metrics.record_run(result.duration_seconds)
        if self.settings.metrics_textfile:
            self.metrics.write_textfile(self.settings.metrics_textfile)

        if self.events is not None:
            self.events.emit_run_completed(
                meetings_synced=result.meetings_synced,
                decisions_synced=result.decisions_synced,
                failures_count=len(result.failures),
                duration_seconds=result.duration_seconds,
            )

        return result

    def generate_with_progress(self, eager: bool = True) -> GenerateResult:
        """Run ``generate`` behind a rich progress bar."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            disable=not console.is_terminal,
        ) as progress:
            task = progress.add_task("[cyan]Meetings...", total=None)

            def update(processed: int, total: int) -> None:
                progress.update(task, completed=processed, total=total)

            return self.generate(eager=eager, on_progress=update)

    def delete_decision(self, decision: Any) -> None:
        """Remove a decision from the report and commit."""
        self.deletion.delete_decision(decision)
        self.report.commit()

    def get_status(self) -> dict[str, Any]:
        return {"report_stats": self.report.count_rows()}

    def print_result(self, result: GenerateResult) -> None:
        """Print a generation result summary."""
        console.print("\n[bold]" + "=" * 60 + "[/bold]")
        console.print("[bold]Report Generation Result[/bold]")
        console.print("[bold]" + "=" * 60 + "[/bold]")

        status = "[green]SUCCESS[/green]" if result.success else "[red]FAILED[/red]"
        console.print(f"Status: {status}")
        console.print(f"Duration: {result.duration_seconds:.1f}s")

        console.print("\n[bold]Entities Synced:[/bold]")
        console.print(f"  Meetings:  {result.meetings_synced:,} / {result.meetings_total:,}")
        console.print(f"  Decisions: {result.decisions_synced:,}")

        if result.failures:
            console.print(f"\n[red]Failed decisions ({len(result.failures)}):[/red]")
            for failure in result.failures[:10]:
                console.print(
                    f"  - {failure.decision_key}: {failure.error_type}: {failure.message}"
                )
            if len(result.failures) > 10:
                console.print(f"  ... and {len(result.failures) - 10} more")
