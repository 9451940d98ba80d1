"""
Prometheus Metrics Module

Counters and gauges for report generation runs.

Metrics:
- Counters: meetings synced, decisions synced, decision failures, deletions
- Gauges: last run duration, last successful run

Usage:
    from report_sync.metrics import MetricsCollector

    metrics = MetricsCollector()
    metrics.record_decision_synced(meeting_type="BV")
    metrics.write_textfile("/var/lib/node_exporter/report_sync.prom")
"""

import time
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge, write_to_textfile


@dataclass
class SimpleMetrics:
    """In-memory totals, shown by the CLI without a Prometheus server."""

    meetings_synced: int = 0
    decisions_synced: int = 0
    decision_failures: dict[str, int] = field(default_factory=dict)
    decisions_deleted: int = 0
    runs: int = 0
    last_run_duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "meetings_synced_total": self.meetings_synced,
            "decisions_synced_total": self.decisions_synced,
            "decision_failures_total": sum(self.decision_failures.values()),
            "failures_by_error": self.decision_failures,
            "decisions_deleted_total": self.decisions_deleted,
            "runs_total": self.runs,
            "last_run_duration_seconds": self.last_run_duration,
        }


class MetricsCollector:
    """
    Prometheus metrics collector for report generation.

    Uses a private registry so several collectors (e.g. in tests) never clash.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.simple = SimpleMetrics()
        self.registry = CollectorRegistry()

        self.meetings_synced_total = Counter(
            "report_sync_meetings_synced_total",
            "Meetings projected into the report database",
            registry=self.registry,
        )
        self.decisions_synced_total = Counter(
            "report_sync_decisions_synced_total",
            "Decisions projected into the report database",
            ["meeting_type"],
            registry=self.registry,
        )
        self.decision_failures_total = Counter(
            "report_sync_decision_failures_total",
            "Decisions that failed to synchronize",
            ["meeting_type", "error"],
            registry=self.registry,
        )
        self.decisions_deleted_total = Counter(
            "report_sync_decisions_deleted_total",
            "Decisions removed from the report database",
            registry=self.registry,
        )
        self.last_run_duration = Gauge(
            "report_sync_last_run_duration_seconds",
            "Duration of the last report generation run",
            registry=self.registry,
        )
        self.last_success = Gauge(
            "report_sync_last_success_timestamp_seconds",
            "Unix time of the last completed report generation run",
            registry=self.registry,
        )

    def record_meeting_synced(self) -> None:
        if not self.enabled:
            return
        self.simple.meetings_synced += 1
        self.meetings_synced_total.inc()

    def record_decision_synced(self, meeting_type: str) -> None:
        if not self.enabled:
            return
        self.simple.decisions_synced += 1
        self.decisions_synced_total.labels(meeting_type=meeting_type).inc()

    def record_decision_failed(self, meeting_type: str, error: str) -> None:
        if not self.enabled:
            return
        self.simple.decision_failures[error] = self.simple.decision_failures.get(error, 0) + 1
        self.decision_failures_total.labels(meeting_type=meeting_type, error=error).inc()

    def record_decision_deleted(self) -> None:
        if not self.enabled:
            return
        self.simple.decisions_deleted += 1
        self.decisions_deleted_total.inc()

    def record_run(self, duration: float) -> None:
        if not self.enabled:
            return
        self.simple.runs += 1
        self.simple.last_run_duration = duration
        self.last_run_duration.set(duration)
        self.last_success.set(time.time())

    def write_textfile(self, path: str) -> None:
        """Export the registry for the node_exporter textfile collector."""
        if self.enabled:
            write_to_textfile(path, self.registry)

    def get_simple_metrics(self) -> dict[str, Any]:
        return self.simple.to_dict()
