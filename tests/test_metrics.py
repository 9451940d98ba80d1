"""Tests for the metrics collector."""

from pathlib import Path

from report_sync.metrics import MetricsCollector


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_counters(self) -> None:
        """Test recorded events show up in the registry and the totals."""
        metrics = MetricsCollector()
        metrics.record_decision_synced("BV")
        metrics.record_decision_synced("BV")
        metrics.record_decision_failed("AV", "DanglingReferenceError")
        metrics.record_meeting_synced()

        assert metrics.registry.get_sample_value(
            "report_sync_decisions_synced_total", {"meeting_type": "BV"}
        ) == 2.0
        assert metrics.registry.get_sample_value(
            "report_sync_decision_failures_total",
            {"meeting_type": "AV", "error": "DanglingReferenceError"},
        ) == 1.0

        simple = metrics.get_simple_metrics()
        assert simple["decisions_synced_total"] == 2
        assert simple["decision_failures_total"] == 1
        assert simple["meetings_synced_total"] == 1

    def test_disabled(self) -> None:
        """Test a disabled collector records nothing."""
        metrics = MetricsCollector(enabled=False)
        metrics.record_decision_synced("BV")
        metrics.record_run(1.5)

        assert metrics.get_simple_metrics()["decisions_synced_total"] == 0
        assert metrics.get_simple_metrics()["runs_total"] == 0

    def test_collectors_are_independent(self) -> None:
        """Test two collectors do not share a registry."""
        first = MetricsCollector()
        second = MetricsCollector()
        first.record_decision_deleted()

        assert second.registry.get_sample_value("report_sync_decisions_deleted_total") == 0.0

    def test_write_textfile(self, tmp_path: Path) -> None:
        """Test the textfile export contains the run gauge."""
        metrics = MetricsCollector()
        metrics.record_run(2.0)
        path = tmp_path / "report_sync.prom"

        metrics.write_textfile(str(path))

        assert "report_sync_last_run_duration_seconds 2.0" in path.read_text()
