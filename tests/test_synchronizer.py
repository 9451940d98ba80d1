"""Tests for the decision and meeting synchronizers."""

import datetime
import logging

import pytest

from report_sync.errors import DanglingReferenceError, DecisionWithoutMeetingError
from report_sync.keys import DecisionKey, MeetingKey, SubDecisionKey
from report_sync.metrics import MetricsCollector
from report_sync.notifications import FailureContext
from report_sync.storage import ReportRepository
from report_sync.storage.source_models import Discharge, Meeting, Other
from report_sync.sync import (
    DecisionSynchronizer,
    MeetingSynchronizer,
    OrganProjector,
    SubDecisionTranscoder,
)

from .conftest import RecordingNotifier, SourceGraph


class RaisingNotifier:
    """Failure notifier whose transport is down."""

    def notify(self, error: BaseException, context: FailureContext) -> None:
        raise RuntimeError("SMTP server unreachable")


@pytest.fixture
def decisions(report: ReportRepository) -> DecisionSynchronizer:
    return DecisionSynchronizer(report, SubDecisionTranscoder(report, OrganProjector(report)))


@pytest.fixture
def meetings(
    report: ReportRepository,
    decisions: DecisionSynchronizer,
    notifier: RecordingNotifier,
    metrics: MetricsCollector,
) -> MeetingSynchronizer:
    return MeetingSynchronizer(report, decisions, notifier, metrics)


def meeting_with_failing_middle_decision(graph: SourceGraph) -> Meeting:
    """
    A meeting of three decisions where the second discharges an installation
    from a later meeting that has not been synchronized.
    """
    member = graph.member(8000, "Jan", "Jansen")

    later = graph.meeting(2, datetime.date(2024, 3, 1))
    founding = graph.decision(later, 1)
    foundation = graph.foundation(founding, 1)
    installation = graph.installation(founding, 2, foundation, member)

    meeting = graph.meeting(1, datetime.date(2024, 1, 10))
    first = graph.decision(meeting, 1)
    graph.sub(first, 1, Other(content="Opening."))
    second = graph.decision(meeting, 2)
    graph.sub(second, 1, Other(content="Before the discharge."))
    graph.sub(second, 2, Discharge(installation=installation))
    third = graph.decision(meeting, 3)
    graph.sub(third, 1, Other(content="Closing."))
    graph.commit()
    return meeting


class TestDecisionSynchronizer:
    """Tests for DecisionSynchronizer."""

    def test_content_joined(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        decisions: DecisionSynchronizer,
        meetings: MeetingSynchronizer,
    ) -> None:
        """Test decision content is the sub-decision contents joined by a space."""
        meeting = graph.meeting(1, datetime.date(2024, 1, 10))
        decision = graph.decision(meeting, 1)
        graph.sub(decision, 1, Other(content="First."))
        graph.sub(decision, 2, Other(content="Second."))
        graph.commit()

        meetings.synchronize(meeting)

        report_decision = report.find_decision(DecisionKey.of(decision))
        assert report_decision is not None
        assert report_decision.content == "First. Second."
        assert [sub.number for sub in report_decision.subdecisions] == [1, 2]

    def test_empty_decision(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        meetings: MeetingSynchronizer,
    ) -> None:
        """Test a decision without sub-decisions gets empty content."""
        meeting = graph.meeting(1, datetime.date(2024, 1, 10))
        decision = graph.decision(meeting, 1)
        graph.commit()

        meetings.synchronize(meeting)

        report_decision = report.find_decision(DecisionKey.of(decision))
        assert report_decision.content == ""

    def test_meeting_missing(
        self,
        graph: SourceGraph,
        decisions: DecisionSynchronizer,
    ) -> None:
        """Test a decision cannot be synchronized before its meeting."""
        meeting = graph.meeting(1, datetime.date(2024, 1, 10))
        decision = graph.decision(meeting, 1)
        graph.commit()

        with pytest.raises(DecisionWithoutMeetingError):
            decisions.synchronize(decision)

    def test_resync_replaces_content(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        meetings: MeetingSynchronizer,
    ) -> None:
        """Test synchronizing again replaces the content instead of appending."""
        meeting = graph.meeting(1, datetime.date(2024, 1, 10))
        decision = graph.decision(meeting, 1)
        other = graph.sub(decision, 1, Other(content="Old."))
        graph.commit()

        meetings.synchronize(meeting)
        other.content = "New."
        meetings.synchronize(meeting)

        report_decision = report.find_decision(DecisionKey.of(decision))
        assert report_decision.content == "New."
        assert report.count_rows()["decisions"] == 1
        assert report.count_rows()["subdecisions"] == 1


class TestMeetingSynchronizer:
    """Tests for per-decision fault isolation."""

    def test_failing_decision_skipped(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        meetings: MeetingSynchronizer,
        notifier: RecordingNotifier,
    ) -> None:
        """Test decisions around a failing one are still synchronized."""
        meeting = meeting_with_failing_middle_decision(graph)

        result = meetings.synchronize(meeting)
        report.commit()

        assert result.key == MeetingKey.of(meeting)
        assert result.decisions_synced == 2
        assert len(result.failures) == 1

        key = MeetingKey.of(meeting)
        assert report.find_meeting(key) is not None
        assert report.find_decision(DecisionKey(key.type, key.number, 1, 1)) is not None
        assert report.find_decision(DecisionKey(key.type, key.number, 2, 1)) is None
        assert report.find_decision(DecisionKey(key.type, key.number, 3, 1)) is not None

    def test_failing_decision_leaves_nothing_behind(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        meetings: MeetingSynchronizer,
    ) -> None:
        """Test sub-decisions before the failing one are rolled back too."""
        meeting = meeting_with_failing_middle_decision(graph)

        meetings.synchronize(meeting)
        report.commit()

        key = MeetingKey.of(meeting)
        assert report.find_subdecision(SubDecisionKey(key.type, key.number, 2, 1, 1)) is None
        assert report.count_rows()["subdecisions"] == 2

    def test_failure_notified_once(
        self,
        graph: SourceGraph,
        meetings: MeetingSynchronizer,
        notifier: RecordingNotifier,
    ) -> None:
        """Test the notifier receives the failing decision's identity."""
        meeting = meeting_with_failing_middle_decision(graph)

        meetings.synchronize(meeting)

        assert len(notifier.calls) == 1
        error, context = notifier.calls[0]
        assert isinstance(error, DanglingReferenceError)
        assert context.meeting_type == meeting.type
        assert context.meeting_number == 1
        assert context.decision_point == 2
        assert context.decision_number == 1
        assert context.error_type == "DanglingReferenceError"
        assert "DanglingReferenceError" in context.traceback

    def test_metrics_recorded(
        self,
        graph: SourceGraph,
        meetings: MeetingSynchronizer,
        metrics: MetricsCollector,
    ) -> None:
        """Test synced and failed decisions are counted."""
        meeting = meeting_with_failing_middle_decision(graph)

        meetings.synchronize(meeting)

        simple = metrics.get_simple_metrics()
        assert simple["decisions_synced_total"] == 2
        assert simple["failures_by_error"] == {"DanglingReferenceError": 1}
        assert simple["meetings_synced_total"] == 1

    def test_staged_changes_of_failure_dropped(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        meetings: MeetingSynchronizer,
    ) -> None:
        """Test the staged log holds nothing from the failed decision."""
        meeting = meeting_with_failing_middle_decision(graph)

        meetings.synchronize(meeting)

        point_two = [
            change for change in report.staged
            if getattr(change.entity, "decision_point", None) == 2
            or getattr(change.entity, "point", None) == 2
        ]
        assert point_two == []

    def test_raising_notifier_does_not_stop_meeting(
        self,
        graph: SourceGraph,
        report: ReportRepository,
        decisions: DecisionSynchronizer,
        metrics: MetricsCollector,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a notifier error is logged and the remaining decisions still sync."""
        meeting = meeting_with_failing_middle_decision(graph)
        meetings = MeetingSynchronizer(report, decisions, RaisingNotifier(), metrics)

        with caplog.at_level(logging.WARNING, logger="report_sync.sync.synchronizer"):
            result = meetings.synchronize(meeting)
        report.commit()

        assert result.decisions_synced == 2
        assert len(result.failures) == 1
        key = MeetingKey.of(meeting)
        assert report.find_decision(DecisionKey(key.type, key.number, 3, 1)) is not None
        assert "Failure notifier raised" in caplog.text
        assert "SMTP server unreachable" in caplog.text
