"""
Meeting and Decision Synchronizers

A decision is the unit of atomic projection: any failing sub-decision aborts
the whole decision. A meeting is the unit of fault isolation: a failing
decision is rolled back, reported and skipped, and the meeting carries on.
"""

import logging
from dataclasses import dataclass, field

from report_sync.errors import DecisionWithoutMeetingError
from report_sync.keys import DecisionKey, MeetingKey
from report_sync.metrics import MetricsCollector
from report_sync.notifications import FailureContext, FailureNotifier
from report_sync.storage.report_models import ReportDecision, ReportMeeting
from report_sync.storage.repositories import ReportRepository
from report_sync.storage.source_models import Decision, Meeting
from report_sync.sync.transcoder import SubDecisionTranscoder

logger = logging.getLogger(__name__)


@dataclass
class MeetingResult:
    """Outcome of synchronizing one meeting."""

    key: MeetingKey
    decisions_synced: int = 0
    failures: list[FailureContext] = field(default_factory=list)


class DecisionSynchronizer:
    """Upserts a report decision together with all of its sub-decisions."""

    def __init__(
        self,
        repository: ReportRepository,
        transcoder: SubDecisionTranscoder,
    ) -> None:
        self.repository = repository
        self.transcoder = transcoder

    def synchronize(
        self,
        decision: Decision,
        report_meeting: ReportMeeting | None = None,
    ) -> ReportDecision:
        """
        Insert or update the report copy of a decision.

        Args:
            decision: Source decision
            report_meeting: Report meeting the decision belongs to. Looked up
                by key when omitted.

        Raises:
            DecisionWithoutMeetingError: The report meeting does not exist.
        """
        key = DecisionKey.of(decision)

        if report_meeting is None:
            report_meeting = self.repository.find_meeting(key.meeting)
            if report_meeting is None:
                raise DecisionWithoutMeetingError(key)

        report_decision = self.repository.find_decision(key)
        if report_decision is None:
            report_decision = ReportDecision(point=decision.point, number=decision.number)
            report_meeting.add_decision(report_decision)

        report_decision.point = decision.point
        report_decision.number = decision.number
        self.repository.upsert(report_decision)

        content = [
            self.transcoder.transcode(subdecision, report_decision).content
            for subdecision in decision.subdecisions
        ]
        report_decision.content = " ".join(content)

        return report_decision


class MeetingSynchronizer:
    """Upserts a report meeting and isolates failures per decision."""

    def __init__(
        self,
        repository: ReportRepository,
        decisions: DecisionSynchronizer,
        notifier: FailureNotifier,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.repository = repository
        self.decisions = decisions
        self.notifier = notifier
        self.metrics = metrics or MetricsCollector(enabled=False)

    def synchronize(self, meeting: Meeting) -> MeetingResult:
        key = MeetingKey.of(meeting)
        result = MeetingResult(key=key)

        report_meeting = self.repository.find_meeting(key)
        if report_meeting is None:
            report_meeting = ReportMeeting()

        report_meeting.type = meeting.type
        report_meeting.number = meeting.number
        report_meeting.date = meeting.date
        self.repository.upsert(report_meeting)

        for decision in meeting.decisions:
            try:
                with self.repository.savepoint():
                    self.decisions.synchronize(decision, report_meeting)
            except Exception as e:
                context = FailureContext.capture(e, decision)
                logger.warning(
                    "Skipping decision %s: %s: %s",
                    context.decision_key,
                    context.error_type,
                    context.message,
                )
                try:
                    self.notifier.notify(e, context)
                except Exception as notify_error:
                    logger.warning(
                        "Failure notifier raised for decision %s: %s",
                        context.decision_key,
                        notify_error,
                    )
                self.metrics.record_decision_failed(key.type.value, context.error_type)
                result.failures.append(context)
                continue

            result.decisions_synced += 1
            self.metrics.record_decision_synced(key.type.value)

        self.metrics.record_meeting_synced()
        return result
