"""
Pytest configuration and fixtures.

Both stores run on in-memory SQLite. ``SourceGraph`` builds decision graphs in
the source store and seeds the report member projection.
"""

import datetime
from collections.abc import Iterator

import pytest
from sqlalchemy.orm import Session

from report_sync.config import Settings
from report_sync.enums import MeetingType, OrganType
from report_sync.metrics import MetricsCollector
from report_sync.notifications import FailureContext
from report_sync.storage import (
    ReportBase,
    ReportRepository,
    SourceBase,
    SourceRepository,
    create_engine_from_url,
    create_session_factory,
)
from report_sync.storage.report_models import ReportMember
from report_sync.storage.source_models import (
    Decision,
    Foundation,
    Installation,
    Meeting,
    Member,
    SubDecision,
)
from report_sync.sync import ReportOrchestrator


class RecordingNotifier:
    """Failure notifier that remembers every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[BaseException, FailureContext]] = []

    def notify(self, error: BaseException, context: FailureContext) -> None:
        self.calls.append((error, context))


class SourceGraph:
    """Builder for decision graphs in the source store."""

    def __init__(self, session: Session, report_session: Session) -> None:
        self.session = session
        self.report_session = report_session

    def member(self, lidnr: int, first_name: str, last_name: str, middle_name: str = "") -> Member:
        """Create a member on both sides; the report side is a plain projection."""
        member = Member(
            lidnr=lidnr, first_name=first_name, middle_name=middle_name, last_name=last_name
        )
        self.session.add(member)
        self.report_session.add(ReportMember(
            lidnr=lidnr, first_name=first_name, middle_name=middle_name, last_name=last_name
        ))
        self.report_session.commit()
        return member

    def source_only_member(self, lidnr: int, first_name: str, last_name: str) -> Member:
        member = Member(lidnr=lidnr, first_name=first_name, last_name=last_name)
        self.session.add(member)
        return member

    def meeting(
        self,
        number: int,
        date: datetime.date,
        meeting_type: MeetingType = MeetingType.BV,
    ) -> Meeting:
        meeting = Meeting(type=meeting_type, number=number, date=date)
        self.session.add(meeting)
        return meeting

    def decision(self, meeting: Meeting, point: int, number: int = 1) -> Decision:
        return meeting.add_decision(point, number)

    def sub(self, decision: Decision, number: int, subdecision: SubDecision) -> SubDecision:
        subdecision.number = number
        return decision.add_subdecision(subdecision)

    def foundation(self, decision: Decision, number: int, abbr: str = "ACD") -> Foundation:
        return self.sub(decision, number, Foundation(
            name="Activiteiten Commissie Dinsdag",
            abbr=abbr,
            organ_type=OrganType.COMMITTEE,
        ))

    def installation(
        self,
        decision: Decision,
        number: int,
        foundation: Foundation,
        member: Member,
        function: str = "Voorzitter",
    ) -> Installation:
        return self.sub(decision, number, Installation(
            foundation=foundation, member=member, function=function
        ))

    def commit(self) -> None:
        """Write the graph and detach it, so later loads go to the database."""
        self.session.commit()
        self.session.expunge_all()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        source_database_url="sqlite://",
        report_database_url="sqlite://",
        email_transport="none",
        events_enabled=False,
        metrics_enabled=True,
        metrics_textfile=None,
        project_organs=True,
    )


@pytest.fixture
def source_session() -> Iterator[Session]:
    engine = create_engine_from_url("sqlite://")
    SourceBase.metadata.create_all(engine)
    with create_session_factory(engine)() as session:
        yield session
    engine.dispose()


@pytest.fixture
def report_session() -> Iterator[Session]:
    engine = create_engine_from_url("sqlite://")
    ReportBase.metadata.create_all(engine)
    with create_session_factory(engine)() as session:
        yield session
    engine.dispose()


@pytest.fixture
def source(source_session: Session) -> SourceRepository:
    return SourceRepository(source_session)


@pytest.fixture
def report(report_session: Session) -> ReportRepository:
    return ReportRepository(report_session)


@pytest.fixture
def graph(source_session: Session, report_session: Session) -> SourceGraph:
    return SourceGraph(source_session, report_session)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def orchestrator(
    source: SourceRepository,
    report: ReportRepository,
    settings: Settings,
    notifier: RecordingNotifier,
    metrics: MetricsCollector,
) -> ReportOrchestrator:
    return ReportOrchestrator(
        source,
        report,
        settings=settings,
        notifier=notifier,
        metrics=metrics,
    )
