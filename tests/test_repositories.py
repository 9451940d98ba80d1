"""Tests for the source and report repositories."""

import datetime

import pytest
from sqlalchemy import inspect

from report_sync.enums import MeetingType, SubDecisionType
from report_sync.keys import SubDecisionKey
from report_sync.storage import ReportRepository, SourceRepository
from report_sync.storage.report_models import (
    ReportBoardRelease,
    ReportDecision,
    ReportMeeting,
    ReportOther,
    ReportReckoning,
    ReportSubDecision,
)
from report_sync.storage.source_models import Budget, Foundation, Installation, Other

from .conftest import SourceGraph


class TestSourceRepository:
    """Tests for reading the decision graph back from the database."""

    def test_graph_persisted(
        self,
        graph: SourceGraph,
        source: SourceRepository,
    ) -> None:
        """Test decisions and sub-decisions attached to a meeting are written with it."""
        member = graph.member(8000, "Jan", "Jansen")
        meeting = graph.meeting(1, datetime.date(2024, 1, 10))
        decision = graph.decision(meeting, 1)
        foundation = graph.foundation(decision, 1)
        graph.installation(decision, 2, foundation, member)
        closing = graph.decision(meeting, 2)
        graph.sub(closing, 1, Other(content="Closing."))
        graph.commit()

        meetings = source.find_all_meetings()

        assert len(meetings) == 1
        loaded = meetings[0]
        assert loaded is not meeting
        assert [(d.point, d.number) for d in loaded.decisions] == [(1, 1), (2, 1)]
        subdecisions = loaded.decisions[0].subdecisions
        assert [type(s) for s in subdecisions] == [Foundation, Installation]
        assert subdecisions[1].foundation is subdecisions[0]
        assert loaded.decisions[1].subdecisions[0].content == "Closing."

    @pytest.mark.parametrize("eager", [True, False])
    def test_members_loaded_with_subdecisions(
        self,
        graph: SourceGraph,
        source: SourceRepository,
        eager: bool,
    ) -> None:
        """Test installation members and budget authors arrive with their sub-decisions."""
        member = graph.member(8000, "Jan", "Jansen")
        author = graph.member(8001, "Piet", "Pietersen")
        meeting = graph.meeting(1, datetime.date(2024, 1, 10))
        decision = graph.decision(meeting, 1)
        foundation = graph.foundation(decision, 1)
        graph.installation(decision, 2, foundation, member)
        graph.sub(decision, 3, Budget(
            name="Begroting 2024",
            version="1.0",
            approval=True,
            changes=False,
            author=author,
        ))
        graph.commit()

        loaded = source.find_all_meetings(eager=eager)[0]
        _, installation, budget = loaded.decisions[0].subdecisions

        assert "member" not in inspect(installation).unloaded
        assert "author" not in inspect(budget).unloaded
        assert installation.member.lidnr == 8000
        assert budget.author.lidnr == 8001


class TestReportRepository:
    """Tests for staging report rows."""

    def test_attached_rows_written_with_meeting(
        self,
        report: ReportRepository,
    ) -> None:
        """Test a decision and sub-decision added through the meeting are committed."""
        meeting = ReportMeeting(type=MeetingType.BV, number=1, date=datetime.date(2024, 1, 10))
        decision = meeting.add_decision(ReportDecision(point=1, number=1))
        decision.add_subdecision(ReportOther(number=1, content="Text."))

        report.upsert(meeting)
        report.commit()
        report.clear()

        counts = report.count_rows()
        assert counts["decisions"] == 1
        assert counts["subdecisions"] == 1
        found = report.find_subdecision(SubDecisionKey(MeetingType.BV, 1, 1, 1, 1))
        assert isinstance(found, ReportOther)
        assert found.content == "Text."

    def test_variant_for_tag(self) -> None:
        """Test each type tag maps to its report class."""
        assert ReportSubDecision.variant_for(SubDecisionType.OTHER.value) is ReportOther
        assert ReportSubDecision.variant_for(SubDecisionType.RECKONING.value) is ReportReckoning
        assert (
            ReportSubDecision.variant_for(SubDecisionType.BOARD_RELEASE.value)
            is ReportBoardRelease
        )
        with pytest.raises(KeyError):
            ReportSubDecision.variant_for("unknown")
