"""
Repositories

Query interfaces over the decision database and the report database. The
report repository keeps an explicit log of staged changes that is reset at
every commit.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from report_sync.keys import DecisionKey, MeetingKey, SubDecisionKey
from report_sync.storage.report_models import (
    ReportDecision,
    ReportMeeting,
    ReportMember,
    ReportOrgan,
    ReportOrganMember,
    ReportSubDecision,
)
from report_sync.storage.source_models import Decision, Meeting

logger = logging.getLogger(__name__)


class SourceRepository:
    """Read-only access to the decision database."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_all_meetings(self, eager: bool = True) -> list[Meeting]:
        """
        Get all meetings in chronological order.

        Args:
            eager: Load decisions and sub-decisions up front instead of one
                query per meeting and decision.
        """
        stmt = select(Meeting).order_by(Meeting.date, Meeting.type, Meeting.number)
        if eager:
            stmt = stmt.options(
                selectinload(Meeting.decisions).selectinload(Decision.subdecisions)
            )
        return list(self.session.scalars(stmt).all())

    def find_decision(self, key: DecisionKey) -> Decision | None:
        stmt = select(Decision).where(
            Decision.meeting_type == key.meeting_type,
            Decision.meeting_number == key.meeting_number,
            Decision.point == key.point,
            Decision.number == key.number,
        )
        return self.session.scalars(stmt).one_or_none()


@dataclass(frozen=True)
class StagedChange:
    """A pending upsert or removal in the report unit of work."""

    action: Literal["upsert", "remove"]
    entity: Any


class ReportRepository:
    """
    Read-write access to the report database.

    Changes are staged in the session and recorded in ``staged`` until
    ``commit()``; nothing reaches the database outside of a commit.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.staged: list[StagedChange] = []

    # ========== Look-ups ==========

    def find_meeting(self, key: MeetingKey) -> ReportMeeting | None:
        stmt = select(ReportMeeting).where(
            ReportMeeting.type == key.type,
            ReportMeeting.number == key.number,
        )
        return self.session.scalars(stmt).one_or_none()

    def find_decision(self, key: DecisionKey) -> ReportDecision | None:
        stmt = select(ReportDecision).where(
            ReportDecision.meeting_type == key.meeting_type,
            ReportDecision.meeting_number == key.meeting_number,
            ReportDecision.point == key.point,
            ReportDecision.number == key.number,
        )
        return self.session.scalars(stmt).one_or_none()

    def find_subdecision(self, key: SubDecisionKey) -> ReportSubDecision | None:
        stmt = select(ReportSubDecision).where(
            ReportSubDecision.meeting_type == key.meeting_type,
            ReportSubDecision.meeting_number == key.meeting_number,
            ReportSubDecision.decision_point == key.decision_point,
            ReportSubDecision.decision_number == key.decision_number,
            ReportSubDecision.number == key.number,
        )
        return self.session.scalars(stmt).one_or_none()

    def find_member(self, lidnr: int) -> ReportMember | None:
        return self.session.get(ReportMember, lidnr)

    # ========== Unit of work ==========

    def upsert(self, entity: Any) -> None:
        """Stage an entity for insert or update."""
        self.session.add(entity)
        self.staged.append(StagedChange("upsert", entity))

    def remove(self, entity: Any) -> None:
        """Stage an entity for deletion."""
        self.session.delete(entity)
        self.staged.append(StagedChange("remove", entity))

    def commit(self) -> None:
        """Write all staged changes. Errors propagate to the caller."""
        count = len(self.staged)
        self.session.commit()
        self.staged.clear()
        if count:
            logger.debug("Committed %d staged report changes", count)

    def clear(self) -> None:
        """Detach every loaded entity so memory stays bounded between commits."""
        self.session.expunge_all()

    def rollback(self) -> None:
        self.session.rollback()
        self.staged.clear()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """
        Run a block atomically against the report store.

        On error the savepoint is rolled back, changes staged inside the block
        are forgotten, and the error is re-raised.
        """
        mark = len(self.staged)
        try:
            with self.session.begin_nested():
                yield
        except Exception:
            del self.staged[mark:]
            raise

    # ========== Statistics ==========

    def count_rows(self) -> dict[str, int]:
        """Row counts per report entity type."""
        models = {
            "meetings": ReportMeeting,
            "decisions": ReportDecision,
            "subdecisions": ReportSubDecision,
            "members": ReportMember,
            "organs": ReportOrgan,
            "organ_members": ReportOrganMember,
        }
        return {
            name: self.session.scalar(select(func.count()).select_from(model)) or 0
            for name, model in models.items()
        }
