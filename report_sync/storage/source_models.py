"""
Decision Database Models

SQLAlchemy models for the canonical decision graph: members, meetings,
decisions and the polymorphic sub-decision variants. The report projection
only ever reads from these tables.
"""

import datetime
import uuid

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from report_sync.enums import MeetingType, OrganType, SubDecisionType


class SourceBase(DeclarativeBase):
    """Base class for all decision database models."""

    pass


class Member(SourceBase):
    """A member of the association."""

    __tablename__ = "members"

    lidnr: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    first_name: Mapped[str] = mapped_column(String(255))
    middle_name: Mapped[str] = mapped_column(String(255), default="")
    last_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.middle_name, self.last_name)
        return " ".join(part for part in parts if part)


class Meeting(SourceBase):
    """A meeting, identified by (type, number)."""

    __tablename__ = "meetings"
    __table_args__ = (UniqueConstraint("type", "number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[MeetingType] = mapped_column(Enum(MeetingType, native_enum=False, length=8))
    number: Mapped[int] = mapped_column(Integer)
    date: Mapped[datetime.date] = mapped_column(Date)

    decisions: Mapped[list["Decision"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by=lambda: [Decision.point, Decision.number],
    )

    def add_decision(self, point: int, number: int) -> "Decision":
        """Create a decision on this meeting with the natural key filled in."""
        decision = Decision(
            meeting_type=self.type,
            meeting_number=self.number,
            point=point,
            number=number,
        )
        self.decisions.append(decision)
        return decision


class Decision(SourceBase):
    """A decision (agenda point) of a meeting."""

    __tablename__ = "decisions"
    __table_args__ = (
        UniqueConstraint("meeting_type", "meeting_number", "point", "number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    meeting_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("meetings.id"))
    meeting_type: Mapped[MeetingType] = mapped_column(
        Enum(MeetingType, native_enum=False, length=8)
    )
    meeting_number: Mapped[int] = mapped_column(Integer)
    point: Mapped[int] = mapped_column(Integer)
    number: Mapped[int] = mapped_column(Integer)

    meeting: Mapped["Meeting"] = relationship(back_populates="decisions")
    subdecisions: Mapped[list["SubDecision"]] = relationship(
        back_populates="decision",
        foreign_keys="SubDecision.decision_id",
        cascade="all, delete-orphan",
        order_by="SubDecision.number",
    )

    def add_subdecision(self, subdecision: "SubDecision") -> "SubDecision":
        """Attach a sub-decision, copying the decision key onto it."""
        subdecision.meeting_type = self.meeting_type
        subdecision.meeting_number = self.meeting_number
        subdecision.decision_point = self.point
        subdecision.decision_number = self.number
        self.subdecisions.append(subdecision)
        return subdecision


class SubDecision(SourceBase):
    """
    A single resolution within a decision.

    All variants share one table; variant-specific columns are nullable.
    """

    __tablename__ = "subdecisions"
    __table_args__ = (
        UniqueConstraint(
            "meeting_type", "meeting_number", "decision_point", "decision_number", "number"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    decision_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("decisions.id"))
    meeting_type: Mapped[MeetingType] = mapped_column(
        Enum(MeetingType, native_enum=False, length=8)
    )
    meeting_number: Mapped[int] = mapped_column(Integer)
    decision_point: Mapped[int] = mapped_column(Integer)
    decision_number: Mapped[int] = mapped_column(Integer)
    number: Mapped[int] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String(32))

    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Variant data
    function: Mapped[str | None] = mapped_column(String(100), nullable=True)
    member_lidnr: Mapped[int | None] = mapped_column(
        ForeignKey("members.lidnr"), nullable=True
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    abbr: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organ_type: Mapped[OrganType | None] = mapped_column(
        Enum(OrganType, native_enum=False, length=16), nullable=True
    )
    version: Mapped[str | None] = mapped_column(String(32), nullable=True)
    approval: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    changes: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    author_lidnr: Mapped[int | None] = mapped_column(
        ForeignKey("members.lidnr"), nullable=True
    )
    date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    # References to other parts of the graph
    installation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("subdecisions.id"), nullable=True
    )
    foundation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("subdecisions.id"), nullable=True
    )
    target_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("decisions.id"), nullable=True
    )

    decision: Mapped["Decision"] = relationship(
        back_populates="subdecisions", foreign_keys=[decision_id]
    )

    __mapper_args__ = {
        "polymorphic_on": "type",
        "polymorphic_abstract": True,
    }

    def rendered_content(self) -> str | None:
        """Business text of this sub-decision, as shown in the minutes."""
        return self.content


class Other(SubDecision):
    """Free-text sub-decision."""

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.OTHER.value}


class Foundation(SubDecision):
    """Foundation of an organ."""

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.FOUNDATION.value}

    def rendered_content(self) -> str:
        organ_type = self.organ_type.value if self.organ_type else "organ"
        return f"Founding of {organ_type} {self.abbr} with the name {self.name}."


class FoundationReference(SubDecision):
    """Sub-decision that refers back to a foundation."""

    foundation: Mapped["Foundation"] = relationship(
        foreign_keys="SubDecision.foundation_id",
        remote_side="SubDecision.id",
    )

    __mapper_args__ = {"polymorphic_abstract": True}


class Abolish(FoundationReference):
    """Abolishment of an organ."""

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.ABOLISH.value}

    def rendered_content(self) -> str:
        return f"Abolishment of {self.foundation.abbr}."


class Installation(FoundationReference):
    """Installation of a member into a function of an organ."""

    member: Mapped["Member"] = relationship(
        foreign_keys="SubDecision.member_lidnr", lazy="selectin"
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.INSTALLATION.value}

    def rendered_content(self) -> str:
        return (
            f"{self.member.full_name} is installed as {self.function}"
            f" of {self.foundation.abbr}."
        )


class Discharge(SubDecision):
    """Discharge of an installation; undoes that installation."""

    installation: Mapped["Installation"] = relationship(
        foreign_keys="SubDecision.installation_id",
        remote_side="SubDecision.id",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.DISCHARGE.value}

    def rendered_content(self) -> str:
        installation = self.installation
        return (
            f"{installation.member.full_name} is discharged as {installation.function}"
            f" of {installation.foundation.abbr}."
        )


class BoardInstallation(SubDecision):
    """Installation of a member onto the board."""

    member: Mapped["Member"] = relationship(
        foreign_keys="SubDecision.member_lidnr", lazy="selectin"
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BOARD_INSTALLATION.value}

    def rendered_content(self) -> str:
        return (
            f"{self.member.full_name} is installed as {self.function} of the board"
            f" as of {self.date:%d-%m-%Y}."
        )


class BoardRelease(SubDecision):
    """Release of a board member from their function."""

    installation: Mapped["BoardInstallation"] = relationship(
        foreign_keys="SubDecision.installation_id",
        remote_side="SubDecision.id",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BOARD_RELEASE.value}

    def rendered_content(self) -> str:
        installation = self.installation
        return (
            f"{installation.member.full_name} is released as {installation.function}"
            f" of the board as of {self.date:%d-%m-%Y}."
        )


class BoardDischarge(SubDecision):
    """Discharge of a board member."""

    installation: Mapped["BoardInstallation"] = relationship(
        foreign_keys="SubDecision.installation_id",
        remote_side="SubDecision.id",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BOARD_DISCHARGE.value}

    def rendered_content(self) -> str:
        installation = self.installation
        return (
            f"{installation.member.full_name} is discharged as {installation.function}"
            f" of the board."
        )


class Budget(SubDecision):
    """Approval of a budget."""

    author: Mapped[Member | None] = relationship(
        foreign_keys="SubDecision.author_lidnr", lazy="selectin"
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BUDGET.value}

    document_name = "budget"

    def rendered_content(self) -> str:
        verdict = "approved" if self.approval else "not approved"
        if self.changes:
            verdict += " with changes"
        text = f"The {self.document_name} {self.name} version {self.version}"
        if self.date is not None:
            text += f" of {self.date:%d-%m-%Y}"
        if self.author is not None:
            text += f" by {self.author.full_name}"
        return f"{text} is {verdict}."


class Reckoning(Budget):
    """Approval of a financial reckoning."""

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.RECKONING.value}

    document_name = "reckoning"


class Destroy(SubDecision):
    """Retraction of an earlier decision."""

    target: Mapped["Decision"] = relationship(foreign_keys="SubDecision.target_id")

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.DESTROY.value}

    def rendered_content(self) -> str:
        target = self.target
        return (
            f"Decision {target.meeting_type.value} {target.meeting_number}"
            f".{target.point}.{target.number} is destroyed."
        )
