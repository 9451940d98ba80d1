"""
Report Database Models

SQLAlchemy models for the denormalized report read model. The meeting,
decision and sub-decision tables mirror the decision database; organs and
organ members only exist on this side and are derived from foundations and
installations.
"""

import datetime
import uuid
from typing import Optional

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


class ReportBase(DeclarativeBase):
    """Base class for all report models."""

    pass


class ReportMember(ReportBase):
    """Member projection, keyed by membership number."""

    __tablename__ = "report_members"

    lidnr: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    first_name: Mapped[str] = mapped_column(String(255))
    middle_name: Mapped[str] = mapped_column(String(255), default="")
    last_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.middle_name, self.last_name)
        return " ".join(part for part in parts if part)


class ReportMeeting(ReportBase):
    """Report copy of a meeting."""

    __tablename__ = "report_meetings"
    __table_args__ = (UniqueConstraint("type", "number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[MeetingType] = mapped_column(Enum(MeetingType, native_enum=False, length=8))
    number: Mapped[int] = mapped_column(Integer)
    date: Mapped[datetime.date] = mapped_column(Date)

    decisions: Mapped[list["ReportDecision"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by=lambda: [ReportDecision.point, ReportDecision.number],
    )

    def add_decision(self, decision: "ReportDecision") -> "ReportDecision":
        """Attach a decision, copying the meeting key onto it."""
        decision.meeting_type = self.type
        decision.meeting_number = self.number
        self.decisions.append(decision)
        return decision


class ReportDecision(ReportBase):
    """Report copy of a decision, with the joined content of its sub-decisions."""

    __tablename__ = "report_decisions"
    __table_args__ = (
        UniqueConstraint("meeting_type", "meeting_number", "point", "number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    meeting_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("report_meetings.id"))
    meeting_type: Mapped[MeetingType] = mapped_column(
        Enum(MeetingType, native_enum=False, length=8)
    )
    meeting_number: Mapped[int] = mapped_column(Integer)
    point: Mapped[int] = mapped_column(Integer)
    number: Mapped[int] = mapped_column(Integer)
    content: Mapped[str] = mapped_column(Text, default="")

    meeting: Mapped["ReportMeeting"] = relationship(back_populates="decisions")
    subdecisions: Mapped[list["ReportSubDecision"]] = relationship(
        back_populates="decision",
        foreign_keys="ReportSubDecision.decision_id",
        cascade="all, delete-orphan",
        order_by="ReportSubDecision.number",
    )

    def add_subdecision(self, subdecision: "ReportSubDecision") -> "ReportSubDecision":
        """Attach a sub-decision, copying the decision key onto it."""
        subdecision.meeting_type = self.meeting_type
        subdecision.meeting_number = self.meeting_number
        subdecision.decision_point = self.point
        subdecision.decision_number = self.number
        self.subdecisions.append(subdecision)
        return subdecision


class ReportSubDecision(ReportBase):
    """Report copy of a sub-decision. All variants share one table."""

    __tablename__ = "report_subdecisions"
    __table_args__ = (
        UniqueConstraint(
            "meeting_type", "meeting_number", "decision_point", "decision_number", "number"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    decision_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("report_decisions.id"))
    meeting_type: Mapped[MeetingType] = mapped_column(
        Enum(MeetingType, native_enum=False, length=8)
    )
    meeting_number: Mapped[int] = mapped_column(Integer)
    decision_point: Mapped[int] = mapped_column(Integer)
    decision_number: Mapped[int] = mapped_column(Integer)
    number: Mapped[int] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String(32))

    content: Mapped[str] = mapped_column(Text, default="")

    # Variant data
    function: Mapped[str | None] = mapped_column(String(100), nullable=True)
    member_lidnr: Mapped[int | None] = mapped_column(
        ForeignKey("report_members.lidnr"), nullable=True
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
        ForeignKey("report_members.lidnr"), nullable=True
    )
    date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    # References, resolved by natural key during synchronization
    installation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("report_subdecisions.id"), nullable=True
    )
    foundation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("report_subdecisions.id"), nullable=True
    )
    target_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("report_decisions.id"), nullable=True
    )

    decision: Mapped["ReportDecision"] = relationship(
        back_populates="subdecisions", foreign_keys=[decision_id]
    )

    __mapper_args__ = {
        "polymorphic_on": "type",
        "polymorphic_abstract": True,
    }

    @classmethod
    def variant_for(cls, tag: str) -> "type[ReportSubDecision]":
        """Return the report class registered for a sub-decision type tag."""
        return cls.__mapper__.polymorphic_map[tag].class_


class ReportOther(ReportSubDecision):
    __mapper_args__ = {"polymorphic_identity": SubDecisionType.OTHER.value}


class ReportFoundation(ReportSubDecision):
    organ: Mapped[Optional["ReportOrgan"]] = relationship(back_populates="foundation")

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.FOUNDATION.value}


class ReportFoundationReference(ReportSubDecision):
    foundation: Mapped["ReportFoundation"] = relationship(
        foreign_keys="ReportSubDecision.foundation_id",
        remote_side="ReportSubDecision.id",
    )

    __mapper_args__ = {"polymorphic_abstract": True}


class ReportAbolish(ReportFoundationReference):
    __mapper_args__ = {"polymorphic_identity": SubDecisionType.ABOLISH.value}


class ReportInstallation(ReportFoundationReference):
    member: Mapped["ReportMember"] = relationship(
        foreign_keys="ReportSubDecision.member_lidnr"
    )
    discharge: Mapped[Optional["ReportDischarge"]] = relationship(
        foreign_keys="ReportSubDecision.installation_id",
        back_populates="installation",
    )
    organ_member: Mapped[Optional["ReportOrganMember"]] = relationship(
        back_populates="installation"
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.INSTALLATION.value}

    def clear_discharge(self) -> None:
        self.discharge = None


class ReportDischarge(ReportSubDecision):
    installation: Mapped["ReportInstallation"] = relationship(
        foreign_keys="ReportSubDecision.installation_id",
        remote_side="ReportSubDecision.id",
        back_populates="discharge",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.DISCHARGE.value}


class ReportBoardInstallation(ReportSubDecision):
    member: Mapped["ReportMember"] = relationship(
        foreign_keys="ReportSubDecision.member_lidnr"
    )
    release: Mapped[Optional["ReportBoardRelease"]] = relationship(
        foreign_keys="ReportSubDecision.installation_id",
        back_populates="installation",
    )
    discharge: Mapped[Optional["ReportBoardDischarge"]] = relationship(
        foreign_keys="ReportSubDecision.installation_id",
        back_populates="installation",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BOARD_INSTALLATION.value}

    def clear_discharge(self) -> None:
        self.discharge = None


class ReportBoardRelease(ReportSubDecision):
    installation: Mapped["ReportBoardInstallation"] = relationship(
        foreign_keys="ReportSubDecision.installation_id",
        remote_side="ReportSubDecision.id",
        back_populates="release",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BOARD_RELEASE.value}


class ReportBoardDischarge(ReportSubDecision):
    installation: Mapped["ReportBoardInstallation"] = relationship(
        foreign_keys="ReportSubDecision.installation_id",
        remote_side="ReportSubDecision.id",
        back_populates="discharge",
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BOARD_DISCHARGE.value}


class ReportBudget(ReportSubDecision):
    author: Mapped[Optional["ReportMember"]] = relationship(
        foreign_keys="ReportSubDecision.author_lidnr"
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.BUDGET.value}


class ReportReckoning(ReportBudget):
    __mapper_args__ = {"polymorphic_identity": SubDecisionType.RECKONING.value}


class ReportDestroy(ReportSubDecision):
    target: Mapped["ReportDecision"] = relationship(
        foreign_keys="ReportSubDecision.target_id"
    )

    __mapper_args__ = {"polymorphic_identity": SubDecisionType.DESTROY.value}


class ReportOrgan(ReportBase):
    """An organ, derived from its foundation sub-decision."""

    __tablename__ = "report_organs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    foundation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("report_subdecisions.id"), unique=True
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    abbr: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[OrganType | None] = mapped_column(
        Enum(OrganType, native_enum=False, length=16), nullable=True
    )
    foundation_date: Mapped[datetime.date] = mapped_column(Date)
    abrogation_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    foundation: Mapped["ReportFoundation"] = relationship(back_populates="organ")
    members: Mapped[list["ReportOrganMember"]] = relationship(
        back_populates="organ", cascade="all, delete-orphan"
    )


class ReportOrganMember(ReportBase):
    """Membership of a member in an organ for the duration of an installation."""

    __tablename__ = "report_organ_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organ_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("report_organs.id"))
    lidnr: Mapped[int] = mapped_column(ForeignKey("report_members.lidnr"))
    installation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("report_subdecisions.id"), unique=True
    )
    function: Mapped[str | None] = mapped_column(String(100), nullable=True)
    install_date: Mapped[datetime.date] = mapped_column(Date)
    discharge_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    organ: Mapped["ReportOrgan"] = relationship(back_populates="members")
    member: Mapped["ReportMember"] = relationship()
    installation: Mapped["ReportInstallation"] = relationship(back_populates="organ_member")
