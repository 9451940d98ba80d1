"""
Natural Keys

Composite identities shared by the source and report models. Cross-store
look-ups always go through these keys, never through source-side relations.
"""

from dataclasses import dataclass
from typing import Any

from report_sync.enums import MeetingType


@dataclass(frozen=True)
class MeetingKey:
    """Identity of a meeting: (type, number)."""

    type: MeetingType
    number: int

    @classmethod
    def of(cls, meeting: Any) -> "MeetingKey":
        return cls(meeting.type, meeting.number)

    def __str__(self) -> str:
        return f"{MeetingType(self.type).value} {self.number}"


@dataclass(frozen=True)
class DecisionKey:
    """Identity of a decision within a meeting."""

    meeting_type: MeetingType
    meeting_number: int
    point: int
    number: int

    @classmethod
    def of(cls, decision: Any) -> "DecisionKey":
        return cls(
            decision.meeting_type,
            decision.meeting_number,
            decision.point,
            decision.number,
        )

    @property
    def meeting(self) -> MeetingKey:
        return MeetingKey(self.meeting_type, self.meeting_number)

    def __str__(self) -> str:
        return f"{self.meeting}.{self.point}.{self.number}"


@dataclass(frozen=True)
class SubDecisionKey:
    """Identity of a sub-decision within a decision."""

    meeting_type: MeetingType
    meeting_number: int
    decision_point: int
    decision_number: int
    number: int

    @classmethod
    def of(cls, subdecision: Any) -> "SubDecisionKey":
        return cls(
            subdecision.meeting_type,
            subdecision.meeting_number,
            subdecision.decision_point,
            subdecision.decision_number,
            subdecision.number,
        )

    @property
    def decision(self) -> DecisionKey:
        return DecisionKey(
            self.meeting_type,
            self.meeting_number,
            self.decision_point,
            self.decision_number,
        )

    def __str__(self) -> str:
        return f"{self.decision}.{self.number}"
