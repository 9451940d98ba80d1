"""
Sub-decision Transcoder

Copies one source sub-decision into its report counterpart. References to
other parts of the graph are re-resolved in the report store by natural key;
the source-side relation is never copied directly.
"""

import logging
from typing import Any

from report_sync.errors import (
    DanglingReferenceError,
    DecisionWithoutMeetingError,
    MissingMemberError,
    UnknownSubDecisionError,
    VariantMismatchError,
)
from report_sync.keys import DecisionKey, SubDecisionKey
from report_sync.storage.report_models import (
    ReportBoardInstallation,
    ReportDecision,
    ReportFoundation,
    ReportInstallation,
    ReportMember,
    ReportSubDecision,
)
from report_sync.storage.repositories import ReportRepository
from report_sync.storage.source_models import (
    Abolish,
    BoardDischarge,
    BoardInstallation,
    BoardRelease,
    Budget,
    Destroy,
    Discharge,
    Foundation,
    Installation,
    Member,
    Other,
    SubDecision,
)
from report_sync.sync.organs import OrganProjector

logger = logging.getLogger(__name__)


class SubDecisionTranscoder:
    """
    Upserts report sub-decisions from source sub-decisions.

    All references are resolved before the report entity is created or
    touched, so a dangling reference never leaves a partial row behind.
    """

    def __init__(
        self,
        repository: ReportRepository,
        organs: OrganProjector | None = None,
    ) -> None:
        self.repository = repository
        self.organs = organs

    def transcode(
        self,
        subdecision: SubDecision,
        report_decision: ReportDecision | None = None,
    ) -> ReportSubDecision:
        """
        Insert or update the report copy of a sub-decision.

        Args:
            subdecision: Source sub-decision
            report_decision: Report decision to attach to. Looked up by key
                when omitted.

        Returns:
            The staged report sub-decision (not committed)
        """
        key = SubDecisionKey.of(subdecision)

        if report_decision is None:
            report_decision = self.repository.find_decision(key.decision)
            if report_decision is None:
                raise DecisionWithoutMeetingError(key.decision)

        fields = self.transfer_fields(subdecision)
        fields["content"] = self.render(subdecision)
        variant = self.report_variant(subdecision)

        report_subdecision = self.repository.find_subdecision(key)
        if report_subdecision is None:
            report_subdecision = report_decision.add_subdecision(
                variant(number=subdecision.number)
            )
            self._apply(report_subdecision, fields)
        elif type(report_subdecision) is not variant:
            raise VariantMismatchError(
                key, variant.__name__, type(report_subdecision).__name__
            )
        else:
            self._apply(report_subdecision, fields)

        self.repository.upsert(report_subdecision)

        if self.organs is not None:
            self.organs.project(report_subdecision)

        return report_subdecision

    def transfer_fields(self, subdecision: SubDecision) -> dict[str, Any]:
        """Variant-specific report fields, with references already resolved."""
        match subdecision:
            case Installation():
                return {
                    "foundation": self._resolve_foundation(subdecision),
                    "function": subdecision.function,
                    "member": self._resolve_member(subdecision.member, subdecision),
                }
            case Abolish():
                return {"foundation": self._resolve_foundation(subdecision)}
            case Discharge():
                return {
                    "installation": self._resolve_installation(
                        subdecision, ReportInstallation
                    ),
                }
            case Foundation():
                return {
                    "abbr": subdecision.abbr,
                    "name": subdecision.name,
                    "organ_type": subdecision.organ_type,
                }
            case Budget():
                fields: dict[str, Any] = {
                    "name": subdecision.name,
                    "version": subdecision.version,
                    "date": subdecision.date,
                    "approval": subdecision.approval,
                    "changes": subdecision.changes,
                }
                if subdecision.author is not None:
                    fields["author"] = self._resolve_member(subdecision.author, subdecision)
                return fields
            case BoardInstallation():
                return {
                    "function": subdecision.function,
                    "member": self._resolve_member(subdecision.member, subdecision),
                    "date": subdecision.date,
                }
            case BoardRelease():
                return {
                    "installation": self._resolve_installation(
                        subdecision, ReportBoardInstallation
                    ),
                    "date": subdecision.date,
                }
            case BoardDischarge():
                return {
                    "installation": self._resolve_installation(
                        subdecision, ReportBoardInstallation
                    ),
                }
            case Destroy():
                return {"target": self._resolve_target(subdecision)}
            case Other():
                return {}
            case _:
                raise UnknownSubDecisionError(subdecision)

    @staticmethod
    def render(subdecision: SubDecision) -> str:
        content = subdecision.rendered_content()
        if content is None:
            content = ""
        return content

    @staticmethod
    def report_variant(subdecision: SubDecision) -> type[ReportSubDecision]:
        tag = subdecision.__mapper__.polymorphic_identity
        try:
            return ReportSubDecision.variant_for(tag)
        except KeyError:
            raise UnknownSubDecisionError(subdecision) from None

    @staticmethod
    def _apply(report_subdecision: ReportSubDecision, fields: dict[str, Any]) -> None:
        for name, value in fields.items():
            setattr(report_subdecision, name, value)

    # ========== Reference resolution ==========

    def _resolve_subdecision(
        self,
        kind: str,
        ref: SubDecision | None,
        expected: type[ReportSubDecision],
        referenced_by: SubDecision,
    ) -> ReportSubDecision:
        source_key = SubDecisionKey.of(referenced_by)
        if ref is None:
            raise DanglingReferenceError(kind, None, source_key)

        ref_key = SubDecisionKey.of(ref)
        found = self.repository.find_subdecision(ref_key)
        if not isinstance(found, expected):
            raise DanglingReferenceError(kind, ref_key, source_key)
        return found

    def _resolve_foundation(self, subdecision: Installation | Abolish) -> ReportFoundation:
        return self._resolve_subdecision(
            "foundation", subdecision.foundation, ReportFoundation, subdecision
        )

    def _resolve_installation(
        self,
        subdecision: Discharge | BoardRelease | BoardDischarge,
        expected: type[ReportSubDecision],
    ) -> ReportSubDecision:
        return self._resolve_subdecision(
            "installation", subdecision.installation, expected, subdecision
        )

    def _resolve_target(self, subdecision: Destroy) -> ReportDecision:
        source_key = SubDecisionKey.of(subdecision)
        if subdecision.target is None:
            raise DanglingReferenceError("decision", None, source_key)

        target_key = DecisionKey.of(subdecision.target)
        target = self.repository.find_decision(target_key)
        if target is None:
            raise DanglingReferenceError("decision", target_key, source_key)
        return target

    def _resolve_member(self, member: Member | None, referenced_by: SubDecision) -> ReportMember:
        source_key = SubDecisionKey.of(referenced_by)
        if member is None:
            raise DanglingReferenceError("member", None, source_key)

        report_member = self.repository.find_member(member.lidnr)
        if report_member is None:
            raise MissingMemberError(member.lidnr, source_key)
        return report_member
