"""
Organ Projection

Maintains the report-only organ and organ member rows that follow from
foundations, installations, discharges and abolishments.
"""

import datetime
import logging

from report_sync.errors import DanglingReferenceError
from report_sync.keys import SubDecisionKey
from report_sync.storage.report_models import (
    ReportAbolish,
    ReportDischarge,
    ReportFoundation,
    ReportInstallation,
    ReportOrgan,
    ReportOrganMember,
    ReportSubDecision,
)
from report_sync.storage.repositories import ReportRepository

logger = logging.getLogger(__name__)


class OrganProjector:
    """Derives organs and organ members from synchronized sub-decisions."""

    def __init__(self, repository: ReportRepository) -> None:
        self.repository = repository

    def project(self, subdecision: ReportSubDecision) -> None:
        match subdecision:
            case ReportFoundation():
                self.found_organ(subdecision)
            case ReportInstallation():
                self.install_member(subdecision)
            case ReportDischarge():
                self.discharge_member(subdecision)
            case ReportAbolish():
                self.abolish_organ(subdecision)
            case _:
                # board variants and documents have no organ side effects
                return

    def found_organ(self, foundation: ReportFoundation) -> ReportOrgan:
        values = {
            "name": foundation.name,
            "abbr": foundation.abbr,
            "type": foundation.organ_type,
            "foundation_date": self._meeting_date(foundation),
        }
        organ = foundation.organ
        if organ is None:
            organ = ReportOrgan(foundation=foundation)

        for name, value in values.items():
            setattr(organ, name, value)

        self.repository.upsert(organ)
        return organ

    def install_member(self, installation: ReportInstallation) -> ReportOrganMember:
        install_date = self._meeting_date(installation)
        member = installation.member
        organ = installation.foundation.organ
        if organ is None:
            raise DanglingReferenceError(
                "organ",
                SubDecisionKey.of(installation.foundation),
                SubDecisionKey.of(installation),
            )

        organ_member = installation.organ_member
        if organ_member is None:
            organ_member = ReportOrganMember(installation=installation)

        organ_member.organ = organ
        organ_member.member = member
        organ_member.function = installation.function
        organ_member.install_date = install_date

        self.repository.upsert(organ_member)
        return organ_member

    def discharge_member(self, discharge: ReportDischarge) -> None:
        organ_member = discharge.installation.organ_member
        if organ_member is None:
            logger.debug("Discharge %s has no organ member to close", SubDecisionKey.of(discharge))
            return

        organ_member.discharge_date = self._meeting_date(discharge)

    def abolish_organ(self, abolish: ReportAbolish) -> None:
        organ = abolish.foundation.organ
        if organ is not None:
            organ.abrogation_date = self._meeting_date(abolish)

    @staticmethod
    def _meeting_date(subdecision: ReportSubDecision) -> datetime.date:
        return subdecision.decision.meeting.date
