"""
Deletion Cascade

Removes the report copy of a decision together with the organ rows derived
from its sub-decisions.
"""

import logging
from typing import Any

from report_sync.errors import DecisionNotFoundError, UnsupportedDeletionError
from report_sync.keys import DecisionKey, SubDecisionKey
from report_sync.metrics import MetricsCollector
from report_sync.storage.report_models import (
    ReportBoardDischarge,
    ReportDestroy,
    ReportDischarge,
    ReportFoundation,
    ReportInstallation,
    ReportSubDecision,
)
from report_sync.storage.repositories import ReportRepository

logger = logging.getLogger(__name__)


class DeletionCascade:
    """Reverses the projection of a single decision."""

    def __init__(
        self,
        repository: ReportRepository,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.repository = repository
        self.metrics = metrics or MetricsCollector(enabled=False)

    def delete_decision(self, decision: Any) -> None:
        """
        Stage removal of the report copy of ``decision``.

        Sub-decisions are removed last-created first, since later ones may
        reference earlier ones. The caller commits.

        Args:
            decision: Anything carrying a decision's natural key (a source
                decision, a report decision or a DecisionKey)

        Raises:
            DecisionNotFoundError: No report decision exists for the key.
            UnsupportedDeletionError: The decision contains a Destroy.
        """
        key = DecisionKey.of(decision)
        report_decision = self.repository.find_decision(key)
        if report_decision is None:
            raise DecisionNotFoundError(key)

        # Lazy loads below must not flush half-removed sub-decisions early,
        # or the decision cascade would delete them a second time.
        with self.repository.savepoint(), self.repository.session.no_autoflush:
            for subdecision in reversed(list(report_decision.subdecisions)):
                self.delete_subdecision(subdecision)
            self.repository.remove(report_decision)

        logger.info("Removed decision %s from report", key)
        self.metrics.record_decision_deleted()

    def delete_subdecision(self, subdecision: ReportSubDecision) -> None:
        match subdecision:
            case ReportDestroy():
                raise UnsupportedDeletionError(
                    f"Deletion of destroy decisions not implemented ({SubDecisionKey.of(subdecision)})"
                )
            case ReportDischarge():
                installation = subdecision.installation
                installation.clear_discharge()
                organ_member = installation.organ_member
                if organ_member is not None:
                    organ_member.discharge_date = None
            case ReportBoardDischarge():
                subdecision.installation.clear_discharge()
            case ReportFoundation():
                organ = subdecision.organ
                if organ is not None:
                    self.repository.remove(organ)
            case ReportInstallation():
                organ_member = subdecision.organ_member
                if organ_member is not None:
                    self.repository.remove(organ_member)

        self.repository.remove(subdecision)
