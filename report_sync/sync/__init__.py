"""Sync module - Projection of the decision graph into the report database."""

from report_sync.sync.deletion import DeletionCascade
from report_sync.sync.orchestrator import GenerateResult, ReportOrchestrator
from report_sync.sync.organs import OrganProjector
from report_sync.sync.synchronizer import (
    DecisionSynchronizer,
    MeetingResult,
    MeetingSynchronizer,
)
from report_sync.sync.transcoder import SubDecisionTranscoder

__all__ = [
    "DecisionSynchronizer",
    "DeletionCascade",
    "GenerateResult",
    "MeetingResult",
    "MeetingSynchronizer",
    "OrganProjector",
    "ReportOrchestrator",
    "SubDecisionTranscoder",
]
