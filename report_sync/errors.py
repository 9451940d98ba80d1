"""
Report Sync Errors

Structural errors signal a violated graph invariant. They are never swallowed
inside a decision; the meeting synchronizer is the only place that isolates
them.
"""

from typing import Any


class ReportSyncError(Exception):
    """Base class for all report sync errors."""


class StructuralError(ReportSyncError):
    """The decision graph violates an integrity invariant."""


class DecisionWithoutMeetingError(StructuralError):
    """A decision was synchronized before its meeting exists in the report."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Decision without meeting: {key}")


class DanglingReferenceError(StructuralError):
    """A referenced entity has no counterpart in the report store."""

    def __init__(self, kind: str, key: Any, referenced_by: Any = None) -> None:
        self.kind = kind
        self.key = key
        self.referenced_by = referenced_by
        message = f"Dangling reference to {kind} {key}"
        if referenced_by is not None:
            message += f" (referenced by {referenced_by})"
        super().__init__(message)


class MissingMemberError(DanglingReferenceError):
    """A member is not present in the report member projection."""

    def __init__(self, lidnr: int, referenced_by: Any = None) -> None:
        super().__init__("member", lidnr, referenced_by)
        self.lidnr = lidnr


class UnknownSubDecisionError(StructuralError):
    """A sub-decision variant outside the known set was encountered."""

    def __init__(self, subdecision: Any) -> None:
        self.subdecision = subdecision
        super().__init__(f"Unknown sub-decision variant: {type(subdecision).__name__}")


class VariantMismatchError(StructuralError):
    """The report already holds a different variant under the same key."""

    def __init__(self, key: Any, expected: str, found: str) -> None:
        self.key = key
        super().__init__(
            f"Sub-decision {key} is a {found} in the report, expected {expected}"
        )


class DecisionNotFoundError(StructuralError):
    """The decision to delete does not exist in the report store."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Decision {key} not found in report")


class UnsupportedDeletionError(StructuralError, NotImplementedError):
    """Deleting this sub-decision variant is not supported."""
