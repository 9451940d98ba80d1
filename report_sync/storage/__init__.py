"""Storage module - Decision and report database persistence."""

from report_sync.storage.database import (
    create_engine_from_url,
    create_session_factory,
    init_report_schema,
    verify_source_schema,
)
from report_sync.storage.report_models import ReportBase
from report_sync.storage.repositories import (
    ReportRepository,
    SourceRepository,
    StagedChange,
)
from report_sync.storage.source_models import SourceBase

__all__ = [
    "ReportBase",
    "ReportRepository",
    "SourceBase",
    "SourceRepository",
    "StagedChange",
    "create_engine_from_url",
    "create_session_factory",
    "init_report_schema",
    "verify_source_schema",
]
