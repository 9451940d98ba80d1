"""
Database Engines and Sessions

Synchronous SQLAlchemy setup for the decision (source) and report (target)
databases.
"""

from typing import Any

from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

from report_sync.storage.report_models import ReportBase
from report_sync.storage.source_models import SourceBase


def create_engine_from_url(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for one of the two stores.

    SQLite connections get the transaction recipe from the SQLAlchemy docs so
    that SAVEPOINT (used to isolate each decision) behaves.
    """
    if url.startswith("sqlite"):
        engine = create_engine(url, echo=echo)

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory; objects stay usable after commit until cleared."""
    return sessionmaker(engine, expire_on_commit=False)


def init_report_schema(engine: Engine) -> None:
    """Create the report tables if they don't exist."""
    ReportBase.metadata.create_all(engine)


def verify_source_schema(engine: Engine) -> None:
    """
    Verify the decision database schema exists.

    The decision database owns its schema; this service never creates it.
    """
    tables = set(inspect(engine).get_table_names())
    missing = sorted(set(SourceBase.metadata.tables) - tables)
    if missing:
        raise RuntimeError(
            "Decision database schema not found! Missing tables: " + ", ".join(missing)
        )
