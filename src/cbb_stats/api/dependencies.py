"""
Dependency injection for API endpoints.

Routes use the synchronous psycopg pool; FastAPI runs sync dependencies and
handlers on its thread pool. Tests replace these through
app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends

from ..pg_connection import PostgresDB, close_postgres_db, get_postgres_db
from ..services.reports import ReportService, get_report_service

_db_instance: PostgresDB | None = None


def get_db() -> PostgresDB:
    """
    Dependency that provides synchronous database connection.

    Returns:
        PostgresDB instance with connection pooling
    """
    global _db_instance
    if _db_instance is None:
        _db_instance = get_postgres_db()
    return _db_instance


def close_db() -> None:
    """Close the global database connection. Called at app shutdown."""
    global _db_instance
    _db_instance = None
    close_postgres_db()


def get_reports() -> ReportService:
    """Dependency that provides the report service."""
    return get_report_service()


DBDependency = Annotated[PostgresDB, Depends(get_db)]
ReportsDependency = Annotated[ReportService, Depends(get_reports)]
