"""
Database schema management for the stats database.

Tables are derived from the pydantic models so columns always match the
records written to them:

- game_stats: one row per player game line, keyed (pid, year, team, numdate, muid)
- player_stats: season player feed, keyed (year, team, player_name)
- team_stats: season team results, keyed (year, team)
- player_season_avg_stats / player_season_percentiles: keyed (pid, year, team)
"""

from __future__ import annotations

import logging
import typing
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from .core.models import (
    AveragesRecord,
    GameRecord,
    PercentileRecord,
    PlayerSeasonStats,
    TeamSeasonStats,
)
from .core.types import (
    GAME_STATS_TABLE,
    PLAYER_STATS_TABLE,
    SEASON_AVERAGES_TABLE,
    SEASON_PERCENTILES_TABLE,
    TEAM_STATS_TABLE,
)

if TYPE_CHECKING:
    from .pg_connection import PostgresDB

logger = logging.getLogger(__name__)

GAME_KEY = ("pid", "year", "team", "numdate", "muid")
PLAYER_KEY = ("year", "team", "player_name")
TEAM_KEY = ("year", "team")
SEASON_KEY = ("pid", "year", "team")


def _sql_type(annotation: Any) -> str:
    """Map a model field annotation to a PostgreSQL column type."""
    args = typing.get_args(annotation) or (annotation,)
    if int in args:
        return "INTEGER"
    if float in args:
        return "DOUBLE PRECISION"
    return "TEXT"


def model_columns(model: type[BaseModel]) -> list[str]:
    """Column names for a model, in field order."""
    return list(model.model_fields)


def _create_table_sql(
    table: str,
    model: type[BaseModel],
    key: tuple[str, ...],
    extra_columns: tuple[tuple[str, str], ...] = (),
) -> str:
    columns = [f"{name} {sql_type} NOT NULL" for name, sql_type in extra_columns]
    for name, field in model.model_fields.items():
        not_null = " NOT NULL" if name in key else ""
        columns.append(f"{name} {_sql_type(field.annotation)}{not_null}")
    columns.append("updated_at TIMESTAMPTZ NOT NULL DEFAULT now()")
    columns.append(f"PRIMARY KEY ({', '.join(key)})")
    body = ",\n    ".join(columns)
    return f"CREATE TABLE IF NOT EXISTS {table} (\n    {body}\n)"


def schema_statements() -> list[str]:
    """Every DDL statement, in dependency-free order."""
    return [
        _create_table_sql(GAME_STATS_TABLE, GameRecord, GAME_KEY),
        f"CREATE INDEX IF NOT EXISTS idx_{GAME_STATS_TABLE}_team_year "
        f"ON {GAME_STATS_TABLE} (team, year)",
        _create_table_sql(PLAYER_STATS_TABLE, PlayerSeasonStats, PLAYER_KEY),
        _create_table_sql(
            TEAM_STATS_TABLE, TeamSeasonStats, TEAM_KEY, extra_columns=(("year", "INTEGER"),)
        ),
        _create_table_sql(SEASON_AVERAGES_TABLE, AveragesRecord, SEASON_KEY),
        _create_table_sql(SEASON_PERCENTILES_TABLE, PercentileRecord, SEASON_KEY),
    ]


def init_database(db: "PostgresDB") -> None:
    """
    Create every table and index if missing.

    Args:
        db: Database connection
    """
    statements = schema_statements()
    logger.info("Initializing stats database (%d statements)", len(statements))
    with db.transaction() as conn:
        for statement in statements:
            conn.execute(statement)
    logger.info("Database schema ready")
