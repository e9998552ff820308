"""
PostgreSQL repository implementation.

Bulk writes go through executemany in fixed-size chunks inside a single
transaction, with ON CONFLICT upserts on each table's natural key.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from pydantic import BaseModel

from ..core.models import (
    AveragesRecord,
    GameRecord,
    PercentileRecord,
    PlayerSeasonStats,
    TeamSeasonStats,
)
from ..core.types import (
    GAME_STATS_TABLE,
    PLAYER_STATS_TABLE,
    SEASON_AVERAGES_TABLE,
    SEASON_PERCENTILES_TABLE,
    TEAM_STATS_TABLE,
)
from ..schema import GAME_KEY, PLAYER_KEY, SEASON_KEY, TEAM_KEY, model_columns
from .base import StatsRepository

if TYPE_CHECKING:
    from ..pg_connection import PostgresDB

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


def build_upsert_sql(table: str, columns: Sequence[str], key: Sequence[str]) -> str:
    """INSERT ... ON CONFLICT (key) DO UPDATE for every non-key column."""
    placeholders = ", ".join(["%s"] * len(columns))
    updates = [f"{col} = excluded.{col}" for col in columns if col not in key]
    updates.append("updated_at = now()")
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT ({', '.join(key)}) DO UPDATE SET {', '.join(updates)}"
    )


def _row_params(model: BaseModel, columns: Sequence[str]) -> tuple[Any, ...]:
    return tuple(getattr(model, col) for col in columns)


class PostgresStatsRepository(StatsRepository):
    """PostgreSQL implementation of stats persistence."""

    def __init__(self, db: "PostgresDB"):
        self.db = db

    # =========================================================================
    # Helpers
    # =========================================================================

    def _write_batches(self, query: str, params: list[tuple[Any, ...]], conn: Any = None) -> int:
        """executemany in BATCH_SIZE chunks, in one transaction."""
        if not params:
            return 0
        if conn is None:
            with self.db.transaction() as tx:
                return self._write_batches(query, params, tx)
        with conn.cursor() as cur:
            for start in range(0, len(params), BATCH_SIZE):
                cur.executemany(query, params[start : start + BATCH_SIZE])
                logger.debug("Wrote rows %d-%d", start, min(start + BATCH_SIZE, len(params)))
        return len(params)

    def _replace_season(
        self,
        table: str,
        columns: list[str],
        year: int,
        records: Sequence[BaseModel],
    ) -> int:
        query = build_upsert_sql(table, columns, SEASON_KEY)
        params = [_row_params(record, columns) for record in records]
        with self.db.transaction() as conn:
            conn.execute(f"DELETE FROM {table} WHERE year = %s", (year,))
            written = self._write_batches(query, params, conn)
        logger.info("Replaced %d rows in %s for %d", written, table, year)
        return written

    # =========================================================================
    # Game lines
    # =========================================================================

    def save_game_stats(self, games: Sequence[GameRecord]) -> int:
        keyed = [g for g in games if g.pid is not None and g.year is not None and g.team]
        if len(keyed) < len(games):
            logger.error("Not storing %d game lines without a complete key", len(games) - len(keyed))

        columns = model_columns(GameRecord)
        written = self._write_batches(
            build_upsert_sql(GAME_STATS_TABLE, columns, GAME_KEY),
            [_row_params(g, columns) for g in keyed],
        )
        logger.info("Upserted %d game lines", written)
        return written

    def load_game_stats(
        self,
        year: int,
        team: Optional[str] = None,
        pid: Optional[int] = None,
    ) -> list[GameRecord]:
        query = f"SELECT * FROM {GAME_STATS_TABLE} WHERE year = %s"
        params: list[Any] = [year]
        if team is not None:
            query += " AND team = %s"
            params.append(team)
        if pid is not None:
            query += " AND pid = %s"
            params.append(pid)
        query += " ORDER BY numdate, pid"
        return [GameRecord.model_validate(row) for row in self.db.fetchall(query, params)]

    # =========================================================================
    # Season feeds
    # =========================================================================

    def save_player_stats(self, year: int, rows: Sequence[PlayerSeasonStats]) -> int:
        # The feed occasionally omits the year column
        rows = [row if row.year is not None else row.model_copy(update={"year": year}) for row in rows]
        columns = model_columns(PlayerSeasonStats)
        written = self._write_batches(
            build_upsert_sql(PLAYER_STATS_TABLE, columns, PLAYER_KEY),
            [_row_params(row, columns) for row in rows],
        )
        logger.info("Upserted %d player season rows for %d", written, year)
        return written

    def load_player_stats(
        self, year: int, team: Optional[str] = None
    ) -> list[PlayerSeasonStats]:
        query = f"SELECT * FROM {PLAYER_STATS_TABLE} WHERE year = %s"
        params: list[Any] = [year]
        if team is not None:
            query += " AND team = %s"
            params.append(team)
        query += " ORDER BY team, player_name"
        return [PlayerSeasonStats.model_validate(row) for row in self.db.fetchall(query, params)]

    def save_team_stats(self, year: int, rows: Sequence[TeamSeasonStats]) -> int:
        columns = model_columns(TeamSeasonStats)
        written = self._write_batches(
            build_upsert_sql(TEAM_STATS_TABLE, ["year", *columns], TEAM_KEY),
            [(year, *_row_params(row, columns)) for row in rows],
        )
        logger.info("Upserted %d team rows for %d", written, year)
        return written

    def load_team_stats(self, year: int) -> list[TeamSeasonStats]:
        rows = self.db.fetchall(
            f"SELECT * FROM {TEAM_STATS_TABLE} WHERE year = %s ORDER BY rank",
            (year,),
        )
        return [TeamSeasonStats.model_validate(row) for row in rows]

    # =========================================================================
    # Derived season tables
    # =========================================================================

    def replace_season_averages(self, year: int, records: Sequence[AveragesRecord]) -> int:
        return self._replace_season(
            SEASON_AVERAGES_TABLE, model_columns(AveragesRecord), year, records
        )

    def load_season_averages(
        self, year: int, team: Optional[str] = None
    ) -> list[AveragesRecord]:
        query = f"SELECT * FROM {SEASON_AVERAGES_TABLE} WHERE year = %s"
        params: list[Any] = [year]
        if team is not None:
            query += " AND team = %s"
            params.append(team)
        query += " ORDER BY team, player_name"
        return [AveragesRecord.model_validate(row) for row in self.db.fetchall(query, params)]

    def replace_season_percentiles(
        self, year: int, records: Sequence[PercentileRecord]
    ) -> int:
        return self._replace_season(
            SEASON_PERCENTILES_TABLE, model_columns(PercentileRecord), year, records
        )

    def load_season_percentiles(
        self, year: int, team: Optional[str] = None
    ) -> list[PercentileRecord]:
        query = f"SELECT * FROM {SEASON_PERCENTILES_TABLE} WHERE year = %s"
        params: list[Any] = [year]
        if team is not None:
            query += " AND team = %s"
            params.append(team)
        query += " ORDER BY team, player_name"
        return [PercentileRecord.model_validate(row) for row in self.db.fetchall(query, params)]
