"""
Report service: season and rolling player reports.

Routers and CLI call this instead of touching the aggregator, ranker and
repository directly.

Season reports read the stored season tables, which rebuild_season_tables
derives from stored game lines: every (pid, year, team) group is aggregated
first, then the whole season population is ranked.

Rolling reports are computed per request for one team. Each player's window
is aggregated on a thread pool; the team's players form the percentile
cohort once every player is done. Season-long constants from the player
season feed are merged after aggregation and ranked within the same cohort.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Optional, Sequence

from ..aggregators import (
    SliceAggregator,
    build_season_averages,
    select_date_range,
    select_last_n,
)
from ..aggregators.slices import games_for_key, sort_by_date
from ..core.config import get_settings
from ..core.models import (
    AveragesRecord,
    GameRecord,
    PlayerRollingAverages,
    PlayerRollingAveragesWithPercentiles,
    PlayerSeasonStats,
    PlayerStatsWithPercentiles,
    TeamSeasonStats,
)
from ..core.types import IDENTITY_FIELDS, SEASON_CONSTANT_FIELDS, SEASON_CONSTANT_STATS
from ..percentiles import rank_columns, rank_population

if TYPE_CHECKING:
    from ..providers import BartTorvikClient
    from ..repositories import StatsRepository

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y%m%d"


class InvalidWindowError(ValueError):
    """Rolling window parameters are missing, conflicting or malformed."""


@dataclass(frozen=True)
class RollingWindow:
    """Either the last N games or an inclusive YYYYMMDD date range."""

    last_n_games: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @property
    def is_date_range(self) -> bool:
        return self.start_date is not None


def normalize_date(value: str) -> str:
    """Accept YYYYMMDD or YYYY-MM-DD and return YYYYMMDD."""
    compact = value.strip().replace("-", "")
    try:
        datetime.strptime(compact, DATE_FORMAT)
    except ValueError as e:
        raise InvalidWindowError(f"Invalid date {value!r}, expected YYYYMMDD or YYYY-MM-DD") from e
    return compact


def _parse_numdate(numdate: Optional[str]) -> Optional[datetime]:
    if not numdate:
        return None
    try:
        return datetime.strptime(numdate, DATE_FORMAT)
    except ValueError:
        logger.debug("Ignoring unparseable game date %r", numdate)
        return None


def resolve_window(
    games: Sequence[GameRecord],
    last_n_games: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    last_n_days: Optional[int] = None,
    default_last_n_games: int = 10,
) -> RollingWindow:
    """
    Turn request parameters into a concrete window.

    last_n_days=D covers the D calendar days ending on the most recent game
    among `games` (not today), both ends inclusive. Stored dates that are
    not YYYYMMDD are ignored when looking for that game.

    Raises:
        InvalidWindowError: Conflicting, partial or non-positive parameters
    """
    modes = sum(
        (
            last_n_games is not None,
            start_date is not None or end_date is not None,
            last_n_days is not None,
        )
    )
    if modes > 1:
        raise InvalidWindowError(
            "Use only one of last_n_games, start_date/end_date or last_n_days"
        )

    if last_n_days is not None:
        if last_n_days <= 0:
            raise InvalidWindowError(f"last_n_days must be positive, got {last_n_days}")
        dated = [d for d in (_parse_numdate(g.numdate) for g in games) if d is not None]
        if not dated:
            return RollingWindow(last_n_games=default_last_n_games)
        latest = max(dated)
        start = latest - timedelta(days=last_n_days - 1)
        return RollingWindow(
            start_date=start.strftime(DATE_FORMAT),
            end_date=latest.strftime(DATE_FORMAT),
        )

    if start_date is not None or end_date is not None:
        if start_date is None or end_date is None:
            raise InvalidWindowError("start_date and end_date must be given together")
        start, end = normalize_date(start_date), normalize_date(end_date)
        if start > end:
            raise InvalidWindowError(f"start_date {start} is after end_date {end}")
        return RollingWindow(start_date=start, end_date=end)

    n = default_last_n_games if last_n_games is None else last_n_games
    if n <= 0:
        raise InvalidWindowError(f"last_n_games must be positive, got {n}")
    return RollingWindow(last_n_games=n)


def _constants_for(
    averages: AveragesRecord,
    by_pid: dict[int, PlayerSeasonStats],
    by_name: dict[str, PlayerSeasonStats],
) -> dict[str, Any]:
    season = by_pid.get(averages.pid) or by_name.get(averages.player_name)
    if season is None:
        return {}
    return {field: getattr(season, field) for field in SEASON_CONSTANT_FIELDS}


class ReportService:
    """Season and rolling report orchestration over a StatsRepository."""

    def __init__(
        self,
        repository: "StatsRepository",
        max_workers: Optional[int] = None,
        default_last_n_games: Optional[int] = None,
    ):
        settings = get_settings()
        self.repository = repository
        self.max_workers = max_workers or settings.report_max_workers
        self.default_last_n_games = default_last_n_games or settings.default_last_n_games

    # =========================================================================
    # Ingestion and season tables
    # =========================================================================

    async def ingest_season(self, client: "BartTorvikClient", year: int) -> dict[str, int]:
        """
        Fetch all three season feeds concurrently and store them.

        Repository writes are blocking, so they run in a worker thread to
        keep the event loop free.
        """
        games, players, teams = await asyncio.gather(
            client.fetch_game_stats(year),
            client.fetch_player_season_stats(year),
            client.fetch_team_results(year),
        )
        return {
            "games": await asyncio.to_thread(self.repository.save_game_stats, games),
            "players": await asyncio.to_thread(self.repository.save_player_stats, year, players),
            "teams": await asyncio.to_thread(self.repository.save_team_stats, year, teams),
        }

    def rebuild_season_tables(self, year: int) -> tuple[int, int]:
        """
        Recompute season averages and percentiles from stored game lines.

        Returns:
            (averages written, percentiles written)
        """
        games = self.repository.load_game_stats(year)
        logger.info("Rebuilding season tables for %d from %d game lines", year, len(games))
        averages = build_season_averages(games)
        percentiles = rank_population(averages)
        return (
            self.repository.replace_season_averages(year, averages),
            self.repository.replace_season_percentiles(year, percentiles),
        )

    # =========================================================================
    # Stored feed rows
    # =========================================================================

    def player_season_stats(self, team: str, year: int) -> list[PlayerSeasonStats]:
        """Season player feed rows for one team."""
        return self.repository.load_player_stats(year, team)

    def team_stats(self, year: int) -> list[TeamSeasonStats]:
        """Season team results."""
        return self.repository.load_team_stats(year)

    def player_games(self, pid: int, year: int, team: str) -> list[GameRecord]:
        """One player's game lines, oldest first."""
        games = self.repository.load_game_stats(year, team, pid)
        return sort_by_date(games_for_key(games, pid, year, team))

    # =========================================================================
    # Season reports
    # =========================================================================

    def season_averages(self, team: str, year: int) -> list[AveragesRecord]:
        """Stored season averages for one team."""
        return self.repository.load_season_averages(year, team)

    def season_report(self, team: str, year: int) -> list[PlayerStatsWithPercentiles]:
        """Season averages joined with season percentiles (cohort: the whole season)."""
        averages = self.repository.load_season_averages(year, team)
        percentiles = {p.key: p for p in self.repository.load_season_percentiles(year, team)}

        report = []
        for record in averages:
            pct = percentiles.get(record.key)
            if pct is None:
                logger.warning("No season percentiles stored for %s", record.key)
                continue
            report.append(
                PlayerStatsWithPercentiles(
                    **record.model_dump(),
                    **pct.model_dump(exclude=set(IDENTITY_FIELDS)),
                )
            )
        return report

    # =========================================================================
    # Rolling reports
    # =========================================================================

    def _window_averages(
        self,
        games: Sequence[GameRecord],
        pid: int,
        year: int,
        team: str,
        window: RollingWindow,
    ) -> Optional[AveragesRecord]:
        if window.is_date_range:
            selected = select_date_range(games, pid, year, team, window.start_date, window.end_date)
        else:
            selected = select_last_n(games, pid, year, team, window.last_n_games)
        if selected is None:
            return None
        return SliceAggregator.aggregate(selected.games, pid, year, team, selected.player_name)

    def rolling_averages(
        self,
        games: Sequence[GameRecord],
        year: int,
        team: str,
        window: RollingWindow,
    ) -> list[AveragesRecord]:
        """
        Aggregate every player's window on a thread pool.

        Returns:
            Averages ordered by pid, once every player has finished
        """
        by_pid: dict[int, list[GameRecord]] = defaultdict(list)
        for game in games:
            if game.pid is not None:
                by_pid[game.pid].append(game)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                pid: executor.submit(self._window_averages, player_games, pid, year, team, window)
                for pid, player_games in by_pid.items()
            }
            results = {pid: future.result() for pid, future in futures.items()}

        return [results[pid] for pid in sorted(results) if results[pid] is not None]

    def rolling_report(
        self,
        team: str,
        year: int,
        pid: Optional[int] = None,
        last_n_games: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        last_n_days: Optional[int] = None,
    ) -> list[PlayerRollingAveragesWithPercentiles]:
        """
        Rolling averages for a team's players with in-team percentiles.

        Args:
            team: Team name
            year: Season
            pid: Return only this player (still ranked against the team)
            last_n_games: Window of each player's N most recent games
            start_date: Inclusive range start (YYYYMMDD or YYYY-MM-DD)
            end_date: Inclusive range end
            last_n_days: Range ending at the team's latest game

        Raises:
            InvalidWindowError: Bad window parameters
        """
        games = self.repository.load_game_stats(year, team)
        window = resolve_window(
            games,
            last_n_games=last_n_games,
            start_date=start_date,
            end_date=end_date,
            last_n_days=last_n_days,
            default_last_n_games=self.default_last_n_games,
        )
        averages = self.rolling_averages(games, year, team, window)
        if not averages:
            return []

        season_rows = self.repository.load_player_stats(year, team)
        by_pid = {row.pid: row for row in season_rows if row.pid is not None}
        by_name = {row.player_name: row for row in season_rows}
        enriched = [
            PlayerRollingAverages(**record.model_dump(), **_constants_for(record, by_pid, by_name))
            for record in averages
        ]

        percentiles = rank_population(averages, warn_small_cohort=False)
        constant_percentiles = rank_columns(
            [record.model_dump(include=set(SEASON_CONSTANT_STATS)) for record in enriched],
            SEASON_CONSTANT_STATS,
        )

        report = []
        for record, pct, constant_pct in zip(enriched, percentiles, constant_percentiles):
            if pid is not None and record.pid != pid:
                continue
            report.append(
                PlayerRollingAveragesWithPercentiles(
                    **record.model_dump(),
                    **pct.model_dump(exclude=set(IDENTITY_FIELDS)),
                    **constant_pct,
                )
            )
        logger.info(
            "Rolling report for %s %d: %d players (window=%s)",
            team,
            year,
            len(report),
            window,
        )
        return report


# Singleton instance
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get the report service backed by the global PostgreSQL pool."""
    global _report_service
    if _report_service is None:
        from ..pg_connection import get_postgres_db
        from ..repositories import get_stats_repository

        _report_service = ReportService(get_stats_repository(get_postgres_db()))
    return _report_service
