"""
Stats router - serves player, team and report data for the frontend tables.

Endpoints:
- GET /players - Season player feed rows for a team
- GET /team-stats - Season team results
- GET /game-stats - One player's game lines
- GET /player-season-averages - Stored season averages for a team
- GET /player-stats-with-percentiles - Season averages + season percentiles
- GET /player-rolling-averages - Rolling window averages ranked within the team
- GET /stats/meta - Labels and lower-is-better flags for every ranked column
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query

from ..dependencies import ReportsDependency
from ..errors import NotFoundError, ValidationError
from ._utils import validate_season, validate_team
from ...percentiles import stat_catalog
from ...services.reports import InvalidWindowError

logger = logging.getLogger(__name__)

router = APIRouter()

TeamQuery = Annotated[str, Query(description="Team name, e.g. Duke")]
YearQuery = Annotated[int | None, Query(description="Season year (defaults to current)")]


@router.get("/players", response_model=None)
def get_players(team: TeamQuery, reports: ReportsDependency, year: YearQuery = None) -> list[dict[str, Any]]:
    """Season-level player stats for every player on a team."""
    team = validate_team(team)
    year = validate_season(year)
    return [row.model_dump() for row in reports.player_season_stats(team, year)]


@router.get("/team-stats", response_model=None)
def get_team_stats(reports: ReportsDependency, year: YearQuery = None) -> list[dict[str, Any]]:
    """Season team results ordered by rank."""
    year = validate_season(year)
    return [row.model_dump() for row in reports.team_stats(year)]


@router.get("/game-stats", response_model=None)
def get_game_stats(
    pid: Annotated[int, Query(description="Player id")],
    team: TeamQuery,
    reports: ReportsDependency,
    year: YearQuery = None,
) -> list[dict[str, Any]]:
    """One player's game lines in chronological order."""
    team = validate_team(team)
    year = validate_season(year)
    games = reports.player_games(pid, year, team)
    if not games:
        raise NotFoundError(resource="Game stats", identifier=f"player {pid}", context=f"{team} {year}")
    return [game.model_dump() for game in games]


@router.get("/player-season-averages", response_model=None)
def get_player_season_averages(
    team: TeamQuery, reports: ReportsDependency, year: YearQuery = None
) -> list[dict[str, Any]]:
    """Stored full-season averages for a team's players."""
    team = validate_team(team)
    year = validate_season(year)
    averages = reports.season_averages(team, year)
    if not averages:
        raise NotFoundError(resource="Season averages", identifier=team, context=str(year))
    return [record.model_dump() for record in averages]


@router.get("/player-stats-with-percentiles", response_model=None)
def get_player_stats_with_percentiles(
    team: TeamQuery, reports: ReportsDependency, year: YearQuery = None
) -> list[dict[str, Any]]:
    """Season averages with percentiles ranked across every player of the season."""
    team = validate_team(team)
    year = validate_season(year)
    report = reports.season_report(team, year)
    if not report:
        raise NotFoundError(resource="Season report", identifier=team, context=str(year))
    return [record.model_dump() for record in report]


@router.get("/player-rolling-averages", response_model=None)
def get_player_rolling_averages(
    team: TeamQuery,
    reports: ReportsDependency,
    year: YearQuery = None,
    pid: Annotated[int | None, Query(description="Only this player")] = None,
    last_n_games: Annotated[int | None, Query(description="Each player's N most recent games")] = None,
    start_date: Annotated[str | None, Query(description="Inclusive start, YYYYMMDD or YYYY-MM-DD")] = None,
    end_date: Annotated[str | None, Query(description="Inclusive end, YYYYMMDD or YYYY-MM-DD")] = None,
    last_n_days: Annotated[int | None, Query(description="N calendar days ending on the team's latest game")] = None,
) -> list[dict[str, Any]]:
    """
    Rolling averages with season-long constants, ranked within the team.

    Only one window may be given; with none, each player's most recent
    games (DEFAULT_LAST_N_GAMES) are used.
    """
    team = validate_team(team)
    year = validate_season(year)
    try:
        report = reports.rolling_report(
            team,
            year,
            pid=pid,
            last_n_games=last_n_games,
            start_date=start_date,
            end_date=end_date,
            last_n_days=last_n_days,
        )
    except InvalidWindowError as e:
        raise ValidationError(message="Invalid rolling window", detail=str(e)) from e

    if not report:
        target = f"player {pid}" if pid is not None else team
        raise NotFoundError(resource="Rolling averages", identifier=target, context=f"{team} {year}")
    return [record.model_dump() for record in report]


@router.get("/stats/meta", response_model=None)
def get_stats_meta() -> dict[str, list[dict[str, Any]]]:
    """
    Describe the ranked columns of both reports.

    Percentiles are never inverted, so consumers use lower_is_better to
    flip the colour scale for stats such as turnovers.
    """
    return stat_catalog()
