"""
Pytest configuration for cbb-stats tests.
"""

import os
from pathlib import Path
from typing import Optional, Sequence

import pytest
from dotenv import load_dotenv

from cbb_stats.core.models import (
    AveragesRecord,
    GameRecord,
    PercentileRecord,
    PlayerSeasonStats,
    TeamSeasonStats,
)
from cbb_stats.repositories import StatsRepository


def pytest_configure(config):
    """Load DATABASE_URL from a repo-level .env if one exists."""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)


@pytest.fixture(scope="session")
def database_url():
    """Get the PostgreSQL database URL."""
    url = os.environ.get("DATABASE_URL")
    if not url:
        pytest.skip("DATABASE_URL not set")
    return url


def make_game(**overrides) -> GameRecord:
    """A played game line for player 42 on DUKE in 2026, with overrides."""
    fields = {
        "pid": 42,
        "year": 2026,
        "team": "DUKE",
        "player_name": "Cooper Flagg",
        "numdate": "20251104",
        "datetext": "11-04",
        "opponent": "Maine",
        "muid": "Maine-Duke11-04",
        "loc": "H",
        "cls": "Fr",
        "min_per": 30.0,
        "pts": 10.0,
    }
    fields.update(overrides)
    return GameRecord(**fields)


@pytest.fixture
def game_factory():
    """Factory for GameRecord instances with sensible defaults."""
    return make_game


class FakeStatsRepository(StatsRepository):
    """In-memory StatsRepository for service and API tests."""

    def __init__(self):
        self.games: list[GameRecord] = []
        self.players: dict[int, list[PlayerSeasonStats]] = {}
        self.teams: dict[int, list[TeamSeasonStats]] = {}
        self.averages: dict[int, list[AveragesRecord]] = {}
        self.percentiles: dict[int, list[PercentileRecord]] = {}

    def save_game_stats(self, games: Sequence[GameRecord]) -> int:
        keyed = [g for g in games if g.pid is not None and g.year is not None and g.team]
        self.games.extend(keyed)
        return len(keyed)

    def load_game_stats(
        self,
        year: int,
        team: Optional[str] = None,
        pid: Optional[int] = None,
    ) -> list[GameRecord]:
        games = [
            g
            for g in self.games
            if g.year == year
            and (team is None or g.team == team)
            and (pid is None or g.pid == pid)
        ]
        return sorted(games, key=lambda g: g.numdate)

    def save_player_stats(self, year: int, rows: Sequence[PlayerSeasonStats]) -> int:
        self.players.setdefault(year, []).extend(rows)
        return len(rows)

    def load_player_stats(self, year: int, team: Optional[str] = None) -> list[PlayerSeasonStats]:
        return [r for r in self.players.get(year, []) if team is None or r.team == team]

    def save_team_stats(self, year: int, rows: Sequence[TeamSeasonStats]) -> int:
        self.teams.setdefault(year, []).extend(rows)
        return len(rows)

    def load_team_stats(self, year: int) -> list[TeamSeasonStats]:
        return sorted(self.teams.get(year, []), key=lambda r: r.rank)

    def replace_season_averages(self, year: int, records: Sequence[AveragesRecord]) -> int:
        self.averages[year] = list(records)
        return len(records)

    def load_season_averages(self, year: int, team: Optional[str] = None) -> list[AveragesRecord]:
        return [r for r in self.averages.get(year, []) if team is None or r.team == team]

    def replace_season_percentiles(self, year: int, records: Sequence[PercentileRecord]) -> int:
        self.percentiles[year] = list(records)
        return len(records)

    def load_season_percentiles(
        self, year: int, team: Optional[str] = None
    ) -> list[PercentileRecord]:
        return [r for r in self.percentiles.get(year, []) if team is None or r.team == team]


@pytest.fixture
def fake_repo():
    """Empty in-memory repository."""
    return FakeStatsRepository()
