"""
Base repository protocols.

Defines the abstract interface for stats persistence, so the report service
and CLI never depend on a particular database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..core.models import (
    AveragesRecord,
    GameRecord,
    PercentileRecord,
    PlayerSeasonStats,
    TeamSeasonStats,
)


class StatsRepository(ABC):
    """
    Abstract interface for feed rows and derived season tables.

    Save methods are idempotent upserts keyed on each table's natural key
    and return the number of rows written.
    """

    # -- Game lines ----------------------------------------------------------

    @abstractmethod
    def save_game_stats(self, games: Sequence[GameRecord]) -> int:
        """
        Upsert player game lines.

        Lines without a complete (pid, year, team) key are not stored.
        """
        ...

    @abstractmethod
    def load_game_stats(
        self,
        year: int,
        team: Optional[str] = None,
        pid: Optional[int] = None,
    ) -> list[GameRecord]:
        """
        Load game lines for a season, optionally narrowed to a team and/or player.

        Returns:
            Game lines ordered by date
        """
        ...

    # -- Season feeds --------------------------------------------------------

    @abstractmethod
    def save_player_stats(self, year: int, rows: Sequence[PlayerSeasonStats]) -> int:
        """Upsert season player feed rows for a season."""
        ...

    @abstractmethod
    def load_player_stats(
        self, year: int, team: Optional[str] = None
    ) -> list[PlayerSeasonStats]:
        """Season player feed rows, optionally for one team."""
        ...

    @abstractmethod
    def save_team_stats(self, year: int, rows: Sequence[TeamSeasonStats]) -> int:
        """Upsert season team results."""
        ...

    @abstractmethod
    def load_team_stats(self, year: int) -> list[TeamSeasonStats]:
        """Season team results ordered by rank."""
        ...

    # -- Derived season tables -----------------------------------------------

    @abstractmethod
    def replace_season_averages(self, year: int, records: Sequence[AveragesRecord]) -> int:
        """Replace every stored season average for a season."""
        ...

    @abstractmethod
    def load_season_averages(
        self, year: int, team: Optional[str] = None
    ) -> list[AveragesRecord]:
        """Stored season averages, optionally for one team."""
        ...

    @abstractmethod
    def replace_season_percentiles(
        self, year: int, records: Sequence[PercentileRecord]
    ) -> int:
        """Replace every stored season percentile for a season."""
        ...

    @abstractmethod
    def load_season_percentiles(
        self, year: int, team: Optional[str] = None
    ) -> list[PercentileRecord]:
        """Stored season percentiles, optionally for one team."""
        ...
