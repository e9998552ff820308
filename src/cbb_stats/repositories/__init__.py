"""
Repository abstraction layer.

Provides a database-agnostic interface for stats persistence.

Usage:
    from cbb_stats.repositories import get_stats_repository

    repo = get_stats_repository(db)
    repo.save_game_stats(games)
    averages = repo.load_season_averages(2026, team="Duke")
"""

from typing import TYPE_CHECKING

from .base import StatsRepository

if TYPE_CHECKING:
    from ..pg_connection import PostgresDB

__all__ = [
    "StatsRepository",
    "get_stats_repository",
]


def get_stats_repository(db: "PostgresDB") -> StatsRepository:
    """
    Get the stats repository for the given database connection.

    Args:
        db: Database connection

    Returns:
        StatsRepository implementation
    """
    from .postgres import PostgresStatsRepository

    return PostgresStatsRepository(db)
