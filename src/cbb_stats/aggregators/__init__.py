"""
Game-log aggregation.

Turns per-game player lines into averages over a slice of games:
- slices.py: full season, last N games, inclusive date range
- averages.py: minutes filter and table-driven averaging
- grouping.py: (pid, year, team) partitioning for season averages
"""

from .averages import SliceAggregator, aggregate_games
from .grouping import build_season_averages, group_by_player_season
from .slices import GameSlice, select_date_range, select_last_n, select_season

__all__ = [
    "SliceAggregator",
    "aggregate_games",
    "build_season_averages",
    "group_by_player_season",
    "GameSlice",
    "select_date_range",
    "select_last_n",
    "select_season",
]
