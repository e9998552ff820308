"""
CBB Stats

College basketball statistics from barttorvik.com: feed ingestion, season
and rolling player averages, and cohort percentile ranks served over HTTP.

Usage:
    from cbb_stats import build_season_averages, rank_population

    averages = build_season_averages(games)
    percentiles = rank_population(averages)
"""

from .aggregators import (
    SliceAggregator,
    aggregate_games,
    build_season_averages,
    select_date_range,
    select_last_n,
    select_season,
)
from .percentiles import percentile_rank, rank_columns, rank_population

__version__ = "1.0.0"

__all__ = [
    "SliceAggregator",
    "aggregate_games",
    "build_season_averages",
    "select_date_range",
    "select_last_n",
    "select_season",
    "percentile_rank",
    "rank_columns",
    "rank_population",
]
