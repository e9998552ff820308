"""
Core module for CBB Stats.

This module provides the foundational components:
- Configuration management (config.py)
- Data models (models.py)
- Statistic table and table names (types.py)
- Shared HTTP client infrastructure (http.py)

Usage:
    from cbb_stats.core import Settings, get_settings
    from cbb_stats.core import STAT_SPECS, StatRule, StatSpec
    from cbb_stats.core import GameRecord, AveragesRecord, PercentileRecord
    from cbb_stats.core.http import BaseApiClient, ExternalAPIError
"""

# Configuration
from .config import Settings, get_settings

# Types
from .types import (
    StatRule,
    StatSpec,
    STAT_SPECS,
    STAT_NAMES,
    AVERAGE_FIELDS,
    PERCENTILE_FIELDS,
    get_stat_spec,
    GAME_STATS_TABLE,
    PLAYER_STATS_TABLE,
    TEAM_STATS_TABLE,
    SEASON_AVERAGES_TABLE,
    SEASON_PERCENTILES_TABLE,
)

# Models
from .models import (
    GameRecord,
    PlayerSeasonStats,
    TeamSeasonStats,
    AveragesRecord,
    PercentileRecord,
    PlayerStatsWithPercentiles,
    PlayerRollingAverages,
    PlayerRollingAveragesWithPercentiles,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "StatRule",
    "StatSpec",
    "STAT_SPECS",
    "STAT_NAMES",
    "AVERAGE_FIELDS",
    "PERCENTILE_FIELDS",
    "get_stat_spec",
    # Table name constants
    "GAME_STATS_TABLE",
    "PLAYER_STATS_TABLE",
    "TEAM_STATS_TABLE",
    "SEASON_AVERAGES_TABLE",
    "SEASON_PERCENTILES_TABLE",
    # Models
    "GameRecord",
    "PlayerSeasonStats",
    "TeamSeasonStats",
    "AveragesRecord",
    "PercentileRecord",
    "PlayerStatsWithPercentiles",
    "PlayerRollingAverages",
    "PlayerRollingAveragesWithPercentiles",
]
