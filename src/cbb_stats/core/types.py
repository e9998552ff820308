"""
Core types and constants for CBB Stats.

This module provides:
- StatRule enum describing how a per-game statistic combines across games
- StatSpec dataclass, one entry per averaged statistic
- STAT_SPECS, the statistic table shared by the aggregator, the percentile
  ranker, the storage layer and the API
- Unified table names

Every averaged statistic `x` is stored as `avg_x` and ranked as `pct_x`.
"""

from dataclasses import dataclass
from enum import Enum


class StatRule(str, Enum):
    """How a statistic is combined across the games of a slice."""

    MEAN = "mean"  # sum of per-game values / games played
    EFFECTIVE_FG = "effective_fg"  # ratio of summed makes / summed attempts
    TRUE_SHOOTING = "true_shooting"  # summed points / summed shooting possessions


@dataclass(frozen=True)
class StatSpec:
    """
    One averaged statistic.

    Attributes:
        name: Canonical stat name (suffix of avg_/pct_ columns)
        source: GameRecord field the per-game value is read from
        rule: Combination rule across games
        label: Human-readable label for API metadata
    """

    name: str
    source: str
    rule: StatRule = StatRule.MEAN
    label: str = ""

    @property
    def average_field(self) -> str:
        return f"avg_{self.name}"

    @property
    def percentile_field(self) -> str:
        return f"pct_{self.name}"


# =============================================================================
# STAT TABLE - order matches the stored column order
# =============================================================================

STAT_SPECS: tuple[StatSpec, ...] = (
    StatSpec("min_per", "min_per", label="Minutes %"),
    StatSpec("o_rtg", "o_rtg", label="Offensive Rating"),
    StatSpec("usg", "usage", label="Usage %"),
    StatSpec("e_fg", "e_fg", StatRule.EFFECTIVE_FG, label="Effective FG%"),
    StatSpec("ts_per", "ts_per", StatRule.TRUE_SHOOTING, label="True Shooting %"),
    StatSpec("orb_per", "orb_per", label="Off Rebound %"),
    StatSpec("drb_per", "drb_per", label="Def Rebound %"),
    StatSpec("ast_per", "ast_per", label="Assist %"),
    StatSpec("to_per", "to_per", label="Turnover %"),
    StatSpec("dunks_made", "dunks_made", label="Dunks Made"),
    StatSpec("dunks_att", "dunks_att", label="Dunks Attempted"),
    StatSpec("rim_made", "rim_made", label="Rim Makes"),
    StatSpec("rim_att", "rim_att", label="Rim Attempts"),
    StatSpec("mid_made", "mid_made", label="Mid-Range Makes"),
    StatSpec("mid_att", "mid_att", label="Mid-Range Attempts"),
    StatSpec("two_pm", "two_pm", label="2PT Made"),
    StatSpec("two_pa", "two_pa", label="2PT Attempted"),
    StatSpec("tpm", "tpm", label="3PT Made"),
    StatSpec("tpa", "tpa", label="3PT Attempted"),
    StatSpec("ftm", "ftm", label="FT Made"),
    StatSpec("fta", "fta", label="FT Attempted"),
    StatSpec("bpm_rd", "bpm_rd", label="BPM (Rd)"),
    StatSpec("obpm", "obpm", label="Offensive BPM"),
    StatSpec("dbpm", "dbpm", label="Defensive BPM"),
    StatSpec("bpm_net", "bpm_net", label="BPM (Net)"),
    StatSpec("pts", "pts", label="Points"),
    StatSpec("orb", "orb", label="Off Rebounds"),
    StatSpec("drb", "drb", label="Def Rebounds"),
    StatSpec("ast", "ast", label="Assists"),
    StatSpec("tov", "tov", label="Turnovers"),
    StatSpec("stl", "stl", label="Steals"),
    StatSpec("blk", "blk", label="Blocks"),
    StatSpec("stl_per", "stl_per", label="Steal %"),
    StatSpec("blk_per", "blk_per", label="Block %"),
    StatSpec("pf", "pf", label="Fouls"),
    StatSpec("possessions", "possessions", label="Possessions"),
    StatSpec("bpm", "bpm", label="BPM"),
    StatSpec("sbpm", "sbpm", label="Stable BPM"),
    StatSpec("inches", "inches", label="Height (in)"),
    StatSpec("opstyle", "opstyle", label="Opponent Style"),
    StatSpec("quality", "quality", label="Opponent Quality"),
    StatSpec("win1", "win1", label="Win (1)"),
    StatSpec("win2", "win2", label="Win (2)"),
)

STAT_NAMES: tuple[str, ...] = tuple(spec.name for spec in STAT_SPECS)
AVERAGE_FIELDS: tuple[str, ...] = tuple(spec.average_field for spec in STAT_SPECS)
PERCENTILE_FIELDS: tuple[str, ...] = tuple(spec.percentile_field for spec in STAT_SPECS)

# Identity columns shared by averages and percentile records
IDENTITY_FIELDS: tuple[str, ...] = ("pid", "year", "team", "player_name")

# Season-long constants merged into rolling reports from the player season feed
SEASON_CONSTANT_FIELDS: tuple[str, ...] = (
    "conf",
    "player_type",
    "yr",
    "ht",
    "porpag",
    "dporpag",
    "drtg",
    "adjoe",
)

# Numeric season constants that are also ranked within a rolling cohort
SEASON_CONSTANT_STATS: tuple[str, ...] = ("porpag", "dporpag", "drtg", "adjoe")

UNKNOWN_PLAYER_NAME = "Unknown"


def get_stat_spec(name: str) -> StatSpec:
    """
    Look up a statistic by canonical name.

    Raises:
        KeyError: If the stat is not in STAT_SPECS
    """
    for spec in STAT_SPECS:
        if spec.name == name:
            return spec
    raise KeyError(name)


# =============================================================================
# Unified table names
# =============================================================================

GAME_STATS_TABLE = "game_stats"
PLAYER_STATS_TABLE = "player_stats"
TEAM_STATS_TABLE = "team_stats"
SEASON_AVERAGES_TABLE = "player_season_avg_stats"
SEASON_PERCENTILES_TABLE = "player_season_percentiles"
