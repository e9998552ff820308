"""
Pydantic models for stats entities.

These models are used for:
- Validating feed rows before they reach the aggregation core
- Typed records passed between the aggregator, ranker and storage
- API response serialization
"""

from __future__ import annotations

import math
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

Percentile = Annotated[float, Field(ge=0, le=100)]


def _blank_to_none(value: Any) -> Any:
    """Feeds encode missing numbers as empty strings."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _truncate_to_int(value: Any) -> Any:
    """Integer columns occasionally carry fractional values; keep the whole part."""
    value = _blank_to_none(value)
    if isinstance(value, str) and "." in value:
        try:
            value = float(value)
        except ValueError:
            return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return value


OptionalFloat = Annotated[Optional[float], BeforeValidator(_blank_to_none)]
OptionalInt = Annotated[Optional[int], BeforeValidator(_truncate_to_int)]


# =============================================================================
# Feed Records
# =============================================================================


class GameRecord(BaseModel):
    """One player's statistical line from one game."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    # Identity
    pid: OptionalInt = None
    year: OptionalInt = None
    team: str = ""
    player_name: str = ""
    numdate: str = ""  # YYYYMMDD, lexicographically sortable
    datetext: str = ""
    opponent: str = ""
    muid: str = ""
    loc: str = ""
    cls: str = ""

    # Minutes indicator (>0 means the player appeared)
    min_per: OptionalFloat = None

    # Per-game rates and ratings
    o_rtg: OptionalFloat = None
    usage: OptionalFloat = None
    e_fg: OptionalFloat = None
    ts_per: OptionalFloat = None
    orb_per: OptionalFloat = None
    drb_per: OptionalFloat = None
    ast_per: OptionalFloat = None
    to_per: OptionalFloat = None
    stl_per: OptionalFloat = None
    blk_per: OptionalFloat = None

    # Shot zones
    dunks_made: OptionalInt = None
    dunks_att: OptionalInt = None
    rim_made: OptionalInt = None
    rim_att: OptionalInt = None
    mid_made: OptionalInt = None
    mid_att: OptionalInt = None
    two_pm: OptionalInt = None
    two_pa: OptionalInt = None
    tpm: OptionalInt = None
    tpa: OptionalInt = None
    ftm: OptionalInt = None
    fta: OptionalInt = None

    # Box plus/minus
    bpm_rd: OptionalFloat = None
    obpm: OptionalFloat = None
    dbpm: OptionalFloat = None
    bpm_net: OptionalFloat = None
    bpm: OptionalFloat = None
    sbpm: OptionalFloat = None

    # Counting stats
    pts: OptionalFloat = None
    orb: OptionalFloat = None
    drb: OptionalFloat = None
    ast: OptionalFloat = None
    tov: OptionalFloat = None
    stl: OptionalFloat = None
    blk: OptionalFloat = None
    pf: OptionalFloat = None
    possessions: OptionalFloat = None

    # Context
    inches: OptionalInt = None
    opstyle: OptionalInt = None
    quality: OptionalInt = None
    win1: OptionalInt = None
    win2: OptionalInt = None

    @field_validator("team", "player_name", "numdate", "datetext", "opponent", "muid", "loc", "cls", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def played(self) -> bool:
        """Whether the player logged minutes in this game."""
        return self.min_per is not None and self.min_per > 0


class PlayerSeasonStats(BaseModel):
    """Season-level player line from the advanced stats CSV feed."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    player_name: str
    team: str
    conf: str = ""
    gp: OptionalInt = None
    min_per: OptionalFloat = None
    o_rtg: OptionalFloat = None
    usg: OptionalFloat = None
    e_fg: OptionalFloat = None
    ts_per: OptionalFloat = None
    orb_per: OptionalFloat = None
    drb_per: OptionalFloat = None
    ast_per: OptionalFloat = None
    to_per: OptionalFloat = None
    ftm: OptionalInt = None
    fta: OptionalInt = None
    ft_per: OptionalFloat = None
    two_pm: OptionalInt = None
    two_pa: OptionalInt = None
    two_p_per: OptionalFloat = None
    tpm: OptionalInt = None
    tpa: OptionalInt = None
    tp_per: OptionalFloat = None
    blk_per: OptionalFloat = None
    stl_per: OptionalFloat = None
    ftr: OptionalFloat = None
    yr: Optional[str] = None
    ht: Optional[str] = None
    num: Optional[str] = None
    porpag: OptionalFloat = None
    adjoe: OptionalFloat = None
    pfr: OptionalFloat = None
    year: OptionalInt = None
    pid: OptionalInt = None
    player_type: Optional[str] = None
    rec_rank: OptionalFloat = None
    ast_tov: OptionalFloat = None
    rim_made: OptionalFloat = None
    rim_attempted: OptionalFloat = None
    mid_made: OptionalFloat = None
    mid_attempted: OptionalFloat = None
    rim_pct: OptionalFloat = None
    mid_pct: OptionalFloat = None
    dunks_made: OptionalFloat = None
    dunks_attempted: OptionalFloat = None
    dunk_pct: OptionalFloat = None
    pick: OptionalFloat = None
    drtg: OptionalFloat = None
    adrtg: OptionalFloat = None
    dporpag: OptionalFloat = None
    stops: OptionalFloat = None
    bpm: OptionalFloat = None
    obpm: OptionalFloat = None
    dbpm: OptionalFloat = None
    gbpm: OptionalFloat = None
    mp: OptionalFloat = None
    ogbpm: OptionalFloat = None
    dgbpm: OptionalFloat = None
    oreb: OptionalFloat = None
    dreb: OptionalFloat = None
    treb: OptionalFloat = None
    ast: OptionalFloat = None
    stl: OptionalFloat = None
    blk: OptionalFloat = None
    pts: OptionalFloat = None

    @field_validator("conf", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class TeamSeasonStats(BaseModel):
    """Season team results row."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    rank: int
    team: str
    conf: str = ""
    record: str = ""
    adjoe: OptionalFloat = None
    adjoe_rank: OptionalInt = None
    adjde: OptionalFloat = None
    adjde_rank: OptionalInt = None
    barthag: OptionalFloat = None
    barthag_rank: OptionalInt = None
    proj_wins: OptionalInt = None
    proj_losses: OptionalInt = None
    proj_conf_wins: OptionalInt = None
    proj_conf_losses: OptionalInt = None
    conf_record: str = ""
    sos: OptionalFloat = None
    nconf_sos: OptionalFloat = None
    conf_sos: OptionalFloat = None
    proj_sos: OptionalFloat = None
    proj_nconf_sos: OptionalFloat = None
    proj_conf_sos: OptionalFloat = None
    elite_sos: OptionalFloat = None
    elite_ncsos: OptionalFloat = None
    opp_adjoe: OptionalFloat = None
    opp_adjde: OptionalFloat = None
    opp_proj_adjoe: OptionalFloat = None
    opp_proj_adjde: OptionalFloat = None
    conf_adjoe: OptionalFloat = None
    conf_adjde: OptionalFloat = None
    qual_adjoe: OptionalFloat = None
    qual_adjde: OptionalFloat = None
    qual_barthag: OptionalFloat = None
    qual_games: OptionalInt = None
    fun: OptionalFloat = None
    conf_pf: OptionalFloat = None
    conf_pa: OptionalFloat = None
    conf_poss: OptionalFloat = None
    conf_adj_o: OptionalFloat = None
    conf_adj_d: OptionalFloat = None
    conf_sos_remain: OptionalFloat = None
    conf_win_perc: OptionalFloat = None
    wab: OptionalFloat = None
    wab_rank: OptionalInt = None
    fun_rank: OptionalInt = None
    adj_tempo: OptionalFloat = None


# =============================================================================
# Aggregate Records
# =============================================================================


class AverageStats(BaseModel):
    """Average-valued statistic block, one field per STAT_SPECS entry."""

    model_config = ConfigDict(frozen=True)

    avg_min_per: float = 0.0
    avg_o_rtg: float = 0.0
    avg_usg: float = 0.0
    avg_e_fg: float = 0.0
    avg_ts_per: float = 0.0
    avg_orb_per: float = 0.0
    avg_drb_per: float = 0.0
    avg_ast_per: float = 0.0
    avg_to_per: float = 0.0
    avg_dunks_made: float = 0.0
    avg_dunks_att: float = 0.0
    avg_rim_made: float = 0.0
    avg_rim_att: float = 0.0
    avg_mid_made: float = 0.0
    avg_mid_att: float = 0.0
    avg_two_pm: float = 0.0
    avg_two_pa: float = 0.0
    avg_tpm: float = 0.0
    avg_tpa: float = 0.0
    avg_ftm: float = 0.0
    avg_fta: float = 0.0
    avg_bpm_rd: float = 0.0
    avg_obpm: float = 0.0
    avg_dbpm: float = 0.0
    avg_bpm_net: float = 0.0
    avg_pts: float = 0.0
    avg_orb: float = 0.0
    avg_drb: float = 0.0
    avg_ast: float = 0.0
    avg_tov: float = 0.0
    avg_stl: float = 0.0
    avg_blk: float = 0.0
    avg_stl_per: float = 0.0
    avg_blk_per: float = 0.0
    avg_pf: float = 0.0
    avg_possessions: float = 0.0
    avg_bpm: float = 0.0
    avg_sbpm: float = 0.0
    avg_inches: float = 0.0
    avg_opstyle: float = 0.0
    avg_quality: float = 0.0
    avg_win1: float = 0.0
    avg_win2: float = 0.0


class PercentileStats(BaseModel):
    """Percentile block (0-100), one field per STAT_SPECS entry."""

    model_config = ConfigDict(frozen=True)

    pct_min_per: Percentile = 0.0
    pct_o_rtg: Percentile = 0.0
    pct_usg: Percentile = 0.0
    pct_e_fg: Percentile = 0.0
    pct_ts_per: Percentile = 0.0
    pct_orb_per: Percentile = 0.0
    pct_drb_per: Percentile = 0.0
    pct_ast_per: Percentile = 0.0
    pct_to_per: Percentile = 0.0
    pct_dunks_made: Percentile = 0.0
    pct_dunks_att: Percentile = 0.0
    pct_rim_made: Percentile = 0.0
    pct_rim_att: Percentile = 0.0
    pct_mid_made: Percentile = 0.0
    pct_mid_att: Percentile = 0.0
    pct_two_pm: Percentile = 0.0
    pct_two_pa: Percentile = 0.0
    pct_tpm: Percentile = 0.0
    pct_tpa: Percentile = 0.0
    pct_ftm: Percentile = 0.0
    pct_fta: Percentile = 0.0
    pct_bpm_rd: Percentile = 0.0
    pct_obpm: Percentile = 0.0
    pct_dbpm: Percentile = 0.0
    pct_bpm_net: Percentile = 0.0
    pct_pts: Percentile = 0.0
    pct_orb: Percentile = 0.0
    pct_drb: Percentile = 0.0
    pct_ast: Percentile = 0.0
    pct_tov: Percentile = 0.0
    pct_stl: Percentile = 0.0
    pct_blk: Percentile = 0.0
    pct_stl_per: Percentile = 0.0
    pct_blk_per: Percentile = 0.0
    pct_pf: Percentile = 0.0
    pct_possessions: Percentile = 0.0
    pct_bpm: Percentile = 0.0
    pct_sbpm: Percentile = 0.0
    pct_inches: Percentile = 0.0
    pct_opstyle: Percentile = 0.0
    pct_quality: Percentile = 0.0
    pct_win1: Percentile = 0.0
    pct_win2: Percentile = 0.0


class AveragesRecord(AverageStats):
    """One (player, season, team) aggregate over a slice of games."""

    pid: int
    year: int
    team: str
    player_name: str
    games_played: int = Field(ge=1)

    @property
    def key(self) -> tuple[int, int, str]:
        return (self.pid, self.year, self.team)


class PercentileRecord(PercentileStats):
    """One (player, season, team) percentile profile within a cohort."""

    pid: int
    year: int
    team: str
    player_name: str

    @property
    def key(self) -> tuple[int, int, str]:
        return (self.pid, self.year, self.team)


class PlayerStatsWithPercentiles(AveragesRecord, PercentileStats):
    """Season averages joined with the season percentiles for the same key."""


class PlayerRollingAverages(AveragesRecord):
    """Rolling-window averages plus season-long constants from the season feed."""

    conf: Optional[str] = None
    player_type: Optional[str] = None  # Role
    yr: Optional[str] = None  # Class
    ht: Optional[str] = None  # Height
    porpag: OptionalFloat = None
    dporpag: OptionalFloat = None
    drtg: OptionalFloat = None
    adjoe: OptionalFloat = None


class PlayerRollingAveragesWithPercentiles(PlayerRollingAverages, PercentileStats):
    """Rolling averages ranked within their rolling cohort."""

    pct_porpag: Optional[Percentile] = None
    pct_dporpag: Optional[Percentile] = None
    pct_drtg: Optional[Percentile] = None
    pct_adjoe: Optional[Percentile] = None
