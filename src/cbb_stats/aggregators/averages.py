"""
Game-slice averages aggregator.

Reduces a slice of one player's games (full season, last N games, or a date
range) to a single AveragesRecord. Games where the player logged no minutes
are discarded before anything is summed.

Every statistic in STAT_SPECS is combined by its rule:
- MEAN: sum of the per-game values / games played
- EFFECTIVE_FG: (2PM + 3PM + 0.5 * 3PM) / (2PA + 3PA) over summed totals
- TRUE_SHOOTING: PTS / (2 * (2PA + 3PA + 0.44 * FTA)) over summed totals

Shooting percentages are never the mean of per-game percentages.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from ..core.models import AveragesRecord, GameRecord
from ..core.types import STAT_SPECS, UNKNOWN_PLAYER_NAME, StatRule

# Every GameRecord field that gets a running sum
SUMMED_FIELDS: tuple[str, ...] = tuple(dict.fromkeys(spec.source for spec in STAT_SPECS))


def _effective_fg(totals: dict[str, float]) -> float:
    attempts = totals["two_pa"] + totals["tpa"]
    if attempts == 0:
        return 0.0
    return (totals["two_pm"] + totals["tpm"] + 0.5 * totals["tpm"]) / attempts


def _true_shooting(totals: dict[str, float]) -> float:
    shots = 2 * (totals["two_pa"] + totals["tpa"] + 0.44 * totals["fta"])
    if shots == 0:
        return 0.0
    return totals["pts"] / shots


RATIO_RULES: dict[StatRule, Callable[[dict[str, float]], float]] = {
    StatRule.EFFECTIVE_FG: _effective_fg,
    StatRule.TRUE_SHOOTING: _true_shooting,
}


class SliceAggregator:
    """Aggregate a player's game lines into slice averages."""

    @staticmethod
    def filter_played(games: Iterable[GameRecord]) -> list[GameRecord]:
        """Drop games with an absent or non-positive minutes indicator."""
        return [game for game in games if game.played]

    @staticmethod
    def resolve_player_name(games: Iterable[GameRecord]) -> str:
        """First non-empty player name in the slice, else "Unknown"."""
        for game in games:
            if game.player_name:
                return game.player_name
        return UNKNOWN_PLAYER_NAME

    @staticmethod
    def sum_stats(games: Iterable[GameRecord]) -> dict[str, float]:
        """Running float sum of every summed field; absent values count as 0."""
        totals = dict.fromkeys(SUMMED_FIELDS, 0.0)
        for game in games:
            for field_name in SUMMED_FIELDS:
                value = getattr(game, field_name)
                if value is not None:
                    totals[field_name] += float(value)
        return totals

    @staticmethod
    def compute_averages(totals: dict[str, float], games_played: int) -> dict[str, float]:
        """
        Apply each statistic's combination rule to summed totals.

        Args:
            totals: Output of sum_stats
            games_played: Number of qualifying games (must be > 0)

        Returns:
            Mapping of avg_* field name to value
        """
        averages: dict[str, float] = {}
        for spec in STAT_SPECS:
            if spec.rule is StatRule.MEAN:
                averages[spec.average_field] = totals[spec.source] / games_played
            else:
                averages[spec.average_field] = RATIO_RULES[spec.rule](totals)
        return averages

    @classmethod
    def aggregate(
        cls,
        games: Sequence[GameRecord],
        pid: int,
        year: int,
        team: str,
        player_name: Optional[str] = None,
    ) -> Optional[AveragesRecord]:
        """
        Reduce a slice of games to one averages record.

        Args:
            games: Game lines for one (pid, year, team) key
            pid: Player id
            year: Season
            team: Team name
            player_name: Display name; resolved from the slice when omitted

        Returns:
            AveragesRecord, or None when no game in the slice has minutes
        """
        played = cls.filter_played(games)
        if not played:
            return None

        if player_name is None:
            player_name = cls.resolve_player_name(games)

        totals = cls.sum_stats(played)
        return AveragesRecord(
            pid=pid,
            year=year,
            team=team,
            player_name=player_name,
            games_played=len(played),
            **cls.compute_averages(totals, len(played)),
        )


def aggregate_games(
    games: Sequence[GameRecord],
    pid: int,
    year: int,
    team: str,
    player_name: Optional[str] = None,
) -> Optional[AveragesRecord]:
    """Module-level shortcut for SliceAggregator.aggregate."""
    return SliceAggregator.aggregate(games, pid, year, team, player_name)
