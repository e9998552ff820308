"""
Slice selection over a collection of game lines.

A slice is the subset of one (pid, year, team) key's games that a report
averages over: the full season, the most recent N games, or an inclusive
date range. Dates are fixed-width YYYYMMDD strings, so lexicographic order is
chronological order.

Selectors return None when nothing matches, which callers must keep distinct
from a slice whose games average to zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..core.models import GameRecord
from .averages import SliceAggregator


@dataclass(frozen=True)
class GameSlice:
    """Selected games for one key plus the display name resolved from them."""

    games: tuple[GameRecord, ...]
    player_name: str

    def __len__(self) -> int:
        return len(self.games)


def games_for_key(
    games: Iterable[GameRecord], pid: int, year: int, team: str
) -> list[GameRecord]:
    """All games matching (pid, year, team), in input order."""
    return [g for g in games if g.pid == pid and g.year == year and g.team == team]


def sort_by_date(games: Iterable[GameRecord]) -> list[GameRecord]:
    """Chronological order by numdate. Stable for games sharing a date."""
    return sorted(games, key=lambda g: g.numdate)


def _make_slice(games: list[GameRecord]) -> Optional[GameSlice]:
    if not games:
        return None
    return GameSlice(tuple(games), SliceAggregator.resolve_player_name(games))


def select_season(
    games: Iterable[GameRecord], pid: int, year: int, team: str
) -> Optional[GameSlice]:
    """Every game for the key."""
    return _make_slice(games_for_key(games, pid, year, team))


def select_last_n(
    games: Iterable[GameRecord], pid: int, year: int, team: str, n: int
) -> Optional[GameSlice]:
    """
    The key's N most recent games.

    Input order is not trusted; games are sorted by date before the tail is
    taken. When fewer than N games exist, all of them are returned.

    Raises:
        ValueError: If n is not positive
    """
    if n <= 0:
        raise ValueError(f"last_n must be positive, got {n}")
    ordered = sort_by_date(games_for_key(games, pid, year, team))
    return _make_slice(ordered[-n:])


def select_date_range(
    games: Iterable[GameRecord],
    pid: int,
    year: int,
    team: str,
    start_date: str,
    end_date: str,
) -> Optional[GameSlice]:
    """The key's games with start_date <= numdate <= end_date."""
    matched = [
        g for g in games_for_key(games, pid, year, team) if start_date <= g.numdate <= end_date
    ]
    return _make_slice(sort_by_date(matched))
