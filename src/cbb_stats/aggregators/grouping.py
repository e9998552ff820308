"""
Season grouping driver.

Partitions a season's game lines by (pid, year, team) and aggregates each
group into the season-averages population. Ranking reads that population as
a whole, so build_season_averages must return before percentiles start.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from ..core.models import AveragesRecord, GameRecord
from .averages import SliceAggregator

logger = logging.getLogger(__name__)

PlayerSeasonKey = tuple[int, int, str]


def group_by_player_season(
    games: Iterable[GameRecord],
) -> dict[PlayerSeasonKey, list[GameRecord]]:
    """
    Partition game lines by (pid, year, team).

    Lines missing a pid or year, or with an empty team, cannot be keyed;
    they are logged and skipped.
    """
    groups: dict[PlayerSeasonKey, list[GameRecord]] = defaultdict(list)
    skipped = 0
    for game in games:
        if game.pid is None or game.year is None or not game.team:
            skipped += 1
            logger.error(
                "Skipping game line with missing key fields "
                "(pid=%s, year=%s, team=%r, date=%s)",
                game.pid,
                game.year,
                game.team,
                game.numdate,
            )
            continue
        groups[(game.pid, game.year, game.team)].append(game)

    if skipped:
        logger.error("Skipped %d game lines without a complete key", skipped)
    return dict(groups)


def build_season_averages(games: Iterable[GameRecord]) -> list[AveragesRecord]:
    """
    Aggregate every (pid, year, team) group over its full season.

    Groups without a single game with minutes produce nothing.

    Returns:
        Averages records ordered by key
    """
    groups = group_by_player_season(games)
    population: list[AveragesRecord] = []
    for (pid, year, team), group in sorted(groups.items()):
        record = SliceAggregator.aggregate(group, pid, year, team)
        if record is not None:
            population.append(record)

    logger.info(
        "Aggregated %d season averages from %d player groups",
        len(population),
        len(groups),
    )
    return population
