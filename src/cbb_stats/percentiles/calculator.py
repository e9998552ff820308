"""
Cohort percentile ranking.

Percentile of a value within a population:

    (count strictly less + 0.5 * count equal) / n * 100

Ties share the mid-rank, so a population of identical values ranks every
member at 50.0. An empty population ranks everything at 0.0.

Each statistic is ranked independently against its own column. A column is
sorted once and every member is located by binary search, so ranking n
records over k statistics costs O(k * n log n).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np

from ..core.models import AveragesRecord, PercentileRecord
from ..core.types import STAT_SPECS
from .config import SMALL_SAMPLE_WARNING_THRESHOLD

logger = logging.getLogger(__name__)


def percentile_rank(value: float, sorted_population: Sequence[float]) -> float:
    """
    Percentile rank of a single value.

    Args:
        value: The value to rank
        sorted_population: Ascending population the value is ranked against

    Returns:
        Percentile in [0, 100]; 0.0 for an empty population
    """
    population = np.asarray(sorted_population, dtype=float)
    n = population.size
    if n == 0:
        return 0.0
    less = int(np.searchsorted(population, value, side="left"))
    less_or_equal = int(np.searchsorted(population, value, side="right"))
    return (less + 0.5 * (less_or_equal - less)) * 100 / n


def rank_column(values: Sequence[float]) -> np.ndarray:
    """Percentile of every member of a column against the column itself."""
    column = np.asarray(values, dtype=float)
    n = column.size
    if n == 0:
        return np.zeros(0)
    ordered = np.sort(column)
    less = np.searchsorted(ordered, column, side="left")
    less_or_equal = np.searchsorted(ordered, column, side="right")
    return (less + 0.5 * (less_or_equal - less)) * 100 / n


class PercentileCalculator:
    """Rank averages records within a cohort."""

    @staticmethod
    def rank_population(
        averages: Sequence[AveragesRecord],
        warn_small_cohort: bool = True,
    ) -> list[PercentileRecord]:
        """
        Percentile profile for every member of the population.

        Args:
            averages: The complete cohort (e.g. every player of a season)
            warn_small_cohort: Log a WARNING below SMALL_SAMPLE_WARNING_THRESHOLD.
                Team cohorts are always small and pass False (DEBUG instead).

        Returns:
            One PercentileRecord per input record, in input order
        """
        n = len(averages)
        if n == 0:
            return []
        if n < SMALL_SAMPLE_WARNING_THRESHOLD:
            level = logging.WARNING if warn_small_cohort else logging.DEBUG
            logger.log(level, "Ranking a small cohort of %d players", n)

        percentiles: dict[str, np.ndarray] = {}
        for spec in STAT_SPECS:
            column = [getattr(record, spec.average_field) for record in averages]
            percentiles[spec.percentile_field] = rank_column(column)

        results = []
        for i, record in enumerate(averages):
            results.append(
                PercentileRecord(
                    pid=record.pid,
                    year=record.year,
                    team=record.team,
                    player_name=record.player_name,
                    **{field: float(values[i]) for field, values in percentiles.items()},
                )
            )
        return results


def rank_population(
    averages: Sequence[AveragesRecord],
    warn_small_cohort: bool = True,
) -> list[PercentileRecord]:
    """Module-level shortcut for PercentileCalculator.rank_population."""
    return PercentileCalculator.rank_population(averages, warn_small_cohort)


def rank_columns(
    rows: Sequence[Mapping[str, Any]],
    columns: Iterable[str],
) -> list[dict[str, Optional[float]]]:
    """
    Rank named numeric columns of arbitrary rows.

    Rows where a column is absent are left out of that column's population
    and get None for it.

    Returns:
        One {"pct_<column>": value} dict per row, in input order
    """
    ranked: list[dict[str, Optional[float]]] = [{} for _ in rows]
    for column in columns:
        present = [i for i, row in enumerate(rows) if row.get(column) is not None]
        scores = rank_column([float(rows[i][column]) for i in present])
        for out in ranked:
            out[f"pct_{column}"] = None
        for i, score in zip(present, scores):
            ranked[i][f"pct_{column}"] = float(score)
    return ranked
