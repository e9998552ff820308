"""
Percentile ranking for player averages.
"""

from .calculator import (
    PercentileCalculator,
    percentile_rank,
    rank_columns,
    rank_population,
)
from .config import (
    LOWER_IS_BETTER,
    SMALL_SAMPLE_WARNING_THRESHOLD,
    is_lower_better,
    stat_catalog,
)

__all__ = [
    "PercentileCalculator",
    "percentile_rank",
    "rank_columns",
    "rank_population",
    "LOWER_IS_BETTER",
    "SMALL_SAMPLE_WARNING_THRESHOLD",
    "is_lower_better",
    "stat_catalog",
]
