"""
Configuration for percentile calculations.

Defines which statistics are ranked and which of them read better when
lower. Percentiles themselves are never inverted; LOWER_IS_BETTER is
published through stat_catalog() (served at GET /api/stats/meta) so the
consumer can flip the scale for display.
"""

from __future__ import annotations

from typing import Any

from ..core.types import SEASON_CONSTANT_STATS, STAT_NAMES, get_stat_spec

# Averaged statistics ranked within a cohort, in stored column order
RANKED_STATS: tuple[str, ...] = STAT_NAMES

# Season-long constants ranked within a rolling cohort
RANKED_SEASON_CONSTANTS: tuple[str, ...] = SEASON_CONSTANT_STATS

# Below this cohort size percentiles are noisy; logged as a warning
SMALL_SAMPLE_WARNING_THRESHOLD = 20

# Stats where a lower value is the better performance
LOWER_IS_BETTER = frozenset(
    {
        "to_per",
        "tov",
        "pf",
        "drtg",
    }
)

SEASON_CONSTANT_LABELS = {
    "porpag": "Points Over Replacement per Adj. Game",
    "dporpag": "Defensive PORPAG",
    "drtg": "Defensive Rating",
    "adjoe": "Adjusted Offensive Efficiency",
}


def is_lower_better(stat_name: str) -> bool:
    """Check if a lower value is better for this stat."""
    return stat_name in LOWER_IS_BETTER


def stat_catalog() -> dict[str, list[dict[str, Any]]]:
    """
    Describe every ranked column for report consumers.

    Returns:
        {"averaged": [...], "season_constants": [...]} where each entry has
        name, label, the report field(s) it appears under and lower_is_better
    """
    averaged = []
    for name in RANKED_STATS:
        spec = get_stat_spec(name)
        averaged.append(
            {
                "name": spec.name,
                "label": spec.label,
                "rule": spec.rule.value,
                "average_field": spec.average_field,
                "percentile_field": spec.percentile_field,
                "lower_is_better": is_lower_better(spec.name),
            }
        )

    constants = [
        {
            "name": name,
            "label": SEASON_CONSTANT_LABELS.get(name, name),
            "field": name,
            "percentile_field": f"pct_{name}",
            "lower_is_better": is_lower_better(name),
        }
        for name in RANKED_SEASON_CONSTANTS
    ]
    return {"averaged": averaged, "season_constants": constants}
