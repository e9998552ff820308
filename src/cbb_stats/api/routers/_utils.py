"""
Shared utilities for API routers.

Contains common parameter validation used across report endpoints.
"""

from datetime import datetime

from ...core.config import get_settings
from ..errors import ValidationError

# Season validation constants
MIN_SEASON_YEAR = 2008
MAX_SEASON_YEAR_OFFSET = 1  # Current year + 1


def validate_season(year: int | None) -> int:
    """
    Validate and normalize the season parameter.

    Args:
        year: Season year (None uses the configured current season)

    Returns:
        Validated season year

    Raises:
        ValidationError: If season is out of valid range
    """
    if year is None:
        return get_settings().current_season

    max_season = datetime.now().year + MAX_SEASON_YEAR_OFFSET

    if year < MIN_SEASON_YEAR:
        raise ValidationError(
            message=f"Season year must be {MIN_SEASON_YEAR} or later",
            detail=f"Received: {year}",
        )

    if year > max_season:
        raise ValidationError(
            message=f"Season year cannot be more than {MAX_SEASON_YEAR_OFFSET} year(s) in the future",
            detail=f"Received: {year}, max allowed: {max_season}",
        )

    return year


def validate_team(team: str) -> str:
    """Strip the team name and reject blanks."""
    team = team.strip()
    if not team:
        raise ValidationError(message="Team name is required")
    return team
