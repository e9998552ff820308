"""
Upstream feed providers.

Usage:
    from cbb_stats.providers import BartTorvikClient

    async with BartTorvikClient() as client:
        games = await client.fetch_game_stats(2026)
"""

from .barttorvik import (
    BartTorvikClient,
    FeedDecodeError,
    decode_game_row,
    decode_player_row,
    decode_team_row,
)

__all__ = [
    "BartTorvikClient",
    "FeedDecodeError",
    "decode_game_row",
    "decode_player_row",
    "decode_team_row",
]
