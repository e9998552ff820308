"""
barttorvik.com feed client.

Three season feeds:
- Per-game player lines: gzipped JSON, an array of 53-element arrays
- Season player stats: header-less CSV, 64 columns
- Team results: JSON, an array of 45-element arrays

Rows are mapped to models through the named field lists below, so nothing
downstream indexes a feed row by position. A row that fails to decode is
logged and skipped; the first few failures are logged with the row itself.
"""

from __future__ import annotations

import csv
import gzip
import io
import logging
from typing import Any, Callable, Mapping, Sequence, TypeVar, Union

import msgspec
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings, get_settings
from ..core.http import BaseApiClient
from ..core.models import GameRecord, PlayerSeasonStats, TeamSeasonStats

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Failed rows logged with their contents before further errors are summarized
VERBOSE_ERROR_LIMIT = 5


class FeedDecodeError(ValueError):
    """A feed row could not be mapped onto its model."""


# =============================================================================
# Feed column layouts
# =============================================================================

# {year}_all_advgames.json.gz; "tt" and "pp" are stored as team and player_name
GAME_FIELDS: tuple[str, ...] = (
    "numdate", "datetext", "opstyle", "quality", "win1", "opponent", "muid",
    "win2", "min_per", "o_rtg", "usage", "e_fg", "ts_per", "orb_per", "drb_per",
    "ast_per", "to_per", "dunks_made", "dunks_att", "rim_made", "rim_att",
    "mid_made", "mid_att", "two_pm", "two_pa", "tpm", "tpa", "ftm", "fta",
    "bpm_rd", "obpm", "dbpm", "bpm_net", "pts", "orb", "drb", "ast", "tov",
    "stl", "blk", "stl_per", "blk_per", "pf", "possessions", "bpm", "sbpm",
    "loc", "team", "player_name", "inches", "cls", "pid", "year",
)

# Game columns that must be present strings
GAME_TEXT_FIELDS = frozenset(
    {"numdate", "datetext", "opponent", "muid", "loc", "team", "player_name", "cls"}
)

# getadvstats.php?year={year}&csv=1
PLAYER_FIELDS: tuple[str, ...] = (
    "player_name", "team", "conf", "gp", "min_per", "o_rtg", "usg", "e_fg",
    "ts_per", "orb_per", "drb_per", "ast_per", "to_per", "ftm", "fta", "ft_per",
    "two_pm", "two_pa", "two_p_per", "tpm", "tpa", "tp_per", "blk_per",
    "stl_per", "ftr", "yr", "ht", "num", "porpag", "adjoe", "pfr", "year",
    "pid", "player_type", "rec_rank", "ast_tov", "rim_made", "rim_attempted",
    "mid_made", "mid_attempted", "rim_pct", "mid_pct", "dunks_made",
    "dunks_attempted", "dunk_pct", "pick", "drtg", "adrtg", "dporpag", "stops",
    "bpm", "obpm", "dbpm", "gbpm", "mp", "ogbpm", "dgbpm", "oreb", "dreb",
    "treb", "ast", "stl", "blk", "pts",
)

# {year}_team_results.json
TEAM_FIELDS: tuple[str, ...] = tuple(TeamSeasonStats.model_fields)


# =============================================================================
# Row decoders
# =============================================================================


def _validate(model: type[ModelT], data: Mapping[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise FeedDecodeError(str(e)) from e


def _zip_row(fields: Sequence[str], row: Sequence[Any], name: str) -> dict[str, Any]:
    if len(row) < len(fields):
        raise FeedDecodeError(f"{name} row has {len(row)} columns, expected {len(fields)}")
    return dict(zip(fields, row))


def decode_game_row(row: Sequence[Any]) -> GameRecord:
    """
    Map one positional game row onto a GameRecord.

    Raises:
        FeedDecodeError: Short row, missing text column or bad value
    """
    if not isinstance(row, (list, tuple)):
        raise FeedDecodeError(f"game row is {type(row).__name__}, expected array")
    data = _zip_row(GAME_FIELDS, row, "game")
    for name in GAME_TEXT_FIELDS:
        if not isinstance(data[name], (str, int)):
            raise FeedDecodeError(f"game column {name!r} is not text: {data[name]!r}")
    return _validate(GameRecord, data)


def decode_player_row(row: Sequence[str]) -> PlayerSeasonStats:
    """
    Map one CSV row onto PlayerSeasonStats. Cells are whitespace-trimmed.

    Raises:
        FeedDecodeError: Short row or bad value
    """
    data = _zip_row(PLAYER_FIELDS, [cell.strip() for cell in row], "player")
    return _validate(PlayerSeasonStats, data)


def decode_team_row(row: Union[Sequence[Any], Mapping[str, Any]]) -> TeamSeasonStats:
    """
    Map one team results row (positional array or keyed object).

    Raises:
        FeedDecodeError: Short row or bad value
    """
    if isinstance(row, Mapping):
        return _validate(TeamSeasonStats, row)
    return _validate(TeamSeasonStats, _zip_row(TEAM_FIELDS, row, "team"))


def decode_rows(
    rows: Sequence[Any],
    decoder: Callable[[Any], ModelT],
    feed: str,
) -> list[ModelT]:
    """
    Decode every row, skipping (and counting) the ones that fail.

    Args:
        rows: Raw rows from the feed
        decoder: Row decoder raising FeedDecodeError on bad input
        feed: Feed name for log messages
    """
    records: list[ModelT] = []
    error_count = 0
    for i, row in enumerate(rows):
        try:
            records.append(decoder(row))
        except FeedDecodeError as e:
            error_count += 1
            if error_count <= VERBOSE_ERROR_LIMIT:
                logger.error("Error decoding %s row %d: %s | row=%r", feed, i, e, row)
            elif error_count == VERBOSE_ERROR_LIMIT + 1:
                logger.error("... further %s decode errors suppressed", feed)

    logger.info("Decoded %d %s records", len(records), feed)
    if error_count:
        logger.warning("Skipped %d malformed %s rows", error_count, feed)
    return records


def parse_game_payload(payload: bytes) -> list[GameRecord]:
    """Decode a (possibly gzipped) game feed body."""
    if payload[:2] == b"\x1f\x8b":
        payload = gzip.decompress(payload)
    try:
        rows = msgspec.json.decode(payload, type=list[Any])
    except msgspec.DecodeError as e:
        raise FeedDecodeError(f"game feed is not a JSON array: {e}") from e
    return decode_rows(rows, decode_game_row, "game")


def parse_player_csv(text: str) -> list[PlayerSeasonStats]:
    """Decode the header-less player CSV body."""
    rows = [row for row in csv.reader(io.StringIO(text)) if row]
    return decode_rows(rows, decode_player_row, "player")


def parse_team_payload(payload: bytes) -> list[TeamSeasonStats]:
    """Decode the team results JSON body."""
    try:
        rows = msgspec.json.decode(payload, type=list[Any])
    except msgspec.DecodeError as e:
        raise FeedDecodeError(f"team feed is not a JSON array: {e}") from e
    return decode_rows(rows, decode_team_row, "team")


# =============================================================================
# Client
# =============================================================================


class BartTorvikClient(BaseApiClient):
    """barttorvik.com season feed client."""

    BASE_URL = "https://barttorvik.com"

    def __init__(self, settings: Settings | None = None, **kwargs: Any):
        self._settings = settings or get_settings()
        super().__init__(
            base_url=self._settings.feed_base_url,
            requests_per_minute=self._settings.feed_requests_per_minute,
            timeout=self._settings.feed_timeout,
            max_retries=self._settings.feed_max_retries,
            **kwargs,
        )

    async def fetch_game_stats(self, year: int) -> list[GameRecord]:
        """Every player game line for a season."""
        path = self._settings.game_stats_path.format(year=year)
        logger.info("Fetching game stats from %s%s", self._base_url, path)
        payload = await self._get_bytes(path)
        return parse_game_payload(payload)

    async def fetch_player_season_stats(self, year: int) -> list[PlayerSeasonStats]:
        """Season-level player rows."""
        path = self._settings.player_stats_path.format(year=year)
        logger.info("Fetching player season stats from %s%s", self._base_url, path)
        text = await self._get_text(path)
        return parse_player_csv(text)

    async def fetch_team_results(self, year: int) -> list[TeamSeasonStats]:
        """Season team results."""
        path = self._settings.team_results_path.format(year=year)
        logger.info("Fetching team results from %s%s", self._base_url, path)
        payload = await self._get_bytes(path)
        return parse_team_payload(payload)
