"""
Tests for the barttorvik.com feed decoders and client.

No network: the client is exercised through httpx.MockTransport.
"""

import asyncio
import gzip
import logging

import httpx
import msgspec
import pytest

from cbb_stats.core import http
from cbb_stats.core.config import Settings
from cbb_stats.core.http import ExternalAPIError, RateLimitError
from cbb_stats.providers.barttorvik import (
    GAME_FIELDS,
    PLAYER_FIELDS,
    TEAM_FIELDS,
    BartTorvikClient,
    FeedDecodeError,
    decode_game_row,
    decode_player_row,
    decode_rows,
    decode_team_row,
    parse_game_payload,
    parse_player_csv,
    parse_team_payload,
)

GAME_TEXT = {
    "numdate": "20251104",
    "datetext": "11-04",
    "opponent": "Maine",
    "muid": "Maine-Duke11-04",
    "loc": "H",
    "team": "Duke",
    "player_name": "Cooper Flagg",
    "cls": "Fr",
}


def game_row(**overrides):
    """A 53-column positional game row."""
    values = {name: 0 for name in GAME_FIELDS}
    values.update(GAME_TEXT)
    values.update({"min_per": 31.5, "pts": 18, "pid": 72413, "year": 2026})
    values.update(overrides)
    return [values[name] for name in GAME_FIELDS]


def player_row(**overrides):
    """A 64-column CSV row as strings."""
    values = {name: "1" for name in PLAYER_FIELDS}
    values.update(
        {
            "player_name": "Cooper Flagg",
            "team": "Duke",
            "conf": "ACC",
            "yr": "Fr",
            "ht": "6-9",
            "num": "2",
            "player_type": "Wing F",
            "year": "2026",
            "pid": "72413",
            "porpag": "4.2",
        }
    )
    values.update(overrides)
    return [values[name] for name in PLAYER_FIELDS]


def team_row(**overrides):
    values = {name: 0 for name in TEAM_FIELDS}
    values.update({"rank": 1, "team": "Duke", "conf": "ACC", "record": "35-4", "adjoe": 128.3})
    values.update(overrides)
    return values


class TestFeedLayouts:
    def test_column_counts(self):
        assert len(GAME_FIELDS) == 53
        assert len(PLAYER_FIELDS) == 64
        assert len(TEAM_FIELDS) == 45

    def test_game_identity_columns(self):
        assert GAME_FIELDS.index("team") == 47
        assert GAME_FIELDS.index("player_name") == 48
        assert GAME_FIELDS[-2:] == ("pid", "year")


class TestGameRows:
    def test_decode(self):
        game = decode_game_row(game_row())
        assert game.pid == 72413
        assert game.year == 2026
        assert game.team == "Duke"
        assert game.player_name == "Cooper Flagg"
        assert game.numdate == "20251104"
        assert game.min_per == pytest.approx(31.5)
        assert game.pts == 18.0
        assert game.played

    def test_numeric_date_becomes_text(self):
        assert decode_game_row(game_row(numdate=20251104)).numdate == "20251104"

    def test_null_stat_is_absent(self):
        assert decode_game_row(game_row(ast=None)).ast is None

    @pytest.mark.parametrize("value,expected", [(0.7, 0), (3.9, 3), ("2.0", 2), (2026.0, 2026)])
    def test_fractional_integer_cells_truncated(self, value, expected):
        assert decode_game_row(game_row(win1=value)).win1 == expected

    def test_short_row(self):
        with pytest.raises(FeedDecodeError):
            decode_game_row(game_row()[:40])

    def test_not_an_array(self):
        with pytest.raises(FeedDecodeError):
            decode_game_row({"pid": 1})

    def test_text_column_wrong_type(self):
        with pytest.raises(FeedDecodeError):
            decode_game_row(game_row(team=["Duke"]))

    def test_bad_number(self):
        with pytest.raises(FeedDecodeError):
            decode_game_row(game_row(pts="lots"))

    def test_gzipped_payload(self):
        payload = gzip.compress(msgspec.json.encode([game_row(), game_row(numdate="20251108")]))
        games = parse_game_payload(payload)
        assert [g.numdate for g in games] == ["20251104", "20251108"]

    def test_plain_payload(self):
        assert len(parse_game_payload(msgspec.json.encode([game_row()]))) == 1

    def test_payload_not_json(self):
        with pytest.raises(FeedDecodeError):
            parse_game_payload(b"<html>")


class TestPlayerRows:
    def test_decode_trims_cells(self):
        row = player_row(player_name="  Cooper Flagg ", drtg=" 94.8")
        player = decode_player_row(row)
        assert player.player_name == "Cooper Flagg"
        assert player.drtg == pytest.approx(94.8)
        assert player.pid == 72413
        assert player.porpag == pytest.approx(4.2)

    def test_blank_numbers_are_absent(self):
        player = decode_player_row(player_row(porpag="", rec_rank=""))
        assert player.porpag is None
        assert player.rec_rank is None

    def test_short_row(self):
        with pytest.raises(FeedDecodeError):
            decode_player_row(player_row()[:10])

    def test_csv_body(self):
        lines = [",".join(player_row()), "", ",".join(player_row(player_name="Kon Knueppel"))]
        players = parse_player_csv("\n".join(lines))
        assert [p.player_name for p in players] == ["Cooper Flagg", "Kon Knueppel"]


class TestTeamRows:
    def test_positional_row(self):
        team = decode_team_row(list(team_row().values()))
        assert team.rank == 1
        assert team.team == "Duke"
        assert team.adjoe == pytest.approx(128.3)

    def test_keyed_row(self):
        team = decode_team_row(team_row(team="Houston", rank=2))
        assert team.team == "Houston"
        assert team.rank == 2

    def test_short_row(self):
        with pytest.raises(FeedDecodeError):
            decode_team_row([1, "Duke"])

    def test_payload(self):
        payload = msgspec.json.encode([list(team_row().values()), team_row(rank=2, team="Auburn")])
        assert [t.team for t in parse_team_payload(payload)] == ["Duke", "Auburn"]


class TestDecodeRows:
    def test_bad_rows_skipped_and_logged(self, caplog):
        rows = [game_row(), game_row()[:5], game_row(pid=7)]
        with caplog.at_level(logging.WARNING):
            games = decode_rows(rows, decode_game_row, "game")
        assert [g.pid for g in games] == [72413, 7]
        assert any("Skipped 1 malformed game rows" in r.getMessage() for r in caplog.records)

    def test_verbose_errors_limited(self, caplog):
        rows = [[1]] * 8
        with caplog.at_level(logging.ERROR):
            assert decode_rows(rows, decode_game_row, "game") == []
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 6
        assert "suppressed" in errors[-1].getMessage()


def _client(handler) -> BartTorvikClient:
    settings = Settings(feed_requests_per_minute=6000, feed_max_retries=1)
    return BartTorvikClient(settings=settings, transport=httpx.MockTransport(handler))


class TestClient:
    def test_fetches_every_feed(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path.endswith("_all_advgames.json.gz"):
                body = gzip.compress(msgspec.json.encode([game_row()]))
                return httpx.Response(200, content=body)
            if request.url.path == "/getadvstats.php":
                assert request.url.params["year"] == "2026"
                return httpx.Response(200, text=",".join(player_row()))
            return httpx.Response(200, content=msgspec.json.encode([team_row()]))

        async def run():
            async with _client(handler) as client:
                return (
                    await client.fetch_game_stats(2026),
                    await client.fetch_player_season_stats(2026),
                    await client.fetch_team_results(2026),
                )

        games, players, teams = asyncio.run(run())
        assert seen == [
            "/2026_all_advgames.json.gz",
            "/getadvstats.php",
            "/2026_team_results.json",
        ]
        assert games[0].pid == 72413
        assert players[0].conf == "ACC"
        assert teams[0].team == "Duke"

    def test_client_error_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, text="missing")

        async def run():
            async with _client(handler) as client:
                await client.fetch_team_results(1999)

        with pytest.raises(ExternalAPIError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.status_code == 404
        assert len(calls) == 1

    def test_rate_limited_then_served(self):
        responses = [
            httpx.Response(429, headers={"retry-after": "0"}),
            httpx.Response(200, content=msgspec.json.encode([team_row()])),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        settings = Settings(feed_requests_per_minute=6000, feed_max_retries=2)

        async def run():
            async with BartTorvikClient(settings=settings, transport=httpx.MockTransport(handler)) as client:
                return await client.fetch_team_results(2026)

        assert [t.team for t in asyncio.run(run())] == ["Duke"]
        assert responses == []

    def test_server_error_then_served(self, monkeypatch):
        monkeypatch.setattr(http, "_backoff", lambda attempt: 0)
        responses = [
            httpx.Response(503, text="busy"),
            httpx.Response(200, content=msgspec.json.encode([team_row()])),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        settings = Settings(feed_requests_per_minute=6000, feed_max_retries=2)

        async def run():
            async with BartTorvikClient(settings=settings, transport=httpx.MockTransport(handler)) as client:
                return await client.fetch_team_results(2026)

        assert [t.team for t in asyncio.run(run())] == ["Duke"]
        assert responses == []

    def test_rate_limit_exhausted(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"retry-after": "0"})

        async def run():
            async with _client(handler) as client:
                await client.fetch_team_results(2026)

        with pytest.raises(RateLimitError):
            asyncio.run(run())
