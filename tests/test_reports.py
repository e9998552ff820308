"""
Tests for the report service: season tables, season reports, rolling reports.
"""

import asyncio
import logging
import threading

import pytest

from cbb_stats.core.models import PlayerSeasonStats, TeamSeasonStats
from cbb_stats.services.reports import (
    InvalidWindowError,
    ReportService,
    RollingWindow,
    normalize_date,
    resolve_window,
)

from conftest import make_game


@pytest.fixture
def team_games():
    """Three DUKE players and one UNC player over November 2025."""
    return [
        make_game(pid=1, player_name="A", numdate="20251101", pts=10),
        make_game(pid=1, player_name="A", numdate="20251110", pts=20),
        make_game(pid=1, player_name="A", numdate="20251120", pts=30),
        make_game(pid=2, player_name="B", numdate="20251101", pts=5),
        make_game(pid=2, player_name="B", numdate="20251110", pts=5),
        make_game(pid=2, player_name="B", numdate="20251120", pts=5),
        make_game(pid=3, player_name="C", numdate="20251101", pts=40),
        make_game(pid=3, player_name="C", numdate="20251201", pts=0, min_per=0),
        make_game(pid=9, player_name="Z", team="UNC", numdate="20251105", pts=100),
    ]


@pytest.fixture
def season_rows():
    return [
        PlayerSeasonStats(
            player_name="A",
            team="DUKE",
            conf="ACC",
            pid=1,
            year=2026,
            player_type="Wing F",
            yr="Fr",
            ht="6-9",
            porpag=3.0,
            dporpag=1.5,
            drtg=95.0,
            adjoe=120.0,
        ),
        # Matched by name: the feed row carries no pid
        PlayerSeasonStats(
            player_name="B",
            team="DUKE",
            conf="ACC",
            year=2026,
            porpag=1.0,
            dporpag=0.5,
            drtg=105.0,
            adjoe=100.0,
        ),
    ]


@pytest.fixture
def service(fake_repo, team_games, season_rows):
    fake_repo.save_game_stats(team_games)
    fake_repo.save_player_stats(2026, season_rows)
    return ReportService(fake_repo, max_workers=2, default_last_n_games=10)


def _by_pid(report):
    return {record.pid: record for record in report}


class TestResolveWindow:
    def test_default_is_last_n(self):
        assert resolve_window([], default_last_n_games=7) == RollingWindow(last_n_games=7)

    def test_explicit_last_n(self):
        assert resolve_window([], last_n_games=3) == RollingWindow(last_n_games=3)

    def test_date_range_normalized(self):
        window = resolve_window([], start_date="2025-11-01", end_date="20251130")
        assert window == RollingWindow(start_date="20251101", end_date="20251130")
        assert window.is_date_range

    def test_last_n_days_anchored_at_latest_game(self, team_games):
        window = resolve_window(team_games, last_n_days=20)
        assert window == RollingWindow(start_date="20251112", end_date="20251201")

    @pytest.mark.parametrize("days,start", [(7, "20251124"), (1, "20251130")])
    def test_last_n_days_counts_calendar_days(self, days, start):
        window = resolve_window([make_game(numdate="20251130")], last_n_days=days)
        assert window == RollingWindow(start_date=start, end_date="20251130")

    def test_last_n_days_ignores_malformed_dates(self):
        games = [make_game(numdate="2025-11-30"), make_game(numdate="20251120")]
        window = resolve_window(games, last_n_days=7)
        assert window == RollingWindow(start_date="20251114", end_date="20251120")

    def test_last_n_days_only_malformed_dates_falls_back(self):
        window = resolve_window([make_game(numdate="Nov 30")], last_n_days=7, default_last_n_games=4)
        assert window == RollingWindow(last_n_games=4)

    def test_last_n_days_without_games_falls_back(self):
        window = resolve_window([], last_n_days=5, default_last_n_games=4)
        assert window == RollingWindow(last_n_games=4)

    @pytest.mark.parametrize(
        "params",
        [
            {"last_n_games": 5, "last_n_days": 10},
            {"last_n_games": 5, "start_date": "20251101", "end_date": "20251130"},
            {"start_date": "20251101"},
            {"end_date": "20251130"},
            {"start_date": "20251201", "end_date": "20251101"},
            {"last_n_games": 0},
            {"last_n_days": -1},
            {"start_date": "2025-13-40", "end_date": "20251130"},
        ],
        ids=[
            "games-and-days",
            "games-and-range",
            "start-only",
            "end-only",
            "reversed-range",
            "zero-games",
            "negative-days",
            "bad-date",
        ],
    )
    def test_invalid_windows(self, params):
        with pytest.raises(InvalidWindowError):
            resolve_window([], **params)

    def test_normalize_date(self):
        assert normalize_date(" 2025-11-04 ") == "20251104"
        with pytest.raises(InvalidWindowError):
            normalize_date("Nov 4")


class TestSeasonTables:
    def test_rebuild_writes_every_group(self, service, fake_repo):
        averages_written, percentiles_written = service.rebuild_season_tables(2026)
        assert averages_written == 4
        assert percentiles_written == 4
        assert {r.key for r in fake_repo.averages[2026]} == {
            (1, 2026, "DUKE"),
            (2, 2026, "DUKE"),
            (3, 2026, "DUKE"),
            (9, 2026, "UNC"),
        }

    def test_rebuild_excludes_unplayed_games(self, service, fake_repo):
        service.rebuild_season_tables(2026)
        record = next(r for r in fake_repo.averages[2026] if r.pid == 3)
        assert record.games_played == 1
        assert record.avg_pts == pytest.approx(40.0)

    def test_season_report_ranks_against_whole_season(self, service):
        service.rebuild_season_tables(2026)
        report = _by_pid(service.season_report("DUKE", 2026))

        assert set(report) == {1, 2, 3}
        # Season points: B 5, A 20, C 40, UNC's Z 100
        assert report[2].pct_pts == pytest.approx(12.5)
        assert report[1].pct_pts == pytest.approx(37.5)
        assert report[3].pct_pts == pytest.approx(62.5)
        assert report[1].avg_pts == pytest.approx(20.0)

    def test_season_report_skips_records_without_percentiles(self, service, fake_repo, caplog):
        service.rebuild_season_tables(2026)
        fake_repo.percentiles[2026] = [p for p in fake_repo.percentiles[2026] if p.pid != 1]
        with caplog.at_level(logging.WARNING):
            report = service.season_report("DUKE", 2026)
        assert {r.pid for r in report} == {2, 3}
        assert any("No season percentiles" in r.getMessage() for r in caplog.records)

    def test_season_report_empty_before_rebuild(self, service):
        assert service.season_report("DUKE", 2026) == []

    def test_season_averages_for_team(self, service):
        service.rebuild_season_tables(2026)
        assert [r.team for r in service.season_averages("UNC", 2026)] == ["UNC"]


class TestFeedRows:
    def test_player_games_oldest_first(self, service):
        games = service.player_games(1, 2026, "DUKE")
        assert [g.numdate for g in games] == ["20251101", "20251110", "20251120"]

    def test_player_games_unknown_player(self, service):
        assert service.player_games(77, 2026, "DUKE") == []

    def test_player_season_stats_for_team(self, service):
        assert [r.player_name for r in service.player_season_stats("DUKE", 2026)] == ["A", "B"]
        assert service.player_season_stats("UNC", 2026) == []

    def test_team_stats(self, service, fake_repo):
        fake_repo.save_team_stats(
            2026,
            [TeamSeasonStats(rank=2, team="UNC"), TeamSeasonStats(rank=1, team="DUKE")],
        )
        assert [r.team for r in service.team_stats(2026)] == ["DUKE", "UNC"]


class TestRollingReport:
    def test_last_n_games(self, service):
        report = _by_pid(service.rolling_report("DUKE", 2026, last_n_games=2))

        assert set(report) == {1, 2, 3}
        assert report[1].avg_pts == pytest.approx(25.0)
        assert report[1].games_played == 2
        # C's last two games include one without minutes
        assert report[3].games_played == 1
        assert report[3].avg_pts == pytest.approx(40.0)

    def test_cohort_is_the_team(self, service):
        report = _by_pid(service.rolling_report("DUKE", 2026, last_n_games=2))
        assert report[2].pct_pts == pytest.approx(100 / 6)
        assert report[1].pct_pts == pytest.approx(50.0)
        assert report[3].pct_pts == pytest.approx(500 / 6)

    def test_date_range(self, service):
        report = _by_pid(
            service.rolling_report("DUKE", 2026, start_date="2025-11-01", end_date="2025-11-10")
        )
        assert report[1].avg_pts == pytest.approx(15.0)
        assert report[2].avg_pts == pytest.approx(5.0)
        assert report[3].avg_pts == pytest.approx(40.0)

    def test_last_n_days(self, service):
        report = _by_pid(service.rolling_report("DUKE", 2026, last_n_days=20))
        # Window 20251112-20251201; C's only game there has no minutes
        assert set(report) == {1, 2}
        assert report[1].avg_pts == pytest.approx(30.0)

    def test_default_window(self, fake_repo, team_games):
        fake_repo.save_game_stats(team_games)
        service = ReportService(fake_repo, max_workers=1, default_last_n_games=1)
        report = _by_pid(service.rolling_report("DUKE", 2026))
        assert report[1].avg_pts == pytest.approx(30.0)
        assert 3 not in report

    def test_season_constants_merged(self, service):
        report = _by_pid(service.rolling_report("DUKE", 2026, last_n_games=3))

        assert report[1].conf == "ACC"
        assert report[1].player_type == "Wing F"
        assert report[1].ht == "6-9"
        assert report[2].drtg == pytest.approx(105.0)
        assert report[3].porpag is None

    def test_season_constants_ranked(self, service):
        report = _by_pid(service.rolling_report("DUKE", 2026, last_n_games=3))

        assert report[1].pct_porpag == pytest.approx(75.0)
        assert report[2].pct_porpag == pytest.approx(25.0)
        assert report[1].pct_drtg == pytest.approx(25.0)
        assert report[3].pct_porpag is None

    def test_pid_filter_keeps_team_ranking(self, service):
        full = _by_pid(service.rolling_report("DUKE", 2026, last_n_games=2))
        (single,) = service.rolling_report("DUKE", 2026, pid=2, last_n_games=2)
        assert single.pid == 2
        assert single.pct_pts == pytest.approx(full[2].pct_pts)

    def test_ordered_by_pid(self, service):
        report = service.rolling_report("DUKE", 2026, last_n_games=5)
        assert [r.pid for r in report] == [1, 2, 3]

    def test_team_cohort_does_not_warn(self, service, caplog):
        with caplog.at_level(logging.DEBUG, logger="cbb_stats.percentiles"):
            service.rolling_report("DUKE", 2026, last_n_games=2)
        small = [r for r in caplog.records if "small cohort" in r.getMessage()]
        assert small
        assert all(r.levelno == logging.DEBUG for r in small)

    def test_unknown_team_is_empty(self, service):
        assert service.rolling_report("KANSAS", 2026, last_n_games=5) == []

    def test_invalid_window_raises(self, service):
        with pytest.raises(InvalidWindowError):
            service.rolling_report("DUKE", 2026, last_n_games=3, last_n_days=3)


class _StubClient:
    def __init__(self, games, players, teams):
        self._games = games
        self._players = players
        self._teams = teams

    async def fetch_game_stats(self, year):
        return self._games

    async def fetch_player_season_stats(self, year):
        return self._players

    async def fetch_team_results(self, year):
        return self._teams


class _InterleavingClient(_StubClient):
    """Yields to the event loop inside every fetch and records the order."""

    def __init__(self, games, players, teams):
        super().__init__(games, players, teams)
        self.events = []

    async def _fetch(self, name, value):
        self.events.append(f"start {name}")
        await asyncio.sleep(0)
        self.events.append(f"end {name}")
        return value

    async def fetch_game_stats(self, year):
        return await self._fetch("games", self._games)

    async def fetch_player_season_stats(self, year):
        return await self._fetch("players", self._players)

    async def fetch_team_results(self, year):
        return await self._fetch("teams", self._teams)


class TestIngest:
    def test_ingest_stores_every_feed(self, fake_repo, team_games, season_rows):
        service = ReportService(fake_repo, max_workers=1)
        client = _StubClient(team_games, season_rows, [TeamSeasonStats(rank=1, team="DUKE")])

        counts = asyncio.run(service.ingest_season(client, 2026))

        assert counts == {"games": len(team_games), "players": 2, "teams": 1}
        assert len(fake_repo.load_game_stats(2026)) == len(team_games)

    def test_feeds_fetched_concurrently(self, fake_repo, team_games, season_rows):
        service = ReportService(fake_repo, max_workers=1)
        client = _InterleavingClient(team_games, season_rows, [])

        asyncio.run(service.ingest_season(client, 2026))

        assert client.events[:3] == ["start games", "start players", "start teams"]

    def test_saves_run_off_the_event_loop(self, fake_repo, team_games, season_rows):
        service = ReportService(fake_repo, max_workers=1)
        client = _StubClient(team_games, season_rows, [])
        threads = []
        save = fake_repo.save_game_stats

        def recording_save(games):
            threads.append(threading.current_thread())
            return save(games)

        fake_repo.save_game_stats = recording_save
        asyncio.run(service.ingest_season(client, 2026))

        assert threads and threads[0] is not threading.main_thread()
