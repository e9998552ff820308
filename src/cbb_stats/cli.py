#!/usr/bin/env python3
"""
Command-line interface for stats database management.

Usage:
    cbb-stats init                                   # Create tables
    cbb-stats status                                 # Row counts per table
    cbb-stats ingest --year 2026                     # Fetch and store all feeds
    cbb-stats averages --year 2026                   # Rebuild season averages + percentiles
    cbb-stats report --team Duke --year 2026         # Season report
    cbb-stats report --team Duke --rolling --last-n-games 5
    cbb-stats report --team Duke --rolling --last-n-days 30 --pid 12345
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .core.config import get_settings
from .services.reports import get_report_service

logger = logging.getLogger("cbb_stats.cli")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize the database with schema."""
    from .pg_connection import get_postgres_db
    from .schema import init_database

    try:
        init_database(get_postgres_db())
        logger.info("Database initialized successfully")
        return 0
    except Exception as e:
        logger.error("Failed to initialize database: %s", e)
        return 1


def cmd_status(args: argparse.Namespace) -> int:
    """Show row counts for every table."""
    from .core.types import (
        GAME_STATS_TABLE,
        PLAYER_STATS_TABLE,
        SEASON_AVERAGES_TABLE,
        SEASON_PERCENTILES_TABLE,
        TEAM_STATS_TABLE,
    )
    from .pg_connection import get_postgres_db

    db = get_postgres_db()
    if not db.is_initialized():
        logger.error("Database not initialized. Run 'init' first.")
        return 1

    print("\nStats Database Status")
    print("=" * 50)
    for table in (
        GAME_STATS_TABLE,
        PLAYER_STATS_TABLE,
        TEAM_STATS_TABLE,
        SEASON_AVERAGES_TABLE,
        SEASON_PERCENTILES_TABLE,
    ):
        row = db.fetchone(f"SELECT COUNT(*) AS count FROM {table}")
        print(f"  {table}: {row['count'] if row else 0:,}")
    return 0


def cmd_ingest(args: argparse.Namespace) -> int:
    """Fetch the season feeds and store them."""
    from .providers import BartTorvikClient

    year = args.year or get_settings().current_season
    service = get_report_service()

    async def run() -> dict[str, int]:
        async with BartTorvikClient() as client:
            return await service.ingest_season(client, year)

    try:
        counts = asyncio.run(run())
    except Exception as e:
        logger.error("Ingest failed for %d: %s", year, e)
        return 1

    logger.info(
        "Ingested %d: %d game lines, %d players, %d teams",
        year,
        counts["games"],
        counts["players"],
        counts["teams"],
    )
    if args.rebuild:
        return cmd_averages(args)
    return 0


def cmd_averages(args: argparse.Namespace) -> int:
    """Rebuild season averages and percentiles from stored game lines."""
    year = args.year or get_settings().current_season
    try:
        averages, percentiles = get_report_service().rebuild_season_tables(year)
    except Exception as e:
        logger.error("Failed to rebuild season tables for %d: %s", year, e)
        return 1

    logger.info("%d: %d season averages, %d percentile profiles", year, averages, percentiles)
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Print a season or rolling report as JSON."""
    from .services.reports import InvalidWindowError

    year = args.year or get_settings().current_season
    service = get_report_service()

    try:
        if args.rolling:
            report = service.rolling_report(
                args.team,
                year,
                pid=args.pid,
                last_n_games=args.last_n_games,
                start_date=args.start_date,
                end_date=args.end_date,
                last_n_days=args.last_n_days,
            )
        else:
            report = service.season_report(args.team, year)
    except InvalidWindowError as e:
        logger.error("Invalid window: %s", e)
        return 1
    except Exception as e:
        logger.error("Report failed for %s %d: %s", args.team, year, e)
        return 1

    if not report:
        logger.error("No data for %s %d", args.team, year)
        return 1

    print(json.dumps([record.model_dump() for record in report], indent=2))
    return 0


def main() -> int:
    """Main entry point."""
    load_dotenv()
    configure_logging(get_settings().log_level)

    parser = argparse.ArgumentParser(
        description="CBB Stats CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    subparsers.add_parser("init", help="Create database tables")

    # status command
    subparsers.add_parser("status", help="Show database status")

    # ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Fetch and store the season feeds")
    ingest_parser.add_argument("--year", type=int, help="Season year (default: current)")
    ingest_parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Rebuild season averages and percentiles afterwards",
    )

    # averages command
    avg_parser = subparsers.add_parser(
        "averages", help="Rebuild season averages and percentiles"
    )
    avg_parser.add_argument("--year", type=int, help="Season year (default: current)")

    # report command
    report_parser = subparsers.add_parser("report", help="Print a team report")
    report_parser.add_argument("--team", required=True, help="Team name")
    report_parser.add_argument("--year", type=int, help="Season year (default: current)")
    report_parser.add_argument("--rolling", action="store_true", help="Rolling window report")
    report_parser.add_argument("--pid", type=int, help="Only this player (rolling)")
    report_parser.add_argument("--last-n-games", type=int, help="Each player's N most recent games")
    report_parser.add_argument("--start-date", help="Inclusive range start (YYYYMMDD)")
    report_parser.add_argument("--end-date", help="Inclusive range end (YYYYMMDD)")
    report_parser.add_argument("--last-n-days", type=int, help="Days back from the latest game")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "status": cmd_status,
        "ingest": cmd_ingest,
        "averages": cmd_averages,
        "report": cmd_report,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
