"""
Services module for CBB Stats.

This module provides business logic services:
- reports: season/rolling player reports, season table rebuilds, feed ingestion

Usage:
    from cbb_stats.services import ReportService, get_report_service

    service = get_report_service()
    report = service.rolling_report("Duke", 2026, last_n_days=30)
"""

from .reports import InvalidWindowError, ReportService, get_report_service

__all__ = [
    "InvalidWindowError",
    "ReportService",
    "get_report_service",
]
