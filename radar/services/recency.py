"""
Recency classification for reports.

Callers pass the window explicitly: detectors look at different horizons
(1 h traffic, 2 h fuel, 3 h recent activity, 6 h clusters, 24 h daily, 7 d weekly).
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import Recency
from radar.models.report import Report


def report_age(report: Report, now: datetime) -> timedelta:
    return now - report.timestamp


def is_recent(report: Report, now: datetime, window: timedelta) -> bool:
    """True when the report is younger than `window`."""
    return report_age(report, now) < window


def is_fresh(report: Report, now: datetime, config: Optional[InsightConfig] = None) -> bool:
    """True when the report is younger than the fresh window (2 hours)."""
    config = config or get_insight_config()
    return is_recent(report, now, config.fresh_window)


def classify_recency(report: Report, now: datetime, config: Optional[InsightConfig] = None) -> Recency:
    config = config or get_insight_config()
    if is_fresh(report, now, config):
        return Recency.FRESH
    if is_recent(report, now, config.recent_window):
        return Recency.RECENT
    return Recency.STALE


def recent_reports(reports: Iterable[Report], now: datetime, window: timedelta) -> List[Report]:
    return [report for report in reports if is_recent(report, now, window)]
