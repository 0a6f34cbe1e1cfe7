"""
Confidence ranking for trend candidates and the summary bubble.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import SummaryItem, TrendPattern
from radar.models.report import GeoPoint, Report
from radar.services.pattern_detectors import group_by_category, run_detectors
from radar.services.proximity import nearby_reports, report_distance_km
from radar.services.recency import is_recent


def select_top_pattern(candidates: Sequence[TrendPattern]) -> Optional[TrendPattern]:
    """
    Highest-confidence candidate.

    Ties keep the earliest candidate, i.e. detector evaluation order.
    """
    best = None
    for candidate in candidates:
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    return best


def analyze_patterns(
    reports: Sequence[Report],
    location: Optional[GeoPoint],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> Optional[TrendPattern]:
    """One full analysis pass: trend radius filter, detectors, ranking."""
    config = config or get_insight_config()
    nearby = nearby_reports(reports, location, config.trend_radius_km)
    return select_top_pattern(run_detectors(nearby, now, config))


def _priority(report: Report, location: GeoPoint, now: datetime, config: InsightConfig):
    # recent first, then nearest
    return (
        0 if is_recent(report, now, config.recent_window) else 1,
        report_distance_km(report, location),
    )


def summary_items(
    reports: Sequence[Report],
    location: Optional[GeoPoint],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> List[SummaryItem]:
    """
    Top categories within the summary radius.

    Within a category the representative report is the most relevant one
    (recent first, then nearest). Categories are ordered the same way;
    sorting is stable so ties keep input order.
    """
    config = config or get_insight_config()
    nearby = nearby_reports(reports, location, config.summary_radius_km)
    if not nearby:
        return []

    items = []
    for category, category_reports in group_by_category(nearby).items():
        ordered = sorted(category_reports, key=lambda r: _priority(r, location, now, config))
        latest = ordered[0]
        items.append(SummaryItem(
            category=category,
            count=len(category_reports),
            latest_report=latest,
            distance_km=report_distance_km(latest, location),
            is_recent=is_recent(latest, now, config.recent_window),
        ))

    items.sort(key=lambda item: (0 if item.is_recent else 1, item.distance_km))
    return items[:config.max_summary_items]
