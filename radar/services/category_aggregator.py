"""
Per-category toolbar aggregation.

Counts are recomputed from scratch on every call; nothing is cached or
patched incrementally.
"""

import math
from datetime import datetime
from typing import List, Optional, Sequence

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import CategoryStats
from radar.models.report import GeoPoint, Report, ReportCategory
from radar.services.proximity import report_distance_km, within_radius
from radar.services.recency import is_recent


def category_analysis(
    reports: Sequence[Report],
    location: Optional[GeoPoint],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> List[CategoryStats]:
    """
    Nearby count, recency flag and closest distance for every category.

    Without a location every category reports nothing nearby and an infinite
    closest distance.
    """
    config = config or get_insight_config()

    if location is None:
        return [CategoryStats(category=category) for category in ReportCategory]

    nearby = within_radius(reports, location, config.summary_radius_km)

    stats = []
    for category in ReportCategory:
        category_reports = [r for r in nearby if r.category == category]
        closest = min(
            (report_distance_km(r, location) for r in category_reports),
            default=math.inf,
        )
        stats.append(CategoryStats(
            category=category,
            nearby_count=len(category_reports),
            has_nearby=bool(category_reports),
            has_recent=any(is_recent(r, now, config.recent_window) for r in category_reports),
            closest_distance_km=closest,
        ))
    return stats
