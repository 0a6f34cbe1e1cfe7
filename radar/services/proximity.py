"""
Proximity filtering around a reference point.

Two radii are used across the service: 1 km for summary/toolbar context and
2 km for trend detection (see InsightConfig).
"""

import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from radar.models.report import GeoPoint, Report, ReportCategory
from radar.utils.geo import distance_km


def report_distance_km(report: Report, center: GeoPoint) -> float:
    return distance_km(center, report.location)


def within_radius(reports: Iterable[Report], center: GeoPoint, radius_km: float) -> List[Report]:
    """
    Reports within `radius_km` of `center` (inclusive), in input order.

    Reports whose distance is NaN are treated as unknown and excluded.
    """
    nearby = []
    for report in reports:
        distance = report_distance_km(report, center)
        if math.isnan(distance):
            continue
        if distance <= radius_km:
            nearby.append(report)
    return nearby


def nearby_reports(
    reports: Sequence[Report],
    location: Optional[GeoPoint],
    radius_km: float,
) -> List[Report]:
    """within_radius that degrades to an empty list when location is unknown."""
    if location is None or not reports:
        return []
    return within_radius(reports, location, radius_km)


def filter_by_categories(
    reports: Iterable[Report],
    categories: Optional[Iterable[ReportCategory]],
) -> List[Report]:
    """Keep reports in `categories`; an empty or missing selection keeps all."""
    selected = set(categories or [])
    if not selected:
        return list(reports)
    return [report for report in reports if report.category in selected]


def drop_expired(reports: Iterable[Report], now: datetime) -> List[Report]:
    """Remove sponsored reports whose expiry has passed."""
    return [report for report in reports if not report.is_expired(now)]
