"""
Pattern Detectors - turn a nearby report set into candidate trend insights.

DESIGN PRINCIPLES:
- Each detector is a pure function: (nearby reports, now, config) -> pattern or None
- Detectors are independent and never raise
- Missing or malformed metadata means "does not qualify"
- Confidence values are fixed heuristics, not ML

DETECTORS (evaluation order matters for tie-breaking):
1. Cluster: ≥3 reports of one category, ≥2 of them within 6 hours
2. Confirmation: ≥2 reports of one category with ≥5 confirmations each
3. Price trend: ≥2 price reports carrying price details
4. Frequency: ≥4 reports in 3 hours with a dominant category of ≥2
"""

from collections import Counter, OrderedDict
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence
import logging

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import InsightSeverity, TrendKind, TrendPattern
from radar.models.report import Report, ReportCategory
from radar.services.recency import is_recent, recent_reports

logger = logging.getLogger(__name__)

Detector = Callable[[Sequence[Report], datetime, InsightConfig], Optional[TrendPattern]]


CLUSTER_MESSAGES = {
    ReportCategory.LIGHT: "{count} people reported power outages in your area",
    ReportCategory.WATER: "{count} water shortage reports confirmed nearby",
    ReportCategory.FUEL: "{count} fuel stations reporting availability changes",
    ReportCategory.PRICE: "{count} price changes reported by neighbors",
    ReportCategory.TRAFFIC: "{count} traffic incidents causing delays nearby",
    ReportCategory.INFRASTRUCTURE: "{count} road issues reported in your area",
    ReportCategory.ENVIRONMENT: "{count} environmental concerns raised nearby",
    ReportCategory.SAFETY: "{count} safety issues reported by community",
}

CONFIRMATION_MESSAGES = {
    ReportCategory.LIGHT: "{total} people confirmed power outages nearby",
    ReportCategory.WATER: "{total} neighbors verified water shortages",
    ReportCategory.FUEL: "{total} confirmations on fuel availability",
    ReportCategory.PRICE: "{total} people confirmed price changes",
    ReportCategory.TRAFFIC: "{total} drivers confirmed traffic issues",
    ReportCategory.INFRASTRUCTURE: "{total} people verified road problems",
    ReportCategory.ENVIRONMENT: "{total} residents confirmed environmental issues",
    ReportCategory.SAFETY: "{total} people verified safety concerns",
}

FREQUENCY_MESSAGES = {
    ReportCategory.LIGHT: "Spike in power outage reports - {count} in last 3 hours",
    ReportCategory.WATER: "Water shortage reports increasing - {count} recent reports",
    ReportCategory.FUEL: "High fuel station activity - {count} updates today",
    ReportCategory.PRICE: "Price volatility detected - {count} changes reported",
    ReportCategory.TRAFFIC: "Traffic congestion pattern - {count} incidents today",
    ReportCategory.INFRASTRUCTURE: "Infrastructure issues trending - {count} reports",
    ReportCategory.ENVIRONMENT: "Environmental concerns rising - {count} new reports",
    ReportCategory.SAFETY: "Safety alerts increasing - {count} recent reports",
}


def group_by_category(reports: Sequence[Report]) -> Dict[ReportCategory, List[Report]]:
    """Group reports by category, keeping first-seen category order."""
    groups: Dict[ReportCategory, List[Report]] = OrderedDict()
    for report in reports:
        groups.setdefault(report.category, []).append(report)
    return groups


def _cluster_confidence(count: int, config: InsightConfig) -> float:
    return min(
        config.cluster_max_confidence,
        config.cluster_base_confidence + config.cluster_confidence_step * count,
    )


def detect_cluster(
    nearby: Sequence[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> Optional[TrendPattern]:
    """
    Most confident qualifying same-category cluster, or None.

    Confidence grows with size up to `cluster_max_confidence`; among
    categories tied at the same confidence the first seen wins.
    """
    config = config or get_insight_config()

    best: Optional[List[Report]] = None
    best_confidence = 0.0
    for category_reports in group_by_category(nearby).values():
        if len(category_reports) < config.cluster_min_reports:
            continue
        recent = sum(1 for r in category_reports if is_recent(r, now, config.cluster_window))
        if recent < config.cluster_min_recent:
            continue
        confidence = _cluster_confidence(len(category_reports), config)
        if best is None or confidence > best_confidence:
            best, best_confidence = category_reports, confidence

    if best is None:
        return None

    count = len(best)
    category = best[0].category
    return TrendPattern(
        category=category,
        source_reports=best,
        kind=TrendKind.CLUSTER,
        message=CLUSTER_MESSAGES[category].format(count=count),
        confidence=best_confidence,
        severity=InsightSeverity.HIGH if count >= config.cluster_high_severity_count else InsightSeverity.MEDIUM,
    )


def detect_confirmation(
    nearby: Sequence[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> Optional[TrendPattern]:
    """First category with enough well-confirmed reports, or None."""
    config = config or get_insight_config()

    for category, category_reports in group_by_category(nearby).items():
        confirmed = [r for r in category_reports if r.confirmations >= config.confirmation_min_confirmations]
        if len(confirmed) < config.confirmation_min_reports:
            continue

        total = sum(r.confirmations for r in confirmed)
        return TrendPattern(
            category=category,
            source_reports=confirmed,
            kind=TrendKind.CONFIRMATION,
            message=CONFIRMATION_MESSAGES[category].format(total=total),
            confidence=config.confirmation_confidence,
            severity=InsightSeverity.HIGH,
        )
    return None


def price_trend_message(price_reports: Sequence[Report]) -> str:
    items = []
    for report in price_reports:
        name = report.metadata.price_details.item_name
        if name not in items:
            items.append(name)

    if len(items) == 1:
        return f"Multiple {items[0]} price changes reported nearby"
    return f"{len(items)} different items showing price changes"


def detect_price_trend(
    nearby: Sequence[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> Optional[TrendPattern]:
    """Repeated price reports with usable price details, or None."""
    config = config or get_insight_config()

    priced = [
        r for r in nearby
        if r.category == ReportCategory.PRICE
        and r.metadata is not None
        and r.metadata.price_details is not None
    ]
    if len(priced) < config.price_min_reports:
        return None

    return TrendPattern(
        category=ReportCategory.PRICE,
        source_reports=priced,
        kind=TrendKind.PRICE_TREND,
        message=price_trend_message(priced),
        confidence=config.price_confidence,
        severity=InsightSeverity.MEDIUM,
    )


def detect_frequency(
    nearby: Sequence[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> Optional[TrendPattern]:
    """Recent activity spike dominated by one category, or None."""
    config = config or get_insight_config()

    recent = recent_reports(nearby, now, config.frequency_window)
    if len(recent) < config.frequency_min_total:
        return None

    category, count = Counter(r.category for r in recent).most_common(1)[0]
    if count < config.frequency_min_dominant:
        return None

    return TrendPattern(
        category=category,
        source_reports=[r for r in recent if r.category == category],
        kind=TrendKind.FREQUENCY,
        message=FREQUENCY_MESSAGES[category].format(count=count),
        confidence=config.frequency_confidence,
        severity=InsightSeverity.HIGH,
    )


# Fixed evaluation order; the ranker breaks confidence ties by this order
DETECTORS: List[Detector] = [
    detect_cluster,
    detect_confirmation,
    detect_price_trend,
    detect_frequency,
]


def run_detectors(
    nearby: Sequence[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> List[TrendPattern]:
    """
    Run every detector once over the nearby set.

    Returns the non-null candidates in evaluation order. Too few nearby
    reports means no candidates at all.
    """
    config = config or get_insight_config()
    if len(nearby) < config.min_nearby_for_analysis:
        return []

    candidates = []
    for detector in DETECTORS:
        pattern = detector(nearby, now, config)
        if pattern is not None:
            logger.debug(f"{detector.__name__} produced {pattern.key} (confidence={pattern.confidence:.2f})")
            candidates.append(pattern)
    return candidates
