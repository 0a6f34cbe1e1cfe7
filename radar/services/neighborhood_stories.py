"""
Neighborhood stories and micro trends.

Story tiles summarize ~1 km grid cells at neighborhood zoom levels.
Micro trends are short fixed-window digests (traffic, fuel, power, prices,
infrastructure) over the reports around the user.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import MicroTrend, StoryTile, StoryTileKind
from radar.models.report import (
    DurationClass,
    Report,
    ReportCategory,
    ReportStatus,
    Severity,
)
from radar.services.recency import recent_reports
from radar.services.spatial_grid import cell_center, group_by_cell


def _average_price(reports: Sequence[Report]) -> float:
    # reports without price details count as zero, as on the map client
    total = 0.0
    for report in reports:
        if report.metadata and report.metadata.price_details:
            total += report.metadata.price_details.price
    return total / len(reports)


def _area_name(report: Report) -> str:
    if report.address:
        return report.address.split(",")[0].strip() or "area"
    return "area"


def _has_duration(report: Report, duration: DurationClass) -> bool:
    return report.metadata is not None and report.metadata.duration == duration


def story_tiles(
    reports: Sequence[Report],
    zoom: float,
    config: Optional[InsightConfig] = None,
) -> List[StoryTile]:
    """
    Story tiles for every story-grid cell holding two or more reports.

    Nothing is produced below `config.story_min_zoom`.
    """
    config = config or get_insight_config()
    if zoom < config.story_min_zoom:
        return []

    size = config.story_cell_degrees
    tiles: List[StoryTile] = []
    for key, cell_reports in group_by_cell(reports, size).items():
        if len(cell_reports) < config.min_cluster_size:
            continue

        area = f"{key[0]},{key[1]}"
        center = cell_center(key, size)

        ongoing = [r for r in cell_reports if _has_duration(r, DurationClass.ONGOING)]
        if len(ongoing) >= config.story_min_ongoing:
            tiles.append(StoryTile(
                id=f"ongoing-{area}",
                kind=StoryTileKind.ONGOING,
                title="Ongoing Issues",
                description=f"{len(ongoing)} persistent problems in this area",
                cell_center=center,
                report_ids=[r.id for r in ongoing],
            ))

        resolved = [r for r in cell_reports if r.status == ReportStatus.RESOLVED]
        if len(resolved) >= config.story_min_resolved:
            tiles.append(StoryTile(
                id=f"positive-{area}",
                kind=StoryTileKind.COMMUNITY_ACTION,
                title="Community Action",
                description=f"{len(resolved)} issues resolved recently",
                cell_center=center,
                report_ids=[r.id for r in resolved],
            ))

        prices = [r for r in cell_reports if r.category == ReportCategory.PRICE]
        if len(prices) >= config.story_min_price:
            tiles.append(StoryTile(
                id=f"price-{area}",
                kind=StoryTileKind.PRICE_ACTIVITY,
                title="Price Activity",
                description=f"Average price: {_average_price(prices):.0f} birr",
                cell_center=center,
                report_ids=[r.id for r in prices],
            ))

        infra = [r for r in cell_reports if r.category == ReportCategory.INFRASTRUCTURE]
        if len(infra) >= config.story_min_infrastructure:
            tiles.append(StoryTile(
                id=f"infra-{area}",
                kind=StoryTileKind.INFRASTRUCTURE,
                title="Infrastructure",
                description=f"{len(infra)} road issues reported",
                cell_center=center,
                report_ids=[r.id for r in infra],
            ))

    return tiles[:config.max_story_tiles]


def micro_trends(
    reports: Sequence[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
) -> List[MicroTrend]:
    """Fixed-window trend digests, at most `config.max_micro_trends`."""
    config = config or get_insight_config()
    trends: List[MicroTrend] = []

    prices = [
        r for r in recent_reports(reports, now, config.daily_window)
        if r.category == ReportCategory.PRICE
    ]
    if len(prices) >= config.micro_min_price:
        trends.append(MicroTrend(
            id="price-trend",
            category=ReportCategory.PRICE,
            title="Price Activity",
            description=(
                "More people in your area are reporting prices today. "
                f"Avg: {_average_price(prices):.0f} birr"
            ),
            report_count=len(prices),
        ))

    outages = [
        r for r in recent_reports(reports, now, config.power_window)
        if r.category == ReportCategory.LIGHT and _has_duration(r, DurationClass.ONGOING)
    ]
    if len(outages) >= config.micro_min_outages:
        areas = {_area_name(r) for r in outages}
        trends.append(MicroTrend(
            id="power-trend",
            category=ReportCategory.LIGHT,
            title="Power Outage Pattern",
            description=f"Outages affecting {len(areas)} neighboring areas",
            report_count=len(outages),
        ))

    heavy_traffic = [
        r for r in recent_reports(reports, now, config.traffic_window)
        if r.category == ReportCategory.TRAFFIC
        and r.metadata is not None
        and r.metadata.severity == Severity.HEAVY
    ]
    if len(heavy_traffic) >= config.micro_min_heavy_traffic:
        trends.append(MicroTrend(
            id="traffic-trend",
            category=ReportCategory.TRAFFIC,
            title="Heavy Traffic Alert",
            description="Multiple congestion reports in nearby areas",
            report_count=len(heavy_traffic),
        ))

    fuel = [
        r for r in recent_reports(reports, now, config.fuel_window)
        if r.category == ReportCategory.FUEL
        and r.metadata is not None
        and r.metadata.availability is True
    ]
    if len(fuel) >= config.micro_min_fuel:
        stations = {
            r.metadata.fuel_station.name if r.metadata.fuel_station else "station"
            for r in fuel
        }
        trends.append(MicroTrend(
            id="fuel-trend",
            category=ReportCategory.FUEL,
            title="Fuel Available",
            description=f"{len(stations)} stations nearby have fuel",
            report_count=len(fuel),
        ))

    infra = [
        r for r in recent_reports(reports, now, config.weekly_window)
        if r.category == ReportCategory.INFRASTRUCTURE
    ]
    if len(infra) >= config.micro_min_infrastructure:
        trends.append(MicroTrend(
            id="infra-trend",
            category=ReportCategory.INFRASTRUCTURE,
            title="Infrastructure Issues",
            description=f"{len(infra)} road problems reported this week",
            report_count=len(infra),
        ))

    return trends[:config.max_micro_trends]
