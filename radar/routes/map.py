"""Map routes - proximity views over the current report set.

Every endpoint is stateless: reports are read from the repository, the
optional user location comes from the query string. Without a location the
proximity-dependent results are empty or neutral.
"""

from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from radar.core.engine_config import get_insight_config
from radar.models.insights import (
    ActivityHotspot,
    CategoryStats,
    MicroTrend,
    StoryTile,
    SummaryItem,
    ZoomSuggestion,
)
from radar.models.report import GeoPoint, Report, ReportCategory, ReportFilters
from radar.routes.errors import repository_unavailable
from radar.services.category_aggregator import category_analysis
from radar.services.neighborhood_stories import micro_trends, story_tiles
from radar.services.proximity import filter_by_categories, nearby_reports
from radar.services.ranking import summary_items
from radar.services.report_repository import ReportFetchError, get_report_repository
from radar.services.spatial_grid import find_activity_hotspots, zoom_suggestion
from radar.utils.timestamps import utc_now


class HotspotsResponse(BaseModel):
    hotspots: List[ActivityHotspot]
    suggestion: Optional[ZoomSuggestion] = None


router = APIRouter(prefix="/map", tags=["Map"])


def _location(lat: Optional[float], lon: Optional[float]) -> Optional[GeoPoint]:
    if lat is None or lon is None:
        return None
    return GeoPoint(latitude=lat, longitude=lon)


async def _load_reports(categories: Optional[List[ReportCategory]] = None) -> List[Report]:
    try:
        return await get_report_repository().list_reports(ReportFilters(categories=categories))
    except ReportFetchError as e:
        raise repository_unavailable(e)


@router.get("/nearby", response_model=List[Report])
async def map_nearby(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0, le=50, description="Defaults to the summary radius"),
    category: Optional[List[ReportCategory]] = Query(None),
):
    """Reports within the radius of the user, in repository order."""
    config = get_insight_config()
    reports = await _load_reports()
    reports = filter_by_categories(reports, category)
    return nearby_reports(reports, _location(lat, lon), radius_km or config.summary_radius_km)


@router.get("/categories", response_model=List[CategoryStats])
async def map_categories(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    """Toolbar state per category."""
    reports = await _load_reports()
    return category_analysis(reports, _location(lat, lon), utc_now(), get_insight_config())


@router.get("/summary", response_model=List[SummaryItem])
async def map_summary(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    """Top categories for the floating summary bubble."""
    reports = await _load_reports()
    return summary_items(reports, _location(lat, lon), utc_now(), get_insight_config())


@router.get("/hotspots", response_model=HotspotsResponse)
async def map_hotspots():
    """Busiest ~500 m cells and an optional zoom suggestion."""
    config = get_insight_config()
    reports = await _load_reports()
    hotspots = find_activity_hotspots(reports, utc_now(), config)
    return HotspotsResponse(hotspots=hotspots, suggestion=zoom_suggestion(hotspots, config))


@router.get("/stories", response_model=List[StoryTile])
async def map_stories(zoom: float = Query(..., ge=0, le=22)):
    """Neighborhood story tiles for the current zoom level."""
    reports = await _load_reports()
    return story_tiles(reports, zoom, get_insight_config())


@router.get("/micro-trends", response_model=List[MicroTrend])
async def map_micro_trends(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    """Short-window trend digests around the user."""
    config = get_insight_config()
    reports = await _load_reports()
    nearby = nearby_reports(reports, _location(lat, lon), config.trend_radius_km)
    return micro_trends(nearby, utc_now(), config)
