"""Insight session routes.

The map client opens a session, reports every gesture, and polls the
session to learn whether a trend insight is on screen.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from radar.models.insights import CategoryStats, InsightSnapshot, SummaryItem, TrendPattern
from radar.models.report import GeoPoint
from radar.routes.errors import repository_unavailable
from radar.services.idle_scheduler import InteractionKind
from radar.services.insight_session import (
    MapInsightSession,
    SessionNotFoundError,
    get_insight_session_manager,
)
from radar.services.report_repository import ReportFetchError, get_report_repository


class SessionCreate(BaseModel):
    location: Optional[GeoPoint] = None


class InteractionEvent(BaseModel):
    kind: InteractionKind = InteractionKind.GESTURE


class LocationUpdate(BaseModel):
    location: Optional[GeoPoint] = None


class TrendActionResponse(BaseModel):
    trend: Optional[TrendPattern] = None
    highlighted_report_ids: List[str] = []


class SessionOverview(BaseModel):
    insight: InsightSnapshot
    categories: List[CategoryStats]
    summary: List[SummaryItem]


router = APIRouter(prefix="/insights/sessions", tags=["Insights"])


def _session(session_id: str) -> MapInsightSession:
    try:
        return get_insight_session_manager().get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


async def _refresh(session: MapInsightSession) -> None:
    if not await session.refresh(get_report_repository()):
        raise repository_unavailable(ReportFetchError(session.last_fetch_error or "Report fetch failed"))


@router.post("", response_model=InsightSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionCreate):
    """Open a session for a newly mounted map view."""
    manager = get_insight_session_manager()
    session = manager.create_session(location=body.location)
    try:
        await _refresh(session)
    except HTTPException:
        manager.dispose(session.session_id)
        raise
    return session.snapshot()


@router.get("/{session_id}", response_model=SessionOverview)
async def get_session(session_id: str, refresh: bool = False):
    """Current phase, the displayed trend (if any), toolbar and summary state."""
    session = _session(session_id)
    if refresh:
        await _refresh(session)
    return SessionOverview(
        insight=session.snapshot(),
        categories=session.category_analysis(),
        summary=session.summary_items(),
    )


@router.post("/{session_id}/interactions", response_model=InsightSnapshot)
async def track_interaction(session_id: str, event: InteractionEvent):
    """Pan, zoom, tap, category toggle or report creation."""
    session = _session(session_id)
    session.track_interaction(event.kind)
    if event.kind == InteractionKind.REPORT_CREATED:
        await _refresh(session)
    return session.snapshot()


@router.put("/{session_id}/location", response_model=InsightSnapshot)
async def update_location(session_id: str, body: LocationUpdate):
    session = _session(session_id)
    session.update_location(body.location)
    return session.snapshot()


@router.post("/{session_id}/dismiss", response_model=TrendActionResponse)
async def dismiss_trend(session_id: str):
    session = _session(session_id)
    return TrendActionResponse(trend=session.on_trend_dismiss())


@router.post("/{session_id}/tap", response_model=TrendActionResponse)
async def tap_trend(session_id: str):
    """Close the trend and return the report ids the map should highlight."""
    session = _session(session_id)
    pattern = session.on_trend_tap()
    return TrendActionResponse(
        trend=pattern,
        highlighted_report_ids=pattern.report_ids if pattern else [],
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(session_id: str):
    """Map view unmounted: cancel every pending timer."""
    try:
        get_insight_session_manager().dispose(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
