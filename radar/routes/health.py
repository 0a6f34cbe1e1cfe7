"""
Health check endpoints for deployment readiness probes.
"""

from fastapi import APIRouter

from radar.core.settings import settings
from radar.routes.errors import repository_unavailable
from radar.services.insight_session import get_insight_session_manager
from radar.services.report_repository import ReportFetchError, get_report_repository
from radar.utils.timestamps import utc_now


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Liveness: the process is up; includes the number of open map sessions."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "insight_sessions": len(get_insight_session_manager()),
        "checked_at": utc_now().isoformat(),
    }


@router.get("/db")
async def report_store_health():
    """Readiness: one listing round-trip against the report store (503 when down)."""
    repository = get_report_repository()
    try:
        reports = await repository.list_reports()
    except ReportFetchError as e:
        raise repository_unavailable(e)

    return {
        "status": "healthy",
        "repository": type(repository).__name__,
        "report_count": len(reports),
        "checked_at": utc_now().isoformat(),
    }
