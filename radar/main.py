"""
Neighborhood Radar - FastAPI Application Entry Point

Residents report power/water outages, fuel availability, prices, traffic,
infrastructure and safety issues on a map. This service computes the
proximity views and the idle-triggered community insights for the map.

DESIGN PRINCIPLES:
- Insights are derived on demand, never persisted
- Nothing in the insight engine is fatal: worst case, no insight this cycle
- Storage is a collaborator behind the report repository
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from radar.core.settings import settings
from radar.routes import health, insights, map, reports
from radar.services.report_repository import ReportRepositoryError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Proximity-aware civic report aggregation and community insights",
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReportRepositoryError)
async def report_store_exception_handler(request: Request, exc: ReportRepositoryError):
    """Report store failures that escaped a route: 503, flagged retryable when transient."""
    logger.warning(f"Report store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": {"message": str(exc), "retryable": exc.retryable}},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Internal server error: {exc}"},
    )


@app.on_event("startup")
async def connect_report_store():
    """Connect Firestore unless the in-memory store is selected."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.USE_MOCK_DB:
        logger.info("USE_MOCK_DB enabled, reports are kept in memory")
        return

    from radar.config.firebase import initialize_firestore
    try:
        initialize_firestore()
    except RuntimeError as e:
        # report endpoints answer 503 until the store is reachable
        logger.warning(f"Firestore unavailable at startup: {e}")


@app.on_event("shutdown")
async def close_insight_sessions():
    """Cancel every pending idle/analysis/display timer."""
    from radar.services.insight_session import get_insight_session_manager
    get_insight_session_manager().dispose_all()
    logger.info(f"{settings.APP_NAME} stopped")


for module in (health, reports, map, insights):
    app.include_router(module.router)


@app.get("/")
async def index():
    """Service name plus the main entry points for map clients."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "reports": "/reports",
            "categories": "/map/categories?lat={lat}&lon={lon}",
            "summary": "/map/summary?lat={lat}&lon={lon}",
            "insight_sessions": "/insights/sessions",
        },
    }
