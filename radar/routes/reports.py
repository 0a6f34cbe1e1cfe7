"""
Report endpoints - submission, listing and confirmation.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, HTTPException, Query, status

from radar.models.report import Report, ReportCategory, ReportCreate, ReportFilters
from radar.routes.errors import repository_unavailable
from radar.services.report_repository import (
    ReportFetchError,
    ReportNotFoundError,
    get_report_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("", response_model=List[Report])
async def list_reports(
    category: Optional[List[ReportCategory]] = Query(None, description="Only these categories"),
    include_expired: bool = Query(False, description="Include expired sponsored reports"),
):
    """List current reports, newest first."""
    filters = ReportFilters(categories=category, include_expired=include_expired)
    try:
        return await get_report_repository().list_reports(filters)
    except ReportFetchError as e:
        raise repository_unavailable(e)


@router.post("", response_model=Report, status_code=status.HTTP_201_CREATED)
async def submit_report(report: ReportCreate):
    """Submit a new report; it starts PENDING with zero confirmations."""
    logger.info(f"POST /reports - category={report.category.value}")
    try:
        return await get_report_repository().create_report(report)
    except ReportFetchError as e:
        raise repository_unavailable(e)


@router.post("/{report_id}/confirm", response_model=Report)
async def confirm_report(report_id: str):
    """
    Confirm someone else's report.

    Returns the updated report; PENDING becomes CONFIRMED once the
    confirmation threshold is reached.
    """
    repository = get_report_repository()
    try:
        await repository.confirm_report(report_id)
        return await repository.get_report(report_id)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ReportFetchError as e:
        raise repository_unavailable(e)
