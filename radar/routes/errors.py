"""
Shared HTTP error mapping for report store failures.
"""

from fastapi import HTTPException, status

from radar.services.report_repository import ReportRepositoryError


def repository_unavailable(exc: ReportRepositoryError) -> HTTPException:
    """503 with a retry hint; the client decides when to try again."""
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": str(exc), "retryable": exc.retryable},
    )
