"""
Report repository - storage and querying of reports.

The insight engine only reads snapshots from here. Two adapters:
- FirestoreReportRepository: firebase-admin Firestore ("reports" collection)
- InMemoryReportRepository: local development (USE_MOCK_DB) and tests

No retries happen here; a transient failure raises ReportFetchError and the
caller decides what to do.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional
import logging

from pydantic import ValidationError

from radar.core.engine_config import get_insight_config
from radar.core.settings import settings
from radar.models.report import Report, ReportCreate, ReportFilters, ReportStatus
from radar.services.proximity import drop_expired, filter_by_categories
from radar.utils.timestamps import parse_timestamp, utc_now

logger = logging.getLogger(__name__)


class ReportRepositoryError(Exception):
    """Base error for report storage."""
    retryable = False


class ReportFetchError(ReportRepositoryError):
    """Transient failure talking to the report store."""
    retryable = True


class ReportNotFoundError(ReportRepositoryError):
    def __init__(self, report_id: str):
        super().__init__(f"Report not found: {report_id}")
        self.report_id = report_id


def report_to_document(report: Report) -> Dict:
    """Flatten a Report into a Firestore document."""
    data = report.model_dump(mode="python", exclude={"id", "location", "timestamp"})
    data["category"] = report.category.value
    data["status"] = report.status.value
    data["latitude"] = report.location.latitude
    data["longitude"] = report.location.longitude
    data["created_at"] = report.timestamp
    if report.metadata is not None:
        data["metadata"] = report.metadata.model_dump(mode="json", exclude_none=True)
    return data


def report_from_document(doc_id: str, data: Dict) -> Optional[Report]:
    """
    Build a Report from a stored document.

    Returns None (and logs) for documents that cannot form a valid report,
    e.g. missing coordinates or an unknown category.
    """
    if not data:
        return None

    location = data.get("location") or {}
    latitude = data.get("latitude", location.get("latitude"))
    longitude = data.get("longitude", location.get("longitude"))
    timestamp = parse_timestamp(data.get("created_at", data.get("timestamp")))

    if latitude is None or longitude is None or timestamp is None:
        logger.warning(f"Skipping report {doc_id}: missing coordinates or timestamp")
        return None

    try:
        return Report(
            id=doc_id,
            title=data.get("title") or "",
            description=data.get("description"),
            category=data.get("category"),
            status=data.get("status") or ReportStatus.PENDING,
            location={"latitude": latitude, "longitude": longitude},
            address=data.get("address"),
            timestamp=timestamp,
            image_url=data.get("image_url"),
            user_id=data.get("user_id") or "anonymous",
            anonymous=bool(data.get("anonymous", False)),
            confirmations=int(data.get("confirmations") or 0),
            is_sponsored=bool(data.get("is_sponsored", False)),
            sponsored_by=data.get("sponsored_by"),
            expires_at=parse_timestamp(data.get("expires_at")),
            metadata=data.get("metadata"),
        )
    except (ValidationError, TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed report {doc_id}: {e}")
        return None


def apply_filters(reports: Iterable[Report], filters: Optional[ReportFilters], now: datetime) -> List[Report]:
    filters = filters or ReportFilters()
    result = filter_by_categories(reports, filters.categories)
    if filters.since is not None:
        since = parse_timestamp(filters.since)
        result = [r for r in result if r.timestamp >= since]
    if not filters.include_expired:
        result = drop_expired(result, now)
    return result


class ReportRepository(ABC):
    """Abstract report store."""

    def __init__(self, confirmation_threshold: Optional[int] = None):
        self.confirmation_threshold = confirmation_threshold or get_insight_config().confirmation_threshold

    @abstractmethod
    async def list_reports(self, filters: Optional[ReportFilters] = None) -> List[Report]:
        """Current reports, newest first. Raises ReportFetchError on transient failure."""

    @abstractmethod
    async def get_report(self, report_id: str) -> Report:
        """Raises ReportNotFoundError when the id is unknown."""

    @abstractmethod
    async def create_report(self, report: ReportCreate) -> Report:
        """Store a new report with zero confirmations."""

    @abstractmethod
    async def confirm_report(self, report_id: str) -> bool:
        """Add one confirmation; True on success."""


class InMemoryReportRepository(ReportRepository):
    """Process-local report store."""

    def __init__(self, reports: Optional[Iterable[Report]] = None, confirmation_threshold: Optional[int] = None):
        super().__init__(confirmation_threshold)
        self._reports: Dict[str, Report] = {}
        for report in reports or []:
            self._reports[report.id] = report

    async def list_reports(self, filters: Optional[ReportFilters] = None) -> List[Report]:
        ordered = sorted(self._reports.values(), key=lambda r: r.timestamp, reverse=True)
        return apply_filters(ordered, filters, utc_now())

    async def get_report(self, report_id: str) -> Report:
        report = self._reports.get(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    async def create_report(self, report: ReportCreate) -> Report:
        stored = Report(
            id=uuid.uuid4().hex,
            timestamp=utc_now(),
            confirmations=0,
            status=ReportStatus.PENDING,
            **report.model_dump(),
        )
        self._reports[stored.id] = stored
        logger.info(f"Created report {stored.id} ({stored.category.value})")
        return stored

    def add(self, report: Report) -> None:
        self._reports[report.id] = report

    async def confirm_report(self, report_id: str) -> bool:
        report = await self.get_report(report_id)
        self._reports[report_id] = report.with_confirmation(self.confirmation_threshold)
        return True


class FirestoreReportRepository(ReportRepository):
    """
    Firestore-backed store.

    The firebase-admin client is synchronous, so every call runs in the
    default executor to keep the event loop free.
    """

    def __init__(self, db=None, collection: Optional[str] = None, confirmation_threshold: Optional[int] = None):
        super().__init__(confirmation_threshold)
        self._db = db
        self.collection = collection or settings.REPORTS_COLLECTION

    @property
    def db(self):
        # resolved on first use so a store that is down surfaces as ReportFetchError
        if self._db is None:
            from radar.config.firebase import get_db
            self._db = get_db()
        return self._db

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _list_sync(self, filters: Optional[ReportFilters]) -> List[Report]:
        from radar.utils.firestore_helpers import where_filter

        query = self.db.collection(self.collection)
        if filters is not None and filters.categories:
            query = where_filter(query, "category", "in", [c.value for c in filters.categories])
        if filters is not None and filters.since is not None:
            query = where_filter(query, "created_at", ">=", filters.since)

        reports = []
        for doc in query.stream():
            report = report_from_document(doc.id, doc.to_dict())
            if report is not None:
                reports.append(report)

        reports.sort(key=lambda r: r.timestamp, reverse=True)
        return apply_filters(reports, filters, utc_now())

    async def list_reports(self, filters: Optional[ReportFilters] = None) -> List[Report]:
        try:
            return await self._run(self._list_sync, filters)
        except Exception as e:
            logger.error(f"Failed to fetch reports from Firestore: {e}", exc_info=True)
            raise ReportFetchError(f"Failed to fetch reports: {e}") from e

    def _get_sync(self, report_id: str) -> Report:
        snapshot = self.db.collection(self.collection).document(report_id).get()
        report = report_from_document(snapshot.id, snapshot.to_dict()) if snapshot.exists else None
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    async def get_report(self, report_id: str) -> Report:
        try:
            return await self._run(self._get_sync, report_id)
        except ReportNotFoundError:
            raise
        except Exception as e:
            raise ReportFetchError(f"Failed to fetch report {report_id}: {e}") from e

    def _create_sync(self, report: ReportCreate) -> Report:
        doc_ref = self.db.collection(self.collection).document()
        stored = Report(
            id=doc_ref.id,
            timestamp=utc_now(),
            confirmations=0,
            status=ReportStatus.PENDING,
            **report.model_dump(),
        )
        doc_ref.set(report_to_document(stored))
        return stored

    async def create_report(self, report: ReportCreate) -> Report:
        try:
            stored = await self._run(self._create_sync, report)
        except Exception as e:
            logger.error(f"Failed to create report: {e}", exc_info=True)
            raise ReportFetchError(f"Failed to create report: {e}") from e
        logger.info(f"Created report {stored.id} ({stored.category.value})")
        return stored

    def _confirm_sync(self, report_id: str) -> Report:
        from firebase_admin import firestore

        doc_ref = self.db.collection(self.collection).document(report_id)
        threshold = self.confirmation_threshold

        @firestore.transactional
        def confirm_in_transaction(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            report = report_from_document(snapshot.id, snapshot.to_dict()) if snapshot.exists else None
            if report is None:
                raise ReportNotFoundError(report_id)
            updated = report.with_confirmation(threshold)
            transaction.update(doc_ref, {
                "confirmations": updated.confirmations,
                "status": updated.status.value,
                "updated_at": firestore.SERVER_TIMESTAMP,
            })
            return updated

        return confirm_in_transaction(self.db.transaction())

    async def confirm_report(self, report_id: str) -> bool:
        try:
            updated = await self._run(self._confirm_sync, report_id)
        except ReportNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to confirm report {report_id}: {e}", exc_info=True)
            raise ReportFetchError(f"Failed to confirm report {report_id}: {e}") from e
        logger.info(f"Report {report_id} confirmed ({updated.confirmations} confirmations, {updated.status.value})")
        return True


# Global repository instance (singleton pattern)
_repository: Optional[ReportRepository] = None


def get_report_repository() -> ReportRepository:
    """
    Get or create the report repository singleton.

    USE_MOCK_DB selects the in-memory store; otherwise Firestore.
    """
    global _repository
    if _repository is None:
        if settings.USE_MOCK_DB:
            logger.info("Using in-memory report repository")
            _repository = InMemoryReportRepository()
        else:
            _repository = FirestoreReportRepository()
    return _repository


def set_report_repository(repository: Optional[ReportRepository]) -> None:
    """Swap the singleton (tests, seeding)."""
    global _repository
    _repository = repository
