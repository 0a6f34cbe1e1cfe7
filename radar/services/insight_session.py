"""
Map insight sessions.

A session binds one idle scheduler and one presentation queue to a
read-only snapshot of the report set and the user location. The hosting UI
feeds interactions and snapshot updates; the session exposes the current
trend pattern and the dismiss/tap transitions.
"""

import uuid
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import CategoryStats, InsightSnapshot, SummaryItem, TrendPattern
from radar.models.report import GeoPoint, Report, ReportFilters
from radar.services.category_aggregator import category_analysis
from radar.services.idle_scheduler import (
    AsyncioTimerPort,
    Clock,
    IdleInsightScheduler,
    InteractionKind,
    SystemClock,
    TimerPort,
)
from radar.services.presentation_queue import PresentationQueue
from radar.services.proximity import nearby_reports
from radar.services.ranking import analyze_patterns, summary_items
from radar.services.report_repository import ReportFetchError, ReportRepository

logger = logging.getLogger(__name__)

HighlightCallback = Callable[[List[Report]], None]


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Insight session not found: {session_id}")
        self.session_id = session_id


class MapInsightSession:
    """One active map view."""

    def __init__(
        self,
        session_id: str,
        timers: TimerPort,
        clock: Optional[Clock] = None,
        config: Optional[InsightConfig] = None,
        location: Optional[GeoPoint] = None,
        on_highlight: Optional[HighlightCallback] = None,
    ):
        self.session_id = session_id
        self.config = config or get_insight_config()
        self._clock = clock or SystemClock()
        self._reports: Tuple[Report, ...] = ()
        self._location = location
        self._on_highlight = on_highlight
        self.highlighted_report_ids: List[str] = []
        self.last_fetch_error: Optional[str] = None

        self.queue = PresentationQueue()
        self.scheduler = IdleInsightScheduler(
            analyze=self._analyze,
            queue=self.queue,
            timers=timers,
            clock=self._clock,
            config=self.config,
            can_analyze=lambda: self._location is not None,
        )

    # ------------------------------------------------------------------
    # snapshot

    @property
    def reports(self) -> Tuple[Report, ...]:
        return self._reports

    @property
    def location(self) -> Optional[GeoPoint]:
        return self._location

    def update_reports(self, reports: Sequence[Report]) -> None:
        self._reports = tuple(reports)

    def update_location(self, location: Optional[GeoPoint]) -> None:
        self._location = location

    async def refresh(self, repository: ReportRepository, filters: Optional[ReportFilters] = None) -> bool:
        """
        Replace the report snapshot from the repository.

        A fetch failure leaves an empty snapshot for this pass and records a
        retryable error; scheduler state is not touched.
        """
        try:
            reports = await repository.list_reports(filters)
        except ReportFetchError as e:
            logger.warning(f"Session {self.session_id}: report fetch failed, no reports this pass: {e}")
            self.last_fetch_error = str(e)
            self._reports = ()
            return False

        self.last_fetch_error = None
        self._reports = tuple(reports)
        return True

    # ------------------------------------------------------------------
    # lifecycle

    def start(self) -> None:
        self.scheduler.start()

    def dispose(self) -> None:
        self.scheduler.dispose()

    def track_interaction(self, kind: InteractionKind = InteractionKind.GESTURE) -> None:
        self.scheduler.track_interaction(kind)

    # ------------------------------------------------------------------
    # UI surface

    def current_trend_pattern(self) -> Optional[TrendPattern]:
        return self.queue.current

    def on_trend_dismiss(self) -> Optional[TrendPattern]:
        return self.scheduler.dismiss()

    def on_trend_tap(self) -> Optional[TrendPattern]:
        """Close the insight and highlight its source reports on the map."""
        pattern = self.scheduler.tap()
        if pattern is None:
            return None

        self.highlighted_report_ids = pattern.report_ids
        if self._on_highlight is not None:
            self._on_highlight(list(pattern.source_reports))
        return pattern

    def nearby_reports(self, radius_km: Optional[float] = None) -> List[Report]:
        return nearby_reports(self._reports, self._location, radius_km or self.config.summary_radius_km)

    def category_analysis(self) -> List[CategoryStats]:
        return category_analysis(self._reports, self._location, self._clock.now(), self.config)

    def summary_items(self) -> List[SummaryItem]:
        return summary_items(self._reports, self._location, self._clock.now(), self.config)

    def snapshot(self) -> InsightSnapshot:
        return InsightSnapshot(
            session_id=self.session_id,
            phase=self.scheduler.phase,
            trend=self.current_trend_pattern(),
            has_shown_trend=self.scheduler.has_shown_trend,
            highlighted_report_ids=self.highlighted_report_ids,
            last_fetch_error=self.last_fetch_error,
        )

    def _analyze(self) -> Optional[TrendPattern]:
        return analyze_patterns(self._reports, self._location, self._clock.now(), self.config)


class InsightSessionManager:
    """Keeps the active map sessions by id."""

    def __init__(
        self,
        timers: Optional[TimerPort] = None,
        clock: Optional[Clock] = None,
        config: Optional[InsightConfig] = None,
    ):
        self._timers = timers or AsyncioTimerPort()
        self._clock = clock or SystemClock()
        self._config = config
        self._sessions: Dict[str, MapInsightSession] = {}

    def create_session(
        self,
        location: Optional[GeoPoint] = None,
        on_highlight: Optional[HighlightCallback] = None,
    ) -> MapInsightSession:
        session = MapInsightSession(
            session_id=uuid.uuid4().hex,
            timers=self._timers,
            clock=self._clock,
            config=self._config,
            location=location,
            on_highlight=on_highlight,
        )
        self._sessions[session.session_id] = session
        session.start()
        logger.info(f"Started insight session {session.session_id}")
        return session

    def get(self, session_id: str) -> MapInsightSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def dispose(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.dispose()
        logger.info(f"Disposed insight session {session_id}")

    def dispose_all(self) -> None:
        for session in self._sessions.values():
            session.dispose()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


# Global manager instance (singleton pattern)
_manager: Optional[InsightSessionManager] = None


def get_insight_session_manager() -> InsightSessionManager:
    global _manager
    if _manager is None:
        _manager = InsightSessionManager()
    return _manager


def set_insight_session_manager(manager: Optional[InsightSessionManager]) -> None:
    """Swap the singleton (tests)."""
    global _manager
    if _manager is not None and _manager is not manager:
        _manager.dispose_all()
    _manager = manager
