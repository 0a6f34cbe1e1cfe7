"""
pytest configuration and shared fixtures for the Neighborhood Radar tests.

Tests never touch Firestore or the real event loop timers:
  1. USE_MOCK_DB=true is set before anything imports the settings, so the
     app starts with the in-memory report repository.
  2. FakeClock + ManualTimerPort replace wall time for the idle scheduler;
     tests move time forward explicitly with `timers.advance(seconds)`.
  3. Reports are built around a fixed point in Bole, Addis Ababa with
     offsets in kilometres, so distances are easy to reason about.
"""

import math
import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("USE_MOCK_DB", "true")

from radar.core.engine_config import InsightConfig  # noqa: E402
from radar.models.report import GeoPoint, Report, ReportCategory, ReportCreate, ReportFilters  # noqa: E402
from radar.services.report_repository import ReportFetchError, ReportRepository  # noqa: E402
from radar.utils.geo import EARTH_RADIUS_KM  # noqa: E402

BOLE = GeoPoint(latitude=9.0320, longitude=38.7469)
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180


def offset(origin: GeoPoint, north_km: float = 0.0, east_km: float = 0.0) -> GeoPoint:
    """Point `north_km` / `east_km` away from origin (small-distance approximation)."""
    lat = origin.latitude + north_km / KM_PER_DEGREE
    lon = origin.longitude + east_km / (KM_PER_DEGREE * math.cos(math.radians(origin.latitude)))
    return GeoPoint(latitude=lat, longitude=lon)


# ── Deterministic time ────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, start: datetime):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value


class ManualTimerHandle:
    def __init__(self, due: datetime, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerPort:
    """TimerPort that only fires when the test advances time."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self._handles = []

    def call_later(self, delay, callback):
        handle = ManualTimerHandle(self.clock.now() + timedelta(seconds=delay), callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in due-time order."""
        target = self.clock.now() + timedelta(seconds=seconds)
        while True:
            due = [h for h in self._handles if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self._handles.remove(handle)
            self.clock.set(handle.due)
            handle.callback()
        self.clock.set(target)


# ── Report store doubles ──────────────────────────────────────────────────────

class FailingRepository(ReportRepository):
    """Report store that is always down."""

    async def list_reports(self, filters: Optional[ReportFilters] = None) -> List[Report]:
        raise ReportFetchError("connection reset")

    async def get_report(self, report_id: str) -> Report:
        raise ReportFetchError("connection reset")

    async def create_report(self, report: ReportCreate) -> Report:
        raise ReportFetchError("connection reset")

    async def confirm_report(self, report_id: str) -> bool:
        raise ReportFetchError("connection reset")


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def now():
    return FIXED_NOW


@pytest.fixture()
def config():
    return InsightConfig()


@pytest.fixture()
def clock(now):
    return FakeClock(now)


@pytest.fixture()
def timers(clock):
    return ManualTimerPort(clock)


@pytest.fixture()
def make_report(now):
    """
    Factory: make_report("r1", "water", north_km=0.3, hours_ago=1, confirmations=6).

    `location` overrides the Bole-relative offset.
    """
    def _make(report_id, category, north_km=0.0, east_km=0.0, hours_ago=0.5, location=None, **fields):
        return Report(
            id=report_id,
            title=fields.pop("title", f"{category} report"),
            category=ReportCategory(category),
            location=location or offset(BOLE, north_km, east_km),
            timestamp=now - timedelta(hours=hours_ago),
            **fields,
        )
    return _make
