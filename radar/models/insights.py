"""
Derived insight models.

None of these are persisted: each is built fresh on an aggregation or
detection pass and discarded once consumed.
"""

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from radar.models.report import GeoPoint, Report, ReportCategory


class TrendKind(str, Enum):
    CLUSTER = "cluster"
    CONFIRMATION = "confirmation"
    PRICE_TREND = "price_trend"
    FREQUENCY = "frequency"


class InsightSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recency(str, Enum):
    FRESH = "fresh"
    RECENT = "recent"
    STALE = "stale"


class IdlePhase(str, Enum):
    """Idle scheduler phases."""
    ACTIVE = "active"
    PENDING_IDLE = "pending-idle"
    IDLE = "idle"
    ANALYZING = "analyzing"
    DISPLAYING = "displaying"


class TrendPattern(BaseModel):
    """A single insight produced by a pattern detector."""
    model_config = ConfigDict(frozen=True)

    category: ReportCategory
    source_reports: List[Report] = Field(default_factory=list)
    kind: TrendKind
    message: str
    confidence: float
    severity: InsightSeverity

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        if math.isnan(value):
            return 0.0
        return min(1.0, max(0.0, value))

    @property
    def key(self) -> str:
        """Identity used by the presentation queue for dedupe."""
        return f"{self.kind.value}:{self.category.value}"

    @property
    def report_ids(self) -> List[str]:
        return [report.id for report in self.source_reports]


class CategoryStats(BaseModel):
    """Toolbar state for one category."""
    category: ReportCategory
    nearby_count: int = 0
    has_nearby: bool = False
    has_recent: bool = False
    closest_distance_km: float = math.inf

    @field_serializer("closest_distance_km", when_used="json")
    def _serialize_distance(self, value: float):
        # JSON has no infinity; "nothing nearby" is null
        return None if math.isinf(value) else value


class SummaryItem(BaseModel):
    """One ranked entry of the floating summary bubble."""
    category: ReportCategory
    count: int
    latest_report: Report
    distance_km: float
    is_recent: bool


class ActivityHotspot(BaseModel):
    """A grid cell holding two or more reports."""
    center: GeoPoint
    total_count: int
    recent_count: int
    categories: List[ReportCategory]


class ZoomSuggestion(BaseModel):
    hotspot: ActivityHotspot
    zoom: int
    message: str


class StoryTileKind(str, Enum):
    ONGOING = "ongoing"
    COMMUNITY_ACTION = "community_action"
    PRICE_ACTIVITY = "price_activity"
    INFRASTRUCTURE = "infrastructure"


class StoryTile(BaseModel):
    id: str
    kind: StoryTileKind
    title: str
    description: str
    cell_center: GeoPoint
    report_ids: List[str]


class MicroTrend(BaseModel):
    id: str
    category: ReportCategory
    title: str
    description: str
    report_count: int


class InsightSnapshot(BaseModel):
    """What the UI sees for one map session."""
    session_id: str
    phase: IdlePhase
    trend: Optional[TrendPattern] = None
    has_shown_trend: bool = False
    highlighted_report_ids: List[str] = Field(default_factory=list)
    last_fetch_error: Optional[str] = None
