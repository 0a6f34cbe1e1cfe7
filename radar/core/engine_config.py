"""
Insight engine configuration.

Every radius, time window, grid size and scoring constant used by the
aggregators, detectors and the idle scheduler lives here. Components take
an InsightConfig argument instead of hardcoding their own numbers.
"""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from radar.core.settings import Settings, settings


class InsightConfig(BaseModel):
    """Named constants for the proximity and insight engine."""

    model_config = ConfigDict(frozen=True)

    # Radii (km)
    summary_radius_km: float = Field(1.0, gt=0, description="Toolbar and summary bubble context")
    trend_radius_km: float = Field(2.0, gt=0, description="Trend detection context")

    # Recency windows
    fresh_window: timedelta = timedelta(hours=2)
    recent_window: timedelta = timedelta(hours=3)
    cluster_window: timedelta = timedelta(hours=6)
    frequency_window: timedelta = timedelta(hours=3)
    hotspot_recent_window: timedelta = timedelta(hours=2)
    traffic_window: timedelta = timedelta(hours=1)
    fuel_window: timedelta = timedelta(hours=2)
    daily_window: timedelta = timedelta(hours=24)
    power_window: timedelta = timedelta(hours=48)
    weekly_window: timedelta = timedelta(days=7)

    # Spatial grid cell sizes (degrees)
    hotspot_cell_degrees: float = Field(0.005, gt=0, description="~500 m, zoom suggestions")
    story_cell_degrees: float = Field(0.01, gt=0, description="~1 km, neighborhood stories")
    min_cluster_size: int = 2
    max_hotspots: int = 3
    hotspot_zoom_min_recent: int = 3
    hotspot_zoom_level: int = 16
    story_min_zoom: int = 13
    max_story_tiles: int = 6

    # Neighborhood story tiles (reports per cell)
    story_min_ongoing: int = 2
    story_min_resolved: int = 3
    story_min_price: int = 2
    story_min_infrastructure: int = 3

    # Micro trends (reports per window)
    micro_min_price: int = 3
    micro_min_outages: int = 2
    micro_min_heavy_traffic: int = 2
    micro_min_fuel: int = 2
    micro_min_infrastructure: int = 4

    # Pattern detectors
    min_nearby_for_analysis: int = 3
    cluster_min_reports: int = 3
    cluster_min_recent: int = 2
    cluster_high_severity_count: int = 5
    cluster_base_confidence: float = 0.5
    cluster_confidence_step: float = 0.1
    cluster_max_confidence: float = 0.9
    confirmation_min_confirmations: int = 5
    confirmation_min_reports: int = 2
    confirmation_confidence: float = 0.85
    price_min_reports: int = 2
    price_confidence: float = 0.7
    frequency_min_total: int = 4
    frequency_min_dominant: int = 2
    frequency_confidence: float = 0.8

    # Ranking
    max_summary_items: int = 3
    max_micro_trends: int = 3

    # Idle scheduler (seconds)
    idle_threshold_seconds: float = Field(10.0, ge=0)
    analysis_delay_seconds: float = Field(12.0, ge=0)
    display_duration_seconds: float = Field(7.0, ge=0)
    repeat_insights: bool = False

    # Report lifecycle
    confirmation_threshold: int = Field(3, ge=1)


_config: Optional[InsightConfig] = None


def build_insight_config(source: Settings) -> InsightConfig:
    """Build an InsightConfig from environment settings."""
    return InsightConfig(
        idle_threshold_seconds=source.IDLE_THRESHOLD_SECONDS,
        analysis_delay_seconds=source.ANALYSIS_DELAY_SECONDS,
        display_duration_seconds=source.DISPLAY_DURATION_SECONDS,
        repeat_insights=source.REPEAT_INSIGHTS,
        confirmation_threshold=source.CONFIRMATION_THRESHOLD,
    )


def get_insight_config() -> InsightConfig:
    """Get or create the process-wide InsightConfig."""
    global _config
    if _config is None:
        _config = build_insight_config(settings)
    return _config
