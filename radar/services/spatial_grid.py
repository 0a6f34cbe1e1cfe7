"""
Spatial grid clustering.

Reports are bucketed into fixed lat/lon cells. Cell size is a parameter:
hotspot detection uses ~500 m cells, neighborhood stories use ~1 km cells.
"""

import math
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import ActivityHotspot, ZoomSuggestion
from radar.models.report import GeoPoint, Report
from radar.services.recency import is_recent

CellKey = Tuple[int, int]


def cell_key(location: GeoPoint, cell_size_degrees: float) -> Optional[CellKey]:
    """Grid cell for a location, or None when the location is not finite."""
    if not (math.isfinite(location.latitude) and math.isfinite(location.longitude)):
        return None
    return (
        math.floor(location.latitude / cell_size_degrees),
        math.floor(location.longitude / cell_size_degrees),
    )


def cell_center(key: CellKey, cell_size_degrees: float) -> GeoPoint:
    row, col = key
    return GeoPoint(
        latitude=row * cell_size_degrees + cell_size_degrees / 2,
        longitude=col * cell_size_degrees + cell_size_degrees / 2,
    )


def group_by_cell(reports: Iterable[Report], cell_size_degrees: float) -> Dict[CellKey, List[Report]]:
    """
    Bucket reports by grid cell, preserving first-seen cell order and
    report order within each cell.
    """
    if cell_size_degrees <= 0:
        raise ValueError("cell_size_degrees must be positive")

    cells: Dict[CellKey, List[Report]] = OrderedDict()
    for report in reports:
        key = cell_key(report.location, cell_size_degrees)
        if key is None:
            continue
        cells.setdefault(key, []).append(report)
    return cells


def find_activity_hotspots(
    reports: Iterable[Report],
    now: datetime,
    config: Optional[InsightConfig] = None,
    cell_size_degrees: Optional[float] = None,
) -> List[ActivityHotspot]:
    """
    Cells with at least two reports, ranked by recent count then total count.

    Returns at most `config.max_hotspots` entries.
    """
    config = config or get_insight_config()
    size = cell_size_degrees or config.hotspot_cell_degrees

    hotspots = []
    for key, cell_reports in group_by_cell(reports, size).items():
        if len(cell_reports) < config.min_cluster_size:
            continue

        categories = []
        for report in cell_reports:
            if report.category not in categories:
                categories.append(report.category)

        hotspots.append(ActivityHotspot(
            center=cell_center(key, size),
            total_count=len(cell_reports),
            recent_count=sum(1 for r in cell_reports if is_recent(r, now, config.hotspot_recent_window)),
            categories=categories,
        ))

    hotspots.sort(key=lambda h: (-h.recent_count, -h.total_count))
    return hotspots[:config.max_hotspots]


def zoom_suggestion(
    hotspots: List[ActivityHotspot],
    config: Optional[InsightConfig] = None,
) -> Optional[ZoomSuggestion]:
    """Suggest zooming to the top hotspot when it shows significant recent activity."""
    config = config or get_insight_config()
    if not hotspots:
        return None

    top = hotspots[0]
    if top.recent_count < config.hotspot_zoom_min_recent:
        return None

    return ZoomSuggestion(
        hotspot=top,
        zoom=config.hotspot_zoom_level,
        message=f"{top.recent_count} recent reports in nearby area",
    )
