"""
Great-circle distance helpers.

Every proximity computation in the service goes through distance_km so the
toolbar, summary bubble, trend detection and hotspots all agree.
"""

import math

EARTH_RADIUS_KM = 6371.0


def _valid(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points using the Haversine formula.

    Returns NaN when any coordinate is NaN or out of range.
    """
    try:
        if not (_valid(lat1, lon1) and _valid(lat2, lon2)):
            return math.nan
    except TypeError:
        return math.nan

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)
    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a, b) -> float:
    """Distance in km between two objects with latitude/longitude attributes."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
