"""
test_geo.py - haversine distance and timestamp parsing.
"""

import math
from datetime import datetime, timezone

import pytest

from radar.models.report import GeoPoint
from radar.utils.geo import distance_km, haversine_km
from radar.utils.timestamps import parse_timestamp


# ── haversine_km ──────────────────────────────────────────────────────────────

class TestHaversine:

    def test_same_point_is_zero(self):
        assert haversine_km(9.032, 38.7469, 9.032, 38.7469) == 0.0

    def test_symmetric(self):
        a = haversine_km(9.0320, 38.7469, 9.0084, 38.7648)
        b = haversine_km(9.0084, 38.7648, 9.0320, 38.7469)
        assert a == pytest.approx(b)

    def test_bole_to_meskel_square(self):
        """Two Addis Ababa landmarks about 3 km apart."""
        assert haversine_km(9.0320, 38.7469, 9.0084, 38.7648) == pytest.approx(3.1, abs=0.2)

    def test_paris_to_london(self):
        assert haversine_km(48.8566, 2.3522, 51.5074, -0.1278) == pytest.approx(343.5, abs=1.5)

    def test_one_degree_of_latitude(self):
        assert haversine_km(0, 0, 1, 0) == pytest.approx(111.195, abs=0.01)

    def test_antipodes_do_not_blow_up(self):
        assert haversine_km(0, 0, 0, 180) == pytest.approx(math.pi * 6371.0, rel=1e-9)

    @pytest.mark.parametrize("coords", [
        (math.nan, 38.7, 9.0, 38.7),
        (9.0, 38.7, 91.0, 38.7),
        (9.0, 181.0, 9.0, 38.7),
        (None, 38.7, 9.0, 38.7),
    ])
    def test_invalid_coordinates_give_nan(self, coords):
        assert math.isnan(haversine_km(*coords))

    def test_distance_km_reads_attributes(self):
        a = GeoPoint(latitude=9.0320, longitude=38.7469)
        b = GeoPoint(latitude=9.0084, longitude=38.7648)
        assert distance_km(a, b) == haversine_km(9.0320, 38.7469, 9.0084, 38.7648)


# ── parse_timestamp ───────────────────────────────────────────────────────────

class TestParseTimestamp:

    def test_iso_with_z(self):
        parsed = parse_timestamp("2026-03-01T10:00:00Z")
        assert parsed == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        parsed = parse_timestamp(datetime(2026, 3, 1, 10, 0))
        assert parsed.tzinfo is not None
        assert parsed.hour == 10

    def test_epoch_milliseconds(self):
        parsed = parse_timestamp(1772359200000)
        assert parsed == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_timestamp_like_object(self):
        class FirestoreTimestamp:
            def timestamp(self):
                return 1772359200.0

        assert parse_timestamp(FirestoreTimestamp()) == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "yesterday", True, object()])
    def test_unparseable_is_none(self, value):
        assert parse_timestamp(value) is None
