"""
test_proximity.py - radius filtering and category selection.
"""

from datetime import timedelta

from conftest import BOLE
from radar.models.report import GeoPoint, ReportCategory
from radar.services.proximity import (
    drop_expired,
    filter_by_categories,
    nearby_reports,
    report_distance_km,
    within_radius,
)


class TestWithinRadius:

    def test_keeps_reports_inside_and_drops_outside(self, make_report):
        inside = make_report("in", "water", north_km=0.5)
        outside = make_report("out", "water", north_km=1.5)
        assert within_radius([inside, outside], BOLE, 1.0) == [inside]

    def test_boundary_is_inclusive(self, make_report):
        report = make_report("edge", "fuel", north_km=0.8, east_km=0.6)
        radius = report_distance_km(report, BOLE)
        assert within_radius([report], BOLE, radius) == [report]

    def test_preserves_input_order(self, make_report):
        far = make_report("far", "water", north_km=0.9)
        near = make_report("near", "water", north_km=0.1)
        mid = make_report("mid", "water", east_km=0.5)
        assert [r.id for r in within_radius([far, near, mid], BOLE, 1.0)] == ["far", "near", "mid"]

    def test_unknown_distance_is_excluded(self, make_report):
        broken = make_report("broken", "water", location=GeoPoint(latitude=95.0, longitude=38.7))
        assert within_radius([broken], BOLE, 10_000) == []

    def test_two_km_includes_what_one_km_drops(self, make_report):
        report = make_report("r", "traffic", north_km=1.5)
        assert within_radius([report], BOLE, 1.0) == []
        assert within_radius([report], BOLE, 2.0) == [report]


class TestNearbyReports:

    def test_no_location_means_nothing_nearby(self, make_report):
        assert nearby_reports([make_report("r", "water")], None, 1.0) == []

    def test_empty_input(self):
        assert nearby_reports([], BOLE, 1.0) == []


class TestFilters:

    def test_filter_by_categories(self, make_report):
        water = make_report("w", "water")
        fuel = make_report("f", "fuel")
        assert filter_by_categories([water, fuel], [ReportCategory.FUEL]) == [fuel]

    def test_empty_selection_keeps_everything(self, make_report):
        reports = [make_report("w", "water"), make_report("f", "fuel")]
        assert filter_by_categories(reports, []) == reports
        assert filter_by_categories(reports, None) == reports

    def test_drop_expired(self, make_report, now):
        live = make_report("live", "fuel", is_sponsored=True, expires_at=now + timedelta(hours=1))
        gone = make_report("gone", "fuel", is_sponsored=True, expires_at=now - timedelta(minutes=1))
        plain = make_report("plain", "fuel")
        assert drop_expired([live, gone, plain], now) == [live, plain]
