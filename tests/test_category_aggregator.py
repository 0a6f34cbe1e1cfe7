"""
test_category_aggregator.py - per-category toolbar state.
"""

import math

import pytest

from conftest import BOLE
from radar.models.report import ReportCategory
from radar.services.category_aggregator import category_analysis


def stats_for(stats, category):
    return next(s for s in stats if s.category == category)


class TestCategoryAnalysis:

    def test_every_category_in_enum_order(self, make_report, now, config):
        stats = category_analysis([make_report("w", "water")], BOLE, now, config)
        assert [s.category for s in stats] == list(ReportCategory)

    def test_no_location_is_all_empty(self, make_report, now, config):
        stats = category_analysis([make_report("w", "water")], None, now, config)
        assert all(not s.has_nearby and not s.has_recent and s.nearby_count == 0 for s in stats)
        assert all(math.isinf(s.closest_distance_km) for s in stats)

    def test_fuel_within_one_km(self, make_report, now, config):
        report = make_report("f", "fuel", north_km=0.5, hours_ago=1, metadata={"availability": True})
        fuel = stats_for(category_analysis([report], BOLE, now, config), ReportCategory.FUEL)
        assert fuel.nearby_count == 1
        assert fuel.has_nearby
        assert fuel.has_recent
        assert fuel.closest_distance_km == pytest.approx(0.5, abs=1e-6)

    def test_fuel_beyond_one_km_is_not_nearby(self, make_report, now, config):
        report = make_report("f", "fuel", north_km=1.2, hours_ago=1)
        fuel = stats_for(category_analysis([report], BOLE, now, config), ReportCategory.FUEL)
        assert fuel.nearby_count == 0
        assert not fuel.has_nearby
        assert math.isinf(fuel.closest_distance_km)

    def test_has_recent_uses_three_hours(self, make_report, now, config):
        reports = [make_report("old", "water", north_km=0.2, hours_ago=5)]
        water = stats_for(category_analysis(reports, BOLE, now, config), ReportCategory.WATER)
        assert water.has_nearby
        assert not water.has_recent

    def test_closest_of_several(self, make_report, now, config):
        reports = [
            make_report("a", "light", north_km=0.8),
            make_report("b", "light", north_km=0.3),
            make_report("c", "light", north_km=0.6),
        ]
        light = stats_for(category_analysis(reports, BOLE, now, config), ReportCategory.LIGHT)
        assert light.nearby_count == 3
        assert light.closest_distance_km == pytest.approx(0.3, abs=1e-6)

    def test_recomputing_gives_same_result(self, make_report, now, config):
        reports = [make_report("a", "light", north_km=0.4), make_report("b", "water", east_km=0.7)]
        assert category_analysis(reports, BOLE, now, config) == category_analysis(reports, BOLE, now, config)

    def test_infinite_distance_serializes_as_null(self, now, config):
        stats = category_analysis([], None, now, config)
        assert stats[0].model_dump(mode="json")["closest_distance_km"] is None
