"""
Tests for surakshamap/services/aggregation.py.

All functions are pure; "now" and the timezone are always passed in.
"""

import random
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from surakshamap.models.analytics import TREND_DAYS, AnalyticsFilters
from surakshamap.services.aggregation import (
    aggregate,
    aggregate_counts,
    filter_reports,
    trend_series,
)

NOW = datetime(2024, 3, 5, 6, 0, tzinfo=timezone.utc)   # 11:30 in Kerala
TZ = ZoneInfo("Asia/Kolkata")
ALL_TIME = AnalyticsFilters(date_range_days=None)


@pytest.fixture()
def reports(make_report):
    return [
        make_report("infrastructure", "high", "open", days_ago=0, now=NOW),
        make_report("infrastructure", "medium", "resolved", days_ago=0, now=NOW),
        make_report("environment", "urgent", "open", days_ago=1, now=NOW, city="Kozhikode"),
        make_report("safety", "low", "in-progress", days_ago=3, now=NOW, city="Kozhikode"),
        make_report("traffic", "urgent", "resolved", days_ago=10, now=NOW, city=None),
    ]


class TestTrend:
    def test_seven_days_zero_filled(self, reports):
        trend = trend_series(reports, NOW, TZ)
        assert len(trend) == TREND_DAYS
        assert [p.count for p in trend] == [0, 0, 0, 1, 0, 1, 2]

    def test_oldest_first_ending_today(self, reports):
        trend = trend_series(reports, NOW, TZ)
        assert trend[0].day == date(2024, 2, 28)
        assert trend[-1].day == date(2024, 3, 5)
        assert trend[-1].label == "Mar 5"

    def test_buckets_by_local_day(self, make_report):
        # 20:00 UTC on the 4th is already the 5th in Kerala.
        late = make_report(now=datetime(2024, 3, 4, 20, 0, tzinfo=timezone.utc))
        trend = trend_series([late], NOW, TZ)
        assert trend[-1].count == 1
        assert trend[-2].count == 0

    def test_empty_input(self):
        trend = trend_series([], NOW, TZ)
        assert [p.count for p in trend] == [0] * TREND_DAYS


class TestFilters:
    def test_date_range(self, reports):
        assert len(filter_reports(reports, AnalyticsFilters(date_range_days=7), NOW)) == 4
        assert len(filter_reports(reports, ALL_TIME, NOW)) == 5

    @pytest.mark.parametrize("category", ["infrastructure", "Infrastructure", "INFRASTRUCTURE"])
    def test_category_by_type_or_label(self, reports, category):
        filtered = filter_reports(reports, AnalyticsFilters(date_range_days=None, category=category), NOW)
        assert len(filtered) == 2

    def test_critical_means_urgent(self, reports):
        filtered = filter_reports(reports, AnalyticsFilters(date_range_days=None, priority="Critical"), NOW)
        assert {r.priority.value for r in filtered} == {"urgent"}
        assert len(filtered) == 2

    def test_status_with_space(self, reports):
        filtered = filter_reports(reports, AnalyticsFilters(date_range_days=None, status="In Progress"), NOW)
        assert len(filtered) == 1


class TestAggregate:
    def test_breakdowns(self, reports):
        agg = aggregate(reports, ALL_TIME, NOW, TZ)
        assert agg.total == 5
        assert agg.by_category == {
            "Safety Issue": 1, "Infrastructure": 2, "Environmental": 1, "Traffic": 1,
        }
        assert agg.by_priority == {"low": 1, "medium": 1, "high": 1, "urgent": 2}
        assert agg.by_status == {"open": 2, "in-progress": 1, "resolved": 2}
        assert agg.most_common_category == "Infrastructure"
        assert agg.synthetic_trend is False

    def test_breakdowns_sum_to_total(self, reports):
        agg = aggregate(reports, AnalyticsFilters(date_range_days=7), NOW, TZ)
        for breakdown in (agg.by_category, agg.by_priority, agg.by_status, agg.by_location):
            assert sum(breakdown.values()) == agg.total

    def test_locations_most_frequent_first(self, reports):
        agg = aggregate(reports, ALL_TIME, NOW, TZ)
        assert list(agg.by_location)[0] in ("Kochi, Kerala", "Kozhikode, Kerala")
        assert agg.by_location["Kochi, Kerala"] == 2
        assert agg.by_location["Kozhikode, Kerala"] == 2

    def test_kpis(self, reports):
        agg = aggregate(reports, ALL_TIME, NOW, TZ)
        assert agg.kpis.total_reports == 5
        assert agg.kpis.open_reports == 2
        assert agg.kpis.resolution_rate == "40%"
        assert agg.kpis.critical_issues == 2
        assert agg.kpis.trend == "stable"

    def test_period_over_period_change(self, make_report):
        current = [make_report(days_ago=d, now=NOW) for d in (1, 2, 3)]
        previous = [make_report(days_ago=d, now=NOW) for d in (8, 9)]
        agg = aggregate(current + previous, AnalyticsFilters(date_range_days=7), NOW, TZ)
        assert agg.total == 3
        assert agg.kpis.total_change == 50.0
        assert agg.kpis.trend == "up"

    def test_empty(self):
        agg = aggregate([], AnalyticsFilters(), NOW, TZ)
        assert agg.total == 0
        assert agg.by_category == {}
        assert agg.kpis.resolution_rate == "0%"
        assert agg.most_common_category == "None"

    def test_idempotent(self, reports):
        first = aggregate(reports, ALL_TIME, NOW, TZ)
        second = aggregate(reports, ALL_TIME, NOW, TZ)
        assert first.model_dump() == second.model_dump()


class TestAggregateCounts:
    def test_counts_only(self):
        agg = aggregate_counts(
            {"Infrastructure": 2, "environment": 3, "Traffic": 0},
            rng=random.Random(3), now=NOW, tz=TZ,
        )
        assert agg.total == 5
        assert agg.by_category == {"Infrastructure": 2, "Environmental": 3}
        assert agg.synthetic_trend is True
        assert len(agg.trend) == TREND_DAYS

    def test_unknown_names_fold_into_other(self):
        agg = aggregate_counts({"Stray dogs": 2, "other": 1}, rng=random.Random(3), now=NOW, tz=TZ)
        assert agg.by_category == {"Other": 3}

    def test_seeded_trend_is_reproducible(self):
        first = aggregate_counts({"Traffic": 14}, rng=random.Random(42), now=NOW, tz=TZ)
        second = aggregate_counts({"Traffic": 14}, rng=random.Random(42), now=NOW, tz=TZ)
        assert first.trend == second.trend
        # total // 7 is the floor for every synthetic day
        assert all(p.count >= 2 for p in first.trend)
