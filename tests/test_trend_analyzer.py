"""
Tests for period windows, previous-period comparison and trend insight rules.
"""
from datetime import datetime, date

import pytz

from cradle.api.models import (
    AggregatedData, SleepSummary, FeedingSummary, DiaperSummary, GrowthSummary, ActivitySummary,
    TrendDirection, TrendPeriod,
)
from cradle.services.trend_analyzer import resolve_window, compare, TrendInsightBuilder

from conftest import NOW


def utc(*args):
    return datetime(*args, tzinfo=pytz.utc)


def aggregated(**overrides):
    parts = {
        "sleep": SleepSummary(),
        "feeding": FeedingSummary(),
        "diaper": DiaperSummary(),
        "growth": GrowthSummary(),
        "activity": ActivitySummary(),
    }
    parts.update(overrides)
    return AggregatedData(**parts)


class TestResolveWindow:
    """Windows are anchored on 2026-03-15 12:00 UTC."""

    def test_daily(self):
        window = resolve_window(TrendPeriod.DAILY, NOW, pytz.utc)

        assert window.start == utc(2026, 3, 15)
        assert window.end == NOW
        assert window.previous_start == utc(2026, 3, 14)
        assert window.previous_end == utc(2026, 3, 14, 23, 59, 59, 999999)
        assert window.days == 1

    def test_weekly(self):
        window = resolve_window(TrendPeriod.WEEKLY, NOW, pytz.utc)

        assert window.start == utc(2026, 3, 8)
        assert window.previous_end == utc(2026, 3, 7, 23, 59, 59, 999999)
        assert window.previous_start == utc(2026, 2, 28)

    def test_monthly(self):
        window = resolve_window(TrendPeriod.MONTHLY, NOW, pytz.utc)

        assert window.start == utc(2026, 2, 15)
        assert window.previous_start == utc(2026, 1, 14)

    def test_monthly_clamps_to_shorter_month(self):
        window = resolve_window(TrendPeriod.MONTHLY, utc(2026, 3, 31, 9), pytz.utc)

        assert window.start == utc(2026, 2, 28)

    def test_yearly_has_no_previous_period(self):
        window = resolve_window(TrendPeriod.YEARLY, NOW, pytz.utc)

        assert window.start == utc(2025, 3, 15)
        assert not window.has_previous

    def test_explicit_dates_cover_whole_days(self):
        window = resolve_window(
            TrendPeriod.WEEKLY, NOW, pytz.utc, start_date=date(2026, 3, 1), end_date=date(2026, 3, 7),
        )

        assert window.start == utc(2026, 3, 1)
        assert window.end == utc(2026, 3, 7, 23, 59, 59, 999999)
        assert window.days == 7

    def test_local_day_boundaries(self):
        tz = pytz.timezone("America/New_York")
        # 02:00 UTC on the 15th is still the 14th in New York
        window = resolve_window(TrendPeriod.DAILY, utc(2026, 3, 15, 2), tz)

        assert window.start == tz.localize(datetime(2026, 3, 14))


class TestCompare:

    def test_no_previous_leaves_current_untouched(self):
        current = aggregated(sleep=SleepSummary(average_daily_sleep_minutes=800))

        assert compare(current, None) is current

    def test_deltas_are_current_minus_previous(self):
        current = aggregated(
            sleep=SleepSummary(average_daily_sleep_minutes=800, nap_count=10, consistency_score=70),
            feeding=FeedingSummary(total_feedings=50, total_bottle_volume=3000),
            diaper=DiaperSummary(total_changes=40, wet_count=30, dirty_count=10),
            activity=ActivitySummary(tummy_time_minutes=100, outdoor_minutes=60),
        )
        previous = aggregated(
            sleep=SleepSummary(average_daily_sleep_minutes=760, nap_count=12, consistency_score=60),
            feeding=FeedingSummary(total_feedings=45, total_bottle_volume=3200),
            diaper=DiaperSummary(total_changes=42, wet_count=28, dirty_count=14),
            activity=ActivitySummary(tummy_time_minutes=70, outdoor_minutes=90),
        )

        data = compare(current, previous)

        assert data.sleep.comparison_to_previous.sleep_change == 40
        assert data.sleep.comparison_to_previous.nap_count_change == -2
        assert data.sleep.comparison_to_previous.consistency_change == 10
        assert data.feeding.comparison_to_previous.feeding_count_change == 5
        assert data.feeding.comparison_to_previous.bottle_volume_change == -200
        assert data.diaper.comparison_to_previous.total_change == -2
        assert data.diaper.comparison_to_previous.dirty_change == -4
        assert data.activity.comparison_to_previous.tummy_time_change == 30
        assert data.activity.comparison_to_previous.outdoor_time_change == -30
        # inputs are not mutated
        assert current.sleep.comparison_to_previous is None


class TestTrendInsightBuilder:
    """2-month-old: 15h sleep, 8 feedings, 6 wet diapers, 15 min tummy time."""

    builder = TrendInsightBuilder()

    def test_no_data_no_insights(self):
        data = aggregated()
        insights = self.builder.build_insights(data, 2, 7)

        assert insights == []
        assert self.builder.build_highlights(insights, data) == []
        assert self.builder.build_concerns(insights) == []

    def test_declining_rules_and_concern_cap(self):
        data = aggregated(
            sleep=SleepSummary(session_count=30, average_daily_sleep_minutes=600, consistency_score=40),
            feeding=FeedingSummary(total_feedings=28, average_feedings_per_day=4.0, consistency_score=60),
            diaper=DiaperSummary(total_changes=20, wet_count=14, dirty_count=6),
        )

        insights = self.builder.build_insights(data, 2, 7)
        titles = [i.title for i in insights]

        assert titles == [
            "Below average sleep",
            "Inconsistent sleep patterns",
            "Fewer feedings than typical",
            "Low wet diaper count",
        ]
        assert insights[0].change_percent == -33
        assert insights[0].trend == TrendDirection.DECLINING
        assert insights[3].description == "Wet diapers are below expected levels (2/day vs 6+ expected)."

        concerns = self.builder.build_concerns(insights)
        assert len(concerns) == 3
        assert concerns[0] == "Below average sleep: Consider reviewing sleep environment and bedtime routine."

    def test_positive_rules_and_highlight_cap(self):
        data = aggregated(
            sleep=SleepSummary(session_count=30, average_daily_sleep_minutes=900, consistency_score=85),
            feeding=FeedingSummary(total_feedings=56, average_feedings_per_day=8.0, consistency_score=90),
            growth=GrowthSummary(has_measurements=True, measurement_count=2, weight_gain=700),
            activity=ActivitySummary(total_activities=7, tummy_time_minutes=140, average_daily_tummy_time=20),
        )

        insights = self.builder.build_insights(data, 2, 7)
        highlights = self.builder.build_highlights(insights, data)

        assert [i.title for i in insights] == [
            "Excellent sleep consistency",
            "Healthy weight gain",
            "Great tummy time!",
        ]
        assert insights[0].highlight
        assert insights[1].description == "Baby gained 0.70 kg (100 g/day)."
        assert highlights == [
            "Excellent sleep consistency",
            "Healthy weight gain",
            "Great tummy time!",
            "Consistent sleep schedule",
            "Regular feeding pattern",
        ]
        assert self.builder.build_concerns(insights) == []

    def test_above_average_sleep_is_not_a_concern(self):
        data = aggregated(sleep=SleepSummary(session_count=20, average_daily_sleep_minutes=1100, consistency_score=60))

        insights = self.builder.build_insights(data, 2, 7)

        assert insights[0].title == "Above average sleep"
        assert insights[0].trend == TrendDirection.STABLE
        assert self.builder.build_concerns(insights) == []
        assert self.builder.build_highlights(insights, data) == []

    def test_too_little_tummy_time(self):
        data = aggregated(activity=ActivitySummary(total_activities=2, tummy_time_minutes=14, average_daily_tummy_time=2))

        insights = self.builder.build_insights(data, 2, 7)

        assert insights[0].title == "More tummy time recommended"
        assert insights[0].description == "Current average is 2 min/day. Aim for 15+ minutes."
        assert self.builder.build_highlights(insights, data) == ["14 minutes of tummy time"]
