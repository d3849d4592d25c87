"""
Tests for rule-based anomaly detection (2-month-old unless noted: 15h sleep, 8 feedings, 6 wet diapers, 75m wake window).
"""
import pytest

from cradle.api.models import SleepSummary, FeedingSummary, DiaperSummary, AnomalySeverity
from cradle.services.anomaly_detector import AnomalyDetector, actual_daily_sleep_minutes

SEVERITY_RANK = {None: 0, AnomalySeverity.LOW: 1, AnomalySeverity.MEDIUM: 2, AnomalySeverity.HIGH: 3}


def healthy(**overrides):
    summaries = {
        "sleep": SleepSummary(total_sleep_minutes=900, session_count=6, longest_wake_window=60),
        "feeding": FeedingSummary(total_feedings=8, average_feedings_per_day=8.0, longest_feeding_gap=180),
        "diaper": DiaperSummary(total_changes=8, wet_count=6, dirty_count=2),
    }
    summaries.update(overrides)
    return summaries


def detect(age_months=2, window_hours=24, **overrides):
    return AnomalyDetector().detect(age_months=age_months, window_hours=window_hours, **healthy(**overrides))


def by_title(anomalies, title):
    return next((a for a in anomalies if a.title == title), None)


class TestHealthyBaseline:

    def test_no_anomalies(self):
        assert detect() == []

    def test_detection_is_deterministic(self):
        overrides = {"sleep": SleepSummary(total_sleep_minutes=500, longest_wake_window=200)}
        assert detect(**overrides) == detect(**overrides)


class TestSleepDeficit:

    def test_high_deficit(self):
        anomalies = detect(sleep=SleepSummary(total_sleep_minutes=600))

        anomaly = by_title(anomalies, "Significant sleep deficit")
        assert anomaly.severity == AnomalySeverity.HIGH
        assert anomaly.category == "sleep"
        assert anomaly.observed_value == "10 hours/day"
        assert anomaly.expected_value == "15 hours/day"

    def test_medium_deficit(self):
        anomaly = by_title(detect(sleep=SleepSummary(total_sleep_minutes=720)), "Below average sleep")

        assert anomaly.severity == AnomalySeverity.MEDIUM
        assert anomaly.observed_value == "12 hours/day"

    def test_small_deficit_not_flagged(self):
        assert detect(sleep=SleepSummary(total_sleep_minutes=800)) == []

    def test_daily_rate_uses_window_length(self):
        # 1200 minutes over 48h is 600/day
        assert actual_daily_sleep_minutes(SleepSummary(total_sleep_minutes=1200), 48) == 600

    def test_severity_never_drops_as_sleep_decreases(self):
        ranks = []
        for total in range(900, -1, -60):
            anomalies = detect(sleep=SleepSummary(total_sleep_minutes=total))
            sleep_severity = next((a.severity for a in anomalies if a.category == "sleep"), None)
            ranks.append(SEVERITY_RANK[sleep_severity])

        assert ranks == sorted(ranks)
        assert ranks[-1] == SEVERITY_RANK[AnomalySeverity.HIGH]


class TestExtendedWakeWindow:

    def test_medium_above_one_and_a_half_times_recommended(self):
        anomaly = by_title(
            detect(sleep=SleepSummary(total_sleep_minutes=900, longest_wake_window=120)),
            "Extended wake window detected",
        )

        assert anomaly.severity == AnomalySeverity.MEDIUM
        assert anomaly.observed_value == "2h 0m"
        assert anomaly.expected_value == "Max 1h 53m"

    def test_high_far_above_recommended(self):
        anomaly = by_title(
            detect(sleep=SleepSummary(total_sleep_minutes=900, longest_wake_window=200)),
            "Extended wake window detected",
        )

        assert anomaly.severity == AnomalySeverity.HIGH


class TestFeedingRules:

    def test_high_feeding_deficit(self):
        anomaly = by_title(
            detect(feeding=FeedingSummary(total_feedings=4, average_feedings_per_day=4.0)),
            "Significantly fewer feedings",
        )

        assert anomaly.severity == AnomalySeverity.HIGH
        assert anomaly.observed_value == "4 feedings/day"
        assert anomaly.expected_value == "8 feedings/day"

    def test_medium_feeding_deficit(self):
        anomaly = by_title(
            detect(feeding=FeedingSummary(average_feedings_per_day=5.5)),
            "Fewer feedings than typical",
        )

        assert anomaly.severity == AnomalySeverity.MEDIUM
        assert anomaly.observed_value == "5.5 feedings/day"

    @pytest.mark.parametrize("age_months, gap, severity, expected", [
        (2, 420, AnomalySeverity.HIGH, "Max 6 hours"),
        (4, 420, AnomalySeverity.MEDIUM, "Max 6 hours"),
        (7, 540, AnomalySeverity.MEDIUM, "Max 8 hours"),
    ])
    def test_long_gap_thresholds_by_age(self, age_months, gap, severity, expected):
        feeding = FeedingSummary(average_feedings_per_day=10.0, longest_feeding_gap=gap)

        anomaly = by_title(detect(age_months=age_months, feeding=feeding), "Long gap between feedings")

        assert anomaly.severity == severity
        assert anomaly.expected_value == expected

    def test_older_baby_tolerates_seven_hour_gap(self):
        feeding = FeedingSummary(average_feedings_per_day=10.0, longest_feeding_gap=420)

        assert by_title(detect(age_months=7, feeding=feeding), "Long gap between feedings") is None


class TestDiaperRules:

    def test_very_low_wet_count_is_high(self):
        anomaly = by_title(detect(diaper=DiaperSummary(wet_count=2, dirty_count=2)), "Low wet diaper count")

        assert anomaly.severity == AnomalySeverity.HIGH
        assert anomaly.observed_value == "2 wet diapers/day"
        assert anomaly.expected_value == "6+ wet diapers/day"

    def test_somewhat_low_wet_count_is_medium(self):
        anomaly = by_title(detect(diaper=DiaperSummary(wet_count=4, dirty_count=2)), "Below average wet diapers")

        assert anomaly.severity == AnomalySeverity.MEDIUM

    def test_mixed_diapers_count_as_wet(self):
        assert detect(diaper=DiaperSummary(wet_count=3, mixed_count=2, dirty_count=1)) == []

    def test_no_dirty_diapers_for_newborn(self):
        anomalies = detect(age_months=1, diaper=DiaperSummary(wet_count=8))

        anomaly = by_title(anomalies, "No dirty diapers recorded")
        assert anomaly.severity == AnomalySeverity.LOW
        assert anomaly.observed_value == "0 dirty diapers"

    def test_no_dirty_diapers_ignored_from_two_months(self):
        assert by_title(detect(diaper=DiaperSummary(wet_count=8)), "No dirty diapers recorded") is None

    def test_no_dirty_diapers_needs_a_full_day(self):
        anomalies = detect(age_months=1, window_hours=12, diaper=DiaperSummary(wet_count=4))

        assert by_title(anomalies, "No dirty diapers recorded") is None
