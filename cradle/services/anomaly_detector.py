"""Rule-based anomaly detection over aggregated sleep, feeding and diaper summaries."""

import logging
from typing import List

from ..api.models import (
    SleepSummary, FeedingSummary, DiaperSummary, DetectedAnomaly, AnomalySeverity,
)
from ..core.constants import (
    HOURS_PER_DAY,
    SLEEP_DEFICIT_HIGH_PCT, SLEEP_DEFICIT_MEDIUM_PCT,
    WAKE_WINDOW_ALERT_MULTIPLIER, WAKE_WINDOW_HIGH_MULTIPLIER,
    FEEDING_DEFICIT_HIGH_PCT, FEEDING_DEFICIT_MEDIUM_PCT,
    FEEDING_GAP_MAX_MINUTES_YOUNG, FEEDING_GAP_MAX_MINUTES_OLDER,
    FEEDING_GAP_YOUNG_AGE_MONTHS, FEEDING_GAP_HIGH_SEVERITY_AGE_MONTHS,
    WET_DIAPER_HIGH_RATIO, WET_DIAPER_MEDIUM_RATIO, NO_STOOL_MAX_AGE_MONTHS,
)
from ..db.models import Category
from ..utils.formatting import format_wake_window, format_number, round_int, round_1
from .age_norms import AgeNorms, DEFAULT_AGE_NORMS

logger = logging.getLogger(__name__)


# Used by: AnomalyDetector.detect(), insights_service.py (analysis data)
def actual_daily_sleep_minutes(sleep: SleepSummary, window_hours: float) -> int:
    return round_int(sleep.total_sleep_minutes / (window_hours / HOURS_PER_DAY))


def deficit_percent(expected: float, actual: float) -> float:
    return (expected - actual) / expected * 100


class AnomalyDetector:
    """detect() is pure: the same summaries always yield the same anomalies."""

    def __init__(self, norms: AgeNorms = DEFAULT_AGE_NORMS):
        self.norms = norms

    # Used by: insights_service.py (anomaly detection)
    def detect(
        self,
        sleep: SleepSummary,
        feeding: FeedingSummary,
        diaper: DiaperSummary,
        age_months: int,
        window_hours: float,
    ) -> List[DetectedAnomaly]:
        period_days = window_hours / HOURS_PER_DAY
        anomalies: List[DetectedAnomaly] = []
        anomalies.extend(self._sleep_deficit(sleep, age_months, window_hours))
        anomalies.extend(self._extended_wake_window(sleep, age_months))
        anomalies.extend(self._feeding_deficit(feeding, age_months))
        anomalies.extend(self._long_feeding_gap(feeding, age_months))
        anomalies.extend(self._low_wet_diapers(diaper, age_months, period_days))
        anomalies.extend(self._no_dirty_diapers(diaper, age_months, period_days))

        if anomalies:
            logger.info(
                f"Detected {len(anomalies)} anomalies "
                f"({sum(1 for a in anomalies if a.severity == AnomalySeverity.HIGH)} high)"
            )
        return anomalies

    def _sleep_deficit(self, sleep: SleepSummary, age_months: int, window_hours: float) -> List[DetectedAnomaly]:
        expected = self.norms.expected_daily_sleep(age_months)
        actual = actual_daily_sleep_minutes(sleep, window_hours)
        deficit = deficit_percent(expected, actual)

        observed_value = f"{round_int(actual / 60)} hours/day"
        expected_value = f"{round_int(expected / 60)} hours/day"

        if deficit > SLEEP_DEFICIT_HIGH_PCT:
            return [DetectedAnomaly(
                category=Category.SLEEP.value,
                severity=AnomalySeverity.HIGH,
                title="Significant sleep deficit",
                description="Baby is sleeping significantly less than expected for their age.",
                observed_value=observed_value,
                expected_value=expected_value,
                recommendation=(
                    "Consider reviewing sleep environment and routine. "
                    "If this persists, consult with your pediatrician."
                ),
            )]
        if deficit > SLEEP_DEFICIT_MEDIUM_PCT:
            return [DetectedAnomaly(
                category=Category.SLEEP.value,
                severity=AnomalySeverity.MEDIUM,
                title="Below average sleep",
                description="Baby is sleeping less than typical for their age.",
                observed_value=observed_value,
                expected_value=expected_value,
                recommendation="Monitor sleep patterns and ensure consistent bedtime routine.",
            )]
        return []

    def _extended_wake_window(self, sleep: SleepSummary, age_months: int) -> List[DetectedAnomaly]:
        max_recommended = self.norms.recommended_wake_window(age_months) * WAKE_WINDOW_ALERT_MULTIPLIER
        longest = sleep.longest_wake_window
        if longest <= max_recommended:
            return []

        severity = (
            AnomalySeverity.HIGH
            if longest > max_recommended * WAKE_WINDOW_HIGH_MULTIPLIER
            else AnomalySeverity.MEDIUM
        )
        return [DetectedAnomaly(
            category=Category.SLEEP.value,
            severity=severity,
            title="Extended wake window detected",
            description="Baby had an unusually long period of wakefulness.",
            observed_value=format_wake_window(longest),
            expected_value=f"Max {format_wake_window(round_int(max_recommended))}",
            recommendation=(
                "Watch for overtiredness signs. "
                "Extended wake windows can lead to difficulty falling asleep."
            ),
        )]

    def _feeding_deficit(self, feeding: FeedingSummary, age_months: int) -> List[DetectedAnomaly]:
        expected = self.norms.expected_feedings(age_months)
        deficit = deficit_percent(expected, feeding.average_feedings_per_day)

        observed_value = f"{format_number(feeding.average_feedings_per_day)} feedings/day"
        expected_value = f"{expected} feedings/day"

        if deficit > FEEDING_DEFICIT_HIGH_PCT:
            return [DetectedAnomaly(
                category=Category.FEEDING.value,
                severity=AnomalySeverity.HIGH,
                title="Significantly fewer feedings",
                description="Baby is feeding much less frequently than expected for their age.",
                observed_value=observed_value,
                expected_value=expected_value,
                recommendation=(
                    "Monitor for signs of adequate nutrition. "
                    "Consult pediatrician if baby seems lethargic or is not gaining weight."
                ),
            )]
        if deficit > FEEDING_DEFICIT_MEDIUM_PCT:
            return [DetectedAnomaly(
                category=Category.FEEDING.value,
                severity=AnomalySeverity.MEDIUM,
                title="Fewer feedings than typical",
                description="Baby is feeding less frequently than typical for their age.",
                observed_value=observed_value,
                expected_value=expected_value,
                recommendation="Ensure baby is showing hunger cues and feeding well during each session.",
            )]
        return []

    def _long_feeding_gap(self, feeding: FeedingSummary, age_months: int) -> List[DetectedAnomaly]:
        max_gap = (
            FEEDING_GAP_MAX_MINUTES_YOUNG
            if age_months < FEEDING_GAP_YOUNG_AGE_MONTHS
            else FEEDING_GAP_MAX_MINUTES_OLDER
        )
        if feeding.longest_feeding_gap <= max_gap:
            return []

        young = age_months < FEEDING_GAP_HIGH_SEVERITY_AGE_MONTHS
        return [DetectedAnomaly(
            category=Category.FEEDING.value,
            severity=AnomalySeverity.HIGH if young else AnomalySeverity.MEDIUM,
            title="Long gap between feedings",
            description="There was an unusually long period between feedings.",
            observed_value=f"{round_int(feeding.longest_feeding_gap / 60)} hours",
            expected_value=f"Max {round_int(max_gap / 60)} hours",
            recommendation=(
                "Young babies typically need to feed every 2-3 hours. "
                "Consult pediatrician if baby is difficult to wake for feedings."
                if young else
                "Monitor to ensure baby is getting adequate nutrition throughout the day."
            ),
        )]

    def _low_wet_diapers(self, diaper: DiaperSummary, age_months: int, period_days: float) -> List[DetectedAnomaly]:
        expected = self.norms.expected_wet_diapers(age_months)
        wet_per_day = diaper.total_wet / period_days

        observed_value = f"{format_number(round_1(wet_per_day))} wet diapers/day"
        expected_value = f"{expected}+ wet diapers/day"

        if wet_per_day < expected * WET_DIAPER_HIGH_RATIO:
            return [DetectedAnomaly(
                category=Category.DIAPER.value,
                severity=AnomalySeverity.HIGH,
                title="Low wet diaper count",
                description=(
                    "Baby has significantly fewer wet diapers than expected, "
                    "which may indicate dehydration."
                ),
                observed_value=observed_value,
                expected_value=expected_value,
                recommendation=(
                    "This may indicate dehydration. "
                    "Ensure adequate feeding and consult pediatrician promptly."
                ),
            )]
        if wet_per_day < expected * WET_DIAPER_MEDIUM_RATIO:
            return [DetectedAnomaly(
                category=Category.DIAPER.value,
                severity=AnomalySeverity.MEDIUM,
                title="Below average wet diapers",
                description="Baby has fewer wet diapers than typical.",
                observed_value=observed_value,
                expected_value=expected_value,
                recommendation="Monitor hydration and ensure baby is feeding adequately.",
            )]
        return []

    def _no_dirty_diapers(self, diaper: DiaperSummary, age_months: int, period_days: float) -> List[DetectedAnomaly]:
        if age_months >= NO_STOOL_MAX_AGE_MONTHS or diaper.total_dirty > 0 or period_days < 1:
            return []
        return [DetectedAnomaly(
            category=Category.DIAPER.value,
            severity=AnomalySeverity.LOW,
            title="No dirty diapers recorded",
            description="No dirty diapers recorded in the analysis period.",
            observed_value="0 dirty diapers",
            expected_value="At least 1-2 per day for newborns",
            recommendation="While some variation is normal, monitor for signs of constipation or discomfort.",
        )]
