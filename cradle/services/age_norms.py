"""Age-banded expected values as injectable lookup tables."""

from dataclasses import dataclass
from typing import Tuple

from ..core.constants import (
    WAKE_WINDOW_MINUTES_BY_AGE, WAKE_WINDOW_MINUTES_DEFAULT,
    DAILY_SLEEP_MINUTES_BY_AGE, DAILY_SLEEP_MINUTES_DEFAULT,
    FEEDINGS_PER_DAY_BY_AGE, FEEDINGS_PER_DAY_DEFAULT,
    WET_DIAPERS_PER_DAY_BY_AGE, WET_DIAPERS_PER_DAY_DEFAULT,
    TUMMY_TIME_MINUTES_BY_AGE, TUMMY_TIME_MINUTES_DEFAULT,
)


@dataclass(frozen=True)
class AgeTable:
    """Ordered (upper_bound_exclusive_months, value) bands plus a value for everything older."""
    bands: Tuple[Tuple[int, int], ...]
    default: int

    def __post_init__(self):
        bounds = [bound for bound, _ in self.bands]
        if bounds != sorted(bounds):
            raise ValueError(f"Age bands must be ordered by bound: {bounds}")

    def lookup(self, age_months: int) -> int:
        for upper_bound, value in self.bands:
            if age_months < upper_bound:
                return value
        return self.default


@dataclass(frozen=True)
class AgeNorms:
    wake_window_minutes: AgeTable = AgeTable(WAKE_WINDOW_MINUTES_BY_AGE, WAKE_WINDOW_MINUTES_DEFAULT)
    daily_sleep_minutes: AgeTable = AgeTable(DAILY_SLEEP_MINUTES_BY_AGE, DAILY_SLEEP_MINUTES_DEFAULT)
    feedings_per_day: AgeTable = AgeTable(FEEDINGS_PER_DAY_BY_AGE, FEEDINGS_PER_DAY_DEFAULT)
    wet_diapers_per_day: AgeTable = AgeTable(WET_DIAPERS_PER_DAY_BY_AGE, WET_DIAPERS_PER_DAY_DEFAULT)
    tummy_time_minutes: AgeTable = AgeTable(TUMMY_TIME_MINUTES_BY_AGE, TUMMY_TIME_MINUTES_DEFAULT)

    # Used by: sleep_patterns.py, anomaly_detector.py, insights_service.py (sleep prediction)
    def recommended_wake_window(self, age_months: int) -> int:
        return self.wake_window_minutes.lookup(age_months)

    # Used by: anomaly_detector.py, trend_analyzer.py
    def expected_daily_sleep(self, age_months: int) -> int:
        return self.daily_sleep_minutes.lookup(age_months)

    def expected_feedings(self, age_months: int) -> int:
        return self.feedings_per_day.lookup(age_months)

    def expected_wet_diapers(self, age_months: int) -> int:
        return self.wet_diapers_per_day.lookup(age_months)

    # Used by: trend_analyzer.py
    def recommended_tummy_time(self, age_months: int) -> int:
        return self.tummy_time_minutes.lookup(age_months)


DEFAULT_AGE_NORMS = AgeNorms()
