"""Pydantic response models for the insights endpoints (also the cached payload shape)."""

from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional


class TrendPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    NEW = "new"


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Category summaries

class SleepComparison(BaseModel):
    sleep_change: int
    nap_count_change: int
    consistency_change: int


class SleepSummary(BaseModel):
    total_sleep_minutes: int = 0
    session_count: int = 0
    nap_count: int = 0
    nap_minutes: int = 0
    night_sleep_count: int = 0
    night_sleep_minutes: int = 0
    average_daily_sleep_minutes: int = 0
    average_nap_duration: Optional[int] = None
    average_night_sleep_duration: Optional[int] = None
    average_wake_window: Optional[int] = None
    longest_wake_window: int = 0
    wake_window_count: int = 0
    consistency_score: int = 50
    comparison_to_previous: Optional[SleepComparison] = None


class FeedingComparison(BaseModel):
    feeding_count_change: int
    bottle_volume_change: int


class FeedingSummary(BaseModel):
    total_feedings: int = 0
    breastfeeding_count: int = 0
    bottle_count: int = 0
    pumping_count: int = 0
    solid_count: int = 0
    total_bottle_volume: int = 0
    average_bottle_amount: Optional[int] = None
    average_breastfeeding_minutes: Optional[int] = None
    total_breastfeeding_minutes: int = 0
    average_feedings_per_day: float = 0.0
    longest_feeding_gap: int = 0
    consistency_score: int = 50
    comparison_to_previous: Optional[FeedingComparison] = None


class DiaperComparison(BaseModel):
    total_change: int
    wet_change: int
    dirty_change: int


class DiaperSummary(BaseModel):
    total_changes: int = 0
    wet_count: int = 0
    dirty_count: int = 0
    mixed_count: int = 0
    average_changes_per_day: float = 0.0
    wet_to_dirty_ratio: Optional[float] = None
    comparison_to_previous: Optional[DiaperComparison] = None

    @property
    def total_wet(self) -> int:
        """Mixed diapers are wet too."""
        return self.wet_count + self.mixed_count

    @property
    def total_dirty(self) -> int:
        return self.dirty_count + self.mixed_count


class GrowthSummary(BaseModel):
    has_measurements: bool = False
    measurement_count: int = 0
    # grams / millimeters, converted only for display
    start_weight: Optional[int] = None
    end_weight: Optional[int] = None
    weight_gain: Optional[int] = None
    start_height: Optional[int] = None
    end_height: Optional[int] = None
    height_gain: Optional[int] = None
    latest_head_circumference: Optional[int] = None
    weight_percentile: Optional[float] = None
    height_percentile: Optional[float] = None
    head_percentile: Optional[float] = None


class ActivityComparison(BaseModel):
    tummy_time_change: int
    outdoor_time_change: int


class ActivitySummary(BaseModel):
    total_activities: int = 0
    minutes_by_type: Dict[str, int] = Field(default_factory=dict)
    tummy_time_minutes: int = 0
    average_daily_tummy_time: int = 0
    bath_count: int = 0
    outdoor_minutes: int = 0
    play_minutes: int = 0
    comparison_to_previous: Optional[ActivityComparison] = None


class AggregatedData(BaseModel):
    sleep: SleepSummary
    feeding: FeedingSummary
    diaper: DiaperSummary
    growth: GrowthSummary
    activity: ActivitySummary

    @property
    def total_events(self) -> int:
        return (
            self.sleep.session_count
            + self.feeding.total_feedings
            + self.diaper.total_changes
            + self.growth.measurement_count
            + self.activity.total_activities
        )


# Weekly summary

class WeeklySummaryResponse(BaseModel):
    baby_id: str
    baby_name: str
    baby_age_months: int
    week_start: datetime
    week_end: datetime
    period_days: int
    aggregated_data: AggregatedData
    ai_summary: str
    ai_summary_generated: bool
    ai_error: Optional[str] = None
    ai_duration_ms: Optional[int] = None
    generated_at: datetime


# Sleep prediction

class WakeWindowStats(BaseModel):
    average_minutes: int
    min_minutes: int
    max_minutes: int
    count: int
    average_formatted: str


class SleepSessionSummary(BaseModel):
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    sleep_type: str
    wake_window_before: Optional[int] = None


class SleepPatternData(BaseModel):
    baby_id: str
    baby_name: str
    baby_age_months: int
    analysis_start: datetime
    analysis_end: datetime
    analysis_days: int
    total_sessions: int
    nap_count: int
    night_sleep_count: int
    average_nap_duration: Optional[int] = None
    average_night_sleep_duration: Optional[int] = None
    wake_window_stats: WakeWindowStats
    recent_sessions: List[SleepSessionSummary]
    current_wake_window_minutes: Optional[int] = None
    current_wake_window_formatted: Optional[str] = None
    last_wake_time: Optional[datetime] = None


class SleepPredictionResponse(BaseModel):
    baby_id: str
    baby_name: str
    predicted_nap_time: datetime
    confidence: float
    recommended_wake_window_minutes: int
    recommended_wake_window_formatted: str
    current_wake_window_minutes: Optional[int] = None
    current_wake_window_formatted: Optional[str] = None
    minutes_until_nap: int
    reasoning: str
    pattern_data: SleepPatternData
    ai_analysis_generated: bool
    ai_error: Optional[str] = None
    ai_duration_ms: Optional[int] = None
    generated_at: datetime


# Anomaly detection

class DetectedAnomaly(BaseModel):
    category: str
    severity: AnomalySeverity
    title: str
    description: str
    observed_value: str
    expected_value: str
    recommendation: str


class AnomalyAnalysisData(BaseModel):
    analysis_start: datetime
    analysis_end: datetime
    analysis_hours: int
    sleep: SleepSummary
    feeding: FeedingSummary
    diaper: DiaperSummary
    actual_daily_sleep_minutes: int
    expected_daily_sleep_minutes: int
    expected_feedings_per_day: int
    expected_wet_per_day: int
    recommended_wake_window: int


class AnomalyDetectionResponse(BaseModel):
    baby_id: str
    baby_name: str
    baby_age_months: int
    anomalies: List[DetectedAnomaly]
    anomaly_count: int
    has_high_severity: bool
    analysis_data: AnomalyAnalysisData
    ai_analysis: str
    ai_analysis_generated: bool
    ai_error: Optional[str] = None
    ai_duration_ms: Optional[int] = None
    generated_at: datetime


# Daily summary

class DailyFeedingSummary(BaseModel):
    count: int
    total_minutes: int
    total_ml: int
    by_type: Dict[str, int]


class DailySleepSummary(BaseModel):
    total_minutes: int
    nap_count: int
    nap_minutes: int
    night_sleep_minutes: int
    average_nap_duration: Optional[int] = None


class DailyDiaperSummary(BaseModel):
    total: int
    wet: int
    dirty: int
    mixed: int


class DailyActivitiesSummary(BaseModel):
    tummy_time_minutes: int
    bath_count: int
    outdoor_minutes: int


class HourlyBreakdownEntry(BaseModel):
    hour: int
    feeding: int = 0
    sleep: int = 0
    diaper: int = 0
    activity: int = 0
    total: int = 0


class DailySummaryResponse(BaseModel):
    baby_id: str
    baby_name: str
    date: str
    feeding: DailyFeedingSummary
    sleep: DailySleepSummary
    diaper: DailyDiaperSummary
    activities: DailyActivitiesSummary
    hourly_breakdown: List[HourlyBreakdownEntry]
    generated_at: datetime


# Trend insights

class TrendInsightItem(BaseModel):
    category: str
    title: str
    description: str
    trend: TrendDirection
    change_percent: Optional[int] = None
    recommendation: Optional[str] = None
    # stable-but-positive items (e.g. excellent consistency) still count as highlights
    highlight: bool = False


class TrendInsightsResponse(BaseModel):
    baby_id: str
    baby_name: str
    baby_age_months: int
    period: TrendPeriod
    period_start: datetime
    period_end: datetime
    period_days: int
    aggregated_data: AggregatedData
    insights: List[TrendInsightItem]
    ai_summary: str
    ai_summary_generated: bool
    ai_error: Optional[str] = None
    ai_duration_ms: Optional[int] = None
    highlights: List[str]
    areas_of_concern: List[str]
    generated_at: datetime
