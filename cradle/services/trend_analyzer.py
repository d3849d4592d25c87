"""Period windows, previous-period comparison and rule-based trend insights."""

import logging
from dataclasses import dataclass
from datetime import datetime, date, timedelta
from typing import List, Optional, Union

from ..api.models import (
    AggregatedData, SleepSummary, FeedingSummary, DiaperSummary, ActivitySummary,
    SleepComparison, FeedingComparison, DiaperComparison, ActivityComparison,
    TrendInsightItem, TrendDirection, TrendPeriod,
)
from ..core.constants import (
    WEEK_DAYS,
    TREND_SLEEP_DEVIATION_PCT, TREND_FEEDING_DEVIATION_PER_DAY,
    TREND_EXCELLENT_CONSISTENCY, TREND_POOR_CONSISTENCY, TREND_HIGHLIGHT_CONSISTENCY,
    TREND_MAX_HIGHLIGHTS, TREND_MAX_CONCERNS, WET_DIAPER_MEDIUM_RATIO,
)
from ..db.models import Category
from ..utils.dates import start_of_day, end_of_day, shift_months, period_days as compute_period_days
from ..utils.formatting import round_int, round_1, format_number
from .age_norms import AgeNorms, DEFAULT_AGE_NORMS

logger = logging.getLogger(__name__)

ONE_MICROSECOND = timedelta(microseconds=1)


@dataclass(frozen=True)
class PeriodWindow:
    period: TrendPeriod
    start: datetime
    end: datetime
    previous_start: Optional[datetime] = None
    previous_end: Optional[datetime] = None

    @property
    def days(self) -> int:
        return compute_period_days(self.start, self.end)

    @property
    def has_previous(self) -> bool:
        return self.previous_start is not None and self.previous_end is not None


# Used by: insights_service.py (trend insights)
def resolve_window(
    period: TrendPeriod,
    now: datetime,
    tz,
    start_date: Optional[Union[date, datetime]] = None,
    end_date: Optional[Union[date, datetime]] = None,
) -> PeriodWindow:
    """Current window ends now (or at the end of end_date); the previous window ends 1 µs before it starts.

    Yearly windows have no previous period.
    """
    period = TrendPeriod(period)
    end = end_of_day(end_date, tz) if end_date is not None else now

    if period == TrendPeriod.DAILY:
        start = start_of_day(start_date if start_date is not None else end, tz)
        previous_end = start - ONE_MICROSECOND
        previous_start = start_of_day(previous_end, tz)

    elif period == TrendPeriod.WEEKLY:
        start = start_of_day(start_date if start_date is not None else end - timedelta(days=WEEK_DAYS), tz)
        previous_end = start - ONE_MICROSECOND
        previous_start = start_of_day(previous_end - timedelta(days=WEEK_DAYS), tz)

    elif period == TrendPeriod.MONTHLY:
        start = start_of_day(start_date if start_date is not None else shift_months(end, -1, tz), tz)
        previous_end = start - ONE_MICROSECOND
        previous_start = start_of_day(shift_months(previous_end, -1, tz), tz)

    else:
        start = start_of_day(start_date if start_date is not None else shift_months(end, -12, tz), tz)
        previous_end = previous_start = None

    return PeriodWindow(period, start, end, previous_start, previous_end)


# Used by: insights_service.py (trend insights)
def compare(current: AggregatedData, previous: Optional[AggregatedData]) -> AggregatedData:
    """Current summaries with comparison_to_previous filled in; growth never carries one."""
    if previous is None:
        return current

    sleep = current.sleep.model_copy(update={"comparison_to_previous": SleepComparison(
        sleep_change=current.sleep.average_daily_sleep_minutes - previous.sleep.average_daily_sleep_minutes,
        nap_count_change=current.sleep.nap_count - previous.sleep.nap_count,
        consistency_change=current.sleep.consistency_score - previous.sleep.consistency_score,
    )})
    feeding = current.feeding.model_copy(update={"comparison_to_previous": FeedingComparison(
        feeding_count_change=current.feeding.total_feedings - previous.feeding.total_feedings,
        bottle_volume_change=current.feeding.total_bottle_volume - previous.feeding.total_bottle_volume,
    )})
    diaper = current.diaper.model_copy(update={"comparison_to_previous": DiaperComparison(
        total_change=current.diaper.total_changes - previous.diaper.total_changes,
        wet_change=current.diaper.wet_count - previous.diaper.wet_count,
        dirty_change=current.diaper.dirty_count - previous.diaper.dirty_count,
    )})
    activity = current.activity.model_copy(update={"comparison_to_previous": ActivityComparison(
        tummy_time_change=current.activity.tummy_time_minutes - previous.activity.tummy_time_minutes,
        outdoor_time_change=current.activity.outdoor_minutes - previous.activity.outdoor_minutes,
    )})

    return current.model_copy(update={
        "sleep": sleep,
        "feeding": feeding,
        "diaper": diaper,
        "activity": activity,
    })


class TrendInsightBuilder:
    """Deterministic insights, highlights and concerns from one window's summaries."""

    def __init__(self, norms: AgeNorms = DEFAULT_AGE_NORMS):
        self.norms = norms

    # Used by: insights_service.py (trend insights)
    def build_insights(self, data: AggregatedData, age_months: int, period_days: int) -> List[TrendInsightItem]:
        insights: List[TrendInsightItem] = []

        if data.sleep.session_count > 0:
            insights.extend(self._sleep_insights(data.sleep, age_months))
        if data.feeding.total_feedings > 0:
            insights.extend(self._feeding_insights(data.feeding, age_months))
        if data.diaper.total_changes > 0:
            insights.extend(self._diaper_insights(data.diaper, age_months, period_days))

        growth = data.growth
        if growth.has_measurements and growth.weight_gain is not None and growth.weight_gain > 0:
            insights.append(TrendInsightItem(
                category=Category.GROWTH.value,
                title="Healthy weight gain",
                description=(
                    f"Baby gained {growth.weight_gain / 1000:.2f} kg "
                    f"({round_int(growth.weight_gain / period_days)} g/day)."
                ),
                trend=TrendDirection.IMPROVING,
            ))

        if data.activity.total_activities > 0:
            insights.extend(self._activity_insights(data.activity, age_months))

        return insights

    def _sleep_insights(self, sleep: SleepSummary, age_months: int) -> List[TrendInsightItem]:
        insights = []
        expected = self.norms.expected_daily_sleep(age_months)
        diff = sleep.average_daily_sleep_minutes - expected
        diff_percent = round_int(diff / expected * 100)

        if abs(diff_percent) > TREND_SLEEP_DEVIATION_PCT:
            more = diff > 0
            insights.append(TrendInsightItem(
                category=Category.SLEEP.value,
                title="Above average sleep" if more else "Below average sleep",
                description=(
                    f"Baby is sleeping {abs(diff_percent)}% {'more' if more else 'less'} "
                    f"than typical for their age."
                ),
                trend=TrendDirection.STABLE if more else TrendDirection.DECLINING,
                change_percent=diff_percent,
                recommendation=None if more else "Consider reviewing sleep environment and bedtime routine.",
            ))

        if sleep.consistency_score >= TREND_EXCELLENT_CONSISTENCY:
            insights.append(TrendInsightItem(
                category=Category.SLEEP.value,
                title="Excellent sleep consistency",
                description=f"Sleep patterns are very consistent with a score of {sleep.consistency_score}/100.",
                trend=TrendDirection.STABLE,
                highlight=True,
            ))
        elif sleep.consistency_score < TREND_POOR_CONSISTENCY:
            insights.append(TrendInsightItem(
                category=Category.SLEEP.value,
                title="Inconsistent sleep patterns",
                description=(
                    f"Sleep times and durations vary significantly "
                    f"(consistency score: {sleep.consistency_score}/100)."
                ),
                trend=TrendDirection.DECLINING,
                recommendation="Try to establish more consistent sleep and wake times.",
            ))
        return insights

    def _feeding_insights(self, feeding: FeedingSummary, age_months: int) -> List[TrendInsightItem]:
        expected = self.norms.expected_feedings(age_months)
        diff = feeding.average_feedings_per_day - expected
        if abs(diff) <= TREND_FEEDING_DEVIATION_PER_DAY:
            return []

        more = diff > 0
        return [TrendInsightItem(
            category=Category.FEEDING.value,
            title="Frequent feedings" if more else "Fewer feedings than typical",
            description=(
                f"Baby is having {abs(round_int(diff))} {'more' if more else 'fewer'} "
                f"feedings per day than typical."
            ),
            trend=TrendDirection.STABLE if more else TrendDirection.DECLINING,
            recommendation=None if more else "Ensure baby is showing hunger cues and feeding adequately.",
        )]

    def _diaper_insights(self, diaper: DiaperSummary, age_months: int, period_days: int) -> List[TrendInsightItem]:
        expected = self.norms.expected_wet_diapers(age_months)
        wet_per_day = diaper.total_wet / period_days
        if wet_per_day >= expected * WET_DIAPER_MEDIUM_RATIO:
            return []

        return [TrendInsightItem(
            category=Category.DIAPER.value,
            title="Low wet diaper count",
            description=(
                f"Wet diapers are below expected levels "
                f"({format_number(round_1(wet_per_day))}/day vs {expected}+ expected)."
            ),
            trend=TrendDirection.DECLINING,
            recommendation="Monitor hydration and ensure adequate feeding.",
        )]

    def _activity_insights(self, activity: ActivitySummary, age_months: int) -> List[TrendInsightItem]:
        recommended = self.norms.recommended_tummy_time(age_months)
        daily = activity.average_daily_tummy_time

        if daily >= recommended:
            return [TrendInsightItem(
                category=Category.ACTIVITY.value,
                title="Great tummy time!",
                description=f"Baby is getting {daily} minutes of tummy time per day.",
                trend=TrendDirection.IMPROVING,
            )]
        if daily < recommended * 0.5:
            return [TrendInsightItem(
                category=Category.ACTIVITY.value,
                title="More tummy time recommended",
                description=f"Current average is {daily} min/day. Aim for {recommended}+ minutes.",
                trend=TrendDirection.STABLE,
                recommendation="Try short tummy time sessions throughout the day.",
            )]
        return []

    # Used by: insights_service.py (trend insights)
    def build_highlights(self, insights: List[TrendInsightItem], data: AggregatedData) -> List[str]:
        highlights = [
            insight.title
            for insight in insights
            if insight.trend == TrendDirection.IMPROVING
            or (insight.trend == TrendDirection.STABLE and insight.highlight)
        ]

        if data.sleep.session_count > 0 and data.sleep.consistency_score >= TREND_HIGHLIGHT_CONSISTENCY:
            highlights.append("Consistent sleep schedule")
        if data.feeding.total_feedings > 0 and data.feeding.consistency_score >= TREND_HIGHLIGHT_CONSISTENCY:
            highlights.append("Regular feeding pattern")
        if data.activity.tummy_time_minutes > 0:
            highlights.append(f"{data.activity.tummy_time_minutes} minutes of tummy time")

        return highlights[:TREND_MAX_HIGHLIGHTS]

    # Used by: insights_service.py (trend insights)
    def build_concerns(self, insights: List[TrendInsightItem]) -> List[str]:
        concerns = [
            f"{insight.title}: {insight.recommendation}"
            for insight in insights
            if insight.trend == TrendDirection.DECLINING and insight.recommendation
        ]
        return concerns[:TREND_MAX_CONCERNS]
