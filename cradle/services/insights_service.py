"""Insights use-cases: weekly summary, sleep prediction, anomalies, daily summary and period trends."""

import asyncio
import logging
from datetime import datetime, date, timedelta
from typing import Callable, List, Optional, Tuple, Union

from ..api.models import (
    AggregatedData, WeeklySummaryResponse,
    SleepSessionSummary, SleepPatternData, SleepPredictionResponse,
    AnomalyAnalysisData, AnomalyDetectionResponse, AnomalySeverity,
    DailyFeedingSummary, DailySleepSummary, DailyDiaperSummary, DailyActivitiesSummary,
    HourlyBreakdownEntry, DailySummaryResponse,
    TrendPeriod, TrendInsightsResponse,
)
from ..core.settings import settings
from ..core.constants import (
    WEEK_DAYS, HOURS_PER_DAY,
    PREDICTION_BASE_CONFIDENCE, PREDICTION_CONFIDENCE_MIN, PREDICTION_CONFIDENCE_MAX,
    PREDICTION_WIDE_RANGE_MINUTES, PREDICTION_DEFAULT_ANALYSIS_DAYS,
    PREDICTION_MIN_ANALYSIS_DAYS, PREDICTION_MAX_ANALYSIS_DAYS, PREDICTION_RECENT_SESSIONS,
    ANOMALY_DEFAULT_ANALYSIS_HOURS, ANOMALY_MIN_ANALYSIS_HOURS, ANOMALY_MAX_ANALYSIS_HOURS,
)
from ..core.errors import AccessDeniedError, InvalidWindowError
from ..db.models import Baby, Category, SleepType, FeedingType, DiaperType
from ..utils.dates import (
    get_timezone, start_of_day, end_of_day, to_local, period_days, minutes_between,
    age_in_months, utc_now,
)
from ..utils.formatting import format_wake_window, format_day, round_int, round_1
from .age_norms import AgeNorms, DEFAULT_AGE_NORMS
from .aggregators import CategoryAggregator, normalize_activity_type, TUMMY_TIME, BATH, OUTDOOR
from .ai_provider import AIProviderGateway, get_ai_gateway
from .anomaly_detector import AnomalyDetector, actual_daily_sleep_minutes
from .babies_data import BabyDataManager
from .fallbacks import weekly_summary_text, anomaly_analysis_text, sleep_reasoning_text, trend_summary_text
from .insight_cache import InsightCacheManager, get_insight_cache
from .narrative import NarrativeOrchestrator
from .prompts import (
    PromptKind, build_weekly_context, build_sleep_context, build_anomaly_context, build_trend_context,
)
from .sleep_patterns import wake_windows_before, is_accepted_wake_window, wake_window_stats, current_wake_window
from .trend_analyzer import resolve_window, compare, TrendInsightBuilder

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

ALL_CATEGORIES = (Category.SLEEP, Category.FEEDING, Category.DIAPER, Category.GROWTH, Category.ACTIVITY)


class InsightsService:
    """Every use-case checks access, loads the baby, then computes; AI text is optional enrichment."""

    def __init__(
        self,
        store=None,
        aggregator: Optional[CategoryAggregator] = None,
        gateway: Optional[AIProviderGateway] = None,
        cache: Optional[InsightCacheManager] = None,
        norms: AgeNorms = DEFAULT_AGE_NORMS,
        tz=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store if store is not None else BabyDataManager()
        self.tz = tz or get_timezone()
        self.aggregator = aggregator or CategoryAggregator(self.store, self.tz)
        self.narrator = NarrativeOrchestrator(gateway or get_ai_gateway())
        self.cache = cache or get_insight_cache()
        self.norms = norms
        self.detector = AnomalyDetector(norms)
        self.trend_builder = TrendInsightBuilder(norms)
        self.clock = clock

    # Used by: every public use-case below
    async def _authorize(self, baby_id: str, caller_id: str) -> Tuple[Baby, int]:
        if not await self.store.has_access(baby_id, caller_id):
            logger.warning(f"Caller {caller_id} denied access to baby {baby_id}")
            raise AccessDeniedError()
        baby = await self.store.get_baby(baby_id)
        today = to_local(self.clock(), self.tz).date()
        return baby, age_in_months(baby.date_of_birth, today)

    async def _aggregate_window(
        self,
        baby_id: str,
        start: datetime,
        end: datetime,
        categories=ALL_CATEGORIES,
    ) -> List:
        return list(await asyncio.gather(*(
            self.aggregator.aggregate(baby_id, category, start, end) for category in categories
        )))

    # ── WEEKLY SUMMARY ───────────────────────────────────────────────────────

    async def get_weekly_summary(
        self,
        baby_id: str,
        caller_id: str,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> WeeklySummaryResponse:
        baby, age_months = await self._authorize(baby_id, caller_id)
        now = self.clock()

        end = end_of_day(end_date, self.tz) if end_date is not None else now
        start = start_of_day(start_date if start_date is not None else end - timedelta(days=WEEK_DAYS), self.tz)
        if end < start:
            raise InvalidWindowError("start_date must not be after end_date")
        days = period_days(start, end)

        sleep, feeding, diaper, growth, activity = await self._aggregate_window(baby_id, start, end)
        data = AggregatedData(sleep=sleep, feeding=feeding, diaper=diaper, growth=growth, activity=activity)
        logger.info(f"Weekly summary for baby {baby_id}: {data.total_events} events over {days} days")

        narrative = await self.narrator.narrate(
            PromptKind.WEEKLY_SUMMARY,
            build_weekly_context(baby, age_months, start, end, days, data),
            caller_id,
            lambda: weekly_summary_text(baby.name, start, end, data),
        )

        return WeeklySummaryResponse(
            baby_id=baby.id,
            baby_name=baby.name,
            baby_age_months=age_months,
            week_start=start,
            week_end=end,
            period_days=days,
            aggregated_data=data,
            ai_summary=narrative.text,
            ai_summary_generated=narrative.generated,
            ai_error=narrative.error,
            ai_duration_ms=narrative.duration_ms,
            generated_at=now,
        )

    # ── SLEEP PREDICTION ─────────────────────────────────────────────────────

    async def get_sleep_prediction(
        self,
        baby_id: str,
        caller_id: str,
        analysis_days: int = PREDICTION_DEFAULT_ANALYSIS_DAYS,
    ) -> SleepPredictionResponse:
        if not PREDICTION_MIN_ANALYSIS_DAYS <= analysis_days <= PREDICTION_MAX_ANALYSIS_DAYS:
            raise InvalidWindowError(
                f"analysis_days must be between {PREDICTION_MIN_ANALYSIS_DAYS} and {PREDICTION_MAX_ANALYSIS_DAYS}"
            )
        baby, age_months = await self._authorize(baby_id, caller_id)
        now = self.clock()

        pattern = await self._sleep_pattern(baby, age_months, analysis_days, now)
        stats = pattern.wake_window_stats

        recommended = stats.average_minutes if stats.count > 0 else self.norms.recommended_wake_window(age_months)
        anchor = pattern.last_wake_time or now
        predicted_nap_time = anchor + timedelta(minutes=recommended)
        confidence = self._prediction_confidence(stats.count, stats.max_minutes - stats.min_minutes)

        narrative = await self.narrator.narrate(
            PromptKind.SLEEP_ANALYSIS,
            build_sleep_context(pattern),
            caller_id,
            lambda: sleep_reasoning_text(pattern, recommended),
        )
        if narrative.generated:
            confidence += settings.AI_CONFIDENCE_BOOST

        return SleepPredictionResponse(
            baby_id=baby.id,
            baby_name=baby.name,
            predicted_nap_time=predicted_nap_time,
            confidence=min(1.0, max(0.0, round(confidence, 2))),
            recommended_wake_window_minutes=recommended,
            recommended_wake_window_formatted=format_wake_window(recommended),
            current_wake_window_minutes=pattern.current_wake_window_minutes,
            current_wake_window_formatted=pattern.current_wake_window_formatted,
            minutes_until_nap=round_int(minutes_between(now, predicted_nap_time)),
            reasoning=narrative.text,
            pattern_data=pattern,
            ai_analysis_generated=narrative.generated,
            ai_error=narrative.error,
            ai_duration_ms=narrative.duration_ms,
            generated_at=now,
        )

    async def _sleep_pattern(self, baby: Baby, age_months: int, analysis_days: int, now: datetime) -> SleepPatternData:
        start = now - timedelta(days=analysis_days)
        entries, last_sleep = await asyncio.gather(
            self.store.query(baby.id, Category.SLEEP, start, now),
            self.store.get_last_completed_sleep(baby.id),
        )
        sessions = sorted(
            (e for e in entries if e.end_time is not None and e.duration is not None),
            key=lambda e: e.start_time,
        )

        windows = wake_windows_before(sessions)
        naps = [s.duration for s in sessions if s.sleep_type == SleepType.NAP]
        nights = [s.duration for s in sessions if s.sleep_type == SleepType.NIGHT]

        last_wake_time = last_sleep.end_time if last_sleep else None
        current = current_wake_window(last_wake_time, now)

        return SleepPatternData(
            baby_id=baby.id,
            baby_name=baby.name,
            baby_age_months=age_months,
            analysis_start=start,
            analysis_end=now,
            analysis_days=analysis_days,
            total_sessions=len(sessions),
            nap_count=len(naps),
            night_sleep_count=len(nights),
            average_nap_duration=round_int(sum(naps) / len(naps)) if naps else None,
            average_night_sleep_duration=round_int(sum(nights) / len(nights)) if nights else None,
            wake_window_stats=wake_window_stats(
                [w for w in windows if is_accepted_wake_window(w)], age_months, self.norms
            ),
            recent_sessions=[
                SleepSessionSummary(
                    start_time=session.start_time,
                    end_time=session.end_time,
                    duration=session.duration,
                    sleep_type=session.sleep_type,
                    wake_window_before=window,
                )
                for session, window in list(zip(sessions, windows))[-PREDICTION_RECENT_SESSIONS:]
            ],
            current_wake_window_minutes=current,
            current_wake_window_formatted=format_wake_window(current) if current is not None else None,
            last_wake_time=last_wake_time,
        )

    @staticmethod
    def _prediction_confidence(window_count: int, window_range: int) -> float:
        confidence = PREDICTION_BASE_CONFIDENCE
        if window_count >= 5:
            confidence += 0.2
        if window_count >= 10:
            confidence += 0.1
        if window_range > PREDICTION_WIDE_RANGE_MINUTES:
            confidence -= 0.1
        return max(PREDICTION_CONFIDENCE_MIN, min(PREDICTION_CONFIDENCE_MAX, confidence))

    # ── ANOMALY DETECTION ────────────────────────────────────────────────────

    async def detect_anomalies(
        self,
        baby_id: str,
        caller_id: str,
        analysis_hours: int = ANOMALY_DEFAULT_ANALYSIS_HOURS,
    ) -> AnomalyDetectionResponse:
        if not ANOMALY_MIN_ANALYSIS_HOURS <= analysis_hours <= ANOMALY_MAX_ANALYSIS_HOURS:
            raise InvalidWindowError(
                f"analysis_hours must be between {ANOMALY_MIN_ANALYSIS_HOURS} and {ANOMALY_MAX_ANALYSIS_HOURS}"
            )
        baby, age_months = await self._authorize(baby_id, caller_id)
        now = self.clock()
        start = now - timedelta(hours=analysis_hours)

        sleep, feeding, diaper = await self._aggregate_window(
            baby_id, start, now, (Category.SLEEP, Category.FEEDING, Category.DIAPER)
        )
        # Daily rates here use the exact window length, not whole days
        feeding = feeding.model_copy(update={
            "average_feedings_per_day": round_1(feeding.total_feedings / (analysis_hours / HOURS_PER_DAY)),
        })
        anomalies = self.detector.detect(sleep, feeding, diaper, age_months, analysis_hours)

        analysis = AnomalyAnalysisData(
            analysis_start=start,
            analysis_end=now,
            analysis_hours=analysis_hours,
            sleep=sleep,
            feeding=feeding,
            diaper=diaper,
            actual_daily_sleep_minutes=actual_daily_sleep_minutes(sleep, analysis_hours),
            expected_daily_sleep_minutes=self.norms.expected_daily_sleep(age_months),
            expected_feedings_per_day=self.norms.expected_feedings(age_months),
            expected_wet_per_day=self.norms.expected_wet_diapers(age_months),
            recommended_wake_window=self.norms.recommended_wake_window(age_months),
        )

        narrative = await self.narrator.narrate(
            PromptKind.ANOMALY_DETECTION,
            build_anomaly_context(age_months, analysis, anomalies),
            caller_id,
            lambda: anomaly_analysis_text(baby.name, analysis_hours, anomalies),
        )

        return AnomalyDetectionResponse(
            baby_id=baby.id,
            baby_name=baby.name,
            baby_age_months=age_months,
            anomalies=anomalies,
            anomaly_count=len(anomalies),
            has_high_severity=any(a.severity == AnomalySeverity.HIGH for a in anomalies),
            analysis_data=analysis,
            ai_analysis=narrative.text,
            ai_analysis_generated=narrative.generated,
            ai_error=narrative.error,
            ai_duration_ms=narrative.duration_ms,
            generated_at=now,
        )

    # ── DAILY SUMMARY ────────────────────────────────────────────────────────

    async def get_daily_summary(
        self,
        baby_id: str,
        caller_id: str,
        day: Optional[DateLike] = None,
    ) -> DailySummaryResponse:
        baby, _ = await self._authorize(baby_id, caller_id)
        now = self.clock()
        target = day if day is not None else now
        start, end = start_of_day(target, self.tz), end_of_day(target, self.tz)

        feedings, sleeps, diapers, activities = await asyncio.gather(*(
            self.store.query(baby_id, category, start, end)
            for category in (Category.FEEDING, Category.SLEEP, Category.DIAPER, Category.ACTIVITY)
        ))

        return DailySummaryResponse(
            baby_id=baby.id,
            baby_name=baby.name,
            date=format_day(start),
            feeding=self._daily_feeding(feedings),
            sleep=self._daily_sleep(sleeps),
            diaper=DailyDiaperSummary(
                total=len(diapers),
                wet=sum(1 for d in diapers if d.type == DiaperType.WET),
                dirty=sum(1 for d in diapers if d.type == DiaperType.DIRTY),
                mixed=sum(1 for d in diapers if d.type == DiaperType.MIXED),
            ),
            activities=self._daily_activities(activities),
            hourly_breakdown=self._hourly_breakdown(feedings, sleeps, diapers, activities),
            generated_at=now,
        )

    @staticmethod
    def _daily_feeding(entries) -> DailyFeedingSummary:
        by_type = {feeding_type.value: 0 for feeding_type in FeedingType}
        breast_seconds = bottle_ml = 0
        for entry in entries:
            if entry.type in by_type:
                by_type[entry.type] += 1
            if entry.type == FeedingType.BREASTFEEDING:
                breast_seconds += (entry.left_duration or 0) + (entry.right_duration or 0)
            elif entry.type == FeedingType.BOTTLE and entry.amount:
                bottle_ml += entry.amount
        return DailyFeedingSummary(
            count=len(entries),
            total_minutes=round_int(breast_seconds / 60),
            total_ml=bottle_ml,
            by_type=by_type,
        )

    @staticmethod
    def _daily_sleep(entries) -> DailySleepSummary:
        completed = [e for e in entries if e.duration is not None]
        naps = [e.duration for e in completed if e.sleep_type == SleepType.NAP]
        return DailySleepSummary(
            total_minutes=sum(e.duration for e in completed),
            nap_count=len(naps),
            nap_minutes=sum(naps),
            night_sleep_minutes=sum(e.duration for e in completed if e.sleep_type == SleepType.NIGHT),
            average_nap_duration=round_int(sum(naps) / len(naps)) if naps else None,
        )

    @staticmethod
    def _daily_activities(entries) -> DailyActivitiesSummary:
        tummy = bath = outdoor = 0
        for entry in entries:
            activity_type = normalize_activity_type(entry.activity_type)
            if activity_type == TUMMY_TIME:
                tummy += entry.duration or 0
            elif activity_type == BATH:
                bath += 1
            elif activity_type == OUTDOOR:
                outdoor += entry.duration or 0
        return DailyActivitiesSummary(tummy_time_minutes=tummy, bath_count=bath, outdoor_minutes=outdoor)

    def _hourly_breakdown(self, feedings, sleeps, diapers, activities) -> List[HourlyBreakdownEntry]:
        """24 buckets by local hour; sleep is bucketed by its start time."""
        hours = [HourlyBreakdownEntry(hour=hour) for hour in range(HOURS_PER_DAY)]
        buckets = (
            ("feeding", [e.timestamp for e in feedings]),
            ("sleep", [e.start_time for e in sleeps]),
            ("diaper", [e.timestamp for e in diapers]),
            ("activity", [e.timestamp for e in activities]),
        )
        for field, timestamps in buckets:
            for timestamp in timestamps:
                entry = hours[to_local(timestamp, self.tz).hour]
                setattr(entry, field, getattr(entry, field) + 1)
                entry.total += 1
        return hours

    # ── TREND INSIGHTS ───────────────────────────────────────────────────────

    async def get_trend_insights(
        self,
        baby_id: str,
        caller_id: str,
        period: TrendPeriod,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> TrendInsightsResponse:
        period = TrendPeriod(period)
        baby, age_months = await self._authorize(baby_id, caller_id)
        now = self.clock()

        window = resolve_window(period, now, self.tz, start_date, end_date)
        if window.end < window.start:
            raise InvalidWindowError("start_date must not be after end_date")

        cache_key = self.cache.build_key(baby_id, period, window.start, window.end)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached

        days = window.days
        current_branches = [
            self.aggregator.aggregate(baby_id, category, window.start, window.end)
            for category in ALL_CATEGORIES
        ]
        previous_categories = (Category.SLEEP, Category.FEEDING, Category.DIAPER, Category.ACTIVITY)
        previous_branches = [
            self.aggregator.aggregate(baby_id, category, window.previous_start, window.previous_end)
            for category in previous_categories
        ] if window.has_previous else []

        results = await asyncio.gather(*current_branches, *previous_branches)
        sleep, feeding, diaper, growth, activity = results[:len(ALL_CATEGORIES)]
        current = AggregatedData(sleep=sleep, feeding=feeding, diaper=diaper, growth=growth, activity=activity)

        previous = None
        if window.has_previous:
            prev_sleep, prev_feeding, prev_diaper, prev_activity = results[len(ALL_CATEGORIES):]
            previous = AggregatedData(
                sleep=prev_sleep, feeding=prev_feeding, diaper=prev_diaper,
                growth=growth, activity=prev_activity,
            )

        data = compare(current, previous)
        insights = self.trend_builder.build_insights(data, age_months, days)
        highlights = self.trend_builder.build_highlights(insights, data)
        concerns = self.trend_builder.build_concerns(insights)

        narrative = await self.narrator.narrate(
            PromptKind.for_period(period),
            build_trend_context(baby, age_months, period, window.start, window.end, days, data),
            caller_id,
            lambda: trend_summary_text(period, data, insights, baby.name, days),
        )

        response = TrendInsightsResponse(
            baby_id=baby.id,
            baby_name=baby.name,
            baby_age_months=age_months,
            period=period,
            period_start=window.start,
            period_end=window.end,
            period_days=days,
            aggregated_data=data,
            insights=insights,
            ai_summary=narrative.text,
            ai_summary_generated=narrative.generated,
            ai_error=narrative.error,
            ai_duration_ms=narrative.duration_ms,
            highlights=highlights,
            areas_of_concern=concerns,
            generated_at=now,
        )

        await self.cache.put(cache_key, response, period)
        return response
