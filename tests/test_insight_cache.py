"""
Tests for trend-insight caching: keys, TTLs, round-trips and expiry.
"""
from datetime import datetime

import pytest
import pytz

from cradle.api.models import (
    AggregatedData, SleepSummary, FeedingSummary, DiaperSummary, GrowthSummary, ActivitySummary,
    TrendInsightsResponse, TrendInsightItem, TrendDirection, TrendPeriod,
)
from cradle.services.insight_cache import InsightCacheManager, MemoryInsightCache, NullInsightCache

from conftest import NOW, BABY_ID

KEY = "insights:trends:baby-1:weekly:2026-03-08:2026-03-15"


def sample_response():
    return TrendInsightsResponse(
        baby_id=BABY_ID,
        baby_name="Maya",
        baby_age_months=2,
        period=TrendPeriod.WEEKLY,
        period_start=datetime(2026, 3, 8, tzinfo=pytz.utc),
        period_end=NOW,
        period_days=8,
        aggregated_data=AggregatedData(
            sleep=SleepSummary(total_sleep_minutes=6000, session_count=40, consistency_score=72),
            feeding=FeedingSummary(total_feedings=60, average_feedings_per_day=7.5),
            diaper=DiaperSummary(total_changes=50, wet_count=40, dirty_count=10),
            growth=GrowthSummary(),
            activity=ActivitySummary(minutes_by_type={"tummytime": 90}, tummy_time_minutes=90),
        ),
        insights=[TrendInsightItem(
            category="sleep",
            title="Excellent sleep consistency",
            description="Sleep patterns are very consistent with a score of 82/100.",
            trend=TrendDirection.STABLE,
            highlight=True,
        )],
        ai_summary="A calm week.",
        ai_summary_generated=True,
        ai_duration_ms=1200,
        highlights=["Excellent sleep consistency"],
        areas_of_concern=[],
        generated_at=NOW,
    )


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class BrokenBackend:
    backend = "broken"

    async def get(self, key):
        raise ConnectionError("down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("down")


class TestKeysAndTTL:

    def test_key_format(self):
        cache = InsightCacheManager(NullInsightCache(), pytz.utc)

        key = cache.build_key(BABY_ID, TrendPeriod.WEEKLY, datetime(2026, 3, 8, tzinfo=pytz.utc), NOW)

        assert key == KEY

    def test_key_uses_local_dates(self):
        cache = InsightCacheManager(NullInsightCache(), pytz.timezone("America/New_York"))

        key = cache.build_key(
            BABY_ID, TrendPeriod.DAILY,
            datetime(2026, 3, 15, 2, tzinfo=pytz.utc), datetime(2026, 3, 15, 3, tzinfo=pytz.utc),
        )

        assert key == "insights:trends:baby-1:daily:2026-03-14:2026-03-14"

    def test_ttl_grows_with_period(self):
        assert InsightCacheManager.ttl_for(TrendPeriod.DAILY) == 15 * 60
        assert InsightCacheManager.ttl_for(TrendPeriod.WEEKLY) == 60 * 60
        assert InsightCacheManager.ttl_for(TrendPeriod.MONTHLY) == 2 * 60 * 60
        assert InsightCacheManager.ttl_for(TrendPeriod.YEARLY) == 4 * 60 * 60


class TestInsightCacheManager:

    @pytest.mark.asyncio
    async def test_round_trip(self):
        cache = InsightCacheManager(MemoryInsightCache(), pytz.utc)
        response = sample_response()

        assert await cache.put(KEY, response, TrendPeriod.WEEKLY)
        cached = await cache.get(KEY)

        assert cached.model_dump() == response.model_dump()
        assert cached.aggregated_data.sleep.consistency_score == 72

    @pytest.mark.asyncio
    async def test_miss(self):
        cache = InsightCacheManager(MemoryInsightCache(), pytz.utc)

        assert await cache.get(KEY) is None

    @pytest.mark.asyncio
    async def test_unparseable_entry_is_a_miss(self):
        backend = MemoryInsightCache()
        cache = InsightCacheManager(backend, pytz.utc)
        await backend.set(KEY, '{"baby_id": "baby-1"}', 60)

        assert await cache.get(KEY) is None

    @pytest.mark.asyncio
    async def test_entries_expire(self):
        clock = FakeClock()
        cache = InsightCacheManager(MemoryInsightCache(clock=clock), pytz.utc)
        await cache.put(KEY, sample_response(), TrendPeriod.WEEKLY)

        clock.now += 60 * 60 - 1
        assert await cache.get(KEY) is not None

        clock.now += 1
        assert await cache.get(KEY) is None

    @pytest.mark.asyncio
    async def test_expired_keys_are_dropped_by_later_writes(self):
        clock = FakeClock()
        backend = MemoryInsightCache(clock=clock)

        for day in range(1000):
            await backend.set(f"insights:trends:baby-1:daily:day-{day}", "{}", 900)
            clock.now += 24 * 60 * 60

        assert len(backend) == 1

    @pytest.mark.asyncio
    async def test_live_keys_survive_unrelated_writes(self):
        clock = FakeClock()
        backend = MemoryInsightCache(clock=clock)
        await backend.set("weekly", "kept", 3600)
        await backend.set("daily", "dropped", 900)

        clock.now += 1000
        await backend.set("monthly", "new", 7200)

        assert len(backend) == 2
        assert await backend.get("weekly") == "kept"
        assert await backend.get("daily") is None

    @pytest.mark.asyncio
    async def test_null_backend_never_stores(self):
        cache = InsightCacheManager(NullInsightCache(), pytz.utc)

        assert not await cache.put(KEY, sample_response(), TrendPeriod.WEEKLY)
        assert await cache.get(KEY) is None
        assert cache.backend_name == "none"

    @pytest.mark.asyncio
    async def test_backend_errors_degrade_to_miss(self):
        cache = InsightCacheManager(BrokenBackend(), pytz.utc)

        assert not await cache.put(KEY, sample_response(), TrendPeriod.WEEKLY)
        assert await cache.get(KEY) is None
