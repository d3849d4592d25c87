"""Expiring cache for trend insights: Redis in production, in-process or no-op otherwise."""

import logging
import time
from datetime import datetime
from typing import Dict, Optional, Tuple

import redis.asyncio as redis
from pydantic import ValidationError

from ..api.models import TrendInsightsResponse, TrendPeriod
from ..core.settings import settings
from ..core.constants import TREND_CACHE_KEY_PREFIX, TREND_CACHE_TTL_SECONDS
from ..utils.dates import get_timezone, to_local
from ..utils.formatting import format_day

logger = logging.getLogger(__name__)


class NullInsightCache:
    """Never stores anything."""
    backend = "none"

    async def connect(self):
        pass

    async def disconnect(self):
        pass

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        return False


class MemoryInsightCache:
    """Per-process dict with expiry timestamps; expired keys are dropped on read and on every write."""
    backend = "memory"

    def __init__(self, clock=time.monotonic):
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._clock = clock

    async def connect(self):
        pass

    async def disconnect(self):
        self._entries.clear()

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def __len__(self) -> int:
        return len(self._entries)

    def _purge_expired(self, now: float):
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        # keys carry the window's dates, so stale ones are never read again
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (now + ttl_seconds, value)
        return True


class RedisInsightCache:
    backend = "redis"

    def __init__(self, url: str):
        self.url = url
        self._client = None

    async def connect(self):
        try:
            self._client = redis.from_url(self.url, decode_responses=True)
            await self._client.ping()
            logger.info("Redis insight cache connected")
        except Exception as e:
            logger.warning(f"Redis unavailable, insight caching disabled: {e}")
            self._client = None

    async def disconnect(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis insight cache disconnected")

    async def get(self, key: str) -> Optional[str]:
        if self._client is None:
            return None
        try:
            return await self._client.get(key)
        except Exception as e:
            logger.warning(f"Redis get failed for {key}: {e}")
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.setex(key, ttl_seconds, value)
            return True
        except Exception as e:
            logger.warning(f"Redis set failed for {key}: {e}")
            return False


class InsightCacheManager:
    """Keys, TTLs and (de)serialization of TrendInsightsResponse on top of a backend."""

    def __init__(self, backend=None, tz=None):
        self.backend = backend or NullInsightCache()
        self.tz = tz

    @property
    def backend_name(self) -> str:
        return self.backend.backend

    def build_key(self, baby_id: str, period: TrendPeriod, start: datetime, end: datetime) -> str:
        if self.tz is not None:
            start, end = to_local(start, self.tz), to_local(end, self.tz)
        return f"{TREND_CACHE_KEY_PREFIX}:{baby_id}:{TrendPeriod(period).value}:{format_day(start)}:{format_day(end)}"

    @staticmethod
    def ttl_for(period: TrendPeriod) -> int:
        return TREND_CACHE_TTL_SECONDS[TrendPeriod(period).value]

    # Used by: insights_service.py (trend insights)
    async def get(self, key: str) -> Optional[TrendInsightsResponse]:
        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

        if raw is None:
            logger.info(f"Cache miss for trend insights: {key}")
            return None

        try:
            cached = TrendInsightsResponse.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Failed to parse cached insights for {key}: {e}")
            return None

        logger.info(f"Cache hit for trend insights: {key}")
        return cached

    # Used by: insights_service.py (trend insights)
    async def put(self, key: str, response: TrendInsightsResponse, period: TrendPeriod) -> bool:
        ttl = self.ttl_for(period)
        try:
            stored = await self.backend.set(key, response.model_dump_json(), ttl)
        except Exception as e:
            logger.warning(f"Failed to cache insights for {key}: {e}")
            return False

        if stored:
            logger.info(f"Cached trend insights for {TrendPeriod(period).value} period (TTL: {ttl}s): {key}")
        return stored


# Used by: get_insight_cache()
def build_backend(url: Optional[str] = None):
    url = settings.REDIS_URL if url is None else url
    if url:
        return RedisInsightCache(url)
    return MemoryInsightCache()


_cache: Optional[InsightCacheManager] = None


def get_insight_cache() -> InsightCacheManager:
    global _cache
    if _cache is None:
        _cache = InsightCacheManager(build_backend(), get_timezone())
    return _cache
