"""
Pytest configuration and fixtures: in-memory collaborators, no database or network.
"""
from datetime import datetime, timedelta
from itertools import count
from typing import Dict, List, Optional

import pytest
import pytz

from cradle.api.models import TrendPeriod
from cradle.core.errors import BabyNotFoundError
from cradle.db.models import (
    Category, Baby, SleepEntry, FeedingEntry, DiaperEntry, GrowthEntry, ActivityEntry,
)
from cradle.services.ai_provider import CompletionResult
from cradle.services.insight_cache import InsightCacheManager, MemoryInsightCache
from cradle.services.insights_service import InsightsService

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=pytz.utc)
BABY_ID = "baby-1"
CALLER_ID = "parent-1"

_ids = count(1)


def _next_id() -> str:
    return f"evt-{next(_ids)}"


def sleep_entry(start: datetime, minutes: Optional[int], sleep_type: str = "nap", baby_id: str = BABY_ID) -> SleepEntry:
    end = start + timedelta(minutes=minutes) if minutes is not None else None
    return SleepEntry(
        id=_next_id(), baby_id=baby_id, start_time=start, end_time=end,
        duration=minutes, sleep_type=sleep_type,
    )


def feeding_entry(timestamp: datetime, feeding_type: str = "bottle", amount: Optional[int] = None,
                  left: Optional[int] = None, right: Optional[int] = None) -> FeedingEntry:
    return FeedingEntry(
        id=_next_id(), baby_id=BABY_ID, timestamp=timestamp, type=feeding_type,
        amount=amount, left_duration=left, right_duration=right,
    )


def diaper_entry(timestamp: datetime, diaper_type: str = "wet") -> DiaperEntry:
    return DiaperEntry(id=_next_id(), baby_id=BABY_ID, timestamp=timestamp, type=diaper_type)


def growth_entry(timestamp: datetime, weight: Optional[int] = None, height: Optional[int] = None) -> GrowthEntry:
    return GrowthEntry(id=_next_id(), baby_id=BABY_ID, timestamp=timestamp, weight=weight, height=height)


def activity_entry(timestamp: datetime, activity_type: str, duration: Optional[int] = None) -> ActivityEntry:
    return ActivityEntry(
        id=_next_id(), baby_id=BABY_ID, timestamp=timestamp,
        activity_type=activity_type, duration=duration,
    )


def _event_time(event) -> datetime:
    return event.start_time if isinstance(event, SleepEntry) else event.timestamp


class InMemoryEventStore:
    """Event Store, Baby Directory and Access Control backed by plain lists."""

    def __init__(self):
        self.babies: Dict[str, Baby] = {}
        self.caregivers = set()
        self.events: Dict[Category, List] = {category: [] for category in Category}
        self.query_calls = 0

    def add_baby(self, baby: Baby, *caregivers: str):
        self.babies[baby.id] = baby
        for caregiver in caregivers:
            self.caregivers.add((baby.id, caregiver))

    def add(self, category: Category, *events):
        self.events[category].extend(events)

    async def has_access(self, baby_id: str, caller_id: str) -> bool:
        return (baby_id, caller_id) in self.caregivers

    async def get_baby(self, baby_id: str) -> Baby:
        if baby_id not in self.babies:
            raise BabyNotFoundError()
        return self.babies[baby_id]

    async def query(self, baby_id, category, start, end, include_deleted=False):
        self.query_calls += 1
        matching = [
            e for e in self.events[category]
            if e.baby_id == baby_id
            and start <= _event_time(e) <= end
            and (include_deleted or not e.is_deleted)
        ]
        return sorted(matching, key=_event_time)

    async def get_last_completed_sleep(self, baby_id):
        completed = [
            e for e in self.events[Category.SLEEP]
            if e.baby_id == baby_id and e.end_time is not None and not e.is_deleted
        ]
        return max(completed, key=lambda e: e.end_time) if completed else None


class FailingGateway:
    provider_name = "none"

    def __init__(self, error: str = "AI provider disabled"):
        self.error = error
        self.calls = 0

    async def generate(self, kind, context, caller_id):
        self.calls += 1
        return CompletionResult(success=False, error=self.error)


class RaisingGateway:
    provider_name = "broken"

    async def generate(self, kind, context, caller_id):
        raise ConnectionError("provider unreachable")


class StaticGateway:
    provider_name = "static"

    def __init__(self, text: str = "All looks great this period."):
        self.text = text
        self.calls = []

    async def generate(self, kind, context, caller_id):
        self.calls.append((kind, context, caller_id))
        return CompletionResult(success=True, response=self.text, duration_ms=42)


@pytest.fixture
def baby():
    # 2 months old on NOW
    return Baby(id=BABY_ID, name="Maya", date_of_birth=datetime(2026, 1, 10, tzinfo=pytz.utc), gender="female")


@pytest.fixture
def store(baby):
    event_store = InMemoryEventStore()
    event_store.add_baby(baby, CALLER_ID)
    return event_store


@pytest.fixture
def cache():
    return InsightCacheManager(MemoryInsightCache(), pytz.utc)


@pytest.fixture
def failing_gateway():
    return FailingGateway()


@pytest.fixture
def make_service(store, cache, failing_gateway):
    def _make(gateway=None, tz=pytz.utc, clock=lambda: NOW):
        return InsightsService(
            store=store,
            gateway=gateway or failing_gateway,
            cache=cache,
            tz=tz,
            clock=clock,
        )
    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def weekly_period():
    return TrendPeriod.WEEKLY
