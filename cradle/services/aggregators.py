"""Per-category aggregation of tracking events into window summaries."""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Sequence, Union

from ..api.models import (
    SleepSummary, FeedingSummary, DiaperSummary, GrowthSummary, ActivitySummary,
)
from ..core.errors import InvalidWindowError
from ..db.models import (
    Category, SleepType, FeedingType, DiaperType,
    SleepEntry, FeedingEntry, DiaperEntry, GrowthEntry, ActivityEntry,
)
from ..utils.dates import get_timezone, period_days as compute_period_days
from ..utils.formatting import round_int, round_1
from .sleep_patterns import (
    accepted_wake_windows, sleep_consistency_score,
    feeding_intervals, feeding_consistency_score,
)

logger = logging.getLogger(__name__)

CategorySummary = Union[SleepSummary, FeedingSummary, DiaperSummary, GrowthSummary, ActivitySummary]

TUMMY_TIME = "tummytime"
BATH = "bath"
OUTDOOR = "outdoor"
PLAY = "play"


# Used by: summarize_activity(), insights_service.py (daily summary)
def normalize_activity_type(activity_type: str) -> str:
    """'Tummy_Time', 'tummy-time', 'tummy time' and 'tummyTime' all map to 'tummytime'."""
    return "".join(ch for ch in activity_type.lower() if ch not in "_- ")


def summarize_sleep(entries: Sequence[SleepEntry], period_days: int, tz) -> SleepSummary:
    """Open sessions (no duration) don't add minutes but still bound wake windows."""
    entries = sorted(entries, key=lambda e: e.start_time)
    total = nap_count = nap_minutes = night_count = night_minutes = 0

    for entry in entries:
        if entry.duration is None:
            continue
        total += entry.duration
        if entry.sleep_type == SleepType.NAP:
            nap_count += 1
            nap_minutes += entry.duration
        elif entry.sleep_type == SleepType.NIGHT:
            night_count += 1
            night_minutes += entry.duration

    windows = accepted_wake_windows(entries)

    return SleepSummary(
        total_sleep_minutes=total,
        session_count=len(entries),
        nap_count=nap_count,
        nap_minutes=nap_minutes,
        night_sleep_count=night_count,
        night_sleep_minutes=night_minutes,
        average_daily_sleep_minutes=round_int(total / period_days),
        average_nap_duration=round_int(nap_minutes / nap_count) if nap_count else None,
        average_night_sleep_duration=round_int(night_minutes / night_count) if night_count else None,
        average_wake_window=round_int(sum(windows) / len(windows)) if windows else None,
        longest_wake_window=max(windows) if windows else 0,
        wake_window_count=len(windows),
        consistency_score=sleep_consistency_score(entries, tz),
    )


def summarize_feeding(entries: Sequence[FeedingEntry], period_days: int) -> FeedingSummary:
    entries = sorted(entries, key=lambda e: e.timestamp)
    counts = {feeding_type: 0 for feeding_type in FeedingType}
    bottle_volume = bottles_with_amount = 0
    breast_seconds = breast_sessions_with_duration = 0

    for entry in entries:
        try:
            counts[FeedingType(entry.type)] += 1
        except ValueError:
            logger.warning(f"Unknown feeding type '{entry.type}' on entry {entry.id}")
            continue

        if entry.type == FeedingType.BREASTFEEDING:
            seconds = (entry.left_duration or 0) + (entry.right_duration or 0)
            if seconds > 0:
                breast_seconds += seconds
                breast_sessions_with_duration += 1
        elif entry.type == FeedingType.BOTTLE:
            if entry.amount is not None and entry.amount > 0:
                bottle_volume += entry.amount
                bottles_with_amount += 1

    gaps = feeding_intervals([e.timestamp for e in entries])

    return FeedingSummary(
        total_feedings=len(entries),
        breastfeeding_count=counts[FeedingType.BREASTFEEDING],
        bottle_count=counts[FeedingType.BOTTLE],
        pumping_count=counts[FeedingType.PUMPING],
        solid_count=counts[FeedingType.SOLID],
        total_bottle_volume=bottle_volume,
        average_bottle_amount=round_int(bottle_volume / bottles_with_amount) if bottles_with_amount else None,
        average_breastfeeding_minutes=(
            round_int(breast_seconds / breast_sessions_with_duration / 60)
            if breast_sessions_with_duration else None
        ),
        total_breastfeeding_minutes=round_int(breast_seconds / 60),
        average_feedings_per_day=round_1(len(entries) / period_days),
        longest_feeding_gap=round_int(max(gaps)) if gaps else 0,
        consistency_score=feeding_consistency_score([e.timestamp for e in entries]),
    )


def summarize_diaper(entries: Sequence[DiaperEntry], period_days: int) -> DiaperSummary:
    wet = dirty = mixed = 0
    for entry in entries:
        if entry.type == DiaperType.WET:
            wet += 1
        elif entry.type == DiaperType.DIRTY:
            dirty += 1
        elif entry.type == DiaperType.MIXED:
            mixed += 1

    return DiaperSummary(
        total_changes=len(entries),
        wet_count=wet,
        dirty_count=dirty,
        mixed_count=mixed,
        average_changes_per_day=round_1(len(entries) / period_days),
        wet_to_dirty_ratio=round_1(wet / dirty) if dirty else None,
    )


def summarize_growth(entries: Sequence[GrowthEntry]) -> GrowthSummary:
    """First vs last measurement in the window."""
    entries = sorted(entries, key=lambda e: e.timestamp)
    if not entries:
        return GrowthSummary(has_measurements=False)

    first, last = entries[0], entries[-1]
    latest_head = next(
        (e.head_circumference for e in reversed(entries) if e.head_circumference is not None),
        None,
    )

    return GrowthSummary(
        has_measurements=True,
        measurement_count=len(entries),
        start_weight=first.weight,
        end_weight=last.weight,
        weight_gain=last.weight - first.weight if first.weight and last.weight else None,
        start_height=first.height,
        end_height=last.height,
        height_gain=last.height - first.height if first.height and last.height else None,
        latest_head_circumference=latest_head,
        weight_percentile=last.weight_percentile,
        height_percentile=last.height_percentile,
        head_percentile=last.head_percentile,
    )


def summarize_activity(entries: Sequence[ActivityEntry], period_days: int) -> ActivitySummary:
    minutes_by_type: Dict[str, int] = {}
    bath_count = 0

    for entry in entries:
        activity_type = normalize_activity_type(entry.activity_type)
        minutes_by_type[activity_type] = minutes_by_type.get(activity_type, 0) + (entry.duration or 0)
        if activity_type == BATH:
            bath_count += 1

    tummy = minutes_by_type.get(TUMMY_TIME, 0)

    return ActivitySummary(
        total_activities=len(entries),
        minutes_by_type=minutes_by_type,
        tummy_time_minutes=tummy,
        average_daily_tummy_time=round_int(tummy / period_days),
        bath_count=bath_count,
        outdoor_minutes=minutes_by_type.get(OUTDOOR, 0),
        play_minutes=minutes_by_type.get(PLAY, 0),
    )


class CategoryAggregator:
    """aggregate(baby_id, category, start, end) over an Event Store with query()."""

    def __init__(self, store, tz=None):
        self.store = store
        self.tz = tz or get_timezone()
        self._dispatch: Dict[Category, Callable[[List, int], CategorySummary]] = {
            Category.SLEEP: lambda events, days: summarize_sleep(events, days, self.tz),
            Category.FEEDING: summarize_feeding,
            Category.DIAPER: summarize_diaper,
            Category.GROWTH: lambda events, days: summarize_growth(events),
            Category.ACTIVITY: summarize_activity,
        }
        missing = set(Category) - set(self._dispatch)
        if missing:
            raise RuntimeError(f"No summarizer registered for: {missing}")

    # Used by: insights_service.py (fan-out branches)
    async def aggregate(
        self,
        baby_id: str,
        category: Category,
        start: datetime,
        end: datetime,
    ) -> CategorySummary:
        if end < start:
            raise InvalidWindowError(f"Window end {end.isoformat()} precedes start {start.isoformat()}")

        events = await self.store.query(baby_id, category, start, end)
        days = compute_period_days(start, end)
        return self.summarize(category, events, days)

    def summarize(self, category: Category, events: List, days: int) -> CategorySummary:
        return self._dispatch[category](events, days)
