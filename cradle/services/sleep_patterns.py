"""Wake-window extraction and variance-based consistency scoring."""

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from statistics import mean, pvariance

from ..api.models import WakeWindowStats
from ..db.models import SleepEntry
from ..core.constants import (
    WAKE_WINDOW_MIN_ACCEPTED_MINUTES, WAKE_WINDOW_MAX_ACCEPTED_MINUTES,
    CONSISTENCY_DEFAULT_SCORE, CONSISTENCY_MIN_SESSIONS,
    SLEEP_START_VARIANCE_SCALE, SLEEP_DURATION_VARIANCE_SCALE, SLEEP_PENALTY_CAP,
    FEEDING_INTERVAL_VARIANCE_SCALE, FEEDING_PENALTY_CAP, MAX_FEEDING_INTERVAL_MINUTES,
)
from ..utils.dates import minutes_between, to_local
from ..utils.formatting import format_wake_window, round_int
from .age_norms import AgeNorms, DEFAULT_AGE_NORMS

logger = logging.getLogger(__name__)


# Used by: aggregators.py (sleep), insights_service.py (sleep prediction)
def wake_windows_before(sessions: Sequence[SleepEntry]) -> List[Optional[int]]:
    """Minutes awake before each session (previous end -> this start); None for the first or after an open session.

    Sessions must be ordered by start_time.
    """
    windows: List[Optional[int]] = []
    for i, session in enumerate(sessions):
        previous = sessions[i - 1] if i > 0 else None
        if previous is None or previous.end_time is None:
            windows.append(None)
            continue
        windows.append(round_int(minutes_between(previous.end_time, session.start_time)))
    return windows


def is_accepted_wake_window(minutes: Optional[int]) -> bool:
    """Outside [15m, 12h] is a logging gap, not a real wake window."""
    return (
        minutes is not None
        and WAKE_WINDOW_MIN_ACCEPTED_MINUTES <= minutes <= WAKE_WINDOW_MAX_ACCEPTED_MINUTES
    )


def accepted_wake_windows(sessions: Sequence[SleepEntry]) -> List[int]:
    return [w for w in wake_windows_before(sessions) if is_accepted_wake_window(w)]


# Used by: insights_service.py (sleep prediction)
def wake_window_stats(
    windows: Sequence[int],
    age_months: int,
    norms: AgeNorms = DEFAULT_AGE_NORMS,
) -> WakeWindowStats:
    accepted = [w for w in windows if is_accepted_wake_window(w)]
    if not accepted:
        # No observations: report the age recommendation instead of "no data"
        recommended = norms.recommended_wake_window(age_months)
        return WakeWindowStats(
            average_minutes=recommended,
            min_minutes=recommended,
            max_minutes=recommended,
            count=0,
            average_formatted=format_wake_window(recommended),
        )

    average = round_int(mean(accepted))
    return WakeWindowStats(
        average_minutes=average,
        min_minutes=min(accepted),
        max_minutes=max(accepted),
        count=len(accepted),
        average_formatted=format_wake_window(average),
    )


# Used by: aggregators.py (sleep)
def sleep_consistency_score(sessions: Sequence[SleepEntry], tz) -> int:
    """0-100; lower variance of start-time-of-day and duration = higher score.

    Start variance of 16 h^2 and duration variance of 900 min^2 each cost the full
    50 points. Fewer than 3 sessions (or fewer than 2 with a duration) scores 50.
    """
    if len(sessions) < CONSISTENCY_MIN_SESSIONS:
        return CONSISTENCY_DEFAULT_SCORE

    start_hours = []
    for session in sessions:
        local = to_local(session.start_time, tz)
        start_hours.append(local.hour + local.minute / 60.0)
    start_variance = pvariance(start_hours)

    durations = [s.duration for s in sessions if s.duration is not None]
    if len(durations) < 2:
        return CONSISTENCY_DEFAULT_SCORE
    duration_variance = pvariance(durations)

    start_penalty = min(SLEEP_PENALTY_CAP, start_variance / SLEEP_START_VARIANCE_SCALE * 50)
    duration_penalty = min(SLEEP_PENALTY_CAP, duration_variance / SLEEP_DURATION_VARIANCE_SCALE * 50)

    return max(0, round_int(100 - start_penalty - duration_penalty))


# Used by: aggregators.py (feeding)
def feeding_intervals(timestamps: Sequence[datetime]) -> List[float]:
    """Minutes between consecutive feedings, keeping only (0, 24h)."""
    intervals = []
    for previous, current in zip(timestamps, timestamps[1:]):
        interval = minutes_between(previous, current)
        if 0 < interval < MAX_FEEDING_INTERVAL_MINUTES:
            intervals.append(interval)
    return intervals


def feeding_consistency_score(timestamps: Sequence[datetime]) -> int:
    """0-100; interval variance of 3600 min^2 (1h std) costs the full 100 points."""
    if len(timestamps) < CONSISTENCY_MIN_SESSIONS:
        return CONSISTENCY_DEFAULT_SCORE

    intervals = feeding_intervals(timestamps)
    if len(intervals) < 2:
        return CONSISTENCY_DEFAULT_SCORE

    penalty = min(FEEDING_PENALTY_CAP, pvariance(intervals) / FEEDING_INTERVAL_VARIANCE_SCALE * 100)
    return max(0, round_int(100 - penalty))


# Used by: insights_service.py (sleep prediction)
def current_wake_window(last_sleep_end: Optional[datetime], now: datetime) -> Optional[int]:
    if last_sleep_end is None:
        return None
    return max(0, round_int(minutes_between(last_sleep_end, now)))
