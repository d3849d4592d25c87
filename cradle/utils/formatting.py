"""Number, duration and date formatting shared by prompts, fallbacks and anomaly text."""

import math
from datetime import datetime
from typing import Optional


# Used by: aggregators, sleep_patterns, anomaly_detector, fallbacks
def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (toward +inf). Built-in round() uses banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def round_1(value: float) -> float:
    return round_half_up(value, 1)


# Used by: sleep_patterns.py, anomaly_detector.py, fallbacks.py, prompts
def format_wake_window(minutes: float) -> str:
    hours = int(minutes // 60)
    mins = round_int(minutes % 60)
    if hours == 0:
        return f"{mins}m"
    return f"{hours}h {mins}m"


def format_hours_minutes(minutes: int) -> str:
    """600 -> '10h 0m'."""
    return f"{minutes // 60}h {minutes % 60}m"


def format_day(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def format_kg(grams: Optional[int]) -> str:
    return f"{grams / 1000:.2f}" if grams is not None else "N/A"


def format_cm(millimeters: Optional[int]) -> str:
    return f"{millimeters / 10:.1f}" if millimeters is not None else "N/A"


def format_number(value: float) -> str:
    """Drop a trailing .0 so 6.0 feedings/day reads as 6."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def signed(value: float) -> str:
    return f"+{format_number(value)}" if value > 0 else format_number(value)
