"""Pydantic models mirroring the tracking database schema (read side only)."""

from enum import Enum
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class Category(str, Enum):
    SLEEP = "sleep"
    FEEDING = "feeding"
    DIAPER = "diaper"
    GROWTH = "growth"
    ACTIVITY = "activity"


class SleepType(str, Enum):
    NAP = "nap"
    NIGHT = "night"


class FeedingType(str, Enum):
    BREASTFEEDING = "breastfeeding"
    BOTTLE = "bottle"
    PUMPING = "pumping"
    SOLID = "solid"


class DiaperType(str, Enum):
    WET = "wet"
    DIRTY = "dirty"
    MIXED = "mixed"


# Used by: babies_data.py, insights_service.py
class Baby(BaseModel):
    id: str
    name: str
    date_of_birth: datetime
    gender: Optional[str] = None

    class Config:
        from_attributes = True


# Used by: aggregators.py (sleep), sleep_patterns.py
class SleepEntry(BaseModel):
    id: str
    baby_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    # minutes; None while the session is still open
    duration: Optional[int] = None
    sleep_type: str
    quality: Optional[str] = None
    is_deleted: bool = False

    class Config:
        from_attributes = True


# Used by: aggregators.py (feeding)
class FeedingEntry(BaseModel):
    id: str
    baby_id: str
    timestamp: datetime
    type: str
    # breast side durations are stored in seconds
    left_duration: Optional[int] = None
    right_duration: Optional[int] = None
    # bottle amount in ml
    amount: Optional[int] = None
    pumped_amount: Optional[int] = None
    food_type: Optional[str] = None
    is_deleted: bool = False

    class Config:
        from_attributes = True


# Used by: aggregators.py (diaper)
class DiaperEntry(BaseModel):
    id: str
    baby_id: str
    timestamp: datetime
    type: str
    has_rash: bool = False
    is_deleted: bool = False

    class Config:
        from_attributes = True


# Used by: aggregators.py (growth)
class GrowthEntry(BaseModel):
    id: str
    baby_id: str
    timestamp: datetime
    # grams
    weight: Optional[int] = None
    # millimeters
    height: Optional[int] = None
    head_circumference: Optional[int] = None
    weight_percentile: Optional[float] = None
    height_percentile: Optional[float] = None
    head_percentile: Optional[float] = None
    is_deleted: bool = False

    class Config:
        from_attributes = True


# Used by: aggregators.py (activity)
class ActivityEntry(BaseModel):
    id: str
    baby_id: str
    timestamp: datetime
    activity_type: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    # minutes
    duration: Optional[int] = None
    is_deleted: bool = False

    class Config:
        from_attributes = True
