"""Read-only database access: baby profiles, caregiver access, tracking events."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Type
from pydantic import BaseModel
from sqlalchemy import text

from ..core.database import get_database
from ..core.errors import BabyNotFoundError
from ..db.models import (
    Category, Baby, SleepEntry, FeedingEntry, DiaperEntry, GrowthEntry, ActivityEntry,
)
from ..utils.dates import ensure_aware, to_utc_naive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _EventTable:
    table: str
    time_column: str
    model: Type[BaseModel]
    columns: str


_BASE_COLUMNS = "id, baby_id, is_deleted"

EVENT_TABLES: Dict[Category, _EventTable] = {
    Category.SLEEP: _EventTable(
        "sleep_entries", "start_time", SleepEntry,
        f"{_BASE_COLUMNS}, start_time, end_time, duration, sleep_type, quality",
    ),
    Category.FEEDING: _EventTable(
        "feeding_entries", "timestamp", FeedingEntry,
        f"{_BASE_COLUMNS}, timestamp, type, left_duration, right_duration, amount, pumped_amount, food_type",
    ),
    Category.DIAPER: _EventTable(
        "diaper_entries", "timestamp", DiaperEntry,
        f"{_BASE_COLUMNS}, timestamp, type, has_rash",
    ),
    Category.GROWTH: _EventTable(
        "growth_entries", "timestamp", GrowthEntry,
        f"{_BASE_COLUMNS}, timestamp, weight, height, head_circumference, "
        f"weight_percentile, height_percentile, head_percentile",
    ),
    Category.ACTIVITY: _EventTable(
        "activity_entries", "timestamp", ActivityEntry,
        f"{_BASE_COLUMNS}, timestamp, activity_type, start_time, end_time, duration",
    ),
}

_DATETIME_FIELDS = ("timestamp", "start_time", "end_time", "date_of_birth")

if set(EVENT_TABLES) != set(Category):
    raise RuntimeError(f"EVENT_TABLES is missing categories: {set(Category) - set(EVENT_TABLES)}")


# Used by: BabyDataManager (DB stores UTC-naive TIMESTAMP(3))
def _row_to_model(model: Type[BaseModel], row) -> BaseModel:
    data = dict(row)
    for field in _DATETIME_FIELDS:
        if data.get(field) is not None:
            data[field] = ensure_aware(data[field])
    return model(**data)


class BabyDataManager:
    """Event Store, Baby Directory and Access Control over the tracking schema."""

    def __init__(self):
        self.database = get_database()

    # Used by: insights_service.py (every use-case)
    async def get_baby(self, baby_id: str) -> Baby:
        async with self.database.session() as session:
            result = await session.execute(
                text('''
                    SELECT id, name, date_of_birth, gender
                    FROM babies
                    WHERE id = :baby_id
                '''),
                {"baby_id": baby_id}
            )
            row = result.mappings().first()
        if not row:
            raise BabyNotFoundError()
        return _row_to_model(Baby, row)

    # Used by: insights_service.py (every use-case)
    async def has_access(self, baby_id: str, caller_id: str) -> bool:
        """Only caregivers who accepted their invitation can read a baby's data."""
        async with self.database.session() as session:
            result = await session.execute(
                text('''
                    SELECT 1
                    FROM baby_caregivers
                    WHERE baby_id = :baby_id
                      AND caregiver_id = :caller_id
                      AND accepted_at IS NOT NULL
                    LIMIT 1
                '''),
                {"baby_id": baby_id, "caller_id": caller_id}
            )
            return result.first() is not None

    # Used by: aggregators.py, insights_service.py
    async def query(
            self,
            baby_id: str,
            category: Category,
            start: datetime,
            end: datetime,
            include_deleted: bool = False,
    ) -> List[BaseModel]:
        """Events with their natural time column in [start, end], oldest first."""
        event_table = EVENT_TABLES[category]
        deleted_clause = "" if include_deleted else "AND is_deleted = false"
        async with self.database.session() as session:
            result = await session.execute(
                text(f'''
                    SELECT {event_table.columns}
                    FROM {event_table.table}
                    WHERE baby_id = :baby_id
                      AND {event_table.time_column} >= :start
                      AND {event_table.time_column} <= :end
                      {deleted_clause}
                    ORDER BY {event_table.time_column} ASC
                '''),
                {
                    "baby_id": baby_id,
                    "start": to_utc_naive(start),
                    "end": to_utc_naive(end),
                }
            )
            rows = result.mappings().all()
        logger.debug(f"Loaded {len(rows)} {category.value} events for baby {baby_id}")
        return [_row_to_model(event_table.model, row) for row in rows]

    # Used by: insights_service.py (sleep prediction, current wake window)
    async def get_last_completed_sleep(self, baby_id: str) -> Optional[SleepEntry]:
        async with self.database.session() as session:
            result = await session.execute(
                text(f'''
                    SELECT {EVENT_TABLES[Category.SLEEP].columns}
                    FROM sleep_entries
                    WHERE baby_id = :baby_id
                      AND is_deleted = false
                      AND end_time IS NOT NULL
                    ORDER BY end_time DESC
                    LIMIT 1
                '''),
                {"baby_id": baby_id}
            )
            row = result.mappings().first()
        if row:
            return _row_to_model(SleepEntry, row)
        return None
