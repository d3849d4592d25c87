"""
Insights API: summaries, predictions, anomaly flags and period trends for one baby.

Routes (/babies/{baby_id}/insights):
  GET /weekly-summary    - Five-category summary of a (default 7-day) window with AI narrative
  GET /sleep-prediction  - Next nap time from observed wake windows
  GET /anomalies         - Rule-based anomaly flags over the last N hours
  GET /daily-summary     - One calendar day with a 24-hour activity breakdown
  GET /trends/{period}   - Daily / weekly / monthly / yearly trends vs the previous period (cached)

Every route takes the caller's id as the `caller_id` query parameter; only accepted
caregivers of the baby are served.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.constants import (
    PREDICTION_DEFAULT_ANALYSIS_DAYS, PREDICTION_MIN_ANALYSIS_DAYS, PREDICTION_MAX_ANALYSIS_DAYS,
    ANOMALY_DEFAULT_ANALYSIS_HOURS, ANOMALY_MIN_ANALYSIS_HOURS, ANOMALY_MAX_ANALYSIS_HOURS,
)
from ..services.insights_service import InsightsService
from .models import (
    WeeklySummaryResponse,
    SleepPredictionResponse,
    AnomalyDetectionResponse,
    DailySummaryResponse,
    TrendInsightsResponse,
    TrendPeriod,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/babies/{baby_id}/insights", tags=["insights"])

_service: Optional[InsightsService] = None


# Used by: every route below (overridden in tests)
def get_insights_service() -> InsightsService:
    global _service
    if _service is None:
        _service = InsightsService()
    return _service


@router.get("/weekly-summary", response_model=WeeklySummaryResponse)
async def get_weekly_summary(
    baby_id: str,
    caller_id: str = Query(..., description="Caregiver requesting the data"),
    start_date: Optional[date] = Query(None, description="First day (defaults to 7 days before end_date)"),
    end_date: Optional[date] = Query(None, description="Last day (defaults to now)"),
    service: InsightsService = Depends(get_insights_service),
):
    return await service.get_weekly_summary(baby_id, caller_id, start_date, end_date)


@router.get("/sleep-prediction", response_model=SleepPredictionResponse)
async def get_sleep_prediction(
    baby_id: str,
    caller_id: str = Query(..., description="Caregiver requesting the data"),
    analysis_days: int = Query(
        PREDICTION_DEFAULT_ANALYSIS_DAYS, ge=PREDICTION_MIN_ANALYSIS_DAYS, le=PREDICTION_MAX_ANALYSIS_DAYS,
        description="Days of sleep history to learn wake windows from",
    ),
    service: InsightsService = Depends(get_insights_service),
):
    return await service.get_sleep_prediction(baby_id, caller_id, analysis_days)


@router.get("/anomalies", response_model=AnomalyDetectionResponse)
async def get_anomalies(
    baby_id: str,
    caller_id: str = Query(..., description="Caregiver requesting the data"),
    analysis_hours: int = Query(
        ANOMALY_DEFAULT_ANALYSIS_HOURS, ge=ANOMALY_MIN_ANALYSIS_HOURS, le=ANOMALY_MAX_ANALYSIS_HOURS,
        description="Hours back from now to check",
    ),
    service: InsightsService = Depends(get_insights_service),
):
    return await service.detect_anomalies(baby_id, caller_id, analysis_hours)


@router.get("/daily-summary", response_model=DailySummaryResponse)
async def get_daily_summary(
    baby_id: str,
    caller_id: str = Query(..., description="Caregiver requesting the data"),
    day: Optional[date] = Query(None, alias="date", description="Calendar day (defaults to today)"),
    service: InsightsService = Depends(get_insights_service),
):
    return await service.get_daily_summary(baby_id, caller_id, day)


@router.get("/trends/{period}", response_model=TrendInsightsResponse)
async def get_trends(
    baby_id: str,
    period: TrendPeriod,
    caller_id: str = Query(..., description="Caregiver requesting the data"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    service: InsightsService = Depends(get_insights_service),
):
    return await service.get_trend_insights(baby_id, caller_id, period, start_date, end_date)
