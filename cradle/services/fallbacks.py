"""Deterministic narrative text built from computed aggregates, used when the AI narrative is unavailable."""

from datetime import datetime
from typing import List, Optional

from ..api.models import (
    AggregatedData, DetectedAnomaly, SleepPatternData, TrendInsightItem, TrendPeriod,
)
from ..utils.formatting import (
    format_wake_window, format_hours_minutes, format_day, format_kg, format_number,
)

WEEKLY_FALLBACK_FOOTER = "(AI insights unavailable - showing data summary)"
ANOMALY_FALLBACK_FOOTER = "(AI analysis unavailable - showing pattern-based detection)"
SLEEP_FALLBACK_FOOTER = "(AI analysis unavailable - using pattern-based prediction)"

PERIOD_LABELS = {
    TrendPeriod.DAILY: "Today",
    TrendPeriod.WEEKLY: "This week",
    TrendPeriod.MONTHLY: "This month",
    TrendPeriod.YEARLY: "This year",
}


def insufficient_data_text(baby_name: str, label: str) -> str:
    return (
        f"{label}, there is not enough tracking data for {baby_name} to summarize yet. "
        f"Insufficient data: keep logging sleep, feedings and diaper changes and insights will appear here."
    )


# Used by: insights_service.py (weekly summary)
def weekly_summary_text(
    baby_name: str,
    week_start: datetime,
    week_end: datetime,
    data: AggregatedData,
) -> str:
    header = [
        f"Weekly Summary for {baby_name}",
        f"Week: {format_day(week_start)} to {format_day(week_end)}",
        "",
    ]
    if data.total_events == 0:
        return "\n".join(header + [insufficient_data_text(baby_name, "This week"), "", WEEKLY_FALLBACK_FOOTER])

    lines = header + [
        "Sleep:",
        f"- Total: {format_hours_minutes(data.sleep.total_sleep_minutes)}",
        f"- {data.sleep.nap_count} naps",
        "",
        "Feeding:",
        f"- {data.feeding.total_feedings} total feedings",
        f"- {data.feeding.breastfeeding_count} breastfeeding, {data.feeding.bottle_count} bottle",
        "",
        "Diapers:",
        f"- {data.diaper.total_changes} changes",
        f"- {data.diaper.wet_count} wet, {data.diaper.dirty_count} dirty, {data.diaper.mixed_count} mixed",
        "",
        "Activities:",
        f"- {data.activity.total_activities} activities",
        f"- {data.activity.tummy_time_minutes} min tummy time",
    ]

    if data.growth.has_measurements and data.growth.end_weight is not None:
        lines += ["", "Growth:", f"- Weight: {format_kg(data.growth.end_weight)} kg"]

    lines += ["", WEEKLY_FALLBACK_FOOTER]
    return "\n".join(lines)


# Used by: insights_service.py (anomaly detection)
def anomaly_analysis_text(baby_name: str, analysis_hours: int, anomalies: List[DetectedAnomaly]) -> str:
    lines = [
        f"Anomaly Analysis for {baby_name}",
        f"Analysis Period: {analysis_hours} hours",
        "",
    ]

    if not anomalies:
        lines += [
            "No significant anomalies detected.",
            "",
            "All tracking data appears to be within normal ranges for your baby's age.",
            "",
        ]
    else:
        lines += [f"{len(anomalies)} potential concern(s) detected:", ""]
        for anomaly in anomalies:
            lines += [
                f"[{anomaly.severity.value.upper()}] {anomaly.title}",
                f"   {anomaly.description}",
                f"   Observed: {anomaly.observed_value} | Expected: {anomaly.expected_value}",
                f"   Tip: {anomaly.recommendation}",
                "",
            ]

    lines.append(ANOMALY_FALLBACK_FOOTER)
    return "\n".join(lines)


# Used by: insights_service.py (sleep prediction)
def sleep_reasoning_text(pattern: SleepPatternData, recommended_wake_window: int) -> str:
    stats = pattern.wake_window_stats
    if stats.count > 0:
        lines = [
            f"Based on {stats.count} observed wake windows over the past {pattern.analysis_days} days, "
            f"{pattern.baby_name}'s average wake window is {stats.average_formatted}."
        ]
    else:
        lines = [
            f"Based on typical wake windows for a {pattern.baby_age_months}-month-old baby, "
            f"the recommended wake window is {format_wake_window(recommended_wake_window)}."
        ]

    current: Optional[int] = pattern.current_wake_window_minutes
    if current is None:
        lines += ["", "No completed sleep recorded yet, so the current wake window is unknown."]
    else:
        lines += ["", f"Current wake window: {pattern.current_wake_window_formatted}", ""]
        if current >= recommended_wake_window:
            lines.append("Baby may be ready for a nap now or showing signs of tiredness.")
        else:
            lines.append(f"Estimated time until next nap: {format_wake_window(recommended_wake_window - current)}")

    lines += ["", SLEEP_FALLBACK_FOOTER]
    return "\n".join(lines)


# Used by: insights_service.py (trend insights)
def trend_summary_text(
    period: TrendPeriod,
    data: AggregatedData,
    insights: List[TrendInsightItem],
    baby_name: str,
    period_days: int,
) -> str:
    label = PERIOD_LABELS[TrendPeriod(period)]
    if data.total_events == 0:
        return insufficient_data_text(baby_name, label)

    summary = (
        f"{label}, {baby_name} averaged {format_hours_minutes(data.sleep.average_daily_sleep_minutes)} "
        f"of sleep daily with {data.sleep.nap_count} naps over {period_days} day{'s' if period_days > 1 else ''}. "
        f"There were {data.feeding.total_feedings} feedings "
        f"({format_number(data.feeding.average_feedings_per_day)} per day) "
        f"and {data.diaper.total_changes} diaper changes."
    )
    if insights:
        summary += f" {insights[0].title.rstrip('!.')}."
    return summary
