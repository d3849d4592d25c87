"""Prompt templates per narrative kind and the context builders that fill them."""

import re
from enum import Enum
from datetime import datetime
from typing import Any, Dict

from ..api.models import (
    AggregatedData, SleepSummary, FeedingSummary, DiaperSummary, GrowthSummary, ActivitySummary,
    SleepPatternData, AnomalyAnalysisData, TrendPeriod,
)
from ..db.models import Baby
from ..utils.formatting import (
    format_wake_window, format_hours_minutes, format_day, format_kg, format_cm,
    format_number, signed, round_int,
)


class PromptKind(str, Enum):
    WEEKLY_SUMMARY = "weekly_summary"
    SLEEP_ANALYSIS = "sleep_analysis"
    ANOMALY_DETECTION = "anomaly_detection"
    DAILY_TREND = "daily_trend"
    WEEKLY_TREND = "weekly_trend"
    MONTHLY_TREND = "monthly_trend"
    YEARLY_TREND = "yearly_trend"

    @classmethod
    def for_period(cls, period: TrendPeriod) -> "PromptKind":
        return cls(f"{TrendPeriod(period).value}_trend")

    @property
    def is_trend(self) -> bool:
        return self.value.endswith("_trend")


BABY_TRACKING_SYSTEM_PROMPT = """You are a helpful baby care assistant that analyzes tracking data to give parents and caregivers practical insights. You know infant development, sleep patterns, feeding schedules and general baby care.

Your job:
1. Analyze patterns in the tracking data (sleep, feeding, diapers, growth, activities)
2. Give actionable insights and recommendations
3. Point out anything worth discussing with a pediatrician
4. Encourage and support the caregivers

Guidelines:
- Be concise and practical
- Focus on patterns and trends, not individual data points
- Recommend a pediatrician for any medical concern
- Keep recommendations appropriate for the baby's age
- Be supportive and non-judgmental"""


WEEKLY_SUMMARY_PROMPT = """Generate a weekly summary for the following baby tracking data:

Baby Name: {{baby_name}}
Baby Age: {{baby_age_months}} months
Week: {{week_start}} to {{week_end}} ({{period_days}} days)

Sleep Summary:
{{sleep_summary}}

Feeding Summary:
{{feeding_summary}}

Diaper Summary:
{{diaper_summary}}

Growth Data:
{{growth_summary}}

Activities:
{{activity_summary}}

Please provide:
1. Overall assessment of the week
2. Key patterns and trends observed
3. Positive highlights to celebrate
4. Areas that may need attention
5. Recommendations for the coming week

Keep your response supportive and actionable."""


SLEEP_ANALYSIS_PROMPT = """Analyze the following sleep data for a baby and provide insights:

Baby Age: {{baby_age_months}} months

{{sleep_data}}

Please provide:
1. Analysis of sleep patterns (total sleep, nap frequency, night sleep quality)
2. Current wake window assessment
3. Predicted optimal next nap time based on patterns
4. Any concerns or recommendations for improving sleep

Keep your response concise and actionable."""


ANOMALY_DETECTION_PROMPT = """Review the following baby tracking data and identify any anomalies or concerns:

Baby Age: {{baby_age_months}} months
Recent Data (last {{analysis_hours}} hours):

Sleep:
{{sleep_data}}

Feeding:
{{feeding_data}}

Diapers:
{{diaper_data}}

Rule-based findings:
{{detected_anomalies}}

Please identify:
1. Any significant deviations from normal patterns
2. Potential concerns that warrant monitoring
3. Issues that may need pediatrician consultation
4. Recommendations for addressing any concerns

Be specific about what patterns are unusual and why they may be concerning."""


DAILY_TREND_PROMPT = """Analyze the following daily tracking data for a baby and provide a brief summary:

Baby Name: {{baby_name}}
Baby Age: {{baby_age_months}} months
Baby Gender: {{baby_gender}}
Date: {{period_start}}

Sleep Data:
{{sleep_summary}}

Feeding Data:
{{feeding_summary}}

Diaper Data:
{{diaper_summary}}

Activities:
{{activity_summary}}

Constraints:
- 2-3 sentences, under 50 words
- Be direct and specific
- Focus on the single most important observation or actionable insight
- Warm, supportive tone for tired parents
- Use pronouns that match the baby's gender
- No bullet points, numbered lists or markdown
- No greetings or sign-offs"""


WEEKLY_TREND_PROMPT = """Analyze the following weekly tracking data for a baby and provide trend insights:

Baby Name: {{baby_name}}
Baby Age: {{baby_age_months}} months
Baby Gender: {{baby_gender}}
Week: {{period_start}} to {{period_end}} ({{period_days}} days)

Sleep Summary:
{{sleep_summary}}

Feeding Summary:
{{feeding_summary}}

Diaper Summary:
{{diaper_summary}}

Growth Data:
{{growth_summary}}

Activities Summary:
{{activity_summary}}

Comparison to Previous Week:
{{previous_period_comparison}}

Please provide:
1. Overall assessment of the week's patterns
2. Key trends observed (improving, declining or stable)
3. Sleep pattern and wake window assessment
4. Feeding consistency and any concerns
5. Developmental observations based on activities
6. Top 3 highlights to celebrate
7. Top 2 areas that may need attention
8. Specific recommendations for the coming week

Be supportive, data-driven and actionable."""


MONTHLY_TREND_PROMPT = """Analyze the following monthly tracking data for a baby and provide comprehensive trend insights:

Baby Name: {{baby_name}}
Baby Age: {{baby_age_months}} months
Month: {{period_start}} to {{period_end}} ({{period_days}} days)

Sleep Summary:
{{sleep_summary}}

Feeding Summary:
{{feeding_summary}}

Diaper Summary:
{{diaper_summary}}

Growth Data:
{{growth_summary}}

Activities Summary:
{{activity_summary}}

Comparison to Previous Month:
{{previous_period_comparison}}

Please provide:
1. Monthly overview and developmental assessment
2. Sleep pattern evolution and quality trends
3. Feeding pattern changes and nutritional observations
4. Growth trajectory (if data is available)
5. Activity and developmental progress
6. Month-over-month improvements
7. Areas showing decline or needing attention
8. Age-appropriate recommendations for the coming month

Keep it comprehensive but digestible, suitable for sharing with family or a pediatrician."""


YEARLY_TREND_PROMPT = """Analyze the following yearly tracking data for a baby and provide developmental insights:

Baby Name: {{baby_name}}
Baby Age: {{baby_age_months}} months (tracking started at approximately {{start_age_months}} months)
Year: {{period_start}} to {{period_end}} ({{period_days}} days)

Sleep Summary:
{{sleep_summary}}

Feeding Summary:
{{feeding_summary}}

Diaper Summary:
{{diaper_summary}}

Growth Data:
{{growth_summary}}

Activities Summary:
{{activity_summary}}

Please provide:
1. Year in review: the overall developmental journey
2. How sleep patterns have matured
3. The feeding journey up to the current stage
4. Growth milestones: weight, height and percentile trends
5. Activity and developmental achievements
6. Patterns that improved significantly
7. Recommendations for the coming year
8. Topics to discuss at the next pediatrician visit"""


PROMPT_TEMPLATES: Dict[PromptKind, str] = {
    PromptKind.WEEKLY_SUMMARY: WEEKLY_SUMMARY_PROMPT,
    PromptKind.SLEEP_ANALYSIS: SLEEP_ANALYSIS_PROMPT,
    PromptKind.ANOMALY_DETECTION: ANOMALY_DETECTION_PROMPT,
    PromptKind.DAILY_TREND: DAILY_TREND_PROMPT,
    PromptKind.WEEKLY_TREND: WEEKLY_TREND_PROMPT,
    PromptKind.MONTHLY_TREND: MONTHLY_TREND_PROMPT,
    PromptKind.YEARLY_TREND: YEARLY_TREND_PROMPT,
}

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


# Used by: ai_provider.py (AIProviderGateway.generate)
def fill_prompt_template(template: str, variables: Dict[str, Any]) -> str:
    """Replace {{name}} placeholders; unknown placeholders are left as-is."""
    def _sub(match):
        key = match.group(1)
        return str(variables[key]) if key in variables else match.group(0)
    return _PLACEHOLDER.sub(_sub, template)


def get_prompt_template(kind: PromptKind) -> str:
    return PROMPT_TEMPLATES[PromptKind(kind)]


# ── SECTION FORMATTERS ───────────────────────────────────────────────────────

def format_sleep_section(sleep: SleepSummary, period_days: int) -> str:
    lines = [
        f"- Total sleep: {format_hours_minutes(sleep.total_sleep_minutes)} over {period_days} days",
        f"- Average daily sleep: {format_hours_minutes(sleep.average_daily_sleep_minutes)}",
        f"- Naps: {sleep.nap_count} ({format_hours_minutes(sleep.nap_minutes)})",
        f"- Night sleep: {format_hours_minutes(sleep.night_sleep_minutes)}",
    ]
    if sleep.average_nap_duration is not None:
        lines.append(f"- Average nap duration: {sleep.average_nap_duration} minutes")
    if sleep.average_night_sleep_duration is not None:
        lines.append(f"- Average night sleep: {format_hours_minutes(sleep.average_night_sleep_duration)}")
    if sleep.average_wake_window is not None:
        lines.append(f"- Average wake window: {format_wake_window(sleep.average_wake_window)}")
    lines.append(f"- Sleep consistency score: {sleep.consistency_score}/100")
    return "\n".join(lines)


def format_feeding_section(feeding: FeedingSummary) -> str:
    lines = [
        f"- Total feedings: {feeding.total_feedings}",
        f"- Average per day: {format_number(feeding.average_feedings_per_day)}",
        f"- Breastfeeding: {feeding.breastfeeding_count}",
        f"- Bottle: {feeding.bottle_count}",
        f"- Pumping: {feeding.pumping_count}",
        f"- Solid food: {feeding.solid_count}",
    ]
    if feeding.average_breastfeeding_minutes is not None:
        lines.append(f"- Average breastfeeding duration: {feeding.average_breastfeeding_minutes} minutes")
    if feeding.average_bottle_amount is not None:
        lines.append(f"- Average bottle amount: {feeding.average_bottle_amount} ml")
    if feeding.total_bottle_volume > 0:
        lines.append(f"- Total bottle volume: {feeding.total_bottle_volume} ml")
    lines.append(f"- Feeding consistency score: {feeding.consistency_score}/100")
    return "\n".join(lines)


def format_diaper_section(diaper: DiaperSummary) -> str:
    lines = [
        f"- Total changes: {diaper.total_changes}",
        f"- Average per day: {format_number(diaper.average_changes_per_day)}",
        f"- Wet: {diaper.wet_count}",
        f"- Dirty: {diaper.dirty_count}",
        f"- Mixed: {diaper.mixed_count}",
    ]
    if diaper.wet_to_dirty_ratio is not None:
        lines.append(f"- Wet to dirty ratio: {format_number(diaper.wet_to_dirty_ratio)}:1")
    return "\n".join(lines)


def format_growth_section(growth: GrowthSummary) -> str:
    if not growth.has_measurements:
        return "No growth measurements recorded in this period"

    lines = []
    if growth.end_weight is not None:
        lines.append(f"- Current weight: {format_kg(growth.end_weight)} kg")
        if growth.weight_gain is not None:
            lines.append(f"- Weight gain: {format_kg(growth.weight_gain)} kg")
        if growth.weight_percentile is not None:
            lines.append(f"- Weight percentile: {format_number(growth.weight_percentile)}th")
    if growth.end_height is not None:
        lines.append(f"- Current height: {format_cm(growth.end_height)} cm")
        if growth.height_gain is not None:
            lines.append(f"- Height gain: {format_cm(growth.height_gain)} cm")
        if growth.height_percentile is not None:
            lines.append(f"- Height percentile: {format_number(growth.height_percentile)}th")
    if growth.latest_head_circumference is not None:
        lines.append(f"- Head circumference: {format_cm(growth.latest_head_circumference)} cm")
    if growth.head_percentile is not None:
        lines.append(f"- Head circumference percentile: {format_number(growth.head_percentile)}th")

    return "\n".join(lines) if lines else "No measurements available"


def format_activity_section(activity: ActivitySummary) -> str:
    return "\n".join([
        f"- Total activities: {activity.total_activities}",
        f"- Tummy time: {activity.tummy_time_minutes} minutes total "
        f"({activity.average_daily_tummy_time} min/day avg)",
        f"- Baths: {activity.bath_count}",
        f"- Outdoor time: {activity.outdoor_minutes} minutes",
        f"- Play time: {activity.play_minutes} minutes",
    ])


def format_comparison_section(data: AggregatedData) -> str:
    lines = []

    sleep = data.sleep.comparison_to_previous
    if sleep:
        direction = "more" if sleep.sleep_change > 0 else "less"
        lines.append(f"Sleep: {abs(sleep.sleep_change)} minutes {direction} per day")
        lines.append(f"  - Nap count change: {signed(sleep.nap_count_change)}")
        lines.append(f"  - Consistency change: {signed(sleep.consistency_change)} points")

    feeding = data.feeding.comparison_to_previous
    if feeding:
        lines.append(f"Feeding: {signed(feeding.feeding_count_change)} feedings")
        if feeding.bottle_volume_change != 0:
            lines.append(f"  - Bottle volume change: {signed(feeding.bottle_volume_change)} ml")

    diaper = data.diaper.comparison_to_previous
    if diaper:
        lines.append(f"Diapers: {signed(diaper.total_change)} changes")

    activity = data.activity.comparison_to_previous
    if activity:
        lines.append("Activities:")
        lines.append(f"  - Tummy time change: {signed(activity.tummy_time_change)} minutes")
        lines.append(f"  - Outdoor time change: {signed(activity.outdoor_time_change)} minutes")

    return "\n".join(lines) if lines else "No previous period data available for comparison"


def format_sleep_pattern_section(pattern: SleepPatternData) -> str:
    stats = pattern.wake_window_stats
    lines = [
        f"Analysis Period: {format_day(pattern.analysis_start)} to {format_day(pattern.analysis_end)} "
        f"({pattern.analysis_days} days)",
        "",
        "Sleep Statistics:",
        f"- Total sessions: {pattern.total_sessions}",
        f"- Naps: {pattern.nap_count}",
        f"- Night sleep sessions: {pattern.night_sleep_count}",
    ]
    if pattern.average_nap_duration is not None:
        lines.append(f"- Average nap duration: {pattern.average_nap_duration} minutes")
    if pattern.average_night_sleep_duration is not None:
        lines.append(f"- Average night sleep: {format_hours_minutes(pattern.average_night_sleep_duration)}")

    lines += [
        "",
        "Wake Window Analysis:",
        f"- Average wake window: {stats.average_formatted}",
        f"- Range: {format_wake_window(stats.min_minutes)} to {format_wake_window(stats.max_minutes)}",
        f"- Data points: {stats.count}",
        "",
        "Current Status:",
        f"- Current wake window: {pattern.current_wake_window_formatted or 'unknown'}",
    ]
    if pattern.last_wake_time:
        lines.append(f"- Last woke up: {pattern.last_wake_time.isoformat()}")

    if pattern.recent_sessions:
        lines += ["", "Recent Sleep Sessions:"]
        for session in pattern.recent_sessions[-5:]:
            end = session.end_time.strftime("%H:%M") if session.end_time else "ongoing"
            wake = f" (wake window: {session.wake_window_before}m)" if session.wake_window_before is not None else ""
            lines.append(
                f"- {session.sleep_type}: {session.start_time.strftime('%H:%M')}-{end}, "
                f"{session.duration or 0}min{wake}"
            )

    return "\n".join(lines)


# ── CONTEXT BUILDERS ─────────────────────────────────────────────────────────

# Used by: insights_service.py (weekly summary)
def build_weekly_context(
    baby: Baby,
    age_months: int,
    week_start: datetime,
    week_end: datetime,
    period_days: int,
    data: AggregatedData,
) -> Dict[str, Any]:
    return {
        "baby_name": baby.name,
        "baby_age_months": age_months,
        "week_start": format_day(week_start),
        "week_end": format_day(week_end),
        "period_days": period_days,
        "sleep_summary": format_sleep_section(data.sleep, period_days),
        "feeding_summary": format_feeding_section(data.feeding),
        "diaper_summary": format_diaper_section(data.diaper),
        "growth_summary": format_growth_section(data.growth),
        "activity_summary": format_activity_section(data.activity),
    }


# Used by: insights_service.py (sleep prediction)
def build_sleep_context(pattern: SleepPatternData) -> Dict[str, Any]:
    return {
        "baby_age_months": pattern.baby_age_months,
        "sleep_data": format_sleep_pattern_section(pattern),
    }


# Used by: insights_service.py (anomaly detection)
def build_anomaly_context(age_months: int, analysis: AnomalyAnalysisData, anomalies) -> Dict[str, Any]:
    sleep, feeding, diaper = analysis.sleep, analysis.feeding, analysis.diaper
    average_session = round_int(sleep.total_sleep_minutes / sleep.session_count) if sleep.session_count else 0
    detected = "\n".join(f"- [{a.severity.value}] {a.title}" for a in anomalies) or "None"

    return {
        "baby_age_months": age_months,
        "analysis_hours": analysis.analysis_hours,
        "sleep_data": "\n".join([
            f"- Total sleep: {format_hours_minutes(sleep.total_sleep_minutes)}",
            f"- Sessions: {sleep.session_count}",
            f"- Average session: {average_session} minutes",
            f"- Longest wake window: {format_wake_window(sleep.longest_wake_window)}",
            f"- Daily average: {format_hours_minutes(analysis.actual_daily_sleep_minutes)} "
            f"(expected: {format_hours_minutes(analysis.expected_daily_sleep_minutes)})",
        ]),
        "feeding_data": "\n".join([
            f"- Total feedings: {feeding.total_feedings}",
            f"- Average per day: {format_number(feeding.average_feedings_per_day)} "
            f"(expected: {analysis.expected_feedings_per_day})",
            f"- Longest gap: {format_wake_window(feeding.longest_feeding_gap)}",
        ]),
        "diaper_data": "\n".join([
            f"- Total changes: {diaper.total_changes}",
            f"- Wet: {diaper.wet_count}",
            f"- Dirty: {diaper.dirty_count}",
            f"- Mixed: {diaper.mixed_count}",
            f"- Average per day: {format_number(diaper.average_changes_per_day)}",
            f"- Expected wet per day: {analysis.expected_wet_per_day}+",
        ]),
        "detected_anomalies": detected,
    }


# Used by: insights_service.py (trend insights)
def build_trend_context(
    baby: Baby,
    age_months: int,
    period: TrendPeriod,
    period_start: datetime,
    period_end: datetime,
    period_days: int,
    data: AggregatedData,
) -> Dict[str, Any]:
    return {
        "baby_name": baby.name,
        "baby_gender": baby.gender or "unknown",
        "baby_age_months": age_months,
        "period_start": format_day(period_start),
        "period_end": format_day(period_end),
        "period_days": period_days,
        "sleep_summary": format_sleep_section(data.sleep, period_days),
        "feeding_summary": format_feeding_section(data.feeding),
        "diaper_summary": format_diaper_section(data.diaper),
        "growth_summary": format_growth_section(data.growth),
        "activity_summary": format_activity_section(data.activity),
        "previous_period_comparison": format_comparison_section(data),
        "start_age_months": max(0, age_months - 12) if period == TrendPeriod.YEARLY else age_months,
    }
