"""Age-banded developmental norms, anomaly thresholds, and app-level tuning constants."""

# Age tables are ordered tuples of (upper_bound_exclusive_months, value); the
# first band whose bound exceeds the baby's age wins, otherwise the *_DEFAULT
# value applies. Lookups live in services/age_norms.py.

# ── WAKE WINDOWS ─────────────────────────────────────────────────────────────
# source: typical developmental guidelines for awake time between sleeps,
#         stepping up ~15 min per month through the first year.
# NOTE on values chosen:
#   Newborns (<1 mo) tolerate ~45 min awake; by 2 years a single long nap
#   gives 5h wake windows, and 24+ months is treated as one 6h window.
WAKE_WINDOW_MINUTES_BY_AGE = (
    (1, 45),
    (2, 60),
    (3, 75),
    (4, 90),
    (5, 105),
    (6, 120),
    (7, 135),
    (8, 150),
    (9, 165),
    (10, 180),
    (12, 195),
    (15, 210),
    (18, 240),
    (24, 300),
)
WAKE_WINDOW_MINUTES_DEFAULT = 360

# Wake windows outside this range are logging gaps, not observations
WAKE_WINDOW_MIN_ACCEPTED_MINUTES = 15
WAKE_WINDOW_MAX_ACCEPTED_MINUTES = 720

# ── DAILY SLEEP ──────────────────────────────────────────────────────────────
# Newborn 14-17h, 1-3 mo 14-16h, 4-11 mo 12-15h, 1-2 y 11-14h, 2+ y 10-13h.
# Values below are the midpoint of each band, in minutes.
DAILY_SLEEP_MINUTES_BY_AGE = (
    (1, 16 * 60),
    (4, 15 * 60),
    (12, 14 * 60),
    (24, 13 * 60),
)
DAILY_SLEEP_MINUTES_DEFAULT = 12 * 60

# ── FEEDINGS ─────────────────────────────────────────────────────────────────
# Newborn 8-12, 1-2 mo 7-9, 3-5 mo 5-7, 6-8 mo 4-6 + solids,
# 9-11 mo 3-5 + solids, 12+ mo 3-4 + meals.
FEEDINGS_PER_DAY_BY_AGE = (
    (1, 10),
    (3, 8),
    (6, 6),
    (9, 5),
    (12, 4),
)
FEEDINGS_PER_DAY_DEFAULT = 3

# ── DIAPERS ──────────────────────────────────────────────────────────────────
# 6+ wet diapers a day under 6 months, 4-6 after.
WET_DIAPERS_PER_DAY_BY_AGE = (
    (6, 6),
)
WET_DIAPERS_PER_DAY_DEFAULT = 5

# ── TUMMY TIME ───────────────────────────────────────────────────────────────
TUMMY_TIME_MINUTES_BY_AGE = (
    (4, 15),
    (6, 30),
)
TUMMY_TIME_MINUTES_DEFAULT = 60

# ── ANOMALY THRESHOLDS ───────────────────────────────────────────────────────
SLEEP_DEFICIT_HIGH_PCT = 30
SLEEP_DEFICIT_MEDIUM_PCT = 15

# Longest wake window above rec * 1.5 is flagged; above (rec * 1.5) * 1.5 is high
WAKE_WINDOW_ALERT_MULTIPLIER = 1.5
WAKE_WINDOW_HIGH_MULTIPLIER = 1.5

FEEDING_DEFICIT_HIGH_PCT = 40
FEEDING_DEFICIT_MEDIUM_PCT = 25

FEEDING_GAP_MAX_MINUTES_YOUNG = 6 * 60
FEEDING_GAP_MAX_MINUTES_OLDER = 8 * 60
FEEDING_GAP_YOUNG_AGE_MONTHS = 6
FEEDING_GAP_HIGH_SEVERITY_AGE_MONTHS = 3

WET_DIAPER_HIGH_RATIO = 0.5
WET_DIAPER_MEDIUM_RATIO = 0.7

NO_STOOL_MAX_AGE_MONTHS = 2

# ── CONSISTENCY SCORING ──────────────────────────────────────────────────────
CONSISTENCY_DEFAULT_SCORE = 50
CONSISTENCY_MIN_SESSIONS = 3
# start variance of 16 h^2 (4h std) = full 50-point penalty
SLEEP_START_VARIANCE_SCALE = 16.0
# duration variance of 900 min^2 (30 min std) = full 50-point penalty
SLEEP_DURATION_VARIANCE_SCALE = 900.0
SLEEP_PENALTY_CAP = 50.0
# interval variance of 3600 min^2 (1h std) = full 100-point penalty
FEEDING_INTERVAL_VARIANCE_SCALE = 3600.0
FEEDING_PENALTY_CAP = 100.0
MAX_FEEDING_INTERVAL_MINUTES = 24 * 60

# ── TREND INSIGHTS ───────────────────────────────────────────────────────────
TREND_SLEEP_DEVIATION_PCT = 15
TREND_FEEDING_DEVIATION_PER_DAY = 2
TREND_EXCELLENT_CONSISTENCY = 80
TREND_POOR_CONSISTENCY = 50
TREND_HIGHLIGHT_CONSISTENCY = 70
TREND_MAX_HIGHLIGHTS = 5
TREND_MAX_CONCERNS = 3

# ── SLEEP PREDICTION ─────────────────────────────────────────────────────────
PREDICTION_BASE_CONFIDENCE = 0.5
PREDICTION_CONFIDENCE_MIN = 0.3
PREDICTION_CONFIDENCE_MAX = 0.9
PREDICTION_WIDE_RANGE_MINUTES = 60
PREDICTION_DEFAULT_ANALYSIS_DAYS = 7
PREDICTION_MIN_ANALYSIS_DAYS = 3
PREDICTION_MAX_ANALYSIS_DAYS = 30
PREDICTION_RECENT_SESSIONS = 10

# ── ANOMALY WINDOW ───────────────────────────────────────────────────────────
ANOMALY_DEFAULT_ANALYSIS_HOURS = 48
ANOMALY_MIN_ANALYSIS_HOURS = 12
ANOMALY_MAX_ANALYSIS_HOURS = 168

# ── CACHE ────────────────────────────────────────────────────────────────────
TREND_CACHE_KEY_PREFIX = "insights:trends"
TREND_CACHE_TTL_SECONDS = {
    "daily": 15 * 60,
    "weekly": 60 * 60,
    "monthly": 2 * 60 * 60,
    "yearly": 4 * 60 * 60,
}

# ── AI GENERATION ────────────────────────────────────────────────────────────
AI_DEFAULT_TEMPERATURE = 0.7
AI_DEFAULT_MAX_TOKENS = 1024
AI_TREND_TIMEOUT_SECONDS = 90
AI_YEARLY_TREND_TIMEOUT_SECONDS = 120
AI_TREND_MAX_TOKENS = 1536
AI_YEARLY_TREND_MAX_TOKENS = 2048

# ── TIME ─────────────────────────────────────────────────────────────────────
MINUTES_PER_DAY = 24 * 60
SECONDS_PER_DAY = 24 * 60 * 60
HOURS_PER_DAY = 24
WEEK_DAYS = 7
