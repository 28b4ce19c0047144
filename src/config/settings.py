# src/config/settings.py

from src.config.env import APP_ENV, ENV_DEV, LOG_LEVEL  # noqa: F401

# Forecasting, metrics and scenario settings for the event forecast engine.
# Engine code reads these constants; UI code must not hard-code copies.

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# --- Forecast horizon defaults ---

DEFAULT_FORECAST_PERIODS = 12
MAX_FORECAST_PERIODS = 520  # ten years of weekly periods
DEFAULT_DISCOUNT_RATE = 0.10  # per period, fraction

# Model type that enables the attendance x per-customer spend revenue path
MODEL_TYPE_STANDARD = "standard"
MODEL_TYPE_RECURRING_EVENT = "recurring-event"

# Fixed revenue stream names produced by the per-customer driver.
# Order matters: it is the order the breakdown is built in.
PER_CUSTOMER_STREAM_NAMES = {
    "ticket_price": "Ticket Sales",
    "fb_spend": "F&B Sales",
    "merchandise_spend": "Merchandise Sales",
    "online_spend": "Online Sales",
    "misc_spend": "Miscellaneous Revenue",
}

# --- IRR search ---

# Bisection interval for the per-period IRR (fractions)
IRR_LOWER_BOUND = -0.99
IRR_UPPER_BOUND = 10.0
# Grid used to look for a sign change inside the interval before bisecting
IRR_BRACKET_SCAN_POINTS = 400
IRR_TOLERANCE = 1e-10
IRR_MAX_ITERATIONS = 200
# |NPV| at a candidate rate, relative to the total absolute cash flow, must be
# below this to accept numpy-financial's root
IRR_NPV_TOLERANCE = 1e-9

# --- Scenario presets ---
# Percentages applied via ScenarioParameterDeltas.revenue_percent / cost_percent
# (e.g. 20.0 = +20%).

SCENARIO_BASE_REVENUE_PCT = 0.0
SCENARIO_BASE_COST_PCT = 0.0

SCENARIO_BEST_REVENUE_PCT = 20.0
SCENARIO_BEST_COST_PCT = -10.0

SCENARIO_WORST_REVENUE_PCT = -20.0
SCENARIO_WORST_COST_PCT = 15.0

# --- Sensitivity analysis ---

# Symmetric range: -SENSITIVITY_RANGE_PCT .. +SENSITIVITY_RANGE_PCT
SENSITIVITY_RANGE_PCT = 20
SENSITIVITY_STEP_PCT = 5

# --- Forecast cache (external to the engine) ---

FORECAST_CACHE_TTL_S = (
    60 * 60 if APP_ENV == ENV_DEV else 5 * 60
)  # 1h in dev, 5m in prod
FORECAST_CACHE_MAX_ENTRIES = 1000

# --- Portfolio fan-out ---

PORTFOLIO_MAX_WORKERS = 4

# --- Forecast accuracy ---

# Letter grades for a percentage error (MAPE): upper bound (%) per grade,
# anything above the last bound is "F"
ACCURACY_GRADE_BANDS = (
    (10.0, "A"),
    (20.0, "B"),
    (30.0, "C"),
    (40.0, "D"),
)
# Accuracy trend compares the two halves of the most recent periods
ACCURACY_TREND_WINDOW = 6
ACCURACY_TREND_MIN_PERIODS = 3
ACCURACY_TREND_THRESHOLD_PCT = 5.0
# Confidence score adjustments (points out of 100)
ACCURACY_CONFIDENCE_MAPE_WEIGHT = 2.0
ACCURACY_CONFIDENCE_IMPROVING_BONUS = 10.0
ACCURACY_CONFIDENCE_DECLINING_PENALTY = 15.0

# --- Variance trend ---

VARIANCE_TREND_MIN_POINTS = 3
# Slope (percentage points per period) beyond which the trend has a direction
VARIANCE_TREND_SLOPE_THRESHOLD = 1.0
# |slope| that counts as a full-strength trend
VARIANCE_TREND_FULL_STRENGTH_SLOPE = 10.0

VARIANCE_ANOMALY_MIN_POINTS = 5
VARIANCE_ANOMALY_Z = 2.0
VARIANCE_ANOMALY_IQR_MULTIPLIER = 1.5
VARIANCE_SEVERE_Z = 3.0
VARIANCE_SEVERE_PCT = 50.0
VARIANCE_MODERATE_Z = 2.5
VARIANCE_MODERATE_PCT = 25.0

# Per-point risk: |variance %| or z-score above these
VARIANCE_HIGH_RISK_PCT = 30.0
VARIANCE_HIGH_RISK_Z = 2.0
VARIANCE_MEDIUM_RISK_PCT = 15.0
VARIANCE_MEDIUM_RISK_Z = 1.0

# --- UI defaults ---

CURRENCY_SYMBOL = "$"
PERIOD_LABEL = "Period"
