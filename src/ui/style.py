# src/ui/style.py

from __future__ import annotations

"""
UI / visual style constants for the dashboard.

Keep anything purely presentational in here (colours, line widths, spacing),
and keep forecasting constants in src/config/settings.py.
"""

# ---------------------------------------------------------------------------
# Chart line widths
# ---------------------------------------------------------------------------

LINE_WIDTH_PRIMARY = 2.0
LINE_WIDTH_SECONDARY = 1.25
CUMULATIVE_LINE_DASH = "dash"


# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

COLOR_REVENUE = "#1f77b4"  # soft blue
COLOR_COSTS = "#d62728"  # modern red
COLOR_PROFIT = "#2ca02c"  # green
COLOR_ATTENDANCE = "#9467bd"  # purple
COLOR_MARKER = "#ff7f0e"  # orange, payback / break-even markers

SCENARIO_COLORS = {
    "worst": COLOR_COSTS,
    "base": COLOR_REVENUE,
    "best": COLOR_PROFIT,
}

SENSITIVITY_COLORS = {
    "Revenue": COLOR_REVENUE,
    "Costs": COLOR_COSTS,
}

ZERO_LINE_COLOR = "rgba(0,0,0,0.2)"
