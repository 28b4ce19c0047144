from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd
import streamlit as st

from src.config import settings


@dataclass
class BulletItem:
    text: str
    subitems: List[str] = field(default_factory=list)


@dataclass
class AssumptionSection:
    title: str
    paragraphs: List[str]
    bullets: List[BulletItem] = field(default_factory=list)
    table: Optional[List[List[str]]] = None


def get_assumptions_sections() -> list[AssumptionSection]:
    """Return the methodology text shown on the Assumptions tab."""
    return [
        AssumptionSection(
            title="Growth curves",
            paragraphs=[
                "Period 1 always uses the base value you enter. Growth is applied "
                "from period 2 onwards, with `p` the period number:",
            ],
            table=[
                ["Type", "Value in period p"],
                ["Linear", "base × (1 + rate × (p − 1))"],
                ["Exponential", "base × (1 + rate)^(p − 1)"],
                [
                    "Seasonal",
                    "base × (1 + rate)^(p − 1) × factor[(p − 1) mod n]",
                ],
            ],
        ),
        AssumptionSection(
            title="Revenue",
            paragraphs=[
                "Recurring-event models derive revenue from attendance × spend per "
                "head. Each spend line becomes its own revenue stream:",
                "Other revenue streams and every cost category follow the model's "
                "growth curve.",
            ],
            bullets=[
                BulletItem(text=f"**{name}**")
                for name in settings.PER_CUSTOMER_STREAM_NAMES.values()
            ],
        ),
        AssumptionSection(
            title="Metrics",
            paragraphs=[
                "Profit is revenue minus costs in each period. Totals and "
                "cumulatives include every period in the horizon.",
            ],
            bullets=[
                BulletItem(
                    text="**NPV** discounts period p by (1 + r)^p, so period 1 is "
                    "discounted once.",
                ),
                BulletItem(
                    text="**IRR** is the per-period rate where NPV is zero.",
                    subitems=[
                        "Shown as N/A when profits never change sign.",
                        f"Searched between {settings.IRR_LOWER_BOUND:.0%} and "
                        f"{settings.IRR_UPPER_BOUND:.0%} per period.",
                    ],
                ),
                BulletItem(
                    text="**Profit margin** and **ROI** are shown as 0 when revenue "
                    "or costs are zero.",
                ),
                BulletItem(
                    text="**Break-even period** is the first period where "
                    "cumulative profit is zero or above; **payback** interpolates "
                    "inside that period.",
                ),
            ],
        ),
        AssumptionSection(
            title="Scenarios & sensitivity",
            paragraphs=[
                "Preset scenarios shift all revenue and all costs by fixed "
                "percentages. Sensitivity moves one side at a time from "
                f"−{settings.SENSITIVITY_RANGE_PCT}% to "
                f"+{settings.SENSITIVITY_RANGE_PCT}% in "
                f"{settings.SENSITIVITY_STEP_PCT}% steps.",
            ],
            table=[
                ["Scenario", "Revenue", "Costs"],
                [
                    "Best case",
                    f"{settings.SCENARIO_BEST_REVENUE_PCT:+.0f}%",
                    f"{settings.SCENARIO_BEST_COST_PCT:+.0f}%",
                ],
                [
                    "Base case",
                    f"{settings.SCENARIO_BASE_REVENUE_PCT:+.0f}%",
                    f"{settings.SCENARIO_BASE_COST_PCT:+.0f}%",
                ],
                [
                    "Worst case",
                    f"{settings.SCENARIO_WORST_REVENUE_PCT:+.0f}%",
                    f"{settings.SCENARIO_WORST_COST_PCT:+.0f}%",
                ],
            ],
        ),
        AssumptionSection(
            title="Forecast accuracy",
            paragraphs=[
                "Actuals are compared with the forecast for the same period. "
                "Periods outside the horizon are listed but not compared.",
                "MAPE is graded "
                + ", ".join(
                    f"{grade} up to {upper:.0f}%"
                    for upper, grade in settings.ACCURACY_GRADE_BANDS
                )
                + " and F above that.",
                "The variance trend is the slope of |variance %| over time; "
                f"anomalies need at least {settings.VARIANCE_ANOMALY_MIN_POINTS} "
                f"periods and sit more than {settings.VARIANCE_ANOMALY_Z:.0f} "
                "standard deviations from the mean or outside "
                f"{settings.VARIANCE_ANOMALY_IQR_MULTIPLIER}x the IQR.",
            ],
        ),
    ]


def render_assumptions_and_methodology() -> None:
    """Render the Assumptions & Methodology tab content."""

    st.subheader("Assumptions & Methodology")
    for section in get_assumptions_sections():
        st.markdown(f"### {section.title}")
        for paragraph in section.paragraphs:
            st.markdown(paragraph)
        for bullet in section.bullets:
            lines = [f"- {bullet.text}"]
            for sub in bullet.subitems:
                lines.append(f"  - {sub}")
            st.markdown("\n".join(lines))
        if section.table:
            df = pd.DataFrame(section.table[1:], columns=section.table[0])
            st.dataframe(df, hide_index=True, width="stretch")
