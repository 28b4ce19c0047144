# src/ui/variance_tab.py
from __future__ import annotations

from typing import List

import pandas as pd
import streamlit as st

from src.core.models import ForecastPeriodData
from src.core.variance import (
    ActualsRecord,
    accuracy_confidence,
    accuracy_grade,
    accuracy_trend,
    analyze_variance_trend,
    compute_mape,
    reconcile_actuals,
    unmatched_periods,
    variance_to_dataframe,
)
from src.ui.charts import format_pct, render_variance_chart

ACTUALS_COLUMNS = ["period", "revenue", "costs"]


def _load_actuals_frame() -> pd.DataFrame:
    uploaded = st.file_uploader(
        "Upload actuals (CSV with period, revenue, costs columns)",
        type=["csv"],
    )
    if uploaded is not None:
        df = pd.read_csv(uploaded)
        df.columns = [str(c).strip().lower() for c in df.columns]
        missing = set(ACTUALS_COLUMNS) - set(df.columns)
        if missing:
            st.error(f"Actuals file is missing columns: {sorted(missing)}")
            return pd.DataFrame(columns=ACTUALS_COLUMNS)
        return df[ACTUALS_COLUMNS]

    return st.data_editor(
        pd.DataFrame(columns=ACTUALS_COLUMNS),
        num_rows="dynamic",
        key="actuals_editor",
        hide_index=True,
    )


def _frame_to_actuals(df: pd.DataFrame) -> List[ActualsRecord]:
    df = df.dropna(subset=["period"]).fillna({"revenue": 0.0, "costs": 0.0})
    return [ActualsRecord.from_record(row) for row in df.to_dict(orient="records")]


def _render_trend(records, metric: str) -> None:
    mape = compute_mape(records, metric)
    trend = analyze_variance_trend(records, metric)
    direction = accuracy_trend(records, metric)

    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric(
            "Confidence",
            f"{accuracy_confidence(mape, direction)}/100",
            help=f"Forecast error is {direction}.",
        )
    with c2:
        st.metric(
            "Variance trend",
            trend.direction,
            delta=f"{trend.change_rate:+.1f} pts/period",
            delta_color="inverse",
        )
    with c3:
        st.metric("Volatility", format_pct(trend.volatility))

    if trend.anomalies:
        st.warning(
            "Unusual variance in "
            + ", ".join(
                f"period {a.period} ({a.severity}, {format_pct(a.variance_percent)})"
                for a in trend.anomalies
            )
            + "."
        )


def render_variance_tab(series: List[ForecastPeriodData]) -> None:
    """Actuals entry, period and cumulative variance, and forecast accuracy."""
    st.subheader("Actuals vs. forecast")
    actuals = _frame_to_actuals(_load_actuals_frame())
    if not actuals:
        st.info("Enter or upload actuals to compare them with the forecast.")
        return

    try:
        records = reconcile_actuals(series, actuals)
    except ValueError as exc:
        st.error(str(exc))
        return

    outside = unmatched_periods(records)
    if outside:
        st.warning(
            "Actuals outside the forecast horizon were not compared: "
            f"periods {', '.join(str(p) for p in outside)}."
        )

    revenue_mape = compute_mape(records, "revenue")
    costs_mape = compute_mape(records, "costs")
    c1, c2 = st.columns(2)
    with c1:
        st.metric(
            "Revenue MAPE",
            format_pct(revenue_mape),
            help=f"Accuracy grade: {accuracy_grade(revenue_mape)}",
        )
    with c2:
        st.metric(
            "Cost MAPE",
            format_pct(costs_mape),
            help=f"Accuracy grade: {accuracy_grade(costs_mape)}",
        )

    df = variance_to_dataframe(records)
    metric = st.radio("Show", options=["revenue", "costs"], horizontal=True)
    _render_trend(records, metric)
    render_variance_chart(df, metric=metric)
    st.dataframe(df, hide_index=True, width="stretch")
