# src/ui/scenarios_tab.py
from __future__ import annotations

import pandas as pd
import streamlit as st

from src.core.investment_metrics import FinancialMetrics, compare_metrics
from src.core.models import FinancialModel
from src.core.scenario_engine import (
    run_scenario,
    scenario_summary_dataframe,
    sensitivity_to_dataframe,
)
from src.core.scenario_models import (
    ScenarioAnalysis,
    ScenarioParameterDeltas,
    SpendDelta,
)
from src.ui.charts import (
    format_money,
    format_pct,
    render_metrics_summary,
    render_scenario_comparison_chart,
    render_sensitivity_chart,
)


def _build_scenario_label(friendly_name: str, metrics: FinancialMetrics) -> str:
    """
    One-line expander label, e.g.
      'Best case · $12,345 profit · NPV $10,000'
    """
    return (
        f"{friendly_name} · "
        f"{format_money(metrics.total_profit)} profit · "
        f"NPV {format_money(metrics.npv)}"
    )


def _spend_delta_input(label: str, key: str) -> SpendDelta | None:
    c1, c2 = st.columns([2, 1])
    with c1:
        value = st.number_input(label, value=0.0, step=1.0, key=f"{key}_value")
    with c2:
        delta_type = st.selectbox(
            "Type", options=["percent", "absolute"], key=f"{key}_type"
        )
    if value == 0:
        return None
    return SpendDelta(type=delta_type, value=value)


def _render_delta_inputs(model: FinancialModel) -> ScenarioParameterDeltas:
    st.markdown("Adjust the baseline assumptions. Zero means unchanged.")

    c1, c2 = st.columns(2)
    with c1:
        revenue_percent = st.number_input("All revenue (%)", value=0.0, step=1.0)
        marketing_spend_percent = st.number_input(
            "Marketing spend (%)", value=0.0, step=1.0
        )
        cogs_multiplier = st.number_input(
            "COGS multiplier", min_value=0.0, value=1.0, step=0.05
        )
    with c2:
        cost_percent = st.number_input("All costs (%)", value=0.0, step=1.0)
        attendance_growth_percent = st.number_input(
            "Attendance growth (+ pct points)", value=0.0, step=0.5
        )

    channels = sorted({c.channel_key for c in model.cost_categories if c.is_marketing})
    by_channel: dict[str, float] = {}
    if channels:
        with st.expander("Marketing by channel", expanded=False):
            for channel in channels:
                pct = st.number_input(
                    f"{channel} (%)", value=0.0, step=1.0, key=f"channel_{channel}"
                )
                if pct:
                    by_channel[channel] = pct

    ticket_delta = fb_delta = merch_delta = None
    if model.per_customer is not None:
        with st.expander("Per-customer spend", expanded=False):
            ticket_delta = _spend_delta_input("Ticket price change", "ticket_delta")
            fb_delta = _spend_delta_input("F&B spend change", "fb_delta")
            merch_delta = _spend_delta_input("Merchandise change", "merch_delta")

    return ScenarioParameterDeltas(
        marketing_spend_percent=marketing_spend_percent,
        marketing_spend_by_channel=by_channel,
        ticket_price_delta=ticket_delta,
        attendance_growth_percent=attendance_growth_percent,
        cogs_multiplier=cogs_multiplier,
        fb_spend_delta=fb_delta,
        merch_spend_delta=merch_delta,
        revenue_percent=revenue_percent,
        cost_percent=cost_percent,
    )


def render_custom_scenario(
    model: FinancialModel,
    baseline: FinancialMetrics,
    periods: int,
    discount_rate: float,
) -> None:
    """What-if builder: deltas in, metrics and deltas vs. baseline out."""
    st.subheader("Custom scenario")
    deltas = _render_delta_inputs(model)
    result = run_scenario(model, deltas, periods, discount_rate, name="Custom")
    comparison = compare_metrics(baseline, result.metrics)

    render_metrics_summary(result.metrics)

    cols = st.columns(4)
    with cols[0]:
        st.metric(
            "Revenue vs. baseline",
            format_money(comparison.revenue_delta),
            format_pct(comparison.revenue_delta_percent),
        )
    with cols[1]:
        st.metric(
            "Costs vs. baseline",
            format_money(comparison.costs_delta),
            format_pct(comparison.costs_delta_percent),
            delta_color="inverse",
        )
    with cols[2]:
        st.metric(
            "Profit vs. baseline",
            format_money(comparison.profit_delta),
            format_pct(comparison.profit_delta_percent),
        )
    with cols[3]:
        st.metric(
            "Margin change",
            f"{comparison.margin_delta:+.1f} pts",
            help="Scenario margin minus baseline margin, in percentage points.",
        )


def render_scenarios_tab(analysis: ScenarioAnalysis) -> None:
    """
    Layout container for the preset scenarios.

    Base case is expanded by default; best and worst reuse the same
    metrics renderer so all three share a consistent visual structure.
    """
    st.subheader("Preset scenarios")

    summary = scenario_summary_dataframe(analysis)
    render_scenario_comparison_chart(summary)

    for friendly_name, metrics, expanded in (
        ("Base case", analysis.base_case, True),
        ("Best case", analysis.best_case, False),
        ("Worst case", analysis.worst_case, False),
    ):
        with st.expander(_build_scenario_label(friendly_name, metrics), expanded=expanded):
            render_metrics_summary(metrics)

    st.dataframe(summary, hide_index=True, width="stretch")


def render_sensitivity_tab(analysis: ScenarioAnalysis) -> None:
    st.subheader("Sensitivity")
    st.markdown(
        "How NPV moves when revenue or costs shift by a fixed percentage, "
        "holding everything else at the base case."
    )
    df = sensitivity_to_dataframe(analysis)
    render_sensitivity_chart(df)

    wide = df.pivot(index="Change (%)", columns="Driver", values="NPV change (%)")
    st.dataframe(pd.DataFrame(wide).reset_index(), hide_index=True, width="stretch")
