# src/ui/charts.py
from __future__ import annotations

from typing import Optional

import altair as alt
import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from src.config import settings
from src.core.investment_metrics import FinancialMetrics
from src.ui import style


def format_money(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}{settings.CURRENCY_SYMBOL}{abs(value):,.0f}"


def format_pct(value: Optional[float], decimals: int = 1) -> str:
    if value is None:
        return "N/A"
    return f"{value:,.{decimals}f}%"


def render_forecast_chart(
    df: pd.DataFrame,
    title: str = "Forecast by period",
    show_cumulative: bool = True,
) -> None:
    """
    Revenue, costs and profit per period (left axis) with cumulative profit
    on the right axis.

    Expects the frame built by forecast_to_dataframe().
    """
    required = {"Period", "Revenue", "Costs", "Profit"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Forecast chart missing columns: {missing}")

    fig = go.Figure()
    for column, color in (
        ("Revenue", style.COLOR_REVENUE),
        ("Costs", style.COLOR_COSTS),
        ("Profit", style.COLOR_PROFIT),
    ):
        fig.add_trace(
            go.Scatter(
                x=df["Period"],
                y=df[column],
                mode="lines",
                name=column,
                line=dict(color=color, width=style.LINE_WIDTH_PRIMARY),
                hovertemplate=(
                    f"{column}: {settings.CURRENCY_SYMBOL}%{{y:,.0f}}<extra></extra>"
                ),
            )
        )

    if show_cumulative and "Cumulative profit" in df.columns:
        fig.add_trace(
            go.Scatter(
                x=df["Period"],
                y=df["Cumulative profit"],
                mode="lines",
                name="Cumulative profit",
                line=dict(
                    color=style.COLOR_PROFIT,
                    width=style.LINE_WIDTH_SECONDARY,
                    dash=style.CUMULATIVE_LINE_DASH,
                ),
                yaxis="y2",
                hovertemplate=(
                    f"Cumulative profit: {settings.CURRENCY_SYMBOL}%{{y:,.0f}}"
                    "<extra></extra>"
                ),
            )
        )

    fig.update_layout(
        title=title,
        xaxis=dict(title=settings.PERIOD_LABEL),
        yaxis=dict(title=f"Per period ({settings.CURRENCY_SYMBOL})", side="left"),
        yaxis2=dict(
            title=f"Cumulative ({settings.CURRENCY_SYMBOL})",
            overlaying="y",
            side="right",
        ),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=-0.25, xanchor="center", x=0.5),
        margin=dict(l=40, r=20, t=60, b=60),
    )

    st.plotly_chart(fig, width="stretch")


def render_cumulative_profit_chart(
    df: pd.DataFrame,
    payback_period: Optional[float],
    title: str = "Cumulative profit & payback",
) -> None:
    """Plot cumulative profit and mark the payback point when it is reached."""
    if "Period" not in df.columns or "Cumulative profit" not in df.columns:
        raise ValueError(
            "DataFrame must contain 'Period' and 'Cumulative profit' columns"
        )

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=df["Period"],
            y=df["Cumulative profit"],
            mode="lines",
            name="Cumulative profit",
            line=dict(color=style.COLOR_PROFIT, width=3),
            hovertemplate=(
                f"Cumulative profit: {settings.CURRENCY_SYMBOL}%{{y:,.0f}}<extra></extra>"
            ),
        )
    )
    fig.add_hline(y=0, line_width=0.75, line_dash="dash", line_color=style.ZERO_LINE_COLOR)

    if payback_period is not None:
        fig.add_vline(
            x=payback_period,
            line_width=1,
            line_dash="dot",
            line_color=style.COLOR_MARKER,
        )
        fig.add_annotation(
            x=payback_period,
            y=0,
            xanchor="left",
            yanchor="bottom",
            text=f"Payback: {payback_period:.2f} periods",
            showarrow=True,
            arrowhead=2,
            ax=20,
            ay=-30,
            bgcolor="rgba(255,255,255,0.8)",
        )

    fig.update_layout(
        title=title,
        xaxis=dict(title=settings.PERIOD_LABEL),
        yaxis=dict(title=f"Cumulative profit ({settings.CURRENCY_SYMBOL})"),
        hovermode="x unified",
        showlegend=False,
        margin=dict(l=40, r=40, t=60, b=40),
    )
    st.plotly_chart(fig, width="stretch")

    if payback_period is None:
        st.warning(
            "Payback is not reached within the forecast horizon "
            "(cumulative profit stays below zero)."
        )


def render_metrics_summary(metrics: FinancialMetrics) -> None:
    """Headline metrics as a 2 x 4 grid of st.metric tiles."""
    top = st.columns(4)
    with top[0]:
        st.metric("Total revenue", format_money(metrics.total_revenue))
    with top[1]:
        st.metric("Total costs", format_money(metrics.total_costs))
    with top[2]:
        st.metric("Total profit", format_money(metrics.total_profit))
    with top[3]:
        st.metric(
            "Profit margin",
            format_pct(metrics.profit_margin),
            help="Total profit as a share of total revenue.",
        )

    bottom = st.columns(4)
    with bottom[0]:
        st.metric(
            "NPV",
            format_money(metrics.npv),
            help="Profits discounted per period, first period discounted once.",
        )
    with bottom[1]:
        irr_pct = None if metrics.irr is None else metrics.irr * 100.0
        st.metric(
            "IRR (per period)",
            format_pct(irr_pct),
            help="N/A when profits never change sign or no root is found.",
        )
    with bottom[2]:
        st.metric("ROI", format_pct(metrics.roi), help="Total profit / total costs.")
    with bottom[3]:
        period = metrics.break_even_period_index
        st.metric(
            "Break-even period",
            "Not reached" if period is None else f"{settings.PERIOD_LABEL} {period}",
            help="First period where cumulative profit is zero or above.",
        )


def render_scenario_comparison_chart(summary: pd.DataFrame) -> None:
    """Grouped bars of revenue / costs / profit for worst, base and best."""
    fig = go.Figure()
    for column, color in (
        ("Total revenue", style.COLOR_REVENUE),
        ("Total costs", style.COLOR_COSTS),
        ("Total profit", style.COLOR_PROFIT),
    ):
        fig.add_trace(
            go.Bar(
                x=summary["Scenario"],
                y=summary[column],
                name=column,
                marker_color=color,
                hovertemplate=(
                    f"{column}: {settings.CURRENCY_SYMBOL}%{{y:,.0f}}<extra></extra>"
                ),
            )
        )
    fig.update_layout(
        barmode="group",
        title="Scenario comparison",
        yaxis=dict(title=settings.CURRENCY_SYMBOL),
        legend=dict(orientation="h", y=-0.2, x=0.5, xanchor="center"),
        margin=dict(l=40, r=20, t=60, b=60),
    )
    st.plotly_chart(fig, width="stretch")


def render_sensitivity_chart(df: pd.DataFrame) -> None:
    """NPV change vs. revenue / cost change, one line per driver."""
    if df.empty:
        st.info("No sensitivity steps to display.")
        return

    drivers = list(style.SENSITIVITY_COLORS)
    chart = (
        alt.Chart(df, title=alt.TitleParams("NPV sensitivity", anchor="start"))
        .mark_line(point=True)
        .encode(
            x=alt.X("Change (%):Q", title="Change in driver (%)"),
            y=alt.Y("NPV change (%):Q", title="Change in NPV (%)"),
            color=alt.Color(
                "Driver:N",
                scale=alt.Scale(
                    domain=drivers,
                    range=[style.SENSITIVITY_COLORS[d] for d in drivers],
                ),
                legend=alt.Legend(orient="bottom", title=None),
            ),
            tooltip=[
                alt.Tooltip("Driver:N"),
                alt.Tooltip("Change (%):Q", format="+.0f"),
                alt.Tooltip("NPV change (%):Q", format="+.1f"),
            ],
        )
    )
    st.altair_chart(chart, width="stretch")


def render_variance_chart(df: pd.DataFrame, metric: str = "revenue") -> None:
    """Forecast vs. actual bars for matched periods, with the variance line."""
    label = "revenue" if metric == "revenue" else "costs"
    variance_col = "Revenue variance" if metric == "revenue" else "Cost variance"
    matched = df[df["Status"] == "matched"]
    if matched.empty:
        st.info("No actuals fall inside the forecast horizon.")
        return

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=matched["Period"],
            y=matched[f"Forecast {label}"],
            name=f"Forecast {label}",
            marker_color=style.COLOR_REVENUE,
            opacity=0.5,
        )
    )
    fig.add_trace(
        go.Bar(
            x=matched["Period"],
            y=matched[f"Actual {label}"],
            name=f"Actual {label}",
            marker_color=style.COLOR_PROFIT,
        )
    )
    fig.add_trace(
        go.Scatter(
            x=matched["Period"],
            y=matched[variance_col],
            name="Variance",
            mode="lines+markers",
            line=dict(color=style.COLOR_MARKER, width=style.LINE_WIDTH_SECONDARY),
        )
    )
    fig.update_layout(
        barmode="group",
        title=f"Actual vs. forecast {label}",
        xaxis=dict(title=settings.PERIOD_LABEL),
        yaxis=dict(title=settings.CURRENCY_SYMBOL),
        hovermode="x unified",
        legend=dict(orientation="h", y=-0.2, x=0.5, xanchor="center"),
        margin=dict(l=40, r=20, t=60, b=60),
    )
    st.plotly_chart(fig, width="stretch")
