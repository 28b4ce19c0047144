# src/ui/model_inputs.py
from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
import streamlit as st

from src.config import settings
from src.config.env import APP_ENV, ENV_DEV
from src.core.models import (
    AttendanceDriver,
    CostCategory,
    FinancialModel,
    GrowthModel,
    PerCustomerSpend,
    RevenueStream,
)

DASHBOARD_MODEL_ID = "dashboard-model"
DASHBOARD_PROJECT_ID = "dashboard"

_DEV_REVENUE_STREAMS = pd.DataFrame(
    [
        {"name": "Sponsorship", "value": 2500.0},
        {"name": "Venue hire", "value": 1200.0},
    ]
)
_COST_COLUMNS = ["name", "value", "is_cogs", "is_marketing", "channel"]
_DEV_COST_CATEGORIES = pd.DataFrame(
    [
        ("Staff", 6000.0, False, False, ""),
        ("F&B stock", 2500.0, True, False, ""),
        ("Social ads", 800.0, False, True, "social"),
        ("Print", 300.0, False, True, "print"),
    ],
    columns=_COST_COLUMNS,
)


@dataclass
class ModelInputs:
    """What the sidebar produces: a model plus the run parameters."""

    model: FinancialModel
    periods: int
    discount_rate: float


def _empty_frame(columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame(columns=columns)


def _cell_float(value) -> float:
    return 0.0 if pd.isna(value) else float(value)


def _cell_bool(value) -> bool:
    return False if pd.isna(value) else bool(value)


def _render_growth_inputs(key: str, label: str) -> GrowthModel:
    growth_type = st.selectbox(
        f"{label} growth type",
        options=["exponential", "linear", "seasonal"],
        key=f"{key}_type",
    )
    rate_pct = st.number_input(
        f"{label} growth per period (%)",
        min_value=-99.0,
        max_value=1000.0,
        value=0.0,
        step=0.5,
        key=f"{key}_rate",
    )

    factors: tuple[float, ...] = ()
    if growth_type == "seasonal":
        raw = st.text_input(
            "Seasonal factors (comma separated)",
            value="1.0, 1.2, 0.8, 1.0",
            key=f"{key}_factors",
            help="Applied cyclically from period 2 onwards.",
        )
        try:
            factors = tuple(float(f) for f in raw.split(",") if f.strip())
        except ValueError:
            st.error("Seasonal factors must be numbers.")
            factors = ()

    return GrowthModel(type=growth_type, rate=rate_pct / 100.0, seasonal_factors=factors)


def _rows_to_streams(df: pd.DataFrame) -> tuple[RevenueStream, ...]:
    df = df.dropna(subset=["name"])
    return tuple(
        RevenueStream(name=str(row["name"]).strip(), value=_cell_float(row["value"]))
        for _, row in df.iterrows()
        if str(row["name"]).strip()
    )


def _rows_to_costs(df: pd.DataFrame) -> tuple[CostCategory, ...]:
    df = df.dropna(subset=["name"])
    categories = []
    for _, row in df.iterrows():
        name = str(row["name"]).strip()
        if not name:
            continue
        channel = row.get("channel")
        if not isinstance(channel, str) or not channel.strip():
            channel = None
        categories.append(
            CostCategory(
                name=name,
                value=_cell_float(row["value"]),
                is_cogs=_cell_bool(row.get("is_cogs")),
                is_marketing=_cell_bool(row.get("is_marketing")),
                channel=channel.strip() if channel else None,
            )
        )
    return tuple(categories)


def _render_per_customer_inputs(is_dev: bool) -> PerCustomerSpend:
    st.markdown("**Attendance & per-customer spend**")
    base_attendance = st.number_input(
        "Attendance in period 1",
        min_value=0.0,
        value=500.0 if is_dev else 0.0,
        step=10.0,
    )
    attendance_growth = _render_growth_inputs("attendance_growth", "Attendance")

    c1, c2 = st.columns(2)
    with c1:
        ticket_price = st.number_input(
            "Ticket price", min_value=0.0, value=25.0 if is_dev else 0.0
        )
        fb_spend = st.number_input(
            "F&B spend / head", min_value=0.0, value=12.0 if is_dev else 0.0
        )
        merchandise_spend = st.number_input(
            "Merchandise / head", min_value=0.0, value=4.0 if is_dev else 0.0
        )
    with c2:
        online_spend = st.number_input("Online / head", min_value=0.0, value=0.0)
        misc_spend = st.number_input("Misc / head", min_value=0.0, value=0.0)

    return PerCustomerSpend(
        ticket_price=ticket_price,
        fb_spend=fb_spend,
        merchandise_spend=merchandise_spend,
        online_spend=online_spend,
        misc_spend=misc_spend,
        attendance=AttendanceDriver(base=base_attendance, growth=attendance_growth),
    )


def render_model_inputs() -> ModelInputs:
    """Render the sidebar assumption inputs and build a FinancialModel.

    Returns
    -------
    ModelInputs
        The model snapshot, forecast horizon and per-period discount rate.
    """
    is_dev = APP_ENV == ENV_DEV
    sidebar = st.sidebar

    with sidebar:
        st.header("Assumptions")
        model_name = st.text_input("Model name", value="Weekly event")
        model_type = st.radio(
            "Model type",
            options=[settings.MODEL_TYPE_RECURRING_EVENT, settings.MODEL_TYPE_STANDARD],
            horizontal=True,
        )

        periods = int(
            st.number_input(
                "Forecast periods",
                min_value=1,
                max_value=settings.MAX_FORECAST_PERIODS,
                value=settings.DEFAULT_FORECAST_PERIODS,
                step=1,
            )
        )
        discount_rate_pct = st.number_input(
            "Discount rate per period (%)",
            min_value=0.0,
            max_value=100.0,
            value=settings.DEFAULT_DISCOUNT_RATE * 100.0,
            step=0.5,
        )

        with st.expander("Growth", expanded=False):
            growth = _render_growth_inputs("model_growth", "Revenue & cost")

        per_customer = None
        if model_type == settings.MODEL_TYPE_RECURRING_EVENT:
            with st.expander("Per-customer revenue", expanded=True):
                per_customer = _render_per_customer_inputs(is_dev)

        with st.expander("Other revenue streams", expanded=False):
            streams_df = st.data_editor(
                _DEV_REVENUE_STREAMS if is_dev else _empty_frame(["name", "value"]),
                num_rows="dynamic",
                key="revenue_streams_editor",
                hide_index=True,
            )

        with st.expander("Cost categories", expanded=True):
            costs_df = st.data_editor(
                _DEV_COST_CATEGORIES if is_dev else _empty_frame(_COST_COLUMNS),
                num_rows="dynamic",
                key="cost_categories_editor",
                hide_index=True,
                column_config={
                    "is_cogs": st.column_config.CheckboxColumn("COGS"),
                    "is_marketing": st.column_config.CheckboxColumn("Marketing"),
                },
            )

    model = FinancialModel(
        id=DASHBOARD_MODEL_ID,
        project_id=DASHBOARD_PROJECT_ID,
        name=model_name,
        revenue_streams=_rows_to_streams(streams_df),
        cost_categories=_rows_to_costs(costs_df),
        growth_model=growth,
        per_customer=per_customer,
        model_type=model_type,
    )

    return ModelInputs(
        model=model,
        periods=periods,
        discount_rate=discount_rate_pct / 100.0,
    )
