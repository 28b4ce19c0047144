# src/core/forecast_engine.py
"""
Forecast time series generator

Turns a FinancialModel into one ForecastPeriodData row per period:

- Recurring-event models with per-customer spend get attendance x spend
  revenue under fixed stream names (Ticket Sales, F&B Sales, ...). Attendance
  and each spend field follow their own growth curves.
- Every other revenue stream and every cost category is projected from its
  base value with the model's top-level growth curve.
- Cumulative revenue / costs / profit include the current period.

The generator is a pure function of its inputs. Negative projected values
are kept as-is.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pandas as pd

from src.config import settings
from src.core.growth import project_value, validate_growth_model
from src.core.models import FinancialModel, ForecastPeriodData, PerCustomerSpend

logger = logging.getLogger(__name__)


def _per_customer_revenue(
    per_customer: PerCustomerSpend, period: int
) -> tuple[float, Dict[str, float]]:
    attendance = project_value(
        per_customer.attendance.base, period, per_customer.attendance.growth
    )

    breakdown: Dict[str, float] = {}
    for field_name, stream_name in settings.PER_CUSTOMER_STREAM_NAMES.items():
        spend = per_customer.spend_for(field_name)
        schedule = per_customer.spend_growth.get(field_name)
        if schedule is not None:
            spend = project_value(spend, period, schedule)
        breakdown[stream_name] = attendance * spend

    return attendance, breakdown


def generate_forecast(model: FinancialModel, periods: int) -> List[ForecastPeriodData]:
    """
    Build the period-by-period forecast for `model` over `periods` periods.

    periods == 0 returns an empty list. Raises InvalidGrowthModel for a
    malformed growth spec and ValueError for a negative horizon.
    """
    if periods < 0:
        raise ValueError("periods must be >= 0")

    growth = model.growth_model
    validate_growth_model(growth)
    per_customer = model.per_customer
    if per_customer is not None:
        validate_growth_model(per_customer.attendance.growth)
        for schedule in per_customer.spend_growth.values():
            validate_growth_model(schedule)

    covered_streams = (
        set(settings.PER_CUSTOMER_STREAM_NAMES.values())
        if per_customer is not None
        else set()
    )

    rows: List[ForecastPeriodData] = []
    cumulative_revenue = 0.0
    cumulative_costs = 0.0
    cumulative_profit = 0.0

    for period in range(1, periods + 1):
        attendance: Optional[float] = None
        revenue_breakdown: Dict[str, float] = {}

        if per_customer is not None:
            attendance, revenue_breakdown = _per_customer_revenue(per_customer, period)

        for stream in model.revenue_streams:
            if stream.name in covered_streams:
                continue
            revenue_breakdown[stream.name] = project_value(stream.value, period, growth)

        cost_breakdown = {
            category.name: project_value(category.value, period, growth)
            for category in model.cost_categories
        }

        revenue = sum(revenue_breakdown.values())
        costs = sum(cost_breakdown.values())
        profit = revenue - costs

        cumulative_revenue += revenue
        cumulative_costs += costs
        cumulative_profit += profit

        rows.append(
            ForecastPeriodData(
                period=period,
                attendance=attendance,
                revenue_breakdown=revenue_breakdown,
                cost_breakdown=cost_breakdown,
                revenue=revenue,
                costs=costs,
                profit=profit,
                cumulative_revenue=cumulative_revenue,
                cumulative_costs=cumulative_costs,
                cumulative_profit=cumulative_profit,
            )
        )

    logger.debug(
        "Forecast for model %s (v%s): %d periods, cumulative profit %.2f",
        model.id,
        model.version,
        periods,
        cumulative_profit,
    )
    return rows


def forecast_to_dataframe(rows: List[ForecastPeriodData]) -> pd.DataFrame:
    """One row per period with totals, cumulatives and every breakdown line."""
    if not rows:
        return pd.DataFrame()

    records = []
    for r in rows:
        record = {
            "Period": r.period,
            "Attendance": r.attendance,
            "Revenue": r.revenue,
            "Costs": r.costs,
            "Profit": r.profit,
            "Cumulative revenue": r.cumulative_revenue,
            "Cumulative costs": r.cumulative_costs,
            "Cumulative profit": r.cumulative_profit,
        }
        record.update({f"Revenue: {k}": v for k, v in r.revenue_breakdown.items()})
        record.update({f"Cost: {k}": v for k, v in r.cost_breakdown.items()})
        records.append(record)

    df = pd.DataFrame.from_records(records)
    if df["Attendance"].isna().all():
        df = df.drop(columns=["Attendance"])
    return df
