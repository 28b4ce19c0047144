# scripts/smoke_scenarios.py
from __future__ import annotations

import logging

from src.config import settings
from src.core.forecast_engine import generate_forecast
from src.core.investment_metrics import compute_metrics
from src.core.models import (
    AttendanceDriver,
    CostCategory,
    FinancialModel,
    GrowthModel,
    PerCustomerSpend,
    RevenueStream,
)
from src.core.portfolio import analyze_portfolio
from src.core.scenario_engine import analyze_scenario, run_scenario
from src.core.scenario_models import ScenarioParameterDeltas, SpendDelta
from src.core.variance import (
    ActualsRecord,
    accuracy_grade,
    analyze_variance_trend,
    compute_mape,
    reconcile_actuals,
)


def build_demo_model(model_id: str = "demo-weekly-gig") -> FinancialModel:
    """
    Small recurring-event model for wiring checks.

    The numbers are illustrative only; they just need to produce a forecast
    that crosses break-even inside the horizon.
    """
    return FinancialModel(
        id=model_id,
        project_id="demo",
        name="Weekly gig night",
        revenue_streams=(RevenueStream(name="Sponsorship", value=1_500.0),),
        cost_categories=(
            CostCategory(name="Venue", value=9_000.0),
            CostCategory(name="Bar stock", value=2_000.0, is_cogs=True),
            CostCategory(
                name="Social ads", value=600.0, is_marketing=True, channel="social"
            ),
        ),
        growth_model=GrowthModel(type="linear", rate=0.01),
        per_customer=PerCustomerSpend(
            ticket_price=15.0,
            fb_spend=9.0,
            merchandise_spend=2.5,
            attendance=AttendanceDriver(
                base=400.0, growth=GrowthModel(type="exponential", rate=0.03)
            ),
        ),
        model_type=settings.MODEL_TYPE_RECURRING_EVENT,
    )


def _print_metrics(label: str, metrics) -> None:
    irr = "N/A" if metrics.irr is None else f"{metrics.irr:.2%}"
    print(
        f"{label:<12} profit {metrics.total_profit:>12,.0f} | "
        f"NPV {metrics.npv:>12,.0f} | IRR {irr:>8} | "
        f"break-even {metrics.break_even_period_index}"
    )


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    periods = settings.DEFAULT_FORECAST_PERIODS
    discount_rate = settings.DEFAULT_DISCOUNT_RATE
    model = build_demo_model()

    series = generate_forecast(model, periods)
    metrics = compute_metrics(series, discount_rate)

    print("=== Forecast engine smoke test ===")
    print(f"Periods: {len(series)}")
    print(f"Period 1 attendance: {series[0].attendance:,.0f}")
    print(f"Total revenue: {metrics.total_revenue:,.0f}")
    print(f"Total costs: {metrics.total_costs:,.0f}")
    print(f"Profit margin: {metrics.profit_margin:.1f}%")
    print(f"Payback (periods): {metrics.payback_period}")

    print("\n=== Custom scenario ===")
    custom = run_scenario(
        model,
        ScenarioParameterDeltas(
            ticket_price_delta=SpendDelta(type="absolute", value=2.0),
            marketing_spend_by_channel={"social": 50.0},
            attendance_growth_percent=1.0,
        ),
        periods,
        discount_rate,
        name="Price rise + ads",
    )
    _print_metrics(custom.name, custom.metrics)

    print("\n=== Preset scenarios ===")
    analysis = analyze_scenario(model, periods, discount_rate)
    _print_metrics("Worst", analysis.worst_case)
    _print_metrics("Base", analysis.base_case)
    _print_metrics("Best", analysis.best_case)

    print("\n=== Sensitivity (NPV change %) ===")
    for rev, cost in zip(
        analysis.sensitivity.revenue_impact, analysis.sensitivity.cost_impact
    ):
        print(
            f"{rev.change:+6.0f}%  revenue {rev.npv_change:+8.1f}  "
            f"cost {cost.npv_change:+8.1f}"
        )

    print("\n=== Variance ===")
    actuals = [
        ActualsRecord(period=row.period, revenue=row.revenue * 0.95, costs=row.costs)
        for row in series[:4]
    ]
    actuals.append(ActualsRecord(period=periods + 1, revenue=1.0, costs=1.0))
    records = reconcile_actuals(series, actuals)
    for r in records:
        print(f"Period {r.period:>3} [{r.status}] revenue variance {r.revenue_variance}")
    mape = compute_mape(records)
    print(f"Revenue MAPE: {mape:.2f}% (grade {accuracy_grade(mape)})")
    trend = analyze_variance_trend(records)
    print(f"Trend: {trend.direction}, volatility {trend.volatility:.2f}")

    print("\n=== Portfolio ===")
    portfolio = analyze_portfolio(
        [model, build_demo_model("demo-second-night")], periods, discount_rate
    )
    for model_id, result in portfolio.items():
        _print_metrics(model_id[:12], result.base_case)


if __name__ == "__main__":
    main()
