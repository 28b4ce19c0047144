from dataclasses import replace

import pytest

from src.config import settings
from src.core.forecast_engine import generate_forecast
from src.core.models import (
    AttendanceDriver,
    CostCategory,
    FinancialModel,
    GrowthModel,
    PerCustomerSpend,
    RevenueStream,
)
from src.core.scenario_deltas import apply_scenario_deltas
from src.core.scenario_models import ScenarioParameterDeltas, SpendDelta


@pytest.fixture()
def baseline() -> FinancialModel:
    return FinancialModel(
        id="m1",
        project_id="p1",
        name="Baseline",
        revenue_streams=(RevenueStream(name="Sponsorship", value=1000.0),),
        cost_categories=(
            CostCategory(name="Bar stock", value=500.0, is_cogs=True),
            CostCategory(name="Staff", value=2000.0),
            CostCategory(
                name="Social ads", value=400.0, is_marketing=True, channel="social"
            ),
            CostCategory(name="Radio", value=100.0, is_marketing=True),
        ),
        growth_model=GrowthModel(type="exponential", rate=0.05),
        per_customer=PerCustomerSpend(
            ticket_price=20.0,
            fb_spend=10.0,
            merchandise_spend=5.0,
            attendance=AttendanceDriver(
                base=200.0, growth=GrowthModel(type="exponential", rate=0.02)
            ),
        ),
        model_type=settings.MODEL_TYPE_RECURRING_EVENT,
    )


def _cost(model: FinancialModel, name: str) -> float:
    return next(c.value for c in model.cost_categories if c.name == name)


def test_neutral_deltas_are_identity(baseline: FinancialModel):
    result = apply_scenario_deltas(baseline, ScenarioParameterDeltas())

    assert result == baseline
    assert generate_forecast(result, 6) == generate_forecast(baseline, 6)


def test_baseline_is_not_mutated(baseline: FinancialModel):
    snapshot = replace(baseline)
    apply_scenario_deltas(
        baseline,
        ScenarioParameterDeltas(cogs_multiplier=2.0, revenue_percent=50.0),
    )
    assert baseline == snapshot


def test_cogs_multiplier_scales_only_cogs(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline, ScenarioParameterDeltas(cogs_multiplier=1.2)
    )
    assert _cost(result, "Bar stock") == pytest.approx(600.0)
    assert _cost(result, "Staff") == pytest.approx(2000.0)


def test_marketing_percent_scales_marketing_categories(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline, ScenarioParameterDeltas(marketing_spend_percent=50.0)
    )
    assert _cost(result, "Social ads") == pytest.approx(600.0)
    assert _cost(result, "Radio") == pytest.approx(150.0)
    assert _cost(result, "Staff") == pytest.approx(2000.0)


def test_channel_percent_overrides_blanket_marketing(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline,
        ScenarioParameterDeltas(
            marketing_spend_percent=50.0,
            marketing_spend_by_channel={"social": -25.0},
        ),
    )
    assert _cost(result, "Social ads") == pytest.approx(300.0)
    assert _cost(result, "Radio") == pytest.approx(150.0)


def test_channel_matches_category_name_when_no_channel(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline, ScenarioParameterDeltas(marketing_spend_by_channel={"Radio": 100.0})
    )
    assert _cost(result, "Radio") == pytest.approx(200.0)


def test_ticket_price_deltas(baseline: FinancialModel):
    pct = apply_scenario_deltas(baseline, ScenarioParameterDeltas(pricing_percent=10.0))
    assert pct.per_customer.ticket_price == pytest.approx(22.0)

    absolute = apply_scenario_deltas(
        baseline,
        ScenarioParameterDeltas(
            pricing_percent=10.0,
            ticket_price_delta=SpendDelta(type="absolute", value=5.0),
        ),
    )
    assert absolute.per_customer.ticket_price == pytest.approx(25.0)


def test_fb_and_merch_deltas(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline,
        ScenarioParameterDeltas(
            fb_spend_delta=SpendDelta(type="percent", value=-20.0),
            merch_spend_delta=SpendDelta(type="absolute", value=1.5),
        ),
    )
    assert result.per_customer.fb_spend == pytest.approx(8.0)
    assert result.per_customer.merchandise_spend == pytest.approx(6.5)
    assert result.per_customer.ticket_price == pytest.approx(20.0)


def test_attendance_growth_is_added_in_rate_space(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline, ScenarioParameterDeltas(attendance_growth_percent=3.0)
    )
    assert result.per_customer.attendance.growth.rate == pytest.approx(0.05)
    assert result.per_customer.attendance.base == pytest.approx(200.0)


def test_revenue_and_cost_percent(baseline: FinancialModel):
    result = apply_scenario_deltas(
        baseline, ScenarioParameterDeltas(revenue_percent=20.0, cost_percent=-10.0)
    )
    assert result.revenue_streams[0].value == pytest.approx(1200.0)
    assert result.per_customer.ticket_price == pytest.approx(24.0)
    assert _cost(result, "Staff") == pytest.approx(1800.0)

    base_row = generate_forecast(baseline, 1)[0]
    row = generate_forecast(result, 1)[0]
    assert row.revenue == pytest.approx(base_row.revenue * 1.2)
    assert row.costs == pytest.approx(base_row.costs * 0.9)


def test_per_customer_deltas_ignored_without_per_customer(baseline: FinancialModel):
    standard = replace(baseline, per_customer=None)
    result = apply_scenario_deltas(
        standard,
        ScenarioParameterDeltas(
            ticket_price_delta=SpendDelta(type="absolute", value=5.0),
            attendance_growth_percent=10.0,
        ),
    )
    assert result == standard
