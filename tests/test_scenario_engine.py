from dataclasses import replace

import pytest

from src.config import settings
from src.core.models import (
    AttendanceDriver,
    CostCategory,
    FinancialModel,
    GrowthModel,
    PerCustomerSpend,
    RevenueStream,
)
from src.core.scenario_config import build_default_scenarios, build_sensitivity_steps
from src.core.scenario_engine import (
    analyze_scenario,
    run_saved_scenario,
    run_scenario,
    scenario_summary_dataframe,
    sensitivity_to_dataframe,
)
from src.core.scenario_models import Scenario, ScenarioParameterDeltas


@pytest.fixture()
def model() -> FinancialModel:
    return FinancialModel(
        id="gig",
        project_id="p1",
        name="Gig night",
        revenue_streams=(RevenueStream(name="Sponsorship", value=500.0),),
        cost_categories=(
            CostCategory(name="Venue", value=3000.0),
            CostCategory(name="Bar stock", value=800.0, is_cogs=True),
        ),
        growth_model=GrowthModel(type="linear", rate=0.02),
        per_customer=PerCustomerSpend(
            ticket_price=12.0,
            fb_spend=6.0,
            attendance=AttendanceDriver(
                base=200.0, growth=GrowthModel(type="exponential", rate=0.03)
            ),
        ),
        model_type=settings.MODEL_TYPE_RECURRING_EVENT,
    )


def test_default_scenarios_use_settings():
    presets = build_default_scenarios()

    assert presets["base"] == ScenarioParameterDeltas()
    assert presets["best"].revenue_percent == settings.SCENARIO_BEST_REVENUE_PCT
    assert presets["best"].cost_percent == settings.SCENARIO_BEST_COST_PCT
    assert presets["worst"].revenue_percent == settings.SCENARIO_WORST_REVENUE_PCT
    assert presets["worst"].cost_percent == settings.SCENARIO_WORST_COST_PCT


def test_sensitivity_steps_are_symmetric_and_include_zero():
    steps = build_sensitivity_steps()

    assert steps == (-20.0, -15.0, -10.0, -5.0, 0.0, 5.0, 10.0, 15.0, 20.0)
    assert build_sensitivity_steps(10, 10) == (-10.0, 0.0, 10.0)
    with pytest.raises(ValueError):
        build_sensitivity_steps(10, 0)


def test_run_scenario_with_neutral_deltas_matches_baseline(model: FinancialModel):
    base = run_scenario(model, ScenarioParameterDeltas(), 6, 0.1, name="Base")
    bumped = run_scenario(
        model, ScenarioParameterDeltas(cogs_multiplier=1.5), 6, 0.1, name="COGS"
    )

    assert base.model == model
    assert len(base.series) == 6
    assert bumped.metrics.total_costs > base.metrics.total_costs
    assert bumped.metrics.total_revenue == pytest.approx(base.metrics.total_revenue)


def test_scenario_ordering(model: FinancialModel):
    analysis = analyze_scenario(model, 12, 0.05)

    assert analysis.worst_case.total_profit <= analysis.base_case.total_profit
    assert analysis.base_case.total_profit <= analysis.best_case.total_profit
    assert analysis.worst_case.npv <= analysis.base_case.npv <= analysis.best_case.npv


def test_sensitivity_passes_through_zero(model: FinancialModel):
    analysis = analyze_scenario(model, 12, 0.05)

    for curve in (analysis.sensitivity.revenue_impact, analysis.sensitivity.cost_impact):
        assert [p.change for p in curve] == list(build_sensitivity_steps())
        zero = next(p for p in curve if p.change == 0)
        assert zero.npv_change == 0.0


def test_sensitivity_direction(model: FinancialModel):
    analysis = analyze_scenario(model, 12, 0.05)
    assert analysis.base_case.npv > 0

    revenue_up = analysis.sensitivity.revenue_impact[-1]
    cost_up = analysis.sensitivity.cost_impact[-1]
    assert revenue_up.change == 20.0
    assert revenue_up.npv_change > 0
    assert cost_up.npv_change < 0


def test_sensitivity_zero_when_base_npv_is_zero(model: FinancialModel):
    empty = replace(
        model, revenue_streams=(), cost_categories=(), per_customer=None
    )
    analysis = analyze_scenario(empty, 4, 0.1, sensitivity_steps=(-10.0, 0.0, 10.0))

    assert analysis.base_case.npv == 0.0
    assert all(p.npv_change == 0.0 for p in analysis.sensitivity.revenue_impact)
    assert analysis.base_case.irr is None


def test_custom_presets(model: FinancialModel):
    presets = {
        "base": ScenarioParameterDeltas(),
        "best": ScenarioParameterDeltas(revenue_percent=50.0),
        "worst": ScenarioParameterDeltas(revenue_percent=-50.0),
    }
    analysis = analyze_scenario(model, 6, 0.1, presets=presets, sensitivity_steps=())

    assert analysis.best_case.total_revenue == pytest.approx(
        analysis.base_case.total_revenue * 1.5
    )
    assert analysis.sensitivity.revenue_impact == ()


def test_partial_presets_fall_back_to_defaults(model: FinancialModel):
    presets = {"best": ScenarioParameterDeltas(revenue_percent=50.0)}
    analysis = analyze_scenario(model, 6, 0.1, presets=presets, sensitivity_steps=())
    defaults = analyze_scenario(model, 6, 0.1, sensitivity_steps=())

    assert analysis.best_case.total_revenue == pytest.approx(
        analysis.base_case.total_revenue * 1.5
    )
    assert analysis.base_case == defaults.base_case
    assert analysis.worst_case == defaults.worst_case


def test_run_saved_scenario(model: FinancialModel):
    scenario = Scenario(
        id="s1",
        project_id="p1",
        base_model_id="gig",
        name="Pricier bar",
        parameter_deltas=ScenarioParameterDeltas(cogs_multiplier=1.1),
    )
    result = run_saved_scenario(model, scenario, 6, 0.1)
    assert result.name == "Pricier bar"

    with pytest.raises(ValueError):
        run_saved_scenario(replace(model, id="other"), scenario, 6, 0.1)


def test_analysis_frames(model: FinancialModel):
    analysis = analyze_scenario(model, 6, 0.1)

    summary = scenario_summary_dataframe(analysis)
    assert list(summary["Scenario"]) == ["Worst case", "Base case", "Best case"]

    sens = sensitivity_to_dataframe(analysis)
    assert set(sens["Driver"]) == {"Revenue", "Costs"}
    assert len(sens) == 2 * len(build_sensitivity_steps())

    record = analysis.to_record()
    assert record["base_case"]["npv"] == pytest.approx(analysis.base_case.npv)
