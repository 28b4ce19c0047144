from dataclasses import replace

import pytest

from src.core.errors import InvalidGrowthModel
from src.core.models import CostCategory, FinancialModel, GrowthModel, RevenueStream
from src.core.portfolio import analyze_portfolio
from src.core.scenario_engine import analyze_scenario


@pytest.fixture()
def models() -> list[FinancialModel]:
    base = FinancialModel(
        id="a",
        project_id="p",
        name="A",
        revenue_streams=(RevenueStream(name="Sales", value=1000.0),),
        cost_categories=(CostCategory(name="Staff", value=700.0),),
        growth_model=GrowthModel(type="exponential", rate=0.02),
    )
    other = replace(
        base,
        id="b",
        name="B",
        revenue_streams=(RevenueStream(name="Sales", value=2000.0),),
    )
    return [base, other]


def test_portfolio_matches_individual_runs(models):
    results = analyze_portfolio(models, 6, 0.1, max_workers=2)

    assert set(results) == {"a", "b"}
    for model in models:
        expected = analyze_scenario(model, 6, 0.1)
        assert results[model.id].base_case.npv == pytest.approx(expected.base_case.npv)
        assert results[model.id].best_case == expected.best_case


def test_empty_portfolio():
    assert analyze_portfolio([], 6, 0.1) == {}


def test_failing_model_propagates(models):
    broken = replace(models[0], id="broken", growth_model=GrowthModel(type="seasonal"))
    with pytest.raises(InvalidGrowthModel):
        analyze_portfolio([models[1], broken], 6, 0.1)
