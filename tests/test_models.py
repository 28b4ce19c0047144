from datetime import datetime

import pytest

from src.config import settings
from src.core.models import (
    CostCategory,
    FinancialModel,
    ForecastPeriodData,
    GrowthModel,
    PerCustomerSpend,
    RevenueStream,
)
from src.core.scenario_models import Scenario, ScenarioParameterDeltas, SpendDelta


@pytest.fixture()
def event_record() -> dict:
    return {
        "id": "42",
        "projectId": "7",
        "name": "Friday club",
        "version": 3,
        "metadata": {"type": "recurring-event"},
        "revenueStreams": [
            {"name": "Sponsorship", "value": 500, "type": "recurring"},
        ],
        "costCategories": [
            {"name": "Bar stock", "value": 800, "isCOGS": True},
            {"name": "Ads", "value": 200, "isMarketing": True, "channel": "social"},
        ],
        "growthModel": {"type": "linear", "rate": 0.02},
        "perCustomer": {
            "ticketPrice": 12,
            "fbSpend": 8,
            "baseAttendance": 300,
            "attendanceGrowthRate": 0.05,
            "spendGrowth": {"fbSpend": {"type": "exponential", "rate": 0.01}},
        },
    }


def test_financial_model_from_record(event_record: dict):
    model = FinancialModel.from_record(event_record)

    assert model.id == "42"
    assert model.project_id == "7"
    assert model.version == 3
    assert model.model_type == settings.MODEL_TYPE_RECURRING_EVENT
    assert model.growth_model == GrowthModel(type="linear", rate=0.02)
    assert model.revenue_streams == (RevenueStream(name="Sponsorship", value=500.0),)

    bar, ads = model.cost_categories
    assert bar.is_cogs and not bar.is_marketing
    assert ads.is_marketing and ads.channel_key == "social"

    pc = model.per_customer
    assert pc.ticket_price == 12.0
    assert pc.fb_spend == 8.0
    assert pc.attendance.base == 300.0
    assert pc.attendance.growth.rate == pytest.approx(0.05)
    assert pc.spend_growth["fb_spend"].rate == pytest.approx(0.01)


def test_per_customer_ignored_for_standard_models(event_record: dict):
    event_record["metadata"] = {}
    model = FinancialModel.from_record(event_record)
    assert model.model_type == settings.MODEL_TYPE_STANDARD
    assert model.per_customer is None


def test_duplicate_names_rejected():
    with pytest.raises(ValueError):
        FinancialModel(
            id="m",
            project_id="p",
            name="dupes",
            cost_categories=(
                CostCategory(name="Staff", value=1.0),
                CostCategory(name="Staff", value=2.0),
            ),
        )


def test_unknown_spend_growth_field_rejected():
    with pytest.raises(ValueError):
        PerCustomerSpend(spend_growth={"parking": GrowthModel()})


def test_channel_key_defaults_to_name():
    assert CostCategory(name="Radio", value=1.0).channel_key == "Radio"


def test_scenario_from_record():
    scenario = Scenario.from_record(
        {
            "id": "s1",
            "projectId": "7",
            "baseModelId": "42",
            "name": "Price rise",
            "updatedAt": "2024-05-01T12:00:00",
            "parameterDeltas": {
                "marketingSpendByChannel": {"social": 25},
                "ticketPriceDelta": 2,
                "ticketPriceDeltaType": "absolute",
                "fbSpendDelta": {"type": "percent", "value": 10},
                "cogsMultiplier": 1.2,
            },
        }
    )

    assert scenario.base_model_id == "42"
    assert scenario.updated_at == datetime(2024, 5, 1, 12, 0)
    deltas = scenario.parameter_deltas
    assert deltas.marketing_spend_by_channel == {"social": 25.0}
    assert deltas.ticket_price_delta == SpendDelta(type="absolute", value=2.0)
    assert deltas.fb_spend_delta == SpendDelta(type="percent", value=10.0)
    assert deltas.merch_spend_delta is None
    assert deltas.cogs_multiplier == pytest.approx(1.2)


def test_empty_deltas_record_is_neutral():
    assert ScenarioParameterDeltas.from_record(None) == ScenarioParameterDeltas()
    assert ScenarioParameterDeltas.from_record({}).cogs_multiplier == 1.0


def test_ticket_price_delta_wins_over_pricing_percent():
    deltas = ScenarioParameterDeltas(
        pricing_percent=10.0,
        ticket_price_delta=SpendDelta(type="absolute", value=1.0),
    )
    assert deltas.effective_ticket_price_delta == SpendDelta("absolute", 1.0)
    assert ScenarioParameterDeltas(
        pricing_percent=10.0
    ).effective_ticket_price_delta == SpendDelta("percent", 10.0)


def test_invalid_delta_inputs():
    with pytest.raises(ValueError):
        SpendDelta(type="ratio", value=1.0)
    with pytest.raises(ValueError):
        ScenarioParameterDeltas(cogs_multiplier=-0.5)


def test_forecast_period_to_record():
    row = ForecastPeriodData(
        period=1,
        revenue_breakdown={"Sales": 10.0},
        cost_breakdown={},
        revenue=10.0,
        costs=0.0,
        profit=10.0,
        cumulative_revenue=10.0,
        cumulative_costs=0.0,
        cumulative_profit=10.0,
    )
    record = row.to_record()
    assert record["revenue_breakdown"] == {"Sales": 10.0}
    assert record["attendance"] is None
