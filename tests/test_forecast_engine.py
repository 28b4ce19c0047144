from dataclasses import replace

import pytest

from src.config import settings
from src.core.errors import InvalidGrowthModel
from src.core.forecast_engine import forecast_to_dataframe, generate_forecast
from src.core.models import (
    AttendanceDriver,
    CostCategory,
    FinancialModel,
    GrowthModel,
    PerCustomerSpend,
    RevenueStream,
)


@pytest.fixture()
def simple_model() -> FinancialModel:
    return FinancialModel(
        id="m1",
        project_id="p1",
        name="Simple",
        revenue_streams=(RevenueStream(name="Sales", value=1000.0),),
        growth_model=GrowthModel(type="exponential", rate=0.1),
    )


@pytest.fixture()
def event_model() -> FinancialModel:
    return FinancialModel(
        id="gig",
        project_id="p1",
        name="Gig night",
        revenue_streams=(
            RevenueStream(name="Ticket Sales", value=99_999.0),
            RevenueStream(name="Sponsorship", value=200.0),
        ),
        cost_categories=(CostCategory(name="Venue", value=1000.0),),
        per_customer=PerCustomerSpend(
            ticket_price=10.0,
            fb_spend=5.0,
            attendance=AttendanceDriver(
                base=100.0, growth=GrowthModel(type="linear", rate=0.5)
            ),
        ),
        model_type=settings.MODEL_TYPE_RECURRING_EVENT,
    )


def test_exponential_revenue_and_cumulative(simple_model: FinancialModel):
    rows = generate_forecast(simple_model, 3)

    assert [r.period for r in rows] == [1, 2, 3]
    assert [r.revenue for r in rows] == pytest.approx([1000.0, 1100.0, 1210.0])
    assert rows[-1].cumulative_revenue == pytest.approx(3310.0)
    assert all(r.costs == 0 for r in rows)
    assert rows[-1].cumulative_profit == pytest.approx(3310.0)


def test_totals_match_breakdowns(event_model: FinancialModel):
    for row in generate_forecast(event_model, 6):
        assert row.revenue == pytest.approx(sum(row.revenue_breakdown.values()))
        assert row.costs == pytest.approx(sum(row.cost_breakdown.values()))
        assert row.profit == pytest.approx(row.revenue - row.costs)


def test_cumulatives_are_running_sums(event_model: FinancialModel):
    rows = generate_forecast(event_model, 5)
    running = 0.0
    for row in rows:
        running += row.profit
        assert row.cumulative_profit == pytest.approx(running)


def test_per_customer_revenue(event_model: FinancialModel):
    rows = generate_forecast(event_model, 2)

    first, second = rows
    assert first.attendance == pytest.approx(100.0)
    assert second.attendance == pytest.approx(150.0)
    assert first.revenue_breakdown["Ticket Sales"] == pytest.approx(1000.0)
    assert first.revenue_breakdown["F&B Sales"] == pytest.approx(500.0)
    assert second.revenue_breakdown["Ticket Sales"] == pytest.approx(1500.0)
    # streams without spend still appear, at zero
    assert first.revenue_breakdown["Online Sales"] == 0.0


def test_per_customer_streams_replace_duplicate_named_streams(
    event_model: FinancialModel,
):
    row = generate_forecast(event_model, 1)[0]
    assert row.revenue_breakdown["Ticket Sales"] == pytest.approx(1000.0)
    assert row.revenue_breakdown["Sponsorship"] == pytest.approx(200.0)
    assert row.revenue == pytest.approx(1000.0 + 500.0 + 200.0)


def test_spend_growth_schedule_applies_per_field(event_model: FinancialModel):
    per_customer = replace(
        event_model.per_customer,
        attendance=AttendanceDriver(base=100.0),
        spend_growth={"fb_spend": GrowthModel(type="linear", rate=1.0)},
    )
    model = replace(event_model, per_customer=per_customer)

    second = generate_forecast(model, 2)[1]
    assert second.revenue_breakdown["F&B Sales"] == pytest.approx(100 * 10.0)
    assert second.revenue_breakdown["Ticket Sales"] == pytest.approx(100 * 10.0)


def test_standard_model_has_no_attendance(simple_model: FinancialModel):
    assert generate_forecast(simple_model, 1)[0].attendance is None


def test_zero_periods_returns_empty(simple_model: FinancialModel):
    assert generate_forecast(simple_model, 0) == []


def test_negative_periods_rejected(simple_model: FinancialModel):
    with pytest.raises(ValueError):
        generate_forecast(simple_model, -1)


def test_invalid_growth_model_raises(simple_model: FinancialModel):
    model = replace(simple_model, growth_model=GrowthModel(type="seasonal"))
    with pytest.raises(InvalidGrowthModel):
        generate_forecast(model, 3)


def test_generator_is_pure(event_model: FinancialModel):
    assert generate_forecast(event_model, 4) == generate_forecast(event_model, 4)


def test_forecast_to_dataframe_columns(event_model: FinancialModel):
    df = forecast_to_dataframe(generate_forecast(event_model, 3))

    assert list(df["Period"]) == [1, 2, 3]
    assert "Attendance" in df.columns
    assert "Revenue: Ticket Sales" in df.columns
    assert "Cost: Venue" in df.columns


def test_forecast_to_dataframe_drops_empty_attendance(simple_model: FinancialModel):
    df = forecast_to_dataframe(generate_forecast(simple_model, 2))
    assert "Attendance" not in df.columns
    assert forecast_to_dataframe([]).empty


@pytest.mark.parametrize(
    "growth_type, factors",
    [("linear", ()), ("exponential", ()), ("seasonal", (1.0, 1.5, 0.8))],
)
@pytest.mark.parametrize("lower_rate, higher_rate", [(0.05, 0.10), (-0.5, -0.4)])
def test_higher_growth_rate_raises_total_revenue(
    simple_model: FinancialModel, growth_type, factors, lower_rate, higher_rate
):
    def total_revenue(rate: float) -> float:
        model = replace(
            simple_model,
            growth_model=GrowthModel(type=growth_type, rate=rate, seasonal_factors=factors),
        )
        return sum(r.revenue for r in generate_forecast(model, 4))

    assert total_revenue(higher_rate) > total_revenue(lower_rate)
