# src/core/scenario_deltas.py
from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import Optional

from src.core.models import CostCategory, FinancialModel, PerCustomerSpend
from src.core.scenario_models import ScenarioParameterDeltas, SpendDelta

logger = logging.getLogger(__name__)


def _pct_factor(percent: float) -> float:
    return 1.0 + percent / 100.0


def _apply_optional(amount: float, delta: Optional[SpendDelta]) -> float:
    return amount if delta is None else delta.apply(amount)


def _adjust_per_customer(
    per_customer: PerCustomerSpend, deltas: ScenarioParameterDeltas
) -> PerCustomerSpend:
    ticket_price = _apply_optional(
        per_customer.ticket_price, deltas.effective_ticket_price_delta
    )
    fb_spend = _apply_optional(per_customer.fb_spend, deltas.fb_spend_delta)
    merchandise_spend = _apply_optional(
        per_customer.merchandise_spend, deltas.merch_spend_delta
    )
    online_spend = per_customer.online_spend
    misc_spend = per_customer.misc_spend

    if deltas.revenue_percent:
        factor = _pct_factor(deltas.revenue_percent)
        ticket_price *= factor
        fb_spend *= factor
        merchandise_spend *= factor
        online_spend *= factor
        misc_spend *= factor

    attendance = per_customer.attendance
    if deltas.attendance_growth_percent:
        # Rate-space addition, not a multiplier on the existing rate.
        growth = attendance.growth
        attendance = replace(
            attendance,
            growth=replace(
                growth, rate=growth.rate + deltas.attendance_growth_percent / 100.0
            ),
        )

    return replace(
        per_customer,
        ticket_price=ticket_price,
        fb_spend=fb_spend,
        merchandise_spend=merchandise_spend,
        online_spend=online_spend,
        misc_spend=misc_spend,
        attendance=attendance,
    )


def _adjust_cost(category: CostCategory, deltas: ScenarioParameterDeltas) -> CostCategory:
    value = category.value

    channel_pct = deltas.marketing_spend_by_channel.get(category.channel_key)
    if channel_pct is not None:
        value *= _pct_factor(channel_pct)
    elif category.is_marketing and deltas.marketing_spend_percent:
        value *= _pct_factor(deltas.marketing_spend_percent)

    if category.is_cogs and deltas.cogs_multiplier != 1.0:
        value *= deltas.cogs_multiplier

    if deltas.cost_percent:
        value *= _pct_factor(deltas.cost_percent)

    if value == category.value:
        return category
    return replace(category, value=value)


def apply_scenario_deltas(
    baseline: FinancialModel, deltas: ScenarioParameterDeltas
) -> FinancialModel:
    """
    Return a new model with `deltas` applied; `baseline` is left untouched.

    Each adjustment is independent and neutral when absent, so
    ScenarioParameterDeltas() returns a model equal to the baseline.
    """
    model = copy.deepcopy(baseline)

    revenue_streams = model.revenue_streams
    if deltas.revenue_percent:
        factor = _pct_factor(deltas.revenue_percent)
        revenue_streams = tuple(
            replace(stream, value=stream.value * factor) for stream in revenue_streams
        )

    cost_categories = tuple(_adjust_cost(c, deltas) for c in model.cost_categories)

    per_customer = model.per_customer
    if per_customer is not None:
        per_customer = _adjust_per_customer(per_customer, deltas)

    logger.debug("Applied scenario deltas to model %s: %s", baseline.id, deltas)

    return replace(
        model,
        revenue_streams=revenue_streams,
        cost_categories=cost_categories,
        per_customer=per_customer,
    )
