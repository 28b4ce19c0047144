# src/core/investment_metrics.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import numpy_financial as npf

from src.config import settings
from src.core.errors import NoConvergence
from src.core.models import ForecastPeriodData

logger = logging.getLogger(__name__)


@dataclass
class FinancialMetrics:
    total_revenue: float
    total_costs: float
    total_profit: float
    profit_margin: float  # % of revenue
    npv: float
    irr: Optional[float]  # per-period fraction; None when undefined
    roi: float  # % of costs
    break_even_units: Optional[int] = None
    break_even_revenue: Optional[float] = None
    break_even_period_index: Optional[int] = None
    payback_period: Optional[float] = None
    average_period_revenue: float = 0.0
    average_period_costs: float = 0.0
    average_period_profit: float = 0.0


@dataclass(frozen=True)
class ContributionMargin:
    """
    Linear cost split used for unit break-even.

    Only supply this when the model has a clean fixed / per-unit variable
    cost decomposition; break-even units and revenue stay None otherwise.
    """

    fixed_costs: float
    variable_cost_per_unit: float
    price_per_unit: float


@dataclass
class MetricsComparison:
    revenue_delta: float
    revenue_delta_percent: float
    costs_delta: float
    costs_delta_percent: float
    profit_delta: float
    profit_delta_percent: float
    margin_delta: float
    break_even_delta: int


def _safe_pct(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100.0


def compute_npv(profits: Sequence[float], discount_rate: float) -> float:
    """
    NPV of per-period profits, discounting period p by (1 + r) ** p.

    numpy-financial discounts from t=0, so a zero cash flow is prepended
    to put the first period at t=1.
    """
    if len(profits) == 0:
        return 0.0
    cashflows = np.concatenate(([0.0], np.asarray(profits, dtype=float)))
    return float(npf.npv(discount_rate, cashflows))


def _npv_grid(cashflows: np.ndarray, rates: np.ndarray) -> np.ndarray:
    exponents = np.arange(1, cashflows.size + 1)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        discount = (1.0 + rates[:, None]) ** -exponents[None, :]
        return (cashflows[None, :] * discount).sum(axis=1)


def _bisect_irr(cashflows: np.ndarray, lower: float, upper: float) -> float:
    rates = np.linspace(lower, upper, settings.IRR_BRACKET_SCAN_POINTS)
    values = _npv_grid(cashflows, rates)

    bracket = None
    for i in range(len(rates) - 1):
        a, b = values[i], values[i + 1]
        if not (np.isfinite(a) and np.isfinite(b)):
            continue
        if a == 0.0:
            return float(rates[i])
        if np.sign(a) != np.sign(b):
            bracket = (float(rates[i]), float(rates[i + 1]), float(a))
            break

    if bracket is None:
        raise NoConvergence(
            f"No IRR root between {lower:.2%} and {upper:.2%} per period"
        )

    lo, hi, npv_lo = bracket
    for _ in range(settings.IRR_MAX_ITERATIONS):
        mid = (lo + hi) / 2.0
        npv_mid = compute_npv(cashflows, mid)
        if npv_mid == 0.0 or (hi - lo) / 2.0 < settings.IRR_TOLERANCE:
            return mid
        if np.sign(npv_mid) == np.sign(npv_lo):
            lo, npv_lo = mid, npv_mid
        else:
            hi = mid
    return (lo + hi) / 2.0


def compute_irr(profits: Sequence[float]) -> float:
    """
    Per-period rate at which the NPV of `profits` is zero.

    Tries numpy-financial first and falls back to a bracketed bisection over
    [IRR_LOWER_BOUND, IRR_UPPER_BOUND]. Raises NoConvergence when the cash
    flows never change sign or no root lies in the interval.
    """
    cashflows = np.asarray(profits, dtype=float)
    if not (np.any(cashflows > 0) and np.any(cashflows < 0)):
        raise NoConvergence("Cash flows never change sign; IRR is undefined")

    lower = settings.IRR_LOWER_BOUND
    upper = settings.IRR_UPPER_BOUND

    candidate = float(npf.irr(cashflows))
    if (
        math.isfinite(candidate)
        and lower <= candidate <= upper
        and abs(compute_npv(cashflows, candidate))
        <= settings.IRR_NPV_TOLERANCE * max(1.0, float(np.abs(cashflows).sum()))
    ):
        return candidate

    return _bisect_irr(cashflows, lower, upper)


def compute_break_even(
    contribution: ContributionMargin,
) -> tuple[Optional[int], Optional[float]]:
    """
    Break-even (units, revenue) from a contribution-margin split.

    Returns (None, None) when each unit loses money.
    """
    margin = contribution.price_per_unit - contribution.variable_cost_per_unit
    if margin <= 0:
        return None, None
    units = contribution.fixed_costs / margin
    return math.ceil(units), units * contribution.price_per_unit


def find_break_even_period(series: Sequence[ForecastPeriodData]) -> Optional[int]:
    for row in series:
        if row.cumulative_profit >= 0:
            return row.period
    return None


def compute_payback_period(series: Sequence[ForecastPeriodData]) -> Optional[float]:
    """
    Fractional number of periods until cumulative profit reaches zero.

    Interpolates linearly inside the crossing period, so a crossing halfway
    through period 3 gives 2.5. None if never reached.
    """
    previous = 0.0
    for row in series:
        if row.cumulative_profit >= 0:
            fraction = -previous / row.profit if row.profit > 0 else 0.0
            return (row.period - 1) + fraction
        previous = row.cumulative_profit
    return None


def compute_metrics(
    series: Sequence[ForecastPeriodData],
    discount_rate: float,
    contribution: Optional[ContributionMargin] = None,
) -> FinancialMetrics:
    """
    Reduce a forecast series to headline financial metrics.

    Division-by-zero cases resolve to 0. A non-convergent IRR is reported
    as irr=None rather than raised.
    """
    profits = [row.profit for row in series]
    total_revenue = float(sum(row.revenue for row in series))
    total_costs = float(sum(row.costs for row in series))
    total_profit = float(sum(profits))

    irr: Optional[float]
    try:
        irr = compute_irr(profits)
    except NoConvergence as exc:
        logger.warning("IRR undefined: %s", exc)
        irr = None

    break_even_units = None
    break_even_revenue = None
    if contribution is not None:
        break_even_units, break_even_revenue = compute_break_even(contribution)

    n_periods = len(series)
    return FinancialMetrics(
        total_revenue=total_revenue,
        total_costs=total_costs,
        total_profit=total_profit,
        profit_margin=_safe_pct(total_profit, total_revenue),
        npv=compute_npv(profits, discount_rate),
        irr=irr,
        roi=_safe_pct(total_profit, total_costs),
        break_even_units=break_even_units,
        break_even_revenue=break_even_revenue,
        break_even_period_index=find_break_even_period(series),
        payback_period=compute_payback_period(series),
        average_period_revenue=total_revenue / n_periods if n_periods else 0.0,
        average_period_costs=total_costs / n_periods if n_periods else 0.0,
        average_period_profit=total_profit / n_periods if n_periods else 0.0,
    )


def compare_metrics(
    baseline: FinancialMetrics, scenario: FinancialMetrics
) -> MetricsComparison:
    """
    Scenario minus baseline, with percent deltas relative to the baseline.

    Percents divide by the signed baseline value, so a profit improvement on
    a loss-making baseline comes out negative.
    """
    revenue_delta = scenario.total_revenue - baseline.total_revenue
    costs_delta = scenario.total_costs - baseline.total_costs
    profit_delta = scenario.total_profit - baseline.total_profit
    return MetricsComparison(
        revenue_delta=revenue_delta,
        revenue_delta_percent=_safe_pct(revenue_delta, baseline.total_revenue),
        costs_delta=costs_delta,
        costs_delta_percent=_safe_pct(costs_delta, baseline.total_costs),
        profit_delta=profit_delta,
        profit_delta_percent=_safe_pct(profit_delta, baseline.total_profit),
        margin_delta=scenario.profit_margin - baseline.profit_margin,
        break_even_delta=(scenario.break_even_period_index or 0)
        - (baseline.break_even_period_index or 0),
    )
