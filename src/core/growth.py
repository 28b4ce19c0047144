# src/core/growth.py
"""
Growth curve evaluator.

Maps a base value to its projected value in a given 1-indexed period.
Period 1 is always the base value; growth compounds from period 2:

- linear:      v * (1 + rate * (p - 1))
- exponential: v * (1 + rate) ** (p - 1)
- seasonal:    v * (1 + rate) ** (p - 1) * factors[(p - 1) % len(factors)]

Negative rates are valid and model decline.
"""
from __future__ import annotations

from src.core.errors import InvalidGrowthModel
from src.core.models import GrowthModel

GROWTH_TYPES = ("linear", "exponential", "seasonal")


def validate_growth_model(growth: GrowthModel) -> None:
    """Raise InvalidGrowthModel if the growth model cannot be evaluated."""
    if growth.type not in GROWTH_TYPES:
        raise InvalidGrowthModel(f"Unknown growth model type: {growth.type!r}")
    if growth.type == "seasonal" and not growth.seasonal_factors:
        raise InvalidGrowthModel("Seasonal growth model requires seasonal factors")


def growth_factor(period: int, growth: GrowthModel) -> float:
    validate_growth_model(growth)
    if period <= 1:
        return 1.0

    steps = period - 1
    if growth.type == "linear":
        return 1.0 + growth.rate * steps

    factor = (1.0 + growth.rate) ** steps
    if growth.type == "seasonal":
        factors = growth.seasonal_factors
        factor *= factors[steps % len(factors)]
    return factor


def project_value(value: float, period: int, growth: GrowthModel) -> float:
    """Projected value of `value` in `period` under `growth`."""
    factor = growth_factor(period, growth)
    if period <= 1:
        return value
    return value * factor
