# src/core/errors.py
from __future__ import annotations


class ForecastEngineError(ValueError):
    """Base class for errors raised by the forecasting engine."""


class InvalidGrowthModel(ForecastEngineError):
    """Raised when a growth specification cannot be evaluated."""


class NoConvergence(ForecastEngineError):
    """Raised when no IRR root exists inside the bounded search interval."""
