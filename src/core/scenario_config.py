# src/core/scenario_config.py
from __future__ import annotations

from typing import Literal, Tuple

from src.config import settings
from src.core.scenario_models import ScenarioParameterDeltas

ScenarioName = Literal["base", "best", "worst"]


def build_default_scenarios() -> dict[ScenarioName, ScenarioParameterDeltas]:
    """
    Factory that builds the standard base / best / worst delta profiles
    using the centralised constants from settings.py.

    UI and engine code should call this instead of hard-coding
    any of the percentage shifts.
    """

    return {
        "base": ScenarioParameterDeltas(
            revenue_percent=settings.SCENARIO_BASE_REVENUE_PCT,
            cost_percent=settings.SCENARIO_BASE_COST_PCT,
        ),
        "best": ScenarioParameterDeltas(
            revenue_percent=settings.SCENARIO_BEST_REVENUE_PCT,
            cost_percent=settings.SCENARIO_BEST_COST_PCT,
        ),
        "worst": ScenarioParameterDeltas(
            revenue_percent=settings.SCENARIO_WORST_REVENUE_PCT,
            cost_percent=settings.SCENARIO_WORST_COST_PCT,
        ),
    }


def build_sensitivity_steps(
    range_pct: float | None = None,
    step_pct: float | None = None,
) -> Tuple[float, ...]:
    """
    Symmetric perturbation steps, e.g. (-20, -15, ..., 15, 20).

    Always includes 0 so the curves pass through the base case.
    """
    range_pct = settings.SENSITIVITY_RANGE_PCT if range_pct is None else range_pct
    step_pct = settings.SENSITIVITY_STEP_PCT if step_pct is None else step_pct
    if step_pct <= 0:
        raise ValueError("step_pct must be > 0")

    n_steps = int(range_pct // step_pct)
    return tuple(float(i * step_pct) for i in range(-n_steps, n_steps + 1))
