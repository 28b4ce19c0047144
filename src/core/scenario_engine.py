# src/core/scenario_engine.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from src.core.forecast_engine import generate_forecast
from src.core.investment_metrics import (
    ContributionMargin,
    FinancialMetrics,
    compute_metrics,
    compute_npv,
)
from src.core.models import FinancialModel
from src.core.scenario_config import (
    ScenarioName,
    build_default_scenarios,
    build_sensitivity_steps,
)
from src.core.scenario_deltas import apply_scenario_deltas
from src.core.scenario_models import (
    Scenario,
    ScenarioAnalysis,
    ScenarioParameterDeltas,
    ScenarioResult,
    SensitivityAnalysis,
    SensitivityPoint,
)

logger = logging.getLogger(__name__)


def run_scenario(
    model: FinancialModel,
    deltas: ScenarioParameterDeltas,
    periods: int,
    discount_rate: float,
    name: str = "Scenario",
    contribution: Optional[ContributionMargin] = None,
) -> ScenarioResult:
    """
    Run the full pipeline for one set of deltas.

    Parameters
    ----------
    model:
        Baseline assumptions; never modified.
    deltas:
        Scenario adjustments. ScenarioParameterDeltas() reproduces the baseline.
    periods:
        Forecast horizon in periods.
    discount_rate:
        Per-period rate used for NPV.
    name:
        Human-friendly label for the scenario (e.g. "Best case").
    contribution:
        Optional unit cost split for break-even units / revenue.
    """
    scenario_model = apply_scenario_deltas(model, deltas)
    series = generate_forecast(scenario_model, periods)
    metrics = compute_metrics(series, discount_rate, contribution)

    logger.debug(
        "Scenario %r on model %s: profit %.2f, npv %.2f",
        name,
        model.id,
        metrics.total_profit,
        metrics.npv,
    )

    return ScenarioResult(
        name=name,
        deltas=deltas,
        model=scenario_model,
        series=series,
        metrics=metrics,
    )


def run_saved_scenario(
    model: FinancialModel,
    scenario: Scenario,
    periods: int,
    discount_rate: float,
    contribution: Optional[ContributionMargin] = None,
) -> ScenarioResult:
    """Recompute a stored scenario against the model it was built on."""
    if scenario.base_model_id != model.id:
        raise ValueError(
            f"Scenario {scenario.id} is based on model {scenario.base_model_id}, "
            f"not {model.id}"
        )
    return run_scenario(
        model,
        scenario.parameter_deltas,
        periods,
        discount_rate,
        name=scenario.name,
        contribution=contribution,
    )


def _npv_change(npv: float, base_npv: float) -> float:
    if base_npv == 0:
        return 0.0
    return (npv - base_npv) / abs(base_npv) * 100.0


def _sensitivity_curve(
    base_model: FinancialModel,
    base_npv: float,
    steps: Iterable[float],
    periods: int,
    discount_rate: float,
    side: str,
) -> tuple[SensitivityPoint, ...]:
    points: List[SensitivityPoint] = []
    for step in steps:
        if step == 0:
            points.append(SensitivityPoint(change=0.0, npv_change=0.0))
            continue

        if side == "revenue":
            deltas = ScenarioParameterDeltas(revenue_percent=step)
        else:
            deltas = ScenarioParameterDeltas(cost_percent=step)

        series = generate_forecast(apply_scenario_deltas(base_model, deltas), periods)
        npv = compute_npv([row.profit for row in series], discount_rate)
        points.append(
            SensitivityPoint(change=float(step), npv_change=_npv_change(npv, base_npv))
        )
    return tuple(points)


def analyze_scenario(
    model: FinancialModel,
    periods: int,
    discount_rate: float,
    presets: Optional[Mapping[ScenarioName, ScenarioParameterDeltas]] = None,
    sensitivity_steps: Optional[Sequence[float]] = None,
    contribution: Optional[ContributionMargin] = None,
) -> ScenarioAnalysis:
    """
    Base / best / worst metrics and NPV sensitivity for a model.

    presets override build_default_scenarios() by name; sensitivity_steps defaults
    to build_sensitivity_steps(). Sensitivity perturbs revenue or costs of the
    base-case model by each step while holding the other side fixed.
    """
    presets = {**build_default_scenarios(), **(presets or {})}
    steps = (
        build_sensitivity_steps() if sensitivity_steps is None else sensitivity_steps
    )

    results: Dict[str, ScenarioResult] = {
        key: run_scenario(
            model,
            presets[key],
            periods,
            discount_rate,
            name=key,
            contribution=contribution,
        )
        for key in ("base", "best", "worst")
    }

    base = results["base"]
    base_npv = base.metrics.npv
    sensitivity = SensitivityAnalysis(
        revenue_impact=_sensitivity_curve(
            base.model, base_npv, steps, periods, discount_rate, "revenue"
        ),
        cost_impact=_sensitivity_curve(
            base.model, base_npv, steps, periods, discount_rate, "cost"
        ),
    )

    return ScenarioAnalysis(
        base_case=base.metrics,
        best_case=results["best"].metrics,
        worst_case=results["worst"].metrics,
        sensitivity=sensitivity,
    )


def scenario_summary_dataframe(analysis: ScenarioAnalysis) -> pd.DataFrame:
    """Side-by-side headline metrics for the three preset cases."""

    def _row(label: str, m: FinancialMetrics) -> dict:
        return {
            "Scenario": label,
            "Total revenue": m.total_revenue,
            "Total costs": m.total_costs,
            "Total profit": m.total_profit,
            "Profit margin (%)": m.profit_margin,
            "NPV": m.npv,
            "IRR (%)": None if m.irr is None else m.irr * 100.0,
            "ROI (%)": m.roi,
            "Break-even period": m.break_even_period_index,
        }

    return pd.DataFrame(
        [
            _row("Worst case", analysis.worst_case),
            _row("Base case", analysis.base_case),
            _row("Best case", analysis.best_case),
        ]
    )


def sensitivity_to_dataframe(analysis: ScenarioAnalysis) -> pd.DataFrame:
    """Long-format sensitivity table: one row per (driver, change)."""
    records = [
        {"Driver": "Revenue", "Change (%)": p.change, "NPV change (%)": p.npv_change}
        for p in analysis.sensitivity.revenue_impact
    ] + [
        {"Driver": "Costs", "Change (%)": p.change, "NPV change (%)": p.npv_change}
        for p in analysis.sensitivity.cost_impact
    ]
    return pd.DataFrame.from_records(
        records, columns=["Driver", "Change (%)", "NPV change (%)"]
    )
