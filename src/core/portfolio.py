# src/core/portfolio.py
from __future__ import annotations

import concurrent.futures
from typing import Dict, Iterable

from src.config import settings
from src.core.models import FinancialModel
from src.core.scenario_engine import analyze_scenario
from src.core.scenario_models import ScenarioAnalysis


def analyze_portfolio(
    models: Iterable[FinancialModel],
    periods: int,
    discount_rate: float,
    max_workers: int | None = None,
) -> Dict[str, ScenarioAnalysis]:
    """
    Run analyze_scenario for every model in parallel, keyed by model id.

    Each call is independent; the first failure is re-raised.
    """
    models = list(models)
    if not models:
        return {}

    workers = max_workers or settings.PORTFOLIO_MAX_WORKERS
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            model.id: pool.submit(analyze_scenario, model, periods, discount_rate)
            for model in models
        }
        return {model_id: future.result() for model_id, future in futures.items()}
