# src/ui/layout.py
from __future__ import annotations

import logging

import streamlit as st

from src.core.errors import ForecastEngineError
from src.core.forecast_cache import ForecastCache, ForecastCacheKey
from src.core.forecast_engine import forecast_to_dataframe, generate_forecast
from src.core.investment_metrics import compute_metrics
from src.core.models import FinancialModel
from src.core.scenario_engine import analyze_scenario
from src.ui.assumptions import render_assumptions_and_methodology
from src.ui.charts import (
    render_cumulative_profit_chart,
    render_forecast_chart,
    render_metrics_summary,
)
from src.ui.model_inputs import ModelInputs, render_model_inputs
from src.ui.scenarios_tab import (
    render_custom_scenario,
    render_scenarios_tab,
    render_sensitivity_tab,
)
from src.ui.variance_tab import render_variance_tab

logger = logging.getLogger(__name__)

_CACHE_STATE_KEY = "forecast_cache"
_MODEL_STATE_KEY = "last_model"


def _get_cache() -> ForecastCache:
    if _CACHE_STATE_KEY not in st.session_state:
        st.session_state[_CACHE_STATE_KEY] = ForecastCache()
    return st.session_state[_CACHE_STATE_KEY]


def _sync_cache_with_model(cache: ForecastCache, model: FinancialModel) -> None:
    """Drop cached results when the sidebar assumptions have changed."""
    previous = st.session_state.get(_MODEL_STATE_KEY)
    if previous is not None and previous != model:
        cache.invalidate_model(model.id)
    st.session_state[_MODEL_STATE_KEY] = model


def _render_forecast_tab(inputs: ModelInputs, cache: ForecastCache):
    model = inputs.model
    series = cache.get_or_compute(
        ForecastCacheKey(model.id, inputs.periods),
        lambda: generate_forecast(model, inputs.periods),
    )
    metrics = cache.get_or_compute(
        ForecastCacheKey(model.id, inputs.periods, inputs.discount_rate, "metrics"),
        lambda: compute_metrics(series, inputs.discount_rate),
    )

    st.subheader(model.name or "Forecast")
    render_metrics_summary(metrics)

    df = forecast_to_dataframe(series)
    render_forecast_chart(df)
    render_cumulative_profit_chart(df, metrics.payback_period)

    with st.expander("Forecast table", expanded=False):
        st.dataframe(df, hide_index=True, width="stretch")
        st.download_button(
            "Download CSV",
            data=df.to_csv(index=False).encode("utf-8"),
            file_name=f"{model.id}_forecast.csv",
            mime="text/csv",
        )

    return series, metrics


def render_dashboard() -> None:
    try:
        inputs = render_model_inputs()
    except ValueError as e:
        st.error(f"Invalid assumptions: {e}")
        st.stop()

    cache = _get_cache()
    _sync_cache_with_model(cache, inputs.model)

    tab_forecast, tab_scenarios, tab_sensitivity, tab_actuals, tab_assumptions = st.tabs(
        ["Forecast", "Scenarios", "Sensitivity", "Actuals", "Assumptions"]
    )

    try:
        with tab_forecast:
            series, metrics = _render_forecast_tab(inputs, cache)

        analysis = cache.get_or_compute(
            ForecastCacheKey(
                inputs.model.id, inputs.periods, inputs.discount_rate, "analysis"
            ),
            lambda: analyze_scenario(inputs.model, inputs.periods, inputs.discount_rate),
        )
    except ForecastEngineError as e:
        logger.warning("Forecast failed for model %s: %s", inputs.model.id, e)
        st.error(f"Could not build the forecast: {e}")
        st.stop()

    with tab_scenarios:
        render_scenarios_tab(analysis)
        st.divider()
        render_custom_scenario(
            inputs.model, metrics, inputs.periods, inputs.discount_rate
        )

    with tab_sensitivity:
        render_sensitivity_tab(analysis)

    with tab_actuals:
        render_variance_tab(series)

    with tab_assumptions:
        render_assumptions_and_methodology()
