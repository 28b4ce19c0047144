# src/core/variance.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from src.config import settings
from src.core.models import ForecastPeriodData

logger = logging.getLogger(__name__)

VarianceStatus = Literal["matched", "unmatched"]
VarianceMetric = Literal["revenue", "costs", "profit"]
AccuracyGrade = Literal["A", "B", "C", "D", "F"]
AccuracyTrend = Literal["improving", "stable", "declining"]
TrendDirection = Literal["improving", "stable", "worsening"]
AnomalySeverity = Literal["mild", "moderate", "severe"]
RiskLevel = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class ActualsRecord:
    period: int
    revenue: float
    costs: float

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ActualsRecord":
        return cls(
            period=int(record["period"]),
            revenue=float(record.get("revenue") or 0.0),
            costs=float(record.get("costs") or 0.0),
        )


@dataclass
class VarianceRecord:
    """
    Actual vs. forecast for one period.

    Unmatched records (period outside the forecast horizon) carry the
    actuals only; every forecast and variance field is None.
    """

    period: int
    status: VarianceStatus
    actual_revenue: float
    actual_costs: float
    forecast_revenue: Optional[float] = None
    forecast_costs: Optional[float] = None
    revenue_variance: Optional[float] = None
    cost_variance: Optional[float] = None
    revenue_variance_percent: Optional[float] = None
    cost_variance_percent: Optional[float] = None
    cumulative_revenue_variance: Optional[float] = None
    cumulative_cost_variance: Optional[float] = None

    @property
    def is_matched(self) -> bool:
        return self.status == "matched"


def _variance_pct(variance: float, forecast: float) -> float:
    return variance / forecast * 100.0 if forecast != 0 else 0.0


def reconcile_actuals(
    series: Sequence[ForecastPeriodData],
    actuals: Iterable[ActualsRecord],
) -> List[VarianceRecord]:
    """
    Compare actuals with the forecast, period by period and cumulatively.

    Actuals are processed in period order. Periods outside the forecast
    horizon come back as "unmatched" records and do not move the
    cumulative totals. Each period may appear at most once; duplicates
    raise ValueError.
    """
    actuals = sorted(actuals, key=lambda a: a.period)
    periods = [a.period for a in actuals]
    duplicates = sorted({p for p in periods if periods.count(p) > 1})
    if duplicates:
        raise ValueError(f"Duplicate actuals periods: {duplicates}")

    forecast_by_period: Dict[int, ForecastPeriodData] = {row.period: row for row in series}

    records: List[VarianceRecord] = []
    cumulative_revenue = 0.0
    cumulative_costs = 0.0

    for actual in actuals:
        forecast = forecast_by_period.get(actual.period)
        if forecast is None:
            logger.info("Actuals for period %d fall outside the forecast", actual.period)
            records.append(
                VarianceRecord(
                    period=actual.period,
                    status="unmatched",
                    actual_revenue=actual.revenue,
                    actual_costs=actual.costs,
                )
            )
            continue

        revenue_variance = actual.revenue - forecast.revenue
        cost_variance = actual.costs - forecast.costs
        cumulative_revenue += revenue_variance
        cumulative_costs += cost_variance

        records.append(
            VarianceRecord(
                period=actual.period,
                status="matched",
                actual_revenue=actual.revenue,
                actual_costs=actual.costs,
                forecast_revenue=forecast.revenue,
                forecast_costs=forecast.costs,
                revenue_variance=revenue_variance,
                cost_variance=cost_variance,
                revenue_variance_percent=_variance_pct(revenue_variance, forecast.revenue),
                cost_variance_percent=_variance_pct(cost_variance, forecast.costs),
                cumulative_revenue_variance=cumulative_revenue,
                cumulative_cost_variance=cumulative_costs,
            )
        )

    return records


def unmatched_periods(records: Iterable[VarianceRecord]) -> List[int]:
    return [r.period for r in records if not r.is_matched]


def compute_mape(
    records: Iterable[VarianceRecord],
    metric: Literal["revenue", "costs"] = "revenue",
) -> float:
    """
    Mean absolute percentage error of the forecast, relative to actuals.

    Only matched periods with a non-zero actual count; returns 0 when none
    qualify.
    """
    errors = []
    for r in records:
        if not r.is_matched:
            continue
        if metric == "revenue":
            actual, forecast = r.actual_revenue, r.forecast_revenue
        else:
            actual, forecast = r.actual_costs, r.forecast_costs
        if actual == 0:
            continue
        errors.append(abs((actual - forecast) / actual) * 100.0)

    return sum(errors) / len(errors) if errors else 0.0


# --- Forecast accuracy ---


def accuracy_grade(percent_error: float) -> AccuracyGrade:
    """Letter grade (A best, F worst) for a MAPE or per-period error."""
    for upper, grade in settings.ACCURACY_GRADE_BANDS:
        if percent_error <= upper:
            return grade
    return "F"


def _metric_pair(record: VarianceRecord, metric: VarianceMetric) -> Tuple[float, float]:
    """(actual, forecast) for a matched record."""
    if metric == "revenue":
        return record.actual_revenue, record.forecast_revenue
    if metric == "costs":
        return record.actual_costs, record.forecast_costs
    if metric == "profit":
        return (
            record.actual_revenue - record.actual_costs,
            record.forecast_revenue - record.forecast_costs,
        )
    raise ValueError(f"Unknown variance metric: {metric!r}")


def accuracy_trend(
    records: Iterable[VarianceRecord],
    metric: VarianceMetric = "revenue",
) -> AccuracyTrend:
    """
    Whether the per-period forecast error is shrinking or growing.

    Takes the most recent matched periods (ACCURACY_TREND_WINDOW), splits
    them into an older and a newer half and compares the mean absolute
    percentage error of the two halves.
    """
    matched = sorted((r for r in records if r.is_matched), key=lambda r: r.period)
    if len(matched) < settings.ACCURACY_TREND_MIN_PERIODS:
        return "stable"

    errors = []
    for r in matched[-settings.ACCURACY_TREND_WINDOW :]:
        actual, forecast = _metric_pair(r, metric)
        errors.append(abs(actual - forecast) / abs(actual) * 100.0 if actual != 0 else 0.0)

    half = len(errors) // 2
    older = float(np.mean(errors[:half]))
    newer = float(np.mean(errors[half:]))
    if newer < older - settings.ACCURACY_TREND_THRESHOLD_PCT:
        return "improving"
    if newer > older + settings.ACCURACY_TREND_THRESHOLD_PCT:
        return "declining"
    return "stable"


def accuracy_confidence(mape: float, trend: AccuracyTrend) -> int:
    """0-100 confidence in future forecasts, from MAPE and its trend."""
    score = max(0.0, 100.0 - mape * settings.ACCURACY_CONFIDENCE_MAPE_WEIGHT)
    if trend == "improving":
        score = min(100.0, score + settings.ACCURACY_CONFIDENCE_IMPROVING_BONUS)
    elif trend == "declining":
        score = max(0.0, score - settings.ACCURACY_CONFIDENCE_DECLINING_PENALTY)
    return int(round(score))


# --- Variance trend ---


@dataclass(frozen=True)
class VariancePoint:
    period: int
    actual: float
    forecast: float
    variance_percent: float
    risk_level: RiskLevel
    is_anomaly: bool = False


@dataclass(frozen=True)
class VarianceAnomaly:
    period: int
    variance_percent: float
    severity: AnomalySeverity
    deviation_from_norm: float  # z-score


@dataclass(frozen=True)
class VarianceTrend:
    """
    Direction, volatility and outliers of the variance % over time.

    direction is read from the size of the forecast miss: "improving"
    means |variance %| is shrinking period over period. change_rate is
    that regression slope in percentage points per period, strength
    scales it to [0, 1] and confidence is R² as a percentage.
    """

    metric: VarianceMetric
    points: Tuple[VariancePoint, ...]
    direction: TrendDirection
    strength: float
    confidence: float
    change_rate: float
    projected_next_percent: float
    volatility: float
    mean_percent: float
    median_percent: float
    anomalies: Tuple[VarianceAnomaly, ...] = ()


def _z_score(value: float, mean: float, std: float) -> float:
    return abs(value - mean) / std if std > 0 else 0.0


def _risk_level(value: float, mean: float, std: float) -> RiskLevel:
    z = _z_score(value, mean, std)
    if abs(value) > settings.VARIANCE_HIGH_RISK_PCT or z > settings.VARIANCE_HIGH_RISK_Z:
        return "high"
    if abs(value) > settings.VARIANCE_MEDIUM_RISK_PCT or z > settings.VARIANCE_MEDIUM_RISK_Z:
        return "medium"
    return "low"


def _severity(value: float, z: float) -> AnomalySeverity:
    if z > settings.VARIANCE_SEVERE_Z or abs(value) > settings.VARIANCE_SEVERE_PCT:
        return "severe"
    if z > settings.VARIANCE_MODERATE_Z or abs(value) > settings.VARIANCE_MODERATE_PCT:
        return "moderate"
    return "mild"


def _find_anomalies(
    periods: Sequence[int], values: np.ndarray, mean: float, std: float
) -> List[VarianceAnomaly]:
    # Quartiles by index into the sorted values, no interpolation
    ordered = np.sort(values)
    n = len(ordered)
    q1 = ordered[int(n * 0.25)]
    q3 = ordered[int(n * 0.75)]
    iqr = q3 - q1
    lower = q1 - settings.VARIANCE_ANOMALY_IQR_MULTIPLIER * iqr
    upper = q3 + settings.VARIANCE_ANOMALY_IQR_MULTIPLIER * iqr

    anomalies = []
    for period, value in zip(periods, values):
        z = _z_score(value, mean, std)
        if z > settings.VARIANCE_ANOMALY_Z or value < lower or value > upper:
            anomalies.append(
                VarianceAnomaly(
                    period=period,
                    variance_percent=float(value),
                    severity=_severity(value, z),
                    deviation_from_norm=float(z),
                )
            )
    return anomalies


def analyze_variance_trend(
    records: Iterable[VarianceRecord],
    metric: VarianceMetric = "revenue",
) -> VarianceTrend:
    """
    Trend, volatility, anomalies and per-period risk of the variance %.

    Only matched periods with a non-zero forecast contribute; variance %
    is (actual - forecast) / forecast * 100. With fewer than
    VARIANCE_TREND_MIN_POINTS points the trend is "stable" with zero
    statistics; anomalies need VARIANCE_ANOMALY_MIN_POINTS points.
    """
    matched = sorted((r for r in records if r.is_matched), key=lambda r: r.period)

    rows = []
    for r in matched:
        actual, forecast = _metric_pair(r, metric)
        if forecast == 0:
            continue
        rows.append((r.period, actual, forecast, (actual - forecast) / forecast * 100.0))

    if len(rows) < settings.VARIANCE_TREND_MIN_POINTS:
        points = tuple(
            VariancePoint(
                period=p,
                actual=a,
                forecast=f,
                variance_percent=v,
                risk_level=_risk_level(v, 0.0, 0.0),
            )
            for p, a, f, v in rows
        )
        return VarianceTrend(
            metric=metric,
            points=points,
            direction="stable",
            strength=0.0,
            confidence=0.0,
            change_rate=0.0,
            projected_next_percent=0.0,
            volatility=0.0,
            mean_percent=0.0,
            median_percent=0.0,
        )

    periods = [row[0] for row in rows]
    values = np.array([row[3] for row in rows])
    mean = float(values.mean())
    std = float(values.std())  # population

    n = len(values)
    x = np.arange(1, n + 1, dtype=float)
    magnitude = np.abs(values)
    slope, intercept = np.polyfit(x, magnitude, 1)
    fitted = slope * x + intercept
    ss_tot = float(((magnitude - magnitude.mean()) ** 2).sum())
    ss_res = float(((magnitude - fitted) ** 2).sum())
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0

    if slope < -settings.VARIANCE_TREND_SLOPE_THRESHOLD:
        direction: TrendDirection = "improving"
    elif slope > settings.VARIANCE_TREND_SLOPE_THRESHOLD:
        direction = "worsening"
    else:
        direction = "stable"

    anomalies: List[VarianceAnomaly] = []
    if n >= settings.VARIANCE_ANOMALY_MIN_POINTS:
        anomalies = _find_anomalies(periods, values, mean, std)
    anomalous = {a.period for a in anomalies}
    if anomalies:
        logger.info(
            "%d %s variance anomalies in periods %s", len(anomalies), metric, sorted(anomalous)
        )

    points = tuple(
        VariancePoint(
            period=p,
            actual=a,
            forecast=f,
            variance_percent=v,
            risk_level=_risk_level(v, mean, std),
            is_anomaly=p in anomalous,
        )
        for p, a, f, v in rows
    )

    return VarianceTrend(
        metric=metric,
        points=points,
        direction=direction,
        strength=min(1.0, abs(float(slope)) / settings.VARIANCE_TREND_FULL_STRENGTH_SLOPE),
        confidence=min(100.0, max(0.0, r_squared * 100.0)),
        change_rate=float(slope),
        projected_next_percent=float(slope * (n + 1) + intercept),
        volatility=std,
        mean_percent=mean,
        median_percent=float(np.median(values)),
        anomalies=tuple(anomalies),
    )


def variance_to_dataframe(records: List[VarianceRecord]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame()
    return pd.DataFrame(
        [
            {
                "Period": r.period,
                "Status": r.status,
                "Forecast revenue": r.forecast_revenue,
                "Actual revenue": r.actual_revenue,
                "Revenue variance": r.revenue_variance,
                "Revenue variance (%)": r.revenue_variance_percent,
                "Forecast costs": r.forecast_costs,
                "Actual costs": r.actual_costs,
                "Cost variance": r.cost_variance,
                "Cost variance (%)": r.cost_variance_percent,
                "Cumulative revenue variance": r.cumulative_revenue_variance,
                "Cumulative cost variance": r.cumulative_cost_variance,
            }
            for r in records
        ]
    )
