# src/core/scenario_models.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from src.core.investment_metrics import FinancialMetrics
from src.core.models import FinancialModel, ForecastPeriodData

DeltaType = Literal["percent", "absolute"]


@dataclass(frozen=True)
class SpendDelta:
    """
    Adjustment to a single per-customer amount.

    percent: value is a percentage (10.0 = +10%).
    absolute: value is added in currency units.
    """

    type: DeltaType
    value: float

    def __post_init__(self) -> None:
        if self.type not in ("percent", "absolute"):
            raise ValueError(f"Unknown delta type: {self.type!r}")

    def apply(self, amount: float) -> float:
        if self.type == "percent":
            return amount * (1.0 + self.value / 100.0)
        return amount + self.value

    @classmethod
    def from_record(
        cls, value: Any, delta_type: Optional[str] = None
    ) -> Optional["SpendDelta"]:
        # Accepts {"type", "value"} or a bare number with a sibling *DeltaType key.
        if value is None:
            return None
        if isinstance(value, Mapping):
            return cls(type=value.get("type", "percent"), value=float(value["value"]))
        return cls(type=delta_type or "percent", value=float(value))


@dataclass(frozen=True)
class ScenarioParameterDeltas:
    """
    Adjustments applied to a baseline model to produce a scenario.

    Percent fields are expressed as percentages (+10.0 = +10%). Every field
    defaults to its neutral value, so ScenarioParameterDeltas() leaves a
    model unchanged.
    """

    marketing_spend_percent: float = 0.0
    marketing_spend_by_channel: Dict[str, float] = field(default_factory=dict)
    pricing_percent: float = 0.0
    ticket_price_delta: Optional[SpendDelta] = None
    attendance_growth_percent: float = 0.0
    cogs_multiplier: float = 1.0
    fb_spend_delta: Optional[SpendDelta] = None
    merch_spend_delta: Optional[SpendDelta] = None

    # Blanket shifts used by the best/worst presets and sensitivity curves
    revenue_percent: float = 0.0
    cost_percent: float = 0.0

    def __post_init__(self) -> None:
        if self.cogs_multiplier < 0:
            raise ValueError("cogs_multiplier must be >= 0")

    @property
    def effective_ticket_price_delta(self) -> Optional[SpendDelta]:
        """ticket_price_delta wins over the legacy pricing_percent."""
        if self.ticket_price_delta is not None:
            return self.ticket_price_delta
        if self.pricing_percent:
            return SpendDelta(type="percent", value=self.pricing_percent)
        return None

    @classmethod
    def from_record(
        cls, record: Optional[Mapping[str, Any]]
    ) -> "ScenarioParameterDeltas":
        if not record:
            return cls()
        cogs = record.get("cogsMultiplier")
        return cls(
            marketing_spend_percent=float(record.get("marketingSpendPercent") or 0.0),
            marketing_spend_by_channel={
                str(k): float(v)
                for k, v in (record.get("marketingSpendByChannel") or {}).items()
            },
            pricing_percent=float(record.get("pricingPercent") or 0.0),
            ticket_price_delta=SpendDelta.from_record(
                record.get("ticketPriceDelta"), record.get("ticketPriceDeltaType")
            ),
            attendance_growth_percent=float(
                record.get("attendanceGrowthPercent") or 0.0
            ),
            cogs_multiplier=1.0 if cogs is None else float(cogs),
            fb_spend_delta=SpendDelta.from_record(
                record.get("fbSpendDelta"), record.get("fbSpendDeltaType")
            ),
            merch_spend_delta=SpendDelta.from_record(
                record.get("merchSpendDelta"), record.get("merchSpendDeltaType")
            ),
            revenue_percent=float(record.get("revenuePercent") or 0.0),
            cost_percent=float(record.get("costPercent") or 0.0),
        )


NEUTRAL_DELTAS = ScenarioParameterDeltas()


@dataclass(frozen=True)
class Scenario:
    """A saved what-if: only the deltas are stored, never derived numbers."""

    id: str
    project_id: str
    base_model_id: str
    name: str
    parameter_deltas: ScenarioParameterDeltas = NEUTRAL_DELTAS
    updated_at: Optional[datetime] = None
    description: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Scenario":
        updated_at = record.get("updatedAt")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        return cls(
            id=str(record["id"]),
            project_id=str(record.get("projectId", "")),
            base_model_id=str(record["baseModelId"]),
            name=str(record.get("name", "")),
            parameter_deltas=ScenarioParameterDeltas.from_record(
                record.get("parameterDeltas")
            ),
            updated_at=updated_at,
            description=str(record.get("description") or ""),
        )


@dataclass(frozen=True)
class SensitivityPoint:
    change: float  # percent applied to revenue or costs
    npv_change: float  # percent change in NPV vs. base


@dataclass(frozen=True)
class SensitivityAnalysis:
    revenue_impact: Tuple[SensitivityPoint, ...]
    cost_impact: Tuple[SensitivityPoint, ...]


@dataclass
class ScenarioAnalysis:
    """Base / best / worst metrics plus revenue and cost sensitivity curves."""

    base_case: FinancialMetrics
    best_case: FinancialMetrics
    worst_case: FinancialMetrics
    sensitivity: SensitivityAnalysis

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScenarioResult:
    """
    Full pipeline output for one scenario run.
    """

    name: str
    deltas: ScenarioParameterDeltas
    model: FinancialModel
    series: List[ForecastPeriodData]
    metrics: FinancialMetrics
