# src/core/models.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

from src.config import settings

GrowthType = Literal["linear", "exponential", "seasonal"]
ItemKind = Literal["one-time", "recurring"]
Frequency = Literal["weekly", "monthly", "quarterly", "annually", "none"]

# Record keys used by the persistence layer for the per-customer spend fields.
SPEND_FIELD_KEYS = {
    "ticketPrice": "ticket_price",
    "fbSpend": "fb_spend",
    "merchandiseSpend": "merchandise_spend",
    "onlineSpend": "online_spend",
    "miscSpend": "misc_spend",
}


def _float(record: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = record.get(key)
    return default if value is None else float(value)


@dataclass(frozen=True)
class GrowthModel:
    """
    Growth curve applied to a base value from period 2 onwards.

    rate is a fraction per period (0.05 = +5%). seasonal_factors is only
    used (and must be non-empty) when type == "seasonal".
    """

    type: GrowthType = "exponential"
    rate: float = 0.0
    seasonal_factors: Tuple[float, ...] = ()

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "GrowthModel":
        if not record:
            return cls()
        factors = record.get("seasonalFactors") or ()
        return cls(
            type=record.get("type", "exponential"),
            rate=_float(record, "rate"),
            seasonal_factors=tuple(float(f) for f in factors),
        )


NO_GROWTH = GrowthModel()


@dataclass(frozen=True)
class RevenueStream:
    name: str
    value: float
    kind: ItemKind = "recurring"
    frequency: Frequency = "none"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RevenueStream":
        return cls(
            name=str(record["name"]),
            value=_float(record, "value"),
            kind=record.get("kind") or record.get("type") or "recurring",
            frequency=record.get("frequency") or "none",
        )


@dataclass(frozen=True)
class CostCategory:
    """
    A cost line in the model.

    is_cogs marks categories scaled by a scenario's COGS multiplier.
    is_marketing / channel mark marketing spend; channel defaults to the
    category name when matching per-channel scenario adjustments.
    """

    name: str
    value: float
    kind: ItemKind = "recurring"
    frequency: Frequency = "none"
    is_cogs: bool = False
    is_marketing: bool = False
    channel: Optional[str] = None

    @property
    def channel_key(self) -> str:
        return self.channel or self.name

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CostCategory":
        return cls(
            name=str(record["name"]),
            value=_float(record, "value"),
            kind=record.get("kind") or record.get("type") or "recurring",
            frequency=record.get("frequency") or "none",
            is_cogs=bool(record.get("isCOGS", False)),
            is_marketing=bool(record.get("isMarketing", False)),
            channel=record.get("channel"),
        )


@dataclass(frozen=True)
class AttendanceDriver:
    """Attendance in period 1 plus its own growth curve."""

    base: float
    growth: GrowthModel = NO_GROWTH


@dataclass(frozen=True)
class PerCustomerSpend:
    """
    Per-attendee spend for recurring-event models.

    Revenue for each field is attendance x spend. spend_growth optionally
    maps a field name (e.g. "fb_spend") to its own growth curve; fields
    without an entry stay flat.
    """

    ticket_price: float = 0.0
    fb_spend: float = 0.0
    merchandise_spend: float = 0.0
    online_spend: float = 0.0
    misc_spend: float = 0.0
    attendance: AttendanceDriver = AttendanceDriver(base=0.0)
    spend_growth: Dict[str, GrowthModel] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.spend_growth) - set(settings.PER_CUSTOMER_STREAM_NAMES)
        if unknown:
            raise ValueError(f"Unknown per-customer spend fields: {sorted(unknown)}")

    def spend_for(self, field_name: str) -> float:
        return getattr(self, field_name)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PerCustomerSpend":
        attendance_growth = record.get("attendanceGrowthModel")
        if attendance_growth is None:
            attendance_growth = {
                "type": "exponential",
                "rate": record.get("attendanceGrowthRate", 0.0),
            }

        spend_growth = {
            SPEND_FIELD_KEYS[key]: GrowthModel.from_record(growth)
            for key, growth in (record.get("spendGrowth") or {}).items()
            if key in SPEND_FIELD_KEYS
        }

        return cls(
            ticket_price=_float(record, "ticketPrice"),
            fb_spend=_float(record, "fbSpend"),
            merchandise_spend=_float(record, "merchandiseSpend"),
            online_spend=_float(record, "onlineSpend"),
            misc_spend=_float(record, "miscSpend"),
            attendance=AttendanceDriver(
                base=_float(record, "baseAttendance"),
                growth=GrowthModel.from_record(attendance_growth),
            ),
            spend_growth=spend_growth,
        )


@dataclass(frozen=True)
class FinancialModel:
    """
    Full assumption snapshot for one product forecast.

    Instances are never edited in place; scenarios and edits produce a new
    snapshot via dataclasses.replace.
    """

    id: str
    project_id: str
    name: str
    revenue_streams: Tuple[RevenueStream, ...] = ()
    cost_categories: Tuple[CostCategory, ...] = ()
    growth_model: GrowthModel = NO_GROWTH
    per_customer: Optional[PerCustomerSpend] = None
    version: int = 1
    model_type: str = settings.MODEL_TYPE_STANDARD

    def __post_init__(self) -> None:
        for label, items in (
            ("revenue stream", self.revenue_streams),
            ("cost category", self.cost_categories),
        ):
            names = [item.name for item in items]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(f"Duplicate {label} names: {duplicates}")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "FinancialModel":
        """
        Build a model from the plain record handed over by persistence.

        perCustomer is only honoured for recurring-event models.
        """
        metadata = record.get("metadata") or {}
        model_type = metadata.get("type", settings.MODEL_TYPE_STANDARD)

        per_customer = None
        if (
            model_type == settings.MODEL_TYPE_RECURRING_EVENT
            and record.get("perCustomer") is not None
        ):
            per_customer = PerCustomerSpend.from_record(record["perCustomer"])

        return cls(
            id=str(record["id"]),
            project_id=str(record.get("projectId", "")),
            name=str(record.get("name", "")),
            revenue_streams=tuple(
                RevenueStream.from_record(r) for r in record.get("revenueStreams", [])
            ),
            cost_categories=tuple(
                CostCategory.from_record(c) for c in record.get("costCategories", [])
            ),
            growth_model=GrowthModel.from_record(record.get("growthModel")),
            per_customer=per_customer,
            version=int(record.get("version", 1)),
            model_type=model_type,
        )


@dataclass
class ForecastPeriodData:
    period: int
    revenue_breakdown: Dict[str, float]
    cost_breakdown: Dict[str, float]
    revenue: float
    costs: float
    profit: float
    cumulative_revenue: float
    cumulative_costs: float
    cumulative_profit: float
    attendance: Optional[float] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)
