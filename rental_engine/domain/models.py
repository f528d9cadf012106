"""Domain models for the rental conflict and availability engine."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from rental_engine.config import get_settings
from rental_engine.domain.dates import to_calendar_date


class OrderStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


ACTIVE_STATUSES = frozenset(
    {OrderStatus.PROCESSING, OrderStatus.ON_HOLD, OrderStatus.COMPLETED}
)


class ConflictSeverity(StrEnum):
    """Conflict tiers, declared lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    @classmethod
    def highest(cls, severities) -> ConflictSeverity | None:
        """Return the most severe tier in *severities*, or None if empty."""
        return max(severities, key=lambda s: s.rank, default=None)


class ConflictType(StrEnum):
    FULL = "full"
    PARTIAL = "partial"


class AvailabilityStatus(StrEnum):
    UNAVAILABLE = "unavailable"
    REQUIRES_COORDINATION = "requires_coordination"
    PARTIALLY_AVAILABLE = "partially_available"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PrimaryAction(StrEnum):
    NONE = "none"
    RESCHEDULE_REQUIRED = "reschedule_required"
    COORDINATION_REQUIRED = "coordination_required"
    MONITORING_RECOMMENDED = "monitoring_recommended"


class UrgencyLevel(StrEnum):
    IMMEDIATE = "immediate"
    HIGH = "high"
    NORMAL = "normal"


class ReturnBucket(StrEnum):
    EXPIRED = "expired"
    CRITICAL = "critical"
    WARNING = "warning"
    ACTIVE = "active"

    @classmethod
    def for_days(cls, days_remaining: int) -> ReturnBucket:
        if days_remaining < 0:
            return cls.EXPIRED
        if days_remaining <= 3:
            return cls.CRITICAL
        if days_remaining <= 7:
            return cls.WARNING
        return cls.ACTIVE


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class DateRange(CamelModel):
    """Inclusive calendar-date range."""

    start: date
    end: date

    @model_validator(mode="after")
    def _end_not_before_start(self) -> DateRange:
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


class ReservedItem(CamelModel):
    product_id: int
    product_name: str
    quantity: int = 1
    image: str | None = None


class Order(CamelModel):
    id: int
    project_name: str = ""
    status: OrderStatus
    start_date: date | None = None
    end_date: date | None = None
    reserved_items: list[ReservedItem] = Field(default_factory=list)
    customer_name: str = ""
    customer_email: str = ""
    total: float = 0
    currency: str = ""
    created_at: str = ""
    modified_at: str = ""

    @property
    def date_range(self) -> DateRange | None:
        if self.start_date is None or self.end_date is None:
            return None
        return DateRange(start=self.start_date, end=self.end_date)

    @property
    def product_ids(self) -> set[int]:
        return {item.product_id for item in self.reserved_items}


class ProductInfo(CamelModel):
    id: int
    name: str = ""
    sku: str = ""
    images: list[str] = Field(default_factory=list)
    description: str = ""
    stock_status: str = "unknown"
    price: float = 0


class ConflictingProduct(CamelModel):
    product_id: int
    product_name: str
    quantity: int
    conflict_type: ConflictType
    availability_status: AvailabilityStatus
    product_sku: str = ""
    product_images: list[str] = Field(default_factory=list)
    product_description: str = ""
    product_stock_status: str = "unknown"
    product_price: float = 0


class ResolutionSuggestions(CamelModel):
    can_reschedule: bool
    can_share_equipment: bool
    contact_required: bool
    priority: Priority
    alternative_dates: list[DateRange] | None = None


class OrderDetails(CamelModel):
    total_value: float = 0
    currency: str = ""
    created_date: str = ""
    last_modified: str = ""
    order_url: str = ""


class ConflictRecord(CamelModel):
    order_id: int
    order_project: str
    status: OrderStatus
    customer_name: str
    customer_email: str
    candidate_range: DateRange
    conflicting_range: DateRange
    work_days: int
    overlap_days: int
    overlap_percentage: int
    conflict_severity: ConflictSeverity
    conflicting_products: list[ConflictingProduct]
    resolution_suggestions: ResolutionSuggestions
    order_details: OrderDetails = Field(default_factory=OrderDetails)


class ImpactAnalysis(CamelModel):
    total_affected_products: int = 0
    total_affected_orders: int = 0
    critical_conflicts: int = 0
    high_priority_conflicts: int = 0
    average_overlap_percentage: int = 0
    requires_immediate_attention: bool = False
    can_be_resolved: bool = True


class Recommendations(CamelModel):
    primary_action: PrimaryAction = PrimaryAction.NONE
    urgency_level: UrgencyLevel = UrgencyLevel.NORMAL
    contact_customers: list[int] = Field(default_factory=list)
    alternative_products: bool = False


class RequestedRange(CamelModel):
    requested: DateRange
    work_days: int


class ConflictSummary(CamelModel):
    total_conflicts: int
    conflicting_orders: list[int]
    conflicting_products: list[int]
    date_range: RequestedRange
    severity_level: ConflictSeverity | Literal["none"]
    impact_analysis: ImpactAnalysis
    recommendations: Recommendations


class EquipmentInFieldRow(CamelModel):
    product_id: int | None = None
    product_name: str
    product_image: str
    quantity: int = 1
    order_id: int
    order_project: str
    end_date: date
    status: OrderStatus
    days_remaining: int

    @computed_field
    @property
    def bucket(self) -> ReturnBucket:
        return ReturnBucket.for_days(self.days_remaining)


class FieldStats(CamelModel):
    total: int = 0
    expiring: int = 0
    expired: int = 0
    active: int = 0


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ConflictCheckRequest(CamelModel):
    current_order_id: PositiveInt
    product_ids: list[PositiveInt] = Field(min_length=1)
    start_date: date
    end_date: date

    @field_validator("current_order_id", "product_ids", mode="before")
    @classmethod
    def _reject_booleans(cls, value):
        # pydantic would otherwise coerce True to 1
        if isinstance(value, bool):
            raise ValueError("must be an integer, not a boolean")
        if isinstance(value, list) and any(isinstance(v, bool) for v in value):
            raise ValueError("must contain integers, not booleans")
        return value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _normalise_date(cls, value):
        if isinstance(value, (str, datetime)):
            return to_calendar_date(value, get_settings().engine.reference_timezone)
        return value

    @model_validator(mode="after")
    def _start_not_after_end(self) -> ConflictCheckRequest:
        if self.start_date > self.end_date:
            raise ValueError("startDate must be on or before endDate")
        return self

    @property
    def date_range(self) -> DateRange:
        return DateRange(start=self.start_date, end=self.end_date)


class RequestInfo(CamelModel):
    current_order_id: int
    product_ids: list[int]
    date_range: DateRange


class ConflictCheckResponse(CamelModel):
    success: bool = True
    data: list[ConflictRecord]
    summary: ConflictSummary
    message: str
    timestamp: datetime
    request_info: RequestInfo


class RentedEquipmentResponse(CamelModel):
    as_of: date
    rows: list[EquipmentInFieldRow]
    stats: FieldStats
