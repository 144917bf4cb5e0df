"""Input models for the Bellhop tools.

Every model is strict (no silent coercion of strings to numbers or booleans),
rejects unknown keys, and uses camelCase aliases on the wire so the rendered
function-calling schema matches what the model sends back.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def _check_iso_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"'{value}' is not a valid calendar date (YYYY-MM-DD)") from exc
    return value


IsoDate = Annotated[
    str,
    Field(pattern=r"^\d{4}-\d{2}-\d{2}$", json_schema_extra={"format": "date"}),
    AfterValidator(_check_iso_date),
]

FocusArea = Literal[
    "weekend_rates",
    "weekday_rates",
    "event_driven",
    "competitor_response",
    "occupancy_optimization",
]


class ToolInput(BaseModel):
    model_config = ConfigDict(
        strict=True,
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _DateRangeMixin(ToolInput):
    @model_validator(mode="after")
    def _start_before_end(self):
        if date.fromisoformat(self.start_date) > date.fromisoformat(self.end_date):
            raise ValueError("startDate must be on or before endDate")
        return self


class DateRange(_DateRangeMixin):
    start_date: IsoDate = Field(..., description="Start date for analysis (YYYY-MM-DD)")
    end_date: IsoDate = Field(..., description="End date for analysis (YYYY-MM-DD)")


class GetOccupancyDataInput(_DateRangeMixin):
    start_date: IsoDate = Field(
        ..., description="Start date in YYYY-MM-DD format (must be 2024-01-01 or later)"
    )
    end_date: IsoDate = Field(
        ..., description="End date in YYYY-MM-DD format (must be 2026-03-12 or earlier)"
    )
    include_yoy_comparison: bool = Field(
        True,
        alias="includeYoYComparison",
        description="Include same period last year comparison",
    )
    as_of_date: IsoDate | None = Field(
        None,
        description="Only count bookings made before this date (defaults to today)",
    )


class GetRoomRatesInput(_DateRangeMixin):
    start_date: IsoDate = Field(..., description="Start date in YYYY-MM-DD format")
    end_date: IsoDate = Field(..., description="End date in YYYY-MM-DD format")


class RateAdjustment(ToolInput):
    type: Literal["percentage", "fixed_amount"] = Field(
        ..., description="Type of price adjustment"
    )
    value: float = Field(
        ...,
        allow_inf_nan=False,
        description="Adjustment value (e.g., 10 for 10% or 50 for $50)",
    )
    operation: Literal["increase", "decrease", "set_to"] = Field(
        ..., description="How to apply the adjustment"
    )

    def describe(self) -> str:
        if self.type == "percentage":
            return f"{self.operation} by {self.value:g}%"
        return f"{self.operation} by ${self.value:g}"


class UpdateRoomRatesInput(_DateRangeMixin):
    start_date: IsoDate = Field(..., description="Start date in YYYY-MM-DD format")
    end_date: IsoDate = Field(..., description="End date in YYYY-MM-DD format")
    adjustment: RateAdjustment
    reason: str | None = Field(None, description="Reason for rate change (for audit trail)")


class ExecutePricingActionInput(_DateRangeMixin):
    start_date: IsoDate = Field(..., description="Start date for rate change (YYYY-MM-DD)")
    end_date: IsoDate = Field(..., description="End date for rate change (YYYY-MM-DD)")
    adjustment: RateAdjustment
    reason: str | None = Field(None, description="Reason for rate change (for audit trail)")
    user_approval: bool = Field(
        ..., description="Confirmation that user has approved this rate change"
    )


class GetRateClampsInput(ToolInput):
    service_names: list[str] | None = Field(
        None, description="Filter by specific service names"
    )


class _MinMaxMixin(ToolInput):
    @model_validator(mode="after")
    def _min_not_above_max(self):
        if (
            self.min_rate is not None
            and self.max_rate is not None
            and self.min_rate > self.max_rate
        ):
            raise ValueError("minRate must be less than or equal to maxRate")
        return self


class RateClampUpdate(_MinMaxMixin):
    service_name: str = Field(
        ..., min_length=1, description="Name of service to update (e.g., 'Base Rate')"
    )
    min_rate: float | None = Field(
        None, ge=0, allow_inf_nan=False, description="New minimum rate"
    )
    max_rate: float | None = Field(
        None, ge=0, allow_inf_nan=False, description="New maximum rate"
    )


class UpdateRateClampsInput(ToolInput):
    updates: list[RateClampUpdate] = Field(..., min_length=1)
    reason: str | None = Field(None, description="Reason for rate clamp change")


class ServiceClamp(_MinMaxMixin):
    target: Literal["weekend", "weekday", "all"] = Field(
        ..., description="Which segment of the stay pattern this clamp targets."
    )
    min_rate: float | None = Field(
        None,
        ge=0,
        allow_inf_nan=False,
        description="Optional minimum rate threshold to enforce.",
    )
    max_rate: float | None = Field(
        None,
        ge=0,
        allow_inf_nan=False,
        description="Optional maximum rate threshold to enforce.",
    )
    direction: Literal["tighten", "loosen"] = Field(
        ...,
        description="Whether to tighten (raise floors) or loosen (lower floors) the clamp.",
    )
    notes: str | None = Field(
        None, description="Human-readable notes that explain the intent of the clamp."
    )


class UpdateServiceClampInput(ToolInput):
    service_name: str = Field(
        ...,
        min_length=1,
        description="Name of the service whose clamp configuration should be updated.",
    )
    clamp: ServiceClamp = Field(..., description="The clamp payload to persist.")
    reason: str | None = Field(
        None, description="Why the clamp is changing, used for logging and audit trails."
    )


class GetHotelSettingsInput(ToolInput):
    requested_fields: list[str] | None = Field(
        None, alias="fields", description="Specific fields to retrieve"
    )


class UpdateHotelSettingsInput(ToolInput):
    updates: dict[str, str | None] = Field(
        ..., description="Key-value pairs of fields to update"
    )
    reason: str | None = Field(None, description="Reason for settings change")


class AnalyzePricingOpportunitiesInput(ToolInput):
    date_range: DateRange
    focus_area: FocusArea | None = Field(
        None, description="Specific area to focus the pricing analysis on"
    )


class GetWeatherInput(ToolInput):
    include_historical: bool = Field(
        True, description="Include weather from same day last year"
    )
    days_back: int = Field(
        365, ge=1, le=3650, description="How many days back for historical data"
    )


class GetPricingSopInput(ToolInput):
    pass
