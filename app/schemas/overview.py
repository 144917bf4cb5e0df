from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MonthlyOccupancy(CamelModel):
    month: str
    total_rooms: int
    reserved_rooms: int
    occupancy_rate: float


class WeekRate(CamelModel):
    date: str
    day_name: str
    price: float
    total_rooms: int
    reserved_rooms: int
    available_rooms: int
    occupancy_rate: float


class HotelOverviewResponse(CamelModel):
    company: dict[str, Any] | None = None
    services: list[dict[str, Any]]
    total_rooms: int
    monthly_occupancy: list[MonthlyOccupancy]
    week_rates: list[WeekRate]
