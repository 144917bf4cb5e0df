"""The Bellhop tool catalog.

Tools are registered once at startup; the registry is shared read-only across
requests. Per-request state (database client, settings, chat id) travels in
AgentContext.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from supabase import Client

from app.agents import tools
from app.agents.registry import ToolDefinition, ToolRegistry
from app.core.config import Settings, get_settings
from app.schemas.tools import (
    AnalyzePricingOpportunitiesInput,
    ExecutePricingActionInput,
    GetHotelSettingsInput,
    GetOccupancyDataInput,
    GetPricingSopInput,
    GetRateClampsInput,
    GetRoomRatesInput,
    GetWeatherInput,
    UpdateHotelSettingsInput,
    UpdateRateClampsInput,
    UpdateRoomRatesInput,
    UpdateServiceClampInput,
)

MUTATING_TOOLS = frozenset(
    {
        "updateRoomRates",
        "executePricingAction",
        "updateRateClamps",
        "updateServiceClamp",
        "updateHotelSettings",
    }
)


@dataclass
class AgentContext:
    """Shared context passed to all tool calls of one turn."""

    client: Client
    settings: Settings
    chat_id: str | None = None
    source: str = "agent"


def build_tool_registry(settings: Settings) -> ToolRegistry:
    window = f"{settings.data_window_start.isoformat()} to {settings.data_window_end.isoformat()}"
    catalog = [
        (
            "getOccupancyData",
            "Get hotel occupancy rates for date range with year-over-year comparison 'as of' today. "
            f"DATA AVAILABLE: {window} only. Use dates within this range.",
            GetOccupancyDataInput,
            tools.get_occupancy_data,
        ),
        (
            "getRoomRates",
            "Get current room rates for specified date range",
            GetRoomRatesInput,
            tools.get_room_rates,
        ),
        (
            "updateRoomRates",
            "Update room rates for specified date range using percentage or dollar adjustments",
            UpdateRoomRatesInput,
            tools.update_room_rates,
        ),
        (
            "executePricingAction",
            "Execute approved pricing changes with validation and tracking. Implements the price "
            "adjustments recommended by the pricing analysis. Requires userApproval=true, which "
            "must only be sent after the user explicitly confirmed the change.",
            ExecutePricingActionInput,
            tools.execute_pricing_action,
        ),
        (
            "getRateClamps",
            "Get current rate limits (min/max prices) for all services",
            GetRateClampsInput,
            tools.get_rate_clamps,
        ),
        (
            "updateRateClamps",
            "Update rate limits (min/max prices) for specified services",
            UpdateRateClampsInput,
            tools.update_rate_clamps,
        ),
        (
            "updateServiceClamp",
            "Update the clamp metadata for a given service, typically used to tighten or loosen "
            "weekend restrictions.",
            UpdateServiceClampInput,
            tools.update_service_clamp,
        ),
        (
            "getHotelSettings",
            "Get hotel configuration and company information",
            GetHotelSettingsInput,
            tools.get_hotel_settings,
        ),
        (
            "updateHotelSettings",
            "Update hotel configuration and company information",
            UpdateHotelSettingsInput,
            tools.update_hotel_settings,
        ),
        (
            "analyzePricingOpportunities",
            "Analyze current room rates against market data and occupancy to identify specific "
            "pricing opportunities. Returns actionable pricing recommendations with specific price "
            "adjustments, expected revenue impact, and confidence levels.",
            AnalyzePricingOpportunitiesInput,
            tools.analyze_pricing_opportunities,
        ),
        (
            "getWeather",
            "Get current weather and historical comparison for the hotel location",
            GetWeatherInput,
            tools.get_weather,
        ),
        (
            "getPricingSop",
            "Retrieve the hotel's pricing standard operating procedure as Markdown",
            GetPricingSopInput,
            tools.get_pricing_sop,
        ),
    ]

    return ToolRegistry(
        [
            ToolDefinition(
                name=name,
                description=description,
                input_model=input_model,
                handler=handler,
                mutating=name in MUTATING_TOOLS,
            )
            for name, description, input_model, handler in catalog
        ]
    )


@lru_cache
def get_tool_registry() -> ToolRegistry:
    return build_tool_registry(get_settings())
