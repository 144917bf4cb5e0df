"""Open-Meteo client used by the getWeather tool."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import httpx

from app.agents.exceptions import UpstreamError

logger = logging.getLogger(__name__)


def _first(payload: dict, section: str, key: str) -> Any:
    values = (payload.get(section) or {}).get(key) or []
    return values[0] if values else None


async def _get_json(client: httpx.AsyncClient, url: str, params: dict) -> dict:
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as exc:
        logger.warning(f"Weather request to {url} failed: {exc}")
        raise UpstreamError("Failed to fetch weather data", details=str(exc)) from exc
    except ValueError as exc:
        raise UpstreamError("Failed to fetch weather data", details="Invalid JSON from weather service") from exc


async def get_weather_report(
    latitude: float,
    longitude: float,
    *,
    forecast_url: str,
    archive_url: str,
    include_historical: bool = True,
    days_back: int = 365,
    today: date | None = None,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    """Current conditions plus, optionally, the same readings `days_back` days ago."""
    today = today or date.today()
    coordinates = {"latitude": latitude, "longitude": longitude}

    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport) as client:
        current_payload = await _get_json(
            client,
            forecast_url,
            {
                **coordinates,
                "current": "temperature_2m,weather_code,wind_speed_10m",
                "daily": "temperature_2m_max,temperature_2m_min",
                "timezone": "auto",
            },
        )

        historical_payload = None
        if include_historical:
            historical_day = (today - timedelta(days=days_back)).isoformat()
            historical_payload = await _get_json(
                client,
                archive_url,
                {
                    **coordinates,
                    "start_date": historical_day,
                    "end_date": historical_day,
                    "daily": "temperature_2m_max,temperature_2m_min,weather_code",
                    "timezone": "auto",
                },
            )

    current_block = current_payload.get("current") or {}
    current = {
        "date": today.isoformat(),
        "temperature": current_block.get("temperature_2m"),
        "temperatureMax": _first(current_payload, "daily", "temperature_2m_max"),
        "temperatureMin": _first(current_payload, "daily", "temperature_2m_min"),
        "weatherCode": current_block.get("weather_code"),
        "windSpeed": current_block.get("wind_speed_10m"),
    }

    historical = None
    comparison = None
    if historical_payload is not None:
        historical = {
            "date": _first(historical_payload, "daily", "time"),
            "temperatureMax": _first(historical_payload, "daily", "temperature_2m_max"),
            "temperatureMin": _first(historical_payload, "daily", "temperature_2m_min"),
            "weatherCode": _first(historical_payload, "daily", "weather_code"),
        }
        if current_payload.get("daily"):
            comparison = {
                "temperatureMaxChange": (current["temperatureMax"] or 0)
                - (historical["temperatureMax"] or 0),
                "temperatureMinChange": (current["temperatureMin"] or 0)
                - (historical["temperatureMin"] or 0),
            }

    return {
        "coordinates": coordinates,
        "current": current,
        "historical": historical,
        "comparison": comparison,
    }
