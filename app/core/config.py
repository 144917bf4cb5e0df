from datetime import date
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "bellhop-api"

    # Supabase configuration (required)
    supabase_url: str = Field(..., env="SUPABASE_URL")
    supabase_service_key: str = Field(..., env="SUPABASE_SERVICE_KEY")

    # AI assistant
    openai_api_key: str | None = Field(None, env="OPENAI_API_KEY")
    agent_model: str = "gpt-4.1"
    evaluator_model: str = "gpt-4.1-mini"
    agent_max_tool_rounds: int = Field(5, ge=1, le=10)
    tool_timeout_seconds: float = Field(30.0, gt=0)

    # Usage pricing (USD per million tokens); cost is omitted when unset
    model_input_cost_per_million: float | None = None
    model_output_cost_per_million: float | None = None

    # Hotel data
    data_window_start: date = date(2024, 1, 1)
    data_window_end: date = date(2026, 3, 12)
    rate_clamp_policy: Literal["enforce", "advisory"] = "enforce"

    # Weather
    hotel_latitude: float = 40.7455
    hotel_longitude: float = -73.9883
    weather_forecast_url: str = OPEN_METEO_FORECAST_URL
    weather_archive_url: str = OPEN_METEO_ARCHIVE_URL
    weather_timeout_seconds: float = Field(10.0, gt=0)

    # Chat
    chat_rate_limit_max: int = Field(20, ge=1)
    chat_rate_limit_window: int = Field(60, ge=1)

    @model_validator(mode="after")
    def validate_settings(self):
        if not self.supabase_url or not self.supabase_service_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required. "
                "Get these from your Supabase project settings."
            )

        if not self.supabase_url.endswith(".supabase.co"):
            raise ValueError(
                "SUPABASE_URL must be a valid Supabase project URL "
                "(e.g., https://<project>.supabase.co)"
            )

        if self.data_window_start > self.data_window_end:
            raise ValueError("DATA_WINDOW_START must be on or before DATA_WINDOW_END.")

        if (self.model_input_cost_per_million is None) != (
            self.model_output_cost_per_million is None
        ):
            raise ValueError(
                "MODEL_INPUT_COST_PER_MILLION and MODEL_OUTPUT_COST_PER_MILLION must be set together."
            )

        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
