# ABOUTME: Explicit configuration object threaded through pipeline construction.
# ABOUTME: Loads endpoints, model name, timeouts and policy thresholds from the environment via python-dotenv.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_MODEL = "anthropic/claude-sonnet-4-5"


class PlannerConfig(BaseModel):
    """Immutable settings shared by every pipeline invocation."""

    model_config = ConfigDict(frozen=True)

    geocoding_url: str = GEOCODING_URL
    forecast_url: str = FORECAST_URL
    language: str = "en"
    geocoding_candidates: int = Field(default=5, ge=1, le=100)

    openrouter_api_key: str = ""
    model_name: str = DEFAULT_MODEL

    # Seconds. Each pipeline stage has its own budget.
    http_timeout: float = Field(default=10.0, gt=0)
    geocode_timeout: float = Field(default=15.0, gt=0)
    weather_timeout: float = Field(default=20.0, gt=0)
    generation_timeout: float = Field(default=90.0, gt=0)

    # 0 disables the daily forecast window.
    forecast_days: int = Field(default=1, ge=0, le=7)

    # Seconds a fetched snapshot is reused for the same location. 0 disables the cache.
    cache_ttl: float = Field(default=0.0, ge=0)

    wind_gust_threshold: float = Field(default=15.0, ge=0)
    humidity_warning_threshold: float = Field(default=90.0, ge=0, le=100)
    indoor_precipitation_threshold: float = Field(default=50.0, ge=0, le=100)
    precipitation_warning_threshold: float = Field(default=80.0, ge=0, le=100)

    @classmethod
    def from_env(cls) -> "PlannerConfig":
        """Build a config from environment variables, loading a .env file first if present."""
        load_dotenv()
        env = os.environ
        values: dict[str, object] = {
            "openrouter_api_key": env.get("OPENROUTER_API_KEY", ""),
            "model_name": env.get("OPENROUTER_MODEL", DEFAULT_MODEL),
        }
        optional = {
            "geocoding_url": "GEOCODING_URL",
            "forecast_url": "FORECAST_URL",
            "language": "PLANNER_LANGUAGE",
            "forecast_days": "PLANNER_FORECAST_DAYS",
            "cache_ttl": "PLANNER_CACHE_TTL",
            "wind_gust_threshold": "PLANNER_WIND_GUST_THRESHOLD",
            "http_timeout": "PLANNER_HTTP_TIMEOUT",
            "geocode_timeout": "PLANNER_GEOCODE_TIMEOUT",
            "weather_timeout": "PLANNER_WEATHER_TIMEOUT",
            "generation_timeout": "PLANNER_GENERATION_TIMEOUT",
        }
        for field, var in optional.items():
            if env.get(var):
                values[field] = env[var]
        return cls.model_validate(values)
