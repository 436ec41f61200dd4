# ABOUTME: Shared test fixtures for the activity planner test suite.
# ABOUTME: Provides Open-Meteo payloads, a routing mock HTTP client and a stub plan generator.

import json
from unittest.mock import AsyncMock

import httpx
import pydantic_ai.models
import pytest

from activity_planner.config import GEOCODING_URL
from activity_planner.models import PlanningContext

# Prevent accidental LLM calls during testing
pydantic_ai.models.ALLOW_MODEL_REQUESTS = False


TOKYO_GEOCODE = {
    "results": [
        {
            "name": "Tokyo",
            "latitude": 35.6895,
            "longitude": 139.69171,
            "timezone": "Asia/Tokyo",
            "country": "Japan",
            "country_code": "JP",
            "admin1": "Tokyo",
        }
    ]
}


def current_payload(
    temperature=22.5,
    apparent=23.1,
    humidity=65,
    wind=18.0,
    gust=36.0,
    code=2,
    units: dict | None = None,
) -> dict:
    """Open-Meteo `current` response in service-default units (°C, km/h)."""
    return {
        "latitude": 35.7,
        "longitude": 139.6875,
        "timezone": "Asia/Tokyo",
        "current_units": units
        or {
            "temperature_2m": "°C",
            "apparent_temperature": "°C",
            "relative_humidity_2m": "%",
            "wind_speed_10m": "km/h",
            "wind_gusts_10m": "km/h",
            "weather_code": "wmo code",
        },
        "current": {
            "time": "2026-10-16T09:00",
            "temperature_2m": temperature,
            "apparent_temperature": apparent,
            "relative_humidity_2m": humidity,
            "wind_speed_10m": wind,
            "wind_gusts_10m": gust,
            "weather_code": code,
        },
    }


def daily_payload(days: int = 1, precipitation=10, code=2) -> dict:
    return {
        "latitude": 35.7,
        "longitude": 139.6875,
        "daily_units": {"temperature_2m_max": "°C", "temperature_2m_min": "°C"},
        "daily": {
            "time": [f"2026-10-{16 + i}" for i in range(days)],
            "temperature_2m_max": [24.0 + i for i in range(days)],
            "temperature_2m_min": [16.5 + i for i in range(days)],
            "weather_code": [code] * days,
            "precipitation_probability_max": [precipitation] * days,
        },
    }


def plan_dict(indoor: bool = True, warnings: list[str] | None = None) -> dict:
    item = {"name": "Meiji Shrine walk", "description": "Stroll the forested approach", "location": "Shibuya"}
    return {
        "summary": {
            "conditions": "Partly cloudy",
            "tempRangeC": "16°C to 24°C",
            "tempRangeF": "61°F to 75°F",
            "precipChance": "10%",
        },
        "morning": [{**item, "timing": "8:00 - 10:00"}],
        "afternoon": [
            {
                "name": "Sumida River cruise",
                "description": "Water bus from Asakusa to Odaiba",
                "location": "Asakusa pier",
                "note": "Buy tickets at the pier",
            }
        ],
        "indoor": (
            [{"name": "teamLab Planets", "description": "Immersive digital art", "location": "Toyosu"}] if indoor else []
        ),
        "warnings": warnings or [],
    }


def plan_json(**kwargs) -> str:
    return json.dumps(plan_dict(**kwargs), ensure_ascii=False)


def _response(url: str, payload: dict) -> httpx.Response:
    return httpx.Response(200, json=payload, request=httpx.Request("GET", url))


def routing_client(geocode=TOKYO_GEOCODE, current=None, daily=None) -> AsyncMock:
    """Mock httpx.AsyncClient that answers by endpoint: geocoding, current conditions, or daily forecast.

    A route given an exception instance raises it instead of answering.
    """
    routes = {
        "geocode": geocode,
        "current": current if current is not None else current_payload(),
        "daily": daily if daily is not None else daily_payload(),
    }

    async def get(url, params=None, **kwargs):
        if url == GEOCODING_URL:
            route = "geocode"
        elif "current" in (params or {}):
            route = "current"
        else:
            route = "daily"
        payload = routes[route]
        if isinstance(payload, Exception):
            raise payload
        return _response(url, payload)

    mock = AsyncMock(spec=httpx.AsyncClient)
    mock.get.side_effect = get
    return mock


def requested_urls(client: AsyncMock) -> list[str]:
    return [call.args[0] for call in client.get.call_args_list]


class StubGenerator:
    """PlanGenerator returning a canned reply and recording every context it receives."""

    def __init__(self, reply: str | None = None):
        self.reply = reply if reply is not None else plan_json()
        self.contexts: list[PlanningContext] = []

    async def generate(self, context: PlanningContext) -> str:
        self.contexts.append(context)
        return self.reply


@pytest.fixture
def stub_generator() -> StubGenerator:
    return StubGenerator()


_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_MODEL",
    "GEOCODING_URL",
    "FORECAST_URL",
    "PLANNER_FORECAST_DAYS",
    "PLANNER_CACHE_TTL",
    "PLANNER_WIND_GUST_THRESHOLD",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without planner variables and with .env loading disabled."""
    monkeypatch.setattr("activity_planner.config.load_dotenv", lambda: False)
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
