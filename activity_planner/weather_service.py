# ABOUTME: Service layer for Open-Meteo geocoding and forecast API calls and response parsing.
# ABOUTME: Resolves location queries, fetches current conditions and daily forecasts, normalizing units to °C and m/s.

import logging
from datetime import date

import httpx

from activity_planner.conditions import classify
from activity_planner.config import PlannerConfig
from activity_planner.errors import (
    InvalidInputError,
    LocationNotFoundError,
    MalformedResponseError,
    UpstreamServiceError,
)
from activity_planner.models import DailyForecast, ForecastWindow, ResolvedLocation, WeatherSnapshot

logger = logging.getLogger(__name__)

CURRENT_PARAMS = (
    "temperature_2m,apparent_temperature,relative_humidity_2m,"
    "wind_speed_10m,wind_gusts_10m,weather_code"
)

DAILY_PARAMS = "temperature_2m_max,temperature_2m_min,weather_code,precipitation_probability_max"

# Open-Meteo unit labels -> factor to metres per second.
_WIND_TO_MS = {
    "m/s": 1.0,
    "km/h": 1 / 3.6,
    "mp/h": 0.44704,
    "mph": 0.44704,
    "kn": 0.514444,
}

_DEFAULT_CONFIG = PlannerConfig()


async def resolve_location(
    client: httpx.AsyncClient,
    query: str,
    config: PlannerConfig = _DEFAULT_CONFIG,
) -> ResolvedLocation:
    """Geocode a free-text location to coordinates using Open-Meteo geocoding API.

    The first result is authoritative. A multi-part query such as "Springfield, Illinois"
    that finds nothing verbatim is looked up once more by its leading part, keeping only
    candidates whose region, country or country code match the trailing parts.
    """
    name = query.strip() if isinstance(query, str) else ""
    if not name:
        raise InvalidInputError("Location query must not be empty", query=query)

    results = await _search(client, name, 1, config)
    if not results and "," in name:
        head, *qualifiers = [part.strip() for part in name.split(",")]
        qualifiers = [q.casefold() for q in qualifiers if q]
        if head and qualifiers:
            candidates = await _search(client, head, config.geocoding_candidates, config)
            results = [r for r in candidates if _matches_qualifiers(r, qualifiers)]

    if not results:
        logger.info("No geocoding results for %r", query)
        raise LocationNotFoundError(query)

    r = results[0]
    try:
        return ResolvedLocation(
            latitude=r["latitude"],
            longitude=r["longitude"],
            display_name=r["name"],
            country=r.get("country"),
            timezone=r.get("timezone"),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Malformed geocoding result for %r: %s", query, e)
        raise MalformedResponseError(f"Geocoding result for '{query}' is missing fields: {e}") from e


async def fetch_weather(
    client: httpx.AsyncClient,
    location: ResolvedLocation,
    config: PlannerConfig = _DEFAULT_CONFIG,
) -> WeatherSnapshot:
    """Fetch current conditions for a resolved location from Open-Meteo forecast API."""
    data = await _get_json(
        client,
        config.forecast_url,
        {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": CURRENT_PARAMS,
            "timezone": location.timezone or "auto",
        },
        "Weather",
    )
    return parse_current_data(data, location.display_name)


async def fetch_forecast(
    client: httpx.AsyncClient,
    location: ResolvedLocation,
    days: int = 1,
    config: PlannerConfig = _DEFAULT_CONFIG,
) -> ForecastWindow:
    """Fetch a one-to-seven day daily forecast window for a resolved location."""
    if not 1 <= days <= 7:
        raise InvalidInputError(f"Forecast window must be 1-7 days, got {days}")
    data = await _get_json(
        client,
        config.forecast_url,
        {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "daily": DAILY_PARAMS,
            "forecast_days": days,
            "timezone": location.timezone or "auto",
        },
        "Forecast",
    )
    return parse_daily_data(data)


def parse_current_data(data: dict, location_name: str) -> WeatherSnapshot:
    """Normalize an Open-Meteo `current` block into a WeatherSnapshot."""
    current = data.get("current")
    if not isinstance(current, dict):
        logger.error("Weather response has no 'current' block")
        raise MalformedResponseError("Weather response is missing the 'current' block")
    units = data.get("current_units") or {}

    temperature = _to_celsius(_number(current, "temperature_2m"), units.get("temperature_2m"))
    feels_like = _to_celsius(_number(current, "apparent_temperature"), units.get("apparent_temperature"))
    humidity = min(max(_number(current, "relative_humidity_2m"), 0.0), 100.0)
    wind_speed = max(_to_ms(_number(current, "wind_speed_10m"), units.get("wind_speed_10m")), 0.0)
    wind_gust = max(_to_ms(_number(current, "wind_gusts_10m"), units.get("wind_gusts_10m")), wind_speed)
    code = int(_number(current, "weather_code"))

    return WeatherSnapshot(
        temperature=temperature,
        feels_like=feels_like,
        humidity=humidity,
        wind_speed=wind_speed,
        wind_gust=wind_gust,
        condition_code=code,
        conditions=classify(code),
        location=location_name,
    )


def parse_daily_data(data: dict) -> ForecastWindow:
    """Parse Open-Meteo column-oriented daily data into a row-oriented ForecastWindow."""
    raw = data.get("daily")
    if not isinstance(raw, dict) or not raw.get("time"):
        logger.error("Forecast response has no daily data")
        raise MalformedResponseError("Forecast response is missing the 'daily' block")
    units = data.get("daily_units") or {}

    days = []
    try:
        for i, d in enumerate(raw["time"]):
            chance = _get_at(raw, "precipitation_probability_max", i)
            days.append(
                DailyForecast(
                    date=date.fromisoformat(d),
                    max_temp=_to_celsius(float(_get_at(raw, "temperature_2m_max", i)), units.get("temperature_2m_max")),
                    min_temp=_to_celsius(float(_get_at(raw, "temperature_2m_min", i)), units.get("temperature_2m_min")),
                    condition_code=int(_get_at(raw, "weather_code", i)),
                    precipitation_chance=None if chance is None else float(chance),
                )
            )
        return ForecastWindow(days=days)
    except (TypeError, ValueError) as e:
        logger.error("Malformed daily forecast data: %s", e)
        raise MalformedResponseError(f"Forecast response has invalid daily data: {e}") from e


async def _search(client: httpx.AsyncClient, name: str, count: int, config: PlannerConfig) -> list[dict]:
    data = await _get_json(
        client,
        config.geocoding_url,
        {"name": name, "count": count, "language": config.language},
        "Geocoding",
    )
    results = data.get("results")
    return results if isinstance(results, list) else []


def _matches_qualifiers(result: dict, qualifiers: list[str]) -> bool:
    known = {
        str(result[key]).casefold()
        for key in ("admin1", "country", "country_code")
        if result.get(key)
    }
    return all(q in known for q in qualifiers)


async def _get_json(client: httpx.AsyncClient, url: str, params: dict, service: str) -> dict:
    """GET a JSON object, mapping transport and HTTP failures to UpstreamServiceError."""
    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("%s API request failed: %s", service, e)
        raise UpstreamServiceError(f"{service} API request failed: {e}") from e
    try:
        data = resp.json()
    except ValueError as e:
        logger.error("%s API returned invalid JSON", service)
        raise MalformedResponseError(f"{service} API returned invalid JSON") from e
    if not isinstance(data, dict):
        raise MalformedResponseError(f"{service} API returned {type(data).__name__}, expected an object")
    return data


def _number(block: dict, key: str) -> float:
    value = block.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.error("Weather response field %r is missing or not numeric: %r", key, value)
        raise MalformedResponseError(f"Weather response field '{key}' is missing or not numeric")
    return float(value)


def _to_celsius(value: float, unit: str | None) -> float:
    if unit in (None, "°C", "C"):
        return round(value, 2)
    if unit in ("°F", "F"):
        return round((value - 32) * 5 / 9, 2)
    raise MalformedResponseError(f"Unsupported temperature unit: {unit}")


def _to_ms(value: float, unit: str | None) -> float:
    # The forecast API reports wind in km/h unless told otherwise.
    factor = _WIND_TO_MS.get(unit or "km/h")
    if factor is None:
        raise MalformedResponseError(f"Unsupported wind speed unit: {unit}")
    return round(value * factor, 2)


def _get_at(data: dict, key: str, index: int):
    """Safely get value at index from a column array, returning None if missing."""
    col = data.get(key)
    if col is None or index >= len(col):
        return None
    return col[index]
