# ABOUTME: WMO weather code lookup used by Open-Meteo responses.
# ABOUTME: Maps integer codes to condition labels and groups them into precipitation/storm categories.

UNKNOWN_CONDITION = "Unknown"

WEATHER_CODES: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

STORM_CODES = frozenset({95, 96, 99})

# Drizzle, rain, snow, showers and thunderstorms all start at 51 in the WMO table.
PRECIPITATION_THRESHOLD = 51


def classify(code: int) -> str:
    """Return the condition label for a WMO weather code, or "Unknown" if unmapped."""
    return WEATHER_CODES.get(code, UNKNOWN_CONDITION)


def is_precipitation(code: int) -> bool:
    return code >= PRECIPITATION_THRESHOLD


def is_storm(code: int) -> bool:
    return code in STORM_CODES
