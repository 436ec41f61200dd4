# ABOUTME: Pydantic BaseModels for locations, weather snapshots, forecasts and activity plans.
# ABOUTME: Models are immutable and serialize with camelCase aliases for the tool and workflow contracts.

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ResolvedLocation(_Frozen):
    """Geocoded location with coordinates and its canonical display name."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    display_name: str = Field(min_length=1)
    country: str | None = None
    timezone: str | None = None


class WeatherSnapshot(_Frozen):
    """Current conditions normalized to °C and m/s."""

    temperature: float
    feels_like: float
    humidity: float = Field(ge=0, le=100)
    wind_speed: float = Field(ge=0)
    wind_gust: float = Field(ge=0)
    condition_code: int
    conditions: str = Field(min_length=1)
    location: str

    @model_validator(mode="after")
    def _gust_not_below_speed(self) -> "WeatherSnapshot":
        if self.wind_gust < self.wind_speed:
            raise ValueError(f"wind_gust ({self.wind_gust}) is below wind_speed ({self.wind_speed})")
        return self

    def tool_payload(self) -> dict:
        """Fields exposed by the weather tool contract."""
        return self.model_dump(by_alias=True, exclude={"condition_code"})


class DailyForecast(_Frozen):
    """One day of the forecast window."""

    date: date
    max_temp: float
    min_temp: float
    condition_code: int
    precipitation_chance: float | None = Field(default=None, ge=0, le=100)


class ForecastWindow(_Frozen):
    """Chronologically ordered daily forecast, one to seven days long."""

    days: list[DailyForecast] = Field(min_length=1, max_length=7)

    @model_validator(mode="after")
    def _chronological(self) -> "ForecastWindow":
        for earlier, later in zip(self.days, self.days[1:]):
            if later.date <= earlier.date:
                raise ValueError(f"forecast days out of order: {earlier.date} then {later.date}")
        return self

    @property
    def max_precipitation_chance(self) -> float | None:
        chances = [d.precipitation_chance for d in self.days if d.precipitation_chance is not None]
        return max(chances) if chances else None


class ActivityItem(_Frozen):
    name: str = Field(min_length=1)
    description: str
    location: str
    timing: str | None = None
    note: str | None = None


class PlanSummary(_Frozen):
    conditions: str
    temp_range_c: str
    temp_range_f: str
    precip_chance: str


class ActivityPlan(_Frozen):
    """Validated activity recommendation for a single request."""

    summary: PlanSummary
    morning: list[ActivityItem] = Field(min_length=1)
    afternoon: list[ActivityItem] = Field(min_length=1)
    indoor: list[ActivityItem] = []
    warnings: list[str] = []


class PlanningContext(_Frozen):
    """Structured input handed to the language model when planning activities."""

    location: str
    weather: WeatherSnapshot
    forecast: ForecastWindow | None = None
    indoor_required: bool = False
    required_warnings: list[str] = []


class PipelineResult(_Frozen):
    """Typed outputs of every stage of a completed pipeline run."""

    query: str
    location: ResolvedLocation
    weather: WeatherSnapshot
    forecast: ForecastWindow | None = None
    plan: ActivityPlan
