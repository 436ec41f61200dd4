# ABOUTME: Activity plan synthesis on top of a pluggable language-generation capability.
# ABOUTME: Builds the planning context, validates the model's JSON reply and enforces indoor/warning policy.

import json
import logging
import re
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from activity_planner.conditions import is_precipitation, is_storm
from activity_planner.config import PlannerConfig
from activity_planner.errors import PlanFormatError
from activity_planner.models import ActivityPlan, ForecastWindow, PlanningContext, WeatherSnapshot

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


@runtime_checkable
class PlanGenerator(Protocol):
    """Anything that turns a planning context into (ideally JSON) text."""

    async def generate(self, context: PlanningContext) -> str: ...


def extract_json(text: str) -> str:
    """Pull the JSON object out of a model reply, tolerating Markdown fences and chatter."""
    fenced = _FENCE.search(text)
    if fenced:
        text = fenced.group(1)
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end < start:
        raise PlanFormatError("Model reply does not contain a JSON object")
    return text[start : end + 1]


def parse_plan(text: str) -> ActivityPlan:
    """Validate a model reply against the ActivityPlan schema."""
    try:
        return ActivityPlan.model_validate_json(extract_json(text))
    except ValidationError as e:
        raise PlanFormatError(f"Activity plan failed schema validation: {e}") from e


def indoor_required(snapshot: WeatherSnapshot, window: ForecastWindow | None, config: PlannerConfig) -> bool:
    """Indoor alternatives are mandatory for wet or stormy weather."""
    code = snapshot.condition_code
    if is_precipitation(code) or is_storm(code):
        return True
    chance = window.max_precipitation_chance if window else None
    return chance is not None and chance >= config.indoor_precipitation_threshold


def policy_warnings(snapshot: WeatherSnapshot, window: ForecastWindow | None, config: PlannerConfig) -> list[str]:
    """Warnings that must appear in the plan regardless of what the model wrote."""
    warnings = []
    if is_storm(snapshot.condition_code):
        warnings.append(f"{snapshot.conditions} reported: avoid open ground and stay indoors while lightning is possible.")
    if snapshot.wind_gust > config.wind_gust_threshold:
        warnings.append(
            f"Wind gusts up to {snapshot.wind_gust:.1f} m/s: avoid exposed ridges, water sports and cycling."
        )
    if snapshot.humidity >= config.humidity_warning_threshold:
        warnings.append(f"Humidity at {snapshot.humidity:.0f}%: keep exertion light and stay hydrated.")
    chance = window.max_precipitation_chance if window else None
    if chance is not None and chance >= config.precipitation_warning_threshold:
        warnings.append(f"{chance:.0f}% chance of precipitation: carry rain gear.")
    return warnings


class ActivitySynthesizer:
    """Turns a weather snapshot into a validated ActivityPlan.

    Venue and activity content comes from the generator. This class only builds the
    context, checks the reply's shape, and enforces the sections that weather policy
    makes mandatory.
    """

    def __init__(self, generator: PlanGenerator, config: PlannerConfig | None = None):
        self.generator = generator
        self.config = config or PlannerConfig()

    def build_context(self, snapshot: WeatherSnapshot, window: ForecastWindow | None = None) -> PlanningContext:
        return PlanningContext(
            location=snapshot.location,
            weather=snapshot,
            forecast=window,
            indoor_required=indoor_required(snapshot, window, self.config),
            required_warnings=policy_warnings(snapshot, window, self.config),
        )

    async def synthesize(self, snapshot: WeatherSnapshot, window: ForecastWindow | None = None) -> ActivityPlan:
        context = self.build_context(snapshot, window)
        text = await self.generator.generate(context)
        plan = parse_plan(text)

        if context.indoor_required and not plan.indoor:
            raise PlanFormatError(
                f"Plan for {context.location} has no indoor alternatives despite {snapshot.conditions.lower()} conditions"
            )

        warnings = list(dict.fromkeys([*context.required_warnings, *plan.warnings]))
        if warnings != plan.warnings:
            plan = plan.model_copy(update={"warnings": warnings})
        logger.info(
            "Synthesized plan for %s: %d morning, %d afternoon, %d indoor, %d warnings",
            context.location,
            len(plan.morning),
            len(plan.afternoon),
            len(plan.indoor),
            len(plan.warnings),
        )
        return plan


def context_prompt(context: PlanningContext) -> str:
    """Serialize the planning context as the user prompt for the language model."""
    payload = json.dumps(context.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)
    return f"Plan activities for {context.location} based on this weather context:\n\n{payload}"
