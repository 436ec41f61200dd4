# ABOUTME: Tool and workflow contracts the planner exposes to a conversational layer.
# ABOUTME: Plain async entry points plus their registrations on the chat agent via decorators.

import logging

from pydantic_ai import ModelRetry, RunContext

from activity_planner.agent import AgentPlanGenerator, chat_agent
from activity_planner.deps import PlannerDeps
from activity_planner.errors import PlannerError, UpstreamServiceError
from activity_planner.pipeline import WeatherPipeline
from activity_planner.synthesizer import ActivitySynthesizer
from activity_planner.weather_service import fetch_weather, resolve_location

logger = logging.getLogger(__name__)


async def run_weather_tool(deps: PlannerDeps, location: str) -> dict:
    """Tool contract: {location} -> current conditions with every field populated."""
    resolved = await resolve_location(deps.http_client, location, deps.config)
    snapshot = await fetch_weather(deps.http_client, resolved, deps.config)
    return snapshot.tool_payload()


async def run_activity_workflow(deps: PlannerDeps, city: str) -> dict:
    """Workflow contract: {city} -> ActivityPlan with camelCase fields."""
    generator = deps.plan_generator or AgentPlanGenerator.from_config(deps.config)
    synthesizer = ActivitySynthesizer(generator, deps.config)
    pipeline = WeatherPipeline(deps.http_client, synthesizer, deps.config, cache=deps.cache)
    result = await pipeline.run(city)
    return result.plan.model_dump(mode="json", by_alias=True)


@chat_agent.tool
async def get_weather(ctx: RunContext[PlannerDeps], location: str) -> dict:
    """Get the current weather for a location.

    Args:
        ctx: Agent run context with HTTP client and config.
        location: Free-text place name (e.g. "Tokyo", "Springfield, Illinois").
    """
    try:
        return await run_weather_tool(ctx.deps, location)
    except UpstreamServiceError as e:
        raise ModelRetry(f"Weather service failed for '{location}': {e.message}") from e
    except PlannerError as e:
        logger.info("get_weather failed: %s", e.describe())
        return {"error": e.describe()}


@chat_agent.tool
async def plan_activities(ctx: RunContext[PlannerDeps], city: str) -> dict:
    """Plan morning, afternoon and indoor activities for a city based on its current weather.

    Args:
        ctx: Agent run context with HTTP client and config.
        city: Name of the city to plan for (e.g. "Copenhagen").
    """
    try:
        return await run_activity_workflow(ctx.deps, city)
    except UpstreamServiceError as e:
        raise ModelRetry(f"Activity planning failed for '{city}': {e.describe()}") from e
    except PlannerError as e:
        logger.info("plan_activities failed: %s", e.describe())
        return {"error": e.describe()}
