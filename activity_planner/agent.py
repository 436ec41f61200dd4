# ABOUTME: Pydantic AI agent definitions for activity planning and the weather chat layer.
# ABOUTME: Provides the OpenRouter model factory, the JSON plan generator and the tool-calling chat agent.

import json

from pydantic_ai import Agent, ModelRetry, RunContext
from pydantic_ai.exceptions import ModelAPIError, UnexpectedModelBehavior
from pydantic_ai.models import Model
from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openrouter import OpenRouterProvider

from activity_planner.config import PlannerConfig
from activity_planner.deps import PlannerDeps
from activity_planner.errors import PlanFormatError, UpstreamServiceError
from activity_planner.models import ActivityPlan, PlanningContext
from activity_planner.synthesizer import context_prompt, parse_plan


def build_model(config: PlannerConfig) -> OpenRouterModel:
    """Create the OpenRouter chat model named in the config."""
    provider = OpenRouterProvider(api_key=config.openrouter_api_key)
    return OpenRouterModel(config.model_name, provider=provider)


PLANNER_INSTRUCTIONS = (
    "You are a local activities expert who plans a day around the weather.\n\n"
    "You receive a JSON weather context for one location: current conditions (temperature and "
    "feelsLike in °C, humidity in %, windSpeed and windGust in m/s, conditions) and optionally a "
    "daily forecast with precipitation chances.\n\n"
    "Rules:\n"
    "1. Reply with a single JSON object and nothing else.\n"
    "2. Suggest 2-3 morning and 2-3 afternoon activities with specific, real venues, trails or "
    "areas in that location. Each needs name, description, location and, where useful, timing and note.\n"
    "3. If indoorRequired is true, the indoor list must contain 1-3 indoor alternatives. "
    "Otherwise include indoor options only if they are genuinely useful.\n"
    "4. Copy every string from requiredWarnings into warnings verbatim; add your own if needed.\n"
    "5. summary.tempRangeC and summary.tempRangeF are ranges like '12°C to 18°C' and '54°F to 64°F'; "
    "summary.precipChance is a percentage like '30%'.\n\n"
    f"The reply must match this JSON schema:\n{json.dumps(ActivityPlan.model_json_schema(by_alias=True))}"
)

planner_agent = Agent(
    output_type=str,
    deps_type=PlanningContext,
    retries=2,
    instructions=PLANNER_INSTRUCTIONS,
)


@planner_agent.output_validator
async def validate_plan_json(ctx: RunContext[PlanningContext], data: str) -> str:
    """Ask the model to try again when its reply is not a valid plan or skips required indoor options."""
    try:
        plan = parse_plan(data)
    except PlanFormatError as e:
        raise ModelRetry(f"{e.message}. Reply with only a JSON object matching the schema.") from e
    if ctx.deps is not None and ctx.deps.indoor_required and not plan.indoor:
        raise ModelRetry(
            f"indoorRequired is true for {ctx.deps.location}: the indoor list must contain 1-3 indoor alternatives."
        )
    return data


class AgentPlanGenerator:
    """PlanGenerator backed by the pydantic-ai planner agent.

    Swapping providers means passing a different model, the pipeline is unaffected.
    """

    def __init__(self, model: Model | str):
        self.model = model

    @classmethod
    def from_config(cls, config: PlannerConfig) -> "AgentPlanGenerator":
        return cls(build_model(config))

    async def generate(self, context: PlanningContext) -> str:
        try:
            result = await planner_agent.run(context_prompt(context), model=self.model, deps=context)
        except UnexpectedModelBehavior as e:
            raise PlanFormatError(f"Model did not produce a valid activity plan: {e}") from e
        except ModelAPIError as e:
            # Covers ModelHTTPError as well as connection failures.
            raise UpstreamServiceError(f"Language model request failed: {e}") from e
        return result.output


chat_agent = Agent(
    deps_type=PlannerDeps,
    retries=2,
    system_prompt=(
        "You are a weather assistant that helps people plan their day.\n\n"
        "1. Use get_weather for questions about current conditions in a place.\n"
        "2. Use plan_activities when the user wants suggestions for what to do.\n"
        "3. Temperatures are in Celsius and wind in m/s; convert only if the user asks.\n"
        "4. If a location cannot be found, ask the user for a more specific place name.\n"
        "5. Always mention any warnings returned with a plan.\n"
    ),
)

# Import tools module to register @chat_agent.tool decorators
import activity_planner.tools  # noqa: E402, F401
