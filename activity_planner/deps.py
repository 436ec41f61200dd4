# ABOUTME: Dependency container for the planner pipeline and chat agent tools using Pydantic BaseModel.
# ABOUTME: Holds the shared httpx.AsyncClient, the PlannerConfig, the plan generator and an optional snapshot cache.

import httpx
from pydantic import BaseModel, ConfigDict

from activity_planner.cache import SnapshotCache
from activity_planner.config import PlannerConfig
from activity_planner.synthesizer import PlanGenerator


class PlannerDeps(BaseModel):
    """Dependencies injected into the pipeline and into agent tools via RunContext."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    config: PlannerConfig = PlannerConfig()
    plan_generator: PlanGenerator | None = None
    cache: SnapshotCache | None = None


def create_http_client(config: PlannerConfig) -> httpx.AsyncClient:
    """Create an httpx client for the Open-Meteo APIs.

    No transport-level retries: a failed request surfaces as UpstreamServiceError and
    retrying is left to the caller (see pipeline.run_with_retry).
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout),
        headers={"User-Agent": "activity-planner/0.1"},
    )
