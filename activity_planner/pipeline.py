# ABOUTME: Pipeline orchestrator chaining geocoding, weather fetch and activity synthesis.
# ABOUTME: Tracks each run as a small state machine with fail-fast errors, stage timeouts and cooperative cancellation.

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

import httpx
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from activity_planner.cache import SnapshotCache
from activity_planner.config import PlannerConfig
from activity_planner.errors import CanceledError, PlannerError, UpstreamServiceError
from activity_planner.models import ForecastWindow, PipelineResult, ResolvedLocation, WeatherSnapshot
from activity_planner.synthesizer import ActivitySynthesizer
from activity_planner.weather_service import fetch_forecast, fetch_weather, resolve_location

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


_NEXT = {
    PipelineState.IDLE: PipelineState.RESOLVING,
    PipelineState.RESOLVING: PipelineState.FETCHING,
    PipelineState.FETCHING: PipelineState.SYNTHESIZING,
    PipelineState.SYNTHESIZING: PipelineState.DONE,
}


class PipelineRun:
    """State of a single pipeline invocation.

    A run is created per query and never shared, so concurrent invocations do not
    interfere. `result` is only set once the run reaches DONE.
    """

    def __init__(self, query: str):
        self.query = query
        self.state = PipelineState.IDLE
        self.history = [PipelineState.IDLE]
        self.error: BaseException | None = None
        self.result: PipelineResult | None = None
        self._cancel_requested = False

    @property
    def finished(self) -> bool:
        return self.state in (PipelineState.DONE, PipelineState.FAILED)

    def cancel(self) -> None:
        """Request cancellation; honoured at the next stage boundary."""
        self._cancel_requested = True

    def checkpoint(self) -> None:
        if self._cancel_requested:
            raise CanceledError("Pipeline run was cancelled")

    def advance(self, state: PipelineState) -> None:
        if _NEXT.get(self.state) is not state:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {state.value}")
        logger.info("Pipeline %r: %s -> %s", self.query, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def complete(self, result: PipelineResult) -> None:
        self.advance(PipelineState.DONE)
        self.result = result

    def fail(self, error: BaseException) -> None:
        if self.finished:
            return
        if isinstance(error, PlannerError):
            error.stage = error.stage or self.state.value
            if error.query is None:
                error.query = self.query
        logger.warning("Pipeline %r failed during %s: %s", self.query, self.state.value, error)
        self.state = PipelineState.FAILED
        self.history.append(PipelineState.FAILED)
        self.error = error


class WeatherPipeline:
    """Sequences geocode -> fetch -> synthesize, handing each stage's output to the next.

    The pipeline holds only immutable collaborators; all per-request state lives in the
    PipelineRun. No stage is retried here, see `run_with_retry` for a caller-level policy.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        synthesizer: ActivitySynthesizer,
        config: PlannerConfig | None = None,
        cache: SnapshotCache | None = None,
    ):
        self.http_client = http_client
        self.synthesizer = synthesizer
        self.config = config or PlannerConfig()
        self.cache = cache

    async def run(self, query: str, run: PipelineRun | None = None) -> PipelineResult:
        run = run or PipelineRun(query)
        cfg = self.config
        try:
            location = await self._stage(
                run,
                PipelineState.RESOLVING,
                lambda: resolve_location(self.http_client, query, cfg),
                cfg.geocode_timeout,
            )
            snapshot, window = await self._stage(
                run, PipelineState.FETCHING, lambda: self._fetch(location), cfg.weather_timeout
            )
            plan = await self._stage(
                run,
                PipelineState.SYNTHESIZING,
                lambda: self.synthesizer.synthesize(snapshot, window),
                cfg.generation_timeout,
            )
            run.checkpoint()
        except asyncio.CancelledError:
            run.fail(CanceledError("Pipeline run was cancelled"))
            raise
        except Exception as e:
            run.fail(e)
            raise

        result = PipelineResult(query=query, location=location, weather=snapshot, forecast=window, plan=plan)
        run.complete(result)
        return result

    async def _stage(
        self,
        run: PipelineRun,
        state: PipelineState,
        call: Callable[[], Awaitable[T]],
        timeout: float,
    ) -> T:
        run.checkpoint()
        run.advance(state)
        try:
            return await asyncio.wait_for(call(), timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamServiceError(f"{state.value.capitalize()} timed out after {timeout:g}s") from e

    async def _fetch(self, location: ResolvedLocation) -> tuple[WeatherSnapshot, ForecastWindow | None]:
        def current() -> Awaitable[WeatherSnapshot]:
            return fetch_weather(self.http_client, location, self.config)

        if self.cache is not None:
            snapshot = await self.cache.get_or_fetch(location, current)
        else:
            snapshot = await current()

        window = None
        if self.config.forecast_days:
            window = await fetch_forecast(self.http_client, location, self.config.forecast_days, self.config)
        return snapshot, window


async def run_with_retry(
    pipeline: WeatherPipeline,
    query: str,
    attempts: int = 3,
    wait=wait_exponential(multiplier=1, max=30),
) -> PipelineResult:
    """Retry a whole pipeline invocation on transient upstream failures.

    Each attempt starts a fresh run; other errors are raised immediately.
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(UpstreamServiceError),
        wait=wait,
        stop=stop_after_attempt(attempts),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            result = await pipeline.run(query)
    return result
