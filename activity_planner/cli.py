# ABOUTME: Command-line entry point that runs the planner pipeline for one location.
# ABOUTME: Configures logging, builds dependencies from the environment and prints the rendered plan or JSON.

import argparse
import asyncio
import logging
import os
import sys

from activity_planner.agent import AgentPlanGenerator
from activity_planner.cache import SnapshotCache
from activity_planner.config import PlannerConfig
from activity_planner.deps import create_http_client
from activity_planner.errors import PlannerError
from activity_planner.models import PipelineResult
from activity_planner.pipeline import WeatherPipeline, run_with_retry
from activity_planner.rendering import render_plan
from activity_planner.synthesizer import ActivitySynthesizer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="activity-planner",
        description="Plan activities for a location based on its current weather.",
    )
    parser.add_argument("location", nargs="+", help='Place to plan for, e.g. "Tokyo" or "Springfield, Illinois"')
    parser.add_argument("--json", action="store_true", help="Print the full pipeline result as JSON")
    parser.add_argument("--days", type=int, choices=range(0, 8), metavar="0-7", help="Forecast days to include")
    parser.add_argument("--retries", type=int, default=1, help="Attempts on transient upstream failures")
    parser.add_argument(
        "--cache-ttl",
        type=float,
        metavar="SECONDS",
        help="Reuse fetched weather for this long across retries (0 disables)",
    )
    parser.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "WARNING"))
    return parser


async def plan(query: str, config: PlannerConfig, attempts: int = 1) -> PipelineResult:
    async with create_http_client(config) as client:
        synthesizer = ActivitySynthesizer(AgentPlanGenerator.from_config(config), config)
        cache = SnapshotCache(ttl=config.cache_ttl) if config.cache_ttl > 0 else None
        pipeline = WeatherPipeline(client, synthesizer, config, cache=cache)
        if attempts > 1:
            return await run_with_retry(pipeline, query, attempts=attempts)
        return await pipeline.run(query)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = PlannerConfig.from_env()
    if args.days is not None:
        config = config.model_copy(update={"forecast_days": args.days})
    if args.cache_ttl is not None:
        config = config.model_copy(update={"cache_ttl": max(args.cache_ttl, 0.0)})

    query = " ".join(args.location)
    try:
        result = asyncio.run(plan(query, config, attempts=max(args.retries, 1)))
    except PlannerError as e:
        print(f"error: {e.describe()}", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(by_alias=True, indent=2))
    else:
        print(render_plan(result.plan, title=result.location.display_name))
    return 0


if __name__ == "__main__":
    sys.exit(main())
