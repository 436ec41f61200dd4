# ABOUTME: Tests for the command-line entry point and its pipeline wiring.
# ABOUTME: Stubs the pipeline for output tests and the HTTP client and generator for wiring tests.

import json
from types import SimpleNamespace

import pytest
from tenacity import wait_none

from activity_planner import cli
from activity_planner.config import PlannerConfig
from activity_planner.errors import LocationNotFoundError, UpstreamServiceError
from activity_planner.models import ActivityPlan, PipelineResult, ResolvedLocation, WeatherSnapshot
from activity_planner.pipeline import run_with_retry
from conftest import StubGenerator, plan_dict, routing_client


def _result() -> PipelineResult:
    return PipelineResult(
        query="Tokyo",
        location=ResolvedLocation(latitude=35.68, longitude=139.69, display_name="Tokyo"),
        weather=WeatherSnapshot(
            temperature=20.0,
            feels_like=20.0,
            humidity=50.0,
            wind_speed=2.0,
            wind_gust=4.0,
            condition_code=0,
            conditions="Clear sky",
            location="Tokyo",
        ),
        plan=ActivityPlan.model_validate(plan_dict()),
    )


class FlakyGenerator(StubGenerator):
    """Fails the first generation with a transient error, then replies normally."""

    async def generate(self, context):
        self.contexts.append(context)
        if len(self.contexts) == 1:
            raise UpstreamServiceError("Language model request failed: Connection error.")
        return self.reply


class TestCli:
    def test_prints_rendered_plan(self, clean_env, capsys):
        seen = {}

        async def fake_plan(query, config, attempts=1):
            seen.update(query=query, days=config.forecast_days, attempts=attempts)
            return _result()

        clean_env.setattr(cli, "plan", fake_plan)
        assert cli.main(["New", "York", "--days", "2", "--retries", "3"]) == 0

        assert seen == {"query": "New York", "days": 2, "attempts": 3}
        assert capsys.readouterr().out.startswith("📅 Tokyo")

    def test_json_output_uses_camel_case(self, clean_env, capsys):
        async def fake_plan(query, config, attempts=1):
            return _result()

        clean_env.setattr(cli, "plan", fake_plan)
        assert cli.main(["Tokyo", "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["weather"]["feelsLike"] == 20.0
        assert payload["location"]["displayName"] == "Tokyo"

    def test_failure_prints_description_and_exits_nonzero(self, clean_env, capsys):
        """A pipeline error is reported as one descriptive line on stderr.

        Implementation: The stubbed pipeline raises LocationNotFoundError annotated with a stage.
        Passing implies: Users see the query and failing stage instead of a traceback.
        """

        async def fake_plan(query, config, attempts=1):
            raise LocationNotFoundError(query, stage="resolving")

        clean_env.setattr(cli, "plan", fake_plan)
        assert cli.main(["InvalidCity123"]) == 1

        err = capsys.readouterr().err
        assert "InvalidCity123" in err
        assert "stage=resolving" in err

    def test_cache_ttl_flag_sets_config(self, clean_env, capsys):
        seen = {}

        async def fake_plan(query, config, attempts=1):
            seen["cache_ttl"] = config.cache_ttl
            return _result()

        clean_env.setattr(cli, "plan", fake_plan)
        assert cli.main(["Tokyo", "--cache-ttl", "90"]) == 0
        assert seen == {"cache_ttl": 90.0}


class TestPlanWiring:
    @pytest.fixture
    def wired(self, monkeypatch):
        """Routes cli.plan through a mocked HTTP client, a flaky generator and sleep-free retries."""
        client = routing_client()
        client.__aenter__.return_value = client
        generator = FlakyGenerator()
        monkeypatch.setattr(cli, "create_http_client", lambda config: client)
        monkeypatch.setattr(cli, "AgentPlanGenerator", SimpleNamespace(from_config=lambda config: generator))
        monkeypatch.setattr(
            cli,
            "run_with_retry",
            lambda pipeline, query, attempts: run_with_retry(pipeline, query, attempts=attempts, wait=wait_none()),
        )
        return client, generator

    @staticmethod
    def _weather_calls(client) -> int:
        return len([c for c in client.get.call_args_list if "current" in (c.kwargs.get("params") or {})])

    @pytest.mark.asyncio
    async def test_cache_ttl_reuses_snapshot_across_retries(self, wired):
        """With a cache TTL a retried run reuses the weather fetched by the failed attempt.

        Implementation: Generation fails once with UpstreamServiceError and succeeds on the retry.
        Passing implies: cli.plan hands a SnapshotCache to the pipeline when cache_ttl is set.
        """
        client, generator = wired
        result = await cli.plan("Tokyo", PlannerConfig(forecast_days=0, cache_ttl=60), attempts=2)

        assert result.location.display_name == "Tokyo"
        assert len(generator.contexts) == 2
        assert self._weather_calls(client) == 1

    @pytest.mark.asyncio
    async def test_without_cache_each_attempt_fetches_weather(self, wired):
        client, generator = wired
        await cli.plan("Tokyo", PlannerConfig(forecast_days=0), attempts=2)

        assert len(generator.contexts) == 2
        assert self._weather_calls(client) == 2
