"""Tests for the scheduled jobs and the CLI entry point."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from football_predictions import cli
from football_predictions.config import Settings, get_settings
from football_predictions.scheduler import run_generate_predictions, run_update_data


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        API_FOOTBALL_KEY="test-key",
        SYNC_LEAGUE_IDS="39,140",
        LEAGUE_DELAY_SECONDS=0,
    )


class TestUpdateDataJob:
    @pytest.mark.asyncio
    async def test_runs_configured_leagues_and_closes_provider(self, settings, session_factory):
        provider = AsyncMock()
        provider.get_league.return_value = None

        with patch("football_predictions.scheduler.record_job_run") as record:
            summary = await run_update_data(settings, session_factory, provider=provider)

        assert summary.leagues_processed == 2
        assert summary.leagues_failed == 2
        assert [call.args[0] for call in provider.get_league.await_args_list] == [39, 140]
        provider.close.assert_awaited_once()
        assert record.call_args.kwargs["status"] == "ok"

    @pytest.mark.asyncio

    async def test_failure_is_recorded_not_raised(self, settings):
        session_factory = MagicMock(side_effect=RuntimeError("database down"))

        with patch("football_predictions.scheduler.record_job_run") as record:
            summary = await run_update_data(settings, session_factory, provider=AsyncMock())

        assert summary is None
        assert record.call_args.kwargs["status"] == "error"

    @pytest.mark.asyncio

    async def test_unparseable_league_ids_do_not_escape(self, settings):
        # model_copy skips field validation
        broken = settings.model_copy(update={"SYNC_LEAGUE_IDS": "39,abc"})
        provider = AsyncMock()

        with patch("football_predictions.scheduler.record_job_run") as record:
            summary = await run_update_data(broken, MagicMock(), provider=provider)

        assert summary is None
        assert record.call_args.kwargs["status"] == "error"
        provider.get_league.assert_not_awaited()


class TestGeneratePredictionsJob:
    @pytest.mark.asyncio
    async def test_empty_store(self, settings, session_factory, caplog):
        with caplog.at_level(logging.INFO, logger="football_predictions.scheduler"):
            summary = await run_generate_predictions(settings, session_factory)

        assert summary.matches_found == 0
        assert summary.predictions_saved == 0
        assert "'predictions_saved': 0" in caplog.text

    @pytest.mark.asyncio

    async def test_failure_is_recorded_not_raised(self, settings):
        session_factory = MagicMock(side_effect=RuntimeError("database down"))

        with patch("football_predictions.scheduler.record_job_run") as record:
            summary = await run_generate_predictions(settings, session_factory)

        assert summary is None
        assert record.call_args.kwargs["job"] == "generate_predictions"
        assert record.call_args.kwargs["status"] == "error"


class TestCli:
    @pytest.fixture(autouse=True)
    def _clear_settings_cache(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_missing_api_key_exits_with_error(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.delenv("API_FOOTBALL_KEY", raising=False)

        assert cli.main(["generate-predictions"]) == 1

    def test_init_db(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'football.db'}")
        monkeypatch.setenv("API_FOOTBALL_KEY", "test-key")

        assert cli.main(["init-db"]) == 0
        assert (tmp_path / "football.db").exists()

    def test_parser(self):
        args = cli.build_parser().parse_args(["update-data", "--skip-predictions"])
        assert args.command == "update-data"
        assert args.skip_predictions is True

        args = cli.build_parser().parse_args(["generate-predictions", "--hours", "24"])
        assert args.hours == 24

    @pytest.mark.asyncio

    async def test_scheduler_command_exposes_metrics(self, settings):
        settings = settings.model_copy(update={"METRICS_PORT": 9200})
        args = cli.build_parser().parse_args(["scheduler"])

        with patch.object(cli, "start_metrics_server") as metrics_server, patch.object(
            cli, "start_scheduler"
        ) as start, patch.object(cli, "stop_scheduler") as stop, patch.object(
            cli.asyncio, "Event"
        ) as event:
            event.return_value.wait = AsyncMock()
            exit_code = await cli.run(args, settings)

        assert exit_code == 0
        metrics_server.assert_called_once_with(9200)
        start.assert_called_once()
        stop.assert_called_once()

    @pytest.mark.asyncio

    async def test_metrics_port_zero_disables_server(self, settings):
        settings = settings.model_copy(update={"METRICS_PORT": 0})
        args = cli.build_parser().parse_args(["scheduler"])

        with patch.object(cli, "start_metrics_server") as metrics_server, patch.object(
            cli, "start_scheduler"
        ), patch.object(cli, "stop_scheduler"), patch.object(cli.asyncio, "Event") as event:
            event.return_value.wait = AsyncMock()
            await cli.run(args, settings)

        metrics_server.assert_not_called()
