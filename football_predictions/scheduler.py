"""Batch jobs (ingestion, prediction generation) and their background scheduler."""

import logging
import time
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from football_predictions.config import Settings
from football_predictions.etl import (
    DataProvider,
    IngestionPipeline,
    IngestionSummary,
    create_ingestion_pipeline,
    get_active_leagues,
)
from football_predictions.features import FormAggregator
from football_predictions.ml import GenerationSummary, PredictionService, ProbabilityEngine
from football_predictions.telemetry import record_job_run

logger = logging.getLogger(__name__)

_scheduler_started = False
scheduler = AsyncIOScheduler()


async def run_update_data(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    logger: logging.Logger = logger,
    provider: Optional[DataProvider] = None,
) -> Optional[IngestionSummary]:
    """
    Ingest every active league (or SYNC_LEAGUE_IDS when set).

    Never raises: a failed run is logged, recorded as an error metric and
    returns None.
    """
    logger.info("[SCHEDULER] Starting data update job...")
    start_time = time.time()

    try:
        leagues = get_active_leagues(api_ids=settings.sync_league_ids() or None)
        logger.info(f"[SCHEDULER] Updating {len(leagues)} leagues")
        async with session_factory() as session:
            if provider is None:
                pipeline = create_ingestion_pipeline(settings, session, logger=logger)
            else:
                pipeline = IngestionPipeline(
                    provider=provider,
                    session=session,
                    logger=logger,
                    league_delay=settings.LEAGUE_DELAY_SECONDS,
                    fixture_window_days=settings.FIXTURE_WINDOW_DAYS,
                )
            try:
                summary = await pipeline.update_all_data(
                    leagues=leagues, season=settings.CURRENT_SEASON
                )
            finally:
                await pipeline.provider.close()

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"[SCHEDULER] Data update complete ({duration_ms:.0f}ms): {summary.as_dict()}")
        record_job_run(job="update_data", status="ok", duration_ms=duration_ms)
        return summary

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(f"[SCHEDULER] Data update failed: {e!r}")
        record_job_run(job="update_data", status="error", duration_ms=duration_ms)
        return None


async def run_generate_predictions(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    logger: logging.Logger = logger,
    hours: Optional[int] = None,
    engine: Optional[ProbabilityEngine] = None,
) -> Optional[GenerationSummary]:
    """
    Predict all SCHEDULED matches within the horizon.

    Never raises: a failed run is logged, recorded as an error metric and
    returns None.
    """
    hours = hours or settings.PREDICTION_HORIZON_HOURS
    logger.info(f"[SCHEDULER] Starting prediction job (next {hours}h)...")
    start_time = time.time()

    try:
        async with session_factory() as session:
            service = PredictionService(
                session=session,
                engine=engine or ProbabilityEngine(),
                aggregator=FormAggregator(session, logger=logger),
                logger=logger,
            )
            summary = await service.generate_predictions(hours=hours)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"[SCHEDULER] Prediction job complete ({duration_ms:.0f}ms): {summary.as_dict()}")
        record_job_run(job="generate_predictions", status="ok", duration_ms=duration_ms)
        return summary

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(f"[SCHEDULER] Prediction job failed: {e!r}")
        record_job_run(job="generate_predictions", status="error", duration_ms=duration_ms)
        return None


def start_scheduler(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    logger: logging.Logger = logger,
) -> AsyncIOScheduler:
    """
    Register the periodic jobs and start the scheduler.

    Must be called from inside a running event loop. A module-level flag
    prevents registering the jobs twice.
    """
    global _scheduler_started

    if _scheduler_started:
        logger.warning("[SCHEDULER] Scheduler already started, skipping duplicate initialization")
        return scheduler

    job_kwargs = {"settings": settings, "session_factory": session_factory, "logger": logger}

    # Data update: leagues, teams and the fixture window
    scheduler.add_job(
        run_update_data,
        trigger=IntervalTrigger(minutes=settings.INGESTION_INTERVAL_MINUTES),
        kwargs=job_kwargs,
        id="update_data",
        name="Data Update (leagues, teams, fixtures)",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    # Prediction generation for upcoming matches
    scheduler.add_job(
        run_generate_predictions,
        trigger=IntervalTrigger(minutes=settings.PREDICTION_INTERVAL_MINUTES),
        kwargs=job_kwargs,
        id="generate_predictions",
        name="Generate Predictions",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    _scheduler_started = True

    logger.info(
        f"[SCHEDULER] Scheduler started:\n"
        f"  - Data update: Every {settings.INGESTION_INTERVAL_MINUTES} min\n"
        f"  - Prediction generation: Every {settings.PREDICTION_INTERVAL_MINUTES} min"
    )
    return scheduler


def stop_scheduler(logger: logging.Logger = logger) -> None:
    """Stop the background scheduler."""
    global _scheduler_started
    if scheduler.running:
        scheduler.shutdown()
        _scheduler_started = False
        logger.info("[SCHEDULER] Scheduler stopped")
