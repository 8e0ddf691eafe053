"""
Command-line entry point.

Usage:
    football-predictions init-db
    football-predictions update-data [--skip-predictions]
    football-predictions generate-predictions [--hours N]
    football-predictions scheduler

Requires DATABASE_URL and API_FOOTBALL_KEY (environment or .env).
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from football_predictions.config import Settings, get_settings
from football_predictions.database import close_db, create_engine, create_session_factory, init_db
from football_predictions.scheduler import (
    run_generate_predictions,
    run_update_data,
    start_scheduler,
    stop_scheduler,
)
from football_predictions.telemetry import start_metrics_server

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("football_predictions")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="football-predictions",
        description="Football data ingestion and heuristic match predictions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    update = subparsers.add_parser(
        "update-data", help="Ingest leagues, teams and fixtures, then generate predictions"
    )
    update.add_argument(
        "--skip-predictions", action="store_true", help="Only ingest, do not predict"
    )

    generate = subparsers.add_parser(
        "generate-predictions", help="Predict upcoming scheduled matches"
    )
    generate.add_argument(
        "--hours", type=int, default=None, help="Look-ahead horizon (default: PREDICTION_HORIZON_HOURS)"
    )

    subparsers.add_parser("scheduler", help="Run the periodic jobs until interrupted")

    return parser


async def _run_scheduler(settings: Settings, session_factory) -> None:
    if settings.METRICS_PORT:
        start_metrics_server(settings.METRICS_PORT)
    start_scheduler(settings, session_factory, logger=logger)
    try:
        await asyncio.Event().wait()
    finally:
        stop_scheduler(logger=logger)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute one command against a freshly built engine; returns the exit code."""
    engine = create_engine(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)
    exit_code = 0

    try:
        if args.command == "init-db":
            await init_db(engine)

        elif args.command == "update-data":
            summary = await run_update_data(settings, session_factory, logger=logger)
            if summary is None:
                exit_code = 1
            elif not args.skip_predictions:
                if await run_generate_predictions(settings, session_factory, logger=logger) is None:
                    exit_code = 1

        elif args.command == "generate-predictions":
            summary = await run_generate_predictions(
                settings, session_factory, logger=logger, hours=args.hours
            )
            if summary is None:
                exit_code = 1

        elif args.command == "scheduler":
            await _run_scheduler(settings, session_factory)
    finally:
        await close_db(engine)

    return exit_code


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)

    try:
        return asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0


if __name__ == "__main__":
    sys.exit(main())
