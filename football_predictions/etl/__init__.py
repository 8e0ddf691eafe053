"""ETL module for data extraction, transformation, and loading."""

from football_predictions.etl.api_football import APIFootballError, APIFootballProvider, map_fixture_status
from football_predictions.etl.base import DataProvider
from football_predictions.etl.competitions import SUPPORTED_LEAGUES, SupportedLeague, get_active_leagues
from football_predictions.etl.pipeline import IngestionPipeline, IngestionSummary, create_ingestion_pipeline

__all__ = [
    "DataProvider",
    "APIFootballError",
    "APIFootballProvider",
    "map_fixture_status",
    "SupportedLeague",
    "SUPPORTED_LEAGUES",
    "get_active_leagues",
    "IngestionPipeline",
    "IngestionSummary",
    "create_ingestion_pipeline",
]
