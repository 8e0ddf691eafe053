"""
Telemetry Module

Prometheus metrics for provider ingestion and batch jobs.
"""

from football_predictions.telemetry.metrics import (
    record_entity_upserted,
    record_job_run,
    record_prediction,
    record_provider_error,
    record_provider_request,
    start_metrics_server,
)

__all__ = [
    "record_entity_upserted",
    "record_job_run",
    "record_prediction",
    "record_provider_error",
    "record_provider_request",
    "start_metrics_server",
]
