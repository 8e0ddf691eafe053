"""
Prometheus metrics for ingestion and prediction jobs.

Labels are restricted to LOW-CARDINALITY values only (provider, endpoint,
status code, job name, outcome). Never use match/team/league ids as labels;
per-entity detail belongs in logs.

Recording is best effort: a metrics failure must never break a job.
"""

import logging

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

# =============================================================================
# INGESTION METRICS
# =============================================================================

provider_requests_total = Counter(
    "fp_provider_requests_total",
    "Total requests to data providers",
    ["provider", "endpoint", "status_code"],
)

provider_errors_total = Counter(
    "fp_provider_errors_total",
    "Total errors from data providers",
    ["provider", "endpoint", "error_code"],
)

provider_latency_ms = Histogram(
    "fp_provider_latency_ms",
    "Request latency in milliseconds",
    ["provider", "endpoint"],
    buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

entities_upserted_total = Counter(
    "fp_entities_upserted_total",
    "Entities upserted by the ingestion pipeline",
    ["entity"],
)

# =============================================================================
# JOB METRICS
# =============================================================================

job_runs_total = Counter(
    "fp_job_runs_total",
    "Total job runs",
    ["job", "status"],
)

job_duration_ms = Histogram(
    "fp_job_duration_ms",
    "Job duration in milliseconds",
    ["job"],
    buckets=[100, 500, 1000, 5000, 15000, 60000, 300000, 900000],
)

predictions_generated_total = Counter(
    "fp_predictions_generated_total",
    "Predictions generated per outcome",
    ["outcome"],  # "saved" | "failed"
)


def record_provider_request(
    provider: str,
    endpoint: str,
    status_code: int,
    latency_ms: float,
) -> None:
    """Record a provider request with its latency."""
    try:
        provider_requests_total.labels(
            provider=provider,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()
        provider_latency_ms.labels(provider=provider, endpoint=endpoint).observe(latency_ms)
    except Exception as e:
        logger.warning(f"Failed to record provider request metric: {e}")


def record_provider_error(provider: str, endpoint: str, error_code: str) -> None:
    """Record a provider error."""
    try:
        provider_errors_total.labels(
            provider=provider,
            endpoint=endpoint,
            error_code=error_code,
        ).inc()
    except Exception as e:
        logger.warning(f"Failed to record provider error metric: {e}")


def record_entity_upserted(entity: str, count: int = 1) -> None:
    """Record upserted entities ("league", "team", "venue", "match", "statistics")."""
    try:
        entities_upserted_total.labels(entity=entity).inc(count)
    except Exception as e:
        logger.warning(f"Failed to record upsert metric: {e}")


def record_job_run(job: str, status: str, duration_ms: float) -> None:
    """
    Record a job run with status and duration.

    Args:
        job: Job identifier (update_data, generate_predictions)
        status: "ok" or "error"
        duration_ms: Job duration in milliseconds
    """
    try:
        job_runs_total.labels(job=job, status=status).inc()
        if duration_ms > 0:
            job_duration_ms.labels(job=job).observe(duration_ms)
    except Exception as e:
        logger.warning(f"Failed to record job run metric: {e}")


def record_prediction(outcome: str) -> None:
    """Record a prediction generation outcome."""
    try:
        predictions_generated_total.labels(outcome=outcome).inc()
    except Exception as e:
        logger.warning(f"Failed to record prediction metric: {e}")


def start_metrics_server(port: int) -> None:
    """Serve the default registry on /metrics in a daemon thread."""
    start_http_server(port)
    logger.info(f"Metrics exposed on :{port}/metrics")
