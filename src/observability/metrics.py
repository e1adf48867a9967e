"""Prometheus metrics for the curation pipeline.

Tracks:
- Ingestion throughput (created / updated / skipped entries)
- Enrichment outcomes and classifier degradation
- Ranking outcomes (scored / excluded / skipped)
- arXiv rate limiter task outcomes
- Feedback events
- Paper summaries (generated / cached / failed)
- Job executions and scheduler state
- Stage durations

Usage:
    from src.observability.metrics import PAPERS_INGESTED

    PAPERS_INGESTED.labels(outcome="created").inc()

    with STAGE_DURATION.labels(stage="enrich").time():
        await enrich_phase.run()
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Private registry keeps test processes and multiple pipelines isolated
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

PAPERS_INGESTED = Counter(
    name="curator_papers_ingested_total",
    documentation="Feed entries processed by the scout",
    labelnames=["outcome"],  # created, updated, skipped, malformed
    registry=REGISTRY,
)

PAPERS_ENRICHED = Counter(
    name="curator_papers_enriched_total",
    documentation="Papers processed by the enricher",
    labelnames=["status"],  # success, failed
    registry=REGISTRY,
)

CLASSIFIER_FALLBACKS = Counter(
    name="curator_classifier_fallbacks_total",
    documentation="Classifications served by the keyword fallback",
    registry=REGISTRY,
)

PAPERS_RANKED = Counter(
    name="curator_papers_ranked_total",
    documentation="Ranking outcomes per paper",
    labelnames=["outcome"],  # scored, excluded, skipped
    registry=REGISTRY,
)

RATE_LIMITER_TASKS = Counter(
    name="curator_rate_limiter_tasks_total",
    documentation="arXiv rate limiter task outcomes",
    labelnames=["outcome"],  # done, retried, abandoned
    registry=REGISTRY,
)

FEEDBACK_EVENTS = Counter(
    name="curator_feedback_events_total",
    documentation="Feedback events recorded",
    labelnames=["action"],
    registry=REGISTRY,
)

SUMMARIES_GENERATED = Counter(
    name="curator_summaries_total",
    documentation="Paper summary requests",
    labelnames=["outcome"],  # generated, cached, failed
    registry=REGISTRY,
)

JOBS_RUN = Counter(
    name="curator_jobs_total",
    documentation="Queued job executions",
    labelnames=["job", "status"],  # status: completed, failed
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

SCHEDULER_JOBS = Gauge(
    name="curator_scheduler_jobs",
    documentation="Jobs registered with the scheduler",
    labelnames=["status"],  # pending, scheduled
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

STAGE_DURATION = Histogram(
    name="curator_stage_duration_seconds",
    documentation="Pipeline stage duration in seconds",
    labelnames=["stage"],  # scout, enrich, rank
    buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 900, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Render all metrics in the Prometheus exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for :func:`get_metrics_text` output."""
    return CONTENT_TYPE_LATEST


def get_counter_value(counter: Counter, **labels: str) -> float:
    """Read the current value of a counter (or one of its label children).

    Intended for tests and health reporting.
    """
    metric = counter.labels(**labels) if labels else counter
    return metric._value.get()
