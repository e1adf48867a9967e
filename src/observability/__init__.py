"""Observability: correlation ids, structured logging and Prometheus metrics.

Usage:
    from src.observability import configure_logging, run_context

    configure_logging(level="INFO", json_output=False)
    with run_context() as run_id:
        ...
"""

from src.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    new_run_id,
    run_context,
)
from src.observability.logging import (
    configure_logging,
    get_logger,
    bind_context,
    clear_context,
)
from src.observability.metrics import (
    PAPERS_INGESTED,
    PAPERS_ENRICHED,
    PAPERS_RANKED,
    CLASSIFIER_FALLBACKS,
    RATE_LIMITER_TASKS,
    FEEDBACK_EVENTS,
    JOBS_RUN,
    SCHEDULER_JOBS,
    STAGE_DURATION,
    get_counter_value,
    get_metrics_text,
)

__all__ = [
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "new_run_id",
    "run_context",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "PAPERS_INGESTED",
    "PAPERS_ENRICHED",
    "PAPERS_RANKED",
    "CLASSIFIER_FALLBACKS",
    "RATE_LIMITER_TASKS",
    "FEEDBACK_EVENTS",
    "JOBS_RUN",
    "SCHEDULER_JOBS",
    "STAGE_DURATION",
    "get_counter_value",
    "get_metrics_text",
]
