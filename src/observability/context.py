"""Run-scoped context for log correlation.

A correlation id ties together every log line emitted while one pipeline run
or job executes. It lives in a ContextVar, so it follows the run across
``await`` points and into tasks spawned from it.

Usage:
    from src.observability.context import run_context

    with run_context("scout-20250203-063000") as run_id:
        await pipeline.run()
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

_correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def new_run_id(prefix: str = "run") -> str:
    """Build a short unique run identifier, e.g. ``run-3f2a9c1e``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set the correlation id for the current context.

    Args:
        corr_id: Explicit id. A fresh run id is generated when omitted.

    Returns:
        The id that is now active.
    """
    if corr_id is None:
        corr_id = new_run_id()
    _correlation_id_var.set(corr_id)
    return corr_id


def get_correlation_id() -> Optional[str]:
    """Return the active correlation id, or None outside of a run."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Drop the active correlation id."""
    _correlation_id_var.set(None)


@contextmanager
def run_context(corr_id: Optional[str] = None) -> Generator[str, None, None]:
    """Activate a correlation id for the duration of the block.

    The previously active id (if any) is restored on exit, so nested runs
    (a job that triggers a pipeline) keep their own ids.
    """
    if corr_id is None:
        corr_id = new_run_id()
    token = _correlation_id_var.set(corr_id)
    try:
        yield corr_id
    finally:
        _correlation_id_var.reset(token)
