"""Bounded fan-out for bulk async work.

Usage:
    result = await gather_bounded(
        [lambda p=p: enricher.enrich(p) for p in papers], concurrency=3
    )
    logger.info("bulk_done", succeeded=result.succeeded, failed=result.failed)
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Sequence

import structlog

logger = structlog.get_logger()


@dataclass
class BulkResult:
    """Outcome of a bounded fan-out"""

    succeeded: int = 0
    failed: int = 0
    results: List[Any] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


async def gather_bounded(
    tasks: Sequence[Callable[[], Awaitable[Any]]],
    concurrency: int = 3,
) -> BulkResult:
    """Run zero-argument coroutine functions with at most ``concurrency`` in flight.

    A failing task is counted and logged; it never cancels its siblings.
    Successful results keep submission order.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    semaphore = asyncio.Semaphore(concurrency)

    async def _run(index: int, task: Callable[[], Awaitable[Any]]) -> Any:
        async with semaphore:
            return await task()

    outcomes = await asyncio.gather(
        *(_run(i, t) for i, t in enumerate(tasks)), return_exceptions=True
    )

    result = BulkResult()
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, Exception):
            result.failed += 1
            result.errors.append(str(outcome))
            logger.warning("bulk_task_failed", index=index, error=str(outcome))
        else:
            result.succeeded += 1
            result.results.append(outcome)
    return result
