"""Request throttling for the arXiv export API.

arXiv asks clients to space requests at least three seconds apart over a
single connection. ``ArxivRateLimiter`` enforces that spacing, runs one task
at a time in submission order, caps bursts with a refilling reservoir and
retries failed tasks with tenacity. Every retry goes back through the
limiter, so a throttled request never jumps the queue.

Usage:
    limiter = ArxivRateLimiter(RateLimiterConfig())
    async with limiter:
        feed = await limiter.schedule(lambda: client.fetch(...), job_id="cs.AI")
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from src.models.config import RateLimiterConfig
from src.observability.metrics import RATE_LIMITER_TASKS
from src.utils.exceptions import (
    RateLimiterStoppedError,
    RateLimitError,
    SourceUnavailableError,
)

logger = structlog.get_logger()

T = TypeVar("T")

DoneListener = Callable[[Optional[str], Any], None]
FailedListener = Callable[[Optional[str], BaseException, int], None]

RATE_LIMIT_SIGNATURES = ("429", "503")


def is_rate_limit_error(error: BaseException) -> bool:
    """Whether a failure means arXiv is throttling us."""
    if isinstance(error, (RateLimitError, SourceUnavailableError)):
        return True
    message = str(error)
    return any(sig in message for sig in RATE_LIMIT_SIGNATURES)


def _should_retry(error: BaseException) -> bool:
    return isinstance(error, Exception) and not isinstance(
        error, RateLimiterStoppedError
    )


class ArxivRateLimiter:
    """Interval + reservoir limiter with single concurrency and retries"""

    def __init__(self, config: Optional[RateLimiterConfig] = None):
        self.config = config or RateLimiterConfig()
        self._lock = asyncio.Lock()
        self._running = False
        self._last_start: Optional[float] = None
        self._reservoir = self.config.reservoir_size
        self._last_refill = time.monotonic()
        self._done_listeners: List[DoneListener] = []
        self._failed_listeners: List[FailedListener] = []

    # Lifecycle

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._reservoir = self.config.reservoir_size
        self._last_refill = time.monotonic()
        logger.info(
            "rate_limiter_started",
            min_interval_seconds=self.config.min_interval_seconds,
            reservoir_size=self.config.reservoir_size,
        )

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("rate_limiter_stopped")

    async def __aenter__(self) -> "ArxivRateLimiter":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # Listeners

    def on_done(self, listener: DoneListener) -> None:
        """Register ``listener(job_id, result)`` for completed tasks."""
        self._done_listeners.append(listener)

    def on_failed(self, listener: FailedListener) -> None:
        """Register ``listener(job_id, error, attempt)`` for failed attempts."""
        self._failed_listeners.append(listener)

    # Scheduling

    async def schedule(
        self,
        task: Callable[[], Awaitable[T]],
        job_id: Optional[str] = None,
    ) -> T:
        """Run ``task`` under the limiter and return its result.

        Args:
            task: Zero-argument coroutine function. Called once per attempt.
            job_id: Optional label used in logs and listener callbacks.

        Raises:
            RateLimiterStoppedError: If the limiter is not running.
            Exception: The last task error once retries are exhausted.
        """
        if not self._running:
            raise RateLimiterStoppedError(
                f"Cannot schedule {job_id or 'task'}: rate limiter is stopped"
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=self._retry_wait,
            retry=retry_if_exception(_should_retry),
            before_sleep=lambda state: self._on_retry(job_id, state),
            reraise=True,
        )

        try:
            result = await retrying(self._run_once, task, job_id)
        except RateLimiterStoppedError:
            raise
        except Exception as e:
            RATE_LIMITER_TASKS.labels(outcome="abandoned").inc()
            logger.error(
                "rate_limiter_task_abandoned",
                job_id=job_id,
                error=str(e),
                max_retries=self.config.max_retries,
            )
            for failed_listener in self._failed_listeners:
                failed_listener(job_id, e, self.config.max_retries + 1)
            raise

        RATE_LIMITER_TASKS.labels(outcome="done").inc()
        logger.debug("rate_limiter_task_done", job_id=job_id)
        for done_listener in self._done_listeners:
            done_listener(job_id, result)
        return result

    async def _run_once(
        self, task: Callable[[], Awaitable[T]], job_id: Optional[str]
    ) -> T:
        # Lock is held for the whole task: one task at a time, FIFO wakeups
        async with self._lock:
            if not self._running:
                raise RateLimiterStoppedError(
                    f"Rate limiter stopped before {job_id or 'task'} started"
                )
            await self._acquire_slot()
            return await task()

    async def _acquire_slot(self) -> None:
        now = time.monotonic()
        refresh = self.config.reservoir_refresh_seconds

        if now - self._last_refill >= refresh:
            self._refill(now)

        if self._reservoir <= 0:
            wait = self._last_refill + refresh - now
            logger.info("rate_limiter_reservoir_exhausted", wait_seconds=wait)
            if wait > 0:
                await asyncio.sleep(wait)
            self._refill(time.monotonic())

        if self._last_start is not None:
            wait = self._last_start + self.config.min_interval_seconds - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)

        self._last_start = time.monotonic()
        self._reservoir -= 1

    def _refill(self, now: float) -> None:
        self._reservoir = self.config.reservoir_size
        self._last_refill = now

    # Retry policy

    def _retry_wait(self, retry_state: RetryCallState) -> float:
        """Delay before the next attempt.

        Throttling responses back off linearly (base * attempt, capped);
        anything else waits a fixed delay.
        """
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if error is not None and is_rate_limit_error(error):
            return min(
                self.config.rate_limit_base_delay_seconds
                * retry_state.attempt_number,
                self.config.rate_limit_max_delay_seconds,
            )
        return self.config.retry_delay_seconds

    def _on_retry(self, job_id: Optional[str], retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if error is None:
            return
        RATE_LIMITER_TASKS.labels(outcome="retried").inc()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "rate_limiter_task_retry",
            job_id=job_id,
            attempt=retry_state.attempt_number,
            delay_seconds=delay,
            rate_limited=is_rate_limit_error(error),
            error=str(error),
        )
        for failed_listener in self._failed_listeners:
            failed_listener(job_id, error, retry_state.attempt_number)
