"""APScheduler wrapper for the curation worker.

Provides:
- Async-compatible scheduler
- Job management (add, remove)
- The daily digest schedule (06:30 America/New_York by default, after the
  arXiv daily announcement)
- Graceful shutdown handling

Usage:
    scheduler = CuratorScheduler()
    scheduler.add_daily_digest_job(GenerateDailyDigestsJob(store, recommender))

    await scheduler.start()
"""

import asyncio
import signal
from typing import Any, Callable, Dict, List

import structlog
from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.models.config import CuratorConfig
from src.observability.metrics import SCHEDULER_JOBS
from src.scheduling.jobs import GENERATE_DAILY_DIGESTS, BaseJob

logger = structlog.get_logger()

DAILY_DIGEST_HOUR = 6
DAILY_DIGEST_MINUTE = 30
DAILY_DIGEST_TIMEZONE = "America/New_York"


class CuratorScheduler:
    """Async scheduler for curation jobs.

    Wraps APScheduler's AsyncIOScheduler with job lifecycle management,
    event logging, Prometheus gauges and signal-driven shutdown.
    """

    def __init__(
        self,
        timezone: str = DAILY_DIGEST_TIMEZONE,
        max_instances: int = 1,
        coalesce: bool = True,
        misfire_grace_time: int = 300,
    ):
        """Initialize the scheduler.

        Args:
            timezone: Default timezone for cron triggers
            max_instances: Max concurrent instances per job
            coalesce: Coalesce missed executions
            misfire_grace_time: Grace time for missed jobs (seconds)
        """
        self.timezone = timezone
        self.scheduler = AsyncIOScheduler(
            timezone=timezone,
            job_defaults={
                "max_instances": max_instances,
                "coalesce": coalesce,
                "misfire_grace_time": misfire_grace_time,
            },
        )

        self._running = False
        self._shutdown_event = asyncio.Event()
        self._jobs: Dict[str, Any] = {}

        self.scheduler.add_listener(
            self._on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED
        )

        logger.info("scheduler_initialized", timezone=timezone)

    @classmethod
    def from_config(cls, config: CuratorConfig) -> "CuratorScheduler":
        return cls(timezone=config.digest_timezone)

    def add_job(
        self,
        func: Callable,
        job_id: str,
        trigger: str = "cron",
        **trigger_args: Any,
    ) -> str:
        """Add a job to the scheduler.

        Args:
            func: Async callable to execute
            job_id: Unique job identifier
            trigger: Trigger type ('cron' or 'interval')
            **trigger_args: Trigger-specific arguments

        Returns:
            Job ID
        """
        if trigger == "cron":
            trigger_args.setdefault("timezone", self.timezone)
            trigger_obj = CronTrigger(**trigger_args)
        elif trigger == "interval":
            trigger_obj = IntervalTrigger(**trigger_args)
        else:
            raise ValueError(f"Unsupported trigger: {trigger}")

        job = self.scheduler.add_job(
            func,
            trigger=trigger_obj,
            id=job_id,
            name=job_id,
            replace_existing=True,
        )
        self._jobs[job_id] = job

        next_run = getattr(job, "next_run_time", None)
        logger.info(
            "job_added",
            job_id=job_id,
            trigger=trigger,
            next_run=str(next_run) if next_run else "not scheduled",
        )

        self._update_metrics()
        return job_id

    def add_daily_digest_job(
        self,
        job: BaseJob,
        hour: int = DAILY_DIGEST_HOUR,
        minute: int = DAILY_DIGEST_MINUTE,
        timezone: str = DAILY_DIGEST_TIMEZONE,
    ) -> str:
        """Schedule the daily digest job (06:30 America/New_York by default)."""
        return self.add_job(
            job.__call__,
            job_id=GENERATE_DAILY_DIGESTS,
            trigger="cron",
            hour=hour,
            minute=minute,
            timezone=timezone,
        )

    def remove_job(self, job_id: str) -> bool:
        """Remove a job from the scheduler.

        Returns:
            True if job was removed, False if not found
        """
        try:
            self.scheduler.remove_job(job_id)
        except Exception as e:
            logger.warning("job_remove_failed", job_id=job_id, error=str(e))
            return False

        self._jobs.pop(job_id, None)
        logger.info("job_removed", job_id=job_id)
        self._update_metrics()
        return True

    def get_jobs(self) -> List[Dict[str, Any]]:
        """Get list of all scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "trigger": str(job.trigger),
                    "next_run_time": str(next_run) if next_run else None,
                    "pending": getattr(job, "pending", False),
                }
            )
        return jobs

    async def start(self) -> None:
        """Start the scheduler and block until shutdown."""
        if self._running:  # pragma: no cover
            logger.warning("scheduler_already_running")
            return

        self._running = True  # pragma: no cover (blocking scheduler runtime)
        self._shutdown_event.clear()  # pragma: no cover

        loop = asyncio.get_running_loop()  # pragma: no cover
        for sig in (signal.SIGTERM, signal.SIGINT):  # pragma: no cover
            loop.add_signal_handler(sig, self._signal_handler)  # pragma: no cover

        self.scheduler.start()  # pragma: no cover
        logger.info("scheduler_started", jobs=len(self._jobs))  # pragma: no cover
        self._update_metrics()  # pragma: no cover

        await self._shutdown_event.wait()  # pragma: no cover

    async def shutdown(self, wait: bool = True) -> None:
        """Shutdown the scheduler gracefully.

        Args:
            wait: Wait for running jobs to complete
        """
        if not self._running:
            return

        logger.info("scheduler_shutting_down")
        self.scheduler.shutdown(wait=wait)
        self._running = False
        self._shutdown_event.set()
        logger.info("scheduler_stopped")

    def _signal_handler(self) -> None:
        logger.info("shutdown_signal_received")
        asyncio.create_task(self.shutdown())

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        run_time = str(event.scheduled_run_time)
        if event.code == EVENT_JOB_ERROR:
            logger.error(
                "scheduled_job_failed",
                job_id=event.job_id,
                scheduled_run_time=run_time,
                exception=str(event.exception),
                traceback=event.traceback,
            )
        elif event.code == EVENT_JOB_MISSED:
            logger.warning("job_missed", job_id=event.job_id, scheduled_run_time=run_time)
        else:
            logger.info("job_executed", job_id=event.job_id, scheduled_run_time=run_time)
        self._update_metrics()

    def _update_metrics(self) -> None:
        jobs = self.scheduler.get_jobs()
        pending = sum(1 for j in jobs if j.pending)
        SCHEDULER_JOBS.labels(status="pending").set(pending)
        SCHEDULER_JOBS.labels(status="scheduled").set(len(jobs) - pending)

    @property
    def is_running(self) -> bool:
        return self._running
