"""Scheduling module: named jobs, the in-process job queue and the
APScheduler wrapper used by the worker.

Usage:
    from src.scheduling import CuratorScheduler, GenerateDailyDigestsJob

    scheduler = CuratorScheduler()
    scheduler.add_daily_digest_job(GenerateDailyDigestsJob(store, recommender))
    await scheduler.start()
"""

from src.scheduling.scheduler import CuratorScheduler
from src.scheduling.jobs import (
    ENRICH_PAPER,
    GENERATE_DAILY_DIGESTS,
    RANK_PAPERS,
    SCOUT_PAPERS,
    BaseJob,
    EnrichPaperJob,
    GenerateDailyDigestsJob,
    JobQueue,
    JobState,
    QueuedJob,
    RankPapersJob,
    ScoutPapersJob,
)

__all__ = [
    "CuratorScheduler",
    "BaseJob",
    "ScoutPapersJob",
    "EnrichPaperJob",
    "RankPapersJob",
    "GenerateDailyDigestsJob",
    "JobQueue",
    "JobState",
    "QueuedJob",
    "SCOUT_PAPERS",
    "ENRICH_PAPER",
    "RANK_PAPERS",
    "GENERATE_DAILY_DIGESTS",
]
