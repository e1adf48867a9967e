"""Worker command: the long-running job queue and digest scheduler."""

import asyncio
from pathlib import Path

import typer

from src.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_success,
    handle_errors,
    load_config,
    logger,
    seeded_store,
)
from src.models.config import CuratorConfig
from src.scheduling import (
    GENERATE_DAILY_DIGESTS,
    RANK_PAPERS,
    SCOUT_PAPERS,
    CuratorScheduler,
    EnrichPaperJob,
    GenerateDailyDigestsJob,
    JobQueue,
    RankPapersJob,
    ScoutPapersJob,
)
from src.services.enricher import Enricher
from src.services.providers.arxiv import ArxivFeedClient
from src.services.ranker import Ranker
from src.services.recommender import Recommender
from src.services.scout import Scout
from src.services.store import PaperStore
from src.utils.rate_limiter import ArxivRateLimiter


def build_job_queue(
    config: CuratorConfig, store: PaperStore, limiter: ArxivRateLimiter
) -> JobQueue:
    """Queue with a handler registered for every named job."""
    queue = JobQueue()
    scout = Scout(ArxivFeedClient(limiter, config.scout), store, config.scout)
    queue.register(ScoutPapersJob(scout, queue=queue))
    queue.register(EnrichPaperJob(store, Enricher.from_config(store, config)))
    queue.register(
        RankPapersJob(
            store, Ranker(store, weights=config.ranking, exploration=config.exploration)
        )
    )
    queue.register(GenerateDailyDigestsJob(store, Recommender(store)))
    return queue


@handle_errors
def worker_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to curator config YAML"
    ),
    scout_every_hours: int = typer.Option(
        0,
        "--scout-every-hours",
        help="Also scout, enrich and rank on this interval (0 disables)",
        min=0,
    ),
):
    """Start the worker: daily digests at the configured local time.

    Press Ctrl+C to stop gracefully.
    """
    config = load_config(config_path)

    async def _serve() -> None:
        store = await seeded_store(config)
        async with ArxivRateLimiter(config.rate_limiter) as limiter:
            queue = build_job_queue(config, store, limiter)
            scheduler = CuratorScheduler.from_config(config)
            scheduler.add_daily_digest_job(
                queue.handlers[GENERATE_DAILY_DIGESTS],
                hour=config.digest_hour,
                minute=config.digest_minute,
                timezone=config.digest_timezone,
            )

            if scout_every_hours:

                async def curate() -> None:
                    queue.enqueue(SCOUT_PAPERS)
                    await queue.run_pending()
                    for profile in await store.list_profiles():
                        queue.enqueue(RANK_PAPERS, {"user_id": profile.user_id})
                    await queue.run_pending()

                scheduler.add_job(
                    curate, job_id="curate", trigger="interval", hours=scout_every_hours
                )

            display_success(
                f"Worker started: digests at {config.digest_hour:02d}:"
                f"{config.digest_minute:02d} {config.digest_timezone}"
            )
            logger.info("worker_started", jobs=scheduler.get_jobs())
            await scheduler.start()

    asyncio.run(_serve())
