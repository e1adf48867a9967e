"""Job definitions and the in-process job queue.

Named jobs:
- scout-papers: ingest recent submissions, then queue enrichment per paper
- enrich-paper: Tier 0 enrichment of one paper
- rank-papers: score enriched papers for one user
- generate-daily-digests: build today's briefing for every digest-enabled user

Usage:
    queue = JobQueue()
    queue.register(ScoutPapersJob(scout, queue=queue))
    queue.register(EnrichPaperJob(store, enricher))

    job_id = queue.enqueue("scout-papers", {"categories": ["cs.AI"]})
    await queue.run_pending()
"""

import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog

from src.observability.context import clear_correlation_id, set_correlation_id
from src.observability.metrics import JOBS_RUN
from src.services.enricher import Enricher
from src.services.ranker import Ranker
from src.services.recommender import Recommender
from src.services.scout import Scout
from src.services.store import PaperStore
from src.utils.concurrency import gather_bounded
from src.utils.exceptions import (
    PaperNotFoundError,
    PartialIngestionError,
    ProfileNotFoundError,
)

logger = structlog.get_logger()

SCOUT_PAPERS = "scout-papers"
ENRICH_PAPER = "enrich-paper"
RANK_PAPERS = "rank-papers"
GENERATE_DAILY_DIGESTS = "generate-daily-digests"


class BaseJob(ABC):
    """Base class for queued and scheduled jobs.

    Provides common functionality:
    - Correlation ID management
    - Error handling and logging
    - Execution timing
    """

    def __init__(self, name: str):
        """Initialize job.

        Args:
            name: Job name, also the queue handler name
        """
        self.name = name
        self.last_run: Optional[datetime] = None
        self.last_success: Optional[datetime] = None
        self.run_count: int = 0
        self.error_count: int = 0

    async def __call__(self, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Execute the job with correlation ID and error handling."""
        start = time.time()
        corr_id = set_correlation_id(
            f"{self.name}-{datetime.utcnow().strftime('%Y%m%d-%H%M%S')}"
        )

        logger.info("job_starting", job_name=self.name, correlation_id=corr_id)

        try:
            result = await self.run(payload or {})

            self.last_run = datetime.utcnow()
            self.last_success = self.last_run
            self.run_count += 1
            JOBS_RUN.labels(job=self.name, status="completed").inc()

            logger.info(
                "job_completed",
                job_name=self.name,
                duration_seconds=round(time.time() - start, 2),
                correlation_id=corr_id,
            )
            return result

        except Exception as e:
            self.last_run = datetime.utcnow()
            self.error_count += 1
            JOBS_RUN.labels(job=self.name, status="failed").inc()

            logger.error(
                "job_failed",
                job_name=self.name,
                error=str(e),
                correlation_id=corr_id,
                exc_info=True,
            )
            raise

        finally:
            clear_correlation_id()

    @abstractmethod
    async def run(self, payload: Dict[str, Any]) -> Any:
        """Execute the job logic.

        Args:
            payload: Job data supplied when it was enqueued

        Returns:
            Job result (implementation-specific)
        """
        pass  # pragma: no cover (abstract method)

    def get_status(self) -> Dict[str, Any]:
        """Get job status information."""
        return {
            "name": self.name,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": (
                self.last_success.isoformat() if self.last_success else None
            ),
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class ScoutPapersJob(BaseJob):
    """Ingest recent submissions and queue each changed paper for enrichment.

    Payload keys: ``categories`` (list), ``max_results`` (int),
    ``use_local_embeddings`` / ``use_local_llm`` (forwarded to enrichment).
    """

    def __init__(self, scout: Scout, queue: Optional["JobQueue"] = None):
        super().__init__(SCOUT_PAPERS)
        self.scout = scout
        self.queue = queue

    async def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Ingest, then queue enrichment.

        When some category feeds fail, the papers from the others are still
        queued before the error is re-raised.
        """
        try:
            arxiv_ids = await self.scout.ingest_recent(
                payload.get("categories"), payload.get("max_results")
            )
        except PartialIngestionError as e:
            self._enqueue_enrichment(e.arxiv_ids, payload)
            raise

        enqueued = self._enqueue_enrichment(arxiv_ids, payload)

        logger.info(
            "scout_papers_completed",
            papers=len(arxiv_ids),
            enrich_jobs=len(enqueued),
        )
        return {"arxiv_ids": arxiv_ids, "enrich_jobs": enqueued}

    def _enqueue_enrichment(
        self, arxiv_ids: List[str], payload: Dict[str, Any]
    ) -> List[str]:
        if self.queue is None:
            return []
        return [
            self.queue.enqueue(
                ENRICH_PAPER,
                {
                    "arxiv_id": arxiv_id,
                    "use_local_embeddings": payload.get("use_local_embeddings", True),
                    "use_local_llm": payload.get("use_local_llm", True),
                },
            )
            for arxiv_id in arxiv_ids
        ]


class EnrichPaperJob(BaseJob):
    """Enrich one stored paper.

    Payload keys: ``arxiv_id`` (required), ``use_local_embeddings``,
    ``use_local_llm``.
    """

    def __init__(self, store: PaperStore, enricher: Enricher):
        super().__init__(ENRICH_PAPER)
        self.store = store
        self.enricher = enricher

    async def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        arxiv_id = payload["arxiv_id"]
        paper = await self.store.get_paper(arxiv_id)
        if paper is None:
            raise PaperNotFoundError(arxiv_id)

        enriched = await self.enricher.enrich(
            paper,
            use_local_embeddings=payload.get("use_local_embeddings", True),
            use_local_llm=payload.get("use_local_llm", True),
        )
        return {
            "arxiv_id": arxiv_id,
            "topics": enriched.topics,
            "facets": enriched.facets,
            "classifier": enriched.classifier,
        }


class RankPapersJob(BaseJob):
    """Score enriched papers for one user.

    Payload keys: ``user_id`` (required), ``run_id``.
    """

    def __init__(self, store: PaperStore, ranker: Ranker):
        super().__init__(RANK_PAPERS)
        self.store = store
        self.ranker = ranker

    async def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        user_id = payload["user_id"]
        profile = await self.store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        run_id = payload.get("run_id") or f"rank-{uuid.uuid4().hex[:12]}"
        ranking = await self.ranker.rank_unranked(profile, run_id)
        return {
            "user_id": user_id,
            "run_id": run_id,
            "scored": len(ranking.scores),
            "skipped": len(ranking.skipped),
        }


class GenerateDailyDigestsJob(BaseJob):
    """Build today's briefing for every profile with ``digest_enabled``.

    One user's failure never affects the others.
    """

    def __init__(
        self, store: PaperStore, recommender: Recommender, concurrency: int = 3
    ):
        super().__init__(GENERATE_DAILY_DIGESTS)
        self.store = store
        self.recommender = recommender
        self.concurrency = concurrency

    async def run(self, payload: Dict[str, Any]) -> Dict[str, int]:
        profiles = [p for p in await self.store.list_profiles() if p.digest_enabled]
        logger.info("daily_digests_starting", users=len(profiles))

        if not profiles:
            return {"succeeded": 0, "failed": 0, "total": 0}

        date = payload.get("date")

        def task(user_id: str):
            async def generate():
                try:
                    return await self.recommender.generate_daily_digest(user_id, date)
                except Exception as e:
                    logger.error("daily_digest_failed", user_id=user_id, error=str(e))
                    raise

            return generate

        result = await gather_bounded(
            [task(p.user_id) for p in profiles], self.concurrency
        )

        logger.info(
            "daily_digests_completed",
            succeeded=result.succeeded,
            failed=result.failed,
            total=result.total,
        )
        return {
            "succeeded": result.succeeded,
            "failed": result.failed,
            "total": result.total,
        }


class JobState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class QueuedJob:
    """A job instance waiting in, or finished by, the queue"""

    job_id: str
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    state: JobState = JobState.PENDING
    result: Any = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None


class JobQueue:
    """In-process queue of named jobs.

    Jobs run in submission order. Jobs enqueued while the queue is draining
    (e.g. enrichment queued by a scout job) run in the same drain.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, BaseJob] = {}
        self._jobs: Dict[str, QueuedJob] = {}
        self._pending: List[str] = []

    def register(self, job: BaseJob) -> None:
        """Register ``job`` as the handler for its name."""
        self._handlers[job.name] = job
        logger.debug("job_handler_registered", job_name=job.name)

    @property
    def handlers(self) -> Dict[str, BaseJob]:
        return dict(self._handlers)

    def enqueue(self, name: str, payload: Optional[Dict[str, Any]] = None) -> str:
        """Queue a job and return its id.

        Raises:
            ValueError: If no handler is registered for ``name``
        """
        if name not in self._handlers:
            raise ValueError(f"No handler registered for job '{name}'")

        job = QueuedJob(job_id=uuid.uuid4().hex, name=name, payload=payload or {})
        self._jobs[job.job_id] = job
        self._pending.append(job.job_id)
        logger.debug("job_enqueued", job_id=job.job_id, job_name=name)
        return job.job_id

    def get(self, job_id: str) -> Optional[QueuedJob]:
        return self._jobs.get(job_id)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def run(self, job_id: str) -> Any:
        """Run one queued job now.

        Raises:
            KeyError: If ``job_id`` is unknown
            Exception: Whatever the job raised, after the failure is recorded
        """
        job = self._jobs[job_id]
        if job_id in self._pending:
            self._pending.remove(job_id)

        try:
            job.result = await self._handlers[job.name](job.payload)
            job.state = JobState.COMPLETED
            return job.result
        except Exception as e:
            job.state = JobState.FAILED
            job.error = str(e)
            raise
        finally:
            job.finished_at = datetime.utcnow()

    async def run_pending(self) -> List[QueuedJob]:
        """Drain the queue; a failing job is recorded and the drain continues."""
        finished: List[QueuedJob] = []
        while self._pending:
            job_id = self._pending[0]
            try:
                await self.run(job_id)
            except Exception as e:
                logger.warning("queued_job_failed", job_id=job_id, error=str(e))
            finished.append(self._jobs[job_id])

        logger.info(
            "job_queue_drained",
            completed=sum(1 for j in finished if j.state == JobState.COMPLETED),
            failed=sum(1 for j in finished if j.state == JobState.FAILED),
        )
        return finished
