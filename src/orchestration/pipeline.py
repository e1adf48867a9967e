"""Curation pipeline orchestration.

Runs scout, enrich and rank for one user in sequence. Each phase is
delegated to a focused phase module.

Usage:
    pipeline = CurationPipeline(context)
    result = await pipeline.run()
"""

from typing import Optional, Sequence

import structlog

from src.models.config import CuratorConfig
from src.models.profile import UserProfile
from src.observability.context import run_context
from src.orchestration.context import PipelineContext
from src.orchestration.phases import EnrichPhase, RankPhase, ScoutPhase
from src.orchestration.result import PipelineResult
from src.services.enricher import Enricher
from src.services.providers.arxiv import ArxivFeedClient
from src.services.ranker import Ranker
from src.services.scout import Scout
from src.services.store import PaperStore
from src.utils.rate_limiter import ArxivRateLimiter

logger = structlog.get_logger()


def build_context(
    config: CuratorConfig,
    store: PaperStore,
    limiter: ArxivRateLimiter,
    profile: UserProfile,
    categories: Optional[Sequence[str]] = None,
    max_per_category: Optional[int] = None,
    enable_scout: bool = True,
    enable_enrich: bool = True,
    enable_rank: bool = True,
) -> PipelineContext:
    """Wire the services a pipeline run needs from configuration."""
    scout = None
    if enable_scout:
        scout = Scout(ArxivFeedClient(limiter, config.scout), store, config.scout)

    return PipelineContext(
        store=store,
        profile=profile,
        scout=scout,
        enricher=Enricher.from_config(store, config) if enable_enrich else None,
        ranker=(
            Ranker(store, weights=config.ranking, exploration=config.exploration)
            if enable_rank
            else None
        ),
        categories=list(categories or profile.arxiv_categories),
        max_per_category=max_per_category or config.scout.max_per_category,
        enrich_concurrency=config.enrichment.concurrency,
    )


class CurationPipeline:
    """Orchestrates ingestion, enrichment and ranking for one user.

    A failing scout phase does not block enrichment and ranking of papers
    already in the store; a failing paper never aborts its phase.
    """

    def __init__(self, context: PipelineContext) -> None:
        self.context = context

    def request_stop(self) -> None:
        """Stop the run after the paper currently being enriched."""
        logger.info("pipeline_stop_requested", run_id=self.context.run_id)
        self.context.request_stop()

    async def run(self) -> PipelineResult:
        """Execute the pipeline.

        Returns:
            PipelineResult with per-phase counts and recorded errors
        """
        context = self.context
        result = PipelineResult(run_id=context.run_id, user_id=context.profile.user_id)

        with run_context(context.run_id):
            logger.info(
                "pipeline_starting",
                user_id=context.profile.user_id,
                categories=context.categories,
            )

            try:
                scout_result = await ScoutPhase(context).run()
                result.papers_ingested = scout_result.papers_ingested
            except Exception:
                # Recorded by the phase; enrichment proceeds on stored papers
                pass

            try:
                enrich_result = await EnrichPhase(context).run()
                result.papers_enriched = len(enrich_result.enriched)
                result.papers_enrichment_failed = len(enrich_result.failed)

                rank_result = await RankPhase(context).run()
                result.papers_ranked = rank_result.papers_ranked
                result.papers_skipped = rank_result.papers_skipped
                result.papers_excluded = rank_result.papers_excluded
            except Exception as e:
                logger.exception("pipeline_failed", error=str(e))

            result.stopped = context.stop_requested
            result.errors = context.errors.copy()

            logger.info("pipeline_completed", **result.to_dict())
        return result
