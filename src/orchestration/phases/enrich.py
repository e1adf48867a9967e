"""Enrich phase - Tier 0 enrichment of papers in status ``new``."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List

from src.models.paper import Paper, PaperStatus
from src.observability.metrics import PAPERS_ENRICHED
from src.orchestration.phases.base import PipelinePhase
from src.utils.concurrency import gather_bounded

if TYPE_CHECKING:
    from src.services.enricher import Enricher


@dataclass
class EnrichResult:
    """Result of the enrich phase."""

    enriched: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    stopped: bool = False


class EnrichPhase(PipelinePhase[EnrichResult]):
    """Enriches every stored paper with status ``new``.

    Papers are processed one at a time by default so local models are not
    oversubscribed; a failing paper is recorded and skipped.
    """

    @property
    def name(self) -> str:
        return "enrich"

    def is_enabled(self) -> bool:
        return self.context.enricher is not None

    async def execute(self) -> EnrichResult:
        enricher = self.context.enricher
        if enricher is None:
            raise RuntimeError("Enrich phase requires an enricher")

        papers = await self.context.store.list_papers(status=PaperStatus.NEW)
        self.logger.info("papers_to_enrich", count=len(papers))

        result = EnrichResult()
        if self.context.enrich_concurrency > 1:
            await self._enrich_concurrently(enricher, papers, result)
        else:
            for paper in papers:
                if self.context.stop_requested:
                    break
                await self._enrich_one(enricher, paper, result)

        done = len(result.enriched) + len(result.failed)
        if done < len(papers) and self.context.stop_requested:
            result.stopped = True
            self.logger.info("enrich_stopped", remaining=len(papers) - done)

        self.logger.info(
            "enrich_completed",
            enriched=len(result.enriched),
            failed=len(result.failed),
        )
        return result

    async def _enrich_one(
        self, enricher: "Enricher", paper: Paper, result: EnrichResult
    ) -> None:
        profile = self.context.profile
        try:
            await enricher.enrich(
                paper,
                use_local_embeddings=profile.use_local_embeddings,
                use_local_llm=profile.use_local_llm,
            )
            result.enriched.append(paper.arxiv_id)
        except Exception as e:
            PAPERS_ENRICHED.labels(status="failed").inc()
            result.failed.append(paper.arxiv_id)
            self.context.add_error(self.name, str(e), arxiv_id=paper.arxiv_id)

    async def _enrich_concurrently(
        self, enricher: "Enricher", papers: List[Paper], result: EnrichResult
    ) -> None:
        def task(paper: Paper):
            async def run() -> None:
                if self.context.stop_requested:
                    return
                await self._enrich_one(enricher, paper, result)

            return run

        await gather_bounded(
            [task(p) for p in papers], self.context.enrich_concurrency
        )
        order = {p.arxiv_id: i for i, p in enumerate(papers)}
        result.enriched.sort(key=order.__getitem__)
        result.failed.sort(key=order.__getitem__)

    def _get_default_result(self) -> EnrichResult:
        return EnrichResult()
