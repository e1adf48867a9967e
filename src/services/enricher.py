"""Enricher: Tier 0 enrichment from title and abstract.

For each paper: embedding, math depth, topics/facets, evidence signals.
The result is upserted by paper id and the paper moves to ``enriched``.
"""

from typing import Callable, Optional, Sequence

import structlog

from src.models.config import CuratorConfig
from src.models.paper import Paper, PaperEnriched, PaperStatus
from src.observability.metrics import PAPERS_ENRICHED
from src.services.classifier import (
    FallbackClassifier,
    KeywordClassifier,
    LLMClassifier,
)
from src.services.embeddings import EmbeddingService
from src.services.llm.providers.google import GoogleProvider
from src.services.llm.providers.ollama import OllamaProvider
from src.services.signals import detect_evidence_signals, estimate_math_depth
from src.services.store import PaperStore
from src.utils.concurrency import BulkResult, gather_bounded

logger = structlog.get_logger()


def embedding_text(paper: Paper) -> str:
    return f"{paper.title}\n\n{paper.abstract}"


class Enricher:
    """Computes and stores PaperEnriched records"""

    def __init__(
        self,
        store: PaperStore,
        embeddings: EmbeddingService,
        local_classifier: FallbackClassifier,
        cloud_classifier_factory: Optional[Callable[[], FallbackClassifier]] = None,
        bulk_concurrency: int = 3,
    ):
        self.store = store
        self.embeddings = embeddings
        self.local_classifier = local_classifier
        self._cloud_classifier_factory = cloud_classifier_factory
        self._cloud_classifier: Optional[FallbackClassifier] = None
        self.bulk_concurrency = bulk_concurrency

    @classmethod
    def from_config(cls, store: PaperStore, config: CuratorConfig) -> "Enricher":
        enrichment = config.enrichment
        providers = config.providers

        local = FallbackClassifier(
            LLMClassifier(
                OllamaProvider(
                    base_url=providers.ollama_base_url,
                    model=enrichment.local_llm_model,
                    timeout_seconds=providers.request_timeout_seconds,
                )
            ),
            KeywordClassifier(),
        )

        def cloud() -> FallbackClassifier:
            return FallbackClassifier(
                LLMClassifier(
                    GoogleProvider(
                        api_key=providers.google_api_key,
                        model=enrichment.cloud_llm_model,
                    )
                ),
                KeywordClassifier(),
            )

        return cls(
            store=store,
            embeddings=EmbeddingService.from_config(enrichment, providers),
            local_classifier=local,
            cloud_classifier_factory=cloud,
            bulk_concurrency=enrichment.bulk_concurrency,
        )

    def _classifier(self, use_local_llm: bool) -> FallbackClassifier:
        if use_local_llm or self._cloud_classifier_factory is None:
            return self.local_classifier
        if self._cloud_classifier is None:
            self._cloud_classifier = self._cloud_classifier_factory()
        return self._cloud_classifier

    async def enrich(
        self,
        paper: Paper,
        use_local_embeddings: bool = True,
        use_local_llm: bool = True,
    ) -> PaperEnriched:
        """Enrich one paper and persist the result.

        Raises:
            EmbeddingError: If the embedding backend fails
            DimensionMismatchError: If the embedding has the wrong dimension
            ConfigurationError: If a cloud backend is selected without
                credentials
        """
        embedding = await self.embeddings.embed(
            embedding_text(paper), use_local=use_local_embeddings
        )
        math_depth = estimate_math_depth(paper.title, paper.abstract)

        classifier = self._classifier(use_local_llm)
        classification, classifier_name = await classifier.classify_with_source(paper)

        signals = detect_evidence_signals(paper.abstract)

        enriched = PaperEnriched(
            arxiv_id=paper.arxiv_id,
            topics=classification.topics,
            facets=classification.facets,
            embedding=embedding,
            math_depth=math_depth,
            signals=signals,
            classifier=classifier_name,
        )
        await self.store.upsert_enrichment(enriched)
        await self.store.set_status([paper.arxiv_id], PaperStatus.ENRICHED)

        PAPERS_ENRICHED.labels(status="success").inc()
        logger.info(
            "paper_enriched",
            arxiv_id=paper.arxiv_id,
            topics=enriched.topics,
            facets=enriched.facets,
            math_depth=round(math_depth, 3),
            classifier=classifier_name,
        )
        return enriched

    async def enrich_many(
        self,
        papers: Sequence[Paper],
        concurrency: Optional[int] = None,
        use_local_embeddings: bool = True,
        use_local_llm: bool = True,
    ) -> BulkResult:
        """Enrich several papers with bounded concurrency.

        A failing paper is counted and logged; the others still complete.
        """

        def task(p: Paper) -> Callable:
            async def run() -> PaperEnriched:
                try:
                    return await self.enrich(p, use_local_embeddings, use_local_llm)
                except Exception as e:
                    PAPERS_ENRICHED.labels(status="failed").inc()
                    logger.error(
                        "paper_enrichment_failed", arxiv_id=p.arxiv_id, error=str(e)
                    )
                    raise

            return run

        result = await gather_bounded(
            [task(p) for p in papers], concurrency or self.bulk_concurrency
        )
        logger.info(
            "bulk_enrichment_completed",
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

