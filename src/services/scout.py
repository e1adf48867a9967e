"""Scout: ingests the arXiv taxonomy and recent submissions.

Papers are keyed by base id. An incoming entry creates the paper, replaces
it when its version is strictly newer (status reset to ``new`` for
re-enrichment), or is skipped when the stored version is the same or newer.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog
from pydantic import ValidationError

from src.models.config import ScoutConfig
from src.models.paper import ArxivCategory, Paper, PaperStatus
from src.observability.metrics import PAPERS_INGESTED
from src.services.providers.arxiv import parse_entry
from src.services.providers.base import FeedSource
from src.services.store import PaperStore
from src.utils.arxiv_ids import parse_arxiv_id
from src.utils.exceptions import (
    InvalidArxivIdError,
    MalformedEntryError,
    PartialIngestionError,
    SourceError,
)

logger = structlog.get_logger()


class Scout:
    """Pulls categories and papers from a feed into the store"""

    def __init__(
        self,
        source: FeedSource,
        store: PaperStore,
        config: Optional[ScoutConfig] = None,
    ):
        self.source = source
        self.store = store
        self.config = config or ScoutConfig()

    async def fetch_categories(self) -> List[ArxivCategory]:
        """Fetch the taxonomy and upsert every matching category."""
        categories = await self.source.fetch_sets()
        for category in categories:
            await self.store.upsert_category(category)
        logger.info("categories_stored", count=len(categories))
        return categories

    async def ingest_recent(
        self,
        categories: Optional[Sequence[str]] = None,
        max_per_category: Optional[int] = None,
    ) -> List[str]:
        """Ingest the newest submissions of each category.

        Each category is fetched on its own; a failing feed does not stop
        the others.

        Args:
            categories: arXiv categories, e.g. ``["cs.AI"]``. Defaults to the
                configured categories.
            max_per_category: Entries fetched per category.

        Returns:
            Base ids of papers created or updated, in processing order.

        Raises:
            PartialIngestionError: If any category feed could not be
                fetched. Carries the ids ingested from the other categories.
        """
        categories = list(categories or self.config.default_categories)
        limit = max_per_category or self.config.max_per_category

        changed: List[str] = []
        failures: Dict[str, str] = {}
        for category in categories:
            try:
                entries = await self.source.fetch_category_entries(category, limit)
            except SourceError as e:
                failures[category] = str(e)
                logger.error("category_fetch_failed", category=category, error=str(e))
                continue

            for raw in entries:
                arxiv_id = await self._process_entry(raw)
                if arxiv_id and arxiv_id not in changed:
                    changed.append(arxiv_id)

        logger.info(
            "ingestion_completed",
            categories=categories,
            changed=len(changed),
            failed_categories=sorted(failures),
        )
        if failures:
            raise PartialIngestionError(changed, failures)
        return changed

    async def _process_entry(self, raw: Mapping[str, Any]) -> Optional[str]:
        try:
            entry = parse_entry(raw)
            base_id, version = parse_arxiv_id(entry.entry_id)
        except (MalformedEntryError, InvalidArxivIdError) as e:
            PAPERS_INGESTED.labels(outcome="malformed").inc()
            logger.warning(
                "feed_entry_skipped",
                entry_id=raw.get("id", "unknown"),
                error=str(e),
            )
            return None

        existing = await self.store.get_paper(base_id)
        if existing is not None and existing.version >= version:
            PAPERS_INGESTED.labels(outcome="skipped").inc()
            logger.debug(
                "paper_version_skipped",
                arxiv_id=base_id,
                incoming=version,
                stored=existing.version,
            )
            return None

        try:
            paper = Paper(
                arxiv_id=base_id,
                version=version,
                title=entry.title,
                abstract=entry.summary,
                authors=entry.authors,
                categories=entry.categories,
                pdf_url=entry.pdf_url,
                published_at=entry.published,
                updated_at=entry.updated,
                status=PaperStatus.NEW,
            )
        except ValidationError as e:
            PAPERS_INGESTED.labels(outcome="malformed").inc()
            logger.warning("feed_entry_invalid", arxiv_id=base_id, error=str(e))
            return None
        await self.store.upsert_paper(paper)

        outcome = "updated" if existing is not None else "created"
        PAPERS_INGESTED.labels(outcome=outcome).inc()
        logger.info(f"paper_{outcome}", arxiv_id=base_id, version=version)
        return base_id
