"""Scout phase - ingest recent arXiv submissions."""

from dataclasses import dataclass, field
from typing import Dict, List

from src.orchestration.phases.base import PipelinePhase
from src.utils.exceptions import PartialIngestionError


@dataclass
class ScoutResult:
    """Result of the scout phase."""

    categories: List[str] = field(default_factory=list)
    arxiv_ids: List[str] = field(default_factory=list)
    failed_categories: Dict[str, str] = field(default_factory=dict)

    @property
    def papers_ingested(self) -> int:
        return len(self.arxiv_ids)


class ScoutPhase(PipelinePhase[ScoutResult]):
    """Fetches new and updated papers for the run's categories.

    Categories whose feed fails are recorded as errors; papers from the
    other categories still count as ingested.
    """

    @property
    def name(self) -> str:
        return "scout"

    def is_enabled(self) -> bool:
        return self.context.scout is not None

    async def execute(self) -> ScoutResult:
        scout = self.context.scout
        if scout is None:
            raise RuntimeError("Scout phase requires a scout")

        categories = self.context.categories or list(
            self.context.profile.arxiv_categories
        )
        failures: Dict[str, str] = {}
        try:
            ids = await scout.ingest_recent(categories, self.context.max_per_category)
        except PartialIngestionError as e:
            ids = e.arxiv_ids
            failures = e.failures
            for category, error in failures.items():
                self.context.add_error(self.name, f"{category}: {error}")
        self.context.ingested_ids.extend(ids)

        self.logger.info(
            "scout_completed",
            categories=categories,
            papers_ingested=len(ids),
            failed_categories=sorted(failures),
        )
        return ScoutResult(
            categories=categories, arxiv_ids=ids, failed_categories=failures
        )

    def _get_default_result(self) -> ScoutResult:
        return ScoutResult()
