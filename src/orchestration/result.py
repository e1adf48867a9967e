"""Pipeline result data structure."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class PipelineResult:
    """Result of a pipeline run.

    Counts are actual successes of each phase.
    """

    run_id: str = ""
    user_id: str = ""
    papers_ingested: int = 0
    papers_enriched: int = 0
    papers_enrichment_failed: int = 0
    papers_ranked: int = 0
    papers_skipped: int = 0
    papers_excluded: int = 0
    stopped: bool = False
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "run_id": self.run_id,
            "user_id": self.user_id,
            "papers_ingested": self.papers_ingested,
            "papers_enriched": self.papers_enriched,
            "papers_enrichment_failed": self.papers_enrichment_failed,
            "papers_ranked": self.papers_ranked,
            "papers_skipped": self.papers_skipped,
            "papers_excluded": self.papers_excluded,
            "stopped": self.stopped,
            "errors": self.errors,
        }
