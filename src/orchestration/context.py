"""Pipeline context for shared state across phases."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional

import structlog

from src.models.profile import UserProfile
from src.observability.context import new_run_id

if TYPE_CHECKING:
    from src.services.enricher import Enricher
    from src.services.ranker import Ranker
    from src.services.scout import Scout
    from src.services.store import PaperStore

logger = structlog.get_logger()


@dataclass
class PipelineContext:
    """Shared context for pipeline phases.

    Holds the services each phase needs, the run parameters and the state
    accumulated while the run progresses.
    """

    store: "PaperStore"
    profile: UserProfile
    run_id: str = field(default_factory=lambda: new_run_id("run"))
    started_at: datetime = field(default_factory=datetime.utcnow)

    # Services (a phase without its service is skipped)
    scout: Optional["Scout"] = None
    enricher: Optional["Enricher"] = None
    ranker: Optional["Ranker"] = None

    # Run parameters
    categories: List[str] = field(default_factory=list)
    max_per_category: Optional[int] = None
    enrich_concurrency: int = 1

    # Accumulated state
    ingested_ids: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)
    stop_requested: bool = False

    def add_error(self, phase: str, error: str, arxiv_id: Optional[str] = None) -> None:
        """Record an error.

        Args:
            phase: Phase where error occurred
            error: Error message
            arxiv_id: Paper the error belongs to, if any
        """
        entry: Dict[str, str] = {"phase": phase, "error": error}
        if arxiv_id:
            entry["arxiv_id"] = arxiv_id
        self.errors.append(entry)
        logger.error(
            "pipeline_error",
            phase=phase,
            error=error,
            arxiv_id=arxiv_id,
            run_id=self.run_id,
        )

    def request_stop(self) -> None:
        """Ask running phases to stop at the next paper boundary."""
        self.stop_requested = True
