"""Pipeline phase modules.

Each phase is an independent, testable module that handles one stage of
the curation workflow.
"""

from src.orchestration.phases.base import PipelinePhase
from src.orchestration.phases.scout import ScoutPhase, ScoutResult
from src.orchestration.phases.enrich import EnrichPhase, EnrichResult
from src.orchestration.phases.rank import RankPhase, RankResult

__all__ = [
    "PipelinePhase",
    "ScoutPhase",
    "ScoutResult",
    "EnrichPhase",
    "EnrichResult",
    "RankPhase",
    "RankResult",
]
