"""Rank phase - score enriched papers for the run's user."""

from dataclasses import dataclass

from src.models.score import RankingResult
from src.orchestration.phases.base import PipelinePhase


@dataclass
class RankResult:
    """Result of the rank phase."""

    papers_ranked: int = 0
    papers_skipped: int = 0
    papers_excluded: int = 0

    @classmethod
    def from_ranking(cls, ranking: RankingResult) -> "RankResult":
        excluded = len(ranking.excluded_ids)
        return cls(
            papers_ranked=len(ranking.scores),
            papers_skipped=len(ranking.skipped) - excluded,
            papers_excluded=excluded,
        )


class RankPhase(PipelinePhase[RankResult]):
    """Scores the enriched papers the run's user has not scored yet."""

    @property
    def name(self) -> str:
        return "rank"

    def is_enabled(self) -> bool:
        return self.context.ranker is not None and not self.context.stop_requested

    async def execute(self) -> RankResult:
        ranker = self.context.ranker
        if ranker is None:
            raise RuntimeError("Rank phase requires a ranker")
        ranking = await ranker.rank_unranked(
            self.context.profile, self.context.run_id
        )
        return RankResult.from_ranking(ranking)

    def _get_default_result(self) -> RankResult:
        return RankResult()
