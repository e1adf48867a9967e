"""Multi-signal ranker.

Scores enriched papers for one user:

    final = 0.20*N + 0.25*E + 0.10*V + 0.30*P + 0.10*L - 0.05*M + exploration

N novelty, E evidence, V velocity, P personal fit, L lab prior, M math
penalty. Weights come from ``RankingWeights``. Papers excluded by the user's
rules are never scored; papers without usable enrichment are reported as
skipped rather than scored as zero.
"""

import hashlib
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog

from src.models.config import ExplorationConfig, RankingWeights
from src.models.paper import Paper, PaperEnriched, PaperStatus
from src.models.profile import UserProfile
from src.models.score import RankingResult, Score, SkippedPaper
from src.observability.metrics import PAPERS_RANKED
from src.services import scoring
from src.services.rules import should_exclude
from src.services.store import PaperStore
from src.utils.vector_math import clip01, is_zero

logger = structlog.get_logger()

SKIP_EXCLUDED = "excluded_by_rules"
SKIP_MISSING_ENRICHMENT = "missing_enrichment"
SKIP_MISSING_EMBEDDING = "missing_embedding"
SKIP_PLACEHOLDER_EMBEDDING = "placeholder_embedding"
SKIP_DIMENSION_MISMATCH = "dimension_mismatch"


class VelocityProvider(ABC):
    """Source of topic/attention momentum for a paper"""

    @abstractmethod
    def velocity(self, paper: Paper, enriched: PaperEnriched) -> float:
        pass


class ConstantVelocity(VelocityProvider):
    def __init__(self, value: float = scoring.DEFAULT_VELOCITY):
        self.value = value

    def velocity(self, paper: Paper, enriched: PaperEnriched) -> float:
        return self.value


class AffiliationLookup(ABC):
    """Resolves a paper's authors to institutional affiliations"""

    @abstractmethod
    def affiliations(self, paper: Paper) -> List[str]:
        pass


class NoAffiliations(AffiliationLookup):
    """Default lookup: arXiv feeds carry no affiliation data"""

    def affiliations(self, paper: Paper) -> List[str]:
        return []


class StaticAffiliationLookup(AffiliationLookup):
    """Author name -> affiliation mapping supplied up front"""

    def __init__(self, mapping: Dict[str, str]):
        self.mapping = dict(mapping)

    def affiliations(self, paper: Paper) -> List[str]:
        return [self.mapping[a] for a in paper.authors if a in self.mapping]


def exploration_draw(user_id: str, arxiv_id: str, run_id: str) -> float:
    """Deterministic u in [0, 1) for one (user, paper, run)."""
    digest = hashlib.sha256(f"{user_id}:{arxiv_id}:{run_id}".encode()).digest()
    return random.Random(int.from_bytes(digest[:8], "big")).random()


class Ranker:
    """Scores papers against a user profile"""

    def __init__(
        self,
        store: Optional[PaperStore] = None,
        weights: Optional[RankingWeights] = None,
        exploration: Optional[ExplorationConfig] = None,
        velocity_provider: Optional[VelocityProvider] = None,
        affiliation_lookup: Optional[AffiliationLookup] = None,
    ):
        self.store = store
        self.weights = weights or RankingWeights()
        self.exploration = exploration or ExplorationConfig()
        self.velocity_provider = velocity_provider or ConstantVelocity()
        self.affiliation_lookup = affiliation_lookup or NoAffiliations()

    async def rank_papers(
        self,
        papers: Sequence[Paper],
        profile: UserProfile,
        run_id: str,
        enrichments: Optional[Dict[str, PaperEnriched]] = None,
    ) -> RankingResult:
        """Score ``papers`` for ``profile``.

        Args:
            papers: Papers to score.
            profile: The user's profile.
            run_id: Ranking run id; seeds the exploration draw.
            enrichments: Enrichment by arxiv id. Loaded from the store when
                omitted.

        Returns:
            RankingResult with scores sorted by final score (desc, ties by
            arxiv id) and the skipped papers with their reasons.
        """
        if enrichments is None:
            enrichments = await self._load_enrichments(papers)

        result = RankingResult(user_id=profile.user_id, run_id=run_id)
        for paper in papers:
            outcome = self.score_paper(
                paper, enrichments.get(paper.arxiv_id), profile, run_id
            )
            if isinstance(outcome, SkippedPaper):
                result.skipped.append(outcome)
                PAPERS_RANKED.labels(
                    outcome="excluded" if outcome.reason == SKIP_EXCLUDED else "skipped"
                ).inc()
            else:
                result.scores.append(outcome)
                PAPERS_RANKED.labels(outcome="scored").inc()

        result.scores.sort(key=lambda s: (-s.final_score, s.arxiv_id))

        logger.info(
            "ranking_completed",
            user_id=profile.user_id,
            run_id=run_id,
            scored=len(result.scores),
            skipped=len(result.skipped),
            excluded=len(result.excluded_ids),
        )
        return result

    def score_paper(
        self,
        paper: Paper,
        enriched: Optional[PaperEnriched],
        profile: UserProfile,
        run_id: str,
    ) -> Union[Score, SkippedPaper]:
        """Score one paper, or explain why it was skipped."""
        skip_reason = self._check_usable(enriched, profile)
        if skip_reason or enriched is None:
            skip_reason = skip_reason or SKIP_MISSING_ENRICHMENT
            logger.warning(
                "paper_skipped", arxiv_id=paper.arxiv_id, reason=skip_reason
            )
            return SkippedPaper(arxiv_id=paper.arxiv_id, reason=skip_reason)

        paper_text = paper.text
        if should_exclude(
            enriched.topics,
            profile.exclude_topics,
            profile.exclude_keywords,
            paper_text,
        ):
            logger.debug("paper_excluded_by_rules", arxiv_id=paper.arxiv_id)
            return SkippedPaper(arxiv_id=paper.arxiv_id, reason=SKIP_EXCLUDED)

        interest = profile.interest_vector
        vocabulary = list(profile.include_keywords) + list(profile.include_topics)

        novelty = scoring.novelty_score(
            enriched.embedding, interest, paper_text, vocabulary
        )
        evidence = scoring.evidence(enriched.signals)
        velocity = scoring.velocity_score(
            self.velocity_provider.velocity(paper, enriched)
        )
        personal_fit = scoring.personal_fit_score(
            enriched.embedding,
            interest,
            enriched.topics,
            paper_text,
            profile.include_topics,
            profile.include_keywords,
        )
        lab_prior = scoring.lab_prior_score(
            self.affiliation_lookup.affiliations(paper), profile.lab_boosts
        )
        math_penalty = scoring.math_penalty_score(
            enriched.math_depth, profile.math_depth_max
        )

        w = self.weights
        contributions = {
            "novelty": w.novelty * novelty,
            "evidence": w.evidence * evidence,
            "velocity": w.velocity * velocity,
            "personal_fit": w.personal_fit * personal_fit,
            "lab_prior": w.lab_prior * lab_prior,
            "math_penalty": -w.math_penalty * math_penalty,
        }

        bonus = (
            profile.exploration_rate
            * self.exploration.scale
            * novelty
            * exploration_draw(profile.user_id, paper.arxiv_id, run_id)
        )
        if bonus > 0:
            contributions["exploration"] = bonus

        final = clip01(sum(contributions.values()))
        why_shown = {k: v for k, v in contributions.items() if v > 0}

        return Score(
            user_id=profile.user_id,
            arxiv_id=paper.arxiv_id,
            run_id=run_id,
            novelty=novelty,
            evidence=evidence,
            velocity=velocity,
            personal_fit=personal_fit,
            lab_prior=lab_prior,
            math_penalty=math_penalty,
            exploration_bonus=bonus,
            final_score=final,
            why_shown=why_shown,
        )

    async def rank_unranked(self, profile: UserProfile, run_id: str) -> RankingResult:
        """Rank the papers ``profile`` has not scored yet and persist the scores.

        Candidates are enriched or ranked papers without a score from this
        user, or whose enrichment is newer than the user's latest score.
        Scores are per user, so one user's run never hides papers from
        another. Scored papers move to status ``ranked``; excluded and
        skipped papers get no score and are checked again on the next run.
        """
        if self.store is None:
            raise RuntimeError("rank_unranked requires a PaperStore")

        papers, enrichments = await self._unscored_for(self.store, profile.user_id)
        logger.info(
            "unranked_papers_found",
            user_id=profile.user_id,
            count=len(papers),
            run_id=run_id,
        )
        if not papers:
            return RankingResult(user_id=profile.user_id, run_id=run_id)

        result = await self.rank_papers(papers, profile, run_id, enrichments)
        if result.scores:
            await self.store.save_scores(result.scores)
            await self.store.set_status(
                [s.arxiv_id for s in result.scores], PaperStatus.RANKED
            )
        return result

    @staticmethod
    async def _unscored_for(
        store: PaperStore, user_id: str
    ) -> Tuple[List[Paper], Dict[str, PaperEnriched]]:
        latest = await store.get_latest_scores(user_id)
        papers: List[Paper] = []
        enrichments: Dict[str, PaperEnriched] = {}
        for status in (PaperStatus.ENRICHED, PaperStatus.RANKED):
            for paper in await store.list_papers(status=status):
                enriched = await store.get_enrichment(paper.arxiv_id)
                score = latest.get(paper.arxiv_id)
                if score is not None and (
                    enriched is None or enriched.enriched_at <= score.created_at
                ):
                    continue
                papers.append(paper)
                if enriched is not None:
                    enrichments[paper.arxiv_id] = enriched
        return papers, enrichments

    async def _load_enrichments(
        self, papers: Sequence[Paper]
    ) -> Dict[str, PaperEnriched]:
        if self.store is None:
            return {}
        enrichments: Dict[str, PaperEnriched] = {}
        for paper in papers:
            enriched = await self.store.get_enrichment(paper.arxiv_id)
            if enriched is not None:
                enrichments[paper.arxiv_id] = enriched
        return enrichments

    @staticmethod
    def _check_usable(
        enriched: Optional[PaperEnriched], profile: UserProfile
    ) -> Optional[str]:
        if enriched is None:
            return SKIP_MISSING_ENRICHMENT
        if not enriched.embedding:
            return SKIP_MISSING_EMBEDDING
        if enriched.embedding_placeholder:
            return SKIP_PLACEHOLDER_EMBEDDING
        interest = profile.interest_vector
        if interest and not is_zero(interest) and len(interest) != len(
            enriched.embedding
        ):
            return SKIP_DIMENSION_MISMATCH
        return None
