"""Daily briefing generation.

A briefing holds at most ``noise_cap`` papers: the best-scoring ones
(exploit) plus a share of the most orthogonal remaining candidates
(explore), sized by the profile's exploration rate.
"""

import datetime as dt
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import structlog

from src.models.briefing import Briefing, BriefingStatus
from src.models.paper import PaperEnriched, PaperStatus
from src.models.score import Score
from src.services.store import PaperStore
from src.utils.exceptions import BriefingNotFoundError, ProfileNotFoundError
from src.utils.vector_math import cosine_similarity, is_zero

logger = structlog.get_logger()

NEUTRAL_DIVERSITY = 0.5


@dataclass
class Candidate:
    """Ranked paper eligible for a briefing"""

    arxiv_id: str
    score: float
    embedding: Optional[List[float]] = None


def diversity(embedding: Optional[Sequence[float]], user_vector: Sequence[float]) -> float:
    """1 - |cos| against the interest vector; neutral when undefined."""
    if not embedding or is_zero(user_vector) or len(embedding) != len(user_vector):
        return NEUTRAL_DIVERSITY
    return 1.0 - abs(cosine_similarity(embedding, user_vector))


def select_diverse(
    candidates: Sequence[Candidate],
    count: int,
    user_vector: Sequence[float],
) -> List[Candidate]:
    """Pick up to ``count`` candidates least aligned with the interest vector.

    Ties keep the incoming (score) order.
    """
    if count <= 0 or not candidates:
        return []
    ranked = sorted(
        enumerate(candidates),
        key=lambda pair: (-diversity(pair[1].embedding, user_vector), pair[0]),
    )
    return [c for _, c in ranked[:count]]


def split_budget(noise_cap: int, exploration_rate: float) -> Tuple[int, int]:
    """(exploit, explore) counts for a briefing."""
    exploit = math.floor(noise_cap * (1.0 - exploration_rate))
    return exploit, noise_cap - exploit


class Recommender:
    """Assembles and tracks daily briefings"""

    def __init__(self, store: PaperStore):
        self.store = store

    async def generate_daily_digest(
        self, user_id: str, date: Optional[dt.date] = None
    ) -> Briefing:
        """Build (or rebuild) the briefing of ``user_id`` for ``date``.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = await self.store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        date = date or dt.date.today()

        candidates = await self._candidates(user_id, profile.score_threshold)
        exploit_count, explore_count = split_budget(
            profile.noise_cap, profile.exploration_rate
        )

        exploit = candidates[:exploit_count]
        explore = select_diverse(
            candidates[exploit_count:], explore_count, profile.interest_vector
        )
        selected = exploit + explore

        avg_score = (
            sum(c.score for c in selected) / len(selected) if selected else 0.0
        )
        briefing = Briefing(
            user_id=user_id,
            date=date,
            paper_ids=[c.arxiv_id for c in selected],
            paper_count=len(selected),
            avg_score=avg_score,
            status=BriefingStatus.GENERATED,
        )
        await self.store.upsert_briefing(briefing)

        logger.info(
            "briefing_generated",
            user_id=user_id,
            date=date.isoformat(),
            candidates=len(candidates),
            exploit=len(exploit),
            explore=len(explore),
            avg_score=round(avg_score, 4),
        )
        return briefing

    async def mark_viewed(self, user_id: str, date: dt.date) -> Briefing:
        """Flag a briefing as viewed.

        Raises:
            BriefingNotFoundError: If no briefing exists for the day.
        """
        briefing = await self.store.get_briefing(user_id, date)
        if briefing is None:
            raise BriefingNotFoundError(
                f"No briefing for user {user_id} on {date.isoformat()}"
            )
        viewed = briefing.model_copy(update={"status": BriefingStatus.VIEWED})
        await self.store.upsert_briefing(viewed)
        logger.info("briefing_viewed", user_id=user_id, date=date.isoformat())
        return viewed

    async def _candidates(self, user_id: str, threshold: float) -> List[Candidate]:
        latest = await self.store.get_latest_scores(user_id)
        ranked_ids = {
            p.arxiv_id for p in await self.store.list_papers(status=PaperStatus.RANKED)
        }

        eligible: List[Score] = [
            s
            for arxiv_id, s in latest.items()
            if arxiv_id in ranked_ids and s.final_score >= threshold
        ]
        eligible.sort(key=lambda s: (-s.final_score, s.arxiv_id))

        candidates = []
        for s in eligible:
            enriched: Optional[PaperEnriched] = await self.store.get_enrichment(s.arxiv_id)
            candidates.append(
                Candidate(
                    arxiv_id=s.arxiv_id,
                    score=s.final_score,
                    embedding=enriched.embedding if enriched else None,
                )
            )
        return candidates
