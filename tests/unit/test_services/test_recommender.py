"""Tests for daily briefing generation."""

import datetime as dt

import pytest

from src.models.briefing import BriefingStatus
from src.models.paper import Paper, PaperEnriched, PaperStatus
from src.models.profile import UserProfile
from src.models.score import Score
from src.services.recommender import (
    NEUTRAL_DIVERSITY,
    Candidate,
    Recommender,
    diversity,
    select_diverse,
    split_budget,
)
from src.services.store import InMemoryPaperStore
from src.utils.exceptions import BriefingNotFoundError, ProfileNotFoundError

DAY = dt.date(2024, 1, 15)


def make_score(arxiv_id: str, final: float, user_id: str = "alice") -> Score:
    return Score(
        user_id=user_id,
        arxiv_id=arxiv_id,
        run_id="run-1",
        novelty=0.5,
        evidence=0.5,
        velocity=0.5,
        personal_fit=0.5,
        lab_prior=0.0,
        math_penalty=0.0,
        final_score=final,
    )


async def add_ranked(store, arxiv_id, final, embedding, status=PaperStatus.RANKED):
    await store.upsert_paper(Paper(arxiv_id=arxiv_id, title=arxiv_id, status=status))
    await store.upsert_enrichment(PaperEnriched(arxiv_id=arxiv_id, embedding=embedding))
    await store.save_scores([make_score(arxiv_id, final)])


@pytest.fixture
def store():
    return InMemoryPaperStore()


@pytest.fixture
def recommender(store):
    return Recommender(store)


class TestHelpers:
    """Tests for the budget and diversity helpers."""

    @pytest.mark.parametrize(
        "noise_cap,rate,expected",
        [(15, 0.15, (12, 3)), (3, 0.34, (1, 2)), (10, 0.0, (10, 0)), (0, 0.5, (0, 0))],
    )
    def test_split_budget(self, noise_cap, rate, expected):
        """Exploit share is floored, explore takes the rest."""
        assert split_budget(noise_cap, rate) == expected

    def test_diversity_orthogonal(self):
        """Orthogonal papers are maximally diverse."""
        assert diversity([0.0, 1.0], [1.0, 0.0]) == pytest.approx(1.0)

    def test_diversity_opposite_is_not_diverse(self):
        """Anti-aligned papers count as aligned."""
        assert diversity([-1.0, 0.0], [1.0, 0.0]) == pytest.approx(0.0)

    @pytest.mark.parametrize(
        "embedding,vector",
        [(None, [1.0, 0.0]), ([1.0, 0.0], []), ([1.0, 0.0], [0.0, 0.0]), ([1.0], [1.0, 0.0])],
    )
    def test_diversity_undefined_is_neutral(self, embedding, vector):
        """Missing data gives the neutral diversity."""
        assert diversity(embedding, vector) == NEUTRAL_DIVERSITY

    def test_select_diverse_ties_keep_order(self):
        """Equal diversity keeps score order."""
        candidates = [Candidate("a", 0.9), Candidate("b", 0.8), Candidate("c", 0.7)]
        chosen = select_diverse(candidates, 2, [1.0, 0.0])
        assert [c.arxiv_id for c in chosen] == ["a", "b"]


class TestGenerateDailyDigest:
    """Tests for Recommender.generate_daily_digest()."""

    @pytest.mark.asyncio
    async def test_exploit_then_explore(self, store, recommender):
        """Top paper is exploited, the most orthogonal others are explored."""
        await store.save_profile(
            UserProfile(
                user_id="alice",
                interest_vector=[1.0, 0.0],
                noise_cap=3,
                exploration_rate=0.34,
                score_threshold=0.5,
            )
        )
        await add_ranked(store, "p1", 0.9, [1.0, 0.0])
        await add_ranked(store, "p2", 0.8, [1.0, 0.0])
        await add_ranked(store, "p3", 0.7, [0.0, 1.0])
        await add_ranked(store, "p4", 0.6, [0.6, 0.8])

        briefing = await recommender.generate_daily_digest("alice", DAY)

        assert briefing.paper_ids == ["p1", "p3", "p4"]
        assert briefing.paper_count == 3
        assert briefing.avg_score == pytest.approx((0.9 + 0.7 + 0.6) / 3)
        assert briefing.status == BriefingStatus.GENERATED
        assert await store.get_briefing("alice", DAY) == briefing

    @pytest.mark.asyncio
    async def test_threshold_and_status_filter(self, store, recommender):
        """Low scores and papers not yet ranked are left out."""
        await store.save_profile(UserProfile(user_id="alice", score_threshold=0.5))
        await add_ranked(store, "keep", 0.6, [1.0, 0.0])
        await add_ranked(store, "low", 0.4, [1.0, 0.0])
        await add_ranked(store, "stale", 0.9, [1.0, 0.0], status=PaperStatus.ARCHIVED)

        briefing = await recommender.generate_daily_digest("alice", DAY)
        assert briefing.paper_ids == ["keep"]

    @pytest.mark.asyncio
    async def test_empty_briefing(self, store, recommender):
        """No candidates still yields a (empty) briefing."""
        await store.save_profile(UserProfile(user_id="alice"))

        briefing = await recommender.generate_daily_digest("alice", DAY)

        assert briefing.paper_ids == []
        assert briefing.avg_score == 0.0

    @pytest.mark.asyncio
    async def test_never_exceeds_noise_cap(self, store, recommender):
        """Briefing size is bounded by noise_cap."""
        await store.save_profile(
            UserProfile(user_id="alice", noise_cap=2, score_threshold=0.0)
        )
        for i in range(6):
            await add_ranked(store, f"p{i}", 0.5 + i / 20, [1.0, 0.0])

        briefing = await recommender.generate_daily_digest("alice", DAY)
        assert briefing.paper_count == 2

    @pytest.mark.asyncio
    async def test_unknown_user(self, recommender):
        """Briefings need a profile."""
        with pytest.raises(ProfileNotFoundError):
            await recommender.generate_daily_digest("nobody", DAY)


class TestMarkViewed:
    """Tests for Recommender.mark_viewed()."""

    @pytest.mark.asyncio
    async def test_mark_viewed(self, store, recommender):
        """Viewed status is persisted."""
        await store.save_profile(UserProfile(user_id="alice"))
        await recommender.generate_daily_digest("alice", DAY)

        viewed = await recommender.mark_viewed("alice", DAY)

        assert viewed.status == BriefingStatus.VIEWED
        assert (await store.get_briefing("alice", DAY)).status == BriefingStatus.VIEWED

    @pytest.mark.asyncio
    async def test_missing_briefing(self, recommender):
        """Marking a missing briefing fails."""
        with pytest.raises(BriefingNotFoundError):
            await recommender.mark_viewed("alice", DAY)
