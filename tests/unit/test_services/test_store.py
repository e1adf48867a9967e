"""Tests for the in-memory paper store."""

import datetime as dt

import pytest

from src.models.briefing import Briefing
from src.models.paper import ArxivCategory, Paper, PaperStatus
from src.models.score import Score
from src.models.summary import Summary
from src.services.store import InMemoryPaperStore, PaperStore
from src.utils.exceptions import PaperNotFoundError


@pytest.fixture
def store():
    return InMemoryPaperStore()


def make_score(arxiv_id: str, final: float, run_id: str) -> Score:
    return Score(
        user_id="alice",
        arxiv_id=arxiv_id,
        run_id=run_id,
        novelty=0.1,
        evidence=0.1,
        velocity=0.1,
        personal_fit=0.1,
        lab_prior=0.0,
        math_penalty=0.0,
        final_score=final,
    )


class TestInMemoryPaperStore:
    """Tests for InMemoryPaperStore."""

    def test_is_a_paper_store(self, store):
        """The in-memory store implements the abstract interface."""
        assert isinstance(store, PaperStore)

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, store):
        """Upserting the same id keeps one record, the latest."""
        await store.upsert_paper(Paper(arxiv_id="2401.00001", title="v1"))
        await store.upsert_paper(Paper(arxiv_id="2401.00001", version=2, title="v2"))

        papers = await store.list_papers()
        assert len(papers) == 1
        assert papers[0].title == "v2"

    @pytest.mark.asyncio
    async def test_list_by_status_and_ids(self, store):
        """Listing filters by status and by id set."""
        await store.upsert_paper(Paper(arxiv_id="a", title="A"))
        await store.upsert_paper(
            Paper(arxiv_id="b", title="B", status=PaperStatus.ENRICHED)
        )

        enriched = await store.list_papers(status=PaperStatus.ENRICHED)
        by_id = await store.list_papers(ids=["a"])

        assert [p.arxiv_id for p in enriched] == ["b"]
        assert [p.arxiv_id for p in by_id] == ["a"]

    @pytest.mark.asyncio
    async def test_set_status_unknown_paper(self, store):
        """Status changes need existing papers."""
        with pytest.raises(PaperNotFoundError):
            await store.set_status(["missing"], PaperStatus.RANKED)

    @pytest.mark.asyncio
    async def test_latest_score_wins(self, store):
        """The newest score per paper is returned."""
        await store.save_scores([make_score("a", 0.2, "run-1")])
        await store.save_scores([make_score("a", 0.7, "run-2")])

        latest = await store.get_latest_scores("alice")
        assert latest["a"].run_id == "run-2"
        assert await store.get_latest_scores("bob") == {}

    @pytest.mark.asyncio
    async def test_categories_sorted(self, store):
        """Categories are listed by id."""
        await store.upsert_category(ArxivCategory(id="cs.LG", name="Machine Learning"))
        await store.upsert_category(ArxivCategory(id="cs.AI", name="AI"))

        assert [c.id for c in await store.list_categories()] == ["cs.AI", "cs.LG"]

    @pytest.mark.asyncio
    async def test_briefing_keyed_by_user_and_date(self, store):
        """One briefing per user and day."""
        day = dt.date(2024, 1, 15)
        await store.upsert_briefing(Briefing(user_id="alice", date=day, paper_ids=["a"]))
        await store.upsert_briefing(Briefing(user_id="alice", date=day, paper_ids=["b"]))

        assert (await store.get_briefing("alice", day)).paper_ids == ["b"]
        assert await store.get_briefing("alice", dt.date(2024, 1, 16)) is None

    @pytest.mark.asyncio
    async def test_summary_keyed_by_paper_and_type(self, store):
        """Upserting a summary replaces the earlier one for the same paper."""
        for digest in ("old", "new"):
            await store.upsert_summary(
                Summary(
                    arxiv_id="2401.00001",
                    whats_new="x",
                    markdown_content="x",
                    content_hash=digest,
                )
            )

        assert (await store.get_summary("2401.00001", "skim")).content_hash == "new"
        assert await store.get_summary("2401.00001", "deep") is None
        assert await store.get_summary("2401.00002", "skim") is None
