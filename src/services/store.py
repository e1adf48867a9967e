"""Persistence contract for papers, enrichment, scores, profiles and briefings.

Services depend on the abstract ``PaperStore`` only. ``InMemoryPaperStore``
backs tests, the CLI and single-process runs; a database-backed store
implements the same interface.
"""

import asyncio
import datetime as dt
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from src.models.briefing import Briefing
from src.models.feedback import Feedback
from src.models.paper import ArxivCategory, Paper, PaperEnriched, PaperStatus
from src.models.profile import UserProfile
from src.models.score import Score
from src.models.summary import Summary
from src.utils.exceptions import PaperNotFoundError

logger = structlog.get_logger()


class PaperStore(ABC):
    """Abstract persistence interface consumed by every pipeline stage"""

    # Papers

    @abstractmethod
    async def get_paper(self, arxiv_id: str) -> Optional[Paper]:
        pass

    @abstractmethod
    async def upsert_paper(self, paper: Paper) -> Paper:
        """Insert or replace the record keyed by ``paper.arxiv_id``."""
        pass

    @abstractmethod
    async def list_papers(
        self,
        status: Optional[PaperStatus] = None,
        ids: Optional[Iterable[str]] = None,
    ) -> List[Paper]:
        """Papers filtered by status and/or id set, in insertion order."""
        pass

    @abstractmethod
    async def set_status(self, arxiv_ids: Iterable[str], status: PaperStatus) -> int:
        """Set the status of every listed paper; returns the number updated."""
        pass

    # Enrichment

    @abstractmethod
    async def get_enrichment(self, arxiv_id: str) -> Optional[PaperEnriched]:
        pass

    @abstractmethod
    async def upsert_enrichment(self, enriched: PaperEnriched) -> PaperEnriched:
        pass

    # Scores

    @abstractmethod
    async def save_scores(self, scores: Iterable[Score]) -> int:
        pass

    @abstractmethod
    async def get_latest_scores(self, user_id: str) -> Dict[str, Score]:
        """Newest score per paper for ``user_id``, keyed by arxiv id."""
        pass

    # Categories

    @abstractmethod
    async def upsert_category(self, category: ArxivCategory) -> ArxivCategory:
        pass

    @abstractmethod
    async def list_categories(self) -> List[ArxivCategory]:
        pass

    # Profiles

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    async def save_profile(self, profile: UserProfile) -> UserProfile:
        pass

    @abstractmethod
    async def list_profiles(self) -> List[UserProfile]:
        pass

    # Feedback

    @abstractmethod
    async def add_feedback(self, feedback: Feedback) -> Feedback:
        pass

    @abstractmethod
    async def list_feedback(self, user_id: str) -> List[Feedback]:
        """All feedback of ``user_id`` in insertion order."""
        pass

    # Briefings

    @abstractmethod
    async def get_briefing(self, user_id: str, date: dt.date) -> Optional[Briefing]:
        pass

    @abstractmethod
    async def upsert_briefing(self, briefing: Briefing) -> Briefing:
        pass

    # Summaries

    @abstractmethod
    async def get_summary(
        self, arxiv_id: str, summary_type: str
    ) -> Optional[Summary]:
        pass

    @abstractmethod
    async def upsert_summary(self, summary: Summary) -> Summary:
        """Insert or replace the summary keyed by paper id and summary type."""
        pass


class InMemoryPaperStore(PaperStore):
    """Dict-backed store; safe for concurrent coroutines in one event loop"""

    def __init__(self) -> None:
        self._papers: Dict[str, Paper] = {}
        self._enrichment: Dict[str, PaperEnriched] = {}
        self._scores: Dict[Tuple[str, str], List[Score]] = {}
        self._categories: Dict[str, ArxivCategory] = {}
        self._profiles: Dict[str, UserProfile] = {}
        self._feedback: List[Feedback] = []
        self._briefings: Dict[Tuple[str, dt.date], Briefing] = {}
        self._summaries: Dict[Tuple[str, str], Summary] = {}
        self._lock = asyncio.Lock()

    async def get_paper(self, arxiv_id: str) -> Optional[Paper]:
        return self._papers.get(arxiv_id)

    async def upsert_paper(self, paper: Paper) -> Paper:
        async with self._lock:
            self._papers[paper.arxiv_id] = paper
        return paper

    async def list_papers(
        self,
        status: Optional[PaperStatus] = None,
        ids: Optional[Iterable[str]] = None,
    ) -> List[Paper]:
        wanted = set(ids) if ids is not None else None
        return [
            p
            for p in self._papers.values()
            if (status is None or p.status == status)
            and (wanted is None or p.arxiv_id in wanted)
        ]

    async def set_status(self, arxiv_ids: Iterable[str], status: PaperStatus) -> int:
        updated = 0
        async with self._lock:
            for arxiv_id in arxiv_ids:
                paper = self._papers.get(arxiv_id)
                if paper is None:
                    raise PaperNotFoundError(arxiv_id)
                self._papers[arxiv_id] = paper.model_copy(update={"status": status})
                updated += 1
        return updated

    async def get_enrichment(self, arxiv_id: str) -> Optional[PaperEnriched]:
        return self._enrichment.get(arxiv_id)

    async def upsert_enrichment(self, enriched: PaperEnriched) -> PaperEnriched:
        async with self._lock:
            self._enrichment[enriched.arxiv_id] = enriched
        return enriched

    async def save_scores(self, scores: Iterable[Score]) -> int:
        count = 0
        async with self._lock:
            for score in scores:
                key = (score.user_id, score.arxiv_id)
                self._scores.setdefault(key, []).append(score)
                count += 1
        return count

    async def get_latest_scores(self, user_id: str) -> Dict[str, Score]:
        return {
            arxiv_id: history[-1]
            for (uid, arxiv_id), history in self._scores.items()
            if uid == user_id and history
        }

    async def upsert_category(self, category: ArxivCategory) -> ArxivCategory:
        async with self._lock:
            self._categories[category.id] = category
        return category

    async def list_categories(self) -> List[ArxivCategory]:
        return sorted(self._categories.values(), key=lambda c: c.id)

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        async with self._lock:
            self._profiles[profile.user_id] = profile
        return profile

    async def list_profiles(self) -> List[UserProfile]:
        return list(self._profiles.values())

    async def add_feedback(self, feedback: Feedback) -> Feedback:
        async with self._lock:
            self._feedback.append(feedback)
        return feedback

    async def list_feedback(self, user_id: str) -> List[Feedback]:
        return [f for f in self._feedback if f.user_id == user_id]

    async def get_briefing(self, user_id: str, date: dt.date) -> Optional[Briefing]:
        return self._briefings.get((user_id, date))

    async def upsert_briefing(self, briefing: Briefing) -> Briefing:
        async with self._lock:
            self._briefings[(briefing.user_id, briefing.date)] = briefing
        return briefing

    async def get_summary(
        self, arxiv_id: str, summary_type: str
    ) -> Optional[Summary]:
        return self._summaries.get((arxiv_id, summary_type))

    async def upsert_summary(self, summary: Summary) -> Summary:
        async with self._lock:
            self._summaries[(summary.arxiv_id, summary.summary_type)] = summary
        return summary
