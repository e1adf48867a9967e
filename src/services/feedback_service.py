"""Feedback logging and interest-vector learning.

The interest vector is an exponential moving average of the embeddings of
papers the user reacted to, pulled toward positively rated papers and pushed
away from negatively rated ones, then renormalized:

    raw = 0.9 * current + sign * 0.1 * paper_embedding
    new = raw / ||raw||   (raw passes through when ||raw|| == 0)
"""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional, Sequence

import structlog

from src.models.feedback import Feedback, FeedbackAction
from src.models.profile import UserProfile
from src.observability.metrics import FEEDBACK_EVENTS
from src.services.store import PaperStore
from src.utils.exceptions import (
    DimensionMismatchError,
    PaperNotFoundError,
    ProfileNotFoundError,
)
from src.utils.vector_math import normalize

logger = structlog.get_logger()

DECAY = 0.9
LEARNING_RATE = 0.1


def update_vector(
    current: Sequence[float],
    paper_embedding: Sequence[float],
    action: FeedbackAction,
) -> List[float]:
    """Apply one feedback event to an interest vector.

    An empty ``current`` (fresh profile) counts as the zero vector of the
    embedding's dimension.

    Raises:
        DimensionMismatchError: If both vectors are non-empty and differ in
            length.
    """
    if not current:
        current = [0.0] * len(paper_embedding)
    if len(current) != len(paper_embedding):
        raise DimensionMismatchError(expected=len(current), actual=len(paper_embedding))

    sign = 1.0 if action.is_positive else -1.0
    raw = [
        DECAY * c + sign * LEARNING_RATE * e
        for c, e in zip(current, paper_embedding)
    ]
    return normalize(raw)


class FeedbackService:
    """Records feedback and keeps interest vectors current"""

    def __init__(self, store: PaperStore):
        self.store = store
        self._user_locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        return lock

    async def record_feedback(
        self,
        user_id: str,
        arxiv_id: str,
        action: FeedbackAction,
        weight: float = 1.0,
        context: Optional[str] = None,
        learn: bool = True,
    ) -> Feedback:
        """Append a feedback event and, by default, learn from it.

        Learning uses the paper's stored embedding. Papers without one are
        logged and still recorded. Everything learning needs is checked
        before the event is written, so a failed call stores nothing.

        Raises:
            PaperNotFoundError: If the paper is unknown.
            ProfileNotFoundError: If ``learn`` is set and the user has no
                profile.
            DimensionMismatchError: If ``learn`` is set and the embedding
                does not match the stored interest vector.
        """
        paper = await self.store.get_paper(arxiv_id)
        if paper is None:
            raise PaperNotFoundError(arxiv_id)

        embedding: Optional[List[float]] = None
        if learn:
            profile = await self.store.get_profile(user_id)
            if profile is None:
                raise ProfileNotFoundError(user_id)
            enriched = await self.store.get_enrichment(arxiv_id)
            if enriched is not None and enriched.embedding:
                embedding = enriched.embedding
                current = profile.interest_vector
                if current and len(current) != len(embedding):
                    raise DimensionMismatchError(
                        expected=len(current), actual=len(embedding)
                    )

        feedback = Feedback(
            user_id=user_id,
            arxiv_id=arxiv_id,
            action=action,
            weight=weight,
            context=context,
        )
        await self.store.add_feedback(feedback)
        FEEDBACK_EVENTS.labels(action=action.value).inc()
        logger.info(
            "feedback_recorded",
            user_id=user_id,
            arxiv_id=arxiv_id,
            action=action.value,
        )

        if embedding is not None:
            await self.update_vector_from_feedback(user_id, embedding, action)
        elif learn:
            logger.warning(
                "feedback_not_learned",
                user_id=user_id,
                arxiv_id=arxiv_id,
                reason="missing_embedding",
            )

        return feedback

    async def update_vector_from_feedback(
        self,
        user_id: str,
        paper_embedding: Sequence[float],
        action: FeedbackAction,
    ) -> UserProfile:
        """Load, update and persist a user's interest vector.

        Updates for the same user are applied in submission order.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            DimensionMismatchError: If the embedding and the stored vector
                differ in length.
        """
        async with self._lock_for(user_id):
            profile = await self.store.get_profile(user_id)
            if profile is None:
                raise ProfileNotFoundError(user_id)

            new_vector = update_vector(profile.interest_vector, paper_embedding, action)
            updated = profile.model_copy(
                update={"interest_vector": new_vector, "updated_at": datetime.utcnow()}
            )
            await self.store.save_profile(updated)

        logger.debug(
            "interest_vector_updated",
            user_id=user_id,
            action=action.value,
            dimension=len(new_vector),
        )
        return updated

    async def get_feedback_history(
        self,
        user_id: str,
        action: Optional[FeedbackAction] = None,
        limit: Optional[int] = None,
    ) -> List[Feedback]:
        """Feedback of a user, newest first, optionally filtered by action."""
        history = await self.store.list_feedback(user_id)
        if action is not None:
            history = [f for f in history if f.action == action]
        history = list(reversed(history))
        if limit is not None:
            history = history[:limit]
        return history
