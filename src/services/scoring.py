"""Per-signal scoring functions used by the ranker.

Every function returns a value in [0, 1].
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from src.models.paper import EvidenceSignals
from src.services.signals import evidence_score
from src.utils.vector_math import clip01, cosine01, is_zero

DEFAULT_VELOCITY = 0.5
FIT_EMBEDDING_WEIGHT = 0.7
FIT_RULE_WEIGHT = 0.3
FIT_TOPIC_MATCH = 0.2
FIT_KEYWORD_MATCH = 0.1

WORD_PATTERN = re.compile(r"\s+")


def _words(text: str) -> List[str]:
    return [w for w in WORD_PATTERN.split(text.lower()) if w]


def keyword_novelty(paper_text: str, historical_keywords: Iterable[str]) -> float:
    """Share of the paper's words that are not in the user's vocabulary."""
    words = _words(paper_text)
    if not words:
        return 0.0
    vocabulary = set()
    for kw in historical_keywords:
        vocabulary.update(_words(kw))
    novel = sum(1 for w in words if w not in vocabulary)
    return novel / len(words)


def novelty_score(
    paper_embedding: Sequence[float],
    user_centroid: Sequence[float],
    paper_text: str,
    historical_keywords: Iterable[str],
) -> float:
    """Distance from the user's interests, in embedding and vocabulary.

    A user with no interest direction finds everything novel (1.0).
    """
    if is_zero(user_centroid):
        return 1.0
    embedding_novelty = 1.0 - cosine01(paper_embedding, user_centroid)
    return clip01(
        0.5 * embedding_novelty
        + 0.5 * keyword_novelty(paper_text, historical_keywords)
    )


def evidence(signals: EvidenceSignals) -> float:
    return evidence_score(signals)


def velocity_score(value: Optional[float] = None) -> float:
    """Attention velocity; constant until a real provider is plugged in."""
    if value is None:
        return DEFAULT_VELOCITY
    return clip01(value)


def personal_fit_score(
    paper_embedding: Sequence[float],
    user_vector: Sequence[float],
    paper_topics: Sequence[str],
    paper_text: str,
    include_topics: Sequence[str],
    include_keywords: Sequence[str],
) -> float:
    """Similarity to the interest vector plus an include-rule boost."""
    if is_zero(user_vector):
        return 0.0

    similarity = cosine01(paper_embedding, user_vector)

    wanted = set(include_topics)
    topic_matches = sum(1 for t in paper_topics if t in wanted)
    text = paper_text.lower()
    keyword_matches = sum(1 for kw in include_keywords if kw and kw.lower() in text)
    rule_boost = min(
        1.0, FIT_TOPIC_MATCH * topic_matches + FIT_KEYWORD_MATCH * keyword_matches
    )

    return clip01(FIT_EMBEDDING_WEIGHT * similarity + FIT_RULE_WEIGHT * rule_boost)


def lab_prior_score(
    affiliations: Iterable[str],
    lab_boosts: Dict[str, float],
) -> float:
    """Largest boost among labs found (case-insensitive) in any affiliation."""
    best = 0.0
    lowered = [a.lower() for a in affiliations if a]
    if not lowered:
        return 0.0
    for lab, boost in lab_boosts.items():
        if not lab:
            continue
        needle = lab.lower()
        if any(needle in aff for aff in lowered):
            best = max(best, boost)
    return clip01(best)


def math_penalty_score(math_depth: float, math_depth_max: float) -> float:
    """Penalty grows with depth and with the user's intolerance for math."""
    sensitivity = 1.0 - math_depth_max
    return clip01(math_depth * sensitivity)
