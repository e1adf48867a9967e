"""Hard exclusion rules applied before scoring."""

from typing import Sequence


def should_exclude(
    paper_topics: Sequence[str],
    excluded_topics: Sequence[str],
    excluded_keywords: Sequence[str],
    paper_text: str,
) -> bool:
    """Decide whether a paper is filtered out for a user.

    A paper is excluded when any of its topics is in ``excluded_topics``
    (exact, case-sensitive match) or any non-empty keyword of
    ``excluded_keywords`` occurs case-insensitively as a substring of
    ``paper_text``. Adding entries to either list can only turn a ``False``
    into ``True``.

    Examples:
        >>> should_exclude(["theory"], ["theory"], [], "")
        True
        >>> should_exclude([], [], ["Quantum"], "quantum annealing for RL")
        True
        >>> should_exclude(["agents"], [], [], "anything")
        False
    """
    excluded = set(excluded_topics)
    if any(topic in excluded for topic in paper_topics):
        return True

    if not paper_text:
        return False

    text = paper_text.lower()
    return any(kw and kw.lower() in text for kw in excluded_keywords)
