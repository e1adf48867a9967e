"""Vector helpers shared by ranking, feedback learning and briefing diversity.

Embeddings are plain ``List[float]``; dimensions are small (hundreds), so
pure Python keeps the dependency surface flat.
"""

import math
from typing import List, Sequence

from src.utils.exceptions import DimensionMismatchError


def check_dimensions(a: Sequence[float], b: Sequence[float]) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(expected=len(a), actual=len(b))


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    check_dimensions(a, b)
    return sum(x * y for x, y in zip(a, b))


def norm(v: Sequence[float]) -> float:
    return math.sqrt(sum(x * x for x in v))


def is_zero(v: Sequence[float]) -> bool:
    """True for empty vectors and all-zero vectors."""
    return all(x == 0.0 for x in v)


def normalize(v: Sequence[float]) -> List[float]:
    """Scale to unit length; zero vectors are returned unchanged."""
    n = norm(v)
    if n == 0.0:
        return list(v)
    return [x / n for x in v]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either vector has zero length.

    Raises:
        DimensionMismatchError: If the vectors have different lengths.
    """
    check_dimensions(a, b)
    na = norm(a)
    nb = norm(b)
    if na == 0.0 or nb == 0.0:
        return 0.0
    cos = dot(a, b) / (na * nb)
    return max(-1.0, min(1.0, cos))


def cosine01(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity mapped to [0, 1]; 0.0 when either vector is zero."""
    if norm(a) == 0.0 or norm(b) == 0.0:
        check_dimensions(a, b)
        return 0.0
    return (cosine_similarity(a, b) + 1.0) / 2.0


def clip01(x: float) -> float:
    return max(0.0, min(1.0, x))
