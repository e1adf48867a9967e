"""Tests for vector helpers."""

import math

import pytest

from src.utils.exceptions import DimensionMismatchError
from src.utils.vector_math import (
    clip01,
    cosine01,
    cosine_similarity,
    is_zero,
    norm,
    normalize,
)


class TestNormalize:
    """Tests for normalize()."""

    def test_unit_length(self):
        """Should scale a vector to unit length."""
        result = normalize([3.0, 4.0])
        assert result == pytest.approx([0.6, 0.8])
        assert norm(result) == pytest.approx(1.0)

    def test_zero_vector_passes_through(self):
        """Should return a zero vector unchanged instead of dividing by zero."""
        assert normalize([0.0, 0.0, 0.0]) == [0.0, 0.0, 0.0]

    def test_empty_vector(self):
        """Should return an empty list for an empty vector."""
        assert normalize([]) == []


class TestCosineSimilarity:
    """Tests for cosine similarity helpers."""

    def test_identical_vectors(self):
        """Identical directions have similarity 1."""
        assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        """Opposite directions have similarity -1."""
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self):
        """Orthogonal vectors have similarity 0."""
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_zero_vector_similarity_is_zero(self):
        """A zero vector has no direction, so similarity is 0."""
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch_raises(self):
        """Vectors of different lengths cannot be compared."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 3

    def test_cosine01_range(self):
        """cosine01 maps [-1, 1] onto [0, 1]."""
        assert cosine01([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine01([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(0.0)
        assert cosine01([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.5)

    def test_cosine01_zero_vector(self):
        """cosine01 of a zero vector is 0, not the 0.5 midpoint."""
        assert cosine01([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_cosine01_zero_vector_still_checks_dimensions(self):
        """A zero vector of the wrong size is still a mismatch."""
        with pytest.raises(DimensionMismatchError):
            cosine01([0.0], [1.0, 0.0])


class TestHelpers:
    """Tests for small helpers."""

    def test_is_zero(self):
        """Empty and all-zero vectors count as zero."""
        assert is_zero([])
        assert is_zero([0.0, 0.0])
        assert not is_zero([0.0, 1e-9])

    def test_clip01(self):
        """Values are clamped to [0, 1]."""
        assert clip01(-0.5) == 0.0
        assert clip01(1.5) == 1.0
        assert clip01(0.25) == 0.25

    def test_norm(self):
        """Euclidean norm."""
        assert norm([1.0, 1.0]) == pytest.approx(math.sqrt(2))
