"""Tests for arXiv identifier parsing."""

import pytest

from src.utils.arxiv_ids import as_list, extract_arxiv_id, parse_arxiv_id
from src.utils.exceptions import InvalidArxivIdError


class TestParseArxivId:
    """Tests for parse_arxiv_id()."""

    def test_modern_id_with_version(self):
        """Should split base id and version from an abs URL."""
        assert parse_arxiv_id("http://arxiv.org/abs/2401.12345v2") == (
            "2401.12345",
            2,
        )

    def test_modern_id_without_version_defaults_to_1(self):
        """Missing version suffix means version 1."""
        assert parse_arxiv_id("http://arxiv.org/abs/2401.12345") == ("2401.12345", 1)

    def test_four_digit_sequence(self):
        """Pre-2015 modern ids have four sequence digits."""
        assert parse_arxiv_id("0704.0001v3") == ("0704.0001", 3)

    def test_legacy_id(self):
        """Should parse archive/YYMMNNN legacy ids."""
        assert parse_arxiv_id("http://arxiv.org/abs/cs/0501001v1") == (
            "cs/0501001",
            1,
        )

    def test_legacy_id_with_hyphenated_archive(self):
        """Archives such as hep-th contain hyphens."""
        assert parse_arxiv_id("hep-th/9901001") == ("hep-th/9901001", 1)

    def test_legacy_id_with_subject_class(self):
        """Legacy ids may carry a subject class, e.g. cs.AI."""
        assert parse_arxiv_id("http://arxiv.org/abs/cs.AI/0601001v2") == (
            "cs.AI/0601001",
            2,
        )

    def test_pdf_url(self):
        """PDF links carry the same identifier."""
        assert parse_arxiv_id("http://arxiv.org/pdf/2401.12345v4") == (
            "2401.12345",
            4,
        )

    @pytest.mark.parametrize(
        "value", ["http://example.com/paper", "", "not-an-id", "2401-12345"]
    )
    def test_unrecognized_form_raises(self, value):
        """Unrecognized forms raise InvalidArxivIdError."""
        with pytest.raises(InvalidArxivIdError):
            parse_arxiv_id(value)

    def test_extract_arxiv_id(self):
        """extract_arxiv_id returns the base id only."""
        assert extract_arxiv_id("http://arxiv.org/abs/2401.12345v9") == "2401.12345"


class TestAsList:
    """Tests for one-or-many normalization."""

    def test_none(self):
        """None becomes an empty list."""
        assert as_list(None) == []

    def test_scalar(self):
        """A single object becomes a one-element list."""
        author = {"name": "Ada"}
        assert as_list(author) == [author]

    def test_list_and_tuple(self):
        """Sequences become lists."""
        assert as_list(["a", "b"]) == ["a", "b"]
        assert as_list(("a",)) == ["a"]

    def test_empty_string(self):
        """An empty string is treated as missing."""
        assert as_list("") == []
