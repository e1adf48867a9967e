"""Tests for paper, profile, score and feedback models."""

import pytest
from pydantic import ValidationError

from src.models.feedback import Feedback, FeedbackAction
from src.models.paper import Paper, PaperStatus
from src.models.profile import UserProfile
from src.models.score import RankingResult, Score, SkippedPaper


class TestUserProfile:
    """Tests for UserProfile."""

    def test_defaults(self):
        """A fresh profile has no interests and the default budget."""
        profile = UserProfile(user_id="alice")

        assert profile.interest_vector == []
        assert not profile.has_interests
        assert profile.noise_cap == 15
        assert profile.exploration_rate == 0.15
        assert profile.math_depth_max == 1.0
        assert profile.arxiv_categories == ["cs.AI", "cs.LG", "cs.CV", "cs.CL"]

    def test_zero_vector_has_no_interests(self):
        """An all-zero vector carries no direction."""
        assert not UserProfile(user_id="a", interest_vector=[0.0, 0.0]).has_interests
        assert UserProfile(user_id="a", interest_vector=[1.0, 0.0]).has_interests

    @pytest.mark.parametrize(
        "field,value",
        [("exploration_rate", 1.5), ("math_depth_max", -0.1), ("noise_cap", 201)],
    )
    def test_bounds(self, field, value):
        """Tolerances stay within range."""
        with pytest.raises(ValidationError):
            UserProfile(user_id="alice", **{field: value})

    @pytest.mark.parametrize(
        "vector", [[], [0.0, 0.0, 0.0], [0.6, 0.8], [1.0, 0.0, 0.0], [0.6, 0.8 + 1e-9]]
    )
    def test_interest_vector_accepted(self, vector):
        """Empty, zero and unit-length vectors are valid."""
        assert UserProfile(user_id="a", interest_vector=vector).interest_vector == vector

    @pytest.mark.parametrize("vector", [[3.0, 4.0], [0.5, 0.5], [0.0, 1.01]])
    def test_interest_vector_rejected(self, vector):
        """Any other magnitude is rejected."""
        with pytest.raises(ValidationError, match="unit length"):
            UserProfile(user_id="a", interest_vector=vector)


class TestPaper:
    """Tests for Paper."""

    def test_defaults_and_text(self):
        """New papers start at version 1 with status new."""
        paper = Paper(arxiv_id="2401.00001", title="Agents", abstract="Plan.")

        assert paper.version == 1
        assert paper.status == PaperStatus.NEW
        assert paper.text == "Agents Plan."
        assert paper.primary_category is None

    def test_title_required(self):
        """Empty titles are rejected."""
        with pytest.raises(ValidationError):
            Paper(arxiv_id="2401.00001", title="")


class TestScore:
    """Tests for Score and RankingResult."""

    def test_frozen(self):
        """Scores are immutable once produced."""
        score = Score(
            user_id="a",
            arxiv_id="p",
            run_id="r",
            novelty=0.1,
            evidence=0.1,
            velocity=0.1,
            personal_fit=0.1,
            lab_prior=0.1,
            math_penalty=0.0,
            final_score=0.2,
        )
        with pytest.raises(ValidationError):
            score.final_score = 0.9

    def test_signals_required(self):
        """A score without its signals is invalid."""
        with pytest.raises(ValidationError):
            Score(user_id="a", arxiv_id="p", run_id="r", final_score=0.5)

    def test_excluded_ids(self):
        """Only rule exclusions count as excluded."""
        result = RankingResult(
            user_id="a",
            run_id="r",
            skipped=[
                SkippedPaper(arxiv_id="x", reason="excluded_by_rules"),
                SkippedPaper(arxiv_id="y", reason="missing_embedding"),
            ],
        )
        assert result.excluded_ids == ["x"]


class TestFeedback:
    """Tests for Feedback."""

    @pytest.mark.parametrize(
        "action,positive",
        [
            (FeedbackAction.SAVE, True),
            (FeedbackAction.THUMBS_UP, True),
            (FeedbackAction.DISMISS, False),
            (FeedbackAction.THUMBS_DOWN, False),
            (FeedbackAction.HIDE, False),
        ],
    )
    def test_polarity(self, action, positive):
        """Saves and thumbs up are positive, the rest negative."""
        assert action.is_positive is positive

    def test_ids_unique(self):
        """Each event gets its own id."""
        a = Feedback(user_id="u", arxiv_id="p", action="save")
        b = Feedback(user_id="u", arxiv_id="p", action="save")

        assert a.id != b.id
        assert a.action == FeedbackAction.SAVE
