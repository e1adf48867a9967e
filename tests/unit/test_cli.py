"""Tests for the CLI commands."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.cli import app
from src.cli.worker import build_job_queue
from src.models.config import CuratorConfig
from src.models.paper import ArxivCategory, Paper, PaperStatus
from src.models.profile import UserProfile
from src.models.score import Score
from src.models.summary import Summary
from src.orchestration import PipelineResult
from src.services.config_manager import ConfigValidationError
from src.services.store import InMemoryPaperStore
from src.utils.concurrency import BulkResult
from src.utils.rate_limiter import ArxivRateLimiter

runner = CliRunner()


def config_with_users(*user_ids):
    return CuratorConfig(users=[UserProfile(user_id=u) for u in user_ids])


@pytest.fixture
def mock_config_manager():
    with patch("src.cli.utils.ConfigManager") as manager_cls:
        manager = MagicMock()
        manager.load_config.return_value = config_with_users("alice", "bob")
        manager_cls.return_value = manager
        yield manager


class TestRunCommand:
    """Tests for the run command."""

    def test_dry_run(self, mock_config_manager):
        """Dry run prints the plan without executing."""
        result = runner.invoke(
            app, ["run", "--dry-run", "--user", "bob", "--category", "cs.CL"]
        )

        assert result.exit_code == 0
        assert "Dry run: Configuration valid." in result.stdout
        assert "User: bob" in result.stdout
        assert "Categories: cs.CL" in result.stdout
        assert "embeddings=local" in result.stdout

    def test_missing_config(self, mock_config_manager):
        """A missing config file exits with code 1."""
        mock_config_manager.load_config.side_effect = FileNotFoundError("nope.yaml")

        result = runner.invoke(app, ["run", "--config", "nope.yaml"])

        assert result.exit_code == 1
        assert "Configuration Error" in result.stdout

    def test_invalid_config(self, mock_config_manager):
        """An invalid config exits with code 1."""
        mock_config_manager.load_config.side_effect = ConfigValidationError("bad")

        result = runner.invoke(app, ["run"])
        assert result.exit_code == 1

    def test_no_users(self, mock_config_manager):
        """Running without profiles is an error."""
        mock_config_manager.load_config.return_value = CuratorConfig()

        result = runner.invoke(app, ["run", "--dry-run"])

        assert result.exit_code == 1
        assert "No user profiles configured" in result.stdout

    def test_unknown_user(self, mock_config_manager):
        """Unknown users are rejected."""
        result = runner.invoke(app, ["run", "--dry-run", "--user", "zoe"])

        assert result.exit_code == 1
        assert "Unknown user: zoe" in result.stdout

    def test_run_reports_errors(self, mock_config_manager):
        """A run with recorded errors exits non-zero after printing them."""
        pipeline_result = PipelineResult(
            run_id="run-1",
            user_id="alice",
            papers_enriched=1,
            errors=[{"phase": "scout", "error": "arXiv down"}],
        )
        with patch(
            "src.cli.run.execute_pipeline", AsyncMock(return_value=pipeline_result)
        ):
            result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "Papers enriched: 1" in result.stdout
        assert "scout: arXiv down" in result.stdout


class TestDigestCommand:
    """Tests for the digest command."""

    def test_empty_briefing(self, mock_config_manager):
        """Nothing above threshold yields a friendly message."""
        with patch(
            "src.cli.digest.execute_pipeline",
            AsyncMock(return_value=PipelineResult(run_id="r", user_id="alice")),
        ):
            result = runner.invoke(app, ["digest", "--date", "2024-01-15"])

        assert result.exit_code == 0
        assert "No papers cleared the score threshold today." in result.stdout

    def test_briefing_listed(self, mock_config_manager):
        """Ranked papers above threshold are listed with titles."""

        async def fake_pipeline(config, store, profile, max_results=None):
            await store.upsert_paper(
                Paper(arxiv_id="2401.00001", title="Planning Agents", status=PaperStatus.RANKED)
            )
            await store.save_scores(
                [
                    Score(
                        user_id=profile.user_id,
                        arxiv_id="2401.00001",
                        run_id="r",
                        novelty=0.9,
                        evidence=0.9,
                        velocity=0.5,
                        personal_fit=0.9,
                        lab_prior=0.0,
                        math_penalty=0.0,
                        final_score=0.8,
                    )
                ]
            )
            return PipelineResult(run_id="r", user_id=profile.user_id, papers_ranked=1)

        with patch("src.cli.digest.execute_pipeline", side_effect=fake_pipeline):
            result = runner.invoke(app, ["digest", "--user", "alice"])

        assert result.exit_code == 0
        assert "Briefing: 1 papers" in result.stdout
        assert "2401.00001  Planning Agents" in result.stdout

    def test_summaries_printed(self, mock_config_manager):
        """--summarize prints each skim summary and the failures."""

        async def fake_pipeline(config, store, profile, max_results=None):
            await store.upsert_paper(
                Paper(arxiv_id="2401.00001", title="Planning Agents", status=PaperStatus.RANKED)
            )
            await store.save_scores(
                [
                    Score(
                        user_id=profile.user_id,
                        arxiv_id="2401.00001",
                        run_id="r",
                        novelty=0.9,
                        evidence=0.9,
                        velocity=0.5,
                        personal_fit=0.9,
                        lab_prior=0.0,
                        math_penalty=0.0,
                        final_score=0.8,
                    )
                ]
            )
            return PipelineResult(run_id="r", user_id=profile.user_id, papers_ranked=1)

        summary = Summary(
            arxiv_id="2401.00001",
            whats_new="A planner.",
            markdown_content="## What's New\n\nA planner.",
            content_hash="h",
        )
        with patch("src.cli.digest.execute_pipeline", side_effect=fake_pipeline), patch(
            "src.cli.digest.Summarizer"
        ) as summarizer_cls:
            summarizer_cls.from_config.return_value.summarize_briefing = AsyncMock(
                return_value=BulkResult(
                    succeeded=1, failed=1, results=[summary], errors=["2401.00002: boom"]
                )
            )
            result = runner.invoke(app, ["digest", "--user", "alice", "--summarize"])

        assert result.exit_code == 0
        assert "Summaries: 1 generated, 1 failed" in result.stdout
        assert "A planner." in result.stdout
        assert "2401.00002: boom" in result.stdout


class TestCategoriesCommand:
    """Tests for the categories command."""

    def test_lists_categories(self, mock_config_manager):
        """Fetched categories are printed with a count."""
        with patch("src.cli.categories.Scout") as scout_cls:
            scout_cls.return_value.fetch_categories = AsyncMock(
                return_value=[
                    ArxivCategory(id="cs.AI", name="Artificial Intelligence"),
                    ArxivCategory(id="cs.CL", name="Computation and Language"),
                ]
            )
            result = runner.invoke(app, ["categories"])

        assert result.exit_code == 0
        assert "cs.AI" in result.stdout
        assert "Computation and Language" in result.stdout
        assert "2 categories" in result.stdout


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid(self, tmp_path):
        """A valid file is reported with its counts."""
        path = tmp_path / "curator.yaml"
        path.write_text("users:\n  - user_id: alice\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 0
        assert "Configuration is valid!" in result.stdout
        assert "Users: 1" in result.stdout

    def test_invalid(self, tmp_path):
        """Invalid files fail validation."""
        path = tmp_path / "curator.yaml"
        path.write_text("ranking:\n  novelty: 0.9\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Validation failed" in result.stdout


class TestWorker:
    """Tests for the worker wiring."""

    def test_build_job_queue(self):
        """Every named job has a handler."""
        config = CuratorConfig()
        queue = build_job_queue(
            config, InMemoryPaperStore(), ArxivRateLimiter(config.rate_limiter)
        )

        assert set(queue.handlers) == {
            "scout-papers",
            "enrich-paper",
            "rank-papers",
            "generate-daily-digests",
        }
