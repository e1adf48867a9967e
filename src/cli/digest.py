"""Digest command: curate and build today's briefing for a user."""

import asyncio
import datetime as dt
from pathlib import Path
from typing import Optional, Tuple

import typer

from src.cli.run import display_results, execute_pipeline
from src.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_config,
    resolve_profile,
    seeded_store,
)
from src.models.briefing import Briefing
from src.orchestration import PipelineResult
from src.services.recommender import Recommender
from src.services.summarizer import Summarizer
from src.utils.concurrency import BulkResult


@handle_errors
def digest_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to curator config YAML"
    ),
    user_id: Optional[str] = typer.Option(
        None, "--user", "-u", help="Profile to build the briefing for"
    ),
    max_results: Optional[int] = typer.Option(
        None, "--max-results", "-n", help="Entries fetched per category"
    ),
    date: Optional[str] = typer.Option(
        None, "--date", help="Briefing date (YYYY-MM-DD, default: today)"
    ),
    summarize: bool = typer.Option(
        False, "--summarize", "-s", help="Generate skim summaries for the briefing"
    ),
):
    """Run the pipeline and print the user's daily briefing."""
    config = load_config(config_path)
    profile = resolve_profile(config, user_id)
    briefing_date = dt.date.fromisoformat(date) if date else dt.date.today()

    display_info(f"Building briefing for {profile.user_id} ({briefing_date})...")

    async def _build() -> Tuple[PipelineResult, Briefing, dict, Optional[BulkResult]]:
        store = await seeded_store(config)
        result = await execute_pipeline(
            config, store, profile, max_results=max_results
        )
        briefing = await Recommender(store).generate_daily_digest(
            profile.user_id, briefing_date
        )
        titles = {}
        for arxiv_id in briefing.paper_ids:
            paper = await store.get_paper(arxiv_id)
            titles[arxiv_id] = paper.title if paper else ""
        summaries = None
        if summarize and briefing.paper_ids:
            summaries = await Summarizer.from_config(store, config).summarize_briefing(
                profile.user_id, briefing_date
            )
        return result, briefing, titles, summaries

    result, briefing, titles, summaries = asyncio.run(_build())
    display_results(result)

    if not briefing.paper_ids:
        display_warning("\nNo papers cleared the score threshold today.")
        return

    display_success(
        f"\nBriefing: {briefing.paper_count} papers "
        f"(avg score {briefing.avg_score:.2f})"
    )
    for position, arxiv_id in enumerate(briefing.paper_ids, start=1):
        typer.echo(f"  {position:>2}. {arxiv_id}  {titles[arxiv_id]}")

    if summaries is not None:
        _display_summaries(summaries)


def _display_summaries(summaries: BulkResult) -> None:
    display_info(
        f"\nSummaries: {summaries.succeeded} generated, {summaries.failed} failed"
    )
    for summary in summaries.results:
        typer.echo(f"\n{summary.arxiv_id}\n{summary.markdown_content}")
    for error in summaries.errors:
        display_warning(f"  {error}")
