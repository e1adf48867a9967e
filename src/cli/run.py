"""Run command for the curation pipeline.

Handles pipeline execution and result display.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer

from src.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_error,
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_config,
    resolve_profile,
    seeded_store,
)
from src.models.config import CuratorConfig
from src.models.profile import UserProfile
from src.orchestration import CurationPipeline, PipelineResult, build_context
from src.services.store import PaperStore
from src.utils.rate_limiter import ArxivRateLimiter


async def execute_pipeline(
    config: CuratorConfig,
    store: PaperStore,
    profile: UserProfile,
    categories: Optional[List[str]] = None,
    max_results: Optional[int] = None,
) -> PipelineResult:
    """Run the pipeline for ``profile`` with a limiter scoped to the run."""
    async with ArxivRateLimiter(config.rate_limiter) as limiter:
        context = build_context(
            config,
            store,
            limiter,
            profile,
            categories=categories,
            max_per_category=max_results,
        )
        return await CurationPipeline(context).run()


@handle_errors
def run_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to curator config YAML"
    ),
    user_id: Optional[str] = typer.Option(
        None, "--user", "-u", help="Profile to rank for (default: first configured)"
    ),
    categories: Optional[List[str]] = typer.Option(
        None, "--category", help="arXiv category to scout (repeatable)"
    ),
    max_results: Optional[int] = typer.Option(
        None, "--max-results", "-n", help="Entries fetched per category"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Validate and plan without executing"
    ),
):
    """Run scout, enrich and rank for one user."""
    config = load_config(config_path)
    profile = resolve_profile(config, user_id)
    selected = categories or profile.arxiv_categories

    if dry_run:
        display_success("Dry run: Configuration valid.")
        typer.echo(f"User: {profile.user_id}")
        typer.echo(f"Categories: {', '.join(selected)}")
        typer.echo(
            "Backends: "
            f"embeddings={'local' if profile.use_local_embeddings else 'cloud'}, "
            f"llm={'local' if profile.use_local_llm else 'cloud'}"
        )
        return

    display_info(f"Starting curation run for {profile.user_id}...")

    async def _run() -> PipelineResult:
        store = await seeded_store(config)
        return await execute_pipeline(config, store, profile, selected, max_results)

    result = asyncio.run(_run())
    display_results(result)

    if result.errors:
        raise typer.Exit(code=1)


def display_results(result: PipelineResult) -> None:
    """Print the per-phase counts of a run."""
    display_success("\nPipeline completed")
    typer.echo(f"  Run: {result.run_id}")
    typer.echo(f"  Papers ingested: {result.papers_ingested}")
    typer.echo(f"  Papers enriched: {result.papers_enriched}")
    if result.papers_enrichment_failed:
        display_warning(f"  Enrichment failures: {result.papers_enrichment_failed}")
    typer.echo(f"  Papers ranked: {result.papers_ranked}")
    typer.echo(f"  Papers excluded: {result.papers_excluded}")
    typer.echo(f"  Papers skipped: {result.papers_skipped}")
    if result.stopped:
        display_warning("  Run stopped before completion")

    if result.errors:
        display_error(f"\n{len(result.errors)} error(s):")
        for error in result.errors:
            target = f" [{error['arxiv_id']}]" if "arxiv_id" in error else ""
            typer.echo(f"  - {error['phase']}{target}: {error['error']}")
