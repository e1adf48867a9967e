"""Categories command: fetch the arXiv taxonomy."""

import asyncio
from pathlib import Path
from typing import List

import typer

from src.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_info,
    display_success,
    handle_errors,
    load_config,
)
from src.models.paper import ArxivCategory
from src.services.providers.arxiv import ArxivFeedClient
from src.services.scout import Scout
from src.services.store import InMemoryPaperStore
from src.utils.rate_limiter import ArxivRateLimiter


@handle_errors
def categories_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to curator config YAML"
    ),
):
    """List the computer science categories published by arXiv."""
    config = load_config(config_path)
    display_info("Fetching arXiv categories...")

    async def _fetch() -> List[ArxivCategory]:
        async with ArxivRateLimiter(config.rate_limiter) as limiter:
            scout = Scout(
                ArxivFeedClient(limiter, config.scout),
                InMemoryPaperStore(),
                config.scout,
            )
            return await scout.fetch_categories()

    categories = asyncio.run(_fetch())

    for category in categories:
        typer.echo(f"  {category.id:<12} {category.name}")
    display_success(f"\n{len(categories)} categories")
