"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import functools
from pathlib import Path
from typing import Callable, Optional, TypeVar

import structlog
import typer

from src.models.config import CuratorConfig
from src.models.profile import UserProfile
from src.observability.logging import configure_logging
from src.services.config_manager import ConfigManager, ConfigValidationError
from src.services.store import InMemoryPaperStore

# Console rendering for interactive use
configure_logging(json_output=False)
logger = structlog.get_logger()

# Type variable for decorator
F = TypeVar("F", bound=Callable)

DEFAULT_CONFIG_PATH = Path("config/curator.yaml")


def load_config(config_path: Path) -> CuratorConfig:
    """Load and validate configuration.

    Raises:
        typer.Exit: If configuration is missing or invalid.
    """
    config_manager = ConfigManager(config_path=str(config_path))
    try:
        return config_manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


async def seeded_store(config: CuratorConfig) -> InMemoryPaperStore:
    """In-memory store holding the profiles declared in the config."""
    store = InMemoryPaperStore()
    for profile in config.users:
        await store.save_profile(profile)
    return store


def resolve_profile(config: CuratorConfig, user_id: Optional[str]) -> UserProfile:
    """Pick the configured profile for ``user_id`` (first one when omitted).

    Raises:
        typer.Exit: If no matching profile is configured.
    """
    if not config.users:
        display_error("No user profiles configured (add one under 'users').")
        raise typer.Exit(code=1)
    if user_id is None:
        return config.users[0]
    for profile in config.users:
        if profile.user_id == user_id:
            return profile
    display_error(f"Unknown user: {user_id}")
    raise typer.Exit(code=1)


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Catches exceptions and displays user-friendly error messages.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN)
