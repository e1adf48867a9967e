"""arxiv-curator CLI package.

Usage:
    python -m src.cli run --config config/curator.yaml --user alice
    python -m src.cli digest --user alice
    python -m src.cli categories
    python -m src.cli validate config/curator.yaml
    python -m src.cli worker
"""

import typer

from src.cli.categories import categories_command
from src.cli.digest import digest_command
from src.cli.run import run_command
from src.cli.validate import validate_command
from src.cli.worker import worker_command

app = typer.Typer(help="arxiv-curator: personalized arXiv briefings")

app.command(name="run")(run_command)
app.command(name="digest")(digest_command)
app.command(name="categories")(categories_command)
app.command(name="validate")(validate_command)
app.command(name="worker")(worker_command)

__all__ = [
    "app",
    "run_command",
    "digest_command",
    "categories_command",
    "validate_command",
    "worker_command",
]
