"""Main Typer application — imports and registers all CLI commands.

Entry point: ``clusterforge`` (configured via pyproject.toml scripts).

Commands: create, targets, wait-for-api.
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from clusterforge.cli.commands.create import create_cmd
from clusterforge.cli.commands.wait_for import wait_for_api_cmd
from clusterforge.config import ForgeConfig
from clusterforge.targets import TARGET_REGISTRY

app = typer.Typer(
    name="clusterforge",
    help="Clusterforge: build image-based cluster install assets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Route log records through a single stderr RichHandler at *level*."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        )


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR). Defaults to CLUSTERFORGE_LOG_LEVEL.",
    ),
) -> None:
    """Clusterforge: build image-based cluster install assets."""
    configure_logging(log_level or ForgeConfig().log_level)


# Register subcommands
app.command(name="create", help="Build a target and write its files.")(create_cmd)
app.command(name="wait-for-api", help="Wait for the Kubernetes API to come up.")(wait_for_api_cmd)


@app.command(name="targets", help="List buildable targets.")
def targets_cmd() -> None:
    """List every registered target and its root assets."""
    console = Console()
    table = Table(title="Targets")
    table.add_column("Name", style="cyan")
    table.add_column("Root assets", style="green")
    table.add_column("Description")

    for name in sorted(TARGET_REGISTRY):
        target = TARGET_REGISTRY[name]
        roots = ", ".join(a.__name__ for a in target.assets)
        table.add_row(name, roots, target.description)

    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
