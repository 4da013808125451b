"""``clusterforge create TARGET`` — build a target into an output directory.

Resolves the target's root assets, loading previously written files where
they exist, writes the roots' files and prints the build report.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from clusterforge.core.asset_store import AssetError
from clusterforge.core.dependency_graph import DependencyGraphError
from clusterforge.core.file_sink import FileCollisionError
from clusterforge.core.orchestrator import Orchestrator
from clusterforge.monitor.renderer import BuildRenderer
from clusterforge.targets import TARGET_REGISTRY, get_target

console = Console()


def create_cmd(
    target: str = typer.Argument(
        ...,
        help="Target to build (see `clusterforge targets`).",
    ),
    directory: Optional[Path] = typer.Option(
        None,
        "--dir",
        "-d",
        help="Output directory. Defaults to CLUSTERFORGE_ASSET_DIR or the current directory.",
    ),
    load: Optional[bool] = typer.Option(
        None,
        "--load/--no-load",
        help=(
            "Reuse previously written files instead of regenerating them. "
            "User-supplied configs are read either way."
        ),
    ),
) -> None:
    """Build TARGET and write its files."""
    try:
        build_target = get_target(target)
    except KeyError:
        console.print(f"[bold red]Unknown target:[/bold red] {escape(target)}")
        console.print(
            "[dim]Available targets: " + ", ".join(sorted(TARGET_REGISTRY)) + "[/dim]"
        )
        raise typer.Exit(code=1)

    orchestrator = Orchestrator(directory=directory, load_from_disk=load)
    try:
        report = orchestrator.build(build_target)
    except (AssetError, DependencyGraphError, FileCollisionError) as exc:
        console.print(f"[bold red]Build failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print()
    BuildRenderer(console=console).print_report(report)
