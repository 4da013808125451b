"""``clusterforge wait-for-api URL`` — block until a cluster's API answers."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from clusterforge.config import ForgeConfig
from clusterforge.readiness import ReadinessTimeoutError, wait_for_api

console = Console()


def wait_for_api_cmd(
    api_url: str = typer.Argument(
        ...,
        help="Kubernetes API URL, e.g. https://api.sno.example.com:6443",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait. Defaults to CLUSTERFORGE_API_TIMEOUT_SECONDS.",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Skip TLS certificate verification.",
    ),
) -> None:
    """Poll API_URL/version until the API is up or the timeout expires."""
    config = ForgeConfig()
    try:
        version = wait_for_api(
            api_url,
            timeout=config.api_timeout_seconds if timeout is None else timeout,
            interval=config.api_poll_interval_seconds,
            downsample=config.api_log_downsample,
            verify=config.api_verify_tls and not insecure,
        )
    except ReadinessTimeoutError as exc:
        console.print(f"[bold red]API not ready:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(f"[green]API {version} up[/green]")
