"""Rich terminal renderer for build reports.

Turns a ``BuildReport`` into Rich renderables: a table of every resolved
asset with how it was resolved, and a table of the files written.

Color scheme
------------
- green   : GENERATED
- cyan    : LOADED
- magenta : SEEDED
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from clusterforge.models.build import BuildReport, ResolutionSource

# ---------------------------------------------------------------------------
# Source -> Rich markup mapping
# ---------------------------------------------------------------------------

_SOURCE_ICONS: dict[ResolutionSource, str] = {
    ResolutionSource.GENERATED: "[green]GENERATED[/green]",
    ResolutionSource.LOADED: "[cyan]LOADED[/cyan]",
    ResolutionSource.SEEDED: "[magenta]SEEDED[/magenta]",
}


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.1f} KiB"


class BuildRenderer:
    """Renders ``BuildReport`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_report(self, report: BuildReport) -> Panel:
        """Render a BuildReport as a Rich Panel with asset and file tables."""
        summary = "  |  ".join(
            [
                f"[bold]Target:[/bold] {report.target or '-'}",
                f"[bold]Directory:[/bold] {report.directory}",
                f"[bold]Loaded:[/bold] {report.loaded_count}",
                f"[bold]Generated:[/bold] {report.generated_count}",
                f"[bold]Files:[/bold] {len(report.files)}",
            ]
        )
        content = Group(
            self._build_asset_table(report),
            Text(""),
            self._build_file_table(report),
            Text(""),
            Text.from_markup(summary),
        )
        return Panel(
            content,
            title="[bold]Clusterforge Build[/bold]",
            subtitle=f"Finished: {report.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style="green",
            padding=(1, 2),
        )

    def _build_asset_table(self, report: BuildReport) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Asset", min_width=30)
        table.add_column("Source", justify="center", min_width=10)
        table.add_column("Dependencies", justify="right", width=12)

        for i, record in enumerate(report.resolutions):
            table.add_row(
                str(i),
                record.asset_name,
                _SOURCE_ICONS.get(record.source, record.source.value),
                str(len(record.dependencies)) if record.dependencies else "[dim]0[/dim]",
            )
        return table

    def _build_file_table(self, report: BuildReport) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("File", min_width=30)
        table.add_column("Size", justify="right", width=10)
        table.add_column("SHA-256", style="dim", width=18)

        if not report.files:
            table.add_row("[dim]no files written[/dim]", "", "")
        for written in report.files:
            table.add_row(
                written.filename,
                _format_size(written.size_bytes),
                f"{written.sha256[:16]}",
            )
        return table

    def print_report(self, report: BuildReport) -> None:
        """Print a single report to the console."""
        self.console.print(self.render_report(report))
