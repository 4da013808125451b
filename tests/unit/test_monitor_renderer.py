"""Unit tests for the BuildRenderer — Rich output of build reports."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from clusterforge.models.build import (
    BuildReport,
    ResolutionRecord,
    ResolutionSource,
    WrittenFile,
)
from clusterforge.monitor.renderer import _SOURCE_ICONS, BuildRenderer


def _make_report(files: list[WrittenFile] | None = None) -> BuildReport:
    return BuildReport(
        target="config-image",
        directory=Path("ocp"),
        resolutions=[
            ResolutionRecord(
                asset_name="Kubeadmin Password",
                asset_type="clusterforge.assets.password.KubeadminPassword",
                source=ResolutionSource.LOADED,
            ),
            ResolutionRecord(
                asset_name="Image-based Installer Config Image",
                asset_type="clusterforge.assets.config_image.ConfigImage",
                source=ResolutionSource.GENERATED,
                dependencies=["a.A", "b.B"],
            ),
        ],
        files=files if files is not None else [
            WrittenFile(filename="imagebasedconfig.tar", size_bytes=10240, sha256="ab" * 32),
        ],
    )


def _render_text(report: BuildReport) -> str:
    console = Console(record=True, width=140)
    BuildRenderer(console=console).print_report(report)
    return console.export_text()


class TestBuildRenderer:
    def test_every_source_has_an_icon(self):
        assert set(_SOURCE_ICONS) == set(ResolutionSource)

    def test_render_returns_panel(self):
        assert isinstance(BuildRenderer().render_report(_make_report()), Panel)

    def test_assets_and_sources_listed(self):
        text = _render_text(_make_report())
        assert "Kubeadmin Password" in text
        assert "Image-based Installer Config Image" in text
        assert "LOADED" in text
        assert "GENERATED" in text

    def test_files_listed(self):
        text = _render_text(_make_report())
        assert "imagebasedconfig.tar" in text
        assert "10.0 KiB" in text
        assert "ab" * 8 in text

    def test_summary(self):
        text = _render_text(_make_report())
        assert "Target: config-image" in text
        assert "Loaded: 1" in text
        assert "Generated: 1" in text

    def test_no_files(self):
        assert "no files written" in _render_text(_make_report(files=[]))
