"""Build report models — how each asset was resolved and what was written."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ResolutionSource(str, Enum):
    """How an asset reached its resolved state within one build."""

    LOADED = "loaded"  # reconstructed from persisted files
    GENERATED = "generated"  # computed from resolved dependencies
    SEEDED = "seeded"  # added pre-built before resolution


class ResolutionRecord(BaseModel):
    """Records a single asset resolution."""

    model_config = ConfigDict(frozen=True)

    asset_name: str
    asset_type: str  # qualified class name
    source: ResolutionSource
    dependencies: list[str] = []  # qualified class names, declaration order


class WrittenFile(BaseModel):
    """A file persisted by the file sink."""

    model_config = ConfigDict(frozen=True)

    filename: str
    size_bytes: int
    sha256: str


class BuildReport(BaseModel):
    """Outcome of one successful build.

    Failed builds raise instead of producing a report, so every report
    describes a fully resolved closure.
    """

    model_config = ConfigDict(frozen=True)

    target: str = ""
    directory: Path
    resolutions: list[ResolutionRecord] = []
    files: list[WrittenFile] = []
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def sources(self) -> dict[str, ResolutionSource]:
        """Map qualified asset type name to its resolution source."""
        return {r.asset_type: r.source for r in self.resolutions}

    @property
    def loaded_count(self) -> int:
        return sum(1 for r in self.resolutions if r.source == ResolutionSource.LOADED)

    @property
    def generated_count(self) -> int:
        return sum(
            1 for r in self.resolutions if r.source == ResolutionSource.GENERATED
        )
