"""Build orchestrator — the entry point for producing a target's files.

The Orchestrator wires together the AssetStore, the DiskFileFetcher and
the LocalFileSink into one build:

    fresh AssetStore -> fetch(roots) -> collect root files -> write -> report

Only the roots' files are written, and only after every root resolved:
a failed build leaves the output directory untouched.  Intermediate assets
are persisted by being roots of some target, never as a side effect.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from clusterforge.config import ForgeConfig
from clusterforge.core.asset import WritableAsset
from clusterforge.core.asset_store import AssetStore
from clusterforge.core.file_fetcher import FileFetcher
from clusterforge.core.file_sink import LocalFileSink
from clusterforge.models.build import BuildReport
from clusterforge.models.files import FileRecord

if TYPE_CHECKING:
    from clusterforge.targets import Target

logger = logging.getLogger(__name__)


class Orchestrator:
    """Builds targets into an output directory.

    Parameters
    ----------
    directory:
        Output directory.  Defaults to ``config.asset_dir``.
    load_from_disk:
        Prefer persisted files over generation.  Defaults to
        ``config.load_from_disk``.
    fetcher:
        File-fetch collaborator; reads from *directory* if not provided.
    config:
        Runtime configuration.  Uses defaults if not provided.
    """

    def __init__(
        self,
        directory: Path | str | None = None,
        *,
        load_from_disk: bool | None = None,
        fetcher: FileFetcher | None = None,
        config: ForgeConfig | None = None,
    ) -> None:
        self.config = config or ForgeConfig()
        self.directory = Path(directory) if directory is not None else self.config.asset_dir
        self.load_from_disk = (
            self.config.load_from_disk if load_from_disk is None else load_from_disk
        )
        self._fetcher = fetcher
        self.sink = LocalFileSink(self.directory)

    def new_store(self) -> AssetStore:
        """Create the build-scoped asset store for one build."""
        return AssetStore(
            self.directory,
            fetcher=self._fetcher,
            load_from_disk=self.load_from_disk,
        )

    # ------------------------------------------------------------------
    # Builds
    # ------------------------------------------------------------------

    def build(self, target: Target) -> BuildReport:
        """Build every root asset of *target*."""
        logger.info("Building target %s in %s", target.name, self.directory)
        return self.build_assets(*target.assets, target_name=target.name)

    def build_assets(
        self, *roots: type[WritableAsset], target_name: str = ""
    ) -> BuildReport:
        """Resolve *roots*, write their files and return the build report.

        Raises the store's errors unchanged; nothing is written on failure.
        """
        roots = tuple(dict.fromkeys(roots))
        store = self.new_store()
        resolved = store.fetch(*roots)

        files: list[FileRecord] = []
        for asset in resolved:
            if not isinstance(asset, WritableAsset):
                raise TypeError(f"Root asset {asset.name!r} is not writable")
            files.extend(asset.files())

        written = self.sink.write(files)
        report = BuildReport(
            target=target_name,
            directory=self.directory,
            resolutions=store.records,
            files=written,
        )
        logger.info(
            "Built %d asset(s) (%d loaded, %d generated), wrote %d file(s)",
            len(report.resolutions),
            report.loaded_count,
            report.generated_count,
            len(written),
        )
        return report
