"""Asset store — memoized load-or-generate resolution of an asset graph.

Given root asset classes, the store:

    build dependency graph (cycle check) -> for each root, resolve:
        already resolved?            -> done
        writable and loading?        -> load(); found -> done
        resolve every dependency     (declaration order, memoized)
        generate(direct dependencies)

Each asset class is resolved at most once per store, however many paths
reach it.  The first failure aborts the whole resolution and is re-raised
tagged with the failing asset's name.  Nothing is ever retried.

A store is build-scoped: create a new one for every build.
"""

from __future__ import annotations

import logging
from pathlib import Path

from clusterforge.core.asset import Asset, WritableAsset, qualified_name
from clusterforge.core.dependency_graph import DependencyGraph
from clusterforge.core.file_fetcher import DiskFileFetcher, FileFetcher
from clusterforge.core.parents import Parents, UnresolvedDependencyError
from clusterforge.models.build import ResolutionRecord, ResolutionSource

logger = logging.getLogger(__name__)


class AssetError(RuntimeError):
    """Base class for failures attributed to a single asset.

    Attributes
    ----------
    asset_name:
        Human-friendly name of the failing asset.
    """

    action = "resolve"

    def __init__(self, asset_name: str, cause: BaseException) -> None:
        self.asset_name = asset_name
        self.cause = cause
        super().__init__(f'failed to {self.action} asset "{asset_name}": {cause}')


class AssetLoadError(AssetError):
    """Raised when persisted state for an asset is malformed or invalid."""

    action = "load"


class AssetGenerationError(AssetError):
    """Raised when an asset's ``generate()`` fails."""

    action = "generate"


class AssetStore:
    """Resolves asset graphs through a build-scoped dependency store.

    Parameters
    ----------
    directory:
        Output directory of the build; persisted files are fetched from it
        unless *fetcher* is given.
    fetcher:
        File-fetch collaborator used by ``WritableAsset.load()``.
    load_from_disk:
        When ``False`` every asset is generated, ignoring persisted files.
        Assets flagged ``user_input`` are loaded regardless.
    """

    def __init__(
        self,
        directory: Path | str = ".",
        *,
        fetcher: FileFetcher | None = None,
        load_from_disk: bool = True,
    ) -> None:
        self._fetcher = fetcher or DiskFileFetcher(directory)
        self._load_from_disk = load_from_disk
        self._resolved = Parents()
        self._records: list[ResolutionRecord] = []

    # ------------------------------------------------------------------
    # Seeding and queries
    # ------------------------------------------------------------------

    def add(self, *assets: Asset) -> None:
        """Seed the store with already-built asset instances."""
        for asset in assets:
            self._resolved.add(asset)
            self._record(asset, ResolutionSource.SEEDED, [])
            logger.debug("Seeded %s", asset.name)

    @property
    def records(self) -> list[ResolutionRecord]:
        """Resolution records in resolution order."""
        return list(self._records)

    @property
    def resolved(self) -> Parents:
        return self._resolved

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def fetch(self, *roots: type[Asset]) -> list[Asset]:
        """Resolve *roots* and their closure; return the root instances.

        Raises ``DependencyGraphError`` for invalid declarations before any
        asset is loaded or generated, ``AssetLoadError`` for unusable
        persisted state and ``AssetGenerationError`` for failed generation.
        """
        graph = DependencyGraph(roots, resolved=self._resolved)
        logger.debug(
            "Resolving %d asset(s) for roots: %s",
            len(graph),
            ", ".join(r.__name__ for r in roots),
        )
        for root in roots:
            self._resolve(root, graph)
        return self._resolved.get_all(*roots)

    def _resolve(self, asset_type: type[Asset], graph: DependencyGraph) -> None:
        if asset_type in self._resolved:
            return

        asset = graph.instance(asset_type)

        if isinstance(asset, WritableAsset) and (
            self._load_from_disk or asset.user_input
        ):
            logger.debug("Loading %s...", asset.name)
            try:
                found = asset.load(self._fetcher)
            except Exception as exc:
                logger.error("Failed to load %s: %s", asset.name, exc)
                raise AssetLoadError(asset.name, exc) from exc
            if found:
                self._resolved.add(asset)
                self._record(asset, ResolutionSource.LOADED, [])
                return

        dependencies = graph.get_dependencies(asset_type)
        for dep in dependencies:
            self._resolve(dep, graph)

        parents = Parents()
        parents.add(*self._resolved.get_all(*dependencies))

        logger.debug("Generating %s...", asset.name)
        try:
            asset.generate(parents)
        except UnresolvedDependencyError:
            raise
        except Exception as exc:
            logger.error("Failed to generate %s: %s", asset.name, exc)
            raise AssetGenerationError(asset.name, exc) from exc

        self._resolved.add(asset)
        self._record(asset, ResolutionSource.GENERATED, dependencies)

    def _record(
        self,
        asset: Asset,
        source: ResolutionSource,
        dependencies: list[type[Asset]],
    ) -> None:
        self._records.append(
            ResolutionRecord(
                asset_name=asset.name,
                asset_type=qualified_name(type(asset)),
                source=source,
                dependencies=[qualified_name(d) for d in dependencies],
            )
        )
