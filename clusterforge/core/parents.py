"""Dependency store — the build-scoped table of resolved asset instances.

Keyed by asset class: at most one resolved instance per class.  The asset
store inserts each asset once it is resolved; ``generate()`` reads its
direct dependencies back out.  Looking up a class that has not been
resolved is a defect in the caller, not a recoverable condition.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TypeVar

from clusterforge.core.asset import Asset

A = TypeVar("A", bound=Asset)


class UnresolvedDependencyError(LookupError):
    """Raised when an asset class is requested before it was resolved."""


class Parents:
    """Mapping of asset class -> resolved asset instance."""

    def __init__(self) -> None:
        self._assets: dict[type[Asset], Asset] = {}

    def add(self, *assets: Asset) -> None:
        """Insert resolved instances, keyed by their class."""
        for asset in assets:
            self._assets[type(asset)] = asset

    def get(self, asset_type: type[A]) -> A:
        """Return the resolved instance of *asset_type*."""
        try:
            return self._assets[asset_type]  # type: ignore[return-value]
        except KeyError:
            raise UnresolvedDependencyError(
                f"Asset {asset_type.__name__} has not been resolved. "
                f"Resolved: {sorted(t.__name__ for t in self._assets)}"
            ) from None

    def get_all(self, *asset_types: type[Asset]) -> list[Asset]:
        """Return resolved instances in the requested order."""
        return [self.get(t) for t in asset_types]

    def __contains__(self, asset_type: object) -> bool:
        return asset_type in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[type[Asset]]:
        return iter(self._assets)
