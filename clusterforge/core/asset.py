"""Asset contract: the typed, dependency-aware unit of a build.

An asset is identified by its class: a build holds exactly one logical
instance of each asset class.  Every asset declares the asset classes it
needs *before* it can compute itself, and implements ``generate()`` to
compute its state from those resolved dependencies.

A ``WritableAsset`` additionally serializes to files and can reconstruct
itself from previously written files via ``load()``.  ``load()`` and
``generate()`` are two paths to the same post-condition:

    load(fetcher) -> True   ==   generate(parents) from the same inputs

Assets must assign their state only once all computation for it has
succeeded, so consumers never observe a partially built asset.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, ClassVar

from clusterforge.models.files import FileRecord

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents


class PersistedStateError(ValueError):
    """Raised by ``load()`` when persisted content exists but is unusable.

    Covers unreadable files, syntax errors, unknown fields and failed
    validation.  The build aborts; the asset is never silently regenerated.
    """


class Asset(abc.ABC):
    """Abstract base for every build unit.

    Subclasses **must** implement:
        * ``name`` — human-readable name used in logs and errors.
        * ``dependencies()`` — asset classes required before ``generate()``.
        * ``generate(parents)`` — compute state from resolved dependencies.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-friendly name of the asset."""
        ...

    @abc.abstractmethod
    def dependencies(self) -> list[type[Asset]]:
        """Return the asset classes this asset depends on.

        Must be pure and stable for the class: the asset store calls it once
        per build, before any resolution, and trusts the result.  The
        declaration order is preserved and visible to ``generate()``.
        """
        ...

    @abc.abstractmethod
    def generate(self, parents: Parents) -> None:
        """Compute this asset's state from its resolved dependencies.

        Raises on failure; the failure is terminal for this asset and for
        every asset that transitively depends on it.
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


class WritableAsset(Asset):
    """An asset that persists to files and can be reloaded from them.

    ``user_input`` marks assets whose files are authored by the user
    rather than written by a previous build.  They are always loaded,
    even when the store is told to ignore persisted state.
    """

    user_input: ClassVar[bool] = False

    @abc.abstractmethod
    def files(self) -> list[FileRecord]:
        """Return the files produced by this asset (may be empty)."""
        ...

    @abc.abstractmethod
    def load(self, fetcher: FileFetcher) -> bool:
        """Reconstruct state from persisted files.

        Returns ``False`` when the expected file is simply absent.  Raises
        ``PersistedStateError`` for malformed or invalid persisted content.
        """
        ...


def fetch_optional(fetcher: FileFetcher, filename: str) -> FileRecord | None:
    """Fetch *filename*, returning ``None`` when it does not exist.

    Any other I/O failure is surfaced as a ``PersistedStateError``: an
    unreadable file is ambiguous state, not an absent one.
    """
    try:
        return fetcher.fetch_by_name(filename)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise PersistedStateError(f"failed to load {filename} file: {exc}") from exc


def qualified_name(asset_type: type) -> str:
    """Return ``module.ClassName`` for an asset class."""
    return f"{asset_type.__module__}.{asset_type.__qualname__}"
