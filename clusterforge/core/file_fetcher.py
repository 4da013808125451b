"""File-fetch collaborator — reads persisted asset files by relative path.

The only contract assets rely on is that an absent file raises
``FileNotFoundError``, distinguishable from every other ``OSError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from clusterforge.models.files import FileRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class FileFetcher(Protocol):
    """Protocol for fetching persisted files by relative name."""

    def fetch_by_name(self, name: str) -> FileRecord:
        """Return the file stored under *name*.

        Raises ``FileNotFoundError`` when the file does not exist and any
        other ``OSError`` when it exists but cannot be read.
        """
        ...


class DiskFileFetcher:
    """Fetches files from a directory on the local filesystem.

    Parameters
    ----------
    directory:
        The build's output directory; names are resolved relative to it.
    """

    def __init__(self, directory: Path | str) -> None:
        self._base = Path(directory)

    @property
    def directory(self) -> Path:
        return self._base

    def fetch_by_name(self, name: str) -> FileRecord:
        path = self._base / name
        data = path.read_bytes()
        logger.debug("DiskFileFetcher: read %d bytes from %s", len(data), path)
        return FileRecord(filename=name, data=data)
