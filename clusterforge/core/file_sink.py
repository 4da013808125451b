"""Local file sink — persists asset files under the build's output directory.

Layout: {base_path}/{file.filename}

Relative paths are preserved exactly and bytes are written unchanged, so
re-writing a loaded asset reproduces the same file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from clusterforge.core.hasher import sha256_hex
from clusterforge.models.build import WrittenFile
from clusterforge.models.files import FileRecord

logger = logging.getLogger(__name__)


class FileCollisionError(RuntimeError):
    """Raised when two files of one build share a relative path."""


class LocalFileSink:
    """Writes file records to a local directory.

    Parameters
    ----------
    base_path:
        Output directory.  Created on first write.
    """

    def __init__(self, base_path: Path | str) -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    @staticmethod
    def _check_relative(filename: str) -> PurePosixPath:
        path = PurePosixPath(filename)
        if not filename or path.is_absolute() or ".." in path.parts:
            raise ValueError(
                f"Asset file path {filename!r} must be relative to the output directory"
            )
        return path

    def write(self, files: Iterable[FileRecord]) -> list[WrittenFile]:
        """Write every record, returning what was written.

        All paths are checked before anything touches the disk: an invalid
        or duplicated path writes nothing.
        """
        records = list(files)
        seen: set[PurePosixPath] = set()
        for record in records:
            path = self._check_relative(record.filename)
            if path in seen:
                raise FileCollisionError(
                    f"Multiple assets produced the file {record.filename!r}"
                )
            seen.add(path)

        written: list[WrittenFile] = []
        for record in records:
            target = self._base.joinpath(*PurePosixPath(record.filename).parts)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(record.data)
            logger.debug("LocalFileSink: wrote %s", target)
            written.append(
                WrittenFile(
                    filename=record.filename,
                    size_bytes=len(record.data),
                    sha256=sha256_hex(record.data),
                )
            )
        return written
