"""File record model — the unit of persisted asset output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FileRecord(BaseModel):
    """An opaque byte payload tagged with a stable relative path.

    ``filename`` is a POSIX-style path relative to the build's output
    directory (e.g. ``"tls/kube-apiserver-lb-signer.crt"``).
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    data: bytes
