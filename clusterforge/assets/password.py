"""Generated kubeadmin password and its Argon2id hash."""

from __future__ import annotations

import logging
import re
import secrets
import string
from typing import TYPE_CHECKING

from clusterforge.core.asset import Asset, PersistedStateError, WritableAsset, fetch_optional
from clusterforge.crypto import hash_password
from clusterforge.models.files import FileRecord

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

KUBEADMIN_PASSWORD_FILENAME = "auth/kubeadmin-password"

_ALPHABET = string.ascii_letters + string.digits
_PASSWORD_RE = re.compile(r"^[A-Za-z0-9]{5}(-[A-Za-z0-9]{5}){3}$")


def generate_random_password() -> str:
    """Return a password of four dash-separated five-character groups."""
    groups = ("".join(secrets.choice(_ALPHABET) for _ in range(5)) for _ in range(4))
    return "-".join(groups)


class KubeadminPassword(WritableAsset):
    """The kubeadmin user's password.

    Only the password is persisted.  The hash is salted, so it is
    recomputed whenever the asset is resolved.
    """

    def __init__(self) -> None:
        self.password: str = ""
        self.password_hash: str = ""
        self.file: FileRecord | None = None

    @property
    def name(self) -> str:
        return "Kubeadmin Password"

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: Parents) -> None:
        self._set(generate_random_password())

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, KUBEADMIN_PASSWORD_FILENAME)
        if file is None:
            return False
        password = file.data.decode("utf-8", errors="replace")
        if not _PASSWORD_RE.match(password):
            raise PersistedStateError(
                f"failed to parse {KUBEADMIN_PASSWORD_FILENAME}: unexpected password format"
            )
        self._set(password)
        return True

    def _set(self, password: str) -> None:
        password_hash = hash_password(password)
        self.password, self.password_hash = password, password_hash
        self.file = FileRecord(
            filename=KUBEADMIN_PASSWORD_FILENAME, data=password.encode("utf-8")
        )
