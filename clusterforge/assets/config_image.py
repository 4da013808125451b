"""Config image: the archive handed to the host for reconfiguration.

The archive is a deterministic tar (fixed mtimes, owners and modes, sorted
entries), so the same inputs always produce the same bytes.

Layout::

    cluster-configuration/manifest.json
    cluster-configuration/kube-apiserver-complete-server-ca-bundle.crt
"""

from __future__ import annotations

import io
import logging
import tarfile
from typing import TYPE_CHECKING

from clusterforge.assets.cabundle import ImageBasedKubeAPIServerCompleteCABundle
from clusterforge.assets.cluster_configuration import (
    CLUSTER_CONFIGURATION_DIR,
    CLUSTER_CONFIGURATION_FILENAME,
    ClusterConfiguration,
)
from clusterforge.assets.tls import CERT_LABEL
from clusterforge.core.asset import Asset, PersistedStateError, WritableAsset, fetch_optional
from clusterforge.core.strict import decode_json_strict
from clusterforge.crypto import pem_decode_all
from clusterforge.models.files import FileRecord
from clusterforge.models.seed_reconfiguration import SeedReconfiguration

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

CONFIG_IMAGE_FILENAME = "imagebasedconfig.tar"
CA_BUNDLE_ENTRY = f"{CLUSTER_CONFIGURATION_DIR}/kube-apiserver-complete-server-ca-bundle.crt"


class MissingConfigurationError(ValueError):
    """Raised when the cluster configuration finished empty."""


def build_archive(entries: dict[str, bytes]) -> bytes:
    """Pack *entries* into a reproducible tar archive."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.USTAR_FORMAT) as tar:
        for name in sorted(entries):
            data = entries[name]
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            info.mode = 0o644
            info.mtime = 0
            info.uid = info.gid = 0
            info.uname = info.gname = ""
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def read_archive(data: bytes) -> dict[str, bytes]:
    """Return the regular-file entries of a tar archive."""
    entries: dict[str, bytes] = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as tar:
        for member in tar.getmembers():
            if not member.isfile():
                continue
            extracted = tar.extractfile(member)
            if extracted is not None:
                entries[member.name] = extracted.read()
    return entries


class ConfigImage(WritableAsset):
    """Archive of the cluster manifest and the complete CA bundle."""

    def __init__(self) -> None:
        self.file: FileRecord | None = None
        self.config: SeedReconfiguration | None = None

    @property
    def name(self) -> str:
        return "Image-based Installer Config Image"

    def dependencies(self) -> list[type[Asset]]:
        return [ClusterConfiguration, ImageBasedKubeAPIServerCompleteCABundle]

    def generate(self, parents: Parents) -> None:
        cluster_configuration = parents.get(ClusterConfiguration)
        ca_bundle = parents.get(ImageBasedKubeAPIServerCompleteCABundle)

        if cluster_configuration.config is None or cluster_configuration.file is None:
            raise MissingConfigurationError("missing configuration or manifest file")

        data = build_archive(
            {
                CLUSTER_CONFIGURATION_FILENAME: cluster_configuration.file.data,
                CA_BUNDLE_ENTRY: ca_bundle.cert(),
            }
        )
        self.config = cluster_configuration.config
        self.file = FileRecord(filename=CONFIG_IMAGE_FILENAME, data=data)

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, CONFIG_IMAGE_FILENAME)
        if file is None:
            return False
        try:
            entries = read_archive(file.data)
        except tarfile.TarError as exc:
            raise PersistedStateError(
                f"failed to read {CONFIG_IMAGE_FILENAME}: {exc}"
            ) from exc
        if CLUSTER_CONFIGURATION_FILENAME not in entries:
            raise PersistedStateError(
                f"{CONFIG_IMAGE_FILENAME} does not contain {CLUSTER_CONFIGURATION_FILENAME}"
            )
        config = decode_json_strict(
            SeedReconfiguration,
            entries[CLUSTER_CONFIGURATION_FILENAME],
            f"{CONFIG_IMAGE_FILENAME}:{CLUSTER_CONFIGURATION_FILENAME}",
        )
        _check_ca_bundle(entries)
        self.config, self.file = config, file
        return True


def _check_ca_bundle(entries: dict[str, bytes]) -> None:
    if CA_BUNDLE_ENTRY not in entries:
        raise PersistedStateError(
            f"{CONFIG_IMAGE_FILENAME} does not contain {CA_BUNDLE_ENTRY}"
        )
    try:
        certs = pem_decode_all(entries[CA_BUNDLE_ENTRY], CERT_LABEL)
    except ValueError as exc:
        raise PersistedStateError(
            f"failed to decode {CONFIG_IMAGE_FILENAME}:{CA_BUNDLE_ENTRY}: {exc}"
        ) from exc
    if not certs:
        raise PersistedStateError(
            f"{CONFIG_IMAGE_FILENAME}:{CA_BUNDLE_ENTRY} holds no certificates"
        )
