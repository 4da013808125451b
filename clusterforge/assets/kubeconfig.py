"""Admin kubeconfig for the image-based cluster.

Written to ``auth/kubeconfig`` alongside the config image.  The cluster
entry trusts the complete kube-apiserver CA bundle and the ``admin`` user
authenticates with the ``system:admin`` client certificate.  Without a
supplied install-config there is no API endpoint to point at, so the
asset finishes empty.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import TYPE_CHECKING

from clusterforge.assets.cabundle import ImageBasedKubeAPIServerCompleteCABundle
from clusterforge.assets.install_config import OptionalInstallConfig
from clusterforge.assets.tls import (
    CERT_LABEL,
    KEY_LABEL,
    AdminKubeConfigClientCertKey,
    decode_certificate,
)
from clusterforge.core.asset import Asset, PersistedStateError, WritableAsset, fetch_optional
from clusterforge.core.strict import decode_yaml_strict
from clusterforge.crypto import pem_decode, pem_decode_all, public_key_for
from clusterforge.models.files import FileRecord
from clusterforge.models.kubeconfig import (
    AuthInfo,
    Cluster,
    Context,
    KubeConfig,
    NamedAuthInfo,
    NamedCluster,
    NamedContext,
)

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

KUBECONFIG_FILENAME = "auth/kubeconfig"
ADMIN_USER = "admin"
API_PORT = 6443


def api_server_url(cluster_domain: str) -> str:
    return f"https://api.{cluster_domain}:{API_PORT}"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PersistedStateError(f"{KUBECONFIG_FILENAME}: invalid {what}: {exc}") from exc


class ImageBasedAdminClient(WritableAsset):
    """Kubeconfig granting cluster-admin access to the installed cluster."""

    def __init__(self) -> None:
        self.config: KubeConfig | None = None
        self.file: FileRecord | None = None

    @property
    def name(self) -> str:
        return "Kubeconfig Admin Client"

    def dependencies(self) -> list[type[Asset]]:
        return [
            AdminKubeConfigClientCertKey,
            ImageBasedKubeAPIServerCompleteCABundle,
            OptionalInstallConfig,
        ]

    def generate(self, parents: Parents) -> None:
        install_config = parents.get(OptionalInstallConfig)
        if install_config.config is None:
            logger.info("%s: install-config not supplied, no kubeconfig generated", self.name)
            return

        client = parents.get(AdminKubeConfigClientCertKey)
        ca_bundle = parents.get(ImageBasedKubeAPIServerCompleteCABundle)

        cluster_name = install_config.cluster_name()
        config = KubeConfig(
            clusters=[
                NamedCluster(
                    name=cluster_name,
                    cluster=Cluster(
                        server=api_server_url(install_config.config.cluster_domain),
                        certificate_authority_data=_b64(ca_bundle.cert()),
                    ),
                )
            ],
            users=[
                NamedAuthInfo(
                    name=ADMIN_USER,
                    user=AuthInfo(
                        client_certificate_data=_b64(client.cert()),
                        client_key_data=_b64(client.key()),
                    ),
                )
            ],
            contexts=[
                NamedContext(
                    name=ADMIN_USER,
                    context=Context(cluster=cluster_name, user=ADMIN_USER),
                )
            ],
            current_context=ADMIN_USER,
        )
        self.config = config
        self.file = FileRecord(filename=KUBECONFIG_FILENAME, data=config.to_yaml_bytes())

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, KUBECONFIG_FILENAME)
        if file is None:
            return False
        config = decode_yaml_strict(KubeConfig, file.data, KUBECONFIG_FILENAME)
        _check_credentials(config)
        self.config, self.file = config, file
        return True


def _check_credentials(config: KubeConfig) -> None:
    """Require the current context to name a trusted cluster and a matching key pair."""
    context = config.context_named(config.current_context)
    if context is None:
        raise PersistedStateError(
            f"{KUBECONFIG_FILENAME}: current context {config.current_context!r} not found"
        )
    cluster = config.cluster_named(context.context.cluster)
    if cluster is None:
        raise PersistedStateError(
            f"{KUBECONFIG_FILENAME}: cluster {context.context.cluster!r} not found"
        )
    user = config.user_named(context.context.user)
    if user is None:
        raise PersistedStateError(
            f"{KUBECONFIG_FILENAME}: user {context.context.user!r} not found"
        )

    ca_data = _unb64(cluster.cluster.certificate_authority_data, "certificate-authority-data")
    cert_data = _unb64(user.user.client_certificate_data, "client-certificate-data")
    key_data = _unb64(user.user.client_key_data, "client-key-data")
    try:
        if not pem_decode_all(ca_data, CERT_LABEL):
            raise ValueError("no certificates found")
        cert = decode_certificate(cert_data)
        public_key = public_key_for(pem_decode(key_data, KEY_LABEL))
    except ValueError as exc:
        raise PersistedStateError(f"failed to parse {KUBECONFIG_FILENAME}: {exc}") from exc
    if cert.body.public_key != public_key.hex():
        raise PersistedStateError(
            f"{KUBECONFIG_FILENAME}: client certificate does not match client key"
        )
