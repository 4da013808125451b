"""Cluster configuration manifest for image-based installs.

Assembles cluster identity, the user's install-config and image-based
config, the signer keys and the kubeadmin password hash into the seed
reconfiguration manifest.  When either user config is absent the asset
finishes empty: no manifest, no file, no error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import yaml

from clusterforge.assets.cluster_id import ClusterID
from clusterforge.assets.imagebased_config import ImageBasedConfig
from clusterforge.assets.install_config import OptionalInstallConfig
from clusterforge.assets.password import KubeadminPassword
from clusterforge.assets.tls import (
    AdminKubeConfigSignerCertKey,
    IngressOperatorSignerCertKey,
    KubeAPIServerLBSignerCertKey,
    KubeAPIServerLocalhostSignerCertKey,
    KubeAPIServerServiceNetworkSignerCertKey,
)
from clusterforge.core.asset import Asset, WritableAsset, fetch_optional
from clusterforge.core.strict import decode_json_strict
from clusterforge.models.files import FileRecord
from clusterforge.models.install_config import POLICY_ALWAYS, POLICY_PROXY_ONLY
from clusterforge.models.seed_reconfiguration import (
    AdditionalTrustBundle,
    ClientAuthCrypto,
    IngressCrypto,
    KubeAPICrypto,
    KubeconfigCryptoRetention,
    ManifestProxy,
    SeedReconfiguration,
    ServingCrypto,
)

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

CLUSTER_CONFIGURATION_DIR = "cluster-configuration"
CLUSTER_CONFIGURATION_FILENAME = f"{CLUSTER_CONFIGURATION_DIR}/manifest.json"
USER_CA_BUNDLE_CONFIG_MAP_NAME = "user-ca-bundle"

DEFAULT_CHRONY_CONF = """
pool 0.rhel.pool.ntp.org iburst
driftfile /var/lib/chrony/drift
makestep 1.0 3
rtcsync
logdir /var/log/chrony"""


def chrony_conf_with_additional_ntp_sources(sources: list[str]) -> str:
    """The default chrony config plus one ``server`` line per source."""
    return DEFAULT_CHRONY_CONF + "".join(f"\nserver {s} iburst" for s in sources)


class ClusterConfiguration(WritableAsset):
    """The seed reconfiguration manifest, or empty when user config is missing."""

    def __init__(self) -> None:
        self.config: SeedReconfiguration | None = None
        self.file: FileRecord | None = None

    @property
    def name(self) -> str:
        return "Image-based installer cluster configuration"

    def dependencies(self) -> list[type[Asset]]:
        return [
            ClusterID,
            OptionalInstallConfig,
            KubeAPIServerLBSignerCertKey,
            KubeAPIServerLocalhostSignerCertKey,
            KubeAPIServerServiceNetworkSignerCertKey,
            AdminKubeConfigSignerCertKey,
            IngressOperatorSignerCertKey,
            KubeadminPassword,
            ImageBasedConfig,
        ]

    def generate(self, parents: Parents) -> None:
        cluster_id = parents.get(ClusterID)
        install_config = parents.get(OptionalInstallConfig)
        image_based_config = parents.get(ImageBasedConfig)
        password = parents.get(KubeadminPassword)

        if install_config.config is None or image_based_config.config is None:
            logger.info(
                "%s: install-config or image-based config not supplied, "
                "no manifest generated",
                self.name,
            )
            return

        ic = install_config.config
        ibc = image_based_config.config

        raw_nm_state = ""
        if ibc.network_config:
            raw_nm_state = yaml.safe_dump(ibc.network_config, default_flow_style=False)

        chrony_config = ""
        if ibc.additional_ntp_sources:
            chrony_config = chrony_conf_with_additional_ntp_sources(
                ibc.additional_ntp_sources
            )

        proxy = None
        if ic.proxy is not None:
            proxy = ManifestProxy(
                http_proxy=ic.proxy.http_proxy,
                https_proxy=ic.proxy.https_proxy,
                no_proxy=ic.proxy.no_proxy,
            )

        trust_bundle = None
        if ic.additional_trust_bundle:
            policy = ic.additional_trust_bundle_policy
            if policy == POLICY_ALWAYS or (policy == POLICY_PROXY_ONLY and ic.proxy is not None):
                trust_bundle = AdditionalTrustBundle(
                    user_ca_bundle=ic.additional_trust_bundle,
                    proxy_configmap_name=USER_CA_BUNDLE_CONFIG_MAP_NAME,
                    proxy_configmap_bundle=ic.additional_trust_bundle,
                )
            else:
                trust_bundle = AdditionalTrustBundle(user_ca_bundle=ic.additional_trust_bundle)

        crypto = KubeconfigCryptoRetention(
            kube_api_crypto=KubeAPICrypto(
                serving_crypto=ServingCrypto(
                    loadbalancer_external_signer_private_key=_pem(
                        parents.get(KubeAPIServerLBSignerCertKey).key()
                    ),
                    localhost_signer_private_key=_pem(
                        parents.get(KubeAPIServerLocalhostSignerCertKey).key()
                    ),
                    service_network_signer_private_key=_pem(
                        parents.get(KubeAPIServerServiceNetworkSignerCertKey).key()
                    ),
                ),
                client_auth_crypto=ClientAuthCrypto(
                    admin_ca_certificate=_pem(parents.get(AdminKubeConfigSignerCertKey).cert())
                ),
            ),
            ingress_crypto=IngressCrypto(
                ingress_ca=_pem(parents.get(IngressOperatorSignerCertKey).key())
            ),
        )

        # Single machine network is enforced by install-config validation.
        config = SeedReconfiguration(
            base_domain=ic.base_domain,
            cluster_id=cluster_id.uuid,
            cluster_name=install_config.cluster_name(),
            hostname=ibc.hostname,
            infra_id=cluster_id.infra_id,
            kubeadmin_password_hash=password.password_hash,
            proxy=proxy,
            pull_secret=ic.pull_secret,
            raw_nm_state_config=raw_nm_state,
            release_registry=ibc.release_registry,
            ssh_key=ic.ssh_key,
            chrony_config=chrony_config,
            additional_trust_bundle=trust_bundle,
            kubeconfig_crypto_retention=crypto,
            machine_network=str(ic.networking.machine_network[0].cidr),
        )
        file = FileRecord(
            filename=CLUSTER_CONFIGURATION_FILENAME, data=config.to_json_bytes()
        )
        self.config, self.file = config, file

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, CLUSTER_CONFIGURATION_FILENAME)
        if file is None:
            return False
        config = decode_json_strict(
            SeedReconfiguration, file.data, CLUSTER_CONFIGURATION_FILENAME
        )
        self.config, self.file = config, file
        return True


def _pem(data: bytes) -> str:
    return data.decode("utf-8")
