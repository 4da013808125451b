"""Seed reconfiguration manifest (``cluster-configuration/manifest.json``).

The manifest is consumed by the on-host lifecycle agent, which owns the
wire format: snake_case keys, except for the nested crypto-retention
sections whose keys are PascalCase (including the historical
``IngresssCrypto`` spelling).  Empty optional sections are omitted.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

SEED_RECONFIGURATION_VERSION = 1


class _ManifestModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class ServingCrypto(_ManifestModel):
    localhost_signer_private_key: str = ""
    service_network_signer_private_key: str = ""
    loadbalancer_external_signer_private_key: str = ""


class ClientAuthCrypto(_ManifestModel):
    admin_ca_certificate: str = ""


class KubeAPICrypto(_ManifestModel):
    serving_crypto: ServingCrypto = Field(
        default_factory=ServingCrypto, alias="ServingCrypto"
    )
    client_auth_crypto: ClientAuthCrypto = Field(
        default_factory=ClientAuthCrypto, alias="ClientAuthCrypto"
    )


class IngressCrypto(_ManifestModel):
    ingress_ca: str = ""


class KubeconfigCryptoRetention(_ManifestModel):
    kube_api_crypto: KubeAPICrypto = Field(
        default_factory=KubeAPICrypto, alias="KubeAPICrypto"
    )
    ingress_crypto: IngressCrypto = Field(
        default_factory=IngressCrypto, alias="IngresssCrypto"
    )


class ManifestProxy(_ManifestModel):
    http_proxy: str = Field(default="", alias="httpProxy")
    https_proxy: str = Field(default="", alias="httpsProxy")
    no_proxy: str = Field(default="", alias="noProxy")


class AdditionalTrustBundle(_ManifestModel):
    user_ca_bundle: str = Field(default="", alias="userCaBundle")
    proxy_configmap_name: str = Field(default="", alias="proxyConfigmapName")
    proxy_configmap_bundle: str = Field(default="", alias="proxyConfigmapBundle")


class SeedReconfiguration(_ManifestModel):
    """Cluster identity, crypto material and host settings for one SNO host."""

    api_version: int = SEED_RECONFIGURATION_VERSION
    base_domain: str = ""
    cluster_name: str = ""
    cluster_id: str = ""
    infra_id: str = ""
    release_registry: str = ""
    hostname: str = ""
    kubeconfig_crypto_retention: KubeconfigCryptoRetention = Field(
        default_factory=KubeconfigCryptoRetention, alias="KubeconfigCryptoRetention"
    )
    ssh_key: str = ""
    kubeadmin_password_hash: str = ""
    raw_nm_state_config: str = ""
    pull_secret: str = ""
    machine_network: str = ""
    chrony_config: str = ""
    proxy: ManifestProxy | None = None
    additional_trust_bundle: AdditionalTrustBundle | None = Field(
        default=None, alias="additionalTrustBundle"
    )

    def to_json_bytes(self) -> bytes:
        """Serialize with wire aliases, omitting empty optional sections."""
        return self.model_dump_json(
            by_alias=True, exclude_none=True, indent=2
        ).encode("utf-8")
