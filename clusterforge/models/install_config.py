"""Install-config document models.

Mirrors the ``install-config.yaml`` schema consumed by image-based
installs.  Keys are camelCase on disk; attributes are snake_case.  Every
model forbids unknown keys, and installer defaults are field defaults so a
decoded document is already fully defaulted.
"""

from __future__ import annotations

from ipaddress import IPv4Network, IPv6Network, ip_network
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IPNetwork = Union[IPv4Network, IPv6Network]

DEFAULT_CLUSTER_NAME = "imagebased-sno-cluster"
DEFAULT_REPLICAS = 3

POLICY_PROXY_ONLY = "Proxyonly"
POLICY_ALWAYS = "Always"


class _StrictModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ObjectMeta(_StrictModel):
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = {}
    annotations: dict[str, str] = {}


class MachineNetworkEntry(_StrictModel):
    cidr: IPNetwork


class ClusterNetworkEntry(_StrictModel):
    cidr: IPNetwork
    host_prefix: int = 0


def _default_machine_network() -> list[MachineNetworkEntry]:
    return [MachineNetworkEntry(cidr=ip_network("10.0.0.0/16"))]


def _default_cluster_network() -> list[ClusterNetworkEntry]:
    return [ClusterNetworkEntry(cidr=ip_network("10.128.0.0/14"), host_prefix=23)]


def _default_service_network() -> list[IPNetwork]:
    return [ip_network("172.30.0.0/16")]


class Networking(_StrictModel):
    network_type: str = "OVNKubernetes"
    machine_network: list[MachineNetworkEntry] = Field(
        default_factory=_default_machine_network
    )
    cluster_network: list[ClusterNetworkEntry] = Field(
        default_factory=_default_cluster_network
    )
    service_network: list[IPNetwork] = Field(default_factory=_default_service_network)


class MachinePool(_StrictModel):
    name: str = ""
    replicas: int | None = None
    hyperthreading: str = "Enabled"
    architecture: str = "amd64"
    platform: dict[str, Any] = {}

    @property
    def replica_count(self) -> int:
        """Replicas with the installer default applied."""
        return DEFAULT_REPLICAS if self.replicas is None else self.replicas


def _default_compute() -> list[MachinePool]:
    return [MachinePool(name="worker")]


# Platform keys recognised in the ``platform`` stanza, in precedence order.
PLATFORM_NAMES = (
    "aws",
    "azure",
    "baremetal",
    "gcp",
    "ibmcloud",
    "external",
    "none",
    "nutanix",
    "openstack",
    "powervs",
    "vsphere",
)


class Platform(BaseModel):
    """The ``platform`` stanza: at most one key is expected to be set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    aws: dict[str, Any] | None = None
    azure: dict[str, Any] | None = None
    baremetal: dict[str, Any] | None = None
    gcp: dict[str, Any] | None = None
    ibmcloud: dict[str, Any] | None = None
    external: dict[str, Any] | None = None
    none: dict[str, Any] | None = None
    nutanix: dict[str, Any] | None = None
    openstack: dict[str, Any] | None = None
    powervs: dict[str, Any] | None = None
    vsphere: dict[str, Any] | None = None

    def configured(self) -> list[str]:
        """Names of every platform key present in the document."""
        return [n for n in PLATFORM_NAMES if getattr(self, n) is not None]

    def name(self) -> str:
        """Name of the configured platform, or ``""`` when none is set."""
        configured = self.configured()
        return configured[0] if configured else ""


class Proxy(_StrictModel):
    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = ""


class InstallConfig(_StrictModel):
    """A fully defaulted install-config document."""

    api_version: str = "v1"
    kind: str = ""
    metadata: ObjectMeta = ObjectMeta()
    base_domain: str = ""
    additional_trust_bundle: str = ""
    additional_trust_bundle_policy: str = POLICY_PROXY_ONLY
    ssh_key: str = ""
    pull_secret: str = ""
    proxy: Proxy | None = None
    control_plane: MachinePool = MachinePool(name="master")
    compute: list[MachinePool] = Field(default_factory=_default_compute)
    networking: Networking = Field(default_factory=Networking)
    platform: Platform = Platform()
    publish: str = "External"
    feature_set: str = ""
    fips: bool = False
    image_digest_sources: list[dict[str, Any]] = []
    capabilities: dict[str, Any] | None = None

    @property
    def cluster_domain(self) -> str:
        """``<name>.<baseDomain>``, without a trailing dot."""
        return f"{self.metadata.name}.{self.base_domain.rstrip('.')}"
