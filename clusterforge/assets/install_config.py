"""Optional install-config for image-based installs.

The install-config is user input: when ``install-config.yaml`` is absent
the asset resolves to an empty, not-supplied state and consumers decide
what that means.  When present it is strictly decoded and every rule
violation is reported at once under the ``invalid install-config
configuration`` prefix.

Validation runs in two layers:
- generic schema rules, applicable to any install-config;
- image-based rules (``single_node=True``): the ``none`` platform, the
  default feature set, and single-node topology.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from clusterforge.core.asset import Asset, WritableAsset, fetch_optional
from clusterforge.core.strict import decode_yaml_strict
from clusterforge.core.validation import (
    FieldError,
    field_path,
    invalid,
    is_dns_subdomain,
    not_supported,
    raise_if_errors,
    required,
    too_many,
)
from clusterforge.crypto import pem_decode_all
from clusterforge.models.files import FileRecord
from clusterforge.models.install_config import (
    DEFAULT_CLUSTER_NAME,
    POLICY_ALWAYS,
    POLICY_PROXY_ONLY,
    InstallConfig,
    MachinePool,
)

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

INSTALL_CONFIG_FILENAME = "install-config.yaml"
INVALID_INSTALL_CONFIG = "invalid install-config configuration"

SUPPORTED_PLATFORM = "none"
DEFAULT_FEATURE_SET = ""
SUPPORTED_NETWORK_TYPE = "OVNKubernetes"

_HYPERTHREADING = ("Enabled", "Disabled")
_ARCHITECTURES = ("amd64", "arm64", "ppc64le", "s390x")
_PUBLISH = ("External", "Internal")
_TRUST_BUNDLE_POLICIES = (POLICY_PROXY_ONLY, POLICY_ALWAYS)
_COMPUTE_POOL_NAMES = ("worker", "edge")
_SSH_KEY_PREFIXES = ("ssh-rsa ", "ssh-ed25519 ", "ecdsa-sha2-", "sk-")


# ---------------------------------------------------------------------------
# Generic rules
# ---------------------------------------------------------------------------


def _validate_pull_secret(pull_secret: str) -> list[FieldError]:
    path = "pullSecret"
    if not pull_secret:
        return [required(path, "pull secret required")]
    try:
        parsed = json.loads(pull_secret)
    except json.JSONDecodeError:
        return [invalid(path, "<redacted>", "pull secret is not valid JSON")]
    if not isinstance(parsed, dict) or not isinstance(parsed.get("auths"), dict):
        return [invalid(path, "<redacted>", 'auths required')]
    return []


def _validate_machine_pool(pool: MachinePool, path: str) -> list[FieldError]:
    errs: list[FieldError] = []
    if pool.replicas is not None and pool.replicas < 0:
        errs.append(invalid(field_path(path, "replicas"), pool.replicas, "number of replicas must not be negative"))
    if pool.hyperthreading not in _HYPERTHREADING:
        errs.append(not_supported(field_path(path, "hyperthreading"), pool.hyperthreading, _HYPERTHREADING))
    if pool.architecture not in _ARCHITECTURES:
        errs.append(not_supported(field_path(path, "architecture"), pool.architecture, _ARCHITECTURES))
    return errs


def _validate_networking(config: InstallConfig) -> list[FieldError]:
    errs: list[FieldError] = []
    networking = config.networking
    if not networking.network_type:
        errs.append(required("networking.networkType", "network provider type required"))
    if not networking.service_network:
        errs.append(required("networking.serviceNetwork"))
    if not networking.cluster_network:
        errs.append(required("networking.clusterNetwork"))

    for i, entry in enumerate(networking.cluster_network):
        path = f"networking.clusterNetwork[{i}].hostPrefix"
        if not entry.cidr.prefixlen <= entry.host_prefix <= entry.cidr.max_prefixlen:
            errs.append(
                invalid(
                    path,
                    entry.host_prefix,
                    "cluster network host subnetwork prefix must not be "
                    "larger size than CIDR " + str(entry.cidr),
                )
            )

    for i, service in enumerate(networking.service_network):
        for entry in networking.cluster_network:
            if service.version == entry.cidr.version and service.overlaps(entry.cidr):
                errs.append(
                    invalid(
                        f"networking.serviceNetwork[{i}]",
                        str(service),
                        "service network must not overlap with cluster network",
                    )
                )
    return errs


def _validate_proxy(config: InstallConfig) -> list[FieldError]:
    proxy = config.proxy
    if proxy is None:
        return []
    if not proxy.http_proxy and not proxy.https_proxy:
        return [required("proxy", "must include httpProxy or httpsProxy")]
    errs: list[FieldError] = []
    for name, value, schemes in (
        ("httpProxy", proxy.http_proxy, ("http",)),
        ("httpsProxy", proxy.https_proxy, ("http", "https")),
    ):
        if not value:
            continue
        parsed = urlparse(value)
        if parsed.scheme not in schemes or not parsed.netloc:
            errs.append(
                invalid(
                    field_path("proxy", name),
                    value,
                    "must be a valid URL with scheme " + " or ".join(schemes),
                )
            )
    return errs


def validate_generic(config: InstallConfig) -> list[FieldError]:
    """Schema rules every install-config must satisfy."""
    errs: list[FieldError] = []

    if not config.metadata.name:
        errs.append(required("metadata.name", "cluster name required"))
    if not config.base_domain:
        errs.append(required("baseDomain", "base domain required"))
    elif not is_dns_subdomain(config.base_domain):
        errs.append(invalid("baseDomain", config.base_domain, "must be a valid DNS domain name"))

    errs.extend(_validate_pull_secret(config.pull_secret))

    if config.ssh_key and not config.ssh_key.startswith(_SSH_KEY_PREFIXES):
        errs.append(invalid("sshKey", config.ssh_key, "invalid SSH public key"))

    if config.publish not in _PUBLISH:
        errs.append(not_supported("publish", config.publish, _PUBLISH))

    if config.additional_trust_bundle_policy not in _TRUST_BUNDLE_POLICIES:
        errs.append(
            not_supported(
                "additionalTrustBundlePolicy",
                config.additional_trust_bundle_policy,
                _TRUST_BUNDLE_POLICIES,
            )
        )
    if config.additional_trust_bundle:
        try:
            found = pem_decode_all(config.additional_trust_bundle.encode("utf-8"), "CERTIFICATE")
        except ValueError:
            found = []
        if not found:
            errs.append(
                invalid("additionalTrustBundle", "<bundle>", "must contain at least one PEM certificate")
            )

    if config.control_plane.name != "master":
        errs.append(not_supported("controlPlane.name", config.control_plane.name, ["master"]))
    errs.extend(_validate_machine_pool(config.control_plane, "controlPlane"))
    for i, pool in enumerate(config.compute):
        path = f"compute[{i}]"
        if pool.name not in _COMPUTE_POOL_NAMES:
            errs.append(not_supported(field_path(path, "name"), pool.name, _COMPUTE_POOL_NAMES))
        errs.extend(_validate_machine_pool(pool, path))

    configured = config.platform.configured()
    if len(configured) > 1:
        errs.append(
            invalid("platform", ", ".join(configured), "must only specify a single type of platform")
        )

    errs.extend(_validate_networking(config))
    errs.extend(_validate_proxy(config))
    return errs


# ---------------------------------------------------------------------------
# Image-based rules
# ---------------------------------------------------------------------------


def validate_single_node(config: InstallConfig) -> list[FieldError]:
    """Topology rules for a single-node cluster on the ``none`` platform."""
    errs: list[FieldError] = []

    control_plane_replicas = config.control_plane.replica_count
    if control_plane_replicas != 1:
        errs.append(
            required(
                "ControlPlane.Replicas",
                "Only Single Node OpenShift (SNO) is supported, total number of "
                f"ControlPlane.Replicas must be 1. Found {control_plane_replicas}",
            )
        )

    workers = sum(pool.replica_count for pool in config.compute)
    if workers != 0:
        errs.append(
            required(
                "Compute.Replicas",
                "Total number of Compute.Replicas must be 0 when ControlPlane.Replicas "
                f"is 1 for platform {SUPPORTED_PLATFORM}. Found {workers}",
            )
        )

    network_type = config.networking.network_type
    if network_type != SUPPORTED_NETWORK_TYPE:
        errs.append(
            invalid(
                "Networking.NetworkType",
                network_type,
                f"Only {SUPPORTED_NETWORK_TYPE} network type is allowed for "
                "Single Node OpenShift (SNO) cluster",
            )
        )

    machine_networks = len(config.networking.machine_network)
    if machine_networks != 1:
        errs.append(too_many("Networking.MachineNetwork", machine_networks, 1))

    return errs


def validate_install_config(config: InstallConfig, *, single_node: bool) -> list[FieldError]:
    """Collect every violation; image-based rules apply when *single_node*."""
    errs = validate_generic(config)
    if not single_node:
        return errs

    platform = config.platform.name()
    if platform and platform != SUPPORTED_PLATFORM:
        errs.append(not_supported("Platform", platform, [SUPPORTED_PLATFORM]))
    if config.feature_set != DEFAULT_FEATURE_SET:
        errs.append(not_supported("FeatureSet", config.feature_set, [DEFAULT_FEATURE_SET]))

    errs.extend(validate_single_node(config))
    return errs


def warn_unused_config(config: InstallConfig) -> None:
    """Log every setting that image-based installs accept but ignore."""
    if config.additional_trust_bundle_policy != POLICY_PROXY_ONLY:
        logger.warning(
            "AdditionalTrustBundlePolicy: %s is ignored",
            config.additional_trust_bundle_policy,
        )
    for i, pool in enumerate(config.compute):
        if pool.hyperthreading != "Enabled":
            logger.warning("Compute[%d].Hyperthreading: %s is ignored", i, pool.hyperthreading)
        if pool.platform:
            logger.warning("Compute[%d].Platform is ignored", i)
    if config.control_plane.hyperthreading != "Enabled":
        logger.warning(
            "ControlPlane.Hyperthreading: %s is ignored", config.control_plane.hyperthreading
        )
    if config.control_plane.platform:
        logger.warning("ControlPlane.Platform is ignored")


# ---------------------------------------------------------------------------
# Asset
# ---------------------------------------------------------------------------


class OptionalInstallConfig(WritableAsset):
    """An install-config whose default is empty rather than generated."""

    user_input = True

    def __init__(self) -> None:
        self.config: InstallConfig | None = None
        self.file: FileRecord | None = None
        self.supplied: bool = False

    @property
    def name(self) -> str:
        return "Install Config"

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: Parents) -> None:
        # Absent user input is a valid, empty state.
        return None

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, INSTALL_CONFIG_FILENAME)
        if file is None:
            return False

        config = decode_yaml_strict(InstallConfig, file.data, INSTALL_CONFIG_FILENAME)
        raise_if_errors(
            validate_install_config(config, single_node=True),
            prefix=INVALID_INSTALL_CONFIG,
        )
        warn_unused_config(config)

        self.config, self.file, self.supplied = config, file, True
        return True

    def cluster_name(self) -> str:
        if self.config is not None and self.config.metadata.name:
            return self.config.metadata.name
        return DEFAULT_CLUSTER_NAME
