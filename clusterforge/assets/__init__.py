"""Concrete assets for image-based cluster installs."""

from clusterforge.assets.cabundle import ImageBasedKubeAPIServerCompleteCABundle
from clusterforge.assets.cluster_configuration import ClusterConfiguration
from clusterforge.assets.cluster_id import ClusterID
from clusterforge.assets.config_image import ConfigImage
from clusterforge.assets.imagebased_config import ImageBasedConfig, ImageBasedConfigTemplate
from clusterforge.assets.install_config import OptionalInstallConfig
from clusterforge.assets.kubeconfig import ImageBasedAdminClient
from clusterforge.assets.password import KubeadminPassword
from clusterforge.assets.tls import (
    AdminKubeConfigClientCertKey,
    AdminKubeConfigSignerCertKey,
    IngressOperatorCABundle,
    IngressOperatorSignerCertKey,
    KubeAPIServerLBCABundle,
    KubeAPIServerLBSignerCertKey,
    KubeAPIServerLocalhostCABundle,
    KubeAPIServerLocalhostSignerCertKey,
    KubeAPIServerServiceNetworkCABundle,
    KubeAPIServerServiceNetworkSignerCertKey,
)

__all__ = [
    "AdminKubeConfigClientCertKey",
    "AdminKubeConfigSignerCertKey",
    "ClusterConfiguration",
    "ClusterID",
    "ConfigImage",
    "ImageBasedAdminClient",
    "ImageBasedConfig",
    "ImageBasedConfigTemplate",
    "ImageBasedKubeAPIServerCompleteCABundle",
    "IngressOperatorCABundle",
    "IngressOperatorSignerCertKey",
    "KubeAPIServerLBCABundle",
    "KubeAPIServerLBSignerCertKey",
    "KubeAPIServerLocalhostCABundle",
    "KubeAPIServerLocalhostSignerCertKey",
    "KubeAPIServerServiceNetworkCABundle",
    "KubeAPIServerServiceNetworkSignerCertKey",
    "KubeadminPassword",
    "OptionalInstallConfig",
]
