"""The complete kube-apiserver server CA bundle.

Holds every certificate valid for confirming the kube-apiserver identity,
plus the ingress operator CA.
"""

from __future__ import annotations

from clusterforge.assets.tls import (
    CABundleAsset,
    IngressOperatorCABundle,
    KubeAPIServerLBCABundle,
    KubeAPIServerLocalhostCABundle,
    KubeAPIServerServiceNetworkCABundle,
)


class ImageBasedKubeAPIServerCompleteCABundle(CABundleAsset):
    filename_base = "kube-apiserver-complete-server-ca-bundle"
    bundled = (
        KubeAPIServerLocalhostCABundle,
        KubeAPIServerServiceNetworkCABundle,
        KubeAPIServerLBCABundle,
        IngressOperatorCABundle,
    )
