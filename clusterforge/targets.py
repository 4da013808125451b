"""Build targets — registry mapping target name to its root assets.

Usage::

    from clusterforge.targets import TARGET_REGISTRY, get_target

    target = get_target("config-image")
    report = Orchestrator(directory="ocp").build(target)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from clusterforge.assets.cabundle import ImageBasedKubeAPIServerCompleteCABundle
from clusterforge.assets.cluster_configuration import ClusterConfiguration
from clusterforge.assets.config_image import ConfigImage
from clusterforge.assets.imagebased_config import ImageBasedConfigTemplate
from clusterforge.assets.kubeconfig import ImageBasedAdminClient
from clusterforge.assets.password import KubeadminPassword
from clusterforge.core.asset import WritableAsset


class Target(BaseModel):
    """A named, user-requestable set of writable root assets."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str = ""
    assets: tuple[type[WritableAsset], ...]


# ---------------------------------------------------------------------------
# Target registry: name -> target
# ---------------------------------------------------------------------------

TARGET_REGISTRY: dict[str, Target] = {
    t.name: t
    for t in (
        Target(
            name="config-template",
            description="Generates a template of the Image-based Config ISO config.",
            assets=(ImageBasedConfigTemplate,),
        ),
        Target(
            name="cluster-configuration",
            description="Generates the cluster configuration manifest and its crypto material.",
            assets=(
                ClusterConfiguration,
                ImageBasedKubeAPIServerCompleteCABundle,
                KubeadminPassword,
            ),
        ),
        Target(
            name="config-image",
            description=(
                "Generates the config image archive, the admin kubeconfig and "
                "the kubeadmin password for an image-based install."
            ),
            assets=(ConfigImage, ImageBasedAdminClient, KubeadminPassword),
        ),
    )
}


def get_target(name: str) -> Target:
    """Return the registered target called *name*.

    Raises ``KeyError`` listing the registered names if *name* is unknown.
    """
    try:
        return TARGET_REGISTRY[name]
    except KeyError:
        raise KeyError(
            f"Unknown target {name!r}. Registered targets: {sorted(TARGET_REGISTRY)}"
        ) from None


__all__ = ["TARGET_REGISTRY", "Target", "get_target"]
