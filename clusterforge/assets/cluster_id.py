"""Cluster identity: a random UUID and an infrastructure ID."""

from __future__ import annotations

import re
import secrets
import uuid
from typing import TYPE_CHECKING

from clusterforge.assets.install_config import OptionalInstallConfig
from clusterforge.core.asset import Asset

if TYPE_CHECKING:
    from clusterforge.core.parents import Parents

# Infra IDs are used in resource names limited to 27 characters: the cluster
# name is truncated to leave room for a dash and a five-character suffix.
_INFRA_ID_MAX = 27
_SUFFIX_LEN = 5
_SUFFIX_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
_NON_ALNUM = re.compile(r"[^a-z0-9-]")


def generate_infra_id(cluster_name: str) -> str:
    """Derive ``<truncated-name>-<random suffix>`` from *cluster_name*."""
    base = _NON_ALNUM.sub("-", cluster_name.lower())
    base = base[: _INFRA_ID_MAX - _SUFFIX_LEN - 1].rstrip("-.")
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LEN))
    return f"{base}-{suffix}"


class ClusterID(Asset):
    """Not persisted: a fresh identity is generated on every build that needs it."""

    def __init__(self) -> None:
        self.uuid: str = ""
        self.infra_id: str = ""

    @property
    def name(self) -> str:
        return "Cluster ID"

    def dependencies(self) -> list[type[Asset]]:
        return [OptionalInstallConfig]

    def generate(self, parents: Parents) -> None:
        install_config = parents.get(OptionalInstallConfig)
        infra_id = generate_infra_id(install_config.cluster_name())
        self.uuid, self.infra_id = str(uuid.uuid4()), infra_id
