"""Kubeconfig document models.

Only the subset written for the admin client is modelled: named clusters,
users and contexts with inline base64 credential data.  Keys use the
kubeconfig wire spelling (``certificate-authority-data``, ``apiVersion``).
"""

from __future__ import annotations

import yaml
from pydantic import BaseModel, ConfigDict, Field


class _KubeConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class Cluster(_KubeConfigModel):
    server: str
    certificate_authority_data: str = Field(alias="certificate-authority-data")


class NamedCluster(_KubeConfigModel):
    name: str
    cluster: Cluster


class AuthInfo(_KubeConfigModel):
    client_certificate_data: str = Field(alias="client-certificate-data")
    client_key_data: str = Field(alias="client-key-data")


class NamedAuthInfo(_KubeConfigModel):
    name: str
    user: AuthInfo


class Context(_KubeConfigModel):
    cluster: str
    user: str


class NamedContext(_KubeConfigModel):
    name: str
    context: Context


class KubeConfig(_KubeConfigModel):
    """A client kubeconfig holding inline certificates and keys."""

    api_version: str = Field(default="v1", alias="apiVersion")
    kind: str = "Config"
    clusters: list[NamedCluster] = Field(default_factory=list)
    users: list[NamedAuthInfo] = Field(default_factory=list)
    contexts: list[NamedContext] = Field(default_factory=list)
    current_context: str = Field(default="", alias="current-context")
    preferences: dict[str, str] = Field(default_factory=dict)

    def to_yaml_bytes(self) -> bytes:
        """Serialize with wire keys, in declaration order."""
        document = self.model_dump(mode="json", by_alias=True)
        return yaml.safe_dump(document, sort_keys=False).encode("utf-8")

    def context_named(self, name: str) -> NamedContext | None:
        return next((c for c in self.contexts if c.name == name), None)

    def cluster_named(self, name: str) -> NamedCluster | None:
        return next((c for c in self.clusters if c.name == name), None)

    def user_named(self, name: str) -> NamedAuthInfo | None:
        return next((u for u in self.users if u.name == name), None)
