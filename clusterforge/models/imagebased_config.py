"""Image-based config document model (``imagebased-config.yaml``)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

IMAGE_BASED_CONFIG_VERSION = "v1beta1"


class ImageBasedConfigMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    namespace: str = ""


class ImageBasedConfigDocument(BaseModel):
    """Per-host settings applied when an image-based install is reconfigured.

    ``network_config`` is an nmstate document kept as a free-form mapping;
    it is re-serialized to YAML when embedded in the cluster manifest.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    metadata: ImageBasedConfigMetadata = ImageBasedConfigMetadata()
    hostname: str = ""
    network_config: dict[str, Any] | None = Field(default=None, alias="networkConfig")
    release_registry: str = Field(default="", alias="releaseRegistry")
    additional_ntp_sources: list[str] = Field(
        default_factory=list, alias="additionalNTPSources"
    )
