"""Image-based config (``imagebased-config.yaml``) and its template.

``ImageBasedConfig`` is optional user input, strictly decoded and
validated.  ``ImageBasedConfigTemplate`` writes an annotated example to the
same path for the user to edit.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import TYPE_CHECKING

from clusterforge.core.asset import Asset, WritableAsset, fetch_optional
from clusterforge.core.strict import decode_yaml_strict
from clusterforge.core.validation import (
    FieldError,
    is_dns_subdomain,
    invalid,
    not_supported,
    raise_if_errors,
    required,
)
from clusterforge.models.files import FileRecord
from clusterforge.models.imagebased_config import (
    IMAGE_BASED_CONFIG_VERSION,
    ImageBasedConfigDocument,
)

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

IMAGE_BASED_CONFIG_FILENAME = "imagebased-config.yaml"
INVALID_IMAGE_BASED_CONFIG = "invalid Image-based Config configuration"

IMAGE_BASED_CONFIG_TEMPLATE = f"""\
#
# Note: This is a sample ImageBasedConfig file showing
# which fields are available to aid you in creating your
# own imagebased-config.yaml file.
#
apiVersion: {IMAGE_BASED_CONFIG_VERSION}
kind: ImageBasedConfig
metadata:
  name: example-image-based-config
additionalNTPSources:
  - 0.rhel.pool.ntp.org
  - 1.rhel.pool.ntp.org
hostname: change-to-hostname
releaseRegistry: quay.io
# networkConfig contains the network configuration for the host in NMState format.
# See https://nmstate.io/examples.html for examples.
networkConfig:
  interfaces:
    - name: eth0
      type: ethernet
      state: up
      mac-address: 00:00:00:00:00:00
      ipv4:
        enabled: true
        address:
          - ip: 192.168.122.2
            prefix-length: 23
        dhcp: false
"""


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def validate_image_based_config(config: ImageBasedConfigDocument) -> list[FieldError]:
    """Collect every violation in an image-based config document."""
    errs: list[FieldError] = []

    if not config.api_version:
        errs.append(required("apiVersion", "install-config version required"))
    elif config.api_version != IMAGE_BASED_CONFIG_VERSION:
        errs.append(
            not_supported("apiVersion", config.api_version, [IMAGE_BASED_CONFIG_VERSION])
        )

    if not config.hostname:
        errs.append(required("hostname", "hostname required"))
    elif not is_dns_subdomain(config.hostname):
        errs.append(invalid("hostname", config.hostname, "must be a valid DNS subdomain"))

    if not config.release_registry:
        errs.append(required("releaseRegistry", "release registry required"))

    for i, source in enumerate(config.additional_ntp_sources):
        if not (is_dns_subdomain(source) or _is_ip(source)):
            errs.append(
                invalid(
                    f"additionalNTPSources[{i}]",
                    source,
                    "NTP source is not a valid domain name nor a valid IP",
                )
            )

    if config.network_config is not None and "interfaces" not in config.network_config:
        errs.append(required("networkConfig.interfaces", "at least one interface required"))

    return errs


class ImageBasedConfig(WritableAsset):
    """Optional per-host configuration; absence is a valid empty state."""

    user_input = True

    def __init__(self) -> None:
        self.config: ImageBasedConfigDocument | None = None
        self.file: FileRecord | None = None

    @property
    def name(self) -> str:
        return "Image-based Config"

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: Parents) -> None:
        return None

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, IMAGE_BASED_CONFIG_FILENAME)
        if file is None:
            return False

        config = decode_yaml_strict(
            ImageBasedConfigDocument, file.data, IMAGE_BASED_CONFIG_FILENAME
        )
        raise_if_errors(
            validate_image_based_config(config), prefix=INVALID_IMAGE_BASED_CONFIG
        )

        self.config, self.file = config, file
        return True


class ImageBasedConfigTemplate(WritableAsset):
    """Annotated example config.

    An existing ``imagebased-config.yaml`` is kept byte-for-byte, so
    re-running the target never overwrites the user's edits.
    """

    def __init__(self) -> None:
        self.file: FileRecord | None = None

    @property
    def name(self) -> str:
        return "Image-based Config Template"

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: Parents) -> None:
        self.file = FileRecord(
            filename=IMAGE_BASED_CONFIG_FILENAME,
            data=IMAGE_BASED_CONFIG_TEMPLATE.encode("utf-8"),
        )

    def files(self) -> list[FileRecord]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        file = fetch_optional(fetcher, IMAGE_BASED_CONFIG_FILENAME)
        if file is None:
            return False
        logger.info("Keeping existing %s", IMAGE_BASED_CONFIG_FILENAME)
        self.file = file
        return True
