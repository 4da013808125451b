"""Shared test fixtures for Clusterforge."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from clusterforge.models.files import FileRecord

VALID_INSTALL_CONFIG = """\
apiVersion: v1
metadata:
  name: ocp-ibi-cluster-0
baseDomain: testing.com
networking:
  networkType: OVNKubernetes
  machineNetwork:
    - cidr: 10.10.11.0/24
compute:
  - architecture: amd64
    hyperthreading: Enabled
    name: worker
    platform: {}
    replicas: 0
controlPlane:
  architecture: amd64
  hyperthreading: Enabled
  name: master
  platform: {}
  replicas: 1
platform:
  none: {}
pullSecret: '{"auths":{"example.com":{"auth":"c3VwZXItc2VjcmV0Cg=="}}}'
sshKey: ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIExampleKey user@example.com
"""

VALID_IMAGE_BASED_CONFIG = """\
apiVersion: v1beta1
metadata:
  name: imagebased-config-cluster0
hostname: somehostname
releaseRegistry: quay.io
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


class MemoryFetcher:
    """Dict-backed file fetcher; *errors* maps names to raised exceptions."""

    def __init__(
        self,
        files: dict[str, bytes] | None = None,
        errors: dict[str, OSError] | None = None,
    ) -> None:
        self.files = dict(files or {})
        self.errors = dict(errors or {})
        self.requested: list[str] = []

    def fetch_by_name(self, name: str) -> FileRecord:
        self.requested.append(name)
        if name in self.errors:
            raise self.errors[name]
        if name not in self.files:
            raise FileNotFoundError(name)
        return FileRecord(filename=name, data=self.files[name])


@pytest.fixture
def asset_dir(tmp_path: Path) -> Path:
    """Provide an empty build output directory."""
    path = tmp_path / "ocp"
    path.mkdir()
    return path


@pytest.fixture
def write_asset_file(asset_dir: Path) -> Callable[[str, str | bytes], Path]:
    """Factory fixture: write a file relative to the output directory."""

    def _write(filename: str, content: str | bytes) -> Path:
        target = asset_dir / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8") if isinstance(content, str) else content
        target.write_bytes(data)
        return target

    return _write


@pytest.fixture
def user_configs(write_asset_file: Callable[[str, str | bytes], Path], asset_dir: Path) -> Path:
    """Output directory seeded with a valid install-config and image-based config."""
    write_asset_file("install-config.yaml", VALID_INSTALL_CONFIG)
    write_asset_file("imagebased-config.yaml", VALID_IMAGE_BASED_CONFIG)
    return asset_dir


@pytest.fixture
def make_fetcher() -> Callable[..., MemoryFetcher]:
    """Factory fixture: build a MemoryFetcher from str or bytes contents."""

    def _factory(
        files: dict[str, str | bytes] | None = None,
        errors: dict[str, OSError] | None = None,
    ) -> MemoryFetcher:
        encoded = {
            name: data.encode("utf-8") if isinstance(data, str) else data
            for name, data in (files or {}).items()
        }
        return MemoryFetcher(encoded, errors)

    return _factory


@pytest.fixture
def install_config_yaml() -> str:
    """A valid single-node install-config."""
    return VALID_INSTALL_CONFIG


@pytest.fixture
def image_based_config_yaml() -> str:
    """A valid image-based config."""
    return VALID_IMAGE_BASED_CONFIG
