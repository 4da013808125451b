"""Clusterforge data models — all Pydantic v2, all frozen (immutable)."""

from clusterforge.models.build import (
    BuildReport,
    ResolutionRecord,
    ResolutionSource,
    WrittenFile,
)
from clusterforge.models.files import FileRecord
from clusterforge.models.imagebased_config import ImageBasedConfigDocument
from clusterforge.models.install_config import InstallConfig
from clusterforge.models.kubeconfig import KubeConfig
from clusterforge.models.seed_reconfiguration import SeedReconfiguration
from clusterforge.models.tls import CertConfig, CertificateBody, SignedCertificate

__all__ = [
    "BuildReport",
    "CertConfig",
    "CertificateBody",
    "FileRecord",
    "ImageBasedConfigDocument",
    "InstallConfig",
    "KubeConfig",
    "ResolutionRecord",
    "ResolutionSource",
    "SeedReconfiguration",
    "SignedCertificate",
    "WrittenFile",
]
