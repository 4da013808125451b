"""Signer key pairs, issued client key pairs and CA bundles.

Shared behaviour is composed, not inherited: every signer asset holds a
``CertKey`` and every bundle asset holds a ``CertBundle`` by value, and
delegates ``files()``, ``load()`` and ``cert()`` to it.

Files
-----
- ``tls/<base>.key``  — PEM ``PRIVATE KEY`` (32-byte Ed25519 seed)
- ``tls/<base>.crt``  — PEM ``CERTIFICATE`` (signed certificate document)
- ``tls/<bundle>.crt`` — concatenated certificates, declaration order
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Protocol

from clusterforge.core.asset import Asset, PersistedStateError, WritableAsset, fetch_optional
from clusterforge.core.hasher import canonical_json_bytes
from clusterforge.crypto import (
    generate_keypair,
    pem_decode,
    pem_decode_all,
    pem_encode,
    public_key_for,
    sign_data,
    verify_data,
)
from clusterforge.models.files import FileRecord
from clusterforge.models.tls import (
    VALIDITY_ONE_YEAR,
    CertConfig,
    CertificateBody,
    SignedCertificate,
)

if TYPE_CHECKING:
    from clusterforge.core.file_fetcher import FileFetcher
    from clusterforge.core.parents import Parents

logger = logging.getLogger(__name__)

TLS_DIR = "tls"
CERT_LABEL = "CERTIFICATE"
KEY_LABEL = "PRIVATE KEY"


class CertSource(Protocol):
    """Anything exposing PEM certificate bytes."""

    def cert(self) -> bytes: ...


# ---------------------------------------------------------------------------
# Certificate documents
# ---------------------------------------------------------------------------


def issue_certificate(
    config: CertConfig,
    private_key: bytes,
    *,
    signer_key: bytes | None = None,
    issuer: str = "",
) -> SignedCertificate:
    """Create a certificate for *private_key*.

    Parameters
    ----------
    config:
        Subject and validity of the new certificate.
    private_key:
        Ed25519 seed whose public half the certificate carries.
    signer_key:
        Ed25519 seed of the issuing signer.  When omitted the certificate
        is self-signed.
    issuer:
        Common name of the issuing signer; ignored when self-signed.
    """
    if signer_key is None:
        signer_key, issuer = private_key, config.common_name
    now = datetime.now(timezone.utc).replace(microsecond=0)
    body = CertificateBody(
        serial=secrets.token_hex(16),
        common_name=config.common_name,
        organizational_unit=config.organizational_unit,
        is_ca=config.is_ca,
        not_before=now,
        not_after=now + config.validity,
        public_key=public_key_for(private_key).hex(),
        issuer=issuer,
        issuer_public_key=public_key_for(signer_key).hex(),
    )
    signature = sign_data(canonical_json_bytes(body.model_dump(mode="json")), signer_key)
    return SignedCertificate(body=body, signature=signature)


def encode_certificate(cert: SignedCertificate) -> bytes:
    return pem_encode(CERT_LABEL, canonical_json_bytes(cert.model_dump(mode="json")))


def decode_certificate(data: bytes) -> SignedCertificate:
    """Parse a PEM certificate.  Raises ``ValueError`` when malformed."""
    return SignedCertificate.model_validate(json.loads(pem_decode(data, CERT_LABEL)))


def verify_certificate(cert: SignedCertificate, issuer_public_key: bytes | None = None) -> bool:
    """Check the signature of *cert*.

    Verifies against *issuer_public_key* when given, otherwise against the
    issuer key recorded in the certificate body.
    """
    if issuer_public_key is None:
        try:
            issuer_public_key = bytes.fromhex(cert.body.issuer_public_key)
        except ValueError:
            return False
    return verify_data(
        canonical_json_bytes(cert.body.model_dump(mode="json")),
        cert.signature,
        issuer_public_key,
    )


# ---------------------------------------------------------------------------
# Composable capabilities
# ---------------------------------------------------------------------------


class CertKey:
    """A private key and its certificate, plus their files."""

    def __init__(self) -> None:
        self.key_raw: bytes = b""
        self.cert_raw: bytes = b""
        self.file_list: list[FileRecord] = []

    def key(self) -> bytes:
        return self.key_raw

    def cert(self) -> bytes:
        return self.cert_raw

    def generate(
        self, config: CertConfig, filename_base: str, signer: CertKey | None = None
    ) -> None:
        """Create a fresh key and certificate, self-signed unless *signer* is given."""
        private_key, _ = generate_keypair()
        if signer is None:
            cert = issue_certificate(config, private_key)
        else:
            cert = issue_certificate(
                config,
                private_key,
                signer_key=pem_decode(signer.key(), KEY_LABEL),
                issuer=decode_certificate(signer.cert()).body.common_name,
            )
        key_raw = pem_encode(KEY_LABEL, private_key)
        cert_raw = encode_certificate(cert)
        self.key_raw, self.cert_raw = key_raw, cert_raw
        self.file_list = [
            FileRecord(filename=f"{TLS_DIR}/{filename_base}.key", data=key_raw),
            FileRecord(filename=f"{TLS_DIR}/{filename_base}.crt", data=cert_raw),
        ]

    def load(self, fetcher: FileFetcher, filename_base: str) -> bool:
        """Load the key pair, verifying the certificate against the key.

        Both files absent means not found; exactly one present is an
        inconsistent state and raises ``PersistedStateError``.
        """
        key_name = f"{TLS_DIR}/{filename_base}.key"
        cert_name = f"{TLS_DIR}/{filename_base}.crt"
        key_file = fetch_optional(fetcher, key_name)
        cert_file = fetch_optional(fetcher, cert_name)
        if key_file is None and cert_file is None:
            return False
        if key_file is None or cert_file is None:
            missing = key_name if key_file is None else cert_name
            raise PersistedStateError(f"incomplete key pair: {missing} is missing")

        try:
            private_key = pem_decode(key_file.data, KEY_LABEL)
            public_key = public_key_for(private_key)
        except ValueError as exc:
            raise PersistedStateError(f"failed to parse {key_name}: {exc}") from exc
        try:
            cert = decode_certificate(cert_file.data)
        except ValueError as exc:
            raise PersistedStateError(f"failed to parse {cert_name}: {exc}") from exc

        if cert.body.public_key != public_key.hex():
            raise PersistedStateError(f"{cert_name} does not match {key_name}")
        if not verify_certificate(cert):
            raise PersistedStateError(f"{cert_name} has an invalid signature")

        self.key_raw, self.cert_raw = key_file.data, cert_file.data
        self.file_list = [key_file, cert_file]
        return True


class CertBundle:
    """Concatenated certificates, in the order they were given."""

    def __init__(self) -> None:
        self.bundle_raw: bytes = b""
        self.file_list: list[FileRecord] = []

    def cert(self) -> bytes:
        return self.bundle_raw

    def generate(self, filename_base: str, *sources: CertSource) -> None:
        if not sources:
            raise ValueError("at least one certificate required for a bundle")
        bundle_raw = b"".join(source.cert() for source in sources)
        self.bundle_raw = bundle_raw
        self.file_list = [
            FileRecord(filename=f"{TLS_DIR}/{filename_base}.crt", data=bundle_raw)
        ]

    def load(self, fetcher: FileFetcher, filename_base: str) -> bool:
        filename = f"{TLS_DIR}/{filename_base}.crt"
        file = fetch_optional(fetcher, filename)
        if file is None:
            return False
        try:
            certs = pem_decode_all(file.data, CERT_LABEL)
        except ValueError as exc:
            raise PersistedStateError(f"failed to parse {filename}: {exc}") from exc
        if not certs:
            raise PersistedStateError(f"failed to parse {filename}: no certificates found")
        self.bundle_raw = file.data
        self.file_list = [file]
        return True


# ---------------------------------------------------------------------------
# Signer assets
# ---------------------------------------------------------------------------


class SignerCertKeyAsset(WritableAsset):
    """Base for self-signed signer assets; subclasses set the class attributes."""

    filename_base: ClassVar[str]
    cert_config: ClassVar[CertConfig]

    def __init__(self) -> None:
        self.cert_key = CertKey()

    @property
    def name(self) -> str:
        return f"Certificate ({self.filename_base})"

    def dependencies(self) -> list[type[Asset]]:
        return []

    def signer_config(self) -> CertConfig:
        return self.cert_config

    def generate(self, parents: Parents) -> None:
        self.cert_key.generate(self.signer_config(), self.filename_base)

    def files(self) -> list[FileRecord]:
        return list(self.cert_key.file_list)

    def load(self, fetcher: FileFetcher) -> bool:
        return self.cert_key.load(fetcher, self.filename_base)

    def key(self) -> bytes:
        return self.cert_key.key()

    def cert(self) -> bytes:
        return self.cert_key.cert()


class KubeAPIServerLBSignerCertKey(SignerCertKeyAsset):
    filename_base = "kube-apiserver-lb-signer"
    cert_config = CertConfig(common_name="kube-apiserver-lb-signer")


class KubeAPIServerLocalhostSignerCertKey(SignerCertKeyAsset):
    filename_base = "kube-apiserver-localhost-signer"
    cert_config = CertConfig(common_name="kube-apiserver-localhost-signer")


class KubeAPIServerServiceNetworkSignerCertKey(SignerCertKeyAsset):
    filename_base = "kube-apiserver-service-network-signer"
    cert_config = CertConfig(common_name="kube-apiserver-service-network-signer")


class AdminKubeConfigSignerCertKey(SignerCertKeyAsset):
    filename_base = "admin-kubeconfig-signer"
    cert_config = CertConfig(common_name="admin-kubeconfig-signer")


class IngressOperatorSignerCertKey(SignerCertKeyAsset):
    """Ingress signer; its common name carries the issuing timestamp."""

    filename_base = "ingress-operator-signer"
    cert_config = CertConfig(
        common_name="ingress-operator", validity=2 * VALIDITY_ONE_YEAR
    )

    def signer_config(self) -> CertConfig:
        return self.cert_config.model_copy(
            update={"common_name": f"ingress-operator@{int(time.time())}"}
        )


# ---------------------------------------------------------------------------
# Issued certificate assets
# ---------------------------------------------------------------------------


class SignedCertKeyAsset(WritableAsset):
    """Base for key pairs whose certificate is issued by a signer asset."""

    filename_base: ClassVar[str]
    cert_config: ClassVar[CertConfig]
    signer: ClassVar[type[SignerCertKeyAsset]]

    def __init__(self) -> None:
        self.cert_key = CertKey()

    @property
    def name(self) -> str:
        return f"Certificate ({self.filename_base})"

    def dependencies(self) -> list[type[Asset]]:
        return [self.signer]

    def generate(self, parents: Parents) -> None:
        signer = parents.get(self.signer)
        self.cert_key.generate(self.cert_config, self.filename_base, signer=signer.cert_key)

    def files(self) -> list[FileRecord]:
        return list(self.cert_key.file_list)

    def load(self, fetcher: FileFetcher) -> bool:
        return self.cert_key.load(fetcher, self.filename_base)

    def key(self) -> bytes:
        return self.cert_key.key()

    def cert(self) -> bytes:
        return self.cert_key.cert()


class AdminKubeConfigClientCertKey(SignedCertKeyAsset):
    filename_base = "admin-kubeconfig-client"
    cert_config = CertConfig(
        common_name="system:admin",
        organizational_unit="system:masters",
        is_ca=False,
    )
    signer = AdminKubeConfigSignerCertKey


# ---------------------------------------------------------------------------
# CA bundle assets
# ---------------------------------------------------------------------------


class CABundleAsset(WritableAsset):
    """Base for bundle assets; ``bundled`` lists the sources in file order."""

    filename_base: ClassVar[str]
    bundled: ClassVar[tuple[type[Asset], ...]]

    def __init__(self) -> None:
        self.cert_bundle = CertBundle()

    @property
    def name(self) -> str:
        return f"Certificate ({self.filename_base})"

    def dependencies(self) -> list[type[Asset]]:
        return list(self.bundled)

    def generate(self, parents: Parents) -> None:
        sources = parents.get_all(*self.dependencies())
        self.cert_bundle.generate(self.filename_base, *sources)  # type: ignore[arg-type]

    def files(self) -> list[FileRecord]:
        return list(self.cert_bundle.file_list)

    def load(self, fetcher: FileFetcher) -> bool:
        return self.cert_bundle.load(fetcher, self.filename_base)

    def cert(self) -> bytes:
        return self.cert_bundle.cert()


class KubeAPIServerLBCABundle(CABundleAsset):
    filename_base = "kube-apiserver-lb-ca-bundle"
    bundled = (KubeAPIServerLBSignerCertKey,)


class KubeAPIServerLocalhostCABundle(CABundleAsset):
    filename_base = "kube-apiserver-localhost-ca-bundle"
    bundled = (KubeAPIServerLocalhostSignerCertKey,)


class KubeAPIServerServiceNetworkCABundle(CABundleAsset):
    filename_base = "kube-apiserver-service-network-ca-bundle"
    bundled = (KubeAPIServerServiceNetworkSignerCertKey,)


class IngressOperatorCABundle(CABundleAsset):
    filename_base = "ingress-operator-ca-bundle"
    bundled = (IngressOperatorSignerCertKey,)
