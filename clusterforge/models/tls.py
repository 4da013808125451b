"""Certificate models.

A certificate is a signed ``CertificateBody``: the body is serialized to
canonical JSON, signed with Ed25519 by the issuer's key, and the pair is
PEM-armoured as a ``CERTIFICATE`` block.  Signers are self-signed; client
certificates name the signer that issued them.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict

VALIDITY_ONE_DAY = timedelta(days=1)
VALIDITY_ONE_YEAR = timedelta(days=365)
VALIDITY_TEN_YEARS = 10 * VALIDITY_ONE_YEAR


class CertConfig(BaseModel):
    """Subject and validity of a certificate."""

    model_config = ConfigDict(frozen=True)

    common_name: str
    organizational_unit: str = "openshift"
    validity: timedelta = VALIDITY_TEN_YEARS
    is_ca: bool = True


class CertificateBody(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    serial: str
    common_name: str
    organizational_unit: str
    is_ca: bool
    not_before: datetime
    not_after: datetime
    public_key: str  # hex
    issuer: str
    issuer_public_key: str  # hex; equals public_key when self-signed


class SignedCertificate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    body: CertificateBody
    signature: str  # hex Ed25519 signature over canonical JSON of body
