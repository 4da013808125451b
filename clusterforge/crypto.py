"""Crypto helpers: Ed25519 signing, PEM armour and Argon2id password hashing via PyNaCl.

Certificates produced by this package are Ed25519 documents rather than
X.509: a canonical-JSON body carrying the subject, validity window, public
key and issuer key, signed by the issuer and wrapped in a ``CERTIFICATE``
PEM block.
"""

from __future__ import annotations

import base64
import logging
import re
import textwrap

import nacl.pwhash
import nacl.signing
from nacl.exceptions import BadSignatureError, InvalidkeyError

logger = logging.getLogger(__name__)

_PEM_RE = re.compile(
    rb"-----BEGIN (?P<label>[A-Z ]+)-----\r?\n(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)


# ---------------------------------------------------------------------------
# Ed25519 signing
# ---------------------------------------------------------------------------


def generate_keypair() -> tuple[bytes, bytes]:
    """Generate a signing key-pair.

    Returns
    -------
    tuple[bytes, bytes]
        ``(private_key_seed, public_key)`` — 32 bytes each.
    """
    sk = nacl.signing.SigningKey.generate()
    return sk.encode(), sk.verify_key.encode()


def public_key_for(private_key: bytes) -> bytes:
    """Derive the public key for a 32-byte private key seed."""
    return nacl.signing.SigningKey(private_key).verify_key.encode()


def sign_data(data: bytes, private_key: bytes) -> str:
    """Sign *data* and return the hex-encoded signature (128 hex chars)."""
    sk = nacl.signing.SigningKey(private_key)
    return sk.sign(data).signature.hex()


def verify_data(data: bytes, signature: str, public_key: bytes) -> bool:
    """Verify that *signature* is valid for *data* under *public_key*.

    Returns ``False`` for empty, malformed or mismatched signatures.
    """
    if not signature:
        return False
    try:
        vk = nacl.signing.VerifyKey(public_key)
        vk.verify(data, bytes.fromhex(signature))
    except (BadSignatureError, ValueError, TypeError):
        return False
    return True


# ---------------------------------------------------------------------------
# PEM armour
# ---------------------------------------------------------------------------


def pem_encode(label: str, payload: bytes) -> bytes:
    """Wrap *payload* in a PEM block with 64-column base64 lines."""
    body = "\n".join(textwrap.wrap(base64.b64encode(payload).decode("ascii"), 64))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n".encode("ascii")


def pem_decode_all(data: bytes, label: str) -> list[bytes]:
    """Return the payloads of every *label* PEM block in *data*.

    Raises ``ValueError`` if a matching block holds invalid base64.
    """
    payloads: list[bytes] = []
    for match in _PEM_RE.finditer(data):
        if match.group("label").decode("ascii") != label:
            continue
        body = b"".join(match.group("body").split())
        try:
            payloads.append(base64.b64decode(body, validate=True))
        except ValueError as exc:
            raise ValueError(f"invalid base64 in {label} block: {exc}") from exc
    return payloads


def pem_decode(data: bytes, label: str) -> bytes:
    """Return the payload of the single *label* PEM block in *data*."""
    payloads = pem_decode_all(data, label)
    if len(payloads) != 1:
        raise ValueError(f"expected exactly one {label} PEM block, found {len(payloads)}")
    return payloads[0]


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    """Argon2id hash of *password* in modular crypt format.

    Each call draws a fresh salt, so hashing the same password twice gives
    different strings.  Check candidates with ``verify_password()``.
    """
    return nacl.pwhash.argon2id.str(password.encode("utf-8")).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check *password* against a ``hash_password()`` result.

    Returns ``False`` for a wrong password and for hashes in an
    unrecognised format.
    """
    try:
        return nacl.pwhash.verify(
            password_hash.encode("ascii"), password.encode("utf-8")
        )
    except (InvalidkeyError, ValueError):
        return False
