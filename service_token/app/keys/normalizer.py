"""
Normalization of PEM private keys into PKCS#8 DER.

``PRIVATE KEY`` envelopes are already PKCS#8 and pass through untouched.
``EC PRIVATE KEY`` (SEC1) and ``RSA PRIVATE KEY`` (PKCS#1) bodies are
rewrapped by hand with :mod:`.der`; the ``cryptography`` primitives are only
used afterwards, to load the result and derive public keys.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from shared.logging import get_logger
from ..errors import InvalidKeyFormatError, UnsupportedKeyFamilyError
from ..models import KeyFamily, KeyFormat
from . import der
from .loader import PrivateKeyMaterial, find_pem_block, parse_private_key_material

logger = get_logger("token.keys.normalizer")

PrivateKey = Union[ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey]
PublicKey = Union[ec.EllipticCurvePublicKey, rsa.RSAPublicKey, ed25519.Ed25519PublicKey]

PUBLIC_KEY_LABEL = "PUBLIC KEY"


@dataclass(frozen=True)
class NormalizedKey:
    """PKCS#8 DER private key and its family.

    Safe to share between threads; nothing mutates it after construction.
    """

    der: bytes
    key_family: KeyFamily
    private_key: PrivateKey = field(repr=False, compare=False)

    def public_key(self) -> PublicKey:
        return self.private_key.public_key()

    def public_key_pem(self) -> str:
        """SubjectPublicKeyInfo PEM of the derived public key."""
        return self.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")


def private_key_family(key: Any) -> KeyFamily:
    if isinstance(key, ec.EllipticCurvePrivateKey):
        _require_p256(key.curve)
        return KeyFamily.EC
    if isinstance(key, rsa.RSAPrivateKey):
        return KeyFamily.RSA
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return KeyFamily.ED25519
    raise UnsupportedKeyFamilyError(
        f"Unsupported private key type: {type(key).__name__}",
        details={"key_type": type(key).__name__}
    )


def public_key_family(key: Any) -> Optional[KeyFamily]:
    """Family of a public key object, or None for anything unsupported."""
    if isinstance(key, ec.EllipticCurvePublicKey):
        return KeyFamily.EC if isinstance(key.curve, ec.SECP256R1) else None
    if isinstance(key, rsa.RSAPublicKey):
        return KeyFamily.RSA
    if isinstance(key, ed25519.Ed25519PublicKey):
        return KeyFamily.ED25519
    return None


def _require_p256(curve: ec.EllipticCurve) -> None:
    if not isinstance(curve, ec.SECP256R1):
        raise UnsupportedKeyFamilyError(
            f"Unsupported EC curve: {curve.name}; only P-256 is supported",
            details={"curve": curve.name}
        )


def decode_pem_body(body: str) -> bytes:
    """Base64-decode a PEM body after dropping all whitespace."""
    compact = "".join(body.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyFormatError(
            "PEM body is not valid base64",
            details={"error": str(e)}
        ) from e


def to_pkcs8(material: PrivateKeyMaterial) -> bytes:
    """Return the PKCS#8 DER encoding of ``material``."""
    if material.format is None:
        raise UnsupportedKeyFamilyError(
            f"Unsupported key envelope: {material.label}",
            details={"label": material.label, "location": material.location}
        )

    raw = decode_pem_body(material.body)
    if material.format is KeyFormat.WRAPPED_ANY:
        return raw
    if material.format is KeyFormat.SEPARATED_EC:
        return der.sec1_to_pkcs8(raw)
    return der.pkcs1_to_pkcs8(raw)


def normalize(material: PrivateKeyMaterial) -> NormalizedKey:
    """Convert loaded key material into a :class:`NormalizedKey`."""
    pkcs8 = to_pkcs8(material)

    try:
        private_key = serialization.load_der_private_key(pkcs8, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyFormatError(
            f"Could not load {material.label} from {material.location}",
            details={"label": material.label, "location": material.location, "error": str(e)}
        ) from e

    family = private_key_family(private_key)
    if material.key_family is not None and material.key_family is not family:
        raise InvalidKeyFormatError(
            f"{material.label} envelope holds a {family.value} key",
            details={"label": material.label, "key_family": family.value}
        )

    logger.info(
        "Private key normalized",
        location=material.location,
        format=material.format.name,
        key_family=family.value
    )
    return NormalizedKey(der=pkcs8, key_family=family, private_key=private_key)


def normalize_pem(pem: str, location: str = "<inline>") -> NormalizedKey:
    return normalize(parse_private_key_material(pem, location))


def load_public_key(pem: str) -> PublicKey:
    """Load a verification key from PEM.

    Accepts a ``PUBLIC KEY`` (SubjectPublicKeyInfo) envelope, or any private
    key envelope the normalizer understands, in which case the public half is
    derived from it.
    """
    block = find_pem_block(pem)
    if block is None:
        raise InvalidKeyFormatError("Key material has no PEM envelope")

    label, body = block
    if label != PUBLIC_KEY_LABEL:
        return normalize_pem(pem).public_key()

    try:
        public_key = serialization.load_der_public_key(decode_pem_body(body))
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidKeyFormatError(
            "Could not load public key",
            details={"error": str(e)}
        ) from e

    if public_key_family(public_key) is None:
        raise UnsupportedKeyFamilyError(
            f"Unsupported public key type: {type(public_key).__name__}",
            details={"key_type": type(public_key).__name__}
        )
    return public_key
