"""
Wire encodings for compact tokens.

Segments are unpadded base64url. ECDSA signatures travel as the fixed-width
``r || s`` concatenation (RFC 7518 section 3.4), not the DER structure the
cryptography primitives produce and consume.
"""

import json
import re
from typing import Any

from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from jose.utils import base64url_decode, base64url_encode

P256_COORDINATE_SIZE = 32

_SEGMENT_RE = re.compile(r"[A-Za-z0-9_-]+")


def b64url_encode(data: bytes) -> str:
    return base64url_encode(data).decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """Decode an unpadded base64url segment.

    Raises ValueError for padding, characters outside the URL-safe alphabet
    and non-canonical encodings (stray bits in the final character).
    """
    if not _SEGMENT_RE.fullmatch(segment):
        raise ValueError("segment is not unpadded base64url")
    raw = segment.encode("ascii")
    data = base64url_decode(raw)
    if base64url_encode(data) != raw:
        raise ValueError("segment is not canonical base64url")
    return data


def compact_json(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def der_to_raw_signature(der_signature: bytes, size: int = P256_COORDINATE_SIZE) -> bytes:
    """Convert a DER ECDSA signature to left-zero-padded ``r || s``."""
    r, s = decode_dss_signature(der_signature)
    return r.to_bytes(size, "big") + s.to_bytes(size, "big")


def raw_to_der_signature(raw_signature: bytes, size: int = P256_COORDINATE_SIZE) -> bytes:
    """Convert a fixed-width ``r || s`` signature back to DER."""
    if len(raw_signature) != 2 * size:
        raise ValueError(
            f"ECDSA signature must be {2 * size} bytes, got {len(raw_signature)}"
        )
    r = int.from_bytes(raw_signature[:size], "big")
    s = int.from_bytes(raw_signature[size:], "big")
    return encode_dss_signature(r, s)
