"""
Compact token verification.

Every failure is reported through :class:`VerificationResult`; nothing in
this module raises to the caller.
"""

import json
from typing import Any, Callable, Dict, Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding

from shared.logging import get_logger
from ..keys.normalizer import PublicKey, public_key_family
from ..models import Algorithm, FailureKind, VerificationResult
from ..signing.encoding import b64url_decode, raw_to_der_signature

logger = get_logger("token.verifier")


class _Malformed(Exception):
    """Internal signal for structural problems; never escapes this module."""


def _verify_es256(key: PublicKey, signature: bytes, data: bytes) -> None:
    key.verify(raw_to_der_signature(signature), data, ec.ECDSA(hashes.SHA256()))


def _verify_rs256(key: PublicKey, signature: bytes, data: bytes) -> None:
    key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())


def _verify_eddsa(key: PublicKey, signature: bytes, data: bytes) -> None:
    key.verify(signature, data)


_VERIFIERS: Dict[Algorithm, Callable[[PublicKey, bytes, bytes], None]] = {
    Algorithm.ES256: _verify_es256,
    Algorithm.RS256: _verify_rs256,
    Algorithm.EDDSA: _verify_eddsa,
}


def _decode_json_segment(segment: str, name: str) -> Dict[str, Any]:
    try:
        value = json.loads(b64url_decode(segment).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise _Malformed(f"{name} is not base64url-encoded JSON: {e}") from e
    if not isinstance(value, dict):
        raise _Malformed(f"{name} is not a JSON object")
    return value


def _split(token: Any) -> Tuple[str, str, str]:
    if not isinstance(token, str):
        raise _Malformed("token is not a string")
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise _Malformed("token must have three non-empty segments")
    return parts[0], parts[1], parts[2]


def _check_header(header: Dict[str, Any]) -> Algorithm:
    alg = header.get("alg")
    try:
        return Algorithm(alg)
    except (ValueError, TypeError):
        raise _Malformed(f"unsupported alg in header: {alg!r}") from None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_payload(payload: Dict[str, Any]) -> None:
    if not _is_int(payload.get("exp")):
        raise _Malformed("payload exp must be an integer")
    if not isinstance(payload.get("iss"), str):
        raise _Malformed("payload iss must be a string")
    aud = payload.get("aud")
    if isinstance(aud, list):
        if not all(isinstance(item, str) for item in aud):
            raise _Malformed("payload aud list must contain strings")
    elif not isinstance(aud, str):
        raise _Malformed("payload aud must be a string or list of strings")


def read_unverified_header(token: str) -> Optional[Dict[str, Any]]:
    """Decode the header without checking anything else, e.g. to pick a key by kid."""
    try:
        header_segment, _, _ = _split(token)
        return _decode_json_segment(header_segment, "header")
    except _Malformed:
        return None


class TokenVerifier:
    """Verifies compact tokens against a public key and expected claims."""

    def verify(
        self,
        token: str,
        public_key: Optional[PublicKey],
        expected_issuer: str,
        expected_audience: str,
        now: Union[int, float],
    ) -> VerificationResult:
        header: Optional[Dict[str, Any]] = None
        try:
            header_segment, payload_segment, signature_segment = _split(token)
            header = _decode_json_segment(header_segment, "header")
            algorithm = _check_header(header)
            payload = _decode_json_segment(payload_segment, "payload")
            _check_payload(payload)
            try:
                signature = b64url_decode(signature_segment)
            except ValueError as e:
                raise _Malformed(f"signature is not base64url: {e}") from e
        except _Malformed as e:
            return VerificationResult.fail(FailureKind.MALFORMED, str(e), header)

        if public_key is None:
            return VerificationResult.fail(
                FailureKind.BAD_SIGNATURE,
                f"no verification key for kid {header.get('kid')!r}",
                header
            )

        if public_key_family(public_key) is not algorithm.key_family:
            return VerificationResult.fail(
                FailureKind.BAD_SIGNATURE,
                f"verification key cannot check {algorithm.value} signatures",
                header
            )

        signed = f"{header_segment}.{payload_segment}".encode("ascii")
        try:
            _VERIFIERS[algorithm](public_key, signature, signed)
        except (InvalidSignature, ValueError) as e:
            return VerificationResult.fail(
                FailureKind.BAD_SIGNATURE,
                f"signature verification failed{': ' + str(e) if str(e) else ''}",
                header
            )

        if not payload["exp"] > now:
            return VerificationResult.fail(
                FailureKind.EXPIRED,
                f"token expired at {payload['exp']}",
                header
            )

        if payload["iss"] != expected_issuer:
            return VerificationResult.fail(
                FailureKind.CLAIM_MISMATCH,
                f"unexpected issuer {payload['iss']!r}",
                header
            )

        aud = payload["aud"]
        audiences = aud if isinstance(aud, list) else [aud]
        if expected_audience not in audiences:
            return VerificationResult.fail(
                FailureKind.CLAIM_MISMATCH,
                f"audience {aud!r} does not include {expected_audience!r}",
                header
            )

        return VerificationResult.ok(payload, header)
