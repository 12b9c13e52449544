"""
Error taxonomy for key loading and token issuance.

Verification never raises; its failures are reported through
``VerificationResult.failure_kind`` instead.
"""

from typing import Any, Dict, Iterable, Optional

from shared.errors import ServiceException


class TokenServiceError(ServiceException):
    """Base class for issuance-path errors."""

    status_code = 503


class KeyNotFoundError(TokenServiceError):
    """None of the candidate key sources exist."""

    def __init__(self, attempted: Iterable[str]):
        attempted = list(attempted)
        if attempted:
            message = "Private key not found; tried: " + ", ".join(attempted)
        else:
            message = "Private key not found; no key locations configured"
        super().__init__("KEY_NOT_FOUND", message, {"attempted": attempted})
        self.attempted = attempted


class InvalidKeyFormatError(TokenServiceError):
    """Key material is not a decodable PEM private key."""

    def __init__(self, message: str = "Invalid key format", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_KEY_FORMAT", message, details)


class UnsupportedKeyFamilyError(TokenServiceError):
    """Key envelope or key type is not one the engine can sign with."""

    def __init__(self, message: str = "Unsupported key family", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNSUPPORTED_KEY_FAMILY", message, details)


class UnsupportedAlgorithmError(TokenServiceError):
    """Requested signing algorithm is not ES256, RS256 or EdDSA."""

    status_code = 400

    def __init__(self, algorithm: Any):
        super().__init__(
            "UNSUPPORTED_ALGORITHM",
            f"Unsupported algorithm: {algorithm!r}; expected one of ES256, RS256, EdDSA",
            {"algorithm": str(algorithm)}
        )


class KeyAlgorithmMismatchError(TokenServiceError):
    """Key family does not match the algorithm requested."""

    def __init__(self, key_family: str, algorithm: str):
        super().__init__(
            "KEY_ALGORITHM_MISMATCH",
            f"{key_family} key cannot sign {algorithm} tokens",
            {"key_family": key_family, "algorithm": algorithm}
        )


class SigningError(TokenServiceError):
    """The underlying signing primitive failed."""

    status_code = 500

    def __init__(self, message: str = "Token signing failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_ERROR", message, details)
