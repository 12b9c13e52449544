"""
Core data model for token issuance and verification.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from shared.errors import ValidationError
from .errors import UnsupportedAlgorithmError


class KeyFamily(str, Enum):
    """Asymmetric key families the engine can sign with."""
    EC = "EC"
    RSA = "RSA"
    ED25519 = "Ed25519"


class KeyFormat(str, Enum):
    """PEM envelope variants accepted for private keys."""
    WRAPPED_ANY = "PRIVATE KEY"
    SEPARATED_EC = "EC PRIVATE KEY"
    SEPARATED_RSA = "RSA PRIVATE KEY"


class Algorithm(str, Enum):
    """JWS algorithms supported for issuance and verification."""
    ES256 = "ES256"
    RS256 = "RS256"
    EDDSA = "EdDSA"

    @property
    def key_family(self) -> KeyFamily:
        return _ALGORITHM_FAMILIES[self]

    @classmethod
    def parse(cls, value: Any) -> "Algorithm":
        """Coerce ``value`` to an Algorithm, raising UnsupportedAlgorithmError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedAlgorithmError(value) from None


_ALGORITHM_FAMILIES = {
    Algorithm.ES256: KeyFamily.EC,
    Algorithm.RS256: KeyFamily.RSA,
    Algorithm.EDDSA: KeyFamily.ED25519,
}


@dataclass(frozen=True)
class SigningContext:
    """Per-issuance signing parameters.

    ``algorithm`` accepts either an :class:`Algorithm` or its string value;
    unknown values fail here rather than at signing time.
    """

    issuer_id: str
    audience: str
    key_id: str
    algorithm: Algorithm = Algorithm.ES256
    ttl_seconds: int = 600

    def __post_init__(self):
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))

        for name in ("issuer_id", "audience", "key_id"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValidationError(
                    f"{name} must be a non-empty string",
                    details={"field": name}
                )

        if isinstance(self.ttl_seconds, bool) or not isinstance(self.ttl_seconds, int) or self.ttl_seconds <= 0:
            raise ValidationError(
                "ttl_seconds must be a positive integer",
                details={"field": "ttl_seconds", "value": self.ttl_seconds}
            )

    @property
    def issuer(self) -> str:
        """Issuer/subject claim value for this context."""
        return f"bank:{self.issuer_id}"


class FailureKind(str, Enum):
    """Reasons a token can fail verification."""
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    CLAIM_MISMATCH = "claim_mismatch"


@dataclass(frozen=True)
class VerificationResult:
    """
    Result of token verification.

    Attributes:
        valid: Whether every check passed
        claims: Decoded payload (only when valid)
        failure_kind: Failure category when not valid
        message: Human-readable detail for logs
        header: Decoded header, when it could be decoded
    """
    valid: bool
    claims: Optional[Dict[str, Any]] = None
    failure_kind: Optional[FailureKind] = None
    message: Optional[str] = None
    header: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def ok(cls, claims: Dict[str, Any], header: Dict[str, Any]) -> "VerificationResult":
        """Create a successful result."""
        return cls(valid=True, claims=claims, header=header)

    @classmethod
    def fail(
        cls,
        kind: FailureKind,
        message: str,
        header: Optional[Dict[str, Any]] = None,
    ) -> "VerificationResult":
        """Create a failed result."""
        return cls(valid=False, failure_kind=kind, message=message, header=header)
