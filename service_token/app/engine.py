"""
Token engine: the issue/verify entry points used by the HTTP layer and CLI.
"""

import re
import time
from typing import Callable, Iterable, Optional, Union

from shared.logging import fingerprint, get_logger
from .config import TokenServiceConfig
from .errors import KeyAlgorithmMismatchError
from .keys.loader import KeyMaterialLoader, KeySource
from .keys.normalizer import NormalizedKey, PublicKey, normalize
from .models import SigningContext, VerificationResult
from .signing.signer import TokenSigner
from .validation.verifier import TokenVerifier, read_unverified_header

logger = get_logger("token.engine")

BEARER_PREFIX_RE = re.compile(r"^Bearer\s+", re.IGNORECASE)

KeyResolver = Callable[[Optional[str]], Optional[PublicKey]]
Clock = Callable[[], float]


def strip_bearer(token: str) -> str:
    """Remove a leading ``Bearer`` scheme from an Authorization value."""
    return BEARER_PREFIX_RE.sub("", token.strip(), count=1)


class TokenEngine:
    """Issues and verifies tokens with one signing key.

    The key is loaded once, before the engine is built, and only read
    afterwards, so a single engine can serve concurrent requests. Every
    ``issue_token`` call signs a new token; nothing is cached.
    """

    def __init__(
        self,
        key: NormalizedKey,
        config: TokenServiceConfig,
        *,
        key_resolver: Optional[KeyResolver] = None,
        clock: Clock = time.time,
    ):
        self.key = key
        self.config = config
        self.default_context = config.signing_context()
        self.clock = clock
        self.signer = TokenSigner()
        self.verifier = TokenVerifier()
        self._public_key = key.public_key()
        self.key_resolver = key_resolver or self._own_public_key

        if key.key_family is not self.default_context.algorithm.key_family:
            raise KeyAlgorithmMismatchError(
                key.key_family.value, self.default_context.algorithm.value
            )

    @classmethod
    def from_config(
        cls,
        config: TokenServiceConfig,
        sources: Optional[Iterable[Union[KeySource, str]]] = None,
        **kwargs,
    ) -> "TokenEngine":
        """Load and normalize the signing key, then build the engine."""
        locations = config.private_key_locations if sources is None else sources
        material = KeyMaterialLoader().load(locations)
        return cls(normalize(material), config, **kwargs)

    def _own_public_key(self, kid: Optional[str]) -> PublicKey:
        return self._public_key

    @property
    def public_key_pem(self) -> str:
        return self.key.public_key_pem()

    def issue_token(self, context: Optional[SigningContext] = None) -> str:
        """Sign a fresh token; errors propagate to the caller."""
        context = context or self.default_context
        token = self.signer.sign(self.key, context, self.clock())
        logger.info(
            "Token issued",
            kid=context.key_id,
            alg=context.algorithm.value,
            aud=context.audience,
            ttl_seconds=context.ttl_seconds,
            token_sha256=fingerprint(token)
        )
        return token

    def verify_token(
        self,
        token: str,
        expected_issuer: Optional[str] = None,
        expected_audience: Optional[str] = None,
    ) -> VerificationResult:
        """Verify ``token`` (optionally ``Bearer``-prefixed) at the current time."""
        if isinstance(token, str):
            token = strip_bearer(token)

        header = read_unverified_header(token) or {}
        kid = header.get("kid")
        if not isinstance(kid, str):
            kid = None

        try:
            public_key = self.key_resolver(kid)
        except Exception as e:
            # Treated as an unknown kid: the token still gets its structural checks
            logger.warning("Key resolver failed", kid=kid, error=str(e))
            public_key = None

        result = self.verifier.verify(
            token,
            public_key,
            self.config.issuer if expected_issuer is None else expected_issuer,
            self.config.audience if expected_audience is None else expected_audience,
            self.clock(),
        )

        if result.valid:
            logger.info("Token verified", kid=kid)
        else:
            logger.warning(
                "Token verification failed",
                failure_kind=result.failure_kind.value,
                reason=result.message,
                kid=kid
            )
        return result
