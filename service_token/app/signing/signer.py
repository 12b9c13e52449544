"""
Compact JWS signing for ES256, RS256 and EdDSA.
"""

from typing import Callable, Dict, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding

from shared.logging import get_logger
from ..errors import KeyAlgorithmMismatchError, SigningError
from ..keys.normalizer import NormalizedKey, PrivateKey
from ..models import Algorithm, SigningContext
from .claims import build_claims, build_header
from .encoding import b64url_encode, compact_json, der_to_raw_signature

logger = get_logger("token.signer")


def _sign_es256(key: PrivateKey, data: bytes) -> bytes:
    der_signature = key.sign(data, ec.ECDSA(hashes.SHA256()))
    return der_to_raw_signature(der_signature)


def _sign_rs256(key: PrivateKey, data: bytes) -> bytes:
    return key.sign(data, padding.PKCS1v15(), hashes.SHA256())


def _sign_eddsa(key: PrivateKey, data: bytes) -> bytes:
    return key.sign(data)


_SIGNERS: Dict[Algorithm, Callable[[PrivateKey, bytes], bytes]] = {
    Algorithm.ES256: _sign_es256,
    Algorithm.RS256: _sign_rs256,
    Algorithm.EDDSA: _sign_eddsa,
}


def signing_input(header: Dict, claims: Dict) -> str:
    return f"{b64url_encode(compact_json(header))}.{b64url_encode(compact_json(claims))}"


class TokenSigner:
    """Produces compact tokens from a normalized key and a signing context.

    Stateless; one instance may be shared by any number of threads.
    """

    def sign(self, key: NormalizedKey, context: SigningContext, now: Union[int, float]) -> str:
        """Sign a fresh token issued at ``now`` (unix seconds)."""
        if key.key_family is not context.algorithm.key_family:
            raise KeyAlgorithmMismatchError(key.key_family.value, context.algorithm.value)

        header = build_header(context)
        claims = build_claims(context, now)
        message = signing_input(header, claims)

        try:
            signature = _SIGNERS[context.algorithm](key.private_key, message.encode("ascii"))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            logger.error(
                "Signing primitive failed",
                algorithm=context.algorithm.value,
                error=str(e)
            )
            raise SigningError(
                f"{context.algorithm.value} signing failed: {e}",
                details={"algorithm": context.algorithm.value}
            ) from e

        return f"{message}.{b64url_encode(signature)}"
