"""
Header and claims assembly for issued tokens.
"""

import math
from typing import Any, Dict, Union

from ..models import SigningContext

TOKEN_TYPE = "JWT"


def build_header(context: SigningContext) -> Dict[str, Any]:
    return {
        "alg": context.algorithm.value,
        "kid": context.key_id,
        "typ": TOKEN_TYPE,
    }


def build_claims(context: SigningContext, issued_at: Union[int, float]) -> Dict[str, Any]:
    """Build the payload for a token issued at ``issued_at`` (unix seconds).

    Fractional timestamps are floored; ``exp`` is always ``iat + ttl``.
    """
    iat = int(math.floor(issued_at))
    return {
        "iss": context.issuer,
        "sub": context.issuer,
        "aud": context.audience,
        "iat": iat,
        "exp": iat + context.ttl_seconds,
    }
