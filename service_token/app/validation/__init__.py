"""
Token validation package.

Verifies compact tokens issued by this service (or any peer using the same
keys): structure, signature, expiry, issuer and audience. Failures are
returned as data so callers can tell "expired" from "forged" from
"malformed" without exception handling.
"""

from .verifier import TokenVerifier, read_unverified_header

__all__ = ["TokenVerifier", "read_unverified_header"]
