"""
Token signing package.

Builds the JOSE header and bank claims, then signs the compact
serialization with the algorithm named in the signing context.
"""

from .claims import build_claims, build_header
from .signer import TokenSigner

__all__ = ["TokenSigner", "build_claims", "build_header"]
