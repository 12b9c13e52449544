"""
Key material package.

Loads PEM private keys from ordered candidate sources and normalizes them
into PKCS#8 so every signing path deals with a single encoding.

Key points:
- Loading is stateless; callers keep the resulting key for process lifetime.
- SEC1 and PKCS#1 keys are rewrapped with a small hand-written DER writer.
- Public keys are derived with the cryptography primitives.
"""

from .loader import (
    EnvironmentKeySource,
    FileKeySource,
    KeyMaterialLoader,
    KeySource,
    PackageResourceKeySource,
    PrivateKeyMaterial,
    key_source_from_location,
)
from .normalizer import NormalizedKey, load_public_key, normalize, normalize_pem

__all__ = [
    "EnvironmentKeySource",
    "FileKeySource",
    "KeyMaterialLoader",
    "KeySource",
    "NormalizedKey",
    "PackageResourceKeySource",
    "PrivateKeyMaterial",
    "key_source_from_location",
    "load_public_key",
    "normalize",
    "normalize_pem",
]
